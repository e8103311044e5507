"""Rich-based terminal output for the infrawatch CLI.

Results go to stdout, errors to stderr. Commands print through
get_console() rather than calling print directly.
"""

from collections.abc import Iterable, Sequence

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from infrawatch.domain.inventory.service.inventory import RunResult, format_runtime
from infrawatch.domain.tracking.model.history import ChangeHistory
from infrawatch.domain.tracking.model.report import ChangeReport

_RATING_STYLE = {"Excellent": "green", "Good": "yellow", "Slow": "red"}


class Console:
    def __init__(self) -> None:
        self._out = RichConsole()
        self._err = RichConsole(stderr=True)

    def success(self, message: str) -> None:
        self._out.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._out.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        """Print an error, and an optional follow-up hint, to stderr."""
        self._err.print(f"[red]✗[/red] {message}")
        if hint is not None:
            self._err.print(f"  [dim]{hint}[/dim]")

    def info(self, message: str) -> None:
        self._out.print(f"[dim]{message}[/dim]")

    def _table(
        self, title: str, headers: Sequence[str], rows: Iterable[Sequence[object]]
    ) -> None:
        table = Table(title=title, header_style="bold")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(str(cell) for cell in row))
        self._out.print(table)

    def run_summary(self, result: RunResult) -> None:
        """Panel with discovery counts, output locations and runtime rating."""
        body = []
        if result.regions is not None:
            body.append(f"[cyan]Regions discovered:[/cyan] {result.regions.count}")
        if result.services is not None:
            body.append(f"[cyan]Services discovered:[/cyan] {result.services.count}")

        mapping = result.snapshot.services_by_region
        if mapping is not None and mapping.summary is not None:
            summary = mapping.summary
            body += [
                f"[cyan]Service-by-region mappings:[/cyan] {summary.total_regions} regions",
                f"  Total service instances: {mapping.total_service_instances():,}",
                f"  Average per region: {summary.average_services_per_region} services",
                f"  Fetched: {summary.fetched_regions}, from cache: {summary.cached_regions}",
            ]

        body += [f"[dim]{name}: {location}[/dim]" for name, location in result.locations.items()]

        style = _RATING_STYLE.get(result.rating, "dim")
        body.append(
            f"Total runtime: {format_runtime(result.runtime)} [{style}]({result.rating})[/{style}]"
        )
        self._out.print(
            Panel("\n".join(body), title="[bold]Data fetch complete[/bold]", border_style="green")
        )

        if result.changes is not None:
            self.change_report(result.changes)

    def change_report(self, report: ChangeReport) -> None:
        if report.is_first_run:
            self.info("Change tracking initialized with a baseline")
        elif not report.has_changes:
            self.info("No changes detected since last run")
        else:
            self.success(report.summary)
            for region in report.new_regions:
                self._out.print(f"  [green]+[/green] region {region.code} ({region.name})")
            for code in report.new_services:
                self._out.print(f"  [green]+[/green] service {code}")
            if report.new_regional_services:
                count = len(report.new_regional_services)
                self._out.print(f"  [green]+[/green] {count} regional service mappings")

    def change_log(self, history: ChangeHistory, limit: int) -> None:
        meta = history.metadata
        self._out.print(
            f"Tracking since {meta.created}, last updated {meta.last_updated}: "
            f"{meta.total_regions} regions, {meta.total_services} services, "
            f"{meta.total_regional_services:,} regional services"
        )
        self._table(
            "Change log",
            ["Date", "New regions", "New services", "New mappings", "Summary"],
            (
                [
                    entry.date.isoformat(),
                    ", ".join(ref.code for ref in entry.changes.new_regions) or "-",
                    len(entry.changes.new_services),
                    len(entry.changes.new_regional_services),
                    entry.summary,
                ]
                for entry in history.change_log[:limit]
            ),
        )


_console: Console | None = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console()
    return _console
