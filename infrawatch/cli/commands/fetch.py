"""Fetch command: run one inventory pass."""

import asyncio
import sys

import cyclopts

from infrawatch.application.di import create_container
from infrawatch.cli.console import get_console
from infrawatch.config import Config
from infrawatch.domain.inventory.service.inventory import InventoryService, RunOptions, RunResult
from infrawatch.domain.shared.error import ConfigurationError, InfraWatchError

app = cyclopts.App(name="fetch", help="Fetch regions, services and their availability")


async def run_inventory(config: Config, options: RunOptions) -> RunResult:
    container = create_container(config)
    try:
        async with container() as run:
            service = await run.get(InventoryService)
            return await service.run(options)
    finally:
        await container.close()


@app.default
def fetch(
    *,
    regions_only: bool = False,
    services_only: bool = False,
    include_service_mapping: bool = False,
    force_refresh: bool = False,
    region: str | None = None,
    track: bool = True,
) -> None:
    """Fetch the global infrastructure inventory.

    Args:
        regions_only: Fetch only regions.
        services_only: Fetch only services.
        include_service_mapping: Also map services to regions (slow, uses the cache).
        force_refresh: Ignore the service-by-region cache.
        region: AWS region used for API calls.
        track: Record new regions and services in the change history.
    """
    console = get_console()
    if regions_only and services_only:
        console.error("--regions-only and --services-only are mutually exclusive")
        sys.exit(1)

    config = Config()
    if region:
        config = config.model_copy(
            update={"aws": config.aws.model_copy(update={"region": region})}
        )

    options = RunOptions(
        regions_only=regions_only,
        services_only=services_only,
        include_service_mapping=include_service_mapping,
        force_refresh=force_refresh,
        track_changes=track,
    )

    try:
        result = asyncio.run(run_inventory(config, options))
    except ConfigurationError as e:
        console.error(f"Invalid configuration: {e.message}", hint="Run 'infrawatch config show'")
        sys.exit(1)
    except InfraWatchError as e:
        console.error(f"Fetch failed: {e.message}")
        sys.exit(1)

    console.run_summary(result)
