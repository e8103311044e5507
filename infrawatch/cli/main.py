"""Main CLI application using Cyclopts."""

import cyclopts
import logfire

from infrawatch import __version__
from infrawatch.cli.commands import changes, config, fetch
from infrawatch.config import Config, configure_logging

app = cyclopts.App(
    name="infrawatch",
    help="Track AWS regions, services and regional service availability",
    version=__version__,
)

app.command(fetch.app, name="fetch")
app.command(changes.app, name="changes")
app.command(config.app, name="config")


def main() -> None:
    configure_logging(Config().logging)
    # Spans are exported only when LOGFIRE_TOKEN is set
    logfire.configure(send_to_logfire="if-token-present", console=False)
    app()


if __name__ == "__main__":
    main()
