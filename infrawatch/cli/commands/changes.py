"""Changes command: show the change history."""

import asyncio
import sys

import cyclopts

from infrawatch.application.di import create_container
from infrawatch.cli.console import get_console
from infrawatch.config import Config
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.tracking.model.history import ChangeHistory

app = cyclopts.App(name="changes", help="Show recently detected changes")


async def load_history(config: Config) -> ChangeHistory | None:
    container = create_container(config)
    try:
        documents = await container.get(DocumentStore)
        return await documents.load(config.storage.keys.change_history, ChangeHistory)
    finally:
        await container.close()


@app.default
def changes(*, limit: int = 10) -> None:
    """Print the most recent changelog entries.

    Args:
        limit: Maximum number of entries to show.
    """
    console = get_console()
    config = Config()

    history = asyncio.run(load_history(config))
    if history is None:
        console.warning("No change history found")
        console.info("Run 'infrawatch fetch --include-service-mapping' to create one")
        sys.exit(1)

    console.change_log(history, limit)
