"""Config management commands."""

import sys
from pathlib import Path

import cyclopts
import yaml
from pydantic import ValidationError

from infrawatch.cli.console import get_console
from infrawatch.config import Config

app = cyclopts.App(name="config", help="Inspect infrawatch configuration")


@app.default
def show() -> None:
    """Show current effective config as YAML."""
    config = Config()
    print(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False), end="")


@app.command
def validate(path: Path) -> None:
    """Validate a YAML config file.

    Args:
        path: Path to the config file.
    """
    console = get_console()
    if not path.exists():
        console.error(f"{path} not found")
        sys.exit(1)

    try:
        data = yaml.safe_load(path.read_text()) or {}
        Config.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        console.error(f"{path} is invalid: {e}")
        sys.exit(1)

    console.success(f"{path} is valid")
