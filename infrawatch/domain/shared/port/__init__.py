"""Base marker for ports (interfaces implemented by infrastructure adapters)."""

from typing import Protocol


class Port(Protocol):
    """Marker base class for all ports."""


__all__ = ["Port"]
