"""infrawatch - AWS global infrastructure inventory and change tracking."""

__version__ = "0.1.0"
