"""Web and CLI bridge for running registered host commands."""

__version__ = "0.3.0"
