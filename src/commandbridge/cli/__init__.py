"""Command-line interface for the bridge."""
