"""Ports to the host command framework and the async transport."""
