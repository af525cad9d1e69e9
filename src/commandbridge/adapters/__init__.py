"""Adapters for the host command framework and async transports."""
