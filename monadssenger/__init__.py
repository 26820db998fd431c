"""Monadssenger group chat service and synchronization client."""

__version__ = "0.1.0"
