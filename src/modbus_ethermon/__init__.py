"""ModBus/TCP polling and archiving service."""

__version__ = "1.0.0"
