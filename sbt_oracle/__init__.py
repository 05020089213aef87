"""Soul-bound token oracle: signed identity claims, their checks and registry mint requests."""

__version__ = "0.1.0"

__all__ = ["claim", "contract", "errors", "events", "migrate", "types"]