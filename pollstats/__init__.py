"""Poll submission and interaction analytics service."""

__version__ = "1.0.0"
