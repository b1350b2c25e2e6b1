"""Routes package for FastAPI endpoints.

This package contains all API route modules for the poll service.
"""

from pollstats.routes import health, metrics, poll

__all__ = ["health", "metrics", "poll"]
