"""HTTP API for managing Hanna codes."""

from .routes import router

__all__ = ["router"]
