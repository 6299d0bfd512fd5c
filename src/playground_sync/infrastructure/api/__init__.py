"""HTTP submission surface for browser clients."""

from .app import create_app

__all__ = ["create_app"]
