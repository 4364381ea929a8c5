"""
Backstage Live API package.

Provides the FastAPI application for the Backstage Live real-time core.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
