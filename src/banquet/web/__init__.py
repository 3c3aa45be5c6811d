"""
Banquet Web - HTTP API.
"""

from banquet.web.app import app, create_app

__all__ = ["app", "create_app"]
