"""Mock commerce API server for testing."""

from .app import build_catalog, create_app, create_mock_app

__all__ = ["build_catalog", "create_app", "create_mock_app"]
