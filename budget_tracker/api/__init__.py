"""HTTP API package."""

from budget_tracker.api.app import create_app

__all__ = ["create_app"]
