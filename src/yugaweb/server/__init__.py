"""HTTP surface for yugaweb."""

from __future__ import annotations

from yugaweb.server.app import create_app

__all__ = ["create_app"]
