"""FastAPI dependency injection."""

from __future__ import annotations

from boundsight.config import settings


def get_settings():
    return settings
