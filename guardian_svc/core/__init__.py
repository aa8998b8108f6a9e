"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions (core.dependencies)
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: UTC-first datetime handling
- Reading registry: reading coding, tier presentation and drug catalog

Submodules are imported directly (``from core.exceptions import ...``) so
that models and repositories can use the datetime helpers without pulling in
the whole service graph.
"""
from core.config import settings, Settings

__all__ = [
    "settings",
    "Settings",
]
