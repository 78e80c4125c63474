"""
Database package initializer exposing key public interfaces for configuration
and engine/session management.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    create_schema,
    dispose_engine,
    get_engine,
    get_session_maker,
    init_engine,
)

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session_maker",
    "init_engine",
    "models",
]
