"""
Core module - Configuration, database, security, and utilities.
"""

from accreda.core.config import get_settings, settings
from accreda.core.database import Base, close_db, get_db, init_db
from accreda.core.redis import close_redis, get_redis, init_redis
from accreda.core.security import decode_token

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "decode_token",
]
