"""
Core module - Configuration, database, security, errors, and utilities.
"""

from school_directory.core.config import get_settings, settings
from school_directory.core.database import Base, Database, close_db, get_db, init_db
from school_directory.core.redis import close_redis, get_redis, init_redis
from school_directory.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "Database",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
