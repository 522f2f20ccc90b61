"""
Core module - Configuration, database, Redis, storage and messaging.
"""

from intake.core.config import get_settings, settings
from intake.core.database import Base, close_db, get_db, init_db
from intake.core.redis import close_redis, get_redis_client, init_redis
from intake.core.storage import LocalBlobStore, get_blob_store
from intake.core.telegram import TelegramClient, get_messaging_client

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
    "get_redis_client",
    "init_redis",
    "close_redis",
    # Collaborators
    "LocalBlobStore",
    "get_blob_store",
    "TelegramClient",
    "get_messaging_client",
]
