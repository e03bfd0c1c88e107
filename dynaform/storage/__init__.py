# ==============================================
# TOPIC 3: STORAGE (external data service)
# ==============================================
#
# This package holds the Store contract the core talks to and the
# backends that implement it.
#
# Modules:
# --------
# - base.py          → Store ABC + wide-row helpers
# - memory_store.py  → In-memory tables, JSON snapshot persistence
# - mysql_store.py   → MySQL tables via PyMySQL
# - mongo_store.py   → MongoDB collections via PyMongo
# - rest_store.py    → PostgREST / Supabase REST service via requests
#
# ==============================================

from typing import Optional

from dynaform.config import AppConfig, get_config
from .base import Store
from .memory_store import MemoryStore
from .mysql_store import MySQLStore
from .mongo_store import MongoStore
from .rest_store import RestStore


def create_store(config: Optional[AppConfig] = None) -> Store:
    """
    Build the Store selected by config.store_backend. Does not connect.

    Args:
        config: Application configuration. If None, loads from environment.
    """
    config = config or get_config()
    backend = config.store_backend

    if backend == "mysql":
        return MySQLStore(
            host=config.mysql.host,
            port=config.mysql.port,
            user=config.mysql.user,
            password=config.mysql.password,
            database=config.mysql.database
        )
    if backend == "mongo":
        return MongoStore(
            host=config.mongo.host,
            port=config.mongo.port,
            database=config.mongo.database,
            user=config.mongo.user,
            password=config.mongo.password
        )
    if backend == "rest":
        return RestStore(
            url=config.rest.url,
            api_key=config.rest.api_key,
            timeout_seconds=config.rest.timeout_seconds
        )
    return MemoryStore(config.snapshot_path)


__all__ = [
    "Store",
    "MemoryStore",
    "MySQLStore",
    "MongoStore",
    "RestStore",
    "create_store",
]
