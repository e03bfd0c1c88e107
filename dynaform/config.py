# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load all configuration from environment variables / .env file
#   and hand typed config objects to the store factory and the
#   FormWorkspace.
#
# CLASSES:
# --------
# - MySQLConfig (dataclass)
#     host: str          (default "localhost")
#     port: int          (default 3306)
#     user: str          (default "root")
#     password: str      (default "root")
#     database: str      (default "dynaform")
#
# - MongoConfig (dataclass)
#     host: str          (default "localhost")
#     port: int          (default 27017)
#     user: str | None   (default None)
#     password: str | None (default None)
#     database: str      (default "dynaform")
#
# - RestConfig (dataclass)
#     url: str           (default "http://127.0.0.1:54321")
#     api_key: str|None  (default None)
#     timeout_seconds: float (default 10.0)
#
# - AppConfig (dataclass)
#     store_backend: str (memory | mysql | mongo | rest, default "memory")
#     mysql / mongo / rest
#     snapshot_path: str | None  (JSON snapshot for the memory backend)
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from dynaform.config import get_config
#   config = get_config()
#   print(config.store_backend)
#
# ==============================================

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


STORE_BACKENDS = ("memory", "mysql", "mongo", "rest")


@dataclass
class MySQLConfig:
    """MySQL database configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = "dynaform"


@dataclass
class MongoConfig:
    """MongoDB database configuration."""
    host: str = "localhost"
    port: int = 27017
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "dynaform"


@dataclass
class RestConfig:
    """Hosted REST data service (PostgREST / Supabase dialect)."""
    url: str = "http://127.0.0.1:54321"
    api_key: Optional[str] = None
    timeout_seconds: float = 10.0


@dataclass
class AppConfig:
    """Main application configuration."""
    store_backend: str = "memory"
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)
    rest: RestConfig = field(default_factory=RestConfig)
    snapshot_path: Optional[str] = None

    def __post_init__(self):
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown STORE_BACKEND '{self.store_backend}', "
                f"expected one of {', '.join(STORE_BACKENDS)}"
            )


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    mysql_config = MySQLConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=int(os.getenv("MYSQL_PORT", "3306")),
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", "dynaform")
    )

    mongo_config = MongoConfig(
        host=os.getenv("MONGO_HOST", "localhost"),
        port=int(os.getenv("MONGO_PORT", "27017")),
        user=os.getenv("MONGO_USER") or None,
        password=os.getenv("MONGO_PASSWORD") or None,
        database=os.getenv("MONGO_DATABASE", "dynaform")
    )

    rest_config = RestConfig(
        url=os.getenv("REST_URL", "http://127.0.0.1:54321"),
        api_key=os.getenv("REST_API_KEY") or None,
        timeout_seconds=float(os.getenv("REST_TIMEOUT_SECONDS", "10.0"))
    )

    _config_instance = AppConfig(
        store_backend=os.getenv("STORE_BACKEND", "memory").strip().lower(),
        mysql=mysql_config,
        mongo=mongo_config,
        rest=rest_config,
        snapshot_path=os.getenv("SNAPSHOT_PATH") or None
    )

    return _config_instance


def reset_config() -> None:
    """Forget the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
