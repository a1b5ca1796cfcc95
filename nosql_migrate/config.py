# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate connection settings from environment
#   variables / .env file. Provides typed config objects
#   to the stores, the source reader and the CLI.
#
# CLASSES:
# --------
# - ConnectionConfig (frozen dataclass): target store
#     adapter: str              (default "cassandra-driver")
#     host: str                 (default "")
#     port: int | None          (default None → driver default)
#     database: str             (default "")  keyspace / database name
#     username: str | None
#     password: str | None
#     force_drop: bool          (default False) ask to drop before a sync
#     replication_factor: int   (default 3) used when creating a keyspace
#
# - SourceConfig (dataclass): relational MySQL source
#     host / port / user / password / database
#
# - AppConfig (dataclass)
#     source: SourceConfig
#     target: ConnectionConfig
#     continue_on_error: bool   (default False)
#
# FUNCTIONS:
# ----------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
# - reset_config() -> None
#     Forget the singleton (tests, long-lived processes).
#
# USAGE:
# ------
#   from nosql_migrate.config import get_config
#   config = get_config()
#   config.target.validate()
#
# ==============================================

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

from nosql_migrate.errors import ConfigurationError

CASSANDRA_DRIVER = "cassandra-driver"
MONGODB_DRIVER = "mongodb"

# Aliases accepted in TARGET_ADAPTER, mapped to the native driver name
_ADAPTER_ALIASES = {
    "": CASSANDRA_DRIVER,
    "cassandra": CASSANDRA_DRIVER,
    CASSANDRA_DRIVER: CASSANDRA_DRIVER,
    "mongo": MONGODB_DRIVER,
    MONGODB_DRIVER: MONGODB_DRIVER,
}

REQUIRED_FIELDS = ("host", "database")


@dataclass(frozen=True)
class ConnectionConfig:
    """Target store connection parameters."""
    adapter: str = CASSANDRA_DRIVER
    host: str = ""
    port: Optional[int] = None
    database: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    force_drop: bool = False
    replication_factor: int = 3

    def validate(self) -> bool:
        # Valid only when host and database are both non-empty strings
        return all(
            isinstance(getattr(self, name), str) and getattr(self, name).strip()
            for name in REQUIRED_FIELDS
        )

    def ensure_valid(self) -> None:
        if not self.validate():
            missing = [
                name for name in REQUIRED_FIELDS
                if not (isinstance(getattr(self, name), str) and getattr(self, name).strip())
            ]
            raise ConfigurationError(
                f"Target connection is missing required field(s): {', '.join(missing)}"
            )

    def adapter_name(self) -> str:
        name = (self.adapter or "").strip().lower()
        return _ADAPTER_ALIASES.get(name, name)

    def connection_string(self) -> str:
        port = f":{self.port}" if self.port else ""
        return f"{self.adapter_name()}://{self.host}{port}"


@dataclass
class SourceConfig:
    """MySQL source configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = ""


@dataclass
class AppConfig:
    """Main application configuration."""
    source: SourceConfig
    target: ConnectionConfig = field(default_factory=ConnectionConfig)
    continue_on_error: bool = False


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


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

    source_config = SourceConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=_env_int("MYSQL_PORT") or 3306,
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", ""),
    )

    target_config = ConnectionConfig(
        adapter=os.getenv("TARGET_ADAPTER", CASSANDRA_DRIVER),
        host=os.getenv("TARGET_HOST", ""),
        port=_env_int("TARGET_PORT"),
        database=os.getenv("TARGET_DATABASE", ""),
        username=os.getenv("TARGET_USERNAME") or None,
        password=os.getenv("TARGET_PASSWORD") or None,
        force_drop=_env_flag("TARGET_FORCE_DROP"),
        replication_factor=_env_int("TARGET_REPLICATION_FACTOR") or 3,
    )

    _config_instance = AppConfig(
        source=source_config,
        target=target_config,
        continue_on_error=_env_flag("SYNC_CONTINUE_ON_ERROR"),
    )

    return _config_instance


def reset_config() -> None:
    global _config_instance
    _config_instance = None
