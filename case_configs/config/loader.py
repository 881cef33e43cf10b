"""
Configuration management and loading.

Handles the database location, catalog paging, submission endpoint and
log level.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

from case_configs.storage.db import DEFAULT_DB_PATH

DEFAULT_PAGE_SIZE = 10
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Location of the SQLite record store."""
    path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        if not self.path or not self.path.strip():
            raise ValueError("database path cannot be empty")


@dataclass(frozen=True)
class CatalogConfig:
    """Catalog browser settings."""
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page_size <= 0:
            raise ValueError("page_size must be > 0")


@dataclass(frozen=True)
class SubmissionConfig:
    """External endpoint receiving submitted cases."""
    endpoint: str
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        """Validate endpoint and timeout."""
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError("endpoint must be an http(s) URL")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.level not in _LOG_LEVELS:
            raise ValueError(f"logging level must be one of: {list(_LOG_LEVELS)}")

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level)


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    submission: Optional[SubmissionConfig] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_app_config(path: str) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Every section is optional, but unknown keys and wrongly typed values
    are rejected so a typo never silently falls back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return AppConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'database', 'catalog', 'submission', 'logging'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    database_data = _section(raw_config, 'database', {'path'})
    database = DatabaseConfig(
        path=_string(database_data.get('path', DEFAULT_DB_PATH), 'database.path')
    )

    catalog_data = _section(raw_config, 'catalog', {'page_size'})
    page_size = catalog_data.get('page_size', DEFAULT_PAGE_SIZE)
    if not isinstance(page_size, int) or isinstance(page_size, bool):
        raise ValueError("'page_size' in catalog must be an integer")
    catalog = CatalogConfig(page_size=page_size)

    submission = None
    if raw_config.get('submission') is not None:
        submission_data = _section(raw_config, 'submission', {'endpoint', 'timeout'})
        if 'endpoint' not in submission_data:
            raise ValueError("Missing required 'endpoint' in submission")
        timeout = submission_data.get('timeout', DEFAULT_TIMEOUT)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool):
            raise ValueError("'timeout' in submission must be a number")
        submission = SubmissionConfig(
            endpoint=_string(submission_data['endpoint'], 'submission.endpoint'),
            timeout=float(timeout)
        )

    logging_data = _section(raw_config, 'logging', {'level'})
    level = _string(logging_data.get('level', DEFAULT_LOG_LEVEL), 'logging.level')
    logging_config = LoggingConfig(level=level.upper())

    return AppConfig(
        database=database,
        catalog=catalog,
        submission=submission,
        logging=logging_config
    )


def _section(raw_config: Dict[str, Any], name: str, allowed_keys: Set[str]) -> Dict[str, Any]:
    """Return an optional config section, rejecting unknown keys.

    Raises:
        ValueError: If the section is not a dictionary or has unknown keys
    """
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _string(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"'{path}' must be a string")
    return value
