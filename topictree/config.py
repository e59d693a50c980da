"""Configuration management for the topic tree engine.

Configuration is loaded from a TOML file with environment variable overrides.

Configuration Resolution Order:
1. Environment variables (highest priority)
2. TOML config file
3. Built-in defaults

Example config.toml:

    [paths]
    database = "/var/lib/topictree/topictree.db"

    [tree]
    fanout_limit = 10
    fanout_policy = "raise"
    bulk_fanout_policy = "warn"
    case_sensitive = true

    [logging]
    level = "INFO"
"""

import os
import sys
import warnings
from pathlib import Path
from typing import Optional, Any

from topictree.core.types import FanoutPolicy
from topictree.host.environment import get_config_path, get_db_path

# Python 3.11+ has tomllib in stdlib, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None

DEFAULT_FANOUT_LIMIT = 10


def load_toml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config.toml file

    Returns:
        Dictionary with configuration sections

    Raises:
        ImportError: If tomli is not available (Python < 3.11)
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid TOML
    """
    if tomllib is None:
        raise ImportError(
            "tomli is required for Python < 3.11. "
            "Install it with: pip install tomli"
        )

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Engine settings.

    Attributes:
        database_path: SQLite file backing the tree store
        fanout_limit: Maximum children per (parent, level) group
        fanout_policy: Policy applied by the reindex pass after a mutation
        bulk_fanout_policy: Policy applied by bulk recompute over stored trees
        case_sensitive: Whether name ordering is case-sensitive ordinal
        log_level: Logging level name
    """

    def __init__(
        self,
        database_path: Optional[str | Path] = None,
        config_path: Optional[Path] = None,
        **overrides: Any,
    ):
        """Initialize settings.

        Args:
            database_path: Path to the store database. If None, resolved from
                TOML or via get_db_path() using environment variables.
            config_path: Optional explicit path to config.toml
            **overrides: Explicit values that win over TOML and environment
                (fanout_limit, fanout_policy, bulk_fanout_policy,
                case_sensitive, log_level)
        """
        self._config: dict[str, Any] = {}

        config_path = get_config_path(config_path)
        if config_path.exists():
            try:
                self._config = load_toml_config(config_path)
            except (ImportError, ValueError) as e:
                warnings.warn(f"Failed to load config from {config_path}: {e}")

        self._apply_config(database_path)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ValueError(f"Unknown setting: {key}")
            setattr(self, key, value)

        self.fanout_policy = FanoutPolicy.parse(self.fanout_policy)
        self.bulk_fanout_policy = FanoutPolicy.parse(self.bulk_fanout_policy)
        if int(self.fanout_limit) < 1:
            raise ValueError(f"fanout_limit must be positive, got {self.fanout_limit}")
        self.fanout_limit = int(self.fanout_limit)

    def _apply_config(self, database_path: Optional[str | Path]) -> None:
        """Apply TOML configuration and environment overrides (env > TOML > default)."""
        paths_config = self._config.get("paths", {})
        tree_config = self._config.get("tree", {})
        logging_config = self._config.get("logging", {})

        if database_path is not None:
            self.database_path = Path(database_path)
        elif "TOPICTREE_DB" in os.environ or "TOPICTREE_DATA_DIR" in os.environ:
            self.database_path = get_db_path()
        elif paths_config.get("database"):
            self.database_path = Path(paths_config["database"])
        else:
            self.database_path = get_db_path()

        self.fanout_limit = int(os.environ.get(
            "TOPICTREE_FANOUT_LIMIT",
            tree_config.get("fanout_limit", DEFAULT_FANOUT_LIMIT)
        ))
        self.fanout_policy = os.environ.get(
            "TOPICTREE_FANOUT_POLICY",
            tree_config.get("fanout_policy", FanoutPolicy.RAISE.value)
        )
        self.bulk_fanout_policy = os.environ.get(
            "TOPICTREE_BULK_FANOUT_POLICY",
            tree_config.get("bulk_fanout_policy", FanoutPolicy.WARN.value)
        )

        case_sensitive_env = os.environ.get("TOPICTREE_CASE_SENSITIVE")
        if case_sensitive_env is not None:
            self.case_sensitive = _parse_bool(case_sensitive_env)
        else:
            self.case_sensitive = bool(tree_config.get("case_sensitive", True))

        self.log_level = os.environ.get(
            "TOPICTREE_LOG_LEVEL",
            logging_config.get("level", "INFO")
        ).upper()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return getattr(self, key, default)


default_settings = Settings()
