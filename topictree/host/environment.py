"""Environment variable access and path resolution.

Database Path Resolution Order:
1. Explicit database environment variable (TOPICTREE_DB)
2. Shared data directory (TOPICTREE_DATA_DIR/topictree.db)
3. Current directory (./topictree.db)

Config Path Resolution Order:
1. Explicit override passed by the caller
2. TOPICTREE_CONFIG environment variable
3. ~/.config/topictree/config.toml
"""

import os
from pathlib import Path
from typing import Optional

DB_FILENAME = "topictree.db"


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable.

    Args:
        key: Environment variable name
        default: Default value if not found

    Returns:
        Environment variable value or default
    """
    return os.environ.get(key, default)


def get_db_path() -> Path:
    """Resolve the tree store database path.

    Returns:
        Path to database file

    Examples:
        >>> os.environ['TOPICTREE_DB'] = '/custom/trees.db'
        >>> get_db_path()
        Path('/custom/trees.db')

        >>> os.environ['TOPICTREE_DATA_DIR'] = '/data'
        >>> get_db_path()
        Path('/data/topictree.db')
    """
    db_path = get_env("TOPICTREE_DB")
    if db_path:
        return Path(db_path)

    data_dir = get_env("TOPICTREE_DATA_DIR")
    if data_dir:
        return Path(data_dir) / DB_FILENAME

    return Path(f"./{DB_FILENAME}")


def get_config_path(config_override: Optional[Path] = None) -> Path:
    """Resolve the TOML configuration file path.

    Args:
        config_override: Optional explicit config path

    Returns:
        Path to configuration file (may not exist)
    """
    if config_override:
        return Path(config_override)

    env_path = get_env("TOPICTREE_CONFIG")
    if env_path:
        return Path(env_path)

    return Path.home() / ".config/topictree/config.toml"
