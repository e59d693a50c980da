"""Host interface for the topic tree engine.

Provides access to host platform state (environment, clock) so the engine
itself stays free of hidden globals.
"""

from .environment import get_env, get_db_path, get_config_path
from .time import now_iso

__all__ = [
    "get_env",
    "get_db_path",
    "get_config_path",
    "now_iso",
]
