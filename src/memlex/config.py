"""memlex configuration -- paths and defaults, resolved from the environment.

Values are read when called rather than at import time so that tests (and
the hook, which receives its working directory per invocation) can redirect
them.
"""

import os
from pathlib import Path
from typing import Optional

CLAUDE_SETTINGS_PATH = Path.home() / ".claude" / "settings.json"

DEFAULT_MAX_CONTENT_SIZE = 1_000_000


def memlex_home() -> Path:
    """Data directory: $MEMLEX_HOME or ~/.memlex."""
    return Path(os.environ.get("MEMLEX_HOME", str(Path.home() / ".memlex")))


def get_db_path() -> Path:
    """Database path: $MEMLEX_DB (``~`` expanded) or $MEMLEX_HOME/memory.db."""
    explicit = os.environ.get("MEMLEX_DB")
    if explicit:
        return Path(explicit).expanduser().resolve()
    return memlex_home() / "memory.db"


def hook_log_path() -> Path:
    return memlex_home() / "hooks.log"


def max_content_size() -> int:
    raw = os.environ.get("MEMLEX_MAX_CONTENT_SIZE")
    if not raw:
        return DEFAULT_MAX_CONTENT_SIZE
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_MAX_CONTENT_SIZE


def log_level() -> str:
    return os.environ.get("MEMLEX_LOG_LEVEL", "WARNING").upper()


def get_project_name(cwd: Optional[str] = None) -> Optional[str]:
    """Derive the project label from a working directory.

    Falls back to $MEMLEX_PROJECT. Returns None for the filesystem root and
    for the user's home directory, which are not projects.
    """
    directory = cwd or os.environ.get("MEMLEX_PROJECT")
    if not directory:
        return None
    name = Path(directory).name
    if not name or name == "/":
        return None
    if name == Path.home().name:
        return None
    return name
