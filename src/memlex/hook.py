"""
memlex UserPromptSubmit hook -- inject relevant memories into the prompt.

Claude Code sends ``{"prompt": ..., "cwd": ..., "session_id": ...}`` on stdin
and adds whatever the hook prints to stdout as extra context. The hook must
never fail the prompt: every error is logged to $MEMLEX_HOME/hooks.log and
the hook prints nothing.
"""

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from memlex import config

_MAX_LOG_BYTES = 5 * 1024 * 1024  # 5 MB cap
HOOK_LIMIT = 5


def _rotate_log_if_needed(log_path: Path):
    """Rotate hooks.log if it exceeds the size cap."""
    try:
        if log_path.exists() and log_path.stat().st_size > _MAX_LOG_BYTES:
            rotated = log_path.with_suffix(".log.1")
            if rotated.exists():
                rotated.unlink()
            log_path.rename(rotated)
    except OSError:
        pass


def _log_hook_error(hook_name: str, error: Exception):
    """Append a hook error with traceback to hooks.log."""
    try:
        log_path = config.hook_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        _rotate_log_if_needed(log_path)
        timestamp = datetime.now().isoformat(timespec="seconds")
        tb = traceback.format_exc()
        data = f"[{timestamp}] {hook_name}: {error}\n{tb}\n"
        fd = os.open(str(log_path), os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        try:
            os.write(fd, data.encode("utf-8"))
        finally:
            os.close(fd)
    except OSError:
        pass


def parse_payload(raw: str) -> Tuple[str, Optional[str]]:
    """Return (prompt, cwd). Non-JSON input is taken as the prompt itself."""
    try:
        data = json.loads(raw)
    except ValueError:
        return raw.strip(), None
    if not isinstance(data, dict):
        return raw.strip(), None
    return (data.get("prompt") or "").strip(), data.get("cwd")


def format_context(results: List[dict]) -> str:
    lines = []
    for i, r in enumerate(results, 1):
        tags = f" [{', '.join(r['tags'])}]" if r.get("tags") else ""
        date = datetime.fromtimestamp(r["created_at"], tz=timezone.utc).strftime("%Y-%m-%d")
        lines.append(f"{i}. ({date}{tags}) {r['content']}")
    return "\n".join(
        [
            "<memlex>",
            "The following relevant memories were found from previous sessions:",
            "",
            *lines,
            "</memlex>",
        ]
    )


def run_hook(raw: str) -> str:
    """Return the context block to inject, or "" when there is nothing to add."""
    prompt, cwd = parse_payload(raw)
    if not prompt:
        return ""

    db_path = config.get_db_path()
    if not db_path.exists():
        return ""

    from memlex.searcher import HOOK_MIN_SCORE, Searcher
    from memlex.sqlite_store import SQLiteStore

    with SQLiteStore(db_path) as db:
        results = Searcher(db).search(
            prompt,
            limit=HOOK_LIMIT,
            min_score=HOOK_MIN_SCORE,
            project=config.get_project_name(cwd),
        )
    if not results:
        return ""
    return format_context(results)


def main():
    try:
        output = run_hook(sys.stdin.read())
        if output:
            sys.stdout.write(output)
    except Exception as e:
        _log_hook_error("prompt_hook", e)
    sys.exit(0)


if __name__ == "__main__":
    main()
