"""memlex CLI -- setup, server, hook and memory commands."""

import argparse
import json
import shutil
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

from memlex import config

HOOK_EVENT = "UserPromptSubmit"
HOOK_TIMEOUT = 10
HOOK_STATUS_MESSAGE = "Searching memory..."


def _say(msg: str) -> None:
    print(f"[memlex] {msg}")


def _fail(msg: str) -> None:
    print(f"[memlex] {msg}", file=sys.stderr)
    sys.exit(1)


def _resolve_executable() -> str:
    """Absolute path of the installed ``memlex`` script, if it is on PATH."""
    return shutil.which("memlex") or "memlex"


def _hook_already_wired(entries: list) -> bool:
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        for h in entry.get("hooks", []) or []:
            cmd = h.get("command", "") if isinstance(h, dict) else ""
            if "memlex" in cmd and "hook" in cmd:
                return True
    return False


def _inject_settings(db_path: Path, settings_path: Path) -> None:
    """Register the MCP server and the prompt hook in Claude settings (idempotent)."""
    settings = {}
    if settings_path.exists():
        try:
            settings = json.loads(settings_path.read_text())
        except json.JSONDecodeError:
            _say("Warning: could not parse existing settings, creating new.")
        if not isinstance(settings, dict):
            settings = {}
    else:
        settings_path.parent.mkdir(parents=True, exist_ok=True)

    exe = _resolve_executable()

    mcp_servers = settings.get("mcpServers")
    if not isinstance(mcp_servers, dict):
        mcp_servers = {}
    mcp_servers["memlex"] = {
        "command": exe,
        "args": ["serve"],
        "env": {"MEMLEX_DB": str(db_path)},
    }
    settings["mcpServers"] = mcp_servers

    hooks = settings.get("hooks")
    if not isinstance(hooks, dict):
        hooks = {}
    entries = hooks.get(HOOK_EVENT)
    if not isinstance(entries, list):
        entries = []

    if _hook_already_wired(entries):
        _say(f"{HOOK_EVENT} hook already configured.")
    else:
        entries.append(
            {
                "matcher": "",
                "hooks": [
                    {
                        "type": "command",
                        "command": f'MEMLEX_DB="{db_path}" {exe} hook',
                        "timeout": HOOK_TIMEOUT,
                        "statusMessage": HOOK_STATUS_MESSAGE,
                    }
                ],
            }
        )
        _say(f"{HOOK_EVENT} hook configured (auto-retrieval).")
    hooks[HOOK_EVENT] = entries
    settings["hooks"] = hooks

    settings_path.write_text(json.dumps(settings, indent=2) + "\n")
    _say("MCP server configured.")
    _say(f"Settings written to {settings_path}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_init(args):
    """Create the database and wire memlex into Claude Code."""
    from memlex.sqlite_store import SQLiteStore

    db_path = config.get_db_path()
    _say(f"Initializing database at {db_path}")
    with SQLiteStore(db_path) as db:
        _say(f"Database ready. {db.count()} memories stored.")

    _say("Configuring Claude Code...")
    _inject_settings(db_path, config.CLAUDE_SETTINGS_PATH)
    _say("Setup complete! Restart Claude Code to activate.")


def cmd_serve(args):
    """Run the memlex MCP server (stdio mode)."""
    import asyncio
    from memlex.server.mcp_server import main

    asyncio.run(main())


def cmd_hook(args):
    from memlex.hook import main

    main()


def cmd_export(args):
    from memlex.sqlite_store import SQLiteStore

    db_path = config.get_db_path()
    if not db_path.exists():
        _fail(f"Database not found at {db_path}")

    with SQLiteStore(db_path) as db:
        if args.file:
            result = db.export_to_file(Path(args.file))
            _say(f"Exported {result['count']} memories to {args.file}")
        else:
            sys.stdout.write(json.dumps(db.export_data(), indent=2) + "\n")


def cmd_import(args):
    from memlex.sqlite_store import SQLiteStore

    path = Path(args.file).expanduser()
    if not path.exists():
        _fail(f"File not found: {path}")

    with SQLiteStore(config.get_db_path()) as db:
        try:
            result = db.import_from_file(path)
        except ValueError as e:
            _fail(str(e))
    _say(f"Import complete: {result['imported']} added, {result['skipped']} duplicates skipped.")


def cmd_query(args):
    """Search memories from the shell."""
    query_text = " ".join(args.query_text)
    if not query_text.strip():
        _fail("Usage: memlex query <search text>")

    from memlex.bridge import search

    start = time.monotonic()
    results = search(
        query_text,
        tags=args.tag,
        limit=args.limit,
        project=config.get_project_name(str(Path.cwd())),
    )
    elapsed = time.monotonic() - start

    if args.json:
        print(json.dumps({"results": results, "count": len(results), "elapsed_s": round(elapsed, 3)}, indent=2))
        return
    if not results:
        print(f'No results for "{query_text}" ({elapsed:.2f}s)')
        return
    for r in results:
        date = datetime.fromtimestamp(r["created_at"], tz=timezone.utc).strftime("%Y-%m-%d")
        preview = r["content"][:120].replace("\n", " ")
        print(f"#{r['id']:<5} {r['score']:.3f}  {date}  {preview}")
    print(f"\n{len(results)} result(s) ({elapsed:.2f}s)")


def cmd_store(args):
    content = " ".join(args.content)
    if not content.strip():
        _fail("Usage: memlex store <text> [--tag TAG]")

    from memlex.bridge import store_memory

    source = args.source or config.get_project_name(str(Path.cwd()))
    result = store_memory(content, tags=args.tag, source=source)
    ids = ", ".join(f"#{d['id']}" for d in result["details"])
    _say(f"Stored {result['chunks']} chunk(s): {ids}")


def cmd_status(args):
    db_path = config.get_db_path()
    if not db_path.exists():
        _say(f"No database at {db_path}. Run `memlex init`.")
        return
    from memlex.bridge import status

    info = status()
    _say(f"Database: {info['db_path']}")
    _say(f"Memories: {info['memories']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memlex",
        description="memlex -- lexical memory for LLM agents",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Set up the database and configure Claude Code")
    subparsers.add_parser("serve", help="Run MCP server (stdio mode, the default)")
    subparsers.add_parser("hook", help="Run as UserPromptSubmit hook (reads JSON on stdin)")

    export_parser = subparsers.add_parser("export", help="Export all memories to JSON (stdout if no file)")
    export_parser.add_argument("file", nargs="?", help="Output file")

    import_parser = subparsers.add_parser("import", help="Import memories from JSON (skips duplicates)")
    import_parser.add_argument("file", help="Export file to read")

    query_parser = subparsers.add_parser("query", help="Search memories")
    query_parser.add_argument("query_text", nargs="+", help="Search text")
    query_parser.add_argument("--limit", type=int, default=5, help="Max results (default: 5)")
    query_parser.add_argument("--tag", action="append", help="Tag to boost (repeatable)")
    query_parser.add_argument("--json", action="store_true", help="Output as JSON")

    store_parser = subparsers.add_parser("store", help="Store a memory")
    store_parser.add_argument("content", nargs="+", help="Memory content")
    store_parser.add_argument("--tag", action="append", help="Tag (repeatable)")
    store_parser.add_argument("--source", help="Source label (default: current directory name)")

    subparsers.add_parser("status", help="Show database path and memory count")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "init": cmd_init,
        "serve": cmd_serve,
        "hook": cmd_hook,
        "export": cmd_export,
        "import": cmd_import,
        "query": cmd_query,
        "store": cmd_store,
        "status": cmd_status,
    }

    # MCP hosts spawn the server without a subcommand
    if args.command is None:
        cmd_serve(args)
        return
    commands[args.command](args)


if __name__ == "__main__":
    main()
