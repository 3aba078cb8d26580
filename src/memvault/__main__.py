"""Entry point: python -m memvault <command> [--dry-run] [--scope S] [id]

- "sync":          Reconcile graph, index and embeddings with the files on disk
- "prune":         Remove expired documents from temporary/
- "reindex <id>":  Re-register one file missing from the index or graph
- "refresh":       Backfill frontmatter fields, migrate think-* ids
- "rebuild-index": Regenerate index.json from the files on disk

Prints the operation's response as JSON. Exits 1 when the status is "error".
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from memvault.config import MemvaultConfig, load_config
from memvault.errors import FrontmatterError
from memvault.maintenance import prune_memories, refresh_frontmatter, reindex_memory, sync_memories
from memvault.memory.index import rebuild_index
from memvault.types import Scope

COMMANDS = ("sync", "prune", "reindex", "refresh", "rebuild-index")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _usage() -> None:
    print("Usage: python -m memvault <command> [--dry-run] [--scope S] [id]")
    print("  sync           Reconcile graph, index and embeddings with disk")
    print("  prune          Remove expired temporary documents")
    print("  reindex <id>   Re-add one memory to the index and graph")
    print("  refresh        Backfill frontmatter and migrate think-* ids")
    print("  rebuild-index  Regenerate index.json from disk")
    print(f"  --scope        One of {', '.join(s.value for s in Scope)} (default: project)")


def _parse_args(args: list[str]) -> tuple[str, bool, str, list[str]]:
    """Split argv into (command, dry_run, scope, positionals)."""
    command = args[0]
    dry_run = False
    scope = Scope.PROJECT.value
    positionals: list[str] = []
    rest = iter(args[1:])
    for arg in rest:
        if arg == "--dry-run":
            dry_run = True
        elif arg == "--scope":
            scope = next(rest, "")
        elif arg.startswith("--scope="):
            scope = arg.split("=", 1)[1]
        else:
            positionals.append(arg)
    return command, dry_run, scope, positionals


def _run(command: str, root: Path, dry_run: bool, positionals: list[str], config: MemvaultConfig) -> dict[str, Any]:
    if command == "sync":
        return sync_memories(root, dry_run=dry_run).as_dict()
    if command == "prune":
        return prune_memories(
            root,
            ttl_days=config.prune.ttl_days,
            concluded_ttl_days=config.prune.concluded_ttl_days,
            dry_run=dry_run,
        ).as_dict()
    if command == "reindex":
        if not positionals:
            return {"status": "error", "error": "reindex requires a memory id"}
        return reindex_memory(root, positionals[0]).as_dict()
    if command == "refresh":
        return refresh_frontmatter(root, dry_run=dry_run, ids=positionals or None).as_dict()
    # rebuild-index
    index, problems = rebuild_index(root)
    result: dict[str, Any] = {"status": "success", "entries": len(index.memories)}
    if problems:
        result["status"] = "error"
        result["errors"] = problems
    return result


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] not in COMMANDS:
        _usage()
        sys.exit(1)

    command, dry_run, scope, positionals = _parse_args(args)
    config = load_config()
    _setup_logging(config.log_level)

    try:
        root = config.scope_root(scope)
    except ValueError as e:
        print(f"Invalid scope {scope!r}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        result = _run(command, root, dry_run, positionals, config)
    except FrontmatterError as e:
        result = {"status": "error", "error": str(e)}
    print(json.dumps(result, indent=2, ensure_ascii=False))
    if result.get("status") == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
