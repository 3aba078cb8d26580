"""Small filesystem helpers shared by the stores."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def write_atomic(path: Path, text: str) -> None:
    """Write via a temp file in the same directory, then rename into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def read_json(path: Path) -> Any | None:
    """Parsed JSON, or None if the file is missing or not valid JSON."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("Unreadable JSON %s: %s", path, e)
        return None


def write_json(path: Path, data: Any) -> None:
    write_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def is_inside_dir(directory: Path, target: Path) -> bool:
    """True if ``target`` resolves to a location under ``directory``."""
    try:
        target.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


def list_markdown(directory: Path) -> list[Path]:
    """Sorted ``*.md`` entries of a directory (not recursive); [] if absent.

    Entries that are not regular files are included; readers report them.
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.name.endswith(".md"))
