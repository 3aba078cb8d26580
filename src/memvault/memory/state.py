"""Per-scope-root record of the active thinking document (thought.json).

Loaded and saved on demand so several scope roots can be worked on in one
process without sharing state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory.codec import now_iso
from memvault.memory.files import read_json, write_json

logger = logging.getLogger(__name__)

STATE_FILENAME = "thought.json"


@dataclass
class ThinkState:
    current_document_id: str | None = None
    current_scope: str | None = None
    last_updated: str = field(default_factory=now_iso)


def state_path(root: Path) -> Path:
    return root / STATE_FILENAME


def load_state(root: Path) -> ThinkState:
    data = read_json(state_path(root))
    if not isinstance(data, dict):
        return ThinkState()
    return ThinkState(
        current_document_id=data.get("currentDocumentId"),
        current_scope=data.get("currentScope"),
        last_updated=data.get("lastUpdated") or now_iso(),
    )


def save_state(root: Path, state: ThinkState) -> None:
    state.last_updated = now_iso()
    write_json(
        state_path(root),
        {
            "currentDocumentId": state.current_document_id,
            "currentScope": state.current_scope,
            "lastUpdated": state.last_updated,
        },
    )


def set_current_document(root: Path, document_id: str, scope: str) -> None:
    save_state(root, ThinkState(current_document_id=document_id, current_scope=scope))
    logger.info("Set current thinking document %s (%s)", document_id, scope)


def is_current_document(root: Path, document_id: str) -> bool:
    return load_state(root).current_document_id == document_id


def clear_current_document(root: Path, document_id: str | None = None) -> bool:
    """Clear the active document; with ``document_id``, only if it is the active one."""
    if not state_path(root).exists():
        return False
    state = load_state(root)
    if state.current_document_id is None:
        return False
    if document_id is not None and state.current_document_id != document_id:
        return False
    previous = state.current_document_id
    state.current_document_id = None
    state.current_scope = None
    save_state(root, state)
    logger.info("Cleared current thinking document %s", previous)
    return True


def replace_current_document(root: Path, old_id: str, new_id: str) -> bool:
    """Point the state at ``new_id`` if ``old_id`` was active."""
    if not state_path(root).exists():
        return False
    state = load_state(root)
    if state.current_document_id != old_id:
        return False
    state.current_document_id = new_id
    save_state(root, state)
    return True
