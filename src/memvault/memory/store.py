"""Memory files under one scope root, plus create/read/delete.

Markdown files are the source of truth. graph.json, index.json and
embeddings.json are caches that every write tries to keep current;
``memvault.maintenance.sync`` repairs them when they drift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memvault.errors import FrontmatterError
from memvault.memory import embeddings, graph, index, state
from memvault.memory.codec import (
    ParseMode,
    create_frontmatter,
    parse_memory_file,
    serialise_memory_file,
)
from memvault.memory.files import list_markdown, write_atomic
from memvault.memory.ids import generate_unique_id
from memvault.results import (
    NOT_ATTEMPTED,
    ResponseMixin,
    Status,
    StepResult,
    attempt,
)
from memvault.types import MemoryRecord, MemoryType, Scope, Severity, enum_value

logger = logging.getLogger(__name__)

PERMANENT = "permanent"
TEMPORARY = "temporary"
ARCHIVE = "archive"
# Lookup order: a permanent file wins over a temporary one with the same ID.
ACTIVE_SUBDIRS = (PERMANENT, TEMPORARY)


# ── Responses ────────────────────────────────────────────────


@dataclass
class WriteChanges:
    file_written: bool = False
    index_updated: StepResult = NOT_ATTEMPTED
    graph_updated: StepResult = NOT_ATTEMPTED
    links_added: int = 0


@dataclass
class WriteResponse(ResponseMixin):
    status: Status
    id: str | None = None
    file_path: Path | None = None
    changes: WriteChanges = field(default_factory=WriteChanges)
    error: str | None = None


@dataclass
class ReadResponse(ResponseMixin):
    status: Status
    id: str
    record: MemoryRecord | None = None
    file_path: Path | None = None
    error: str | None = None


@dataclass
class DeleteChanges:
    file_deleted: bool = False
    removed_from_index: StepResult = NOT_ATTEMPTED
    removed_from_graph: StepResult = NOT_ATTEMPTED
    removed_embedding: StepResult = NOT_ATTEMPTED
    cleared_think_state: StepResult = NOT_ATTEMPTED


@dataclass
class DeleteResponse(ResponseMixin):
    status: Status
    id: str
    file_path: Path | None = None
    changes: DeleteChanges = field(default_factory=DeleteChanges)
    error: str | None = None


class MemoryStore:
    """Read/write access to the memory files of one scope root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    # ── Layout ───────────────────────────────────────────────

    @property
    def permanent_dir(self) -> Path:
        return self.root / PERMANENT

    @property
    def temporary_dir(self) -> Path:
        return self.root / TEMPORARY

    @property
    def archive_dir(self) -> Path:
        return self.root / ARCHIVE

    def ensure_initialized(self) -> None:
        """Create the permanent/temporary/archive directories. Idempotent."""
        for d in (self.permanent_dir, self.temporary_dir, self.archive_dir):
            d.mkdir(parents=True, exist_ok=True)

    def find_file(self, memory_id: str) -> Path | None:
        """Path of an active memory file, checking permanent/ before temporary/."""
        for subdir in ACTIVE_SUBDIRS:
            path = self.root / subdir / f"{memory_id}.md"
            if path.exists():
                return path
        return None

    def files_on_disk(self) -> dict[str, Path]:
        """ID → path for every ``*.md`` under permanent/ and temporary/."""
        files: dict[str, Path] = {}
        for subdir in ACTIVE_SUBDIRS:
            for path in list_markdown(self.root / subdir):
                files.setdefault(path.name[: -len(".md")], path)
        return files

    def subdir_of(self, path: Path) -> str:
        return TEMPORARY if path.parent.name == TEMPORARY else PERMANENT

    def relative_path(self, path: Path) -> str:
        return f"{self.subdir_of(path)}/{path.name}"

    # ── Records ──────────────────────────────────────────────

    def read_record(self, path: Path, mode: ParseMode = ParseMode.STRICT) -> MemoryRecord:
        """Parse a memory file. Raises FrontmatterError (with the path) or OSError."""
        text = path.read_text(encoding="utf-8")
        try:
            record = parse_memory_file(text, mode)
        except FrontmatterError as e:
            raise e.with_path(path) from e
        record.path = path
        return record

    def write_record(self, path: Path, record: MemoryRecord) -> None:
        write_atomic(path, serialise_memory_file(record.frontmatter, record.content))

    # ── Create / read / delete ───────────────────────────────

    def write_memory(
        self,
        type: MemoryType | str,
        title: str,
        content: str,
        tags: list[str] | None = None,
        scope: Scope | str = Scope.PROJECT,
        severity: Severity | str | None = None,
        links: list[str] | None = None,
        source: str | None = None,
        meta: dict[str, Any] | None = None,
        project: str | None = None,
    ) -> WriteResponse:
        """Create a new permanent memory and register it in the index and graph."""
        problem = _validate_write(type, title, tags, scope, severity)
        if problem:
            return WriteResponse(status=Status.ERROR, error=problem)

        memory_id = generate_unique_id(type, title, self.root)
        fm = create_frontmatter(
            type=type,
            title=title.strip(),
            tags=tags,
            id=memory_id,
            scope=scope,
            project=project,
            severity=severity,
            links=links,
            source=source,
            meta=meta,
        )
        path = self.permanent_dir / f"{memory_id}.md"
        self.write_record(path, MemoryRecord(fm, content))
        changes = WriteChanges(file_written=True)

        changes.index_updated = attempt(
            "index update",
            lambda: index.add_to_index(
                self.root, index.entry_from_record(memory_id, fm, self.relative_path(path))
            ),
        )

        def update_graph() -> None:
            g = graph.load_graph(self.root)
            g.add_node(graph.GraphNode(id=memory_id, type=fm.type, title=fm.title))
            for target in fm.links:
                if target != memory_id and g.has_node(target):
                    changes.links_added += g.add_edge(memory_id, target)
            graph.save_graph(self.root, g)

        changes.graph_updated = attempt("graph update", update_graph)
        logger.info("Wrote memory %s", memory_id)
        return WriteResponse(status=Status.SUCCESS, id=memory_id, file_path=path, changes=changes)

    def read_memory(self, memory_id: str) -> ReadResponse:
        path = self.find_file(memory_id)
        if path is None:
            return ReadResponse(status=Status.ERROR, id=memory_id, error=f"Memory not found: {memory_id}")
        record = self.read_record(path)
        return ReadResponse(status=Status.SUCCESS, id=memory_id, record=record, file_path=path)

    def delete_memory(self, memory_id: str) -> DeleteResponse:
        """Delete an active memory file and drop it from every derived store."""
        if not memory_id or not memory_id.strip():
            return DeleteResponse(status=Status.ERROR, id=memory_id, error="id is required")

        path = self._locate_for_delete(memory_id)
        if path is None:
            return DeleteResponse(status=Status.ERROR, id=memory_id, error=f"Memory not found: {memory_id}")

        path.unlink()
        changes = DeleteChanges(file_deleted=True)
        changes.removed_from_index = attempt(
            "index removal", lambda: index.remove_from_index(self.root, memory_id)
        )

        def remove_node() -> bool:
            g = graph.load_graph(self.root)
            if not g.remove_node(memory_id):
                return False
            graph.save_graph(self.root, g)
            return True

        changes.removed_from_graph = attempt("graph removal", remove_node)
        changes.removed_embedding = attempt(
            "embedding removal", lambda: bool(embeddings.drop_embeddings(self.root, [memory_id]))
        )
        changes.cleared_think_state = attempt(
            "think state", lambda: state.clear_current_document(self.root, memory_id)
        )
        logger.info("Deleted memory %s (%s)", memory_id, path)
        return DeleteResponse(status=Status.SUCCESS, id=memory_id, file_path=path, changes=changes)

    def _locate_for_delete(self, memory_id: str) -> Path | None:
        entry = index.find_in_index(self.root, memory_id)
        if entry is not None:
            indexed = self.root / entry.relative_path
            if indexed.is_file():
                return indexed
        return self.find_file(memory_id)


def _validate_write(
    type: Any, title: Any, tags: Any, scope: Any, severity: Any
) -> str | None:
    """First problem with a write request, or None."""
    if enum_value(type) not in {t.value for t in MemoryType}:
        return f"type: invalid memory type {type!r}"
    if not isinstance(title, str) or not title.strip():
        return "title: must be a non-empty string"
    if tags is not None and not all(isinstance(t, str) and t.strip() for t in tags):
        return "tags: must be non-empty strings"
    if enum_value(scope) not in {s.value for s in Scope}:
        return f"scope: invalid scope {scope!r}"
    if severity is not None and enum_value(severity) not in {s.value for s in Severity}:
        return f"severity: invalid severity {severity!r}"
    return None
