"""Core types shared by the memory stores and maintenance operations."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any


class MemoryType(str, Enum):
    DECISION = "decision"
    LEARNING = "learning"
    ARTIFACT = "artifact"
    GOTCHA = "gotcha"
    BREADCRUMB = "breadcrumb"
    HUB = "hub"


class Scope(str, Enum):
    ENTERPRISE = "enterprise"
    LOCAL = "local"
    PROJECT = "project"
    GLOBAL = "global"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EdgeType(str, Enum):
    RELATES_TO = "relates-to"
    IMPLEMENTS = "implements"
    SUPERSEDES = "supersedes"
    BLOCKED_BY = "blocked-by"
    INFORMS = "informs"
    EXEMPLIFIES = "exemplifies"
    RELATED_CONTEXT = "related-context"


class ThinkStatus(str, Enum):
    ACTIVE = "active"
    CONCLUDED = "concluded"


def enum_value(value: Any) -> Any:
    """Unwrap enum members to their plain value, leave anything else alone."""
    return value.value if isinstance(value, Enum) else value


# Serialisation order for known frontmatter keys.
FRONTMATTER_KEYS = (
    "id",
    "title",
    "type",
    "scope",
    "project",
    "created",
    "updated",
    "tags",
    "severity",
    "links",
    "source",
    "meta",
)

REQUIRED_KEYS = ("type", "title", "created", "updated", "tags")


@dataclass
class Frontmatter:
    """YAML frontmatter of a memory file.

    Keys the system does not model (``status``, ``topic`` on thinking
    documents, ...) live in ``extra`` and survive a parse/serialise cycle.
    """

    type: str = ""
    title: str = ""
    created: str = ""
    updated: str = ""
    tags: list[str] = field(default_factory=list)
    id: str | None = None
    scope: str | None = None
    project: str | None = None
    severity: str | None = None
    links: list[str] = field(default_factory=list)
    source: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Frontmatter:
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value
        for key in ("type", "title", "created", "updated"):
            if kwargs.get(key) is None:
                kwargs.pop(key, None)
            else:
                kwargs[key] = str(enum_value(kwargs[key]))
        for key in ("tags", "links"):
            value = kwargs.get(key) or []
            if isinstance(value, str):
                value = [value]
            kwargs[key] = [str(item) for item in value]
        kwargs["meta"] = dict(kwargs.get("meta") or {})
        for key in ("scope", "severity"):
            if key in kwargs:
                kwargs[key] = enum_value(kwargs[key])
        return cls(extra=extra, **kwargs)

    def to_mapping(self) -> dict[str, Any]:
        """Plain dict in serialisation order, optional empties omitted."""
        out: dict[str, Any] = {}
        if self.id:
            out["id"] = self.id
        out["title"] = self.title
        out["type"] = self.type
        if self.scope:
            out["scope"] = self.scope
        if self.project:
            out["project"] = self.project
        out["created"] = self.created
        out["updated"] = self.updated
        out["tags"] = list(self.tags)
        if self.severity:
            out["severity"] = self.severity
        if self.links:
            out["links"] = list(self.links)
        if self.source:
            out["source"] = self.source
        if self.meta:
            out["meta"] = dict(self.meta)
        for key, value in self.extra.items():
            out.setdefault(key, value)
        return out

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a key whether it is modelled or carried in ``extra``."""
        if key in FRONTMATTER_KEYS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)


@dataclass
class MemoryRecord:
    """A parsed memory file: frontmatter plus Markdown body."""

    frontmatter: Frontmatter
    content: str
    path: Path | None = None


@dataclass
class IndexEntry:
    """Lightweight metadata row in index.json."""

    id: str
    type: str
    title: str
    tags: list[str]
    created: str
    updated: str
    scope: str
    relative_path: str
    severity: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> IndexEntry:
        return cls(
            id=data["id"],
            type=data.get("type", ""),
            title=data.get("title", ""),
            tags=list(data.get("tags") or []),
            created=data.get("created", ""),
            updated=data.get("updated", ""),
            scope=data.get("scope", Scope.PROJECT.value),
            relative_path=data.get("relativePath", ""),
            severity=data.get("severity"),
        )

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "tags": list(self.tags),
            "created": self.created,
            "updated": self.updated,
            "scope": self.scope,
            "relativePath": self.relative_path,
        }
        if self.severity:
            data["severity"] = self.severity
        return data
