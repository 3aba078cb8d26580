"""Memory file codec: ``---\\n<yaml>\\n---\\n<markdown>``.

Built on python-frontmatter's YAML handler. Loading goes through a
SafeLoader variant that leaves ISO timestamps as strings, so a file
round-trips without its dates turning into ``datetime`` objects.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from memvault.errors import FrontmatterError
from memvault.types import Frontmatter, MemoryRecord, enum_value


# Long enough that titles never wrap. libyaml's CSafeDumper needs an int here.
YAML_LINE_WIDTH = 2**30


class ParseMode(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"  # backfill/repair: only require a YAML mapping


class _StringTimestampLoader(yaml.SafeLoader):
    """SafeLoader without implicit timestamp resolution."""


_StringTimestampLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class MemoryYAMLHandler(YAMLHandler):
    """YAML handler that keeps timestamps as strings and key order as written."""

    def load(self, fm: str, **kwargs: Any) -> Any:
        kwargs.setdefault("Loader", _StringTimestampLoader)
        return super().load(fm, **kwargs)

    def export(self, metadata: dict[str, Any], **kwargs: Any) -> str:
        kwargs.setdefault("sort_keys", False)
        kwargs.setdefault("width", YAML_LINE_WIDTH)
        return super().export(metadata, **kwargs)


_HANDLER = MemoryYAMLHandler()


def now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_frontmatter(yaml_text: str, mode: ParseMode = ParseMode.STRICT) -> Frontmatter:
    """Parse a YAML block into Frontmatter. Raises FrontmatterError."""
    try:
        data = _HANDLER.load(yaml_text)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"YAML error: {e}") from e
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a YAML mapping")
    if mode is ParseMode.STRICT:
        for key in ("type", "title"):
            if not data.get(key):
                raise FrontmatterError(f"{key} is required")
    try:
        return Frontmatter.from_mapping(data)
    except (TypeError, ValueError) as e:
        raise FrontmatterError(f"invalid field: {e}") from e


def parse_memory_file(text: str, mode: ParseMode = ParseMode.STRICT) -> MemoryRecord:
    """Split a memory file into frontmatter and body. Raises FrontmatterError."""
    if not _HANDLER.detect(text):
        raise FrontmatterError("missing frontmatter delimiters")
    try:
        yaml_text, body = _HANDLER.split(text)
    except ValueError as e:
        raise FrontmatterError("missing closing frontmatter delimiter") from e
    return MemoryRecord(frontmatter=parse_frontmatter(yaml_text, mode), content=body.strip())


def serialise_frontmatter(fm: Frontmatter) -> str:
    return _HANDLER.export(fm.to_mapping()) + "\n"


def serialise_memory_file(fm: Frontmatter, content: str) -> str:
    post = frontmatter.Post(content.strip(), handler=_HANDLER, **fm.to_mapping())
    return frontmatter.dumps(post) + "\n"


def update_frontmatter(fm: Frontmatter, **changes: Any) -> Frontmatter:
    """Return a copy of ``fm`` with ``changes`` applied and ``updated`` bumped.

    Unmodelled keys go to ``extra``; a value of None removes an extra key.
    """
    known = {f.name for f in dataclasses.fields(Frontmatter)} - {"extra"}
    direct = {k: enum_value(v) for k, v in changes.items() if k in known}
    extra = dict(fm.extra)
    for key, value in changes.items():
        if key in known:
            continue
        if value is None:
            extra.pop(key, None)
        else:
            extra[key] = enum_value(value)
    for key in ("links", "tags"):
        if key in direct and direct[key] is None:
            direct[key] = []
    if "meta" in direct and direct["meta"] is None:
        direct["meta"] = {}
    direct.setdefault("updated", now_iso())
    return dataclasses.replace(fm, extra=extra, **direct)


def create_frontmatter(
    type: str,
    title: str,
    tags: list[str] | None = None,
    id: str | None = None,
    scope: str | None = None,
    project: str | None = None,
    severity: str | None = None,
    links: list[str] | None = None,
    source: str | None = None,
    meta: dict[str, Any] | None = None,
) -> Frontmatter:
    now = now_iso()
    return Frontmatter(
        type=enum_value(type),
        title=title,
        created=now,
        updated=now,
        tags=list(tags or []),
        id=id,
        scope=enum_value(scope),
        project=project,
        severity=enum_value(severity),
        links=list(links or []),
        source=source,
        meta=dict(meta or {}),
    )


def has_required_fields(data: Any) -> bool:
    """True if ``data`` is a mapping with every required frontmatter key well-typed."""
    if not isinstance(data, dict):
        return False
    return (
        all(isinstance(data.get(k), str) for k in ("type", "title", "created", "updated"))
        and isinstance(data.get("tags"), list)
    )
