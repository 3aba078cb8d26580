"""Memory and thinking-document identifiers.

Permanent memories are ``{type}-{slug}``. Thinking documents are
``thought-YYYYMMDD-HHMMSSmmm``; the legacy ``think-`` prefix (and the older
second-resolution form) is still accepted everywhere and migrated by
``refresh_frontmatter``.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime
from pathlib import Path

from memvault.types import MemoryType

THOUGHT_PREFIX = "thought-"
LEGACY_THINK_PREFIX = "think-"
MAX_SLUG_LENGTH = 80
MAX_COLLISIONS = 1000

_THOUGHT_ID_RE = re.compile(r"(thought|think)-[0-9]{8}-[0-9]{6,9}")
_THOUGHT_PARTS_RE = re.compile(
    r"(?:thought|think)-([0-9]{4})([0-9]{2})([0-9]{2})-([0-9]{2})([0-9]{2})([0-9]{2})([0-9]{0,3})"
)


# ── Thinking documents ───────────────────────────────────────


def generate_thought_id(now: datetime | None = None) -> str:
    """New thinking-document ID; millisecond suffix avoids same-second collisions."""
    now = now or datetime.now()
    return f"{THOUGHT_PREFIX}{now:%Y%m%d}-{now:%H%M%S}{now.microsecond // 1000:03d}"


def is_thought_id(value: str) -> bool:
    return bool(_THOUGHT_ID_RE.fullmatch(value))


def has_thought_prefix(value: str) -> bool:
    return value.startswith(THOUGHT_PREFIX) or value.startswith(LEGACY_THINK_PREFIX)


def parse_thought_timestamp(value: str) -> datetime | None:
    """Recover the creation time from a thinking-document ID, or None if invalid."""
    if not is_thought_id(value):
        return None
    match = _THOUGHT_PARTS_RE.fullmatch(value)
    if not match:
        return None
    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int(millis.ljust(3, "0")) * 1000 if millis else 0,
        )
    except ValueError:
        return None


def migrate_thought_id(value: str) -> str:
    """Rewrite a legacy ``think-`` ID to ``thought-``. Idempotent."""
    if value.startswith(LEGACY_THINK_PREFIX):
        return THOUGHT_PREFIX + value[len(LEGACY_THINK_PREFIX):]
    return value


# ── Permanent memories ───────────────────────────────────────


def slugify(title: str) -> str:
    """Lowercase ASCII slug: diacritics stripped, runs of spaces/hyphens collapsed."""
    text = unicodedata.normalize("NFD", title.lower().strip())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def generate_id(type: MemoryType | str, title: str) -> str:
    slug = slugify(title)[:MAX_SLUG_LENGTH].rstrip("-") or "untitled"
    return f"{MemoryType(type).value}-{slug}"


def generate_unique_id(type: MemoryType | str, title: str, root: Path) -> str:
    """``generate_id`` plus a numeric suffix if the ID is taken under ``root``."""
    base_id = generate_id(type, title)
    if not _id_taken(root, base_id):
        return base_id
    for suffix in range(1, MAX_COLLISIONS + 1):
        candidate = f"{base_id}-{suffix}"
        if not _id_taken(root, candidate):
            return candidate
    raise ValueError(f"Too many collisions for ID: {base_id}")


def _id_taken(root: Path, memory_id: str) -> bool:
    return any(
        (root / subdir / f"{memory_id}.md").exists()
        for subdir in ("permanent", "temporary", "archive")
    )


def parse_id(value: str) -> tuple[MemoryType, str] | None:
    """Split ``{type}-{slug}`` into its parts, or None for an unknown prefix."""
    for memory_type in MemoryType:
        prefix = f"{memory_type.value}-"
        if value.startswith(prefix):
            return memory_type, value[len(prefix):]
    return None


def is_memory_id(value: str) -> bool:
    return parse_id(value) is not None


def is_plain_id(value: str) -> bool:
    """True if ``value`` can name a file directly inside a subdirectory."""
    if not isinstance(value, str) or not value.strip() or value in (".", ".."):
        return False
    return "/" not in value and "\\" not in value and "\x00" not in value


def is_valid_slug(slug: str) -> bool:
    if not slug or not re.fullmatch(r"[a-z0-9-]+", slug):
        return False
    return not (slug.startswith("-") or slug.endswith("-") or "--" in slug)
