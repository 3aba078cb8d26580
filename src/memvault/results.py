"""Response and sub-step result types for memory operations.

Every operation mutates the memory file first and then propagates to the
graph, index and embedding cache one store at a time. Each of those
follow-up steps yields a ``StepResult`` so callers can tell "updated" from
"nothing to do" from "tried and failed"; ``as_dict()`` flattens them to the
booleans of the plain response contract.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class Status(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class StepOutcome(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one best-effort store update. Truthy only when UPDATED."""

    outcome: StepOutcome = StepOutcome.SKIPPED
    detail: str = ""

    def __bool__(self) -> bool:
        return self.outcome is StepOutcome.UPDATED

    @classmethod
    def updated(cls, detail: str = "") -> StepResult:
        return cls(StepOutcome.UPDATED, detail)

    @classmethod
    def skipped(cls, detail: str = "") -> StepResult:
        return cls(StepOutcome.SKIPPED, detail)

    @classmethod
    def failed(cls, detail: str) -> StepResult:
        return cls(StepOutcome.FAILED, detail)


NOT_ATTEMPTED = StepResult()


def attempt(label: str, step: Callable[[], bool | None]) -> StepResult:
    """Run a secondary-store update, capturing failure instead of raising.

    ``step`` returns False when there was nothing to change.
    """
    try:
        changed = step()
    except Exception as e:
        logger.warning("%s failed: %s", label, e)
        return StepResult.failed(f"{type(e).__name__}: {e}")
    if changed is False:
        return StepResult.skipped()
    return StepResult.updated()


def to_plain(value: Any) -> Any:
    """Convert responses to JSON-friendly structures."""
    if isinstance(value, StepResult):
        return bool(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if item is None and f.name in ("error", "errors", "warnings", "would_remove", "would_update"):
                continue
            out[f.name] = to_plain(item)
        return out
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_plain(v) for v in value]
    return value


class ResponseMixin:
    """``as_dict()`` and ``ok`` for response dataclasses."""

    status: Status

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def as_dict(self) -> dict[str, Any]:
        return to_plain(self)


def status_for(errors: list[str]) -> Status:
    return Status.ERROR if errors else Status.SUCCESS
