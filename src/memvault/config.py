"""Configuration loading from environment variables and memvault.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from memvault.types import Scope, enum_value

_DEFAULT_GLOBAL_DIR = Path.home() / ".claude" / "memory"
_DEFAULT_PROJECT_DIR = Path(".claude") / "memory"
_DEFAULT_LOCAL_DIR = Path(".claude") / "memory" / "local"
_CONFIG_FILENAME = "memvault.toml"


@dataclass
class ScopeConfig:
    """Where each scope keeps its memories. Relative paths resolve against cwd."""

    global_dir: Path = _DEFAULT_GLOBAL_DIR
    project_dir: Path = _DEFAULT_PROJECT_DIR
    local_dir: Path = _DEFAULT_LOCAL_DIR
    enterprise_dir: Path | None = None


@dataclass
class PruneConfig:
    """Time-to-live for documents in temporary/."""

    ttl_days: float = 7
    concluded_ttl_days: float = 1


@dataclass
class MemvaultConfig:
    """Top-level memvault configuration."""

    scopes: ScopeConfig = field(default_factory=ScopeConfig)
    prune: PruneConfig = field(default_factory=PruneConfig)
    log_level: str = "INFO"

    def scope_root(self, scope: Scope | str, cwd: Path | None = None) -> Path:
        """Resolve a scope to its root directory."""
        scope = Scope(enum_value(scope))
        if scope is Scope.GLOBAL:
            path = self.scopes.global_dir
        elif scope is Scope.PROJECT:
            path = self.scopes.project_dir
        elif scope is Scope.LOCAL:
            path = self.scopes.local_dir
        else:
            if self.scopes.enterprise_dir is None:
                raise ValueError("enterprise scope requires scopes.enterprise_dir")
            path = self.scopes.enterprise_dir
        path = path.expanduser()
        if not path.is_absolute():
            path = (cwd or Path.cwd()) / path
        return path


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def load_config(config_path: Path | None = None) -> MemvaultConfig:
    """Load configuration from environment variables and optional memvault.toml.

    Priority: environment variables > memvault.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.claude/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".claude" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    scopes_data = file_data.get("scopes", {})
    prune_data = file_data.get("prune", {})

    config = MemvaultConfig(
        scopes=ScopeConfig(
            global_dir=Path(
                os.getenv("MEMVAULT_GLOBAL_DIR", scopes_data.get("global_dir", str(_DEFAULT_GLOBAL_DIR)))
            ),
            project_dir=Path(
                os.getenv("MEMVAULT_PROJECT_DIR", scopes_data.get("project_dir", str(_DEFAULT_PROJECT_DIR)))
            ),
            local_dir=Path(
                os.getenv("MEMVAULT_LOCAL_DIR", scopes_data.get("local_dir", str(_DEFAULT_LOCAL_DIR)))
            ),
            enterprise_dir=_optional_path(
                os.getenv("MEMVAULT_ENTERPRISE_DIR", scopes_data.get("enterprise_dir"))
            ),
        ),
        prune=PruneConfig(
            ttl_days=float(os.getenv("MEMVAULT_TTL_DAYS", prune_data.get("ttl_days", 7))),
            concluded_ttl_days=float(
                os.getenv("MEMVAULT_CONCLUDED_TTL_DAYS", prune_data.get("concluded_ttl_days", 1))
            ),
        ),
        log_level=os.getenv("MEMVAULT_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
