"""Tests for configuration loading."""

from pathlib import Path

import pytest

from memvault.config import MemvaultConfig, ScopeConfig, load_config

ENV_KEYS = [
    "MEMVAULT_GLOBAL_DIR",
    "MEMVAULT_PROJECT_DIR",
    "MEMVAULT_LOCAL_DIR",
    "MEMVAULT_ENTERPRISE_DIR",
    "MEMVAULT_TTL_DAYS",
    "MEMVAULT_CONCLUDED_TTL_DAYS",
    "MEMVAULT_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.scopes.project_dir == Path(".claude/memory")
        assert config.scopes.local_dir == Path(".claude/memory/local")
        assert config.scopes.enterprise_dir is None
        assert config.prune.ttl_days == 7
        assert config.prune.concluded_ttl_days == 1
        assert config.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MEMVAULT_TTL_DAYS", "14")
        monkeypatch.setenv("MEMVAULT_ENTERPRISE_DIR", "/srv/memory")

        config = load_config()
        assert config.prune.ttl_days == 14
        assert config.scopes.enterprise_dir == Path("/srv/memory")

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "custom.toml"
        toml_path.write_text("""
log_level = "DEBUG"

[scopes]
global_dir = "/opt/memory"

[prune]
ttl_days = 3
concluded_ttl_days = 0.5
""")
        config = load_config(toml_path)
        assert config.scopes.global_dir == Path("/opt/memory")
        assert config.prune.ttl_days == 3
        assert config.prune.concluded_ttl_days == 0.5
        assert config.log_level == "DEBUG"

    def test_discovers_file_in_cwd(self, tmp_path: Path):
        (tmp_path / "memvault.toml").write_text('[prune]\nttl_days = 2\n')
        assert load_config().prune.ttl_days == 2

    def test_discovers_file_in_home(self, tmp_path: Path):
        home_config = tmp_path / "home" / ".claude" / "memvault.toml"
        home_config.parent.mkdir(parents=True)
        home_config.write_text('[prune]\nttl_days = 5\n')
        assert load_config().prune.ttl_days == 5

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MEMVAULT_PROJECT_DIR", "notes")

        toml_path = tmp_path / "memvault.toml"
        toml_path.write_text('[scopes]\nproject_dir = "elsewhere"\n')
        config = load_config(toml_path)
        assert config.scopes.project_dir == Path("notes")  # env wins


class TestScopeRoot:
    def test_relative_resolves_against_cwd(self, tmp_path: Path):
        config = MemvaultConfig()
        assert config.scope_root("project", cwd=tmp_path) == tmp_path / ".claude" / "memory"
        assert config.scope_root("local", cwd=tmp_path) == tmp_path / ".claude" / "memory" / "local"

    def test_absolute_and_home(self, tmp_path: Path):
        config = MemvaultConfig(scopes=ScopeConfig(global_dir=Path("~/mem")))
        assert config.scope_root("global") == tmp_path / "home" / "mem"

    def test_enterprise_requires_directory(self):
        with pytest.raises(ValueError, match="enterprise"):
            MemvaultConfig().scope_root("enterprise")

    def test_unknown_scope(self):
        with pytest.raises(ValueError):
            MemvaultConfig().scope_root("team")
