"""Tests for Config environment and TOML loading."""

from pathlib import Path

import pytest

from tablemap.core.config import Config

ENV_VARS = (
    "TABLEMAP_DIALECT",
    "TABLEMAP_DSN",
    "TABLEMAP_LOG_LEVEL",
    "TABLEMAP_STRICT_CONVERSION",
    "TABLEMAP_CHUNK_SIZE",
    "TABLEMAP_TIMEOUT",
    "TABLEMAP_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    """Config has in-memory SQLite defaults."""
    config = Config()

    assert config.dialect == "sqlite"
    assert config.dsn == ":memory:"
    assert config.log_level == "ERROR"
    assert config.strict_conversion is False
    assert config.chunk_size == 500
    assert config.default_timeout is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("TABLEMAP_DIALECT", "postgres")
    monkeypatch.setenv("TABLEMAP_DSN", "postgresql://db/app")
    monkeypatch.setenv("TABLEMAP_LOG_LEVEL", "debug")
    monkeypatch.setenv("TABLEMAP_STRICT_CONVERSION", "yes")
    monkeypatch.setenv("TABLEMAP_CHUNK_SIZE", "50")
    monkeypatch.setenv("TABLEMAP_TIMEOUT", "2.5")

    config = Config.from_env()

    assert config.dialect == "postgres"
    assert config.dsn == "postgresql://db/app"
    assert config.log_level == "DEBUG"
    assert config.strict_conversion is True
    assert config.chunk_size == 50
    assert config.default_timeout == 2.5


def test_from_file_applies_toml_then_env(tmp_path: Path, monkeypatch):
    """Environment variables should override TOML values."""
    toml_path = tmp_path / "tablemap.toml"
    toml_path.write_text(
        "\n".join(
            [
                "[tablemap]",
                'dialect = "mysql"',
                'dsn = "mysql://toml/app"',
                "chunk_size = 10",
                "unknown_key = 1",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("TABLEMAP_DSN", "mysql://env/app")

    config = Config.from_file(toml_path)

    assert config.dialect == "mysql"
    assert config.dsn == "mysql://env/app"
    assert config.chunk_size == 10


def test_from_env_or_file_uses_tablemap_config(tmp_path: Path, monkeypatch):
    """TABLEMAP_CONFIG should be used when no explicit path is provided."""
    toml_path = tmp_path / "tablemap.toml"
    toml_path.write_text('dialect = "postgres"', encoding="utf-8")
    monkeypatch.setenv("TABLEMAP_CONFIG", str(toml_path))

    assert Config.from_env_or_file().dialect == "postgres"


def test_from_env_or_file_without_file():
    assert Config.from_env_or_file().dialect == "sqlite"
