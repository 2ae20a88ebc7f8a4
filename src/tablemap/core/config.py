"""Configuration management for tablemap."""

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Main library configuration."""

    dialect: str = "sqlite"
    dsn: str = ":memory:"  # File path for sqlite, SQLAlchemy URL otherwise
    log_level: str = "ERROR"
    # Raise ConversionError instead of skipping inconvertible column values
    strict_conversion: bool = False
    chunk_size: int = 500  # Rows per multi-row INSERT in insert_many()
    default_timeout: float | None = None  # Seconds; None disables the deadline

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()
        config._apply_env()
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a TOML file, then apply env overrides.

        Args:
            path: Path to a TOML file with top-level keys named like the
                Config attributes.

        Returns:
            Config with file values and environment overrides applied.
        """
        with open(path, "rb") as f:
            data = tomllib.load(f)

        config = cls()
        config._apply_mapping(data.get("tablemap", data))
        config._apply_env()
        return config

    @classmethod
    def from_env_or_file(cls, path: Path | None = None) -> "Config":
        """Load from an explicit path, TABLEMAP_CONFIG, or the environment."""
        if path is None and (env_path := os.environ.get("TABLEMAP_CONFIG")):
            path = Path(env_path)
        if path is not None:
            return cls.from_file(path)
        return cls.from_env()

    def _apply_mapping(self, data: dict[str, Any]) -> None:
        known = {f.name for f in fields(self)}
        for key, value in data.items():
            if key in known:
                setattr(self, key, value)

    def _apply_env(self) -> None:
        if dialect := os.environ.get("TABLEMAP_DIALECT"):
            self.dialect = dialect

        if dsn := os.environ.get("TABLEMAP_DSN"):
            self.dsn = dsn

        if level := os.environ.get("TABLEMAP_LOG_LEVEL"):
            self.log_level = level.upper()

        if strict := os.environ.get("TABLEMAP_STRICT_CONVERSION"):
            self.strict_conversion = strict.strip().lower() in _TRUE_VALUES

        if chunk_size := os.environ.get("TABLEMAP_CHUNK_SIZE"):
            self.chunk_size = int(chunk_size)

        if timeout := os.environ.get("TABLEMAP_TIMEOUT"):
            self.default_timeout = float(timeout)
