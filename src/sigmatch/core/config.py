"""Matcher configuration: schema aliases and engine selection.

Aliases map a logical field name ("topic0", "selector", ...) to the physical
column name used by the caller's relations. They are looked up once per match
call; a missing alias falls back to the logical name and is never validated.

A config file is plain TOML:

    engine = "duckdb"
    duckdb_threads = 4

    [log_alias.aliases]
    topic0 = "topic_0"
    address = "contract"

    [trace_alias.aliases]
    action_to = "to"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

LOG_FIELDS: tuple[str, ...] = ("topic0", "topic1", "topic2", "topic3", "address")
TRACE_FIELDS: tuple[str, ...] = ("selector", "action_to")

EngineName = Literal["arrow", "duckdb"]


class SchemaAlias(BaseModel):
    """Lookup table from logical field name to physical column name."""

    model_config = ConfigDict(frozen=True)

    aliases: dict[str, str] = Field(default_factory=dict)

    def column(self, field: str) -> str:
        return self.aliases.get(field, field)


def _identity(fields: tuple[str, ...]) -> SchemaAlias:
    return SchemaAlias(aliases={f: f for f in fields})


class MatcherConfig(BaseModel):
    """Configuration consumed by the log and trace matchers."""

    model_config = ConfigDict(frozen=True)

    log_alias: SchemaAlias = Field(default_factory=lambda: _identity(LOG_FIELDS))
    trace_alias: SchemaAlias = Field(default_factory=lambda: _identity(TRACE_FIELDS))
    engine: EngineName = "arrow"
    duckdb_threads: int = Field(default=8, ge=1)
    duckdb_memory_limit: str = "8GB"


_config = MatcherConfig()


def get_config() -> MatcherConfig:
    """Return the process-wide default configuration."""
    return _config


def set_config(config: MatcherConfig) -> None:
    """Replace the process-wide default configuration."""
    global _config
    _config = config


def load_config(path: Path | str) -> MatcherConfig:
    """Read and validate a TOML config file.

    Raises:
        ValueError: if the file is not valid TOML or fails validation.
    """
    raw = Path(path).read_text()
    try:
        data = tomllib.loads(raw)
        return MatcherConfig.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ValueError(f"invalid matcher config {path}: {e}") from e
