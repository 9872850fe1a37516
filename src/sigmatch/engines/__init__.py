"""Interchangeable table-algebra engines.

This package provides:
- ArrowEngine: pyarrow / pyarrow.compute (default)
- DuckDBEngine: in-process DuckDB SQL over Arrow tables
- make_engine: build the engine named by a MatcherConfig
"""

from __future__ import annotations

from sigmatch.core.config import MatcherConfig
from sigmatch.core.interfaces import ITableEngine
from sigmatch.engines.arrow_engine import ArrowEngine
from sigmatch.engines.duckdb_engine import DuckDBEngine


def make_engine(config: MatcherConfig) -> ITableEngine:
    """Return a fresh engine for `config.engine`."""
    if config.engine == "arrow":
        return ArrowEngine()
    if config.engine == "duckdb":
        return DuckDBEngine(threads=config.duckdb_threads, memory_limit=config.duckdb_memory_limit)
    raise ValueError(f"unknown engine: {config.engine!r}")


__all__ = [
    "ArrowEngine",
    "DuckDBEngine",
    "make_engine",
]
