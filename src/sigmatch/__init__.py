from __future__ import annotations

from .core.config import MatcherConfig, SchemaAlias, get_config, load_config, set_config
from .core.errors import MatcherError
from .core.models import ABI_SCHEMA, AbiEntry, LogRecord, TraceRecord, abi_entries_to_table, logs_to_table, traces_to_table
from .engines import ArrowEngine, DuckDBEngine, make_engine
from .matching import (
    MatchStats,
    count_matches,
    match_logs_by_topic0,
    match_logs_by_topic0_address,
    match_traces_by_4bytes,
    match_traces_by_4bytes_address,
)

__all__ = [
    "match_logs_by_topic0",
    "match_logs_by_topic0_address",
    "match_traces_by_4bytes",
    "match_traces_by_4bytes_address",
    "count_matches",
    "MatchStats",
    "MatcherConfig",
    "SchemaAlias",
    "get_config",
    "load_config",
    "set_config",
    "MatcherError",
    "ArrowEngine",
    "DuckDBEngine",
    "make_engine",
    "ABI_SCHEMA",
    "AbiEntry",
    "LogRecord",
    "TraceRecord",
    "abi_entries_to_table",
    "logs_to_table",
    "traces_to_table",
]
