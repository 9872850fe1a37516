"""Core configuration, record models, interfaces and errors.

This package provides:
- Configuration (MatcherConfig, SchemaAlias, load_config, get_config)
- Record models (LogRecord, TraceRecord, AbiEntry) and the catalog schema
- The ITableEngine table-algebra interface
- MatcherError
"""

from sigmatch.core.config import MatcherConfig, SchemaAlias, get_config, load_config, set_config
from sigmatch.core.errors import MatcherError
from sigmatch.core.interfaces import ITableEngine
from sigmatch.core.models import ABI_SCHEMA, AbiEntry, LogRecord, TraceRecord

__all__ = [
    "MatcherConfig",
    "SchemaAlias",
    "get_config",
    "load_config",
    "set_config",
    "MatcherError",
    "ITableEngine",
    "ABI_SCHEMA",
    "AbiEntry",
    "LogRecord",
    "TraceRecord",
]
