"""Two-stage signature matching for logs and traces.

This package provides:
- match_logs_by_topic0_address / match_logs_by_topic0
- match_traces_by_4bytes_address / match_traces_by_4bytes
- reduce_catalog_by_frequency: the catalog reduction behind the fallback
- count_matches / MatchStats: output summaries
"""

from sigmatch.matching.catalog import reduce_catalog_by_frequency
from sigmatch.matching.logs import match_logs_by_topic0, match_logs_by_topic0_address
from sigmatch.matching.tables import MatchStats, as_table, count_matches
from sigmatch.matching.traces import match_traces_by_4bytes, match_traces_by_4bytes_address

__all__ = [
    "match_logs_by_topic0",
    "match_logs_by_topic0_address",
    "match_traces_by_4bytes",
    "match_traces_by_4bytes_address",
    "reduce_catalog_by_frequency",
    "MatchStats",
    "as_table",
    "count_matches",
]
