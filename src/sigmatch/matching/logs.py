"""Match event logs to ABI event signatures.

Two stages:
- address-qualified: (topic0, address, num_indexed_args) must all agree with a
  catalog row;
- frequency fallback: logs left unmatched are joined on (topic0,
  num_indexed_args) only, against the most frequent signature for that pair.

Matched rows come first in the output, followed by the fallback rows.
"""

from __future__ import annotations

import logging

import pyarrow as pa

from sigmatch.core.config import MatcherConfig, SchemaAlias, get_config
from sigmatch.core.interfaces import ITableEngine
from sigmatch.core.models import ADDRESS, ANONYMOUS, FULL_SIGNATURE, HASH, NAME, NUM_INDEXED_ARGS
from sigmatch.engines import make_engine
from sigmatch.matching.catalog import reduce_catalog_by_frequency
from sigmatch.matching.tables import Relation, as_table

logger = logging.getLogger("sigmatch").getChild("matching")

OPTIONAL_TOPICS = ("topic1", "topic2", "topic3")
LOG_GROUP_KEYS = (HASH, FULL_SIGNATURE, NAME, ANONYMOUS, NUM_INDEXED_ARGS)
LOG_PARTITION_KEYS = (HASH, NUM_INDEXED_ARGS)


def _with_num_indexed_args(engine: ITableEngine, logs: pa.Table, alias: SchemaAlias) -> pa.Table:
    """topic0 is always present, each non-null optional topic adds one."""
    return engine.with_non_null_count(
        logs,
        columns=[alias.column(t) for t in OPTIONAL_TOPICS],
        offset=1,
        output=NUM_INDEXED_ARGS,
    )


def _address_match(engine: ITableEngine, logs: pa.Table, abi: pa.Table, alias: SchemaAlias) -> pa.Table:
    return engine.left_join(
        _with_num_indexed_args(engine, logs, alias),
        abi,
        left_on=[alias.column("topic0"), alias.column("address"), NUM_INDEXED_ARGS],
        right_on=[HASH, ADDRESS, NUM_INDEXED_ARGS],
    )


def match_logs_by_topic0_address(
    log_df: Relation,
    abi_df: Relation,
    *,
    config: MatcherConfig | None = None,
    engine: ITableEngine | None = None,
) -> pa.Table:
    """Left-join logs to the catalog on (topic0, address, num_indexed_args).

    Every input log is kept; catalog columns are null where no row matched.
    Duplicate catalog triples multiply the matching log rows.

    Raises:
        MatcherError: if the engine fails.
    """
    config = config or get_config()
    engine = engine or make_engine(config)
    out = _address_match(engine, as_table(log_df), as_table(abi_df), config.log_alias)
    logger.debug("address match on %d logs (%s engine)", out.num_rows, engine.name)
    return out


def match_logs_by_topic0(
    log_df: Relation,
    abi_df: Relation,
    *,
    config: MatcherConfig | None = None,
    engine: ITableEngine | None = None,
) -> pa.Table:
    """Address-qualified match, then frequency fallback for the remainder.

    The fallback ignores the emitting address: an unmatched log receives the
    signature declared by the most addresses for its (topic0,
    num_indexed_args). Equal counts resolve to the smallest `full_signature`.

    Raises:
        MatcherError: if the engine fails.
    """
    config = config or get_config()
    engine = engine or make_engine(config)
    alias = config.log_alias
    logs = as_table(log_df)
    abi = as_table(abi_df)

    joined = _address_match(engine, logs, abi, alias)
    matched = engine.filter_null(joined, FULL_SIGNATURE, is_null=False)
    unmatched = engine.select(
        engine.filter_null(joined, FULL_SIGNATURE, is_null=True),
        logs.column_names,
    )

    reduced = reduce_catalog_by_frequency(
        engine,
        abi,
        group_keys=LOG_GROUP_KEYS,
        partition_keys=LOG_PARTITION_KEYS,
    )
    fallback = engine.left_join(
        _with_num_indexed_args(engine, unmatched, alias),
        reduced,
        left_on=[alias.column("topic0"), NUM_INDEXED_ARGS],
        right_on=[HASH, NUM_INDEXED_ARGS],
    )

    out = engine.concat([matched, fallback])
    fallback_hits = fallback.num_rows - fallback.column(FULL_SIGNATURE).null_count
    logger.info(
        "logs: %d rows, %d address-matched, %d fallback-matched, %d unmatched",
        out.num_rows,
        matched.num_rows,
        fallback_hits,
        fallback.num_rows - fallback_hits,
    )
    return out
