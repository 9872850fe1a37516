"""Match call traces to ABI function signatures.

Same two stages as the log matcher, without the arity dimension: the
address-qualified join is on (selector, action_to) and the fallback join on
selector only.
"""

from __future__ import annotations

import logging

import pyarrow as pa

from sigmatch.core.config import MatcherConfig, SchemaAlias, get_config
from sigmatch.core.interfaces import ITableEngine
from sigmatch.core.models import ADDRESS, FULL_SIGNATURE, HASH, NAME
from sigmatch.engines import make_engine
from sigmatch.matching.catalog import reduce_catalog_by_frequency
from sigmatch.matching.tables import Relation, as_table

logger = logging.getLogger("sigmatch").getChild("matching")

TRACE_GROUP_KEYS = (HASH, FULL_SIGNATURE, NAME)
TRACE_PARTITION_KEYS = (HASH,)


def _address_match(engine: ITableEngine, traces: pa.Table, abi: pa.Table, alias: SchemaAlias) -> pa.Table:
    return engine.left_join(
        traces,
        abi,
        left_on=[alias.column("selector"), alias.column("action_to")],
        right_on=[HASH, ADDRESS],
    )


def match_traces_by_4bytes_address(
    trace_df: Relation,
    abi_df: Relation,
    *,
    config: MatcherConfig | None = None,
    engine: ITableEngine | None = None,
) -> pa.Table:
    """Left-join traces to the catalog on (selector, action_to).

    Raises:
        MatcherError: if the engine fails.
    """
    config = config or get_config()
    engine = engine or make_engine(config)
    out = _address_match(engine, as_table(trace_df), as_table(abi_df), config.trace_alias)
    logger.debug("address match on %d traces (%s engine)", out.num_rows, engine.name)
    return out


def match_traces_by_4bytes(
    trace_df: Relation,
    abi_df: Relation,
    *,
    config: MatcherConfig | None = None,
    engine: ITableEngine | None = None,
) -> pa.Table:
    """Address-qualified match, then selector-only fallback for the remainder.

    Raises:
        MatcherError: if the engine fails.
    """
    config = config or get_config()
    engine = engine or make_engine(config)
    alias = config.trace_alias
    traces = as_table(trace_df)
    abi = as_table(abi_df)

    joined = _address_match(engine, traces, abi, alias)
    matched = engine.filter_null(joined, FULL_SIGNATURE, is_null=False)
    unmatched = engine.select(
        engine.filter_null(joined, FULL_SIGNATURE, is_null=True),
        traces.column_names,
    )

    reduced = reduce_catalog_by_frequency(
        engine,
        abi,
        group_keys=TRACE_GROUP_KEYS,
        partition_keys=TRACE_PARTITION_KEYS,
    )
    fallback = engine.left_join(
        unmatched,
        reduced,
        left_on=[alias.column("selector")],
        right_on=[HASH],
    )

    out = engine.concat([matched, fallback])
    fallback_hits = fallback.num_rows - fallback.column(FULL_SIGNATURE).null_count
    logger.info(
        "traces: %d rows, %d address-matched, %d fallback-matched, %d unmatched",
        out.num_rows,
        matched.num_rows,
        fallback_hits,
        fallback.num_rows - fallback_hits,
    )
    return out
