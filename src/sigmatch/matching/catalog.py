"""Frequency reduction of the ABI catalog for hash-only fallback matching.

For each hash (and, for events, each indexed-argument count) the catalog is
reduced to the one signature declared by the most addresses:

1. group rows by the signature identity columns, keep the group's first row
   and count its members as `signature_count`;
2. per partition keep the group ranked first by `signature_count` desc,
   `full_signature` asc, `name` asc (then any extra tie columns), nulls last;
3. drop `address` and `signature_count`.

The result has at most one row per partition.
"""

from __future__ import annotations

from collections.abc import Sequence

import pyarrow as pa

from sigmatch.core.interfaces import ITableEngine, SortOrder
from sigmatch.core.models import ADDRESS, FULL_SIGNATURE, NAME, SIGNATURE_COUNT


def frequency_order(tie_columns: Sequence[str] = ()) -> list[tuple[str, SortOrder]]:
    """Total order used to pick the winning signature inside a partition."""
    order: list[tuple[str, SortOrder]] = [
        (SIGNATURE_COUNT, "descending"),
        (FULL_SIGNATURE, "ascending"),
        (NAME, "ascending"),
    ]
    order.extend((c, "ascending") for c in tie_columns)
    return order


def reduce_catalog_by_frequency(
    engine: ITableEngine,
    abi: pa.Table,
    *,
    group_keys: Sequence[str],
    partition_keys: Sequence[str],
) -> pa.Table:
    """Keep the most frequent signature per `partition_keys`.

    Args:
        engine: Table engine executing the reduction.
        abi: Catalog relation (see `ABI_SCHEMA`; extra columns are carried).
        group_keys: Columns identifying one signature variant.
        partition_keys: Columns the fallback join will match on.
    """
    counted = engine.group_first_with_count(abi, keys=group_keys, count_column=SIGNATURE_COUNT)
    ranked_on = {SIGNATURE_COUNT, FULL_SIGNATURE, NAME, *partition_keys}
    tie_columns = [k for k in group_keys if k not in ranked_on]
    best = engine.top_per_group(counted, keys=partition_keys, order_by=frequency_order(tie_columns))
    return engine.drop(best, [ADDRESS, SIGNATURE_COUNT])
