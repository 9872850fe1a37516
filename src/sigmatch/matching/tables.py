"""Input coercion and match counting for matcher relations."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
import pyarrow as pa

from sigmatch.core.errors import MatcherError
from sigmatch.core.models import FULL_SIGNATURE

Relation = pa.Table | pd.DataFrame


def as_table(relation: Relation) -> pa.Table:
    """Return `relation` as an Arrow table (pandas frames are converted, index dropped)."""
    if isinstance(relation, pa.Table):
        return relation
    if isinstance(relation, pd.DataFrame):
        try:
            return pa.Table.from_pandas(relation, preserve_index=False)
        except pa.ArrowException as e:
            raise MatcherError("arrow", "from_pandas", str(e)) from e
    raise TypeError(f"expected pyarrow.Table or pandas.DataFrame, got {type(relation).__name__}")


@dataclass(kw_only=True, frozen=True)
class MatchStats:
    """Row counts of a matcher output."""

    rows: int
    matched: int
    unmatched: int


def count_matches(table: pa.Table) -> MatchStats:
    """Count rows with and without a resolved `full_signature`."""
    unmatched = table.column(FULL_SIGNATURE).null_count
    return MatchStats(rows=table.num_rows, matched=table.num_rows - unmatched, unmatched=unmatched)
