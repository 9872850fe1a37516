from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, Protocol, runtime_checkable

import pyarrow as pa

SortOrder = Literal["ascending", "descending"]


# ---------------------------------------------------------------------------
# ITableEngine
# ---------------------------------------------------------------------------

@runtime_checkable
class ITableEngine(Protocol):
    """
    Minimal table algebra the matchers are written against.

    Domain expectations:
    - Every operation takes Arrow tables and returns a NEW Arrow table;
      inputs are never mutated.
    - Any failure of the underlying engine is raised as `MatcherError`.
    - Row order of the result is unspecified unless stated otherwise.
    """

    name: str

    def with_non_null_count(
        self,
        table: pa.Table,
        *,
        columns: Sequence[str],
        offset: int,
        output: str,
    ) -> pa.Table:
        """
        Add (or replace) `output` = `offset` + number of non-null `columns`
        per row, typed uint32.
        """
        ...

    def select(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        """Projection onto `columns`, in that order."""
        ...

    def drop(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        """Projection removing `columns`; missing names are an error."""
        ...

    def filter_null(self, table: pa.Table, column: str, *, is_null: bool) -> pa.Table:
        """Selection of rows where `column` is (or is not) null."""
        ...

    def left_join(
        self,
        left: pa.Table,
        right: pa.Table,
        *,
        left_on: Sequence[str],
        right_on: Sequence[str],
    ) -> pa.Table:
        """
        Left outer equi-join.

        The result holds every left column, then every non-key right column.
        Right key columns are dropped. Right columns whose name collides with
        a left column get a `_right` suffix. Null keys never match.
        """
        ...

    def group_first_with_count(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        count_column: str,
    ) -> pa.Table:
        """
        Group-aggregate: one row per distinct `keys` (nulls form a group),
        carrying the first member row's other columns plus the group size in
        `count_column`.
        """
        ...

    def top_per_group(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        order_by: Sequence[tuple[str, SortOrder]],
    ) -> pa.Table:
        """
        Sort each `keys` group by `order_by` (nulls last) and keep its first
        row only.
        """
        ...

    def concat(self, tables: Sequence[pa.Table]) -> pa.Table:
        """Concatenate by column name, preserving the given table order."""
        ...
