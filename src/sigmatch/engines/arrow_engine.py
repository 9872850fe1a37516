"""Table algebra on in-memory Arrow tables (`pyarrow.compute` + Acero joins).

"First row of a group" is resolved by tagging rows with their position and
taking the minimum position per group, so the kept row is always a whole
input row (never a per-column mix) and follows the current table order.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import pyarrow as pa
import pyarrow.compute as pc

from sigmatch.core.errors import MatcherError
from sigmatch.core.interfaces import ITableEngine, SortOrder

_ROW = "__sigmatch_row"
_COUNT_TYPE = pa.uint32()


@contextmanager
def _arrow_errors(operation: str) -> Iterator[None]:
    """Re-raise Arrow failures (and missing-column lookups) as MatcherError."""
    try:
        yield
    except (pa.ArrowException, KeyError) as e:
        raise MatcherError("arrow", operation, str(e)) from e


def _same_key_family(lt: pa.DataType, rt: pa.DataType) -> bool:
    """True when two key types differ only in width (ints) or offset size (string/binary)."""
    if pa.types.is_integer(lt) and pa.types.is_integer(rt):
        return True
    if pa.types.is_string(lt) or pa.types.is_large_string(lt):
        return pa.types.is_string(rt) or pa.types.is_large_string(rt)
    if pa.types.is_binary(lt) or pa.types.is_large_binary(lt):
        return pa.types.is_binary(rt) or pa.types.is_large_binary(rt)
    return False


def _first_per_group(table: pa.Table, keys: Sequence[str]) -> tuple[pa.Table, pa.ChunkedArray]:
    """Return (first row of each group, group sizes) in matching order."""
    tagged = table.append_column(_ROW, pa.array(range(table.num_rows), type=pa.int64()))
    grouped = tagged.group_by(list(keys)).aggregate([(_ROW, "min"), ([], "count_all")])
    firsts = grouped.column(f"{_ROW}_min").combine_chunks()
    return table.take(firsts), grouped.column("count_all")


class ArrowEngine(ITableEngine):
    name = "arrow"

    def with_non_null_count(
        self,
        table: pa.Table,
        *,
        columns: Sequence[str],
        offset: int,
        output: str,
    ) -> pa.Table:
        with _arrow_errors("with_non_null_count"):
            total = pa.scalar(offset, _COUNT_TYPE)
            for name in columns:
                total = pc.add(total, pc.cast(pc.is_valid(table.column(name)), _COUNT_TYPE))
            if isinstance(total, pa.Scalar):
                total = pa.repeat(total, table.num_rows)
            field = pa.field(output, _COUNT_TYPE)
            if output in table.column_names:
                return table.set_column(table.schema.get_field_index(output), field, total)
            return table.append_column(field, total)

    def select(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        with _arrow_errors("select"):
            return table.select(list(columns))

    def drop(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        with _arrow_errors("drop"):
            return table.drop_columns(list(columns))

    def filter_null(self, table: pa.Table, column: str, *, is_null: bool) -> pa.Table:
        with _arrow_errors("filter_null"):
            values = table.column(column)
            return table.filter(pc.is_null(values) if is_null else pc.is_valid(values))

    def left_join(
        self,
        left: pa.Table,
        right: pa.Table,
        *,
        left_on: Sequence[str],
        right_on: Sequence[str],
    ) -> pa.Table:
        with _arrow_errors("left_join"):
            # Integer widths and string/binary offset sizes are aligned to the
            # left side; any other type mismatch is left for Acero to reject.
            for lk, rk in zip(left_on, right_on, strict=True):
                lt = left.schema.field(lk).type
                rt = right.schema.field(rk).type
                if lt != rt and _same_key_family(lt, rt):
                    idx = right.schema.get_field_index(rk)
                    right = right.set_column(idx, pa.field(rk, lt), pc.cast(right.column(rk), lt))
            return left.join(
                right,
                keys=list(left_on),
                right_keys=list(right_on),
                join_type="left outer",
                right_suffix="_right",
                coalesce_keys=True,
            )

    def group_first_with_count(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        count_column: str,
    ) -> pa.Table:
        with _arrow_errors("group_first_with_count"):
            firsts, counts = _first_per_group(table, keys)
            return firsts.append_column(pa.field(count_column, pa.int64()), counts)

    def top_per_group(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        order_by: Sequence[tuple[str, SortOrder]],
    ) -> pa.Table:
        with _arrow_errors("top_per_group"):
            # Arrow sorts nulls last by default
            ordered = table.sort_by(list(order_by))
            firsts, _ = _first_per_group(ordered, keys)
            return firsts

    def concat(self, tables: Sequence[pa.Table]) -> pa.Table:
        with _arrow_errors("concat"):
            return pa.concat_tables(list(tables), promote_options="permissive")
