"""Table algebra executed as DuckDB SQL over registered Arrow tables.

Each operation opens its own in-memory connection with the configured
PRAGMAs, registers its inputs, runs one statement and returns the result as
an Arrow table. Connections are never shared between operations.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import duckdb
import pyarrow as pa

from sigmatch.core.errors import MatcherError
from sigmatch.core.interfaces import ITableEngine, SortOrder

_ROW = "__sigmatch_row"
_PART = "__sigmatch_part"
_POS = "__sigmatch_pos"


# =====================================================================
# DuckDB connection setup
# =====================================================================

@contextmanager
def get_connection(memory_limit: str = "8GB", threads: int = 8) -> Iterator[duckdb.DuckDBPyConnection]:
    """Context manager for an in-memory DuckDB connection.

    Args:
        memory_limit: Maximum memory allocation for DuckDB.
        threads: Number of threads for parallel execution.
    """
    con = duckdb.connect()
    try:
        con.execute(f"PRAGMA threads={int(threads)}")
        con.execute(f"PRAGMA memory_limit='{memory_limit}'")
        yield con
    finally:
        con.close()


def _q(identifier: str) -> str:
    """Quote a column or relation name."""
    return '"' + identifier.replace('"', '""') + '"'


def _cols(columns: Sequence[str]) -> str:
    return ", ".join(_q(c) for c in columns)


def _with_position(table: pa.Table) -> pa.Table:
    """Tag rows with their input position; SQL windows have no implicit order."""
    return table.append_column(_POS, pa.array(range(table.num_rows), type=pa.int64()))


class DuckDBEngine(ITableEngine):
    name = "duckdb"

    def __init__(self, *, threads: int = 8, memory_limit: str = "8GB") -> None:
        self.threads = threads
        self.memory_limit = memory_limit

    def _run(self, operation: str, sql: str, **tables: pa.Table) -> pa.Table:
        try:
            with get_connection(self.memory_limit, self.threads) as con:
                for name, table in tables.items():
                    con.register(name, table)
                return con.sql(sql).to_arrow_table()
        except duckdb.Error as e:
            raise MatcherError("duckdb", operation, str(e)) from e

    # ---------- projection / selection ----------

    def with_non_null_count(
        self,
        table: pa.Table,
        *,
        columns: Sequence[str],
        offset: int,
        output: str,
    ) -> pa.Table:
        terms = [str(int(offset))] + [f"CAST({_q(c)} IS NOT NULL AS UINTEGER)" for c in columns]
        expr = f"CAST({' + '.join(terms)} AS UINTEGER)"
        if output in table.column_names:
            sql = f"SELECT * REPLACE ({expr} AS {_q(output)}) FROM t"
        else:
            sql = f"SELECT *, {expr} AS {_q(output)} FROM t"
        return self._run("with_non_null_count", sql, t=table)

    def select(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        return self._run("select", f"SELECT {_cols(columns)} FROM t", t=table)

    def drop(self, table: pa.Table, columns: Sequence[str]) -> pa.Table:
        return self._run("drop", f"SELECT * EXCLUDE ({_cols(columns)}) FROM t", t=table)

    def filter_null(self, table: pa.Table, column: str, *, is_null: bool) -> pa.Table:
        predicate = "IS NULL" if is_null else "IS NOT NULL"
        return self._run("filter_null", f"SELECT * FROM t WHERE {_q(column)} {predicate}", t=table)

    # ---------- join ----------

    def left_join(
        self,
        left: pa.Table,
        right: pa.Table,
        *,
        left_on: Sequence[str],
        right_on: Sequence[str],
    ) -> pa.Table:
        left_names = set(left.column_names)
        right_keys = set(right_on)
        projection = ["l.*"]
        for c in right.column_names:
            if c in right_keys:
                continue
            out = f"{c}_right" if c in left_names else c
            projection.append(f"r.{_q(c)} AS {_q(out)}")
        on = " AND ".join(f"l.{_q(lk)} = r.{_q(rk)}" for lk, rk in zip(left_on, right_on, strict=True))
        sql = f"SELECT {', '.join(projection)} FROM l LEFT JOIN r ON {on}"
        return self._run("left_join", sql, l=left, r=right)

    # ---------- aggregation ----------

    def group_first_with_count(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        count_column: str,
    ) -> pa.Table:
        sql = f"""
            SELECT * EXCLUDE ({_q(_ROW)}, {_q(_POS)}) FROM (
                SELECT *,
                       row_number() OVER (PARTITION BY {_cols(keys)} ORDER BY {_q(_POS)}) AS {_q(_ROW)},
                       count(*) OVER (PARTITION BY {_cols(keys)}) AS {_q(count_column)}
                FROM t
            )
            WHERE {_q(_ROW)} = 1
        """
        return self._run("group_first_with_count", sql, t=_with_position(table))

    def top_per_group(
        self,
        table: pa.Table,
        *,
        keys: Sequence[str],
        order_by: Sequence[tuple[str, SortOrder]],
    ) -> pa.Table:
        ordering = ", ".join(
            f"{_q(c)} {'DESC' if order == 'descending' else 'ASC'} NULLS LAST" for c, order in order_by
        )
        sql = f"""
            SELECT * EXCLUDE ({_q(_ROW)}, {_q(_POS)}) FROM (
                SELECT *,
                       row_number() OVER (PARTITION BY {_cols(keys)} ORDER BY {ordering}, {_q(_POS)}) AS {_q(_ROW)}
                FROM t
            )
            WHERE {_q(_ROW)} = 1
        """
        return self._run("top_per_group", sql, t=_with_position(table))

    # ---------- concatenation ----------

    def concat(self, tables: Sequence[pa.Table]) -> pa.Table:
        if len(tables) == 1:
            return tables[0]
        names = {f"t{i}": table for i, table in enumerate(tables)}
        parts = " UNION ALL BY NAME ".join(f"SELECT *, {i} AS {_q(_PART)} FROM {name}" for i, name in enumerate(names))
        sql = f"SELECT * EXCLUDE ({_q(_PART)}) FROM ({parts}) ORDER BY {_q(_PART)}"
        return self._run("concat", sql, **names)
