import pyarrow as pa
import pytest

from sigmatch.core.config import MatcherConfig
from sigmatch.core.errors import MatcherError
from sigmatch.core.interfaces import ITableEngine
from sigmatch.engines import ArrowEngine, DuckDBEngine, make_engine


def _sorted_rows(table: pa.Table, key: str) -> list[dict]:
    return sorted(table.to_pylist(), key=lambda row: (row[key] is None, row[key]))


def test_engines_implement_interface(engine: ITableEngine) -> None:
    assert isinstance(engine, ITableEngine)


def test_make_engine() -> None:
    assert isinstance(make_engine(MatcherConfig()), ArrowEngine)
    duck = make_engine(MatcherConfig(engine="duckdb", duckdb_threads=2))
    assert isinstance(duck, DuckDBEngine)
    assert duck.threads == 2


def test_with_non_null_count(engine: ITableEngine) -> None:
    table = pa.table({"id": [1, 2, 3], "a": ["x", None, "y"], "b": [None, None, "z"]})

    out = engine.with_non_null_count(table, columns=["a", "b"], offset=1, output="n")

    assert out.schema.field("n").type == pa.uint32()
    assert [row["n"] for row in _sorted_rows(out, "id")] == [2, 1, 3]


def test_with_non_null_count_replaces_existing_column(engine: ITableEngine) -> None:
    table = pa.table({"a": ["x", None], "n": [99, 99]})

    out = engine.with_non_null_count(table, columns=["a"], offset=0, output="n")

    assert out.column_names == ["a", "n"]
    assert sorted(out.column("n").to_pylist()) == [0, 1]


def test_left_join_suffixes_and_drops_right_keys(engine: ITableEngine) -> None:
    left = pa.table({"k": ["a", "b", None], "name": ["l1", "l2", "l3"]})
    right = pa.table({"rk": ["a", None], "name": ["r1", "rnull"], "extra": [1, 2]})

    out = engine.left_join(left, right, left_on=["k"], right_on=["rk"])

    assert out.column_names == ["k", "name", "name_right", "extra"]
    rows = {row["name"]: (row["name_right"], row["extra"]) for row in out.to_pylist()}
    assert rows == {"l1": ("r1", 1), "l2": (None, None), "l3": (None, None)}


def test_left_join_multiple_keys(engine: ITableEngine) -> None:
    left = pa.table({"h": ["x", "x"], "addr": ["1", "2"]})
    right = pa.table({"hash": ["x", "x"], "address": ["1", "3"], "sig": ["s1", "s3"]})

    out = engine.left_join(left, right, left_on=["h", "addr"], right_on=["hash", "address"])

    assert {row["addr"]: row["sig"] for row in out.to_pylist()} == {"1": "s1", "2": None}


def test_group_first_with_count_groups_nulls(engine: ITableEngine) -> None:
    table = pa.table({"k": ["a", "a", None, None, "b"], "v": [1, 1, 2, 2, 3]})

    out = engine.group_first_with_count(table, keys=["k"], count_column="cnt")

    assert out.num_rows == 3
    assert {row["k"]: (row["v"], row["cnt"]) for row in out.to_pylist()} == {
        "a": (1, 2),
        None: (2, 2),
        "b": (3, 1),
    }


def test_top_per_group_orders_nulls_last(engine: ITableEngine) -> None:
    table = pa.table(
        {
            "g": ["a", "a", "a", "b", "b"],
            "score": [1, 5, 5, None, 2],
            "label": ["low", "z", "y", "null", "two"],
        }
    )

    out = engine.top_per_group(table, keys=["g"], order_by=[("score", "descending"), ("label", "ascending")])

    assert {row["g"]: row["label"] for row in out.to_pylist()} == {"a": "y", "b": "two"}


def test_concat_preserves_table_order(engine: ITableEngine) -> None:
    first = pa.table({"a": [1, 2], "b": ["x", "y"]})
    second = pa.table({"b": ["z"], "a": [3]})

    out = engine.concat([first, second])

    assert out.column("a").to_pylist() == [1, 2, 3]
    assert out.column("b").to_pylist() == ["x", "y", "z"]


def test_select_and_drop(engine: ITableEngine) -> None:
    table = pa.table({"a": [1], "b": [2], "c": [3]})

    assert engine.select(table, ["c", "a"]).column_names == ["c", "a"]
    assert engine.drop(table, ["b"]).column_names == ["a", "c"]


def test_filter_null(engine: ITableEngine) -> None:
    table = pa.table({"a": [1, None, 3]})

    assert engine.filter_null(table, "a", is_null=True).num_rows == 1
    assert sorted(engine.filter_null(table, "a", is_null=False).column("a").to_pylist()) == [1, 3]


@pytest.mark.parametrize("operation", ["select", "drop", "filter_null"])
def test_missing_column_raises_matcher_error(engine: ITableEngine, operation: str) -> None:
    table = pa.table({"a": [1]})

    with pytest.raises(MatcherError) as exc_info:
        if operation == "select":
            engine.select(table, ["missing"])
        elif operation == "drop":
            engine.drop(table, ["missing"])
        else:
            engine.filter_null(table, "missing", is_null=True)
    assert exc_info.value.operation == operation
    assert exc_info.value.engine == engine.name


def test_integer_join_keys_of_different_width(engine: ITableEngine) -> None:
    left = pa.table({"n": pa.array([1, 2], type=pa.uint32())})
    right = pa.table({"n": pa.array([2], type=pa.int64()), "v": ["two"]})

    out = engine.left_join(left, right, left_on=["n"], right_on=["n"])

    assert {row["n"]: row["v"] for row in out.to_pylist()} == {1: None, 2: "two"}


def test_group_first_with_count_keeps_first_member(engine: ITableEngine) -> None:
    table = pa.table({"k": ["a", "b", "a", "a"], "v": ["first", "only", "second", "third"]})

    out = engine.group_first_with_count(table, keys=["k"], count_column="cnt")

    assert {row["k"]: (row["v"], row["cnt"]) for row in out.to_pylist()} == {
        "a": ("first", 3),
        "b": ("only", 1),
    }


def test_top_per_group_keeps_first_of_full_ties(engine: ITableEngine) -> None:
    table = pa.table({"g": ["a", "a", "a"], "score": [1, 1, 1], "v": ["first", "second", "third"]})

    out = engine.top_per_group(table, keys=["g"], order_by=[("score", "descending")])

    assert out.column("v").to_pylist() == ["first"]


@pytest.mark.parametrize(
    "left_type, right_type",
    [
        (pa.string(), pa.large_string()),
        (pa.large_string(), pa.string()),
        (pa.binary(), pa.large_binary()),
    ],
)
def test_left_join_aligns_string_and_binary_offsets(
    engine: ITableEngine, left_type: pa.DataType, right_type: pa.DataType
) -> None:
    left = pa.table({"k": pa.array(["1", "2"]).cast(left_type)})
    right = pa.table({"k": pa.array(["2"]).cast(right_type), "v": ["two"]})

    out = engine.left_join(left, right, left_on=["k"], right_on=["k"])

    assert out.num_rows == 2
    assert out.column("v").to_pylist().count("two") == 1
    assert out.column("v").null_count == 1


@pytest.mark.filterwarnings("error")
def test_operations_emit_no_warnings(engine: ITableEngine) -> None:
    table = pa.table({"g": ["a", "a", "b"], "score": [1, None, 2]})

    top = engine.top_per_group(table, keys=["g"], order_by=[("score", "descending")])
    counted = engine.group_first_with_count(table, keys=["g"], count_column="cnt")
    joined = engine.left_join(table, counted, left_on=["g"], right_on=["g"])

    assert top.num_rows == 2
    assert counted.num_rows == 2
    assert joined.num_rows == 3
