"""Record types and Arrow schemas for logs, traces and the ABI catalog.

This module defines:
- `LogRecord` / `TraceRecord`: one raw input row each, with helpers to build
  Arrow tables under the configured column aliases.
- `AbiEntry`: one catalog row (hash, address, signature, ...).
- `ABI_SCHEMA`: the fixed Arrow schema of the catalog relation.

Hashes and addresses are kept as the caller's 0x-hex strings. Nothing here
lowercases or checksums values; matching is exact on the stored text.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pyarrow as pa
from eth_utils.abi import event_signature_to_log_topic, function_signature_to_4byte_selector

from sigmatch.core.config import SchemaAlias

# === Catalog columns ===

HASH = "hash"
ADDRESS = "address"
FULL_SIGNATURE = "full_signature"
NAME = "name"
ANONYMOUS = "anonymous"
NUM_INDEXED_ARGS = "num_indexed_args"
SIGNATURE_COUNT = "signature_count"

ABI_SCHEMA = pa.schema(
    [
        (HASH, pa.string()),
        (ADDRESS, pa.string()),
        (FULL_SIGNATURE, pa.string()),
        (NAME, pa.string()),
        (ANONYMOUS, pa.bool_()),
        (NUM_INDEXED_ARGS, pa.uint32()),
    ]
)

# Type of the derived arity column on logs
ARITY_TYPE = pa.uint32()


# === Input records ===


@dataclass(slots=True, frozen=True)
class LogRecord:
    """Raw event log; topic1..topic3 are None when the slot is unused."""

    topic0: str
    address: str
    topic1: str | None = None
    topic2: str | None = None
    topic3: str | None = None

    @property
    def num_indexed_args(self) -> int:
        return 1 + sum(t is not None for t in (self.topic1, self.topic2, self.topic3))


@dataclass(slots=True, frozen=True)
class TraceRecord:
    """Raw call trace: 4-byte selector and call target."""

    selector: str
    action_to: str


# === Catalog record ===


def _name_from_signature(signature: str) -> str:
    return signature.split("(", 1)[0]


@dataclass(slots=True, frozen=True)
class AbiEntry:
    """One ABI catalog row. `anonymous` and `num_indexed_args` are event-only."""

    hash: str
    address: str
    full_signature: str
    name: str
    anonymous: bool | None = None
    num_indexed_args: int | None = None

    @classmethod
    def for_event(
        cls,
        signature: str,
        address: str,
        *,
        num_indexed_args: int,
        anonymous: bool = False,
    ) -> AbiEntry:
        """Build an event row, hashing `signature` into its topic0."""
        topic0 = "0x" + event_signature_to_log_topic(signature).hex()
        return cls(
            hash=topic0,
            address=address,
            full_signature=signature,
            name=_name_from_signature(signature),
            anonymous=anonymous,
            num_indexed_args=num_indexed_args,
        )

    @classmethod
    def for_function(cls, signature: str, address: str) -> AbiEntry:
        """Build a function row, hashing `signature` into its 4-byte selector."""
        selector = "0x" + function_signature_to_4byte_selector(signature).hex()
        return cls(
            hash=selector,
            address=address,
            full_signature=signature,
            name=_name_from_signature(signature),
        )


# === Table builders ===


def abi_entries_to_table(entries: Iterable[AbiEntry]) -> pa.Table:
    """Convert catalog rows into a table with `ABI_SCHEMA`."""
    rows = list(entries)
    return pa.Table.from_pydict(
        {name: [getattr(e, name) for e in rows] for name in ABI_SCHEMA.names},
        schema=ABI_SCHEMA,
    )


def logs_to_table(records: Iterable[LogRecord], alias: SchemaAlias | None = None) -> pa.Table:
    """Convert log rows into a string-typed table named by `alias`."""
    alias = alias or SchemaAlias()
    rows = list(records)
    fields = ("topic0", "topic1", "topic2", "topic3", "address")
    schema = pa.schema([(alias.column(f), pa.string()) for f in fields])
    return pa.Table.from_pydict(
        {alias.column(f): [getattr(r, f) for r in rows] for f in fields},
        schema=schema,
    )


def traces_to_table(records: Iterable[TraceRecord], alias: SchemaAlias | None = None) -> pa.Table:
    """Convert trace rows into a string-typed table named by `alias`."""
    alias = alias or SchemaAlias()
    rows = list(records)
    fields = ("selector", "action_to")
    schema = pa.schema([(alias.column(f), pa.string()) for f in fields])
    return pa.Table.from_pydict(
        {alias.column(f): [getattr(r, f) for r in rows] for f in fields},
        schema=schema,
    )
