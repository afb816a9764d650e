"""Builders for Spanner mutations and key sets."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Final, Self

from google.cloud import spanner_v1
from google.protobuf import struct_pb2

from cloudlease.spanner.convert import to_list_value
from cloudlease.types import Key, Row, Rows

__all__: list[str] = ["ALL_ROWS", "KeyRange", "Mutations", "to_key_set"]


class _AllRows:
    """Sentinel selecting every row of a table."""

    def __repr__(self) -> str:
        return "ALL_ROWS"


ALL_ROWS: Final = _AllRows()


@dataclass(frozen=True, kw_only=True)
class KeyRange:
    """A contiguous range of primary keys, closed at both ends by default."""

    start: Key
    end: Key
    start_closed: bool = True
    end_closed: bool = True

    @classmethod
    def from_range(cls, value: range) -> Self:
        """Build a key range from a Python range, keeping its exclusive stop."""
        if value.step != 1:
            raise ValueError("Only ranges with a step of 1 describe contiguous keys")
        if len(value) == 0:
            raise ValueError("Cannot build a key range from an empty range")
        return cls(start=value.start, end=value.stop, end_closed=False)

    def to_pb(self) -> spanner_v1.KeyRange:
        """Convert to the wire representation."""
        bounds = {
            "start_closed" if self.start_closed else "start_open": _key_to_list_value(self.start),
            "end_closed" if self.end_closed else "end_open": _key_to_list_value(self.end),
        }
        return spanner_v1.KeyRange(**bounds)


class Mutations:
    """An ordered list of mutations destined for a single commit."""

    def __init__(self) -> None:
        """Initialize an empty mutation list."""
        self._mutations: list[spanner_v1.Mutation] = []

    def delete(self, table: str, keys: Any = ALL_ROWS) -> Self:
        """Delete rows by key, key range, or every row when no keys are given."""
        delete = spanner_v1.Mutation.Delete(table=table, key_set=to_key_set(keys))
        self._mutations.append(spanner_v1.Mutation(delete=delete))
        return self

    def insert(self, table: str, rows: Rows) -> Self:
        """Insert new rows; the commit fails if any already exist."""
        self._mutations.append(spanner_v1.Mutation(insert=_build_write(table, rows)))
        return self

    def replace(self, table: str, rows: Rows) -> Self:
        """Insert rows, deleting and replacing any that already exist."""
        self._mutations.append(spanner_v1.Mutation(replace=_build_write(table, rows)))
        return self

    def update(self, table: str, rows: Rows) -> Self:
        """Update existing rows; the commit fails if any are missing."""
        self._mutations.append(spanner_v1.Mutation(update=_build_write(table, rows)))
        return self

    def upsert(self, table: str, rows: Rows) -> Self:
        """Insert rows, or update the columns given if a row already exists."""
        self._mutations.append(spanner_v1.Mutation(insert_or_update=_build_write(table, rows)))
        return self

    save = upsert

    def clear(self) -> None:
        """Drop every collected mutation."""
        self._mutations.clear()

    def to_list(self) -> list[spanner_v1.Mutation]:
        """Return the collected mutations in call order."""
        return list(self._mutations)

    def __iter__(self) -> Iterator[spanner_v1.Mutation]:
        """Iterate over the collected mutations in call order."""
        return iter(self._mutations)

    def __len__(self) -> int:
        """Return the number of collected mutations."""
        return len(self._mutations)


def to_key_set(keys: Any = ALL_ROWS) -> spanner_v1.KeySet:
    """Convert keys, key ranges, or the ALL_ROWS sentinel into a KeySet."""
    if keys is None or keys is ALL_ROWS:
        return spanner_v1.KeySet(all_=True)
    if isinstance(keys, spanner_v1.KeySet):
        return keys
    if isinstance(keys, (KeyRange, range)):
        return spanner_v1.KeySet(ranges=[_to_key_range(keys)])
    if isinstance(keys, list):
        key_values: list[struct_pb2.ListValue] = []
        ranges: list[spanner_v1.KeyRange] = []
        for key in keys:
            if isinstance(key, (KeyRange, range)):
                ranges.append(_to_key_range(key))
            else:
                key_values.append(_key_to_list_value(key))
        return spanner_v1.KeySet(keys=key_values, ranges=ranges)
    return spanner_v1.KeySet(keys=[_key_to_list_value(keys)])


def _build_write(table: str, rows: Rows) -> spanner_v1.Mutation.Write:
    """Build a write whose columns come from the first row."""
    row_list: list[Row] = [rows] if isinstance(rows, Mapping) else list(rows)
    if not row_list:
        raise ValueError(f"At least one row is required to write to {table}")

    columns = list(row_list[0].keys())
    values: list[struct_pb2.ListValue] = []
    for index, row in enumerate(row_list):
        if set(row.keys()) != set(columns):
            raise ValueError(f"Row {index} for {table} has columns {sorted(row)}, expected {sorted(columns)}")
        values.append(to_list_value(row[column] for column in columns))
    return spanner_v1.Mutation.Write(table=table, columns=columns, values=values)


def _key_to_list_value(key: Key) -> struct_pb2.ListValue:
    """Convert a scalar or composite key into a ListValue."""
    if isinstance(key, (tuple, list)):
        return to_list_value(key)
    return to_list_value([key])


def _to_key_range(value: KeyRange | range) -> spanner_v1.KeyRange:
    """Convert a KeyRange or a Python range into the wire representation."""
    if isinstance(value, range):
        value = KeyRange.from_range(value)
    return value.to_pb()
