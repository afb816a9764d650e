"""Unit tests for the cloudlease.spanner.mutation module."""

from typing import Any

import pytest
from google.cloud import spanner_v1

from cloudlease.spanner import ALL_ROWS, KeyRange, Mutations, to_key_set, to_list_value


def raw(mutation: spanner_v1.Mutation) -> Any:
    return spanner_v1.Mutation.pb(mutation)


def raw_key_set(key_set: spanner_v1.KeySet) -> Any:
    return spanner_v1.KeySet.pb(key_set)


class TestMutations:
    @pytest.mark.parametrize(
        "method, operation",
        [
            ("insert", "insert"),
            ("update", "update"),
            ("upsert", "insert_or_update"),
            ("save", "insert_or_update"),
            ("replace", "replace"),
        ],
    )
    def test_write_operations(self, method: str, operation: str) -> None:
        mutations = getattr(Mutations(), method)("Users", {"id": 1, "name": "alice"})

        pb = raw(mutations.to_list()[0])
        assert pb.WhichOneof("operation") == operation
        write = getattr(pb, operation)
        assert write.table == "Users"
        assert list(write.columns) == ["id", "name"]
        assert list(write.values) == [to_list_value([1, "alice"])]

    def test_multiple_rows_follow_first_row_columns(self) -> None:
        mutations = Mutations().insert("Users", [{"id": 1, "name": "a"}, {"name": "b", "id": 2}])

        write = raw(mutations.to_list()[0]).insert
        assert list(write.columns) == ["id", "name"]
        assert list(write.values) == [to_list_value([1, "a"]), to_list_value([2, "b"])]

    def test_mismatched_columns(self) -> None:
        with pytest.raises(ValueError, match="Row 1 for Users has columns"):
            Mutations().insert("Users", [{"id": 1}, {"id": 2, "name": "b"}])

    def test_empty_rows(self) -> None:
        with pytest.raises(ValueError, match="At least one row is required"):
            Mutations().update("Users", [])

    def test_delete_all_rows_by_default(self) -> None:
        mutations = Mutations().delete("Users")

        pb = raw(mutations.to_list()[0])
        assert pb.WhichOneof("operation") == "delete"
        assert pb.delete.table == "Users"
        assert pb.delete.key_set.all

    def test_delete_keys(self) -> None:
        mutations = Mutations().delete("Users", [1, 2])

        key_set = raw(mutations.to_list()[0]).delete.key_set
        assert not key_set.all
        assert list(key_set.keys) == [to_list_value([1]), to_list_value([2])]

    def test_builders_chain_and_preserve_order(self) -> None:
        mutations = Mutations()

        result = mutations.insert("A", {"id": 1}).update("B", {"id": 2}).delete("C", 3)

        assert result is mutations
        assert len(mutations) == 3
        assert [raw(m).WhichOneof("operation") for m in mutations] == ["insert", "update", "delete"]

    def test_clear(self) -> None:
        mutations = Mutations().insert("A", {"id": 1})

        mutations.clear()

        assert len(mutations) == 0
        assert mutations.to_list() == []

    def test_to_list_is_a_copy(self) -> None:
        mutations = Mutations().insert("A", {"id": 1})

        mutations.to_list().clear()

        assert len(mutations) == 1


class TestKeyRange:
    def test_closed_by_default(self) -> None:
        pb = spanner_v1.KeyRange.pb(KeyRange(start=1, end=5).to_pb())

        assert pb.WhichOneof("start_key_type") == "start_closed"
        assert pb.WhichOneof("end_key_type") == "end_closed"
        assert pb.start_closed == to_list_value([1])
        assert pb.end_closed == to_list_value([5])

    def test_open_bounds(self) -> None:
        pb = spanner_v1.KeyRange.pb(KeyRange(start=1, end=5, start_closed=False, end_closed=False).to_pb())

        assert pb.WhichOneof("start_key_type") == "start_open"
        assert pb.WhichOneof("end_key_type") == "end_open"

    def test_composite_bounds(self) -> None:
        pb = spanner_v1.KeyRange.pb(KeyRange(start=("a", 1), end=("a", 9)).to_pb())

        assert pb.start_closed == to_list_value(["a", 1])

    def test_from_range(self) -> None:
        key_range = KeyRange.from_range(range(1, 4))

        assert key_range == KeyRange(start=1, end=4, end_closed=False)

    @pytest.mark.parametrize(
        "value, match",
        [
            (range(0, 10, 2), "step of 1"),
            (range(5, 5), "empty range"),
        ],
    )
    def test_from_range_rejects(self, value: range, match: str) -> None:
        with pytest.raises(ValueError, match=match):
            KeyRange.from_range(value)


class TestToKeySet:
    @pytest.mark.parametrize("keys", [None, ALL_ROWS])
    def test_all_rows(self, keys: object) -> None:
        assert raw_key_set(to_key_set(keys)).all

    def test_default_is_all_rows(self) -> None:
        assert raw_key_set(to_key_set()).all

    def test_passthrough_key_set(self) -> None:
        key_set = spanner_v1.KeySet(all_=True)

        assert to_key_set(key_set) is key_set

    def test_single_key(self) -> None:
        pb = raw_key_set(to_key_set(5))

        assert list(pb.keys) == [to_list_value([5])]
        assert not pb.ranges

    def test_tuple_is_one_composite_key(self) -> None:
        pb = raw_key_set(to_key_set(("tenant", 7)))

        assert list(pb.keys) == [to_list_value(["tenant", 7])]

    def test_list_of_keys(self) -> None:
        pb = raw_key_set(to_key_set([1, ("a", 2)]))

        assert list(pb.keys) == [to_list_value([1]), to_list_value(["a", 2])]

    def test_python_range(self) -> None:
        pb = raw_key_set(to_key_set(range(1, 5)))

        assert not pb.keys
        assert len(pb.ranges) == 1
        assert pb.ranges[0].start_closed == to_list_value([1])
        assert pb.ranges[0].end_open == to_list_value([5])

    def test_key_range(self) -> None:
        pb = raw_key_set(to_key_set(KeyRange(start=1, end=3)))

        assert pb.ranges[0].end_closed == to_list_value([3])

    def test_mixed_list(self) -> None:
        pb = raw_key_set(to_key_set([1, range(10, 20), KeyRange(start=30, end=40)]))

        assert list(pb.keys) == [to_list_value([1])]
        assert len(pb.ranges) == 2

    def test_all_rows_repr(self) -> None:
        assert repr(ALL_ROWS) == "ALL_ROWS"
