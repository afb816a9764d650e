"""Conversion of Python values into Spanner wire values."""

from __future__ import annotations

import base64
import datetime
import math
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from google.protobuf import struct_pb2

__all__: list[str] = ["to_list_value", "to_value"]


def to_list_value(values: Iterable[Any]) -> struct_pb2.ListValue:
    """Convert a sequence of Python values into a ListValue."""
    return struct_pb2.ListValue(values=[to_value(value) for value in values])


def to_value(value: Any) -> struct_pb2.Value:
    """Convert a single Python value into the representation Spanner expects."""
    if value is None:
        return struct_pb2.Value(null_value=struct_pb2.NULL_VALUE)
    if isinstance(value, bool):
        return struct_pb2.Value(bool_value=value)
    if isinstance(value, int):
        # INT64 travels as a string to survive the double-precision number_value.
        return struct_pb2.Value(string_value=str(value))
    if isinstance(value, float):
        if math.isnan(value):
            return struct_pb2.Value(string_value="NaN")
        if math.isinf(value):
            return struct_pb2.Value(string_value="Infinity" if value > 0 else "-Infinity")
        return struct_pb2.Value(number_value=value)
    if isinstance(value, Decimal):
        return struct_pb2.Value(string_value=str(value))
    if isinstance(value, str):
        return struct_pb2.Value(string_value=value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return struct_pb2.Value(string_value=base64.b64encode(bytes(value)).decode("ascii"))
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        utc = value.astimezone(datetime.timezone.utc)
        return struct_pb2.Value(string_value=utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ"))
    if isinstance(value, datetime.date):
        return struct_pb2.Value(string_value=value.isoformat())
    if isinstance(value, Mapping):
        return struct_pb2.Value(
            struct_value=struct_pb2.Struct(fields={str(key): to_value(item) for key, item in value.items()})
        )
    if isinstance(value, (list, tuple)):
        return struct_pb2.Value(list_value=to_list_value(value))
    raise TypeError(f"Cannot convert {type(value).__name__} to a Spanner value")
