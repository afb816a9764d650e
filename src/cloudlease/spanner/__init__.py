"""Transactional Spanner client over pooled sessions."""

from .batch import Batch
from .client import Client
from .convert import to_list_value, to_value
from .gateway import SpannerGateway
from .mutation import ALL_ROWS, KeyRange, Mutations, to_key_set

__all__: list[str] = [
    "ALL_ROWS",
    "Batch",
    "Client",
    "KeyRange",
    "Mutations",
    "SpannerGateway",
    "to_key_set",
    "to_list_value",
    "to_value",
]
