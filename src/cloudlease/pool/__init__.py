"""Bounded pooling of leased server-side sessions."""

from .session import KeepaliveResult, PoolDiagnostics, SessionPool

__all__: list[str] = ["KeepaliveResult", "PoolDiagnostics", "SessionPool"]
