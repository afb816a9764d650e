"""Handle for a leased server-side database session."""

from .session import Session, SessionDiagnostics

__all__: list[str] = ["Session", "SessionDiagnostics"]
