"""Exception types raised by the shift roster service."""

from __future__ import annotations

from typing import Dict, Optional


class RosterError(RuntimeError):
    """Base class for shift roster failures."""


class NotFoundError(RosterError):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} {identifier!r} not found")
        self.kind = kind
        self.identifier = identifier


class ValidationError(RosterError):
    """Raised when submitted data is rejected; ``errors`` maps field to message."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None) -> None:
        super().__init__(message or "; ".join(f"{name}: {text}" for name, text in errors.items()))
        self.errors = errors


__all__ = ["RosterError", "NotFoundError", "ValidationError"]
