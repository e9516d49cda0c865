from __future__ import annotations


class PageComposerError(Exception):
    """Base class for errors raised by the page composer."""


class InvalidInputError(PageComposerError, ValueError):
    """Raised when a caller passes structurally malformed input."""


class UnknownKindError(PageComposerError, LookupError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"No variant registered for section kind: {kind}")
        self.kind = kind


class SessionNotFoundError(PageComposerError, KeyError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Editing session not found: {session_id}")
        self.session_id = session_id

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "PageComposerError",
    "InvalidInputError",
    "UnknownKindError",
    "SessionNotFoundError",
]
