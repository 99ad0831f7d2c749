"""Exception hierarchy.

Parsing, tag repair and the highlight position model are total functions and
never raise. Only rendering and editing-session misuse surface errors.
"""

from __future__ import annotations


class CardCutterError(Exception):
    """Base class for all CardCutter errors."""


class ExportError(CardCutterError):
    """A renderer failed to produce a document.

    No partial document is ever returned alongside this error.
    """

    def __init__(self, message: str, fmt: str) -> None:
        self.fmt = fmt
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.fmt} export failed: {self.args[0]}"


class SessionError(CardCutterError):
    """An editing session was opened twice or used after closing."""


class CardNotFoundError(CardCutterError, KeyError):
    """No card with the requested id exists in the collection."""

    def __init__(self, card_id: str) -> None:
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"No card with id {self.card_id!r}"
