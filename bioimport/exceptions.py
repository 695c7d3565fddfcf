"""Failure taxonomy of an import call."""

from __future__ import annotations

from typing import Optional


class BioImportError(Exception):
    """Base error for all import failures.

    Every subclass carries a fixed user-facing ``prefix``; :meth:`user_message`
    joins it with the failure detail the way the error dialog shows it.
    """

    prefix = "Sorry, there was a problem"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail if detail is not None else self.prefix)
        self.detail = detail

    def user_message(self) -> str:
        if not self.detail:
            return f"{self.prefix}."
        return f"{self.prefix}:\n{self.detail}"


class MissingSource(BioImportError, FileNotFoundError):
    """Raised when the chosen path does not reference an existing file."""

    def __init__(self, path: Optional[str] = None):
        super().__init__(path)
        self.path = path

    def user_message(self) -> str:
        where = f"({self.path}) " if self.path else ""
        return f"The specified file {where}does not exist."


class UnsupportedFormat(BioImportError):
    """Raised when no reader is able to open the file."""

    prefix = "Sorry, there was a problem reading the file"


class DecodeFailure(BioImportError):
    """Raised for any failure after the reader was resolved."""

    prefix = "Sorry, there was a problem reading the data"
