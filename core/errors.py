"""Exceptions raised at the task service boundary."""
from __future__ import annotations

from typing import Dict, Mapping


class ValidationError(ValueError):
    """A task draft was rejected before reaching the lifecycle engine.

    ``errors`` maps draft field names to user-facing messages.
    """

    def __init__(self, errors: Mapping[str, str]):
        self.errors: Dict[str, str] = dict(errors)
        summary = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(summary or "Invalid task")


class ImportFormatError(ValueError):
    """An import document could not be parsed or has the wrong shape."""


class StoreError(RuntimeError):
    """The persistence backend failed to read or write the collection."""


__all__ = ["ValidationError", "ImportFormatError", "StoreError"]
