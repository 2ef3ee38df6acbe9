"""Exception and warning types raised by the Hanna Code core."""

from __future__ import annotations


class HannaCodeError(Exception):
    """Base exception for Hanna Code operations."""


class InvalidArgument(HannaCodeError, ValueError):
    """Raised when a type name or value cannot be resolved."""


class StoreError(HannaCodeError):
    """Raised when the backing store rejects an operation."""


class DuplicateNameError(StoreError):
    """Raised when a snippet name collides and cannot be resolved."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"Hanna code name already in use: {name}")
        self.name = name


class InvalidImportError(HannaCodeError, ValueError):
    """Raised when exported snippet text cannot be decoded."""


class ReservedAttributeWarning(UserWarning):
    """Issued when an attribute name collides with a reserved identifier."""


__all__ = [
    "DuplicateNameError",
    "HannaCodeError",
    "InvalidArgument",
    "InvalidImportError",
    "ReservedAttributeWarning",
    "StoreError",
]
