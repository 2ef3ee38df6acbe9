"""Hanna Code: named snippets expanded from bracketed tags."""

from .config import HannaSettings, create_repository
from .errors import (
    DuplicateNameError,
    HannaCodeError,
    InvalidArgument,
    InvalidImportError,
    ReservedAttributeWarning,
    StoreError,
)
from .snippet import CodeKind, NOT_CONSUMING, Snippet, SnippetRepository

__all__ = [
    "CodeKind",
    "DuplicateNameError",
    "HannaCodeError",
    "HannaSettings",
    "InvalidArgument",
    "InvalidImportError",
    "NOT_CONSUMING",
    "ReservedAttributeWarning",
    "Snippet",
    "SnippetRepository",
    "StoreError",
    "create_repository",
]
