"""Hanna code snippet model, attribute block codec and storage."""

from .attrs_block import pack_code, unpack_code
from .model import NOT_CONSUMING, CodeKind, Snippet
from .repository import SnippetRepository

__all__ = [
    "CodeKind",
    "NOT_CONSUMING",
    "Snippet",
    "SnippetRepository",
    "pack_code",
    "unpack_code",
]
