"""Embedding of default attributes inside stored snippet code.

Stored code may begin with a comment block holding one attribute per line::

    /*hc_attr
    first_name="Karena"
    color
    hc_attr*/
    <code body>

``pack_code`` writes that block and ``unpack_code`` splits it back out. Both
rename attribute names that collide with a reserved identifier by prefixing an
underscore, so neither ever fails on bad input.
"""

from __future__ import annotations

import logging
import re
import warnings
from typing import Callable, Dict, Iterable, Mapping, Tuple

from ..errors import ReservedAttributeWarning
from .model import parse_attrs

logger = logging.getLogger("hanna_code")

ATTR_HEADER = "/*hc_attr"
ATTR_FOOTER = "hc_attr*/"
RESERVED_WORDS = frozenset({"name", "hanna", "attr"})
MAX_NAME_LENGTH = 128

ReservedNamePredicate = Callable[[str], bool]

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")
_BLOCK_TOKENS = ("/*", "*/", "hc_attr")


def is_reserved_name(name: str, is_reserved: ReservedNamePredicate | None = None) -> bool:
    """Whether ``name`` is a literal reserved word or a host identifier."""
    if not name:
        return False
    if name in RESERVED_WORDS:
        return True
    return bool(is_reserved(name)) if is_reserved is not None else False


def sanitize_attr_name(name: str) -> str:
    """Reduce ``name`` to a safe field-name token."""
    return _UNSAFE_NAME_CHARS.sub("_", name.strip())[:MAX_NAME_LENGTH]


def sanitize_attr_value(value: str) -> str:
    value = value.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
    # Removing one token can join the halves of another, so repeat until stable.
    previous = None
    while previous != value:
        previous = value
        for token in _BLOCK_TOKENS:
            value = value.replace(token, "")
    return value


def _quote(value: str) -> str:
    return '"' + value.replace('"', '\\"') + '"'


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1].replace('\\"', '"')
    return value.strip('"')


def _attr_pairs(attrs: Mapping[str, str] | str | None) -> Iterable[Tuple[str, str]]:
    if attrs is None:
        return
    if isinstance(attrs, Mapping):
        for name, value in attrs.items():
            yield str(name), "" if value is None else str(value)
        return
    yield from parse_attrs(str(attrs)).items()


def unpack_code(
    stored: str,
    is_reserved: ReservedNamePredicate | None = None,
) -> Tuple[str, Dict[str, str]]:
    """Split stored text into ``(code, attrs)``.

    Text without a well-formed attribute block comes back unchanged with no
    attributes.
    """
    stored = stored or ""
    end = stored.find(ATTR_FOOTER)
    if end == -1 or not stored.startswith(ATTR_HEADER):
        return stored, {}

    code = stored[end + len(ATTR_FOOTER):]
    if code.startswith("\r\n"):
        code = code[2:]
    elif code.startswith("\n"):
        code = code[1:]

    attrs: Dict[str, str] = {}
    for line in stored[len(ATTR_HEADER):end].split("\n"):
        name, _, value = line.partition("=")
        name = name.strip(" \t\r\n=")
        if not name:
            continue
        if is_reserved_name(name, is_reserved):
            name = f"_{name}"
        attrs[name] = _unquote(value.strip("\r\n="))
    return code, attrs


def pack_code(
    code: str,
    attrs: Mapping[str, str] | str | None,
    is_reserved: ReservedNamePredicate | None = None,
) -> str:
    """Prepend an attribute block for ``attrs`` to ``code``.

    Returns ``code`` unchanged when there is nothing to pack.
    """
    lines = []
    for raw_name, raw_value in _attr_pairs(attrs):
        name = sanitize_attr_name(raw_name)
        if not name:
            continue
        if is_reserved_name(name, is_reserved):
            message = f"Disallowed attribute name: {name}"
            logger.warning(message)
            warnings.warn(message, ReservedAttributeWarning, stacklevel=2)
            name = f"_{name}"
        value = sanitize_attr_value(raw_value)
        lines.append(f"{name}={_quote(value)}" if value else name)

    if not lines:
        return code
    block = "\n".join(lines)
    return f"{ATTR_HEADER}\n{block}\n{ATTR_FOOTER}\n{code}"


__all__ = [
    "ATTR_FOOTER",
    "ATTR_HEADER",
    "RESERVED_WORDS",
    "ReservedNamePredicate",
    "is_reserved_name",
    "pack_code",
    "sanitize_attr_name",
    "sanitize_attr_value",
    "unpack_code",
]
