"""Portable text format for moving a Hanna code between installations.

An export is a single line::

    !HannaCode:<name>:<base64 JSON of name, type and packed code>/!HannaCode
"""

from __future__ import annotations

import base64
import json
import re
from typing import Callable, Dict, Mapping, Tuple

from pydantic import ValidationError

from ..errors import InvalidImportError
from .model import Snippet

EXPORT_PREFIX = "!HannaCode"
EXPORT_SUFFIX = "/!HannaCode"

_EXPORT_PATTERN = re.compile(r"!HannaCode:([^:]+):(.*?)/!HannaCode", re.DOTALL)


def export_snippet(
    snippet: Snippet,
    pack: Callable[[str, Mapping[str, str]], str],
) -> str:
    payload = {
        "name": snippet.name,
        "type": snippet.type,
        "code": pack(snippet.code, snippet.attrs),
    }
    encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    return f"{EXPORT_PREFIX}:{snippet.name}:{encoded}{EXPORT_SUFFIX}"


def parse_export(
    text: str,
    unpack: Callable[[str], Tuple[str, Dict[str, str]]],
) -> Snippet:
    """Decode export text into a new, unsaved snippet."""
    match = _EXPORT_PATTERN.search(text or "")
    if match is None:
        raise InvalidImportError("Unrecognized Hanna code export data")
    name, encoded = match.group(1), "".join(match.group(2).split())

    try:
        data = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    except ValueError as exc:
        raise InvalidImportError(f"Unable to decode Hanna code export for {name}") from exc
    if not isinstance(data, dict):
        raise InvalidImportError(f"Unexpected Hanna code export payload for {name}")
    if data.get("name") != name:
        raise InvalidImportError(
            f"Hanna code export name mismatch: {name} vs {data.get('name')!r}"
        )

    code, attrs = unpack(str(data.get("code") or ""))
    try:
        return Snippet(name=name, type=data.get("type", 0), code=code, attrs=attrs)
    except (ValidationError, ValueError) as exc:
        raise InvalidImportError(f"Invalid Hanna code export for {name}: {exc}") from exc


__all__ = ["EXPORT_PREFIX", "EXPORT_SUFFIX", "export_snippet", "parse_export"]
