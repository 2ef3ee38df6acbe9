"""Hanna code snippet value type and its type flag encoding."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..errors import InvalidArgument

NOT_CONSUMING = 4


class CodeKind(IntEnum):
    """Base content kind of a snippet's code body."""

    MARKUP = 0
    SCRIPT = 1
    PROGRAM = 2

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


# Checked in this order when naming a type value.
_DISPLAY_NAMES = {
    CodeKind.PROGRAM: "PHP",
    CodeKind.SCRIPT: "JS",
    CodeKind.MARKUP: "HTML",
}

_NAME_TO_KIND = {
    "HTML": CodeKind.MARKUP,
    "MARKUP": CodeKind.MARKUP,
    "JS": CodeKind.SCRIPT,
    "SCRIPT": CodeKind.SCRIPT,
    "PHP": CodeKind.PROGRAM,
    "PROGRAM": CodeKind.PROGRAM,
}

_KNOWN_BITS = CodeKind.SCRIPT | CodeKind.PROGRAM | NOT_CONSUMING


def encode_type(kind: CodeKind, not_consuming: bool) -> int:
    """Pack a base kind and the not-consuming flag into the stored integer."""
    value = int(kind)
    if not_consuming:
        value += NOT_CONSUMING
    return value


def decode_type(value: int) -> Tuple[CodeKind, bool]:
    """Split a stored type integer into its base kind and not-consuming flag.

    Base kinds are mutually exclusive, so a value carrying both the script and
    program bits (or any unknown bit) is rejected instead of being resolved by
    whichever kind happens to be tested first.
    """
    value = int(value)
    if value < 0 or value & ~_KNOWN_BITS:
        raise InvalidArgument(f"Invalid Hanna code type value: {value}")
    base = value & ~NOT_CONSUMING
    if base == CodeKind.SCRIPT | CodeKind.PROGRAM:
        raise InvalidArgument(f"Hanna code type has more than one base kind: {value}")
    return CodeKind(base), bool(value & NOT_CONSUMING)


def name_to_type(name: Any) -> int | None:
    """Resolve a type name (or digit string) to its integer, ``None`` if unknown."""
    if isinstance(name, int):
        return name
    text = str(name).strip()
    if text.isascii() and text.isdigit():
        return int(text)
    kind = _NAME_TO_KIND.get(text.upper())
    if kind is None:
        return None
    return int(kind)


def type_name(value: int) -> str:
    """Display name for a type integer, or an empty string if it is not valid."""
    try:
        kind, _ = decode_type(value)
    except (InvalidArgument, TypeError, ValueError):
        return ""
    return kind.display_name


def parse_attrs(text: str) -> Dict[str, str]:
    """Parse ``key=value`` lines into an ordered attribute mapping.

    A line without ``=`` is a bare key with an empty default. Values lose
    surrounding whitespace and quote characters; blank keys are dropped.
    """
    attrs: Dict[str, str] = {}
    for line in text.split("\n"):
        key, sep, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip("\"'") if sep else ""
        if key:
            attrs[key] = value
    return attrs


def coerce_attrs(value: Any) -> Dict[str, str]:
    if isinstance(value, str):
        return parse_attrs(value)
    if isinstance(value, Mapping):
        return {
            str(key): "" if item is None else str(item)
            for key, item in value.items()
        }
    return {}


def _coerce_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return 0


class Snippet(BaseModel):
    """A named Hanna code with its default attributes.

    The stored ``type`` integer is exposed as a property; in memory the snippet
    keeps the base ``kind`` and the ``not_consuming`` flag separately.
    """

    id: int = 0
    name: str = ""
    kind: CodeKind = CodeKind.MARKUP
    not_consuming: bool = False
    code: str = ""
    attrs: Dict[str, str] = Field(default_factory=dict)
    modified: int = 0
    accessed: int = 0

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _split_type(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "type" in data:
            data = dict(data)
            kind, not_consuming = decode_type(_coerce_int(data.pop("type")))
            data.setdefault("kind", kind)
            data.setdefault("not_consuming", not_consuming)
        return data

    @field_validator("id", "modified", "accessed", mode="before")
    @classmethod
    def _coerce_int_fields(cls, value: Any) -> int:
        return _coerce_int(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _resolve_kind_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            resolved = name_to_type(value)
            if resolved is not None:
                return resolved
        return value

    @field_validator("attrs", mode="before")
    @classmethod
    def _parse_attrs(cls, value: Any) -> Dict[str, str]:
        return coerce_attrs(value)

    @property
    def type(self) -> int:
        return encode_type(self.kind, self.not_consuming)

    @type.setter
    def type(self, value: Any) -> None:
        kind, not_consuming = decode_type(_coerce_int(value))
        self.kind = kind
        self.not_consuming = not_consuming

    def set_attrs(self, value: Any = None) -> Dict[str, str]:
        """Get the attributes, or replace them from a string or mapping.

        Input that is neither clears the attributes.
        """
        if value is None:
            return self.attrs
        self.attrs = value
        return self.attrs

    def merged_attrs(self, overlay: Any = None) -> Dict[str, str]:
        """Default attributes overlaid with call-site values (call-site wins)."""
        merged = dict(self.attrs)
        merged.update(coerce_attrs(overlay))
        return merged

    def set_type(self, value: int | str) -> None:
        """Set the base kind by integer or name, keeping the not-consuming flag."""
        resolved = name_to_type(value)
        if resolved is None:
            raise InvalidArgument(f"Invalid set_type() argument: {value!r}")
        kind, not_consuming = decode_type(resolved)
        self.kind = kind
        if not_consuming:
            self.not_consuming = True

    def has_type(self, value: int | str) -> bool:
        resolved = name_to_type(value)
        if resolved is None:
            return False
        return bool(self.type & resolved)

    def type_name(self, value: int | None = None) -> str:
        return type_name(self.type if value is None else value)

    def name_to_type(self, name: Any) -> int | None:
        return name_to_type(name)

    def code_type(self) -> int:
        """Base kind only, without the not-consuming flag."""
        return int(self.kind)

    def is_program(self) -> bool:
        return self.kind is CodeKind.PROGRAM

    def is_script(self) -> bool:
        return self.kind is CodeKind.SCRIPT

    def is_markup(self) -> bool:
        return not self.is_program() and not self.is_script()

    def is_consuming(self, set_to: bool | None = None) -> bool:
        """Get or set the consuming state; returns the state before any change."""
        if set_to is not None:
            set_to = not set_to
        return not self.is_not_consuming(set_to)

    def is_not_consuming(self, set_to: bool | None = None) -> bool:
        """Get or set the not-consuming flag; returns the state before any change."""
        current = self.not_consuming
        if set_to is not None:
            self.not_consuming = bool(set_to)
        return current


__all__ = [
    "CodeKind",
    "NOT_CONSUMING",
    "Snippet",
    "coerce_attrs",
    "decode_type",
    "encode_type",
    "name_to_type",
    "parse_attrs",
    "type_name",
]
