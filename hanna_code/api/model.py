"""Pydantic models for the public API surface."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from ..snippet import Snippet


class SnippetCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, description="Tag name")
    type: int | str = Field(0, description="Type value or name (HTML, JS, PHP)")
    not_consuming: bool = Field(
        False, description="Keep the wrapping around the tag instead of replacing it"
    )
    code: str = Field("", description="Code body without the attribute block")
    attrs: Dict[str, str] | str | None = Field(
        None, description="Default attributes as a mapping or key=value lines"
    )


class SnippetUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    type: int | str | None = None
    not_consuming: bool | None = None
    code: str | None = None
    attrs: Dict[str, str] | str | None = None


class SnippetResponse(BaseModel):
    id: int
    name: str
    type: int
    type_name: str
    not_consuming: bool
    code: str
    attrs: Dict[str, str]
    modified: int
    accessed: int
    notices: List[str] = Field(default_factory=list)

    @classmethod
    def from_snippet(cls, snippet: Snippet, notices: List[str] | None = None) -> "SnippetResponse":
        return cls(
            id=snippet.id,
            name=snippet.name,
            type=snippet.type,
            type_name=snippet.type_name(),
            not_consuming=snippet.not_consuming,
            code=snippet.code,
            attrs=dict(snippet.attrs),
            modified=snippet.modified,
            accessed=snippet.accessed,
            notices=notices or [],
        )


class SnippetExportResponse(BaseModel):
    name: str
    data: str


class SnippetImportRequest(BaseModel):
    data: str = Field(..., min_length=1, description="Text produced by the export route")
    replace: bool = Field(False, description="Overwrite an existing code with the same name")


__all__ = [
    "SnippetCreateRequest",
    "SnippetExportResponse",
    "SnippetImportRequest",
    "SnippetResponse",
    "SnippetUpdateRequest",
]
