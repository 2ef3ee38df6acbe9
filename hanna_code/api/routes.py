"""FastAPI routes for managing Hanna codes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..errors import DuplicateNameError, InvalidArgument, InvalidImportError
from ..snippet import Snippet, SnippetRepository
from ..snippet.attrs_block import is_reserved_name, sanitize_attr_name
from .model import (
    SnippetCreateRequest,
    SnippetExportResponse,
    SnippetImportRequest,
    SnippetResponse,
    SnippetUpdateRequest,
)

logger = logging.getLogger("hanna_code")

router = APIRouter()


# Dependencies -----------------------------------------------------------------


def get_repository(request: Request) -> SnippetRepository:
    repository = getattr(request.app.state, "repository", None)
    if not isinstance(repository, SnippetRepository):
        raise RuntimeError("Hanna code repository has not been initialised")
    return repository


# Routes ----------------------------------------------------------------------


@router.get("/codes", response_model=List[SnippetResponse])
def list_codes(
    sort: str = Query("name", description="name, modified or accessed, '-' for descending"),
    repository: SnippetRepository = Depends(get_repository),
) -> List[SnippetResponse]:
    return [SnippetResponse.from_snippet(snippet) for snippet in repository.get_all(sort)]


@router.get("/codes/{key}", response_model=SnippetResponse)
def get_code(
    key: str,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetResponse:
    return SnippetResponse.from_snippet(_require_snippet(repository, key))


@router.post("/codes", response_model=SnippetResponse, status_code=status.HTTP_201_CREATED)
def create_code(
    payload: SnippetCreateRequest,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetResponse:
    snippet = repository.get_new()
    _apply_changes(snippet, payload.model_dump())
    notices = _attribute_notices(repository, snippet)
    try:
        repository.save(snippet)
    except DuplicateNameError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if snippet.name != payload.name:
        notices.append(f"Name {payload.name} is in use, saved as {snippet.name}")
    logger.info("Created Hanna code %s (id %d)", snippet.name, snippet.id)
    return SnippetResponse.from_snippet(snippet, notices)


@router.put("/codes/{key}", response_model=SnippetResponse)
def update_code(
    key: str,
    payload: SnippetUpdateRequest,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetResponse:
    snippet = _require_snippet(repository, key)
    _apply_changes(snippet, payload.model_dump(exclude_unset=True))
    notices = _attribute_notices(repository, snippet)
    try:
        saved = repository.save(snippet)
    except DuplicateNameError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if not saved:
        raise HTTPException(status_code=404, detail="Hanna code not found")
    return SnippetResponse.from_snippet(snippet, notices)


@router.delete("/codes/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_code(
    key: str,
    repository: SnippetRepository = Depends(get_repository),
) -> None:
    snippet = _require_snippet(repository, key)
    if not repository.delete(snippet):
        raise HTTPException(status_code=404, detail="Hanna code not found")


@router.post("/codes/{key}/touch", response_model=SnippetResponse)
def touch_code(
    key: str,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetResponse:
    snippet = _require_snippet(repository, key)
    repository.touch(snippet)
    return SnippetResponse.from_snippet(snippet)


@router.get("/codes/{key}/export", response_model=SnippetExportResponse)
def export_code(
    key: str,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetExportResponse:
    snippet = _require_snippet(repository, key)
    return SnippetExportResponse(name=snippet.name, data=repository.export_snippet(snippet))


@router.post("/codes/import", response_model=SnippetResponse, status_code=status.HTTP_201_CREATED)
def import_code(
    payload: SnippetImportRequest,
    repository: SnippetRepository = Depends(get_repository),
) -> SnippetResponse:
    try:
        snippet = repository.import_snippet(payload.data, replace=payload.replace)
    except InvalidImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateNameError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    logger.info("Imported Hanna code %s (id %d)", snippet.name, snippet.id)
    return SnippetResponse.from_snippet(snippet)


# Helpers ---------------------------------------------------------------------


def _require_snippet(repository: SnippetRepository, key: str) -> Snippet:
    snippet = repository.get(key)
    if not snippet.id:
        raise HTTPException(status_code=404, detail="Hanna code not found")
    return snippet


def _apply_changes(snippet: Snippet, changes: Dict[str, Any]) -> None:
    if changes.get("name") is not None:
        snippet.name = changes["name"]
    if changes.get("type") is not None:
        try:
            snippet.set_type(changes["type"])
        except InvalidArgument as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
    if changes.get("not_consuming") is not None:
        snippet.is_not_consuming(changes["not_consuming"])
    if changes.get("code") is not None:
        snippet.code = changes["code"]
    if "attrs" in changes:
        snippet.attrs = changes["attrs"]


def _attribute_notices(repository: SnippetRepository, snippet: Snippet) -> List[str]:
    notices = []
    for key in snippet.attrs:
        name = sanitize_attr_name(key)
        if is_reserved_name(name, repository.is_reserved):
            notices.append(f"Disallowed attribute name: {name} (saved as _{name})")
    return notices


__all__ = ["router", "get_repository"]
