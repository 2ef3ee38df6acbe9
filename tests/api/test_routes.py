from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from hanna_code.api.model import (
    SnippetCreateRequest,
    SnippetImportRequest,
    SnippetUpdateRequest,
)
from hanna_code.api.routes import (
    create_code,
    delete_code,
    export_code,
    get_code,
    import_code,
    list_codes,
    touch_code,
    get_repository,
    update_code,
)
from hanna_code.api.server import create_app
from hanna_code.config import HannaSettings


def _create(repository, name, **fields):
    return create_code(SnippetCreateRequest(name=name, **fields), repository=repository)


def test_create_and_get_code(repository):
    created = _create(
        repository,
        "hello_world",
        type="PHP",
        code="echo 'Hello ' . $first_name;",
        attrs="first_name=Karena",
    )

    assert created.id > 0
    assert created.type == 2
    assert created.type_name == "PHP"
    assert created.notices == []

    fetched = get_code("hello_world", repository=repository)
    assert fetched.id == created.id
    assert fetched.attrs == {"first_name": "Karena"}
    assert fetched.code == "echo 'Hello ' . $first_name;"


def test_create_duplicate_name_reports_suffix(repository):
    _create(repository, "foo")

    second = _create(repository, "foo")

    assert second.name == "foo-1"
    assert any("foo-1" in notice for notice in second.notices)


def test_create_reports_reserved_attribute_names(repository):
    with pytest.warns(UserWarning):
        created = _create(repository, "widget", attrs={"name": "x", "page": "2", "size": "3"})

    assert created.attrs == {"name": "x", "page": "2", "size": "3"}
    assert len(created.notices) == 2
    assert get_code("widget", repository=repository).attrs == {
        "_name": "x",
        "_page": "2",
        "size": "3",
    }


def test_create_rejects_unknown_type(repository):
    with pytest.raises(HTTPException) as exc_info:
        _create(repository, "bad", type="python")

    assert exc_info.value.status_code == 422
    assert repository.get("bad").id == 0


def test_get_missing_code_is_404(repository):
    with pytest.raises(HTTPException) as exc_info:
        get_code("missing", repository=repository)

    assert exc_info.value.status_code == 404


def test_list_codes_uses_sort(repository):
    _create(repository, "b")
    _create(repository, "a")

    assert [item.name for item in list_codes(sort="-name", repository=repository)] == ["b", "a"]
    assert [item.name for item in list_codes(sort="bogus", repository=repository)] == ["a", "b"]


def test_update_code_changes_only_given_fields(repository):
    created = _create(repository, "card", type="JS", code="x()", attrs={"a": "1"})

    updated = update_code(
        str(created.id),
        SnippetUpdateRequest(code="y()", not_consuming=True),
        repository=repository,
    )

    assert updated.code == "y()"
    assert updated.type_name == "JS"
    assert updated.not_consuming is True
    assert updated.attrs == {"a": "1"}

    retyped = update_code("card", SnippetUpdateRequest(type="HTML"), repository=repository)
    assert retyped.type == 4


def test_update_to_existing_name_is_409(repository):
    _create(repository, "taken")
    _create(repository, "other")

    with pytest.raises(HTTPException) as exc_info:
        update_code("other", SnippetUpdateRequest(name="taken"), repository=repository)

    assert exc_info.value.status_code == 409


def test_delete_code(repository):
    _create(repository, "short_lived")

    delete_code("short_lived", repository=repository)

    assert repository.get("short_lived").id == 0
    with pytest.raises(HTTPException) as exc_info:
        delete_code("short_lived", repository=repository)
    assert exc_info.value.status_code == 404


def test_touch_code_sets_accessed(repository, clock):
    created = _create(repository, "visited")
    clock.advance(30)

    touched = touch_code("visited", repository=repository)

    assert touched.accessed == clock.now
    assert touched.modified == created.modified


def test_export_then_import(repository):
    _create(repository, "portable", code="<b>{label}</b>", attrs={"label": "Go"})
    exported = export_code("portable", repository=repository)
    assert exported.data.startswith("!HannaCode:portable:")

    with pytest.raises(HTTPException) as exc_info:
        import_code(SnippetImportRequest(data=exported.data), repository=repository)
    assert exc_info.value.status_code == 409

    delete_code("portable", repository=repository)
    imported = import_code(SnippetImportRequest(data=exported.data), repository=repository)

    assert imported.name == "portable"
    assert imported.attrs == {"label": "Go"}


def test_import_invalid_data_is_400(repository):
    with pytest.raises(HTTPException) as exc_info:
        import_code(SnippetImportRequest(data="garbage"), repository=repository)

    assert exc_info.value.status_code == 400


def test_app_serves_codes_over_http(repository):
    app = create_app(HannaSettings(database_url="sqlite://"))
    app.state.repository = repository

    with TestClient(app) as client:
        response = client.post("/codes", json={"name": "hello", "type": "JS", "code": "hi()"})
        assert response.status_code == 201
        code_id = response.json()["id"]

        response = client.get(f"/codes/{code_id}")
        assert response.status_code == 200
        assert response.json()["name"] == "hello"

        assert client.get("/codes/nope").status_code == 404
        assert client.delete("/codes/hello").status_code == 204
        assert client.get("/codes").json() == []


def _request_with_state(**state):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


def test_get_repository_uses_repository_from_app_state(repository):
    assert get_repository(_request_with_state(repository=repository)) is repository


def test_get_repository_requires_lifespan_initialisation():
    with pytest.raises(RuntimeError, match="not been initialised"):
        get_repository(_request_with_state())
