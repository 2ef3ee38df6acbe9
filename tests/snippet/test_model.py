import pytest

from hanna_code.errors import InvalidArgument
from hanna_code.snippet.model import (
    NOT_CONSUMING,
    CodeKind,
    Snippet,
    decode_type,
    encode_type,
    name_to_type,
    parse_attrs,
    type_name,
)


def test_new_snippet_has_neutral_defaults():
    snippet = Snippet()

    assert snippet.id == 0
    assert snippet.name == ""
    assert snippet.type == 0
    assert snippet.code == ""
    assert snippet.attrs == {}
    assert snippet.modified == 0
    assert snippet.accessed == 0
    assert snippet.is_markup()
    assert snippet.is_consuming()


@pytest.mark.parametrize("kind", [0, 1, 2])
@pytest.mark.parametrize("flag", [True, False])
@pytest.mark.parametrize("type_first", [True, False])
def test_type_and_consuming_flag_are_independent(kind, flag, type_first):
    snippet = Snippet(type=NOT_CONSUMING if not flag else 0)

    if type_first:
        snippet.set_type(kind)
        snippet.is_not_consuming(flag)
    else:
        snippet.is_not_consuming(flag)
        snippet.set_type(kind)

    assert snippet.code_type() == kind
    assert snippet.is_not_consuming() is flag


def test_set_type_keeps_not_consuming_flag():
    snippet = Snippet()
    snippet.is_not_consuming(True)

    snippet.set_type("php")

    assert snippet.type == CodeKind.PROGRAM + NOT_CONSUMING
    assert snippet.is_program()
    assert snippet.is_not_consuming()


@pytest.mark.parametrize("value", ["html", "Js", "PHP", "script", "2"])
def test_set_type_accepts_names_case_insensitively(value):
    snippet = Snippet()

    snippet.set_type(value)

    assert snippet.type_name() == type_name(name_to_type(value))


def test_set_type_rejects_unknown_name_without_mutating():
    snippet = Snippet(type=CodeKind.SCRIPT)

    with pytest.raises(InvalidArgument):
        snippet.set_type("python")
    with pytest.raises(InvalidArgument):
        snippet.set_type(3)

    assert snippet.type == CodeKind.SCRIPT


@pytest.mark.parametrize("name", ["HTML", "JS", "PHP"])
def test_type_name_round_trips_with_name_to_type(name):
    assert type_name(name_to_type(name.lower())) == name
    assert Snippet().type_name(name_to_type(name)) == name


def test_name_to_type_reports_no_match():
    assert name_to_type("python") is None
    assert Snippet().name_to_type("") is None


def test_type_name_is_empty_for_invalid_values():
    assert type_name(3) == ""
    assert type_name(8) == ""
    assert type_name(-1) == ""


def test_type_name_ignores_not_consuming_flag():
    assert type_name(CodeKind.SCRIPT + NOT_CONSUMING) == "JS"
    assert type_name(NOT_CONSUMING) == "HTML"


def test_decode_type_rejects_two_base_kinds():
    with pytest.raises(InvalidArgument):
        decode_type(CodeKind.SCRIPT | CodeKind.PROGRAM)


def test_encode_decode_type():
    assert encode_type(CodeKind.PROGRAM, True) == 6
    assert decode_type(6) == (CodeKind.PROGRAM, True)
    assert decode_type(1) == (CodeKind.SCRIPT, False)


def test_has_type_is_a_bit_test():
    snippet = Snippet(type=CodeKind.SCRIPT + NOT_CONSUMING)

    assert snippet.has_type("js")
    assert snippet.has_type(NOT_CONSUMING)
    assert not snippet.has_type(CodeKind.PROGRAM)
    assert not snippet.has_type("HTML")
    assert not snippet.has_type("unknown")


def test_markup_is_neither_program_nor_script():
    assert Snippet(type=NOT_CONSUMING).is_markup()
    assert not Snippet(type=CodeKind.PROGRAM).is_markup()
    assert not Snippet(type=CodeKind.SCRIPT).is_markup()


def test_is_consuming_setter_inverts_and_returns_previous_state():
    snippet = Snippet()

    previous = snippet.is_consuming(False)

    assert previous is True
    assert snippet.is_not_consuming()
    assert snippet.type == NOT_CONSUMING

    assert snippet.is_consuming(True) is False
    assert snippet.is_consuming()
    assert snippet.type == 0


def test_type_property_assignment_coerces_and_decodes():
    snippet = Snippet()

    snippet.type = "5"

    assert snippet.kind is CodeKind.SCRIPT
    assert snippet.not_consuming is True


def test_invalid_type_in_constructor_is_rejected():
    with pytest.raises(ValueError):
        Snippet(type=3)


def test_integer_fields_are_coerced():
    snippet = Snippet(id="12", modified="1700000000")

    snippet.accessed = "42"
    assert snippet.accessed == 42

    snippet.accessed = "not a number"
    assert snippet.accessed == 0

    assert snippet.id == 12
    assert snippet.modified == 1_700_000_000


def test_parse_attrs_handles_bare_keys():
    assert parse_attrs("first_name=Karena\ncolor") == {"first_name": "Karena", "color": ""}


def test_parse_attrs_strips_quotes_and_blank_keys():
    attrs = parse_attrs('first_name="Karena"\n  last = \'Cramer\' \n\n=orphan\n')

    assert attrs == {"first_name": "Karena", "last": "Cramer"}


def test_parse_attrs_splits_on_first_equals_only():
    assert parse_attrs("query=a=b") == {"query": "a=b"}


def test_set_attrs_dispatches_on_input_type():
    snippet = Snippet(attrs="color=red\nsize")

    assert snippet.set_attrs() == {"color": "red", "size": ""}
    assert snippet.set_attrs({"width": 10}) == {"width": "10"}
    assert snippet.attrs == {"width": "10"}
    assert snippet.set_attrs(42) == {}
    assert snippet.attrs == {}


def test_attrs_preserve_insertion_order():
    snippet = Snippet(attrs="zeta=1\nalpha=2\nmid=3")

    assert list(snippet.attrs) == ["zeta", "alpha", "mid"]


def test_merged_attrs_prefers_call_site_values():
    snippet = Snippet(attrs={"first_name": "", "color": "blue"})

    merged = snippet.merged_attrs({"first_name": "Karena"})

    assert merged == {"first_name": "Karena", "color": "blue"}
    assert snippet.attrs == {"first_name": "", "color": "blue"}
