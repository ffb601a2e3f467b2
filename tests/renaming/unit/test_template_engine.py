"""Rename template language tests."""

from __future__ import annotations

import pytest
from oas_joiner.renaming import TemplateError, parse_template, render_template


def _render(text: str, **values) -> str:
    base = {"Name": "User", "Source": "orders", "Index": 1, "Path": "", "OperationID": ""}
    base.update(values)
    return render_template(parse_template(text), base)


def test_fields_and_literal_text_render_in_order() -> None:
    assert _render("{Name}_{Source}") == "User_orders"
    assert _render("V{Index}{Name}") == "V1User"


def test_doubled_braces_are_literal() -> None:
    assert _render("{{{Name}}}") == "{User}"


def test_pipelines_pass_the_value_as_first_argument() -> None:
    rendered = _render("{Name}_{Path | pathSegment(-1) | pascalCase}", Path="/users/{id}/orders")

    assert rendered == "User_Orders"


def test_nested_calls_and_string_literals() -> None:
    assert _render('{default(OperationID, "op")}_{Name}') == "op_User"
    assert _render("{coalesce(OperationID, Source, Name)}") == "orders"
    assert _render("{Name | snakeCase}_{'x\\'y'}") == "user_x'y"


def test_list_and_boolean_values_render_as_text() -> None:
    assert _render("{Name}_{Tags}", Tags=("pets", "store")) == "User_pets_store"
    assert _render("{IsShared}", IsShared=True) == "true"
    assert _render("{hasTag(Tags, 'pets')}", Tags=("pets",)) == "true"


@pytest.mark.parametrize(
    ("text", "detail"),
    [
        ("{Name", "unclosed '{'"),
        ("Name}", "unmatched '}'"),
        ("{}", "empty placeholder"),
        ("{Nope}", "undefined field 'Nope'"),
        ("{Name | shout}", "undefined function 'shout'"),
        ("{pathSegment(Path)}", "pathSegment takes 2 argument"),
        ("{Name Source}", "unexpected 'Source'"),
        ("{Name | }", "expected a function name"),
        ("{Name $}", "unexpected character"),
    ],
)
def test_invalid_templates_are_rejected_at_parse_time(text: str, detail: str) -> None:
    with pytest.raises(TemplateError) as excinfo:
        parse_template(text)

    assert detail in excinfo.value.detail
    assert excinfo.value.template == text


def test_empty_rendered_name_is_an_error() -> None:
    with pytest.raises(TemplateError, match="empty name"):
        _render("{OperationID}")


def test_function_errors_surface_as_template_errors() -> None:
    with pytest.raises(TemplateError, match="pathSegment: expected an integer"):
        _render("{pathSegment(Path, Name)}", Path="/users")


def test_fields_missing_from_values_are_reported_during_rendering() -> None:
    template = parse_template("{Name}_{Method}")

    with pytest.raises(TemplateError, match="undefined field 'Method'"):
        render_template(template, {"Name": "User"})
