import pytest

from mailform.bundle import build_export
from mailform.builder.preview import PreviewSession, build_preview


@pytest.fixture
def exported(dependent_blocks):
    return build_export(dependent_blocks).files()


def test_load_reports_missing_schema_first():
    status = PreviewSession().load({})
    assert status.ok is False
    assert status.error == "missing_artifact"
    assert status.message == "schema.json not found. Please provide both schema.json and template.html."


def test_load_reports_missing_template():
    status = PreviewSession().load({"schema.json": "{}"})
    assert status.error == "missing_artifact"
    assert status.message.startswith("template.html not found.")


def test_load_reports_malformed_schema_and_keeps_session_empty():
    session = PreviewSession()
    status = session.load({"schema.json": "{oops", "template.html": ""})
    assert status.error == "malformed_schema"
    assert session.loaded is False
    with pytest.raises(RuntimeError):
        session.update({})


def test_preview_hides_and_requires_dependents(exported):
    session = PreviewSession()
    status = session.load(exported)
    assert status.ok is True
    assert status.message == "Both files loaded successfully."

    hidden = session.update({"has_pet": "no", "pet_name": "Secret Rex"})
    assert hidden.hidden == ["pet_name"]
    assert hidden.required == ["has_pet"]
    assert list(hidden.active_schema["properties"]) == ["has_pet"]
    assert "Secret Rex" not in hidden.html
    assert hidden.errors == []

    shown = session.update({"has_pet": "yes"})
    assert shown.hidden == []
    assert shown.required == ["has_pet", "pet_name"]
    assert shown.errors == ["<root>: 'pet_name' is a required property"]

    filled = session.update({"has_pet": "yes", "pet_name": "Rex"})
    assert filled.errors == []
    assert "Rex" in filled.html


def test_build_preview_without_dependencies():
    schema = {"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]}
    state = build_preview(schema, "<p>Hi {{name}}</p>", {"name": "<Ann>"})
    assert state.html == "<p>Hi &lt;Ann&gt;</p>"
    assert state.required == ["name"]
    assert state.errors == []


def test_build_preview_survives_broken_template():
    state = build_preview({"properties": {}}, "{{#each x}}", {})
    assert state.html == "<p>Template rendering error</p>"


def test_load_rejects_unknown_property_type_up_front():
    session = PreviewSession()
    schema = '{"type": "object", "properties": {"a": {"type": "strnig"}}, "required": []}'
    status = session.load({"schema.json": schema, "template.html": "{{a}}"})
    assert status.ok is False
    assert status.error == "malformed_schema"
    assert session.loaded is False


def test_build_preview_raises_malformed_schema_for_bad_required():
    from mailform.errors import MalformedSchemaError

    with pytest.raises(MalformedSchemaError):
        build_preview({"type": "object", "properties": {}, "required": 5}, "", {})
