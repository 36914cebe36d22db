import pytest

from mailform.form_planning.derivation import derive_form_schema


def _dynamic_text(block_id, name, label="", **field):
    return {
        "id": block_id,
        "type": "text",
        "content": "",
        "isDynamic": True,
        "dynamicField": {"variableName": name, "fieldLabel": label, **field},
    }


def test_empty_layout_yields_empty_schema():
    d = derive_form_schema([])
    assert d.is_empty
    assert d.to_json_schema() == {"type": "object", "properties": {}, "required": []}
    assert d.to_document() == {"type": "object", "properties": {}, "required": []}


def test_dynamic_fields_map_to_json_schema_types():
    d = derive_form_schema(
        [
            _dynamic_text("b1", "client_name", "Client name", required=True),
            _dynamic_text("b2", "amount", "Amount", fieldType="number"),
            _dynamic_text("b3", "agree", "Agree", fieldType="checkbox"),
            _dynamic_text("b4", "mail", "Mail", fieldType="email"),
            _dynamic_text("b5", "size", "Size", fieldType="select", options=["s", "", "m"]),
            _dynamic_text("b6", "note", "", fieldType="textarea", defaultValue="n/a"),
        ]
    )
    assert list(d.properties) == ["client_name", "amount", "agree", "mail", "size", "note"]
    assert d.properties["client_name"] == {"type": "string", "title": "Client name"}
    assert d.properties["amount"]["type"] == "number"
    assert d.properties["agree"]["type"] == "boolean"
    assert d.properties["mail"] == {"type": "string", "title": "Mail", "format": "email"}
    assert d.properties["size"]["enum"] == ["s", "m"]
    assert d.properties["note"] == {"type": "string", "title": "note", "default": "n/a"}
    assert d.required == ["client_name"]


def test_dynamic_block_without_variable_name_is_skipped():
    d = derive_form_schema([{"id": "b1", "type": "image", "isDynamic": True, "dynamicField": {"variableName": ""}}])
    assert d.is_empty


def test_derivation_is_deterministic():
    blocks = [_dynamic_text("b1", "a", "A", required=True), _dynamic_text("b2", "b", "B")]
    assert derive_form_schema(blocks).to_document() == derive_form_schema(blocks).to_document()


def test_dependent_field_goes_into_dependencies_not_required(dependent_blocks):
    d = derive_form_schema(dependent_blocks)
    assert set(d.properties) == {"has_pet", "pet_name"}
    assert d.required == ["has_pet"]
    assert d.dependencies == {
        "has_pet": {
            "oneOf": [
                {"properties": {"has_pet": {"const": "yes"}}, "required": ["pet_name"]},
            ]
        }
    }
    assert "dependencies" in d.to_json_schema()


def test_incomplete_dependency_is_ignored():
    d = derive_form_schema(
        [
            _dynamic_text(
                "b1", "pet_name", "Pet", required=True, dependency={"parentVariable": "has_pet", "expectedValue": ""}
            )
        ]
    )
    assert d.required == ["pet_name"]
    assert d.dependencies == {}
    assert "dependencies" not in d.to_json_schema()


def test_dependents_on_same_parent_value_share_a_clause():
    dep = {"parentVariable": "kind", "expectedValue": "b2b"}
    d = derive_form_schema(
        [
            _dynamic_text("b1", "company", dependency=dep),
            _dynamic_text("b2", "vat", dependency=dep),
            _dynamic_text("b3", "nickname", dependency={"parentVariable": "kind", "expectedValue": "b2c"}),
        ]
    )
    branches = d.dependencies["kind"]["oneOf"]
    assert branches[0] == {"properties": {"kind": {"const": "b2b"}}, "required": ["company", "vat"]}
    assert branches[1] == {"properties": {"kind": {"const": "b2c"}}, "required": ["nickname"]}


def test_choice_groups_emit_enums_and_widgets():
    options = [{"label": "Cheese", "value": "cheese"}, {"label": "Ham", "value": "ham"}]
    d = derive_form_schema(
        [
            {
                "id": "b1",
                "type": "checkbox-group",
                "dynamicField": {"variableName": "toppings", "fieldLabel": "Toppings", "required": True},
                "groupOptions": options,
            },
            {
                "id": "b2",
                "type": "radio-group",
                "dynamicField": {"variableName": "size", "fieldLabel": "Size"},
                "groupOptions": [{"label": "Small", "value": "s"}, {"label": "Empty", "value": " "}],
            },
        ]
    )
    assert d.properties["toppings"] == {
        "type": "array",
        "title": "Toppings",
        "items": {"type": "string", "enum": ["cheese", "ham"], "enumNames": ["Cheese", "Ham"]},
        "uniqueItems": True,
    }
    assert d.properties["size"] == {"type": "string", "title": "Size", "enum": ["s"], "enumNames": ["Small"]}
    assert d.ui_schema == {"toppings": {"ui:widget": "checkboxes"}, "size": {"ui:widget": "radio"}}
    assert d.required == ["toppings"]
    assert d.to_document()["uiSchema"] == d.ui_schema


def test_choice_group_without_options_is_skipped():
    d = derive_form_schema(
        [{"id": "b1", "type": "radio-group", "dynamicField": {"variableName": "size"}, "groupOptions": []}]
    )
    assert d.is_empty
    assert d.ui_schema == {}


def test_table_becomes_array_of_row_objects(table_block):
    d = derive_form_schema([table_block])
    prop = d.properties["order_items"]
    assert prop["type"] == "array"
    assert prop["title"] == "Order items"
    assert prop["items"]["type"] == "object"
    assert prop["items"]["properties"] == {
        "product": {"type": "string", "title": "Product"},
        "price": {"type": "number", "title": "Price"},
    }
    assert d.bindings[0].columns == ["product", "price"]


def test_table_defaults_and_column_names():
    d = derive_form_schema(
        [
            {
                "id": "b1",
                "type": "table",
                "columns": [
                    {"id": "c1", "label": "Unit Price", "type": "number"},
                    {"id": "c2", "label": "Unit Price"},
                    {
                        "id": "c3",
                        "label": "Tier",
                        "variableName": "tier",
                        "type": "select",
                        "options": [{"label": "Gold", "value": "gold"}],
                    },
                ],
            },
            {"id": "b2", "type": "table", "tableVariableName": "empty"},
        ]
    )
    assert list(d.properties) == ["table_data"]
    cols = d.properties["table_data"]["items"]["properties"]
    assert list(cols) == ["unit_price", "unit_price_2", "tier"]
    assert cols["tier"]["enum"] == ["gold"]
    assert cols["tier"]["enumNames"] == ["Gold"]


def test_dynamic_list_emits_one_field_per_item():
    d = derive_form_schema(
        [
            {
                "id": "b1",
                "type": "list",
                "isDynamic": True,
                "dynamicField": {"variableName": "perks", "fieldLabel": "Perks"},
                "listItems": ["Free coffee", ""],
            }
        ]
    )
    assert d.properties == {
        "perks_item_1": {"type": "string", "title": "Perks (1)", "default": "Free coffee"},
        "perks_item_2": {"type": "string", "title": "Perks (2)"},
    }
    assert d.bindings[0].items == ["perks_item_1", "perks_item_2"]


def test_inline_variables_in_static_text():
    d = derive_form_schema(
        [
            {"id": "b1", "type": "text", "content": "Hello {{Client Name}}, order {{Order ID}}"},
            {"id": "b2", "type": "text", "content": "Bye {{Client Name}}"},
        ]
    )
    assert d.properties == {
        "client_name": {"type": "string", "title": "Client Name"},
        "order_id": {"type": "string", "title": "Order ID"},
    }
    assert d.required == []
    assert [v.identifier for v in d.bindings[1].inline] == ["client_name"]


def test_whole_block_field_wins_over_inline_scan():
    block = _dynamic_text("b1", "greeting", "Greeting")
    block["content"] = "Hello {{Client Name}}"
    d = derive_form_schema([block])
    assert list(d.properties) == ["greeting"]


def test_identifier_collisions_are_suffixed():
    blocks = [_dynamic_text("b1", "name", "First"), _dynamic_text("b2", "name", "Second")]
    d = derive_form_schema(blocks)
    assert list(d.properties) == ["name", "name_2"]
    assert [b.identifier for b in d.bindings] == ["name", "name_2"]


def test_collisions_can_be_left_alone():
    blocks = [_dynamic_text("b1", "name", "First"), _dynamic_text("b2", "name", "Second")]
    d = derive_form_schema(blocks, disambiguate=False)
    assert list(d.properties) == ["name"]
    assert d.properties["name"]["title"] == "Second"


def test_disambiguation_follows_env(monkeypatch):
    from mailform.config import get_settings

    monkeypatch.setenv("MAILFORM_DISAMBIGUATE_IDENTIFIERS", "0")
    get_settings.cache_clear()
    blocks = [_dynamic_text("b1", "name"), _dynamic_text("b2", "name")]
    assert list(derive_form_schema(blocks).properties) == ["name"]


def _status_layout(*, inline_first=True):
    inline = {"id": "b1", "type": "text", "content": "Your status: {{Status}}"}
    radio = {
        "id": "b2",
        "type": "radio-group",
        "dynamicField": {"variableName": "status", "fieldLabel": "Status"},
        "groupOptions": [{"label": "Yes", "value": "yes"}, {"label": "No", "value": "no"}],
    }
    reason = _dynamic_text("b3", "reason", "Reason", dependency={"parentVariable": "status", "expectedValue": "no"})
    return [inline, radio, reason] if inline_first else [radio, inline, reason]


@pytest.mark.parametrize("inline_first", [True, False])
def test_explicit_variable_name_wins_over_earlier_inline_label(inline_first):
    from mailform.form_planning.visibility import active_fields
    from mailform.rendering.html_export import build_template_html

    blocks = _status_layout(inline_first=inline_first)
    d = derive_form_schema(blocks)
    assert d.ui_schema == {"status": {"ui:widget": "radio"}}
    assert d.properties["status"]["enum"] == ["yes", "no"]
    assert d.properties["status_2"] == {"type": "string", "title": "Status"}
    assert list(d.dependencies) == ["status"]

    required, hidden = active_fields(d.to_json_schema(), {"status": "no"})
    assert "reason" in required
    assert hidden == set()

    html = build_template_html(blocks, d)
    assert "{{{status}}}" in html
    assert "Your status: {{status_2}}" in html


def test_dependency_follows_its_parent_field_when_suffixed():
    table = {
        "id": "b1",
        "type": "table",
        "tableVariableName": "status",
        "columns": [{"id": "c1", "label": "Item"}],
    }
    radio = {
        "id": "b2",
        "type": "radio-group",
        "dynamicField": {"variableName": "status"},
        "groupOptions": [{"label": "No", "value": "no"}],
    }
    reason = _dynamic_text("b3", "reason", dependency={"parentVariable": "status", "expectedValue": "no"})
    d = derive_form_schema([table, radio, reason])
    assert d.properties["status"]["type"] == "array"
    assert d.ui_schema == {"status_2": {"ui:widget": "radio"}}
    assert d.dependencies == {
        "status_2": {"oneOf": [{"properties": {"status_2": {"const": "no"}}, "required": ["reason"]}]}
    }
