from mailform.form_planning.derivation import derive_form_schema
from mailform.rendering.html_export import DOCUMENT_TAIL, build_template_html
from mailform.rendering.template_engine import render_template


def test_table_exports_a_row_loop(table_block):
    html = build_template_html([table_block])
    assert html.startswith("<!DOCTYPE html>")
    assert html.endswith(DOCUMENT_TAIL)
    assert "{{#each order_items}}" in html
    assert "{{this.price}}" in html
    assert "{{this.product}}" in html
    assert "{{/each}}" in html
    assert ">Price</th>" in html


def test_exported_table_renders_rows(table_block):
    html = build_template_html([table_block])
    out = render_template(html, {"order_items": [{"product": "Tea", "price": 3}, {"product": "Cake", "price": 4.5}]})
    assert ">Tea</td>" in out
    assert ">4.5</td>" in out
    assert "{{" not in out


def test_dynamic_and_inline_text_placeholders():
    html = build_template_html(
        [
            {
                "id": "b1",
                "type": "text",
                "content": "ignored",
                "isDynamic": True,
                "dynamicField": {"variableName": "greeting"},
            },
            {"id": "b2", "type": "text", "content": "Hello {{Client Name}}!"},
        ]
    )
    assert "{{greeting}}" in html
    assert "ignored" not in html
    assert "Hello {{client_name}}!" in html


def test_placeholders_follow_suffixed_identifiers():
    blocks = [
        {"id": "b1", "type": "heading", "isDynamic": True, "dynamicField": {"variableName": "name"}},
        {"id": "b2", "type": "button", "isDynamic": True, "dynamicField": {"variableName": "name"}},
    ]
    derivation = derive_form_schema(blocks)
    html = build_template_html(blocks, derivation)
    assert "{{name}}</h2>" in html
    assert "{{name_2}}" in html


def test_choice_groups_and_lists():
    html = build_template_html(
        [
            {
                "id": "b1",
                "type": "checkbox-group",
                "dynamicField": {"variableName": "toppings"},
                "groupOptions": [{"label": "Ham", "value": "ham"}],
            },
            {
                "id": "b2",
                "type": "radio-group",
                "dynamicField": {"variableName": "size"},
                "groupOptions": [{"label": "Small", "value": "s"}],
            },
            {
                "id": "b3",
                "type": "list",
                "isDynamic": True,
                "dynamicField": {"variableName": "perks"},
                "listItems": ["a", "b"],
                "styles": {"listType": "ol"},
            },
        ]
    )
    assert "{{#each toppings}}<li>{{this}}</li>{{/each}}" in html
    assert "{{{size}}}" in html
    assert "<li>{{perks_item_1}}</li><li>{{perks_item_2}}</li></ol>" in html


def test_static_blocks_render_their_content():
    html = build_template_html(
        [
            {"id": "b1", "type": "image", "content": 'https://x.test/a.png?q="1"'},
            {"id": "b2", "type": "divider"},
            {"id": "b3", "type": "spacer", "height": 12, "showLine": True},
            {"id": "b4", "type": "list", "listItems": ["One", "Two"]},
        ]
    )
    assert 'src="https://x.test/a.png?q=&quot;1&quot;"' in html
    assert "<hr" in html
    assert "height: 12px;" in html
    assert "<li>One</li><li>Two</li></ul>" in html
