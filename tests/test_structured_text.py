from reel_recipes.app.services.structured_text import html_to_structured_text

STEPS_HTML = """
<h4>Sauce</h4>
<ol>
  <li>Mix <strong>2.5 tbsp of tamarind puree</strong> and <strong>3 tbsp of fish sauce</strong>.</li>
  <li>Set aside.</li>
</ol>
<h4>Stir Fry</h4>
<ol><li>Heat <strong>3 tbsp of oil</strong> in a wok.</li></ol>
"""


def _children(html):
    result = html_to_structured_text(html)
    assert result["schema"] == "dast"
    assert result["document"]["type"] == "root"
    return result["document"]["children"]


def test_ingredient_list_becomes_bulleted_list():
    children = _children("<ul><li>200g Potatoes</li><li>1 Egg</li></ul>")

    assert children == [
        {
            "type": "list",
            "style": "bulleted",
            "children": [
                {"type": "listItem", "children": [{"type": "paragraph", "children": [{"type": "span", "value": "200g Potatoes"}]}]},
                {"type": "listItem", "children": [{"type": "paragraph", "children": [{"type": "span", "value": "1 Egg"}]}]},
            ],
        }
    ]


def test_steps_keep_headings_numbered_lists_and_bold_marks():
    children = _children(STEPS_HTML)

    assert [node["type"] for node in children] == ["heading", "list", "heading", "list"]
    assert children[0] == {"type": "heading", "level": 4, "children": [{"type": "span", "value": "Sauce"}]}
    assert children[1]["style"] == "numbered"
    first_step = children[1]["children"][0]["children"][0]["children"]
    assert first_step == [
        {"type": "span", "value": "Mix "},
        {"type": "span", "value": "2.5 tbsp of tamarind puree", "marks": ["strong"]},
        {"type": "span", "value": " and "},
        {"type": "span", "value": "3 tbsp of fish sauce", "marks": ["strong"]},
        {"type": "span", "value": "."},
    ]


def test_top_level_nodes_are_limited_and_scripts_are_dropped():
    html = (
        "<script>alert('x')</script><style>p {color: red}</style>"
        "Loose <em>text</em><!-- note --><h4>Title</h4><div><p>Inside div</p></div>"
        "<ul><li>Item</li></ul><iframe src='https://evil.test'></iframe>"
    )
    children = _children(html)

    assert {node["type"] for node in children} <= {"heading", "paragraph", "list"}
    assert "alert" not in str(children)
    assert "color: red" not in str(children)
    assert "note" not in str(children)
    assert children[0] == {
        "type": "paragraph",
        "children": [{"type": "span", "value": "Loose "}, {"type": "span", "value": "text", "marks": ["emphasis"]}],
    }


def test_malformed_html_is_recovered():
    children = _children("<ul><li>Unclosed item<li>Second <b>bold")

    assert children[0]["type"] == "list"
    text = str(children)
    assert "Unclosed item" in text
    assert "Second" in text


def test_nested_lists_links_and_line_breaks():
    html = (
        '<ul><li>Base<ul><li>Nested</li></ul></li></ul>'
        '<p>See <a href="https://example.com">the <strong>original</strong></a><br>post</p>'
    )
    children = _children(html)

    outer_item = children[0]["children"][0]
    assert [node["type"] for node in outer_item["children"]] == ["paragraph", "list"]
    paragraph = children[1]["children"]
    assert paragraph[1]["type"] == "link"
    assert paragraph[1]["url"] == "https://example.com"
    assert paragraph[1]["children"][1] == {"type": "span", "value": "original", "marks": ["strong"]}
    assert paragraph[2] == {"type": "span", "value": "\npost"}


def test_empty_and_whitespace_input_produce_empty_document():
    assert _children("") == []
    assert _children(None) == []
    assert _children("   \n  <p>  </p>") == []


def test_list_items_without_end_tags_stay_separate():
    children = _children("<ol><li>Soak noodles<li>Drain<li>Serve</ol>")

    assert len(children) == 1
    items = children[0]["children"]
    assert [item["children"][0]["children"][0]["value"] for item in items] == ["Soak noodles", "Drain", "Serve"]


def test_paragraphs_without_end_tags_stay_separate():
    children = _children("<p>First paragraph<p>Second paragraph")

    assert children == [
        {"type": "paragraph", "children": [{"type": "span", "value": "First paragraph"}]},
        {"type": "paragraph", "children": [{"type": "span", "value": "Second paragraph"}]},
    ]
