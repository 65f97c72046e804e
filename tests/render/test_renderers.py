from __future__ import annotations

from pdf_text_extract.extraction.primitives import BoundingBox, Span
from pdf_text_extract.layout import Heading, ListItem, Paragraph, Table, TableRegion, group_lines
from pdf_text_extract.render import elements_to_markdown, elements_to_txt, table_to_markdown, table_to_txt


def _span(text: str, x0: float, baseline: float, size: float = 12.0) -> Span:
    return Span(
        text=text,
        bbox=BoundingBox(x0, baseline - 0.2 * size, x0 + len(text) * size * 0.5, baseline + 0.8 * size),
        font="Helvetica",
        font_size=size,
        baseline=baseline,
    )


def _lines(*spans: Span):
    return tuple(group_lines(spans))


GRID = [
    _span("Name", 72, 700),
    _span("Qty", 200, 700),
    _span("Pear", 72, 686),
    _span("a|b", 200, 686),
]


def test_markdown_blocks():
    elements = [
        Heading(_lines(_span("Title", 72, 760, 24)), level=1),
        Heading(_lines(_span("Part", 72, 730, 18)), level=2),
        Paragraph(_lines(_span("First line", 72, 700), _span("second line", 72, 686))),
        ListItem(_lines(_span("• Apples", 72, 660))),
        ListItem(_lines(_span("2. Pears", 72, 646))),
    ]

    assert elements_to_markdown(elements) == (
        "# Title\n\n## Part\n\nFirst line\nsecond line\n\n- Apples\n\n- 2. Pears\n"
    )


def test_plain_text_blocks():
    elements = [
        Heading(_lines(_span("Title", 72, 760, 24)), level=1),
        Paragraph(_lines(_span("Body text.", 72, 700))),
    ]
    assert elements_to_txt(elements) == "Title\n\nBody text.\n"


def test_empty_element_lists_render_nothing():
    assert elements_to_txt([]) == ""
    assert elements_to_markdown([]) == ""


def test_table_region_renders_as_pipe_table():
    markdown = elements_to_markdown([TableRegion(_lines(*GRID))])
    assert markdown == "| Name | Qty |\n| --- | --- |\n| Pear | a\\|b |\n"


def test_table_region_renders_as_padded_columns():
    assert elements_to_txt([TableRegion(_lines(*GRID))]) == "Name  Qty\nPear  a|b\n"


def test_table_helpers_on_empty_table():
    assert table_to_txt(Table()) == []
    assert table_to_markdown(Table()) == []
