from __future__ import annotations

import pytest

from pdf_text_extract.layout import (
    Heading,
    LayoutConfig,
    ListItem,
    Paragraph,
    TableRegion,
    classify_spans,
    group_lines,
)
from pdf_text_extract.layout.classifier import list_marker


def _kinds(elements):
    return [type(element).__name__ for element in elements]


def test_large_first_line_becomes_heading(span):
    elements = classify_spans([span("Title", 72, 700, 24), span("Body text.", 72, 670)])

    assert _kinds(elements) == ["Heading", "Paragraph"]
    assert elements[0].level == 1
    assert elements[0].text == "Title"
    assert elements[1].text == "Body text."


def test_heading_levels_follow_font_size_rank(span):
    elements = classify_spans(
        [
            span("Chapter", 72, 750, 24),
            span("Section", 72, 700, 18),
            span("The body runs over several", 72, 670),
            span("lines of regular sized text", 72, 656),
            span("until the paragraph ends.", 72, 642),
        ]
    )

    assert _kinds(elements) == ["Heading", "Heading", "Paragraph"]
    assert [element.level for element in elements[:2]] == [1, 2]
    assert elements[2].text_lines == [
        "The body runs over several",
        "lines of regular sized text",
        "until the paragraph ends.",
    ]


def test_max_heading_level_caps_levels(span):
    elements = classify_spans(
        [
            span("One", 72, 760, 30),
            span("Two", 72, 700, 24),
            span("A body line that is long enough", 72, 660),
            span("to set the median size.", 72, 646),
        ],
        LayoutConfig(max_heading_level=1),
    )
    assert [element.level for element in elements if isinstance(element, Heading)] == [1, 1]


def test_list_markers_start_list_items(span):
    elements = classify_spans(
        [
            span("• First item", 72, 700),
            span("• Second item", 72, 686),
            span("1. Numbered", 72, 672),
            span("Closing remarks.", 72, 630),
        ]
    )

    assert _kinds(elements) == ["ListItem", "ListItem", "ListItem", "Paragraph"]
    assert elements[1].text == "• Second item"


def test_list_items_can_stay_in_one_block(span):
    elements = classify_spans(
        [span("• First item", 72, 700), span("• Second item", 72, 686)],
        LayoutConfig(split_list_items=False),
    )
    assert _kinds(elements) == ["ListItem"]
    assert len(elements[0].lines) == 2


def test_aligned_rows_become_table_region(span):
    elements = classify_spans(
        [
            span("Introduction", 72, 740),
            span("Name", 72, 700),
            span("Qty", 200, 700),
            span("Price", 300, 700),
            span("Apple", 72, 686),
            span("3", 200, 686),
            span("1.50", 300, 686),
            span("Pear", 72, 672),
            span("5", 200, 672),
            span("2.10", 300, 672),
        ]
    )

    assert _kinds(elements) == ["Paragraph", "TableRegion"]
    assert isinstance(elements[1], TableRegion)
    assert len(elements[1].spans) == 9


def test_sparse_rows_are_not_a_table(span):
    elements = classify_spans(
        [span("Left", 72, 700), span("Right", 300, 700), span("Next line", 72, 686)]
    )
    assert _kinds(elements) == ["Paragraph"]
    assert elements[0].text_lines == ["Left Right", "Next line"]


def test_classification_ignores_input_order(span):
    spans = [
        span("Title", 72, 700, 24),
        span("Body", 72, 670),
        span("continues", 100, 670),
        span("here.", 72, 656),
    ]
    assert classify_spans(list(reversed(spans))) == classify_spans(spans)


def test_empty_and_blank_input(span):
    assert classify_spans([]) == []
    assert classify_spans([span("   ", 72, 700)]) == []


def test_heading_level_is_validated():
    with pytest.raises(ValueError):
        Heading((), level=7)
    assert isinstance(Paragraph(()), Paragraph)
    assert isinstance(ListItem(()), ListItem)


def test_group_lines_merges_close_baselines_and_inserts_spaces(span):
    lines = group_lines(
        [span("World", 110, 701), span("Hello", 72, 700), span("Below", 72, 680)]
    )

    assert [line.text for line in lines] == ["Hello World", "Below"]
    assert lines[0].baseline == pytest.approx(700)


def test_touching_spans_join_without_space(span):
    (line,) = group_lines([span("Hello", 72, 700), span("World", 102.5, 700)])
    assert line.text == "HelloWorld"


@pytest.mark.parametrize(
    ("text", "kind"),
    [
        ("• bullet", "bullet"),
        ("- dash", "bullet"),
        ("12) twelve", "decimal"),
        ("3. three", "decimal"),
        ("iv. four", "roman"),
        ("(b) bee", "alpha"),
        ("Plain sentence", None),
        ("3.5 percent", None),
    ],
)
def test_list_marker_kinds(text, kind):
    result = list_marker(text)
    assert (result[0] if result else None) == kind


def test_layout_config_validation():
    with pytest.raises(ValueError):
        LayoutConfig(heading_size_ratio=0)
    with pytest.raises(ValueError):
        LayoutConfig(max_heading_level=7)
    with pytest.raises(ValueError):
        LayoutConfig(font_change_ratio=0.5)
    assert LayoutConfig().replace(table_min_rows=3).table_min_rows == 3


def _justified_line(span, words, baseline, gap):
    spans, x0 = [], 72.0
    for word in words:
        spans.append(span(word, x0, baseline))
        x0 += len(word) * 6 + gap
    return spans


def test_kerned_justified_paragraph_is_not_a_table(span):
    # each word is its own span, as TJ kerning splits justified text
    spans = (
        _justified_line(span, ["Lorem", "ipsum", "dolor", "sitam", "amets"], 700, 3)
        + _justified_line(span, ["cons-", "ectur", "adipi", "scing", "elits"], 686, 4.5)
        + _justified_line(span, ["sedeo", "tempo", "incid", "labor", "magna"], 672, 6)
    )
    elements = classify_spans(spans)

    assert _kinds(elements) == ["Paragraph"]
    assert elements[0].text_lines[0] == "Lorem ipsum dolor sitam amets"


def test_table_cell_gap_ratio_is_configurable(span):
    spans = _justified_line(span, ["aa", "bb", "cc"], 700, 8) + _justified_line(span, ["dd", "ee", "ff"], 686, 8)

    assert _kinds(classify_spans(spans)) == ["Paragraph"]
    assert _kinds(classify_spans(spans, LayoutConfig(table_cell_gap_ratio=0.5))) == ["TableRegion"]
