from __future__ import annotations

import csv
import io
from itertools import combinations

from pdf_text_extract.layout import LayoutConfig, Table
from pdf_text_extract.layout.table import csv_field


def test_two_by_two_grid(span):
    table = Table.from_spans(
        [span("A", 72, 700), span("B", 200, 700), span("C", 72, 686), span("D", 200, 686)]
    )

    assert (table.row_count, table.col_count) == (2, 2)
    assert table.rows() == [["A", "B"], ["C", "D"]]
    assert table.to_csv() == "A,B\nC,D\n"


def test_fields_with_commas_are_quoted(span):
    table = Table.from_spans(
        [span("Item", 72, 700), span("Price", 200, 700), span("Widget", 72, 686), span("1,000", 200, 686)]
    )
    assert table.to_csv() == 'Item,Price\nWidget,"1,000"\n'


def test_missing_cells_are_empty_strings(span):
    table = Table.from_spans(
        [
            span("a", 72, 700),
            span("b", 200, 700),
            span("c", 300, 700),
            span("d", 72, 686),
            span("f", 300, 686),
        ]
    )

    assert table.to_csv() == "a,b,c\nd,,f\n"
    assert table.cell(1, 1).text == ""
    assert all(len(row) == table.col_count for row in table.cells)


def test_nearby_spans_in_one_row_get_separate_columns(span):
    table = Table.from_spans([span("x", 72, 700), span("y", 75, 700)])
    assert table.rows() == [["x", "y"]]


def test_ragged_alignment_within_tolerance_shares_a_column(span):
    table = Table.from_spans(
        [span("left", 72, 700), span("right", 200, 700), span("left2", 73, 686), span("right2", 201, 686)]
    )
    assert table.rows() == [["left", "right"], ["left2", "right2"]]


def test_cell_boxes_do_not_overlap(span):
    table = Table.from_spans(
        [
            span("Name", 72, 700),
            span("Qty", 200, 700),
            span("Price", 300, 700),
            span("Apple", 72, 686),
            span("3", 200, 686),
            span("Pear", 72, 672),
            span("2.10", 300, 672),
        ]
    )

    cells = [cell for row in table.cells for cell in row]
    assert len(cells) == table.row_count * table.col_count == 9
    assert all(cell.bbox is not None for cell in cells)
    for first, second in combinations(cells, 2):
        assert not first.bbox.overlaps(second.bbox)
    assert [(cell.row, cell.col) for cell in cells] == [(r, c) for r in range(3) for c in range(3)]


def test_csv_output_reads_back_with_csv_module(span):
    table = Table.from_spans(
        [
            span('say "hi"', 72, 700),
            span("plain", 200, 700),
            span("a,b", 72, 686),
            span("c", 200, 686),
        ]
    )

    assert list(csv.reader(io.StringIO(table.to_csv()))) == [['say "hi"', "plain"], ["a,b", "c"]]


def test_csv_field_quoting():
    assert csv_field("plain") == "plain"
    assert csv_field('5" disk') == '"5"" disk"'
    assert csv_field("two\nlines") == '"two\nlines"'
    assert csv_field("") == ""


def test_empty_table_serialises_to_empty_string(span):
    table = Table.from_spans([span("  ", 72, 700)])
    assert (table.row_count, table.col_count) == (0, 0)
    assert table.to_csv() == ""
    assert Table().rows() == []


def test_column_gap_ratio_controls_clustering(span):
    spans = [span("aa", 72, 700), span("bb", 90, 686)]
    assert Table.from_spans(spans).rows() == [["aa", ""], ["", "bb"]]
    assert Table.from_spans(spans, LayoutConfig(column_gap_ratio=10)).rows() == [["aa"], ["bb"]]
