"""
Unit tests for delimited-text parsing and first-column extraction.
"""
import pytest

from sheetboard.parsing import (
    first_column,
    get_first_column_values,
    looks_delimited,
    parse_delimited,
)
from tests.fixtures.mock_data import SAMPLE_CSV, SAMPLE_VALUES


class TestParseDelimited:
    """Test the quote-toggling parser."""

    @pytest.mark.parametrize(
        "text",
        ["", "a", "a,b", "a\nb", "a\n", "\n\n\n", '"x,y"\n"', 'a,"b\nc",d\n', "x\r\ny\r\n"],
    )
    def test_row_count_is_line_breaks_plus_one(self, text):
        """Every line, including a trailing empty one, yields a row."""
        assert len(parse_delimited(text)) == text.count("\n") + 1

    def test_simple_rows(self):
        """Test plain comma-separated rows."""
        assert parse_delimited("a,b,c\n1,2,3") == [["a", "b", "c"], ["1", "2", "3"]]

    def test_quoted_field_keeps_delimiter(self):
        """A comma inside quotes does not split the field."""
        rows = parse_delimited('"Smith, John",42')
        assert rows == [["Smith, John", "42"]]

    def test_quotes_are_dropped(self):
        """Quote characters toggle state and never reach the cell."""
        assert parse_delimited('"abc"') == [["abc"]]

    def test_doubled_quotes_are_not_escapes(self):
        """Two quotes toggle twice rather than producing a literal quote."""
        assert parse_delimited('"say ""hi"", ok",x') == [["say hi, ok", "x"]]

    def test_unbalanced_quote_swallows_rest_of_line(self):
        """An unclosed quote keeps later commas in the same field."""
        rows = parse_delimited('"open,still open,x\nnext,row')
        assert rows == [["open,still open,x"], ["next", "row"]]

    def test_quotes_do_not_span_lines(self):
        """Newlines always end the row, even inside quotes."""
        rows = parse_delimited('a,"b\nc",d')
        # The second line starts unquoted, so its quote opens a new span
        assert rows == [["a", "b"], ["c,d"]]

    def test_trailing_newline_produces_empty_row(self):
        """The parser keeps the empty final row; trimming is the extractor's job."""
        assert parse_delimited("x\n") == [["x"], [""]]

    def test_ragged_rows(self):
        """Rows may have different lengths."""
        rows = parse_delimited("a\nb,c,d\n,")
        assert [len(r) for r in rows] == [1, 3, 2]

    def test_empty_text(self):
        """Empty input is one row with one empty cell."""
        assert parse_delimited("") == [[""]]

    def test_carriage_returns_stay_in_cells(self):
        """CRLF input leaves the CR in the last cell; the extractor strips it."""
        assert parse_delimited("a,b\r\nc")[0] == ["a", "b\r"]


class TestFirstColumn:
    """Test first-column extraction and trailing trimming."""

    def test_trailing_empty_lines_trimmed(self):
        """Multiple trailing empty lines are all removed."""
        assert get_first_column_values("x\n\n\n") == ["x"]

    def test_trailing_empty_first_cells_trimmed(self):
        """A trailing row whose first cell is empty is dropped."""
        assert get_first_column_values("a,1\nb,2\n,\n") == ["a", "b"]

    def test_interior_empty_rows_kept(self):
        """Blank rows between values render as blank lines."""
        assert get_first_column_values("a,1\n,\n\nb,2") == ["a", "", "", "b"]

    def test_values_are_stripped(self):
        """Surrounding whitespace is removed from each value."""
        assert get_first_column_values("  a  ,1\n\tb\r\n") == ["a", "b"]

    def test_whitespace_only_counts_as_empty(self):
        """Whitespace-only trailing values are trimmed too."""
        assert get_first_column_values("a\n   \n\t") == ["a"]

    def test_no_content_returns_empty(self):
        """No non-empty first cell means an empty sequence."""
        assert get_first_column_values(",x\n,y\n\n") == []
        assert get_first_column_values("") == []

    def test_only_first_column_used(self):
        """Other columns never leak into the output."""
        assert get_first_column_values(",hidden\nshown,also hidden") == ["", "shown"]

    def test_rows_without_cells(self):
        """An empty row list entry counts as an empty value."""
        assert first_column([["a"], [], ["b"]]) == ["a", "", "b"]

    def test_sample_export(self):
        """Test a realistic export with a quoted comma and trailing blanks."""
        assert get_first_column_values(SAMPLE_CSV) == SAMPLE_VALUES

    def test_extraction_is_idempotent(self):
        """Extracting an extracted sequence gives the same sequence."""
        once = get_first_column_values("a,1\n\nb,2\nc\n\n")
        twice = get_first_column_values("\n".join(once))
        assert once == ["a", "", "b", "c"]
        assert twice == once


class TestLooksDelimited:
    """Test the delimited-data heuristic."""

    def test_comma_or_newline_accepted(self):
        assert looks_delimited("a,b")
        assert looks_delimited("a\nb")

    def test_plain_text_rejected(self):
        assert not looks_delimited("Access denied")
        assert not looks_delimited("")
