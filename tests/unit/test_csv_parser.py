"""
Unit tests for the CSV parser.

Run: pytest tests/unit/test_csv_parser.py -v
"""

import pytest

from parsers.csv_parser import parse_csv, split_csv_line


# ===================
# STRUCTURE
# ===================

class TestCsvStructure:
    """Headers and row counts."""

    @pytest.mark.parametrize("data_lines", [1, 2, 10, 250])
    def test_row_count_matches_data_lines(self, data_lines):
        """N data lines without embedded delimiters give N rows."""
        lines = ["sku,name,price"] + [f"S{i},Item {i},{i}.50" for i in range(data_lines)]

        result = parse_csv("\n".join(lines))

        assert len(result.rows) == data_lines

    def test_headers_are_trimmed(self):
        result = parse_csv(" sku , name \nA1,Lamp")

        assert result.headers == ["sku", "name"]
        assert result.rows == [{"sku": "A1", "name": "Lamp"}]

    def test_blank_lines_are_dropped(self):
        """Blank and whitespace-only lines never become rows."""
        result = parse_csv("\n\nsku,name\n\nA1,Lamp\n   \nA2,Chair\n\n")

        assert result.headers == ["sku", "name"]
        assert [row["sku"] for row in result.rows] == ["A1", "A2"]

    def test_crlf_line_endings(self):
        result = parse_csv("sku,name\r\nA1,Lamp\r\nA2,Chair\r\n")

        assert result.rows == [
            {"sku": "A1", "name": "Lamp"},
            {"sku": "A2", "name": "Chair"},
        ]

    def test_short_line_fills_empty_strings(self):
        result = parse_csv("a,b,c\n1")

        assert result.rows == [{"a": "1", "b": "", "c": ""}]

    def test_extra_values_are_ignored(self):
        result = parse_csv("a,b\n1,2,3,4")

        assert result.rows == [{"a": "1", "b": "2"}]

    def test_header_only_file(self):
        result = parse_csv("a,b\n")

        assert result.headers == ["a", "b"]
        assert result.rows == []
        assert not result.is_empty

    @pytest.mark.parametrize("content", ["", "\n", "\r\n\r\n", "   \n  "])
    def test_empty_input_gives_empty_result(self, content):
        result = parse_csv(content)

        assert result.headers == []
        assert result.rows == []
        assert result.is_empty

    def test_duplicate_headers_deduplicated_last_column_wins(self):
        result = parse_csv("a,b,a\n1,2,3")

        assert result.headers == ["a", "b"]
        assert result.rows == [{"a": "3", "b": "2"}]


# ===================
# QUOTING
# ===================

class TestCsvQuoting:
    """The quote-toggle tokenizer."""

    def test_quoted_comma_stays_in_value(self):
        result = parse_csv('a,b\n"x,y",z')

        assert result.headers == ["a", "b"]
        assert result.rows == [{"a": "x,y", "b": "z"}]

    def test_quotes_are_not_part_of_the_value(self):
        assert split_csv_line('"Lamp",12') == ["Lamp", "12"]

    def test_backslash_escaped_quote_is_literal(self):
        """A quote after a backslash does not toggle; both characters are kept."""
        assert split_csv_line('x\\"y,z') == ['x\\"y', "z"]

    def test_doubled_quotes_are_not_an_escape(self):
        """"" toggles twice rather than producing a literal quote."""
        assert split_csv_line('"He said ""hi""",z') == ["He said hi", "z"]

    def test_unterminated_quote_swallows_rest_of_line(self):
        assert split_csv_line('"a,b,c') == ["a,b,c"]

    def test_tokens_are_trimmed(self):
        assert split_csv_line("  1 ,  two  ,3") == ["1", "two", "3"]

    def test_trailing_comma_yields_empty_token(self):
        assert split_csv_line("1,2,") == ["1", "2", ""]

    def test_quoted_value_keeps_inner_spaces_but_is_trimmed(self):
        assert split_csv_line('"  padded  ",x') == ["padded", "x"]
