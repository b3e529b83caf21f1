import pytest

from import_engine.csv_parser import decode, parse_line, read_lines, split_lines
from import_engine.errors import ImportFileError


def test_plain_fields_are_split_and_trimmed():
    assert parse_line(" a , b ,c ") == ["a", "b", "c"]


def test_quoted_separator_is_literal():
    assert parse_line('"Smith, Jane",Flour,"$1,234.56"') == ["Smith, Jane", "Flour", "$1,234.56"]


@pytest.mark.parametrize("line, expected", [
    ("a,b,c", 3),
    ('"x,y",z', 2),
    (",,", 3),
    ('"a","b","c","d"', 4),
    ("single", 1),
])
def test_field_count_is_separators_plus_one(line, expected):
    assert len(parse_line(line)) == expected


def test_unterminated_quote_swallows_rest_of_line():
    # the quote opened before "b" never closes, so the commas after it stay literal
    assert parse_line('a,"b,c,d') == ["a", "b,c,d"]


def test_empty_fields_kept():
    assert parse_line("a,,c") == ["a", "", "c"]


def test_decode_strips_bom_from_bytes_and_text():
    assert decode(b"\xef\xbb\xbfDate,Amount") == "Date,Amount"
    assert decode("\ufeffDate,Amount") == "Date,Amount"


def test_decode_falls_back_for_non_utf8_bytes():
    assert decode("Caf\xe9".encode("cp1252")) == "Café"


def test_split_lines_drops_blank_lines():
    assert split_lines("a\r\n\r\n  \nb\n") == ["a", "b"]


def test_read_lines_rejects_empty_content():
    with pytest.raises(ImportFileError):
        read_lines(b"   \n\n")
