"""Tests for query file parsing."""

import pytest

from ai_visibility.core.exceptions import UploadError
from ai_visibility.ingestion.file_reader import find_query_column, read_csv, read_query_file, read_text


def test_text_file_one_query_per_line():
    result = read_text(b"bedste bilforsikring\n\n  billig indboforsikring  \r\n")
    assert result.texts == ["bedste bilforsikring", "billig indboforsikring"]
    assert [q.id for q in result.queries] == ["query-1", "query-2"]


def test_csv_with_query_column_drops_date_columns():
    content = "Date,Search Query,Category\n2024-01-01,bilforsikring,bil\n2024-01-02,rejseforsikring,rejse\n"
    result = read_csv(content.encode())

    assert result.headers == ["Date", "Search Query", "Category"]
    assert result.texts == ["bilforsikring", "rejseforsikring"]
    assert result.queries[0].columns == {"Category": "bil"}


def test_csv_with_bom_and_quoted_commas():
    content = b"\xef\xbb\xbfprompt,notes\n" + b'"billig, god forsikring",x\n'
    result = read_csv(content)
    assert result.texts == ["billig, god forsikring"]


def test_csv_skips_rows_without_query_text():
    result = read_csv(b"question\nfoo\n\n,\nbar\n")
    assert result.texts == ["foo", "bar"]


def test_csv_without_query_column():
    with pytest.raises(UploadError, match="No query column found"):
        read_csv(b"name,value\na,b\n")


def test_empty_csv():
    with pytest.raises(UploadError, match="CSV file is empty"):
        read_csv(b"")


@pytest.mark.parametrize("headers, expected", [(["id", "Query"], 1), (["Question text"], 0), (["a", "b"], None)])
def test_find_query_column(headers, expected):
    assert find_query_column(headers) == expected


def test_dispatch_by_extension():
    assert read_query_file("Queries.TXT", b"a\nb").texts == ["a", "b"]
    assert read_query_file("queries.csv", b"query\na").texts == ["a"]


def test_excel_rejected_with_pointer_to_csv():
    with pytest.raises(UploadError, match="export the sheet as CSV"):
        read_query_file("queries.xlsx", b"PK\x03\x04")


def test_unsupported_type():
    with pytest.raises(UploadError, match="Unsupported file type"):
        read_query_file("queries.pdf", b"%PDF")


def test_invalid_utf8():
    with pytest.raises(UploadError, match="UTF-8"):
        read_query_file("queries.txt", b"\xff\xfe\xfa")
