"""Tests for the CSV exporter."""

import csv
import io

from conftest import make_record
from ideaboard.config import CSV_FILENAME
from ideaboard.export import BOM, HEADERS, export_csv, format_date, write_csv


def _parse(content: str) -> list[list[str]]:
    assert content.startswith(BOM)
    return list(csv.reader(io.StringIO(content[len(BOM) :]), delimiter=";"))


def test_header_and_column_order(records):
    rows = _parse(export_csv(records))

    assert rows[0] == list(HEADERS)
    first = rows[1]
    assert first[0] == "1"
    assert first[1] == "Smart Home Consulting"
    assert first[5] == "Consulting"
    assert first[6] == "Under Review"
    assert first[9:14] == ["5", "4", "3", "5", "4"]
    assert first[-2] == "150000"
    assert first[-1] == "21"


def test_every_field_quoted_and_quotes_doubled():
    record = make_record(1, name='He said "hi"', description="a;b")
    content = export_csv([record])
    data_line = content.split("\n")[1]

    assert data_line.startswith('"1";"He said ""hi""";"a;b";')
    assert _parse(content)[1][1] == 'He said "hi"'
    assert _parse(content)[1][2] == "a;b"


def test_no_trailing_newline(records):
    content = export_csv(records)
    assert not content.endswith("\n")
    assert content.count("\n") == len(records)


def test_empty_collection_exports_header_only():
    assert _parse(export_csv([])) == [list(HEADERS)]


def test_date_formatting():
    assert format_date("2024-03-15T10:00:00+00:00") == "15/03/2024"
    assert format_date("2024-03-15T10:00:00+00:00", "%Y-%m-%d") == "2024-03-15"
    assert format_date(None) == ""
    assert format_date("last tuesday") == "last tuesday"


def test_write_csv_into_directory(tmp_path, records):
    target = write_csv(records, tmp_path)

    assert target == tmp_path / CSV_FILENAME
    raw = target.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    assert b"\r\n" not in raw
