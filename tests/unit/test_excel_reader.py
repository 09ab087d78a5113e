from __future__ import annotations

from pathlib import Path

import pytest

from valoris.errors import ParsingError
from valoris.excel.numbers import NumberLocale
from valoris.excel.reader import (
    detect_delimiter,
    read_delimited_text,
    read_tabular_bytes,
    read_tabular_file,
    read_workbook,
)


def test_detect_delimiter_semicolon():
    assert detect_delimiter("a;b;c\n1;2;3\n4;5;6") == ";"


def test_detect_delimiter_tab_and_default():
    assert detect_delimiter("a\tb\n1\t2") == "\t"
    assert detect_delimiter("") == ","
    assert detect_delimiter("single column\nvalue") == ","


def test_detect_delimiter_only_samples_three_lines():
    text = "a,b\n1,2\n3,4\n" + "x;y;z;w;v\n" * 10
    assert detect_delimiter(text) == ","


def test_read_semicolon_text():
    rows = read_delimited_text("a;b;c\n1;2;3\n4;5;6")
    assert len(rows) == 2
    assert rows[0] == {"a": "1", "b": "2", "c": "3"}
    assert all(len(r) == 3 for r in rows)


def test_blank_and_single_field_lines_are_skipped():
    text = "Vendor,Spend\nAcme,100\n\nnote under the table\nBeta,20\n\n"
    rows = read_delimited_text(text)
    assert [r["Vendor"] for r in rows] == ["Acme", "Beta"]


def test_short_lines_padded_with_empty_values():
    rows = read_delimited_text("a,b,c\n1,2")
    assert rows == [{"a": "1", "b": "2", "c": ""}]


def test_locale_applied_to_cells():
    text = "Vendor;Spend\nAcme;0,514\nBeta;1.234,50"
    assert read_delimited_text(text, NumberLocale.AUTO)[0]["Spend"] == "0.514"
    assert read_delimited_text(text, NumberLocale.EU)[1]["Spend"] == "1234.50"
    assert read_delimited_text(text)[0]["Spend"] == "0,514"


def test_read_workbook_header_rows(make_workbook):
    path = make_workbook(
        "spend.xlsx",
        [["Supplier", "Spend", "Category"], ["Acme", 100, "Software"], [None, None, None], ["Beta", 25.5, "Cloud"]],
    )
    rows = read_workbook(path)
    assert rows == [
        {"Supplier": "Acme", "Spend": 100, "Category": "Software"},
        {"Supplier": "Beta", "Spend": 25.5, "Category": "Cloud"},
    ]


def test_read_workbook_blank_header_cells_get_letter_names(make_workbook):
    path = make_workbook("blank.xlsx", [["Supplier", None, "Spend"], ["Acme", "x", 10]])
    rows = read_workbook(path)
    assert rows == [{"Supplier": "Acme", "Column_B": "x", "Spend": 10}]


def test_read_workbook_single_column_falls_back_to_letter_keys(make_workbook):
    path = make_workbook("merged.xlsx", [["Spend report 2024"], ["Acme"], ["Beta"]])
    rows = read_workbook(path)
    assert len(rows) == 3
    assert rows[0] == {"Header": "Spend report 2024"}
    assert rows[2] == {"Header": "Beta"}


def test_read_workbook_header_only_falls_back(make_workbook):
    path = make_workbook("header_only.xlsx", [["Supplier", "Spend"]])
    rows = read_workbook(path)
    assert rows == [{"Header": "Supplier", "Column_B": "Spend"}]


def test_read_workbook_empty_sheet_raises(make_workbook):
    path = make_workbook("empty.xlsx", [])
    with pytest.raises(ParsingError):
        read_workbook(path)


def test_read_workbook_garbage_bytes_raises():
    with pytest.raises(ParsingError, match="could not open workbook"):
        read_workbook(b"definitely not a zip file")


def test_read_tabular_bytes_routes_by_name():
    rows = read_tabular_bytes("\ufeffVendor,Spend\nAcme,5\n".encode("utf-8"), "spend.csv")
    assert rows == [{"Vendor": "Acme", "Spend": "5"}]
    with pytest.raises(ParsingError, match="not a tabular file"):
        read_tabular_bytes(b"%PDF", "scan.pdf")


def test_read_tabular_bytes_rejects_invalid_utf8():
    with pytest.raises(ParsingError, match="UTF-8"):
        read_tabular_bytes(b"\xff\xfe\x00bad", "spend.csv")


def test_read_tabular_file(temp_workdir: Path, make_workbook):
    csv_path = temp_workdir / "data" / "spend.tsv"
    csv_path.write_text("Vendor\tSpend\nAcme\t12\n", encoding="utf-8")
    assert read_tabular_file(csv_path) == [{"Vendor": "Acme", "Spend": "12"}]

    xlsx_path = make_workbook("s.xlsx", [["Vendor", "Spend"], ["Acme", 12]])
    assert read_tabular_file(xlsx_path) == [{"Vendor": "Acme", "Spend": 12}]

    with pytest.raises(ParsingError, match="could not read"):
        read_tabular_file(temp_workdir / "data" / "missing.csv")
