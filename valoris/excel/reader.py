from __future__ import annotations

import io
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from valoris.errors import ParsingError
from valoris.models.records import RawRow
from valoris.models.uploaded_file import FileKind, classify_file

from .numbers import NumberLocale, normalize_numeric_token

"""Tabular file reader.

Turns an uploaded workbook or delimited text file into an ordered list of
RawRow mappings (column label -> scalar). Column labels are whatever the
file uses; nothing here interprets them.

Workbooks: the first sheet is decoded with its first non-blank row as header.
When that yields no data rows or a single column (merged title cells are
the usual cause), the sheet is decoded again keyed by column letter and
remapped to ``Header`` / ``Column_<letter>``.

Delimited text: the delimiter is picked by counting ``;``, ``,`` and tab
over the first three lines. Numeric tokens are rewritten per NumberLocale.
"""

__all__ = [
    "CANDIDATE_DELIMITERS",
    "detect_delimiter",
    "read_delimited_text",
    "read_workbook",
    "read_tabular_bytes",
    "read_tabular_file",
]

CANDIDATE_DELIMITERS = (";", ",", "\t")
DELIMITER_SAMPLE_LINES = 3
DATE_FORMAT = "%Y-%m-%d"


def detect_delimiter(text: str) -> str:
    """Return the candidate delimiter with the highest count (',' on a tie)."""
    lines = text.split("\n")[:DELIMITER_SAMPLE_LINES]
    best = ","
    max_count = 0
    for delimiter in CANDIDATE_DELIMITERS:
        total = sum(line.count(delimiter) for line in lines)
        if total > max_count:
            max_count = total
            best = delimiter
    return best


def read_delimited_text(text: str, locale: NumberLocale = NumberLocale.NONE) -> list[RawRow]:
    """Parse delimited text; the first non-blank line is the header.

    Lines that do not split into more than one field are skipped (trailing
    blank lines, stray notes under the table).
    """
    delimiter = detect_delimiter(text)
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return []

    headers = [h.strip() for h in lines[0].split(delimiter)]
    rows: list[RawRow] = []
    for line in lines[1:]:
        values = line.split(delimiter)
        if len(values) <= 1:
            continue
        row: RawRow = {}
        for index, header in enumerate(headers):
            value = values[index].strip() if index < len(values) else ""
            row[header] = normalize_numeric_token(value, locale)
        rows.append(row)
    return rows


def _column_letter(index: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if value is pd.NaT:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, str):
        return value.strip()
    if hasattr(value, "item"):
        # numpy scalar -> python scalar
        return value.item()
    return value


def _header_rows(df: pd.DataFrame) -> list[RawRow]:
    """Primary decode: first row is the header."""
    if df.shape[0] == 0:
        return []
    header_values = [_cell_value(v) for v in df.iloc[0].tolist()]
    columns = [
        str(h) if h != "" else f"Column_{_column_letter(i)}" for i, h in enumerate(header_values)
    ]
    rows: list[RawRow] = []
    for _, raw in df.iloc[1:].iterrows():
        rows.append({col: _cell_value(val) for col, val in zip(columns, raw.tolist(), strict=False)})
    return rows


def _letter_rows(df: pd.DataFrame) -> list[RawRow]:
    """Alternate decode: every row keyed by column letter, then remapped."""
    rows: list[RawRow] = []
    for _, raw in df.iterrows():
        lettered = {_column_letter(i): _cell_value(v) for i, v in enumerate(raw.tolist())}
        remapped: RawRow = {}
        for index, (key, value) in enumerate(lettered.items()):
            name = "Header" if index == 0 and lettered.get("A") else f"Column_{key}"
            remapped[name] = value
        rows.append(remapped)
    return rows


def _is_degenerate(rows: list[RawRow]) -> bool:
    return len(rows) == 0 or len(rows[0]) < 2


def read_workbook(source: Path | bytes, engine: str | None = None) -> list[RawRow]:
    """Decode the first sheet of a workbook into RawRows.

    Raises:
        ParsingError: the bytes are not a readable workbook, or neither the
            header-based nor the column-letter decode produced any row
    """
    handle: Any = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        xls = pd.ExcelFile(handle, engine=engine)
        if not xls.sheet_names:
            raise ParsingError("workbook has no sheets")
        df = xls.parse(xls.sheet_names[0], header=None, dtype=object)
    except ParsingError:
        raise
    except Exception as e:
        raise ParsingError(f"could not open workbook: {e}") from e

    # Blank rows are dropped before either decode
    df = df.dropna(how="all")
    if df.shape[0]:
        blank = df.apply(lambda r: all(_cell_value(v) == "" for v in r), axis=1)
        df = df.loc[~blank]

    rows = _header_rows(df)
    if not _is_degenerate(rows):
        return rows

    alternative = _letter_rows(df)
    if alternative:
        return alternative
    if rows:
        return rows
    raise ParsingError("no rows could be decoded from the first sheet")


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParsingError(f"delimited file is not valid UTF-8: {e}") from e


def read_tabular_bytes(
    data: bytes, file_name: str, locale: NumberLocale = NumberLocale.NONE
) -> list[RawRow]:
    """Read an uploaded file's bytes, routed by its file name."""
    kind = classify_file(Path(file_name))
    if kind is FileKind.WORKBOOK:
        engine = "xlrd" if file_name.lower().endswith(".xls") else "openpyxl"
        return read_workbook(data, engine=engine)
    if kind is FileKind.DELIMITED:
        return read_delimited_text(_decode_text(data), locale)
    raise ParsingError(f"not a tabular file: {file_name}")


def read_tabular_file(path: Path, locale: NumberLocale = NumberLocale.NONE) -> list[RawRow]:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParsingError(f"could not read {path}: {e}") from e
    return read_tabular_bytes(data, path.name, locale)
