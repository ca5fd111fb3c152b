"""
Spreadsheet Reader
Parses uploaded CSV / XLSX / XLS files into row dictionaries
"""
import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from leadwave.domain.services.field_resolver import clean_value

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")

CSV_ENCODINGS = ("utf-8-sig", "utf-8", "cp1252", "latin-1")

EXCEL_ENGINES = {
    ".xlsx": "openpyxl",
    ".xls": "xlrd",
}


class SpreadsheetReadError(Exception):
    """Raised when a file cannot be parsed"""
    pass


def file_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def is_supported(filename: str) -> bool:
    return file_extension(filename) in SUPPORTED_EXTENSIONS


def decode_csv(content: bytes) -> str:
    """
    Decode CSV bytes trying common encodings in turn.

    Raises:
        SpreadsheetReadError: If no encoding fits
    """
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise SpreadsheetReadError("Unable to decode CSV file. Please use UTF-8 encoding.")


def read_csv(content: bytes) -> List[Dict[str, str]]:
    """Parse CSV bytes; blank lines are skipped and short rows padded"""
    text = decode_csv(content)
    try:
        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if not header:
            return []
        headers = [h.strip() for h in header]

        rows = []
        for values in reader:
            if not any(v.strip() for v in values):
                continue
            values = values + [""] * (len(headers) - len(values))
            rows.append({h: v.strip() for h, v in zip(headers, values) if h})
        return rows
    except csv.Error as e:
        raise SpreadsheetReadError(f"Malformed CSV file: {e}") from e


def read_excel(path: Union[str, Path], extension: str) -> List[Dict[str, str]]:
    """Parse the first sheet of an Excel workbook, every cell cleaned to a string"""
    try:
        frame = pd.read_excel(
            path,
            sheet_name=0,
            dtype=object,
            engine=EXCEL_ENGINES[extension],
        )
    except Exception as e:
        raise SpreadsheetReadError(f"Unable to read spreadsheet: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]

    rows = []
    for record in frame.to_dict(orient="records"):
        row = {header: clean_value(value) for header, value in record.items()}
        if any(row.values()):
            rows.append(row)
    return rows


def read_rows(path: Union[str, Path], filename: str) -> List[Dict[str, str]]:
    """
    Read all data rows of an uploaded spreadsheet.

    Args:
        path: Location of the staged file on disk
        filename: Original client filename (decides the format)

    Returns:
        One dict per data row, keyed by header

    Raises:
        SpreadsheetReadError: Unsupported extension or unreadable content
    """
    extension = file_extension(filename)
    if not is_supported(filename):
        raise SpreadsheetReadError(
            f"Unsupported file type '{extension or filename}'. Only CSV and XLSX files are allowed"
        )

    if extension == ".csv":
        rows = read_csv(Path(path).read_bytes())
    else:
        rows = read_excel(path, extension)

    logger.info(f"Read {len(rows)} rows from {filename}")
    return rows
