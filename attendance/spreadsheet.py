"""Decode uploaded Excel/CSV attendance sheets into row mappings."""
from typing import Any, Dict, List
import csv
import datetime
import io
import logging
import math
import re

import pandas as pd

from attendance.errors import SpreadsheetError
from attendance.normalizer import DATE, EMPLOYEE_NAME, FieldResolver

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"xlsx", "xls", "csv"}
HEADER_SCAN_ROWS = 15

_CLOCK_WITH_SECONDS = re.compile(r"^(\d{1,2}):(\d{2}):\d{2}(\.\d+)?$")
_MIDNIGHT_TIMESTAMP = re.compile(r"^(\d{4}-\d{1,2}-\d{1,2})[ T]00:00(:00)?$")


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def allowed_file(filename: str) -> bool:
    return file_extension(filename) in ALLOWED_EXTENSIONS


def _read_raw_frame(file_bytes: bytes, filename: str) -> pd.DataFrame:
    """Read the first sheet (or the CSV) with no header row applied."""
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise SpreadsheetError(f"Unsupported file format: {ext or filename}. Supported: xlsx, xls, csv")

    try:
        if ext == "csv":
            text = file_bytes.decode("utf-8-sig")
            # Title lines and trailing cells make rows ragged; size the frame to the widest one
            width = max((len(fields) for fields in csv.reader(io.StringIO(text))), default=0)
            if not width:
                raise SpreadsheetError("No data found in file")
            return pd.read_csv(
                io.StringIO(text),
                header=None,
                names=range(width),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            )
        sheets = pd.read_excel(io.BytesIO(file_bytes), sheet_name=None, header=None, dtype=object)
    except SpreadsheetError:
        raise
    except pd.errors.EmptyDataError:
        raise SpreadsheetError("No data found in file")
    except Exception as e:
        raise SpreadsheetError(f"Invalid file format: {e}") from e

    if not sheets:
        raise SpreadsheetError("Invalid file format: No sheets found in file")
    sheet_name = next(iter(sheets))
    logger.debug(f"Reading sheet {sheet_name!r} of {filename}")
    return sheets[sheet_name]


def _find_header_row(df: pd.DataFrame) -> int:
    """Index of the first row that names both an employee and a date column.

    Exports often carry a title or a few report lines above the table; those
    rows are skipped. Falls back to row 0.
    """
    for idx in range(min(HEADER_SCAN_ROWS, len(df))):
        labels = [str(v).strip() for v in df.iloc[idx] if not _is_missing(v)]
        resolver = FieldResolver(labels)
        if resolver.resolves(EMPLOYEE_NAME) and resolver.resolves(DATE):
            if idx:
                logger.info(f"Found header at row {idx}: {labels[:5]}...")
            return idx
    return 0


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_cell(value: Any, default: Any = "") -> Any:
    """Convert a decoded cell into the plain value the normalizer expects."""
    if _is_missing(value):
        return default
    if isinstance(value, datetime.time):
        return value.strftime("%H:%M")
    if isinstance(value, (pd.Timestamp, datetime.datetime)):
        # Time-only Excel cells come back anchored on the 1899/1900 epoch
        if value.year <= 1900:
            return value.strftime("%H:%M")
        return value.strftime("%Y-%m-%d")
    if isinstance(value, datetime.date):
        return value.isoformat()
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return _normalize_text(value.strip())
    return value


def _normalize_text(text: str) -> str:
    """Drop the seconds and midnight parts that stringified Excel cells carry."""
    match = _CLOCK_WITH_SECONDS.match(text)
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"
    match = _MIDNIGHT_TIMESTAMP.match(text)
    if match:
        return match.group(1)
    return text


def _unique_headers(labels: List[str]) -> List[str]:
    """Suffix repeated labels (`Date`, `Date_1`, ...) so no column is lost."""
    headers: List[str] = []
    used = set()
    for label in labels:
        candidate, n = label, 0
        while candidate in used:
            n += 1
            candidate = f"{label}_{n}"
        used.add(candidate)
        headers.append(candidate)
    return headers


def read_rows(
    file_bytes: bytes,
    filename: str,
    default: Any = "",
    drop_blank_rows: bool = True,
) -> List[Dict[str, Any]]:
    """Read an Excel or CSV attendance file and return one dict per data row.

    Args:
        file_bytes: Raw file content
        filename: Original filename (used to infer format)
        default: Value used for empty cells
        drop_blank_rows: Skip rows where every cell is empty

    Returns:
        List of {header: cell} mappings in sheet order.

    Raises:
        SpreadsheetError: If the file is empty, unsupported or cannot be decoded
    """
    if not file_bytes:
        raise SpreadsheetError("Failed to read file: File is empty")

    df = _read_raw_frame(file_bytes, filename)
    if df.empty:
        raise SpreadsheetError("No data found in file")

    header_idx = _find_header_row(df)
    labels = []
    for pos, label in enumerate(df.iloc[header_idx]):
        text = "" if _is_missing(label) else str(label).strip()
        labels.append(text or f"Column {pos + 1}")
    headers = _unique_headers(labels)

    rows: List[Dict[str, Any]] = []
    for _, raw in df.iloc[header_idx + 1:].iterrows():
        cells = [coerce_cell(v, default) for v in raw.tolist()]
        if drop_blank_rows and all(c == default or c == "" for c in cells):
            continue
        rows.append(dict(zip(headers, cells)))

    if not rows:
        raise SpreadsheetError("No data found in file")

    logger.info(f"Parsed {len(rows)} rows from {filename}. Columns: {headers}")
    return rows
