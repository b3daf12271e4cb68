"""Tests for decoding uploaded attendance files."""
import datetime
import io

import pandas as pd
import pytest

from attendance.errors import SpreadsheetError
from attendance.spreadsheet import allowed_file, coerce_cell, read_rows


def make_excel_bytes(df: pd.DataFrame, **kwargs) -> bytes:
    bio = io.BytesIO()
    with pd.ExcelWriter(bio, engine="openpyxl") as w:
        df.to_excel(w, index=False, **kwargs)
    return bio.getvalue()


def test_read_csv_rows():
    content = (
        "Employee Name,Date,In-Time,Out-Time\n"
        "Alice,2024-01-02,09:00,17:30\n"
        "\n"
        "Bob,2024-01-02,,\n"
    ).encode()

    rows = read_rows(content, "attendance.csv")

    assert len(rows) == 2
    assert rows[0] == {"Employee Name": "Alice", "Date": "2024-01-02", "In-Time": "09:00", "Out-Time": "17:30"}
    assert rows[1]["In-Time"] == ""


def test_blank_rows_kept_when_requested():
    content = b"Name,Date\nAlice,2024-01-02\n,\n"
    rows = read_rows(content, "a.csv", drop_blank_rows=False)
    assert len(rows) == 2


def test_header_row_found_below_title():
    content = (
        "Monthly Attendance Report,,\n"
        ",,\n"
        "Name,Date,Check In\n"
        "Alice,2024-01-02,09:00\n"
    ).encode()

    rows = read_rows(content, "report.csv")

    assert rows == [{"Name": "Alice", "Date": "2024-01-02", "Check In": "09:00"}]


def test_unpadded_title_and_extra_trailing_cells():
    """Rows of different widths are read as one table, short rows padded."""
    content = (
        "Monthly Attendance Report\n"
        "Name,Date,Check In,Check Out\n"
        "Alice,2024-01-02,09:00,17:30,late\n"
        "Bob,2024-01-02\n"
    ).encode()

    rows = read_rows(content, "report.csv")

    assert len(rows) == 2
    assert rows[0]["Name"] == "Alice"
    assert rows[0]["Check Out"] == "17:30"
    assert rows[0]["Column 5"] == "late"
    assert rows[1]["Check In"] == ""


def test_duplicate_headers_are_suffixed():
    content = b"Name,Date,Date,Date_1\nAlice,2024-01-02,2024-01-03,x\n"

    rows = read_rows(content, "a.csv")

    assert rows == [{"Name": "Alice", "Date": "2024-01-02", "Date_1": "2024-01-03", "Date_1_1": "x"}]


def test_read_excel_dates_and_times():
    df = pd.DataFrame([
        {
            "Employee Name": "Alice",
            "Date": datetime.datetime(2024, 1, 2),
            "In-Time": datetime.time(9, 0),
            "Out-Time": datetime.time(17, 30),
            "Employee ID": 42,
        }
    ])

    rows = read_rows(make_excel_bytes(df), "attendance.xlsx")

    assert rows[0]["Date"] == "2024-01-02"
    assert rows[0]["In-Time"] == "09:00"
    assert rows[0]["Out-Time"] == "17:30"
    assert rows[0]["Employee ID"] == 42


def test_serial_numbers_stay_numeric():
    df = pd.DataFrame([{"Employee Name": "Alice", "Date": 45293}])
    rows = read_rows(make_excel_bytes(df), "attendance.xlsx")
    assert rows[0]["Date"] == 45293


@pytest.mark.parametrize(
    "content,filename",
    [
        (b"", "attendance.csv"),
        (b"not really a workbook", "attendance.xlsx"),
        (b"Name,Date\n", "attendance.csv"),
        (b"Name,Date\nAlice,2024-01-02\n", "attendance.pdf"),
    ],
)
def test_unusable_files_raise(content, filename):
    with pytest.raises(SpreadsheetError):
        read_rows(content, filename)


def test_allowed_file():
    assert allowed_file("a.XLSX")
    assert allowed_file("a.csv")
    assert not allowed_file("a.txt")
    assert not allowed_file("noext")


def test_coerce_cell():
    assert coerce_cell(float("nan")) == ""
    assert coerce_cell(None, default=None) is None
    assert coerce_cell(3.0) == 3
    assert coerce_cell(2.5) == 2.5
    assert coerce_cell("  x ") == "x"
    assert coerce_cell(pd.Timestamp("2024-03-04")) == "2024-03-04"
    assert coerce_cell(datetime.datetime(1899, 12, 30, 8, 15)) == "08:15"
    assert coerce_cell(datetime.date(2024, 3, 4)) == "2024-03-04"
    assert coerce_cell("09:00:00") == "09:00"
    assert coerce_cell("7:05:30") == "07:05"
    assert coerce_cell("2024-01-02 00:00:00") == "2024-01-02"
    assert coerce_cell("2024-01-02 08:30:00") == "2024-01-02 08:30:00"
