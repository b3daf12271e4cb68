"""Tests for raw row normalization."""
from datetime import date

import pytest

from attendance.models import AttendanceFact, Rejection
from attendance.normalizer import (
    BAD_DATE,
    EMPLOYEE_NAME,
    MISSING_REQUIRED,
    OUT_OF_MONTH,
    FieldResolver,
    IsoDate,
    SerialDate,
    build_resolver,
    classify_date_value,
    decode_date,
    derive_employee_id,
    normalize_row,
)


def test_normalize_standard_row():
    row = {
        "Employee ID": "E001",
        "Employee Name": "Alice Smith",
        "Date": "2024-01-02",
        "In-Time": "09:00",
        "Out-Time": "17:30",
    }

    fact = normalize_row(row, 2024, 1)

    assert fact == AttendanceFact(
        employee_id="E001",
        employee_name="Alice Smith",
        date="2024-01-02",
        in_time="09:00",
        out_time="17:30",
        worked_hours=8.5,
        is_leave=False,
        expected_hours=8.5,
    )


def test_normalize_is_pure():
    row = {"Name": "Bob", "date": "2024-01-06", "Check In": "08:00", "Check Out": "12:00"}
    assert normalize_row(row, 2024, 1) == normalize_row(row, 2024, 1)


def test_aliases_are_case_insensitive():
    row = {"EMPLOYEE NAME": "Carol", "attendance date": "2024-01-03", "in time": "10:00", "OUT-TIME": "12:30"}

    fact = normalize_row(row, 2024, 1)

    assert fact.employee_name == "Carol"
    assert fact.in_time == "10:00"
    assert fact.worked_hours == 2.5


def test_first_non_empty_alias_wins():
    """An empty higher-priority column falls through to the next alias."""
    row = {"Employee Name": "", "Name": "Dave", "Date": "2024-01-03"}
    fact = normalize_row(row, 2024, 1)
    assert fact.employee_name == "Dave"


def test_employee_id_derived_from_name():
    rows = [
        {"Employee Name": "John  Doe", "Date": "2024-01-02", "In-Time": "09:00", "Out-Time": "17:00"},
        {"Employee Name": " John  Doe ", "Date": "2024-01-03", "In-Time": "09:00", "Out-Time": "17:00"},
    ]
    ids = {normalize_row(r, 2024, 1).employee_id for r in rows}
    assert ids == {"EMP_John_Doe"}


def test_derive_employee_id_strips_punctuation():
    assert derive_employee_id("Mary-Jane O'Neil") == "EMP_MaryJane_ONeil"
    assert derive_employee_id("  Li\tWei ") == "EMP_Li_Wei"


def test_numeric_employee_id_is_text():
    row = {"emp_id": 101.0, "emp_name": "Eve", "Date": "2024-01-02"}
    assert normalize_row(row, 2024, 1).employee_id == "101"


@pytest.mark.parametrize(
    "row",
    [
        {"Employee Name": "", "Date": "2024-01-02"},
        {"Employee Name": "   ", "Date": "2024-01-02"},
        {"Employee Name": "Frank", "Date": ""},
        {"Employee Name": "Frank"},
        {"Date": "2024-01-02", "In-Time": "09:00"},
    ],
)
def test_missing_required_fields_rejected(row):
    outcome = normalize_row(row, 2024, 1)
    assert outcome == Rejection(MISSING_REQUIRED)


def test_unparseable_date_rejected_but_keeps_identity():
    outcome = normalize_row({"Employee Name": "Gina", "Date": "02/01/2024"}, 2024, 1)
    assert isinstance(outcome, Rejection)
    assert outcome.reason == BAD_DATE
    assert outcome.employee_id == "EMP_Gina"


def test_out_of_month_rejected():
    outcome = normalize_row({"Employee Name": "Hank", "Date": "2024-02-01"}, 2024, 1)
    assert outcome == Rejection(OUT_OF_MONTH, "EMP_Hank", "Hank")


def test_missing_time_is_leave_without_hours():
    fact = normalize_row({"Employee Name": "Ivy", "Date": "2024-01-02", "Out-Time": "17:00"}, 2024, 1)
    assert fact.in_time is None
    assert fact.worked_hours is None
    assert fact.is_leave is True


def test_leave_flag_ignores_calendar():
    """A Sunday row without times is still flagged; counting is decided later."""
    fact = normalize_row({"Employee Name": "Jack", "Date": "2024-01-07"}, 2024, 1)
    assert fact.is_leave is True
    assert fact.expected_hours == 0.0


def test_malformed_time_keeps_row():
    fact = normalize_row(
        {"Employee Name": "Kate", "Date": "2024-01-02", "In-Time": "25:00", "Out-Time": "17:00"}, 2024, 1
    )
    assert isinstance(fact, AttendanceFact)
    assert fact.worked_hours is None
    assert fact.in_time == "25:00"
    assert fact.is_leave is False


def test_serial_date():
    # 45293 is 2024-01-02 in spreadsheet serial numbering
    fact = normalize_row({"Employee Name": "Liam", "Date": 45293}, 2024, 1)
    assert fact.date == "2024-01-02"


@pytest.mark.parametrize(
    "value,expected",
    [
        (45292, date(2024, 1, 1)),
        (45292.75, date(2024, 1, 1)),
        ("45293", date(2024, 1, 2)),
        (1, date(1899, 12, 31)),
        ("2024-01-31", date(2024, 1, 31)),
        ("2024-1-5", date(2024, 1, 5)),
        ("2024-02-30", None),
        ("Jan 5 2024", None),
        (float("nan"), None),
        (10 ** 9, None),
        (True, None),
    ],
)
def test_decode_date(value, expected):
    assert decode_date(value) == expected


def test_classify_date_value_tags():
    assert classify_date_value(45000) == SerialDate(45000.0)
    assert classify_date_value("2024-01-01") == IsoDate("2024-01-01")
    assert classify_date_value(None) is None


def test_resolver_built_once_for_all_headers():
    rows = [{"Name": "A", "Date": "2024-01-01"}, {"Name": "B", "Date": "2024-01-01", "EMP ID": "7"}]
    resolver = build_resolver(rows)
    assert resolver.resolves(EMPLOYEE_NAME)
    assert resolver.columns_for("employee_id") == ["EMP ID"]


def test_resolver_priority_follows_alias_order():
    resolver = FieldResolver(["Name", "Employee Name"])
    assert resolver.columns_for(EMPLOYEE_NAME) == ["Employee Name", "Name"]
    assert resolver.value({"Name": "Short", "Employee Name": "Full"}, EMPLOYEE_NAME) == "Full"
