"""End-to-end monthly attendance report from raw spreadsheet rows."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple
import logging

from attendance.aggregator import aggregate
from attendance.calendar_policy import monthly_expected_hours
from attendance.errors import InvalidMonthError, NoUsableDataError
from attendance.models import AttendanceFact, MonthlyReport, Rejection
from attendance.normalizer import build_resolver, normalize_row
from attendance.spreadsheet import read_rows

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = (
    "No employee data found in the file for the selected month. Please check:\n"
    "1. The file contains data for the selected month\n"
    "2. Column names match: Employee ID, Employee Name, Date, In-Time, Out-Time\n"
    "3. Dates are in YYYY-MM-DD format"
)


@dataclass
class ReportResult:
    report: MonthlyReport
    diagnostics: Dict[str, Any] = field(default_factory=dict)


def validate_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidMonthError("Invalid month or year")
    if not 1 <= year <= 9999:
        raise InvalidMonthError("Invalid month or year")


def parse_month(value: str) -> Tuple[int, int]:
    """Parse a ``YYYY-MM`` string into (year, month)."""
    if value is None or not str(value).strip():
        raise InvalidMonthError("Month not provided. Please select a month before uploading.")
    parts = str(value).strip().split("-")
    if len(parts) != 2:
        raise InvalidMonthError("Invalid month format. Use YYYY-MM")
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidMonthError("Invalid month or year")
    validate_month(year, month)
    return year, month


def build_report(rows: Sequence[Mapping[Any, Any]], year: int, month: int) -> ReportResult:
    """Normalize `rows` for (year, month) and aggregate them into a report.

    Rows that cannot be used are skipped and counted by reason. Raises
    NoUsableDataError (with diagnostics) when no employee can be reported on.
    """
    validate_month(year, month)
    expected_hours = monthly_expected_hours(year, month)
    resolver = build_resolver(rows)

    facts: List[AttendanceFact] = []
    known: Dict[str, str] = {}
    skipped: Counter = Counter()

    for row in rows:
        outcome = normalize_row(row, year, month, resolver)
        if isinstance(outcome, Rejection):
            skipped[outcome.reason] += 1
            if outcome.employee_id:
                known.setdefault(outcome.employee_id, outcome.employee_name)
            continue
        facts.append(outcome)
        known.setdefault(outcome.employee_id, outcome.employee_name)

    diagnostics = {
        "rowsParsed": len(rows),
        "rowsAccepted": len(facts),
        "rowsSkipped": sum(skipped.values()),
        "skipReasons": dict(skipped),
        "employeesFound": len(known),
        "monthSelected": f"{year:04d}-{month:02d}",
        "sampleRow": [str(k) for k in rows[0].keys()] if rows else [],
    }
    logger.info(
        f"Processed {len(facts)} rows, skipped {diagnostics['rowsSkipped']} rows, "
        f"found {len(known)} unique employees"
    )

    if not known:
        logger.warning(f"No employees found in processed data: {diagnostics}")
        raise NoUsableDataError(NO_DATA_MESSAGE, diagnostics)

    report = aggregate(facts, year, month, known.items(), expected_hours=expected_hours)
    return ReportResult(report, diagnostics)


def build_report_from_file(file_bytes: bytes, filename: str, month: str) -> ReportResult:
    """Parse the month first, then decode the file and build the report."""
    year, month_number = parse_month(month)
    rows = read_rows(file_bytes, filename)
    return build_report(rows, year, month_number)
