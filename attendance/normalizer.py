"""Turn raw spreadsheet rows into canonical attendance facts.

Real attendance exports name their columns in many ways ("Employee Name",
"EmployeeName", "emp_name", ...). Each logical field has an ordered list of
accepted spellings; a `FieldResolver` built once per header set looks those up
case-insensitively so every row is resolved the same way.
"""
import logging
import math
import re
from datetime import date, time, timedelta
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from attendance.calendar_policy import expected_hours_for
from attendance.clock import compute_worked_hours
from attendance.models import AttendanceFact, Rejection

logger = logging.getLogger(__name__)

EMPLOYEE_ID = "employee_id"
EMPLOYEE_NAME = "employee_name"
DATE = "date"
IN_TIME = "in_time"
OUT_TIME = "out_time"

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    EMPLOYEE_ID: ("Employee ID", "EmployeeID", "employee_id", "EmployeeId", "EMP ID", "emp_id"),
    EMPLOYEE_NAME: ("Employee Name", "EmployeeName", "employee_name", "Name", "EMP Name", "emp_name"),
    DATE: ("Date", "date", "DATE", "Attendance Date"),
    IN_TIME: ("In-Time", "InTime", "in_time", "In Time", "IN TIME", "Check In", "check_in"),
    OUT_TIME: ("Out-Time", "OutTime", "out_time", "Out Time", "OUT TIME", "Check Out", "check_out"),
}

# Rejection reasons
MISSING_REQUIRED = "missing_required"
BAD_DATE = "bad_date"
OUT_OF_MONTH = "out_of_month"

SERIAL_EPOCH = date(1899, 12, 30)
_NUMERIC_PATTERN = re.compile(r"^\d+(\.\d+)?$")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value).strip()


class FieldResolver:
    """Case-insensitive, alias-aware column lookup for one set of headers."""

    def __init__(self, headers: Iterable[Any], aliases: Mapping[str, Tuple[str, ...]] = FIELD_ALIASES):
        self.aliases = aliases
        self._lookup: Dict[str, List[Any]] = {}
        for header in headers:
            key = str(header).strip().casefold()
            columns = self._lookup.setdefault(key, [])
            if header not in columns:
                columns.append(header)

    def columns_for(self, field_name: str) -> List[Any]:
        """Actual headers that can supply `field_name`, in priority order."""
        found = []
        for alias in self.aliases[field_name]:
            for header in self._lookup.get(alias.casefold(), []):
                if header not in found:
                    found.append(header)
        return found

    def resolves(self, field_name: str) -> bool:
        return bool(self.columns_for(field_name))

    def value(self, row: Mapping[Any, Any], field_name: str) -> Any:
        """First non-empty cell among the field's columns, or None."""
        for header in self.columns_for(field_name):
            cell = row.get(header)
            if not _is_blank(cell):
                return cell
        return None


def build_resolver(rows: Iterable[Mapping[Any, Any]]) -> FieldResolver:
    """Build a resolver from every header seen across `rows`, in first-seen order."""
    headers: List[Any] = []
    seen = set()
    for row in rows:
        for key in row.keys():
            if key not in seen:
                seen.add(key)
                headers.append(key)
    return FieldResolver(headers)


def derive_employee_id(name: str) -> str:
    """Stable id for an employee known only by name: ``"John  Doe"`` -> ``"EMP_John_Doe"``."""
    slug = re.sub(r"\s+", "_", name.strip())
    slug = re.sub(r"[^A-Za-z0-9_]", "", slug)
    return f"EMP_{slug}"


class SerialDate(NamedTuple):
    """Spreadsheet serial day number (day 0 is 1899-12-30)."""

    serial: float


class IsoDate(NamedTuple):
    text: str


DateValue = Union[SerialDate, IsoDate]


def classify_date_value(value: Any) -> Optional[DateValue]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return SerialDate(float(value))
    if isinstance(value, str):
        cleaned = value.strip()
        if _NUMERIC_PATTERN.match(cleaned):
            return SerialDate(float(cleaned))
        if cleaned:
            return IsoDate(cleaned)
    return None


def _decode_serial(value: SerialDate) -> Optional[date]:
    if not math.isfinite(value.serial):
        return None
    try:
        return SERIAL_EPOCH + timedelta(days=math.floor(value.serial))
    except OverflowError:
        return None


def _decode_iso(value: IsoDate) -> Optional[date]:
    match = _ISO_PATTERN.match(value.text)
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def decode_date(value: Any) -> Optional[date]:
    """Decode a serial number or ``YYYY-MM-DD`` string; None for anything else."""
    tagged = classify_date_value(value)
    if isinstance(tagged, SerialDate):
        return _decode_serial(tagged)
    if isinstance(tagged, IsoDate):
        return _decode_iso(tagged)
    return None


def normalize_row(
    row: Mapping[Any, Any],
    year: int,
    month: int,
    resolver: Optional[FieldResolver] = None,
) -> Union[AttendanceFact, Rejection]:
    """Map one raw row to an `AttendanceFact` for (year, month), or a `Rejection`.

    Rows need an employee name and a date. The employee id is derived from the
    name when the sheet has none. Times are only trimmed here; a row with either
    time missing is flagged as leave, and unusable times just leave
    `worked_hours` empty.
    """
    if resolver is None:
        resolver = FieldResolver(row.keys())

    name = _text(resolver.value(row, EMPLOYEE_NAME))
    raw_date = resolver.value(row, DATE)
    if not name or _is_blank(raw_date):
        return Rejection(MISSING_REQUIRED)

    employee_id = _text(resolver.value(row, EMPLOYEE_ID)) or derive_employee_id(name)

    day = decode_date(raw_date)
    if day is None:
        logger.debug(f"Unparseable date {raw_date!r} for {employee_id}")
        return Rejection(BAD_DATE, employee_id, name)
    if day.year != year or day.month != month:
        return Rejection(OUT_OF_MONTH, employee_id, name)

    in_time = _text(resolver.value(row, IN_TIME)) or None
    out_time = _text(resolver.value(row, OUT_TIME)) or None

    return AttendanceFact(
        employee_id=employee_id,
        employee_name=name,
        date=day.isoformat(),
        in_time=in_time,
        out_time=out_time,
        worked_hours=compute_worked_hours(in_time, out_time, day),
        is_leave=in_time is None or out_time is None,
        expected_hours=expected_hours_for(day),
    )
