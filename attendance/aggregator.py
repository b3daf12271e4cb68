"""Gap-filling monthly aggregation of attendance facts.

Every employee gets exactly one record per calendar day of the month. Days with
no observed fact are synthesized from the calendar: a missing working day is
leave, a missing day off is neutral.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from attendance.calendar_policy import classify, month_days, month_name, monthly_expected_hours
from attendance.core import mean, percentage, sum_hours
from attendance.models import AttendanceFact, EmployeeReport, MonthlyReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObservedDay:
    fact: AttendanceFact

    def to_fact(self) -> AttendanceFact:
        return self.fact


@dataclass(frozen=True)
class SyntheticLeave:
    employee_id: str
    employee_name: str
    day: date
    expected_hours: float

    def to_fact(self) -> AttendanceFact:
        return AttendanceFact(
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            date=self.day.isoformat(),
            in_time=None,
            out_time=None,
            worked_hours=None,
            is_leave=True,
            expected_hours=self.expected_hours,
        )


@dataclass(frozen=True)
class SyntheticOff:
    employee_id: str
    employee_name: str
    day: date

    def to_fact(self) -> AttendanceFact:
        return AttendanceFact(
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            date=self.day.isoformat(),
            in_time=None,
            out_time=None,
            worked_hours=None,
            is_leave=False,
            expected_hours=0.0,
        )


DayEntry = Union[ObservedDay, SyntheticLeave, SyntheticOff]


def group_facts(facts: Iterable[AttendanceFact]) -> Dict[str, Dict[str, AttendanceFact]]:
    """Bucket facts by employee then date; a later fact for the same day replaces the earlier one."""
    grouped: Dict[str, Dict[str, AttendanceFact]] = {}
    for fact in facts:
        grouped.setdefault(fact.employee_id, {})[fact.date] = fact
    return grouped


def fill_month(
    employee_id: str,
    employee_name: str,
    observed: Mapping[str, AttendanceFact],
    year: int,
    month: int,
) -> List[DayEntry]:
    """One entry per day of the month, ascending by date."""
    entries: List[DayEntry] = []
    for day in month_days(year, month):
        fact = observed.get(day.isoformat())
        if fact is not None:
            entries.append(ObservedDay(fact))
            continue
        policy = classify(day)
        if policy.is_working_day:
            entries.append(SyntheticLeave(employee_id, employee_name, day, policy.expected_hours))
        else:
            entries.append(SyntheticOff(employee_id, employee_name, day))
    return entries


def summarize_employee(
    employee_id: str,
    employee_name: str,
    entries: Iterable[DayEntry],
    expected_hours: float,
) -> EmployeeReport:
    records = sorted((e.to_fact() for e in entries), key=lambda r: r.date)
    worked = sum_hours(r.worked_hours for r in records)
    return EmployeeReport(
        employee_id=employee_id,
        employee_name=employee_name,
        total_expected_hours=expected_hours,
        total_worked_hours=worked,
        leaves_used=sum(1 for r in records if r.counts_as_leave),
        productivity=percentage(worked, expected_hours),
        daily_records=records,
    )


def aggregate(
    facts: Iterable[AttendanceFact],
    year: int,
    month: int,
    known_employees: Optional[Iterable[Tuple[str, str]]] = None,
    expected_hours: Optional[float] = None,
) -> MonthlyReport:
    """Build the monthly report for every employee in `facts` or `known_employees`.

    `known_employees` are (id, name) pairs seen in the source even when none of
    their rows produced a fact for this month; they get a fully synthesized month.
    `expected_hours` may be passed when the caller already computed it.
    """
    facts = list(facts)
    if expected_hours is None:
        expected_hours = monthly_expected_hours(year, month)

    names: Dict[str, str] = {}
    for fact in facts:
        names.setdefault(fact.employee_id, fact.employee_name)
    for employee_id, employee_name in known_employees or ():
        names.setdefault(employee_id, employee_name)

    grouped = group_facts(facts)
    employees = []
    for employee_id, employee_name in names.items():
        entries = fill_month(employee_id, employee_name, grouped.get(employee_id, {}), year, month)
        employees.append(summarize_employee(employee_id, employee_name, entries, expected_hours))

    report = MonthlyReport(
        year=year,
        month_number=month,
        month=month_name(month),
        employees=employees,
        total_expected_hours=expected_hours,
        total_worked_hours=sum_hours(e.total_worked_hours for e in employees),
        total_leaves=sum(e.leaves_used for e in employees),
        average_productivity=mean(e.productivity for e in employees),
    )
    logger.info(
        f"Aggregated {len(facts)} facts into {len(employees)} employee reports for {year}-{month:02d}"
    )
    return report
