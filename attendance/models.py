"""Attendance records and the reports built from them."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AttendanceFact:
    """One observed or synthesized attendance record for an employee on a day."""

    employee_id: str
    employee_name: str
    date: str
    in_time: Optional[str]
    out_time: Optional[str]
    worked_hours: Optional[float]
    is_leave: bool
    expected_hours: float

    @property
    def counts_as_leave(self) -> bool:
        # Leave only counts on days that expect work
        return self.is_leave and self.expected_hours > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "date": self.date,
            "inTime": self.in_time,
            "outTime": self.out_time,
            "workedHours": self.worked_hours,
            "isLeave": self.is_leave,
            "expectedHours": self.expected_hours,
        }


@dataclass(frozen=True)
class Rejection:
    """A raw row that produced no fact.

    `employee_id`/`employee_name` are set when the row still identified an
    employee, so that employee can appear in the report with a synthesized month.
    """

    reason: str
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None


@dataclass
class EmployeeReport:
    employee_id: str
    employee_name: str
    total_expected_hours: float
    total_worked_hours: float
    leaves_used: int
    productivity: float
    daily_records: List[AttendanceFact] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "totalExpectedHours": self.total_expected_hours,
            "totalWorkedHours": self.total_worked_hours,
            "leavesUsed": self.leaves_used,
            "productivity": self.productivity,
            "dailyRecords": [r.to_dict() for r in self.daily_records],
        }


@dataclass
class MonthlyReport:
    year: int
    month_number: int
    month: str
    employees: List[EmployeeReport]
    total_expected_hours: float
    total_worked_hours: float
    total_leaves: int
    average_productivity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "monthNumber": self.month_number,
            "employees": [e.to_dict() for e in self.employees],
            "totalExpectedHours": self.total_expected_hours,
            "totalWorkedHours": self.total_worked_hours,
            "totalLeaves": self.total_leaves,
            "averageProductivity": self.average_productivity,
        }
