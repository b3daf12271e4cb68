"""Excel and CSV conversions for attendance reports."""
import io
import logging

import pandas as pd

from attendance.models import MonthlyReport

logger = logging.getLogger(__name__)

SUMMARY_SHEET = "Employee Summary"
DAILY_SHEET = "Daily Records"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def report_to_frames(report: MonthlyReport):
    """Return (summary_df, daily_df) for a monthly report."""
    summary_df = pd.DataFrame(
        [
            {
                "Employee ID": e.employee_id,
                "Employee Name": e.employee_name,
                "Expected Hours": e.total_expected_hours,
                "Worked Hours": e.total_worked_hours,
                "Leaves Used": e.leaves_used,
                "Productivity (%)": e.productivity,
            }
            for e in report.employees
        ],
        columns=["Employee ID", "Employee Name", "Expected Hours", "Worked Hours", "Leaves Used", "Productivity (%)"],
    )
    daily_df = pd.DataFrame(
        [
            {
                "Employee ID": r.employee_id,
                "Employee Name": r.employee_name,
                "Date": r.date,
                "In-Time": r.in_time,
                "Out-Time": r.out_time,
                "Worked Hours": r.worked_hours,
                "Expected Hours": r.expected_hours,
                "Leave": r.is_leave,
            }
            for e in report.employees
            for r in e.daily_records
        ],
        columns=["Employee ID", "Employee Name", "Date", "In-Time", "Out-Time", "Worked Hours", "Expected Hours", "Leave"],
    )
    return summary_df, daily_df


def report_to_excel_bytes(report: MonthlyReport) -> bytes:
    summary_df, daily_df = report_to_frames(report)
    output_io = io.BytesIO()
    with pd.ExcelWriter(output_io, engine="openpyxl") as writer:
        summary_df.to_excel(writer, index=False, sheet_name=SUMMARY_SHEET)
        daily_df.to_excel(writer, index=False, sheet_name=DAILY_SHEET)
    logger.info(f"Exported report for {report.month} {report.year}: {len(summary_df)} employees")
    return output_io.getvalue()


def convert_csv_to_excel(csv_path, excel_path, sheet_name: str = "Attendance") -> int:
    """Copy a CSV attendance sheet into an .xlsx workbook, cells kept as text.

    Returns the number of data rows written.
    """
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    logger.info(f"Converted {csv_path} to {excel_path} ({len(df)} rows)")
    return len(df)
