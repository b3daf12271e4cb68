"""Command-line entry point for attendance reports.

Usage examples (PowerShell):
  python cli.py report --file attendance.xlsx --month 2024-01
  python cli.py report --file attendance.csv --month 2024-01 --json out.json --excel out.xlsx
  python cli.py convert --csv employee_attendance_january_2024.csv
  python cli.py expected --month 2024-02
"""
from argparse import ArgumentParser
from pathlib import Path
import json
import logging
import sys

from attendance.calendar_policy import month_name, monthly_expected_hours
from attendance.errors import AttendanceError
from attendance.export import convert_csv_to_excel, report_to_excel_bytes
from attendance.pipeline import build_report_from_file, parse_month


def _print_report(report):
    print(f"Month: {report.month} {report.year}")
    print(f"Expected hours per employee: {report.total_expected_hours:.2f}")
    print(f"Total worked hours: {report.total_worked_hours:.2f}")
    print(f"Total leaves: {report.total_leaves}")
    print(f"Average productivity: {report.average_productivity:.2f}%")
    for emp in report.employees:
        print(
            f"  {emp.employee_id:<20} {emp.employee_name:<24} "
            f"worked {emp.total_worked_hours:>7.2f}h  leaves {emp.leaves_used:>2}  "
            f"productivity {emp.productivity:>6.2f}%"
        )


def main(argv=None):
    parser = ArgumentParser(prog="attendance")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_report = sub.add_parser("report", help="Build the monthly attendance report for a file")
    p_report.add_argument("--file", required=True, help="Attendance sheet (.xlsx, .xls or .csv)")
    p_report.add_argument("--month", required=True, help="Target month (YYYY-MM)")
    p_report.add_argument("--json", help="Write the report as JSON to this path")
    p_report.add_argument("--excel", help="Write the report as an Excel workbook to this path")

    p_convert = sub.add_parser("convert", help="Convert a CSV attendance sheet to Excel")
    p_convert.add_argument("--csv", required=True, help="CSV file to convert")
    p_convert.add_argument("--output", help="Output .xlsx path (defaults next to the CSV)")

    p_expected = sub.add_parser("expected", help="Show expected working hours for a month")
    p_expected.add_argument("--month", required=True, help="Target month (YYYY-MM)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.cmd == "report":
            path = Path(args.file)
            result = build_report_from_file(path.read_bytes(), path.name, args.month)
            _print_report(result.report)
            if args.json:
                Path(args.json).write_text(json.dumps(result.report.to_dict(), indent=2))
                print(f"JSON written to {args.json}")
            if args.excel:
                Path(args.excel).write_bytes(report_to_excel_bytes(result.report))
                print(f"Excel written to {args.excel}")
        elif args.cmd == "convert":
            csv_path = Path(args.csv)
            output = Path(args.output) if args.output else csv_path.with_suffix(".xlsx")
            rows = convert_csv_to_excel(csv_path, output)
            print(f"Converted {rows} rows to {output}")
        elif args.cmd == "expected":
            year, month = parse_month(args.month)
            print(f"{month_name(month)} {year}: {monthly_expected_hours(year, month):.2f} expected hours")
        else:
            parser.print_help()
    except AttendanceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for key, value in e.diagnostics.items():
            print(f"  {key}: {value}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
