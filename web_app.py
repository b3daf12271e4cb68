from flask import Flask, request, send_file, jsonify
import io
import os
import logging
from attendance.aggregator import aggregate
from attendance.errors import AttendanceError, StoreUnavailableError
from attendance.export import XLSX_MIMETYPE, report_to_excel_bytes
from attendance.pipeline import build_report_from_file, parse_month
from attendance.spreadsheet import allowed_file
from attendance.store import NullStore, persist_report, store_from_env

logger = logging.getLogger(__name__)

try:
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
except Exception:
    sentry_sdk = None


app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-for-local-testing-only")

# Max upload size: default 16 MiB, can be overridden via env var MAX_CONTENT_LENGTH
app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024))

# Optional Basic Auth: set BASIC_AUTH_USERNAME and BASIC_AUTH_PASSWORD in env to enable
BASIC_AUTH_USERNAME = os.environ.get("BASIC_AUTH_USERNAME")
BASIC_AUTH_PASSWORD = os.environ.get("BASIC_AUTH_PASSWORD")

# Initialize Sentry if DSN provided
SENTRY_DSN = os.environ.get("SENTRY_DSN")
if SENTRY_DSN and sentry_sdk is not None:
    sentry_sdk.init(dsn=SENTRY_DSN, integrations=[FlaskIntegration()])

# Optional persistence: set ATTENDANCE_DB_PATH to mirror uploads into SQLite
try:
    app.config["ATTENDANCE_STORE"] = store_from_env()
except Exception:
    logger.exception("Could not open attendance database; persistence disabled")
    app.config["ATTENDANCE_STORE"] = NullStore()


def _store():
    return app.config.get("ATTENDANCE_STORE") or NullStore()


def _check_basic_auth():
    """Return True if auth is not enabled or if provided credentials match env vars."""
    if not (BASIC_AUTH_USERNAME and BASIC_AUTH_PASSWORD):
        return True
    auth = request.authorization
    if not auth:
        return False
    return auth.username == BASIC_AUTH_USERNAME and auth.password == BASIC_AUTH_PASSWORD


@app.before_request
def require_basic_auth():
    # Protect all routes when BASIC_AUTH_* are set
    if BASIC_AUTH_USERNAME and BASIC_AUTH_PASSWORD:
        if not _check_basic_auth():
            return ("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="Login Required"'})


def _error(message, status, **extra):
    return jsonify(error=message, **extra), status


@app.errorhandler(413)
def request_entity_too_large(error):
    return _error("File too large. Max size is {} bytes.".format(app.config["MAX_CONTENT_LENGTH"]), 413)


@app.route("/health", methods=["GET"])
def health():
    return jsonify(status="ok"), 200


@app.route("/ready", methods=["GET"])
def ready():
    # Basic readiness check: can import pandas and write an in-memory excel
    try:
        import pandas as pd
        import tempfile

        df = pd.DataFrame({"a": [1]})
        with tempfile.TemporaryFile() as tf:
            with pd.ExcelWriter(tf, engine="openpyxl") as w:
                df.to_excel(w, index=False)
        return jsonify(ready=True), 200
    except Exception:
        return jsonify(ready=False), 500


def _report_from_upload():
    """Build the report for the uploaded file and month, or return an error response."""
    uploaded = request.files.get("file")
    if uploaded is None or uploaded.filename == "":
        return None, _error("No file provided", 400)

    month = request.form.get("month", "")
    logger.info(f"Received month: {month!r} File: {uploaded.filename}")

    if not allowed_file(uploaded.filename):
        return None, _error("Unsupported file type. Please upload .xlsx, .xls, or .csv files.", 400)

    try:
        result = build_report_from_file(uploaded.read(), uploaded.filename, month)
    except AttendanceError as e:
        if e.diagnostics:
            return None, _error(e.message, 400, debug=e.diagnostics)
        return None, _error(e.message, 400)
    except Exception as e:
        logger.exception(f"Upload error for {uploaded.filename}")
        if sentry_sdk is not None:
            sentry_sdk.capture_exception(e)
        return None, _error(str(e) or "Failed to process file", 500)

    return result.report, None


@app.route("/api/upload", methods=["GET"])
def upload_status():
    return jsonify(message="Upload API is working"), 200


@app.route("/api/upload", methods=["POST"])
def upload():
    report, error = _report_from_upload()
    if error is not None:
        return error

    persist_report(_store(), report)
    return jsonify(report.to_dict()), 200


@app.route("/api/export", methods=["POST"])
def export():
    report, error = _report_from_upload()
    if error is not None:
        return error

    return send_file(
        io.BytesIO(report_to_excel_bytes(report)),
        as_attachment=True,
        download_name=f"Attendance_{report.year}-{report.month_number:02d}.xlsx",
        mimetype=XLSX_MIMETYPE,
    )


@app.route("/api/data", methods=["GET"])
def data():
    try:
        year, month = parse_month(request.args.get("month", ""))
    except AttendanceError as e:
        return _error(e.message, 400)

    try:
        facts, employees = _store().load_month(year, month)
    except StoreUnavailableError as e:
        return _error(e.message, 500)
    except Exception as e:
        logger.exception("Data fetch error")
        return _error(str(e) or "Failed to fetch data", 500)

    return jsonify(aggregate(facts, year, month, employees).to_dict()), 200


if __name__ == "__main__":
    # Use PORT environment variable for cloud servers; default to 5000 for local dev
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_ENV") == "development"
    app.run(host="0.0.0.0", port=port, debug=debug)
