from flask import Blueprint, current_app, jsonify, request

from ..decorators import error_response, handle_service_errors
from ..services import reporting_service
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _limit() -> int:
    raw = request.args.get("limit")
    if raw is None or raw == "":
        return current_app.config["REPORT_TOP_N"]
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("limit must be an integer")


@reports_bp.get("/<name>")
@handle_service_errors("build report")
def report_route(name: str):
    """
    /api/reports/<name>?from=YYYY-MM-DD&to=YYYY-MM-DD&limit=N

    Dates are calendar days in REPORT_TIMEZONE; limit applies to the
    ranking reports only.
    """
    if name not in reporting_service.REPORTS:
        return error_response(f"Unknown report: {name}", "not_found", 404)

    report = reporting_service.build_report(
        name,
        reporting_service.load_report_data(),
        date_from=request.args.get("from"),
        date_to=request.args.get("to"),
        top_n=_limit(),
        tz=current_app.config["REPORT_TIMEZONE"],
    )
    return jsonify(report), 200
