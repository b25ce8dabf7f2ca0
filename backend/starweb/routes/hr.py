# Overview: Flask API routes for HR; attendance import and edits, payroll, punctuality and bonus.

"""
HR Routes

Periods are Bikram Sambat year/month pairs in the URL, months 1-12
(1 = Baisakh). Employees themselves are managed through
/api/reference/employees.
"""

from flask import Blueprint, request, jsonify

from ..bs_calendar import BS_MONTH_NAMES, BSCalendarError, current_bs_period, month_bounds
from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import attendance_service, bonus_service, payroll_service
from ..validation import NotFoundError, ValidationError


hr_bp = Blueprint("hr", __name__, url_prefix="/api/hr")

HR = PermissionModule.HR


def _error(e: Exception):
    status = 404 if isinstance(e, NotFoundError) else 400
    return jsonify({"error": str(e)}), status


def _rows_from_body():
    data = request.get_json(silent=True)
    rows = data.get("rows") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise ValidationError("rows must be a list")
    return rows


# -- Period -------------------------------------------------------------------

@hr_bp.get("/period")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def current_period_route():
    """The BS month containing today, used as the default HR period."""
    bs_year, bs_month = current_bs_period()
    first, last = month_bounds(bs_year, bs_month)
    return jsonify({
        "bs_year": bs_year,
        "bs_month": bs_month,
        "month_name": BS_MONTH_NAMES[bs_month - 1],
        "first_day": first.isoformat(),
        "last_day": last.isoformat(),
    })


# -- Attendance ---------------------------------------------------------------

@hr_bp.post("/attendance/calculate")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def calculate_attendance_route():
    """Calculate hours for parsed rows without saving them."""
    try:
        rows = _rows_from_body()
    except ValidationError as e:
        return _error(e)
    results = attendance_service.calculate_attendance(rows)
    return jsonify({"items": results, "count": len(results)})


@hr_bp.post("/attendance/import")
@require_auth
@require_permission(HR, PermissionAction.CREATE)
def import_attendance_route():
    """
    Request body: {"rows": [{"employee_name", "date", "on_duty", "off_duty",
    "clock_in", "clock_out", "status", "normal_hours", "ot_hours", "source_sheet"}]}
    """
    try:
        rows = _rows_from_body()
    except ValidationError as e:
        return _error(e)
    return jsonify(attendance_service.import_attendance(rows, username=current_username()))


@hr_bp.get("/attendance/<int:bs_year>/<int:bs_month>")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def list_attendance_route(bs_year: int, bs_month: int):
    try:
        records = attendance_service.records_for_month(bs_year, bs_month, request.args.get("employee_name"))
    except BSCalendarError as e:
        return _error(e)
    return jsonify({"items": [r.to_dict() for r in records], "count": len(records)})


@hr_bp.delete("/attendance/<int:bs_year>/<int:bs_month>")
@require_auth
@require_permission(HR, PermissionAction.DELETE)
def delete_attendance_month_route(bs_year: int, bs_month: int):
    try:
        removed = attendance_service.delete_month(bs_year, bs_month)
    except BSCalendarError as e:
        return _error(e)
    return jsonify({"message": "Attendance deleted", "deleted": removed})


@hr_bp.patch("/attendance/records/<record_id>")
@require_auth
@require_permission(HR, PermissionAction.EDIT)
def update_attendance_record_route(record_id: str):
    try:
        record = attendance_service.update_record(
            record_id, payload=request.get_json(silent=True) or {}, username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(record.to_dict())


# -- Payroll ------------------------------------------------------------------

@hr_bp.get("/payroll")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def list_payroll_runs_route():
    runs = payroll_service.list_payroll_runs()
    return jsonify({"items": [r.to_dict() for r in runs], "count": len(runs)})


@hr_bp.get("/payroll/<int:bs_year>/<int:bs_month>")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def generate_payroll_route(bs_year: int, bs_month: int):
    """
    Freshly calculated payroll, punctuality and weekday figures. The saved
    run, if any, is included under "saved".
    """
    try:
        result = payroll_service.generate_payroll(bs_year, bs_month)
    except (BSCalendarError, ValidationError) as e:
        return _error(e)
    try:
        result["saved"] = payroll_service.get_payroll_run(bs_year, bs_month).to_dict()
    except NotFoundError:
        result["saved"] = None
    return jsonify(result)


@hr_bp.post("/payroll/<int:bs_year>/<int:bs_month>")
@require_auth
@require_permission(HR, PermissionAction.CREATE)
def save_payroll_route(bs_year: int, bs_month: int):
    try:
        run = payroll_service.save_payroll_run(bs_year, bs_month, username=current_username())
    except (BSCalendarError, ValidationError) as e:
        return _error(e)
    return jsonify(run.to_dict()), 201


@hr_bp.patch("/payroll/<int:bs_year>/<int:bs_month>/lines")
@require_auth
@require_permission(HR, PermissionAction.EDIT)
def update_payroll_line_route(bs_year: int, bs_month: int):
    """Request body: {"employee_name", "allowance"?, "advance"?, "remark"?}"""
    data = request.get_json(silent=True) or {}
    if not data.get("employee_name"):
        return jsonify({"error": "employee_name is required"}), 400
    try:
        line = payroll_service.update_payroll_line(
            bs_year,
            bs_month,
            employee_name=data["employee_name"],
            allowance=data.get("allowance"),
            advance=data.get("advance"),
            remark=data.get("remark"),
            username=current_username(),
        )
    except NotFoundError as e:
        return _error(e)
    return jsonify(line)


# -- Bonus --------------------------------------------------------------------

@hr_bp.get("/bonus/<int:bs_year>/<int:bs_month>")
@require_auth
@require_permission(HR, PermissionAction.VIEW)
def bonus_route(bs_year: int, bs_month: int):
    try:
        result = bonus_service.calculate_bonus(
            bs_year, bs_month, min_present_days=request.args.get("min_present_days")
        )
    except (BSCalendarError, ValidationError) as e:
        return _error(e)
    return jsonify(result)
