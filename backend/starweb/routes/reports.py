# Overview: Flask API routes for products, test reports and box cost reports.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import cost_report_service, report_service
from ..validation import NotFoundError, ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api")

PRODUCTS = PermissionModule.PRODUCTS
REPORTS = PermissionModule.REPORTS


def _error(e: Exception):
    status = 404 if isinstance(e, NotFoundError) else 400
    return jsonify({"error": str(e)}), status


# -- Products -----------------------------------------------------------------

@reports_bp.get("/products")
@require_auth
@require_permission(PRODUCTS, PermissionAction.VIEW)
def list_products_route():
    products = report_service.list_products()
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@reports_bp.get("/products/<product_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.VIEW)
def get_product_route(product_id: str):
    try:
        return jsonify(report_service.get_product(product_id).to_dict())
    except NotFoundError as e:
        return _error(e)


@reports_bp.post("/products")
@require_auth
@require_permission(PRODUCTS, PermissionAction.CREATE)
def create_product_route():
    try:
        product = report_service.create_product(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(product.to_dict()), 201


@reports_bp.patch("/products/<product_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.EDIT)
def update_product_route(product_id: str):
    try:
        product = report_service.update_product(
            product_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(product.to_dict())


@reports_bp.delete("/products/<product_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.DELETE)
def delete_product_route(product_id: str):
    try:
        report_service.delete_product(product_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Product deleted"})


# -- Reports ------------------------------------------------------------------

@reports_bp.get("/reports")
@require_auth
@require_permission(REPORTS, PermissionAction.VIEW)
def list_reports_route():
    reports = report_service.list_reports(product_id=request.args.get("product_id"))
    return jsonify({"items": [r.to_dict() for r in reports], "count": len(reports)})


@reports_bp.get("/reports/<report_id>")
@require_auth
@require_permission(REPORTS, PermissionAction.VIEW)
def get_report_route(report_id: str):
    try:
        return jsonify(report_service.get_report(report_id).to_dict())
    except NotFoundError as e:
        return _error(e)


@reports_bp.post("/reports")
@require_auth
@require_permission(REPORTS, PermissionAction.CREATE)
def create_report_route():
    try:
        report = report_service.create_report(payload=request.get_json(silent=True), username=current_username())
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(report.to_dict()), 201


@reports_bp.patch("/reports/<report_id>")
@require_auth
@require_permission(REPORTS, PermissionAction.EDIT)
def update_report_route(report_id: str):
    try:
        report = report_service.update_report(
            report_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(report.to_dict())


@reports_bp.post("/reports/<report_id>/print")
@require_auth
@require_permission(REPORTS, PermissionAction.VIEW)
def print_report_route(report_id: str):
    try:
        report = report_service.record_print(report_id, username=current_username())
    except NotFoundError as e:
        return _error(e)
    return jsonify(report.to_dict())


@reports_bp.delete("/reports/<report_id>")
@require_auth
@require_permission(REPORTS, PermissionAction.DELETE)
def delete_report_route(report_id: str):
    try:
        report_service.delete_report(report_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Report deleted"})


# -- Cost reports -------------------------------------------------------------

@reports_bp.post("/cost-reports/calculate")
@require_auth
@require_permission(PRODUCTS, PermissionAction.VIEW)
def calculate_box_cost_route():
    """
    Request body: {"dimension": "LxBxH", "ply", "kraft_paper", "gum", "ink",
    "stitching_wire", "labour", "overhead"}, or {"product_id", ...rates} to
    take dimension and ply from the product's specification.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    dimension, ply = data.get("dimension"), data.get("ply")
    if data.get("product_id") and not (dimension and ply):
        try:
            spec = report_service.get_product(data["product_id"]).specification or {}
        except NotFoundError as e:
            return _error(e)
        dimension = dimension or spec.get("dimension")
        ply = ply or spec.get("ply")
    rates = {
        key: data.get(key)
        for key in ("kraft_paper",) + cost_report_service.BOX_RATE_FIELDS
    }
    figures = cost_report_service.calculate_box_cost(dimension, ply, **rates)
    if figures is None:
        return jsonify({"error": "dimension (L x B x H inches) and ply are required"}), 400
    return jsonify(figures)


@reports_bp.get("/cost-reports")
@require_auth
@require_permission(PRODUCTS, PermissionAction.VIEW)
def list_cost_reports_route():
    reports = cost_report_service.list_cost_reports()
    return jsonify({"items": [r.to_dict() for r in reports], "count": len(reports)})


@reports_bp.get("/cost-reports/<report_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.VIEW)
def get_cost_report_route(report_id: str):
    try:
        return jsonify(cost_report_service.get_cost_report(report_id).to_dict())
    except NotFoundError as e:
        return _error(e)


@reports_bp.post("/cost-reports")
@require_auth
@require_permission(PRODUCTS, PermissionAction.CREATE)
def create_cost_report_route():
    try:
        report = cost_report_service.create_cost_report(
            payload=request.get_json(silent=True), username=current_username()
        )
    except ValidationError as e:
        return _error(e)
    return jsonify(report.to_dict()), 201


@reports_bp.patch("/cost-reports/<report_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.EDIT)
def update_cost_report_route(report_id: str):
    try:
        report = cost_report_service.update_cost_report(
            report_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(report.to_dict())


@reports_bp.delete("/cost-reports/<report_id>")
@require_auth
@require_permission(PRODUCTS, PermissionAction.DELETE)
def delete_cost_report_route(report_id: str):
    try:
        cost_report_service.delete_cost_report(report_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Cost report deleted"})
