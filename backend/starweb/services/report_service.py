# Overview: Service-layer operations for products and test reports; serial numbers, product snapshots and print log.

"""
Report Service

A report embeds a copy of its product at creation time. Editing a product
later does not rewrite reports already issued; re-selecting the product on
a report update takes a fresh copy.
"""

import logging

from ..extensions import db
from ..models import Product, Report
from ..time_utils import to_utc_z, utcnow
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from . import settings_service, snapshot_service


logger = logging.getLogger(__name__)

CHART_TYPES = ("bar", "line", "area", "pie")


class ProductNotFoundError(NotFoundError):
    pass


class ReportNotFoundError(NotFoundError):
    pass


class ReportValidationError(ValidationError):
    pass


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "material_code", "company_name", "address", "specification"},
    required_on_create={"name"},
)

REPORT_POLICY = ModelValidationPolicy(
    writable_fields={
        "serial_number", "tax_invoice_number", "challan_number", "quantity",
        "date", "test_data", "chart_type",
    },
    required_on_create={"date"},
    choices={"chart_type": CHART_TYPES},
)


# -- Products -----------------------------------------------------------------

def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.name, Product.id).all()


def get_product(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError("Product not found")
    return product


def create_product(*, payload: dict, username: str | None = None) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    product = Product(created_by=username, **patch)
    db.session.add(product)
    snapshot_service.commit_and_publish("products")
    return product


def update_product(product_id: str, *, payload: dict, username: str | None = None) -> Product:
    product = get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    for key, value in patch.items():
        setattr(product, key, value)
    product.touch(username)
    snapshot_service.commit_and_publish("products")
    return product


def delete_product(product_id: str) -> None:
    db.session.delete(get_product(product_id))
    snapshot_service.commit_and_publish("products")


# -- Reports ------------------------------------------------------------------

def _product_snapshot(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "material_code": product.material_code,
        "company_name": product.company_name,
        "address": product.address,
        "specification": dict(product.specification or {}),
    }


def _split_payload(payload) -> tuple[dict, str | None]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ReportValidationError("Invalid JSON payload")
    data = dict(payload)
    return data, data.pop("product_id", None)


def list_reports(*, product_id: str | None = None) -> list[Report]:
    reports = db.session.query(Report).order_by(Report.date.desc(), Report.serial_number.desc()).all()
    if product_id:
        reports = [r for r in reports if (r.product or {}).get("id") == product_id]
    return reports


def get_report(report_id: str) -> Report:
    report = db.session.get(Report, report_id)
    if report is None:
        raise ReportNotFoundError("Report not found")
    return report


def create_report(*, payload: dict, username: str | None = None) -> Report:
    data, product_id = _split_payload(payload)
    if not product_id:
        raise ReportValidationError("product_id is required")
    product = get_product(product_id)

    patch = validate_payload(model=Report, payload=data, policy=REPORT_POLICY, partial=False)
    if not patch.get("serial_number"):
        patch["serial_number"] = settings_service.allocate_number("report")

    report = Report(product=_product_snapshot(product), print_log=[], created_by=username, **patch)
    db.session.add(report)
    snapshot_service.commit_and_publish("reports")
    logger.info("Report %s created for product %s", report.serial_number, product.name)
    return report


def update_report(report_id: str, *, payload: dict, username: str | None = None) -> Report:
    report = get_report(report_id)
    data, product_id = _split_payload(payload)
    patch = validate_payload(model=Report, payload=data, policy=REPORT_POLICY, partial=True)
    if product_id:
        report.product = _product_snapshot(get_product(product_id))
    for key, value in patch.items():
        setattr(report, key, value)
    report.touch(username)
    snapshot_service.commit_and_publish("reports")
    return report


def delete_report(report_id: str) -> None:
    db.session.delete(get_report(report_id))
    snapshot_service.commit_and_publish("reports")


def record_print(report_id: str, *, username: str | None = None) -> Report:
    """Append a print log entry; the log only ever grows."""
    report = get_report(report_id)
    report.print_log = [*(report.print_log or []), {"date": to_utc_z(utcnow()), "printed_by": username}]
    db.session.commit()
    snapshot_service.publish("reports")
    return report
