# Overview: Service-layer operations for box cost reports; sheet size, paper required and per-box costs.

"""
Cost Report Service

A corrugated box is costed from its dimension (L x B x H in inches) and ply:

- sheet length = (2L + 2B + 5 cm) / 100, sheet breadth = (B + H + 2 cm) / 100
- paper required = sheet area * ply
- kraft paper and gum are charged on the paper required; ink, stitching
  wire, labour and overhead are flat per box

Dimension parts and rates are read with a leading-number parse, so "12in"
counts as 12 and text with no number counts as 0. Figures are not rounded.

Saved reports are numbered CR-0001, CR-0002, ... independently of the
configurable document prefixes.
"""

import logging
import re

from ..extensions import db
from ..models import CostReport, Product
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, to_number, validate_payload
from . import snapshot_service
from .settings_service import next_number_from


logger = logging.getLogger(__name__)

INCH_TO_CM = 2.54
SHEET_LENGTH_ALLOWANCE_CM = 5
SHEET_BREADTH_ALLOWANCE_CM = 2

COST_REPORT_PREFIX = "CR-"
COST_REPORT_PAD = 4

BOX_RATE_FIELDS = ("gum", "ink", "stitching_wire", "labour", "overhead")

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class CostReportNotFoundError(NotFoundError):
    pass


class CostReportValidationError(ValidationError):
    pass


COST_REPORT_POLICY = ModelValidationPolicy(
    writable_fields={
        "report_number", "report_date", "party_id", "party_name",
        "kraft_paper_cost", "virgin_paper_cost", "conversion_cost", "items",
    },
    required_on_create={"report_date", "items"},
)


def leading_number(value) -> float:
    """parseFloat-style read: "12.5in" -> 12.5, "abc" -> 0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return to_number(value)
    match = _LEADING_FLOAT.match(str(value or ""))
    return to_number(match.group(0)) if match else 0.0


def parse_dimension(dimension) -> tuple[float, float, float]:
    """"LxBxH" in inches -> (l, b, h) in cm. Missing parts are 0."""
    parts = str(dimension or "").split("x")
    return tuple(
        leading_number(parts[i] if i < len(parts) else "0") * INCH_TO_CM
        for i in range(3)
    )


def calculate_box_cost(
    dimension,
    ply,
    *,
    kraft_paper=0,
    gum=0,
    ink=0,
    stitching_wire=0,
    labour=0,
    overhead=0,
) -> dict | None:
    """
    Per-box cost figures, or None when any dimension or the ply is 0.

    kraft_paper and gum are rates per kg of paper; the rest are per box.
    """
    length, breadth, height = parse_dimension(dimension)
    plies = leading_number(ply)
    if not (length and breadth and height and plies):
        return None

    sheet_length = (2 * length + 2 * breadth + SHEET_LENGTH_ALLOWANCE_CM) / 100
    sheet_breadth = (breadth + height + SHEET_BREADTH_ALLOWANCE_CM) / 100
    sheet_area = sheet_length * sheet_breadth
    paper_required = sheet_area * plies

    kraft_paper_cost = paper_required * leading_number(kraft_paper)
    gum_cost = paper_required * leading_number(gum)
    ink_cost = leading_number(ink)
    stitching_wire_cost = leading_number(stitching_wire)
    labour_cost = leading_number(labour)
    overhead_cost = leading_number(overhead)

    total_raw_material_cost = kraft_paper_cost + gum_cost + ink_cost + stitching_wire_cost
    return {
        "length_cm": length,
        "breadth_cm": breadth,
        "height_cm": height,
        "sheet_length": sheet_length,
        "sheet_breadth": sheet_breadth,
        "sheet_area": sheet_area,
        "paper_required": paper_required,
        "kraft_paper_cost": kraft_paper_cost,
        "gum_cost": gum_cost,
        "ink_cost": ink_cost,
        "stitching_wire_cost": stitching_wire_cost,
        "labour_cost": labour_cost,
        "overhead_cost": overhead_cost,
        "total_raw_material_cost": total_raw_material_cost,
        "total_cost": total_raw_material_cost + labour_cost + overhead_cost,
    }


def _build_items(items, kraft_paper_rate) -> list[dict]:
    """
    Cost every box line. A line may name a product_id instead of giving its
    dimension and ply; the product's specification fills the gaps.
    """
    if not isinstance(items, list) or not items:
        raise CostReportValidationError("At least one item is required")

    lines = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise CostReportValidationError(f"Item {index} must be an object")

        dimension = item.get("dimension")
        ply = item.get("ply")
        product_name = item.get("product_name")
        product_id = item.get("product_id") or None
        if product_id and not (dimension and ply and product_name):
            product = db.session.get(Product, product_id)
            if product is None:
                raise CostReportValidationError(f"Item {index}: product not found")
            spec = product.specification or {}
            dimension = dimension or spec.get("dimension")
            ply = ply or spec.get("ply")
            product_name = product_name or product.name

        rates = {field: leading_number(item.get(field)) for field in BOX_RATE_FIELDS}
        figures = calculate_box_cost(dimension, ply, kraft_paper=kraft_paper_rate, **rates)
        if figures is None:
            raise CostReportValidationError(f"Item {index}: dimension (L x B x H inches) and ply are required")

        lines.append({
            "product_id": product_id,
            "product_name": product_name,
            "dimension": str(dimension),
            "ply": leading_number(ply),
            **rates,
            **figures,
        })
    return lines


def _apply_items(report: CostReport, items) -> None:
    report.items = _build_items(items, report.kraft_paper_cost)
    report.total_cost = sum(line["total_cost"] for line in report.items)


def next_report_number() -> str:
    numbers = [row.report_number for row in db.session.query(CostReport.report_number).all()]
    return next_number_from(COST_REPORT_PREFIX, numbers, pad=COST_REPORT_PAD)


def list_cost_reports() -> list[CostReport]:
    return db.session.query(CostReport).order_by(CostReport.created_at.desc(), CostReport.id).all()


def get_cost_report(report_id: str) -> CostReport:
    report = db.session.get(CostReport, report_id)
    if report is None:
        raise CostReportNotFoundError("Cost report not found")
    return report


def create_cost_report(*, payload: dict, username: str | None = None) -> CostReport:
    patch = validate_payload(model=CostReport, payload=payload, policy=COST_REPORT_POLICY, partial=False)
    items = patch.pop("items")
    if not patch.get("report_number"):
        patch["report_number"] = next_report_number()

    report = CostReport(created_by=username, **patch)
    report.kraft_paper_cost = report.kraft_paper_cost or 0.0
    _apply_items(report, items)
    db.session.add(report)
    snapshot_service.commit_and_publish("cost_reports")
    logger.info("Cost report %s saved (%s boxes)", report.report_number, len(report.items))
    return report


def update_cost_report(report_id: str, *, payload: dict, username: str | None = None) -> CostReport:
    """Changing the kraft rate or the items re-costs every line."""
    report = get_cost_report(report_id)
    patch = validate_payload(model=CostReport, payload=payload, policy=COST_REPORT_POLICY, partial=True)
    items = patch.pop("items", None)
    for key, value in patch.items():
        setattr(report, key, value)
    report.kraft_paper_cost = report.kraft_paper_cost or 0.0
    if items is not None or "kraft_paper_cost" in patch:
        _apply_items(report, items if items is not None else list(report.items or []))
    report.touch(username)
    snapshot_service.commit_and_publish("cost_reports")
    return report


def delete_cost_report(report_id: str) -> None:
    db.session.delete(get_cost_report(report_id))
    snapshot_service.commit_and_publish("cost_reports")
