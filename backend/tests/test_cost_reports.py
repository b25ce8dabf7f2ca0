"""
Box cost calculator and saved cost report tests.
"""

import pytest

from starweb.services import cost_report_service, report_service, settings_service
from starweb.services.cost_report_service import CostReportNotFoundError
from starweb.validation import ValidationError


# 10 x 8 x 6 inches -> 25.4 x 20.32 x 15.24 cm
SHEET_LENGTH = (2 * 25.4 + 2 * 20.32 + 5) / 100
SHEET_BREADTH = (20.32 + 15.24 + 2) / 100


# =============================================================================
# CALCULATOR
# =============================================================================


class TestCalculateBoxCost:

    def test_worked_example(self):
        figures = cost_report_service.calculate_box_cost(
            "10x8x6", 3, kraft_paper=50, gum=10, ink=1.5, stitching_wire=0.5, labour=4, overhead=2,
        )
        paper = SHEET_LENGTH * SHEET_BREADTH * 3

        assert figures["length_cm"] == pytest.approx(25.4)
        assert figures["sheet_length"] == pytest.approx(0.9644)
        assert figures["sheet_breadth"] == pytest.approx(0.3756)
        assert figures["paper_required"] == pytest.approx(paper)
        assert figures["kraft_paper_cost"] == pytest.approx(paper * 50)
        assert figures["gum_cost"] == pytest.approx(paper * 10)
        assert figures["total_raw_material_cost"] == pytest.approx(paper * 60 + 2)
        assert figures["total_cost"] == pytest.approx(paper * 60 + 8)

    @pytest.mark.parametrize("dimension,ply", [
        ("10x8", 3),
        ("10x0x6", 3),
        ("10x8x6", 0),
        ("10x8x6", "n/a"),
        ("", 3),
        (None, None),
    ])
    def test_incomplete_box_gives_nothing(self, dimension, ply):
        assert cost_report_service.calculate_box_cost(dimension, ply) is None

    def test_parts_read_leading_numbers(self):
        figures = cost_report_service.calculate_box_cost("10in x 8.0 x 6 cm", "3 ply", kraft_paper="50/kg")
        assert figures["height_cm"] == pytest.approx(15.24)
        assert figures["kraft_paper_cost"] == pytest.approx(SHEET_LENGTH * SHEET_BREADTH * 3 * 50)

    def test_uppercase_separator_is_not_split(self):
        assert cost_report_service.calculate_box_cost("10X8X6", 3) is None

    @pytest.mark.parametrize("value,expected", [
        ("12.5in", 12.5),
        (" .5", 0.5),
        ("-3x", -3.0),
        ("abc", 0.0),
        (None, 0.0),
        (7, 7.0),
    ])
    def test_leading_number(self, value, expected):
        assert cost_report_service.leading_number(value) == expected


# =============================================================================
# SAVED REPORTS
# =============================================================================


def _payload(**overrides):
    payload = {
        "report_date": "2025-04-20",
        "party_name": "Himal Foods",
        "kraft_paper_cost": 50,
        "items": [{"product_name": "Noodle box", "dimension": "10x8x6", "ply": 3, "labour": 4}],
    }
    payload.update(overrides)
    return payload


class TestCostReports:

    def test_numbering(self, db_session):
        first = cost_report_service.create_cost_report(payload=_payload(), username="admin")
        second = cost_report_service.create_cost_report(payload=_payload())

        assert first.report_number == "CR-0001"
        assert second.report_number == "CR-0002"
        assert first.created_by == "admin"
        assert settings_service.next_number_from("CR-", ["CR-0009"], pad=4) == "CR-0010"

    def test_total_is_sum_of_lines(self, db_session):
        report = cost_report_service.create_cost_report(payload=_payload(items=[
            {"dimension": "10x8x6", "ply": 3, "labour": 4},
            {"dimension": "10x8x6", "ply": 5},
        ]))
        area = SHEET_LENGTH * SHEET_BREADTH

        assert [line["ply"] for line in report.items] == [3.0, 5.0]
        assert report.total_cost == pytest.approx(area * 3 * 50 + 4 + area * 5 * 50)

    def test_product_fills_dimension_and_ply(self, db_session):
        product = report_service.create_product(
            payload={"name": "Carton", "specification": {"dimension": "10x8x6", "ply": "3"}}
        )
        report = cost_report_service.create_cost_report(payload=_payload(items=[{"product_id": product.id}]))

        line = report.items[0]
        assert line["product_name"] == "Carton"
        assert line["dimension"] == "10x8x6"
        assert line["total_cost"] == pytest.approx(SHEET_LENGTH * SHEET_BREADTH * 3 * 50)

    def test_new_kraft_rate_recosts_lines(self, db_session):
        report = cost_report_service.create_cost_report(payload=_payload())
        updated = cost_report_service.update_cost_report(
            report.id, payload={"kraft_paper_cost": 100}, username="accounts"
        )

        assert updated.items[0]["kraft_paper_cost"] == pytest.approx(SHEET_LENGTH * SHEET_BREADTH * 3 * 100)
        assert updated.total_cost == pytest.approx(SHEET_LENGTH * SHEET_BREADTH * 3 * 100 + 4)
        assert updated.last_modified_by == "accounts"

    def test_party_edit_keeps_figures(self, db_session):
        report = cost_report_service.create_cost_report(payload=_payload())
        total = report.total_cost

        updated = cost_report_service.update_cost_report(report.id, payload={"party_name": "Everest Dairy"})
        assert updated.party_name == "Everest Dairy"
        assert updated.total_cost == total

    @pytest.mark.parametrize("overrides", [
        {"items": []},
        {"items": "10x8x6"},
        {"items": ["10x8x6"]},
        {"items": [{"dimension": "10x8x6"}]},
        {"items": [{"product_id": "missing"}]},
        {"report_date": "2025-13-45"},
        {"report_date": None},
        {"margin": 10},
    ])
    def test_validation(self, db_session, overrides):
        with pytest.raises(ValidationError):
            cost_report_service.create_cost_report(payload=_payload(**overrides))

    def test_delete(self, db_session):
        report = cost_report_service.create_cost_report(payload=_payload())
        cost_report_service.delete_cost_report(report.id)

        assert cost_report_service.list_cost_reports() == []
        with pytest.raises(CostReportNotFoundError):
            cost_report_service.get_cost_report(report.id)
