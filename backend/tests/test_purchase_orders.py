"""
Purchase order tests.

Verifies:
- Every edit stores the pre-edit state as a new version
- Content edits add an amendment note and move the PO to Amended
- Delivery is a status edit (versioned, not amended)
- Change summaries and lead-time analytics
"""

import pytest

from starweb.services import purchase_order_service
from starweb.services.purchase_order_service import (
    PurchaseOrderNotFoundError,
    PurchaseOrderValidationError,
)


def _po(**overrides):
    data = {
        "po_date": "2025-03-01",
        "company_name": "Shree Paper Mills",
        "company_address": "Hetauda",
        "items": [{"raw_material_name": "Kraft Paper", "quantity": 100, "unit": "kg", "gsm": "120"}],
    }
    data.update(overrides)
    return data


class TestPurchaseOrderVersions:

    def test_create(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po(status="Delivered"), username="buyer")

        assert po.po_number == "SPI-001"
        assert po.status == "Ordered"
        assert po.versions == []
        assert po.amendments == []
        assert po.items[0]["quantity"] == "100"

    def test_content_edit_versions_and_amends(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())

        po = purchase_order_service.update_purchase_order(
            po.id, payload={"company_name": "Bhrikuti Pulp"}, username="editor"
        )

        assert po.status == "Amended"
        assert len(po.versions) == 1
        version = po.versions[0]
        assert version["edited_by"] == "editor"
        assert version["snapshot"]["company_name"] == "Shree Paper Mills"
        assert version["snapshot"]["status"] == "Ordered"
        assert version["snapshot"]["po_date"] == "2025-03-01"
        assert len(po.amendments) == 1
        assert po.amendments[0]["remarks"] == "Company changed from Shree Paper Mills to Bhrikuti Pulp."
        assert po.amendments[0]["amended_by"] == "editor"

    def test_remarks_override_generated_note(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())

        po = purchase_order_service.update_purchase_order(
            po.id, payload={"company_address": "Birgunj"}, remarks="Supplier moved"
        )

        assert po.amendments[0]["remarks"] == "Supplier moved"

    def test_versions_only_grow_and_have_unique_ids(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())
        for qty in (110, 120, 130):
            po = purchase_order_service.update_purchase_order(
                po.id, payload={"items": [{"raw_material_name": "Kraft Paper", "quantity": qty, "unit": "kg"}]}
            )

        assert len(po.versions) == 3
        assert len({v["id"] for v in po.versions}) == 3
        assert [v["snapshot"]["items"][0]["quantity"] for v in po.versions] == ["100", "110", "120"]

    def test_status_only_edit_is_versioned_but_not_amended(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())

        po = purchase_order_service.update_purchase_order(po.id, payload={"status": "Canceled"})

        assert po.status == "Canceled"
        assert len(po.versions) == 1
        assert po.amendments == []

    def test_mark_delivered(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())

        po = purchase_order_service.mark_delivered(po.id, delivery_date="2025-03-11", username="store")

        assert po.status == "Delivered"
        assert po.delivery_date.isoformat() == "2025-03-11"
        assert len(po.versions) == 1
        assert po.amendments == []

    def test_mark_delivered_needs_a_date(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())
        with pytest.raises(PurchaseOrderValidationError):
            purchase_order_service.mark_delivered(po.id, delivery_date=None)

    @pytest.mark.parametrize("items", [[], [{"quantity": 5}], ["Kraft Paper"]])
    def test_item_validation(self, db_session, items):
        with pytest.raises(PurchaseOrderValidationError):
            purchase_order_service.create_purchase_order(payload=_po(items=items))

    def test_invalid_status(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())
        with pytest.raises(ValueError):
            purchase_order_service.update_purchase_order(po.id, payload={"status": "Lost"})

    def test_delete(self, db_session):
        po = purchase_order_service.create_purchase_order(payload=_po())
        po_id = po.id

        purchase_order_service.delete_purchase_order(po_id)

        with pytest.raises(PurchaseOrderNotFoundError):
            purchase_order_service.get_purchase_order(po_id)

    def test_list_by_status(self, db_session):
        first = purchase_order_service.create_purchase_order(payload=_po())
        purchase_order_service.create_purchase_order(payload=_po(company_name="Other"))
        purchase_order_service.update_purchase_order(first.id, payload={"status": "Canceled"})

        assert [p.company_name for p in purchase_order_service.list_purchase_orders(status="Canceled")] == [
            "Shree Paper Mills"
        ]


class TestChangeSummary:

    def test_no_changes(self):
        po = _po()
        assert purchase_order_service.summarize_changes(po, dict(po)) == "No changes detected."

    def test_equivalent_dates_are_not_changes(self):
        summary = purchase_order_service.summarize_changes(
            {"po_date": "2025-03-01"}, {"po_date": "2025-03-01T00:00:00Z"}
        )
        assert summary == "No changes detected."

    def test_item_changes(self):
        original = {"items": [
            {"raw_material_name": "Kraft Paper", "quantity": "100", "unit": "kg"},
            {"raw_material_name": "Starch", "quantity": "20", "unit": "kg"},
        ]}
        updated = {"items": [
            {"raw_material_name": "Kraft Paper", "quantity": "150", "unit": "kg"},
            {"raw_material_name": "Glue", "quantity": "5", "unit": "ltr"},
        ]}

        summary = purchase_order_service.summarize_changes(original, updated)

        assert summary == (
            "Changed Kraft Paper from 100 kg to 150 kg; Added Glue (5 ltr); Removed Starch (20 kg)."
        )

    def test_spec_only_changes(self):
        summary = purchase_order_service.summarize_changes(
            {"items": [{"raw_material_name": "Kraft Paper", "quantity": "100", "gsm": "120"}]},
            {"items": [{"raw_material_name": "Kraft Paper", "quantity": "100", "gsm": "140"}]},
        )
        assert summary == "Updated Kraft Paper (gsm)."


class TestLeadTimeAnalytics:

    ORDERS = [
        {"status": "Delivered", "po_date": "2025-01-01", "delivery_date": "2025-01-11", "company_name": "A"},
        {"status": "Delivered", "po_date": "2025-01-01", "delivery_date": "2025-01-06", "company_name": "A"},
        {"status": "Delivered", "po_date": "2025-02-01", "delivery_date": "2025-02-04", "company_name": "B"},
        {"status": "Delivered", "po_date": "2025-02-01", "delivery_date": None, "company_name": "B"},
        {"status": "Ordered", "po_date": "2025-03-01", "delivery_date": None, "company_name": "C"},
    ]

    def test_averages(self):
        analytics = purchase_order_service.calculate_lead_time_analytics(self.ORDERS)

        assert analytics["total_orders"] == 5
        assert analytics["delivered_orders"] == 3
        assert analytics["average_lead_time"] == 6
        assert analytics["company_lead_times"] == [
            {"company_name": "A", "average_lead_time": 8, "orders": 2},
            {"company_name": "B", "average_lead_time": 3, "orders": 1},
        ]
        assert analytics["status_counts"] == {"Ordered": 1, "Amended": 0, "Delivered": 4, "Canceled": 0}

    def test_empty(self):
        analytics = purchase_order_service.calculate_lead_time_analytics([])
        assert analytics["average_lead_time"] == 0
        assert analytics["company_lead_times"] == []
