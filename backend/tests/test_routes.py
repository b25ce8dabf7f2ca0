"""
HTTP route tests.

Verifies:
- Every module rejects unauthenticated requests (401)
- Permission map is enforced per module and action (403)
- End-to-end flows through the JSON API
"""

from datetime import date

import pytest

from starweb.bs_calendar import BS_MONTH_NAMES, current_bs_period, month_bounds, to_bs


# =============================================================================
# AUTHENTICATION AND PERMISSIONS
# =============================================================================


class TestAuthentication:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/auth/me"),
        ("get", "/api/fleet/trips"),
        ("post", "/api/fleet/trips"),
        ("get", "/api/hr/payroll"),
        ("get", "/api/purchase-orders"),
        ("get", "/api/finance/tds"),
        ("post", "/api/finance/amount-in-words"),
        ("get", "/api/snapshots"),
        ("get", "/api/reference/parties"),
        ("get", "/api/admin/users"),
    ])
    def test_requires_token(self, client, db_session, method, path):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401

    def test_garbage_token(self, client, db_session):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_login_and_me(self, client, admin_headers):
        response = client.get("/api/auth/me", headers=admin_headers)
        assert response.status_code == 200
        assert response.json["user"]["username"] == "admin"

    def test_logout_revokes_token(self, client, admin_headers):
        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 200
        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401

    def test_failed_login_is_logged(self, client, admin_headers):
        response = client.post("/api/auth/login", json={"username": "admin", "password": "wrong-pass1"})
        assert response.status_code == 401

        events = client.get("/api/admin/security-events", headers=admin_headers).json["items"]
        assert events[0]["event_type"] == "LOGIN_FAILED"
        assert events[0]["success"] is False

    def test_login_needs_both_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"username": "admin"}).status_code == 400


class TestPermissions:

    def test_view_permission_allows_reads(self, client, clerk_headers):
        assert client.get("/api/fleet/trips", headers=clerk_headers).status_code == 200
        assert client.get("/api/reference/vehicles", headers=clerk_headers).status_code == 200

    @pytest.mark.parametrize("method,path", [
        ("post", "/api/fleet/trips"),
        ("delete", "/api/fleet/trips/anything"),
        ("post", "/api/reference/vehicles"),
        ("get", "/api/reference/employees"),
        ("get", "/api/hr/payroll"),
        ("get", "/api/purchase-orders"),
        ("get", "/api/finance/tds"),
        ("get", "/api/settings"),
        ("put", "/api/settings/document-prefixes"),
    ])
    def test_missing_permission_is_forbidden(self, client, clerk_headers, method, path):
        response = getattr(client, method)(path, headers=clerk_headers, json={})
        assert response.status_code == 403

    def test_admin_routes_need_admin(self, client, clerk_headers):
        assert client.get("/api/admin/users", headers=clerk_headers).status_code == 403

    def test_denial_is_recorded(self, client, clerk_headers, admin_headers):
        client.get("/api/hr/payroll", headers=clerk_headers)

        events = client.get("/api/admin/security-events", headers=admin_headers).json["items"]
        denied = [e for e in events if e["event_type"] == "PERMISSION_DENIED"]
        assert denied[0]["action"] == "hr:view"
        assert denied[0]["resource"] == "/api/hr/payroll"

    def test_amount_in_words_needs_login_only(self, client, clerk_headers):
        response = client.post("/api/finance/amount-in-words", headers=clerk_headers, json={"amount": 1500})
        assert response.status_code == 200
        assert response.json["words"] == "One Thousand Five Hundred Rupees Only."

    def test_admin_grants_permissions(self, client, admin_headers, clerk_user):
        response = client.patch(
            f"/api/admin/users/{clerk_user.id}",
            headers=admin_headers,
            json={"permissions": {"fleet": ["view"], "hr": ["view", "bogus"]}},
        )
        assert response.status_code == 200
        assert response.json["permissions"] == {"fleet": ["view"], "hr": ["view"]}


# =============================================================================
# SYSTEM AND SNAPSHOTS
# =============================================================================


class TestSystem:

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json["status"] == "ok"
        assert response.json["database"]["status"] == "healthy"


class TestSnapshotRoutes:

    def test_collections_follow_permissions(self, client, clerk_headers):
        items = client.get("/api/snapshots", headers=clerk_headers).json["items"]
        assert "trips" in items
        assert "employees" not in items
        assert "notes" in items
        assert "cost_reports" not in items

    def test_snapshot_of_allowed_collection(self, client, admin_headers):
        client.post("/api/reference/vehicles", headers=admin_headers, json={"name": "Ba 2 Kha 1234"})

        body = client.get("/api/snapshots/vehicles", headers=admin_headers).json
        assert body["collection"] == "vehicles"
        assert body["count"] == 1
        assert body["revision"] >= 1

    def test_forbidden_collection(self, client, clerk_headers):
        assert client.get("/api/snapshots/employees", headers=clerk_headers).status_code == 403

    def test_unknown_collection(self, client, admin_headers):
        assert client.get("/api/snapshots/users", headers=admin_headers).status_code == 404


# =============================================================================
# FLOWS
# =============================================================================


class TestReferenceRoutes:

    def test_crud(self, client, admin_headers):
        created = client.post("/api/reference/vehicles", headers=admin_headers, json={"name": "Ba 2 Kha 1234"})
        assert created.status_code == 201
        vehicle_id = created.json["id"]
        assert created.json["created_by"] == "admin"

        updated = client.patch(
            f"/api/reference/vehicles/{vehicle_id}", headers=admin_headers, json={"name": "Ba 3 Kha 99"}
        )
        assert updated.json["name"] == "Ba 3 Kha 99"

        assert client.delete(f"/api/reference/vehicles/{vehicle_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/reference/vehicles/{vehicle_id}", headers=admin_headers).status_code == 404

    def test_unknown_kind(self, client, admin_headers):
        assert client.get("/api/reference/spaceships", headers=admin_headers).status_code == 404

    def test_unknown_field(self, client, admin_headers):
        response = client.post("/api/reference/vehicles", headers=admin_headers, json={"name": "X", "colour": "red"})
        assert response.status_code == 400

    def test_units_of_measure(self, client, admin_headers, clerk_headers):
        created = client.post("/api/reference/uom", headers=admin_headers, json={"name": "Kilogram", "abbreviation": "kg"})
        assert created.status_code == 201
        assert created.json["abbreviation"] == "kg"

        missing = client.post("/api/reference/uom", headers=admin_headers, json={"name": "Piece"})
        assert missing.status_code == 400

        assert client.get("/api/reference/uom", headers=clerk_headers).status_code == 403

    def test_notes_are_open_to_every_user(self, client, clerk_headers):
        done = client.post("/api/reference/notes", headers=clerk_headers, json={"content": "Call the paper mill"}).json
        client.post("/api/reference/notes", headers=clerk_headers, json={"content": "Renew insurance", "due_date": "2025-05-01"})

        patched = client.patch(f"/api/reference/notes/{done['id']}", headers=clerk_headers, json={"is_completed": True})
        assert patched.json["is_completed"] is True

        listed = client.get("/api/reference/notes", headers=clerk_headers).json["items"]
        assert [n["content"] for n in listed] == ["Renew insurance", "Call the paper mill"]
        assert listed[0]["type"] == "Todo"
        assert listed[0]["due_date"] == "2025-05-01"

    def test_note_needs_content(self, client, clerk_headers):
        assert client.post("/api/reference/notes", headers=clerk_headers, json={"content": "  "}).status_code == 400


class TestTripFlow:

    def test_create_inspect_and_ledger(self, client, admin_headers):
        party = client.post(
            "/api/reference/parties", headers=admin_headers, json={"name": "Himal Traders", "type": "Client"}
        ).json
        trip_body = {
            "date": "2025-01-10",
            "vehicle_id": "truck-1",
            "party_id": party["id"],
            "destinations": [{"name": "Birgunj", "freight": 10000}],
            "number_of_parties": 5,
        }

        preview = client.post("/api/fleet/trips/calculate", headers=admin_headers, json=trip_body).json
        assert preview["net_pay"] == pytest.approx(12911.38)

        created = client.post("/api/fleet/trips", headers=admin_headers, json=trip_body)
        assert created.status_code == 201
        assert created.json["trip_number"] == "SALE-001"
        trip_id = created.json["id"]

        inspected = client.get(f"/api/fleet/trips/{trip_id}?recompute=1", headers=admin_headers).json
        assert inspected["recompute"]["stale"] is False
        assert inspected["display"]["net_pay"] == "12,911.38"

        ledger = client.get(f"/api/fleet/ledger/{party['id']}", headers=admin_headers).json
        assert ledger["closing_balance"] == pytest.approx(12911.38)
        assert ledger["rows"][0]["particulars"] == "Sales #SALE-001"

    def test_invalid_trip(self, client, admin_headers):
        assert client.post("/api/fleet/trips", headers=admin_headers, json={}).status_code == 400

    def test_missing_trip(self, client, admin_headers):
        assert client.get("/api/fleet/trips/missing", headers=admin_headers).status_code == 404

    def test_calculate_skips_legs_that_are_not_objects(self, client, admin_headers):
        response = client.post("/api/fleet/trips/calculate", headers=admin_headers, json={"destinations": ["Birgunj"]})
        assert response.status_code == 200
        assert response.json["total_freight"] == 0
        assert response.json["display"]["net_pay"] == "0.00"


class TestVoucherRoutes:

    def test_malformed_date_is_rejected(self, client, admin_headers):
        response = client.post("/api/fleet/vouchers", headers=admin_headers, json={
            "date": "2025-13-45", "items": [{"party_id": "client-1", "rec_amount": 100}],
        })
        assert response.status_code == 400
        assert "date" in response.json["error"]

    def test_body_must_be_an_object(self, client, admin_headers):
        response = client.post("/api/fleet/vouchers", headers=admin_headers, json=[{"party_id": "client-1"}])
        assert response.status_code == 400


class TestFinanceRoutes:

    def test_cheque_split_with_malformed_base_date(self, client, admin_headers):
        response = client.post("/api/finance/cheques/split", headers=admin_headers, json={
            "amount": 1000, "number_of_splits": 2, "base_date": "2025-13-45",
        })
        assert response.status_code == 400
        assert "base_date" in response.json["error"]


class TestPurchaseOrderFlow:

    def test_create_amend_deliver_analyse(self, client, admin_headers):
        created = client.post("/api/purchase-orders", headers=admin_headers, json={
            "po_date": "2025-03-01",
            "company_name": "Shree Paper Mills",
            "items": [{"raw_material_name": "Kraft Paper", "quantity": 100, "unit": "kg"}],
        })
        assert created.status_code == 201
        assert created.json["po_number"] == "SPI-001"
        po_id = created.json["id"]

        amended = client.patch(f"/api/purchase-orders/{po_id}", headers=admin_headers, json={
            "company_name": "Bhrikuti Pulp", "remarks": "Supplier renamed",
        }).json
        assert amended["status"] == "Amended"
        assert amended["amendments"][0]["remarks"] == "Supplier renamed"

        delivered = client.post(
            f"/api/purchase-orders/{po_id}/deliver", headers=admin_headers, json={"delivery_date": "2025-03-05"}
        ).json
        assert delivered["status"] == "Delivered"
        assert len(delivered["versions"]) == 2

        analytics = client.get("/api/purchase-orders/analytics", headers=admin_headers).json
        assert analytics["delivered_orders"] == 1
        assert analytics["average_lead_time"] == 4

    def test_summarize(self, client, admin_headers):
        response = client.post("/api/purchase-orders/summarize", headers=admin_headers, json={
            "original": {"company_name": "A"}, "updated": {"company_name": "B"},
        })
        assert response.json["summary"] == "Company changed from A to B."


class TestHrFlow:

    def test_import_then_list_and_payroll(self, client, admin_headers):
        bs = to_bs(date(2025, 9, 1))
        rows = [{
            "employee_name": "Ram Bahadur", "date": "2025-09-01",
            "on_duty": "09:00", "off_duty": "17:00", "clock_in": "09:20", "clock_out": "17:00",
        }]

        result = client.post("/api/hr/attendance/import", headers=admin_headers, json={"rows": rows}).json
        assert result["inserted"] == 1
        assert result["created_employees"] == ["Ram Bahadur"]

        listed = client.get(f"/api/hr/attendance/{bs.year}/{bs.month}", headers=admin_headers).json
        assert listed["count"] == 1
        assert listed["items"][0]["regular_hours"] == 6.5

        saved = client.post(f"/api/hr/payroll/{bs.year}/{bs.month}", headers=admin_headers)
        assert saved.status_code == 201
        assert saved.json["lines"][0]["employee_name"] == "Ram Bahadur"

        generated = client.get(f"/api/hr/payroll/{bs.year}/{bs.month}", headers=admin_headers).json
        assert generated["saved"]["bs_month"] == bs.month

    def test_import_needs_rows(self, client, admin_headers):
        assert client.post("/api/hr/attendance/import", headers=admin_headers, json={"rows": "x"}).status_code == 400

    def test_bad_month(self, client, admin_headers):
        assert client.get("/api/hr/payroll/2082/13", headers=admin_headers).status_code == 400

    def test_current_period(self, client, admin_headers):
        body = client.get("/api/hr/period", headers=admin_headers).json
        first, last = month_bounds(body["bs_year"], body["bs_month"])

        assert (body["bs_year"], body["bs_month"]) == current_bs_period()
        assert body["first_day"] == first.isoformat()
        assert body["last_day"] == last.isoformat()
        assert body["month_name"] == BS_MONTH_NAMES[body["bs_month"] - 1]


class TestCostReportRoutes:

    def test_calculate(self, client, admin_headers):
        response = client.post(
            "/api/cost-reports/calculate",
            headers=admin_headers,
            json={"dimension": "10x8x6", "ply": "3", "kraft_paper": 50, "labour": 4},
        )
        assert response.status_code == 200
        assert response.json["paper_required"] == pytest.approx(0.9644 * 0.3756 * 3)
        assert response.json["total_cost"] == pytest.approx(0.9644 * 0.3756 * 3 * 50 + 4)

    def test_calculate_from_product(self, client, admin_headers):
        product = client.post(
            "/api/products", headers=admin_headers,
            json={"name": "5 Ply Carton", "specification": {"dimension": "10x8x6", "ply": "5"}},
        ).json
        response = client.post(
            "/api/cost-reports/calculate", headers=admin_headers, json={"product_id": product["id"]}
        )
        assert response.json["paper_required"] == pytest.approx(0.9644 * 0.3756 * 5)

    @pytest.mark.parametrize("body", [{"dimension": "10x8", "ply": 3}, {"dimension": "10x8x6"}, ["10x8x6"]])
    def test_incomplete_box_is_rejected(self, client, admin_headers, body):
        assert client.post("/api/cost-reports/calculate", headers=admin_headers, json=body).status_code == 400

    def test_save_and_list(self, client, admin_headers):
        created = client.post(
            "/api/cost-reports",
            headers=admin_headers,
            json={
                "report_date": "2025-04-20",
                "party_name": "Himal Foods",
                "kraft_paper_cost": 50,
                "items": [{"product_name": "Noodle box", "dimension": "10x8x6", "ply": 3}],
            },
        )
        assert created.status_code == 201
        assert created.json["report_number"] == "CR-0001"
        assert created.json["total_cost"] == pytest.approx(0.9644 * 0.3756 * 3 * 50)

        listed = client.get("/api/cost-reports", headers=admin_headers).json
        assert listed["count"] == 1

        bad = client.post(
            "/api/cost-reports", headers=admin_headers,
            json={"report_date": "2025-04-20", "items": [{"dimension": "10x8x6"}]},
        )
        assert bad.status_code == 400

    def test_clerk_cannot_see_cost_reports(self, client, clerk_headers):
        assert client.get("/api/cost-reports", headers=clerk_headers).status_code == 403


class TestSettingsRoutes:

    def test_next_number_preview(self, client, admin_headers):
        response = client.get("/api/settings/next-number/purchaseOrder", headers=admin_headers)
        assert response.json == {"kind": "purchaseOrder", "number": "SPI-001"}

    def test_unknown_kind(self, client, admin_headers):
        assert client.get("/api/settings/next-number/invoice", headers=admin_headers).status_code == 400
