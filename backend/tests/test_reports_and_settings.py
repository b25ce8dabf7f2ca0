"""
Test report, product and document numbering tests.
"""

import pytest

from starweb.services import report_service, settings_service
from starweb.services.report_service import ProductNotFoundError, ReportValidationError
from starweb.services.settings_service import UnknownDocumentKindError
from starweb.validation import ValidationError


# =============================================================================
# NUMBERING
# =============================================================================


class TestNumbering:

    def test_next_number_ignores_foreign_and_malformed(self):
        existing = ["SPI-001", "SPI-012a", "SPI-abc", "PO-099", None, ""]
        assert settings_service.next_number_from("SPI-", existing) == "SPI-013"

    def test_first_number(self):
        assert settings_service.next_number_from("PUR-", []) == "PUR-001"

    def test_numbers_past_padding_keep_growing(self):
        assert settings_service.next_number_from("VOU-", ["VOU-999"]) == "VOU-1000"

    def test_default_prefixes(self, db_session):
        prefixes = settings_service.get_document_prefixes()
        assert prefixes["report"] == "2082/083-"
        assert prefixes["tdsVoucher"] == "TDS-"

    def test_prefix_override(self, db_session):
        prefixes = settings_service.update_document_prefixes({"purchaseOrder": " PO-"}, username="admin")

        assert prefixes["purchaseOrder"] == "PO-"
        assert prefixes["sales"] == "SALE-"
        assert settings_service.allocate_number("purchaseOrder") == "PO-001"

    def test_unknown_kind(self, db_session):
        with pytest.raises(UnknownDocumentKindError):
            settings_service.get_prefix("invoice")
        with pytest.raises(UnknownDocumentKindError):
            settings_service.update_document_prefixes({"invoice": "INV-"})

    def test_settings_store(self, db_session):
        settings_service.set_setting("theme", {"dark": True}, username="admin")

        assert settings_service.get_setting("theme") == {"dark": True}
        assert settings_service.get_setting("missing", 5) == 5
        assert [s.key for s in settings_service.list_settings()] == ["theme"]

        with pytest.raises(ValidationError):
            settings_service.set_setting("  ", 1)


# =============================================================================
# PRODUCTS AND REPORTS
# =============================================================================


class TestReports:

    def _product(self, **overrides):
        data = {"name": "Carton 5 ply", "material_code": "C5", "specification": {"ply": 5, "gsm": 150}}
        data.update(overrides)
        return report_service.create_product(payload=data, username="qc")

    def test_serial_numbers(self, db_session):
        product = self._product()

        first = report_service.create_report(payload={"product_id": product.id, "date": "2025-06-01"})
        second = report_service.create_report(payload={"product_id": product.id, "date": "2025-06-02"})
        manual = report_service.create_report(payload={
            "product_id": product.id, "date": "2025-06-03", "serial_number": "MANUAL-1",
        })

        assert first.serial_number == "2082/083-001"
        assert second.serial_number == "2082/083-002"
        assert manual.serial_number == "MANUAL-1"

    def test_product_edits_do_not_rewrite_reports(self, db_session):
        product = self._product()
        report = report_service.create_report(payload={"product_id": product.id, "date": "2025-06-01"})

        report_service.update_product(product.id, payload={"name": "Carton 7 ply", "specification": {"ply": 7}})

        report = report_service.get_report(report.id)
        assert report.product["name"] == "Carton 5 ply"
        assert report.product["specification"] == {"ply": 5, "gsm": 150}

        report = report_service.update_report(report.id, payload={"product_id": product.id})
        assert report.product["name"] == "Carton 7 ply"

    def test_list_reports_by_product(self, db_session):
        a = self._product()
        b = self._product(name="Tray")
        report_service.create_report(payload={"product_id": a.id, "date": "2025-06-01"})
        report_service.create_report(payload={"product_id": b.id, "date": "2025-06-02"})

        assert len(report_service.list_reports()) == 2
        assert [r.product["name"] for r in report_service.list_reports(product_id=b.id)] == ["Tray"]

    def test_print_log_only_grows(self, db_session):
        product = self._product()
        report = report_service.create_report(payload={"product_id": product.id, "date": "2025-06-01"})

        report_service.record_print(report.id, username="qc")
        report = report_service.record_print(report.id, username="manager")

        assert [entry["printed_by"] for entry in report.print_log] == ["qc", "manager"]
        assert all(entry["date"].endswith("Z") for entry in report.print_log)

    def test_report_needs_product(self, db_session):
        with pytest.raises(ReportValidationError):
            report_service.create_report(payload={"date": "2025-06-01"})
        with pytest.raises(ProductNotFoundError):
            report_service.create_report(payload={"product_id": "missing", "date": "2025-06-01"})

    def test_chart_type_choices(self, db_session):
        product = self._product()
        with pytest.raises(ValidationError):
            report_service.create_report(payload={
                "product_id": product.id, "date": "2025-06-01", "chart_type": "radar",
            })
