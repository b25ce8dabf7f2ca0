"""
Finance utility tests: TDS, amount in words, estimate invoices and cheques.
"""

import pytest

from starweb.services import finance_service
from starweb.services.finance_service import FinanceNotFoundError, FinanceValidationError


class TestTds:

    def test_default_rate(self):
        result = finance_service.calculate_tds(10000)
        assert result["tds"] == pytest.approx(150)
        assert result["net"] == pytest.approx(9850)

    def test_voucher_with_vat(self):
        result = finance_service.calculate_tds_voucher(10000, include_vat=True)
        assert result["tds_amount"] == pytest.approx(150)
        assert result["vat_amount"] == pytest.approx(1300)
        assert result["net_payable"] == pytest.approx(11150)

    def test_bad_input_counts_as_zero(self):
        assert finance_service.calculate_tds("n/a")["net"] == 0


class TestAmountToWords:

    @pytest.mark.parametrize("amount,words", [
        (125050.75, "One Lakh Twenty Five Thousand Fifty Rupees And Seventy Five Paisa Only."),
        (0, "Zero Rupees Only."),
        (10000000, "One Crore Rupees Only."),
        (1234, "One Thousand Two Hundred Thirty Four Rupees Only."),
        ("19.05", "Nineteen Rupees And Five Paisa Only."),
        (99.999, "One Hundred Rupees Only."),
    ])
    def test_words(self, amount, words):
        assert finance_service.amount_to_words(amount) == words


class TestEstimate:

    def test_totals(self):
        result = finance_service.calculate_estimate([
            {"product_name": "Carton 5 ply", "quantity": 10, "rate": 50},
            {"product_name": "Carton 3 ply", "quantity": "2", "rate": "50"},
        ])

        assert result["gross_total"] == 600
        assert result["vat_total"] == pytest.approx(78)
        assert result["net_total"] == pytest.approx(678)
        assert result["total_quantity"] == 12
        assert result["items"][1]["gross"] == 100
        assert result["amount_in_words"] == "Six Hundred Seventy Eight Rupees Only."

    def test_saved_estimate(self, db_session):
        invoice = finance_service.create_estimate(payload={
            "invoice_number": "EST-1",
            "date": "2025-03-01",
            "party_name": "Himal Traders",
            "items": [{"product_name": "Carton", "quantity": 12, "rate": 50}],
        }, username="sales")

        assert invoice.net_total == pytest.approx(678)
        assert invoice.created_by == "sales"

        invoice = finance_service.update_estimate(
            invoice.id, payload={"items": [{"product_name": "Carton", "quantity": 1, "rate": 100}]}
        )
        assert invoice.gross_total == 100

    def test_estimate_items_need_rate(self, db_session):
        with pytest.raises(FinanceValidationError):
            finance_service.create_estimate(payload={
                "invoice_number": "EST-2",
                "date": "2025-03-01",
                "party_name": "Himal Traders",
                "items": [{"product_name": "Carton", "quantity": 12}],
            })


class TestChequeSplits:

    def test_remainder_goes_to_first_splits(self):
        splits = finance_service.split_cheques(1000, 3)
        assert [s["amount"] for s in splits] == [334, 333, 333]

    def test_paisa_stay_on_last_split(self):
        splits = finance_service.split_cheques(1000.50, 2)
        assert [s["amount"] for s in splits] == [500, 500.5]

    def test_dates_follow_intervals(self):
        splits = finance_service.split_cheques(900, 3, base_date="2025-01-01", intervals=[0, 30, -5])

        assert [s["cheque_date"] for s in splits] == ["2025-01-01", "2025-01-31", "2025-01-01"]
        assert splits[2]["interval"] == 0

    def test_no_base_date(self):
        assert finance_service.split_cheques(100, 1)[0]["cheque_date"] is None

    @pytest.mark.parametrize("amount,n", [(1000, 0), (0, 2), (-10, 2), (1000, "two")])
    def test_invalid_input(self, amount, n):
        with pytest.raises(FinanceValidationError):
            finance_service.split_cheques(amount, n)

    @pytest.mark.parametrize("options", [
        {"base_date": "2025-13-45"},
        {"base_date": "soon"},
        {"base_date": "2025-01-01", "intervals": 30},
        {"base_date": "2025-01-01", "intervals": [10 ** 9]},
    ])
    def test_bad_dates_and_intervals(self, options):
        with pytest.raises(FinanceValidationError):
            finance_service.split_cheques(1000, 1, **options)


# =============================================================================
# SAVED RECORDS
# =============================================================================


class TestSavedTds:

    def test_create_numbers_and_computes(self, db_session):
        calc = finance_service.create_tds_calculation(payload={
            "date": "2025-04-01",
            "party_name": "Everest Fuels",
            "taxable_amount": 10000,
            "include_vat": True,
        }, username="accounts")

        assert calc.voucher_no == "TDS-001"
        assert calc.vat_amount == pytest.approx(1300)
        assert calc.net_payable == pytest.approx(11150)

    def test_update_keeps_vat_choice(self, db_session):
        calc = finance_service.create_tds_calculation(payload={
            "date": "2025-04-01", "taxable_amount": 10000, "include_vat": True,
        })

        calc = finance_service.update_tds_calculation(calc.id, payload={"taxable_amount": 20000})

        assert calc.vat_amount == pytest.approx(2600)
        assert calc.tds_amount == pytest.approx(300)

    @pytest.mark.parametrize("payload", [
        {"taxable_amount": 100},
        {"date": "2025-04-01", "taxable_amount": 0},
        {"date": "2025-04-01", "taxable_amount": 100, "tds_amount": 5},
        {"date": "2025-13-45", "taxable_amount": 100},
    ])
    def test_validation(self, db_session, payload):
        with pytest.raises(FinanceValidationError):
            finance_service.create_tds_calculation(payload=payload)

    def test_delete(self, db_session):
        calc = finance_service.create_tds_calculation(payload={"date": "2025-04-01", "taxable_amount": 100})
        calc_id = calc.id

        finance_service.delete_tds_calculation(calc_id)

        with pytest.raises(FinanceNotFoundError):
            finance_service.get_tds_calculation(calc_id)


class TestSavedCheques:

    def _payload(self, **overrides):
        data = {
            "payee_name": "Shree Paper Mills",
            "amount": 1000,
            "splits": finance_service.split_cheques(1000, 2, base_date="2025-05-01", intervals=[0, 15]),
        }
        data.update(overrides)
        return data

    def test_create(self, db_session):
        cheque = finance_service.create_cheque(payload=self._payload())

        assert cheque.amount_in_words == "One Thousand Rupees Only."
        assert [s["status"] for s in cheque.splits] == ["Due", "Due"]
        assert cheque.splits[1]["cheque_date"] == "2025-05-16"

    def test_malformed_split_date(self, db_session):
        splits = [{"cheque_date": "2025-02-30", "amount": 1000}]
        with pytest.raises(FinanceValidationError, match="cheque_date"):
            finance_service.create_cheque(payload=self._payload(splits=splits))

    def test_splits_must_add_up(self, db_session):
        with pytest.raises(FinanceValidationError):
            finance_service.create_cheque(payload=self._payload(amount=1200))

    def test_amount_change_needs_new_splits(self, db_session):
        cheque = finance_service.create_cheque(payload=self._payload())

        with pytest.raises(FinanceValidationError):
            finance_service.update_cheque(cheque.id, payload={"amount": 1200})

        cheque = finance_service.update_cheque(cheque.id, payload={
            "amount": 1200, "splits": finance_service.split_cheques(1200, 3),
        })
        assert len(cheque.splits) == 3
        assert cheque.amount_in_words == "One Thousand Two Hundred Rupees Only."
