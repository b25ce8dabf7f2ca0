"""Initial Starweb schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_modified_by", sa.String(64), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    # -- Auth -----------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_username", "users", ["username"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("revoked_reason", sa.String(128), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_user", "session_tokens", ["user_id"], unique=False)

    op.create_table(
        "security_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("resource", sa.String(128), nullable=True),
        sa.Column("action", sa.String(64), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_security_events_event_type", "security_events", ["event_type"], unique=False)
    op.create_index("ix_security_events_user_type", "security_events", ["user_id", "event_type"], unique=False)

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("updated_by", sa.String(64), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )

    # -- Fleet ----------------------------------------------------------------
    op.create_table(
        "parties",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("pan_number", sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_parties_name", "parties", ["name"], unique=False)

    op.create_table(
        "accounts",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("bank_name", sa.String(255), nullable=True),
        sa.Column("account_number", sa.String(64), nullable=True),
        sa.Column("branch", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "vehicles",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("make", sa.String(128), nullable=True),
        sa.Column("model", sa.String(128), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("vin", sa.String(64), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("driver_id", sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "drivers",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("nickname", sa.String(128), nullable=True),
        sa.Column("license_number", sa.String(64), nullable=True),
        sa.Column("contact_number", sa.String(32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("photo_url", sa.String(512), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "destinations",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "policies",
        *_audit_columns(),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(255), nullable=False),
        sa.Column("policy_number", sa.String(128), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("member_id", sa.String(32), nullable=True),
        sa.Column("member_type", sa.String(16), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "transactions",
        *_audit_columns(),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("vehicle_id", sa.String(32), nullable=True),
        sa.Column("party_id", sa.String(32), nullable=True),
        sa.Column("account_id", sa.String(32), nullable=True),
        sa.Column("voucher_id", sa.String(32), nullable=True),
        sa.Column("voucher_no", sa.String(64), nullable=True),
        sa.Column("trip_id", sa.String(32), nullable=True),
        sa.Column("trip_number", sa.String(64), nullable=True),
        sa.Column("purchase_number", sa.String(64), nullable=True),
        sa.Column("invoice_number", sa.String(64), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("invoice_type", sa.String(16), nullable=True),
        sa.Column("billing_type", sa.String(16), nullable=True),
        sa.Column("cheque_number", sa.String(64), nullable=True),
        sa.Column("cheque_date", sa.Date(), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.create_index("ix_transactions_party_date", ["party_id", "date"], unique=False)
        batch_op.create_index("ix_transactions_voucher", ["voucher_id"], unique=False)
        batch_op.create_index("ix_transactions_trip", ["trip_id"], unique=False)

    op.create_table(
        "trips",
        *_audit_columns(),
        sa.Column("trip_number", sa.String(64), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("vehicle_id", sa.String(32), nullable=True),
        sa.Column("party_id", sa.String(32), nullable=True),
        sa.Column("odometer_start", sa.Float(), nullable=True),
        sa.Column("odometer_end", sa.Float(), nullable=True),
        sa.Column("destinations", sa.JSON(), nullable=False),
        sa.Column("fuel_entries", sa.JSON(), nullable=False),
        sa.Column("extra_expenses", sa.JSON(), nullable=False),
        sa.Column("return_trips", sa.JSON(), nullable=False),
        sa.Column("truck_advance", sa.Float(), nullable=False),
        sa.Column("transport", sa.Float(), nullable=False),
        sa.Column("detention_start_date", sa.Date(), nullable=True),
        sa.Column("detention_end_date", sa.Date(), nullable=True),
        sa.Column("number_of_parties", sa.Integer(), nullable=False),
        sa.Column("drop_off_charge_rate", sa.Float(), nullable=True),
        sa.Column("detention_charge_rate", sa.Float(), nullable=True),
        sa.Column("total_freight", sa.Float(), nullable=False),
        sa.Column("drop_off_charge", sa.Float(), nullable=False),
        sa.Column("detention_days", sa.Integer(), nullable=False),
        sa.Column("detention_charge", sa.Float(), nullable=False),
        sa.Column("total_taxable_amount", sa.Float(), nullable=False),
        sa.Column("vat_amount", sa.Float(), nullable=False),
        sa.Column("gross_amount", sa.Float(), nullable=False),
        sa.Column("tds_amount", sa.Float(), nullable=False),
        sa.Column("net_pay", sa.Float(), nullable=False),
        sa.Column("total_expenses", sa.Float(), nullable=False),
        sa.Column("total_return_load_income", sa.Float(), nullable=False),
        sa.Column("net_amount", sa.Float(), nullable=False),
        sa.Column("total_distance", sa.Float(), nullable=False),
        sa.Column("total_fuel_liters", sa.Float(), nullable=False),
        sa.Column("fuel_efficiency", sa.String(16), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("trips", schema=None) as batch_op:
        batch_op.create_index("ix_trips_trip_number", ["trip_number"], unique=False)
        batch_op.create_index("ix_trips_party_date", ["party_id", "date"], unique=False)

    # -- Procurement and reports ----------------------------------------------
    op.create_table(
        "raw_materials",
        *_audit_columns(),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("size", sa.String(64), nullable=True),
        sa.Column("gsm", sa.String(32), nullable=True),
        sa.Column("bf", sa.String(32), nullable=True),
        sa.Column("units", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "purchase_orders",
        *_audit_columns(),
        sa.Column("po_number", sa.String(64), nullable=False),
        sa.Column("po_date", sa.Date(), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("pan_number", sa.String(32), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("amendments", sa.JSON(), nullable=False),
        sa.Column("versions", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_purchase_orders_po_number", "purchase_orders", ["po_number"], unique=False)

    op.create_table(
        "products",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("material_code", sa.String(64), nullable=True),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("specification", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_material_code", "products", ["material_code"], unique=False)

    op.create_table(
        "reports",
        *_audit_columns(),
        sa.Column("serial_number", sa.String(64), nullable=False),
        sa.Column("tax_invoice_number", sa.String(64), nullable=True),
        sa.Column("challan_number", sa.String(64), nullable=True),
        sa.Column("quantity", sa.String(64), nullable=True),
        sa.Column("product", sa.JSON(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("test_data", sa.JSON(), nullable=False),
        sa.Column("print_log", sa.JSON(), nullable=False),
        sa.Column("chart_type", sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reports_serial_number", "reports", ["serial_number"], unique=False)

    # -- HR -------------------------------------------------------------------
    op.create_table(
        "employees",
        *_audit_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("wage_basis", sa.String(16), nullable=False),
        sa.Column("wage_amount", sa.Float(), nullable=False),
        sa.Column("joining_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employees_name", "employees", ["name"], unique=False)

    op.create_table(
        "attendance_records",
        *_audit_columns(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("bs_date", sa.String(10), nullable=True),
        sa.Column("employee_name", sa.String(255), nullable=False),
        sa.Column("on_duty", sa.String(8), nullable=True),
        sa.Column("off_duty", sa.String(8), nullable=True),
        sa.Column("clock_in", sa.String(8), nullable=True),
        sa.Column("clock_out", sa.String(8), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("gross_hours", sa.Float(), nullable=False),
        sa.Column("regular_hours", sa.Float(), nullable=False),
        sa.Column("overtime_hours", sa.Float(), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("source_sheet", sa.String(128), nullable=True),
        sa.Column("imported_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_name", "date", name="uq_attendance_employee_date"),
    )
    with op.batch_alter_table("attendance_records", schema=None) as batch_op:
        batch_op.create_index("ix_attendance_records_date", ["date"], unique=False)
        batch_op.create_index("ix_attendance_bs_date", ["bs_date"], unique=False)

    op.create_table(
        "payroll_runs",
        *_audit_columns(),
        sa.Column("bs_year", sa.Integer(), nullable=False),
        sa.Column("bs_month", sa.Integer(), nullable=False),
        sa.Column("lines", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bs_year", "bs_month", name="uq_payroll_runs_period"),
    )

    # -- Finance --------------------------------------------------------------
    op.create_table(
        "tds_calculations",
        *_audit_columns(),
        sa.Column("voucher_no", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("party_name", sa.String(255), nullable=True),
        sa.Column("taxable_amount", sa.Float(), nullable=False),
        sa.Column("tds_rate", sa.Float(), nullable=False),
        sa.Column("tds_amount", sa.Float(), nullable=False),
        sa.Column("vat_amount", sa.Float(), nullable=False),
        sa.Column("net_payable", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tds_calculations_voucher_no", "tds_calculations", ["voucher_no"], unique=False)

    op.create_table(
        "cheques",
        *_audit_columns(),
        sa.Column("voucher_no", sa.String(64), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("invoice_number", sa.String(64), nullable=True),
        sa.Column("party_name", sa.String(255), nullable=True),
        sa.Column("payee_name", sa.String(255), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("amount_in_words", sa.Text(), nullable=True),
        sa.Column("splits", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "estimate_invoices",
        *_audit_columns(),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("party_name", sa.String(255), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("gross_total", sa.Float(), nullable=False),
        sa.Column("vat_total", sa.Float(), nullable=False),
        sa.Column("net_total", sa.Float(), nullable=False),
        sa.Column("amount_in_words", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_estimate_invoices_invoice_number", "estimate_invoices", ["invoice_number"], unique=False)


def downgrade():
    for table in (
        "estimate_invoices", "cheques", "tds_calculations",
        "payroll_runs", "attendance_records", "employees",
        "reports", "products", "purchase_orders", "raw_materials",
        "trips", "transactions", "policies", "destinations", "drivers",
        "vehicles", "accounts", "parties",
        "app_settings", "security_events", "session_tokens", "users",
    ):
        op.drop_table(table)
