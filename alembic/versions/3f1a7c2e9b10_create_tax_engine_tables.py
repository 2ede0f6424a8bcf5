"""create tax engine tables

Revision ID: 3f1a7c2e9b10
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1a7c2e9b10"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=True,
    )


def _money(name: str, precision: int = 14, nullable: bool = False, default: bool = True):
    return sa.Column(
        name,
        sa.Numeric(precision, 2),
        nullable=nullable,
        server_default=sa.text("0") if default else None,
    )


def upgrade() -> None:
    op.create_table(
        "tax_jurisdictions",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("jurisdiction_type", sa.String(length=20), nullable=False, server_default="STATE"),
        sa.Column("code", sa.String(length=20), nullable=True),
        sa.Column("country_code", sa.String(length=2), nullable=False, server_default="IN"),
        sa.Column("state_code", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_tax_jurisdictions_tenant_id", "tax_jurisdictions", ["tenant_id"])

    op.create_table(
        "product_tax_categories",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("hsn_code", sa.String(length=10), nullable=True),
        sa.Column("sac_code", sa.String(length=10), nullable=True),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("18")),
        sa.Column("is_tax_exempt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_nil_rated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_zero_rated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_product_tax_categories_tenant_id", "product_tax_categories", ["tenant_id"])
    op.create_index("ix_product_tax_categories_hsn_code", "product_tax_categories", ["hsn_code"])
    op.create_index("ix_product_tax_categories_sac_code", "product_tax_categories", ["sac_code"])

    op.create_table(
        "tds_rates",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("section", sa.String(length=10), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("rate_with_pan", sa.Numeric(5, 2), nullable=False),
        sa.Column("rate_without_pan", sa.Numeric(5, 2), nullable=False),
        _money("threshold_amount"),
        sa.Column("threshold_per_annum", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_tds_rates_tenant_id", "tds_rates", ["tenant_id"])

    op.create_table(
        "tcs_rates",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("rate_with_pan", sa.Numeric(5, 3), nullable=False),
        sa.Column("rate_without_pan", sa.Numeric(5, 3), nullable=False),
        _money("threshold_amount"),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_tcs_rates_tenant_id", "tcs_rates", ["tenant_id"])

    op.create_table(
        "tds_deductions",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("deductee_id", sa.String(length=64), nullable=False),
        sa.Column("deductee_name", sa.String(length=200), nullable=False),
        sa.Column("deductee_pan", sa.String(length=10), nullable=True),
        sa.Column("section", sa.String(length=10), nullable=False),
        _money("gross_amount", default=False),
        sa.Column("tds_rate", sa.Numeric(5, 2), nullable=False),
        _money("tds_amount", default=False),
        _money("net_amount", default=False),
        sa.Column("deduction_date", sa.Date(), nullable=False),
        sa.Column("financial_year", sa.String(length=7), nullable=False),
        sa.Column("quarter", sa.String(length=2), nullable=False),
        sa.Column("invoice_id", sa.String(length=64), nullable=True),
        sa.Column("payment_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        _created_at(),
    )
    op.create_index(
        "ix_tds_deductions_party_fy", "tds_deductions",
        ["tenant_id", "deductee_id", "financial_year"],
    )

    op.create_table(
        "tcs_collections",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=False),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("customer_pan", sa.String(length=10), nullable=True),
        sa.Column("section", sa.String(length=20), nullable=False),
        _money("sale_amount", default=False),
        sa.Column("tcs_rate", sa.Numeric(5, 3), nullable=False),
        _money("tcs_amount", default=False),
        _money("total_amount", default=False),
        sa.Column("collection_date", sa.Date(), nullable=False),
        sa.Column("financial_year", sa.String(length=7), nullable=False),
        sa.Column("quarter", sa.String(length=2), nullable=False),
        sa.Column("invoice_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        _created_at(),
    )
    op.create_index(
        "ix_tcs_collections_party_fy", "tcs_collections",
        ["tenant_id", "customer_id", "financial_year"],
    )

    op.create_table(
        "input_tax_credits",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("supplier_id", sa.String(length=64), nullable=True),
        sa.Column("supplier_gstin", sa.String(length=15), nullable=False),
        sa.Column("supplier_name", sa.String(length=200), nullable=True),
        sa.Column("purchase_invoice_id", sa.String(length=64), nullable=True),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("itc_type", sa.String(length=20), nullable=False),
        sa.Column("hsn_code", sa.String(length=10), nullable=True),
        _money("taxable_amount"),
        _money("cgst_amount"),
        _money("sgst_amount"),
        _money("igst_amount"),
        _money("cess_amount"),
        _money("total_itc"),
        _money("eligible_itc"),
        sa.Column("is_reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="AVAILABLE"),
        sa.Column("claim_period", sa.String(length=6), nullable=False),
        sa.Column("claimed_in_period", sa.String(length=6), nullable=True),
        sa.Column("reversal_reason", sa.String(length=255), nullable=True),
        _money("reversal_amount"),
        _created_at(),
    )
    op.create_index("ix_input_tax_credits_period", "input_tax_credits", ["tenant_id", "claim_period"])

    op.create_table(
        "gstr_filings",
        _id(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("gstin", sa.String(length=15), nullable=False),
        sa.Column("return_type", sa.String(length=10), nullable=False),
        sa.Column("period", sa.String(length=6), nullable=False),
        sa.Column("financial_year", sa.String(length=7), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        _money("total_outward", 16),
        _money("total_tax", 16),
        _money("total_itc", 16),
        _money("tax_payable_igst", 16),
        _money("tax_payable_cgst", 16),
        _money("tax_payable_sgst", 16),
        _money("tax_payable_cess", 16),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("arn", sa.String(length=50), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("filed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("tenant_id", "return_type", "period", name="uq_gstr_filings_period"),
    )
    op.create_index("ix_gstr_filings_tenant_id", "gstr_filings", ["tenant_id"])


def downgrade() -> None:
    op.drop_index("ix_gstr_filings_tenant_id", table_name="gstr_filings")
    op.drop_table("gstr_filings")
    op.drop_index("ix_input_tax_credits_period", table_name="input_tax_credits")
    op.drop_table("input_tax_credits")
    op.drop_index("ix_tcs_collections_party_fy", table_name="tcs_collections")
    op.drop_table("tcs_collections")
    op.drop_index("ix_tds_deductions_party_fy", table_name="tds_deductions")
    op.drop_table("tds_deductions")
    op.drop_index("ix_tcs_rates_tenant_id", table_name="tcs_rates")
    op.drop_table("tcs_rates")
    op.drop_index("ix_tds_rates_tenant_id", table_name="tds_rates")
    op.drop_table("tds_rates")
    op.drop_index("ix_product_tax_categories_sac_code", table_name="product_tax_categories")
    op.drop_index("ix_product_tax_categories_hsn_code", table_name="product_tax_categories")
    op.drop_index("ix_product_tax_categories_tenant_id", table_name="product_tax_categories")
    op.drop_table("product_tax_categories")
    op.drop_index("ix_tax_jurisdictions_tenant_id", table_name="tax_jurisdictions")
    op.drop_table("tax_jurisdictions")
