import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from taxengine.infrastructure.db.base import Base, ExternalBase


class TaxJurisdiction(Base):
    __tablename__ = "tax_jurisdictions"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    jurisdiction_type = Column(String(20), nullable=False, default="STATE")
    code = Column(String(20))
    country_code = Column(String(2), nullable=False, default="IN")
    state_code = Column(String(10))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class ProductTaxCategory(Base):
    __tablename__ = "product_tax_categories"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50))
    hsn_code = Column(String(10), index=True)
    sac_code = Column(String(10), index=True)
    gst_rate = Column(Numeric(5, 2), nullable=False, default=18)
    is_tax_exempt = Column(Boolean, nullable=False, default=False)
    is_nil_rated = Column(Boolean, nullable=False, default=False)
    is_zero_rated = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class TDSRate(Base):
    __tablename__ = "tds_rates"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    section = Column(String(10), nullable=False)
    description = Column(String(255))
    rate_with_pan = Column(Numeric(5, 2), nullable=False)
    rate_without_pan = Column(Numeric(5, 2), nullable=False)
    threshold_amount = Column(Numeric(14, 2), nullable=False, default=0)
    threshold_per_annum = Column(Boolean, nullable=False, default=False)
    effective_from = Column(Date)
    effective_to = Column(Date)
    is_active = Column(Boolean, nullable=False, default=True)


class TCSRate(Base):
    __tablename__ = "tcs_rates"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    section = Column(String(20), nullable=False)
    description = Column(String(255))
    rate_with_pan = Column(Numeric(5, 3), nullable=False)
    rate_without_pan = Column(Numeric(5, 3), nullable=False)
    threshold_amount = Column(Numeric(14, 2), nullable=False, default=0)
    effective_from = Column(Date)
    effective_to = Column(Date)
    is_active = Column(Boolean, nullable=False, default=True)


class TDSDeduction(Base):
    __tablename__ = "tds_deductions"
    __table_args__ = (
        Index("ix_tds_deductions_party_fy", "tenant_id", "deductee_id", "financial_year"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False)
    deductee_id = Column(String(64), nullable=False)
    deductee_name = Column(String(200), nullable=False)
    deductee_pan = Column(String(10))
    section = Column(String(10), nullable=False)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    tds_rate = Column(Numeric(5, 2), nullable=False)
    tds_amount = Column(Numeric(14, 2), nullable=False)
    net_amount = Column(Numeric(14, 2), nullable=False)
    deduction_date = Column(Date, nullable=False)
    financial_year = Column(String(7), nullable=False)
    quarter = Column(String(2), nullable=False)
    invoice_id = Column(String(64))
    payment_id = Column(String(64))
    status = Column(String(20), nullable=False, default="PENDING")
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class TCSCollection(Base):
    __tablename__ = "tcs_collections"
    __table_args__ = (
        Index("ix_tcs_collections_party_fy", "tenant_id", "customer_id", "financial_year"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False)
    customer_id = Column(String(64), nullable=False)
    customer_name = Column(String(200), nullable=False)
    customer_pan = Column(String(10))
    section = Column(String(20), nullable=False)
    sale_amount = Column(Numeric(14, 2), nullable=False)
    tcs_rate = Column(Numeric(5, 3), nullable=False)
    tcs_amount = Column(Numeric(14, 2), nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    collection_date = Column(Date, nullable=False)
    financial_year = Column(String(7), nullable=False)
    quarter = Column(String(2), nullable=False)
    invoice_id = Column(String(64))
    status = Column(String(20), nullable=False, default="PENDING")
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class InputTaxCredit(Base):
    __tablename__ = "input_tax_credits"
    __table_args__ = (
        Index("ix_input_tax_credits_period", "tenant_id", "claim_period"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False)
    supplier_id = Column(String(64))
    supplier_gstin = Column(String(15), nullable=False)
    supplier_name = Column(String(200))
    purchase_invoice_id = Column(String(64))
    invoice_number = Column(String(50), nullable=False)
    invoice_date = Column(Date, nullable=False)
    itc_type = Column(String(20), nullable=False)
    hsn_code = Column(String(10))
    taxable_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    igst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cess_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total_itc = Column(Numeric(14, 2), nullable=False, default=0)
    eligible_itc = Column(Numeric(14, 2), nullable=False, default=0)
    is_reverse_charge = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="AVAILABLE")
    claim_period = Column(String(6), nullable=False)
    claimed_in_period = Column(String(6))
    reversal_reason = Column(String(255))
    reversal_amount = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class GSTRFiling(Base):
    __tablename__ = "gstr_filings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "return_type", "period", name="uq_gstr_filings_period"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    gstin = Column(String(15), nullable=False)
    return_type = Column(String(10), nullable=False)
    period = Column(String(6), nullable=False)
    financial_year = Column(String(7), nullable=False)
    status = Column(String(20), nullable=False, default="DRAFT")
    total_outward = Column(Numeric(16, 2), nullable=False, default=0)
    total_tax = Column(Numeric(16, 2), nullable=False, default=0)
    total_itc = Column(Numeric(16, 2), nullable=False, default=0)
    tax_payable_igst = Column(Numeric(16, 2), nullable=False, default=0)
    tax_payable_cgst = Column(Numeric(16, 2), nullable=False, default=0)
    tax_payable_sgst = Column(Numeric(16, 2), nullable=False, default=0)
    tax_payable_cess = Column(Numeric(16, 2), nullable=False, default=0)
    payload_json = Column(Text)
    arn = Column(String(50))
    generated_at = Column(DateTime(timezone=True))
    filed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


# ---------- invoice-service tables (read-only) ----------


class Invoice(ExternalBase):
    __tablename__ = "invoices"
    id = Column(UUID(as_uuid=True), primary_key=True)
    tenant_id = Column(String(64), nullable=False)
    invoice_number = Column(String(50), nullable=False)
    invoice_date = Column(Date, nullable=False)
    document_type = Column(String(20), nullable=False, default="INVOICE")
    original_invoice_number = Column(String(50))
    status = Column(String(20), nullable=False)
    customer_gstin = Column(String(15))
    place_of_supply = Column(String(2))
    is_interstate = Column(Boolean, nullable=False, default=False)
    reverse_charge = Column(Boolean, nullable=False, default=False)
    export_type = Column(String(10))
    shipping_bill_number = Column(String(20))
    shipping_bill_date = Column(Date)
    shipping_port_code = Column(String(10))
    subtotal = Column(Numeric(14, 2))
    cgst_amount = Column(Numeric(14, 2))
    sgst_amount = Column(Numeric(14, 2))
    igst_amount = Column(Numeric(14, 2))
    cess_amount = Column(Numeric(14, 2))
    gst_rate = Column(Numeric(5, 2))
    total_amount = Column(Numeric(14, 2))
    items = relationship("InvoiceItem", back_populates="invoice")


class InvoiceItem(ExternalBase):
    __tablename__ = "invoice_items"
    id = Column(UUID(as_uuid=True), primary_key=True)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id"), nullable=False)
    description = Column(String(255))
    hsn_code = Column(String(10))
    sac_code = Column(String(10))
    quantity = Column(Numeric(14, 3))
    unit = Column(String(10))
    taxable_amount = Column(Numeric(14, 2))
    cgst_amount = Column(Numeric(14, 2))
    sgst_amount = Column(Numeric(14, 2))
    igst_amount = Column(Numeric(14, 2))
    cess_amount = Column(Numeric(14, 2))
    gst_rate = Column(Numeric(5, 2))
    amount = Column(Numeric(14, 2))
    supply_type = Column(String(20), default="TAXABLE")
    invoice = relationship("Invoice", back_populates="items")
