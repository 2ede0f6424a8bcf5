# taxengine/infrastructure/db/repositories/invoice_repository.py

from __future__ import annotations

from datetime import date

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taxengine.domain.models.gstr import (
    DOC_INVOICE,
    SUPPLY_TAXABLE,
    InvoiceForGSTR,
    InvoiceItemForGSTR,
)
from taxengine.domain.money import to_decimal
from taxengine.infrastructure.db.models import Invoice, InvoiceItem
from taxengine.infrastructure.db.repositories.tax_repository import unavailable_on_db_error

# Invoice-service statuses that count as posted for return purposes
POSTED_STATUSES = ("SENT", "PAID", "PARTIALLY_PAID", "OVERDUE", "POSTED", "CANCELLED")
CANCELLED_STATUS = "CANCELLED"


def _to_item(row: InvoiceItem) -> InvoiceItemForGSTR:
    return InvoiceItemForGSTR(
        description=row.description or "",
        hsn_code=(row.hsn_code or "").strip(),
        sac_code=(row.sac_code or "").strip(),
        quantity=to_decimal(row.quantity),
        uom=row.unit or "",
        line_total=to_decimal(row.amount),
        taxable_amount=to_decimal(row.taxable_amount),
        cgst_amount=to_decimal(row.cgst_amount),
        sgst_amount=to_decimal(row.sgst_amount),
        igst_amount=to_decimal(row.igst_amount),
        cess_amount=to_decimal(row.cess_amount),
        gst_rate=to_decimal(row.gst_rate),
        supply_type=(row.supply_type or SUPPLY_TAXABLE).upper(),
    )


def _to_invoice(row: Invoice) -> InvoiceForGSTR:
    return InvoiceForGSTR(
        invoice_id=str(row.id),
        invoice_number=row.invoice_number,
        invoice_date=row.invoice_date,
        document_type=(row.document_type or DOC_INVOICE).upper(),
        original_invoice_number=row.original_invoice_number or "",
        customer_gstin=(row.customer_gstin or "").strip().upper(),
        place_of_supply=(row.place_of_supply or "").strip(),
        is_interstate=bool(row.is_interstate),
        reverse_charge=bool(row.reverse_charge),
        export_type=(row.export_type or "").strip().upper(),
        shipping_bill_number=row.shipping_bill_number or "",
        shipping_bill_date=row.shipping_bill_date,
        shipping_port_code=row.shipping_port_code or "",
        is_cancelled=(row.status or "").upper() == CANCELLED_STATUS,
        subtotal=to_decimal(row.subtotal),
        cgst_amount=to_decimal(row.cgst_amount),
        sgst_amount=to_decimal(row.sgst_amount),
        igst_amount=to_decimal(row.igst_amount),
        cess_amount=to_decimal(row.cess_amount),
        gst_rate=to_decimal(row.gst_rate),
        total_amount=to_decimal(row.total_amount),
        items=[_to_item(i) for i in row.items],
    )


class InvoiceRepository:
    """Read-only view over the invoice service's posted documents."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_for_gstr(self, tenant_id: str, start: date, end: date) -> list[InvoiceForGSTR]:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(
                and_(
                    Invoice.tenant_id == tenant_id,
                    Invoice.invoice_date >= start,
                    Invoice.invoice_date <= end,
                    Invoice.status.in_(POSTED_STATUSES),
                )
            )
            .order_by(Invoice.invoice_date, Invoice.invoice_number)
        )
        with unavailable_on_db_error("Invoice fetch for GSTR"):
            result = await self.db.execute(stmt)
            rows = result.scalars().all()
        return [_to_invoice(r) for r in rows]
