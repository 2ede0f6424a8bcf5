# taxengine/infrastructure/db/repositories/itc_repository.py

from __future__ import annotations

import uuid

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxengine.domain.models.itc import ITCRecord
from taxengine.domain.money import to_decimal
from taxengine.infrastructure.db.models import InputTaxCredit
from taxengine.infrastructure.db.repositories.tax_repository import unavailable_on_db_error


def _to_record(row: InputTaxCredit) -> ITCRecord:
    return ITCRecord(
        id=str(row.id),
        tenant_id=row.tenant_id,
        supplier_id=row.supplier_id,
        supplier_gstin=row.supplier_gstin,
        supplier_name=row.supplier_name or "",
        purchase_invoice_id=row.purchase_invoice_id,
        invoice_number=row.invoice_number,
        invoice_date=row.invoice_date,
        itc_type=row.itc_type,
        hsn_code=row.hsn_code,
        taxable_amount=to_decimal(row.taxable_amount),
        cgst_amount=to_decimal(row.cgst_amount),
        sgst_amount=to_decimal(row.sgst_amount),
        igst_amount=to_decimal(row.igst_amount),
        cess_amount=to_decimal(row.cess_amount),
        total_itc=to_decimal(row.total_itc),
        eligible_itc=to_decimal(row.eligible_itc),
        is_reverse_charge=bool(row.is_reverse_charge),
        status=row.status,
        claim_period=row.claim_period,
        claimed_in_period=row.claimed_in_period,
        reversal_reason=row.reversal_reason,
        reversal_amount=to_decimal(row.reversal_amount),
        created_at=row.created_at,
    )


class ITCRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_itc(self, record: ITCRecord) -> ITCRecord:
        row = InputTaxCredit(
            id=uuid.uuid4(),
            tenant_id=record.tenant_id,
            supplier_id=record.supplier_id,
            supplier_gstin=record.supplier_gstin,
            supplier_name=record.supplier_name,
            purchase_invoice_id=record.purchase_invoice_id,
            invoice_number=record.invoice_number,
            invoice_date=record.invoice_date,
            itc_type=record.itc_type,
            hsn_code=record.hsn_code,
            taxable_amount=record.taxable_amount,
            cgst_amount=record.cgst_amount,
            sgst_amount=record.sgst_amount,
            igst_amount=record.igst_amount,
            cess_amount=record.cess_amount,
            total_itc=record.total_itc,
            eligible_itc=record.eligible_itc,
            is_reverse_charge=record.is_reverse_charge,
            status=record.status,
            claim_period=record.claim_period,
        )
        with unavailable_on_db_error("ITC insert"):
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        return _to_record(row)

    async def list_itc(
        self, tenant_id: str, period: str | None = None, status: str | None = None
    ) -> list[ITCRecord]:
        conditions = [InputTaxCredit.tenant_id == tenant_id]
        if period:
            conditions.append(InputTaxCredit.claim_period == period)
        if status:
            conditions.append(InputTaxCredit.status == status)
        stmt = (
            select(InputTaxCredit)
            .where(and_(*conditions))
            .order_by(InputTaxCredit.invoice_date.desc())
        )
        with unavailable_on_db_error("ITC listing"):
            result = await self.db.execute(stmt)
        return [_to_record(r) for r in result.scalars().all()]

    async def _get_row(self, tenant_id: str, itc_id: str) -> InputTaxCredit | None:
        try:
            pk = uuid.UUID(str(itc_id))
        except ValueError:
            return None
        stmt = select(InputTaxCredit).where(
            and_(InputTaxCredit.id == pk, InputTaxCredit.tenant_id == tenant_id)
        )
        with unavailable_on_db_error("ITC lookup"):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_itc(self, tenant_id: str, itc_id: str) -> ITCRecord | None:
        row = await self._get_row(tenant_id, itc_id)
        return _to_record(row) if row else None

    async def update_itc(self, record: ITCRecord) -> ITCRecord:
        """Persist status / claim / reversal changes."""
        row = await self._get_row(record.tenant_id, record.id)
        if row is None:
            return record
        row.status = record.status
        row.eligible_itc = record.eligible_itc
        row.claimed_in_period = record.claimed_in_period
        row.reversal_reason = record.reversal_reason
        row.reversal_amount = record.reversal_amount
        with unavailable_on_db_error("ITC update"):
            await self.db.commit()
            await self.db.refresh(row)
        return _to_record(row)
