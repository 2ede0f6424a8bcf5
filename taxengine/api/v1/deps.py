# taxengine/api/v1/deps.py
"""
FastAPI dependencies for the v1 API layer: tenant resolution and service
wiring. Tests override the ``get_*_service`` dependencies with in-memory fakes.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from taxengine.core.config import settings
from taxengine.core.db import get_db
from taxengine.domain.errors import InvalidInput
from taxengine.domain.services.gst_return_service import FilingService, GstReturnService
from taxengine.domain.services.itc_service import ITCService
from taxengine.domain.services.tax_calculator import TaxCalculator
from taxengine.domain.services.withholding_service import WithholdingService
from taxengine.infrastructure.cache.calculation_cache import get_calculation_cache
from taxengine.infrastructure.db.repositories.filing_repository import FilingRepository
from taxengine.infrastructure.db.repositories.invoice_repository import InvoiceRepository
from taxengine.infrastructure.db.repositories.itc_repository import ITCRepository
from taxengine.infrastructure.db.repositories.tax_repository import TaxRepository

logger = logging.getLogger("api.v1.deps")


async def get_tenant_id(x_tenant_id: str | None = Header(None)) -> str:
    """
    Tenant from the ``X-Tenant-ID`` header. Outside production a missing
    header falls back to the development placeholder tenant.
    """
    tenant_id = (x_tenant_id or "").strip()
    if tenant_id:
        return tenant_id
    if settings.is_production:
        raise InvalidInput("X-Tenant-ID header is required")
    logger.debug("No X-Tenant-ID header, using default tenant")
    return settings.DEFAULT_TENANT_ID


def get_tax_calculator(db: AsyncSession = Depends(get_db)) -> TaxCalculator:
    return TaxCalculator(TaxRepository(db), get_calculation_cache())


def get_withholding_service(db: AsyncSession = Depends(get_db)) -> WithholdingService:
    return WithholdingService(TaxRepository(db))


def get_itc_service(db: AsyncSession = Depends(get_db)) -> ITCService:
    return ITCService(ITCRepository(db))


def get_return_service(db: AsyncSession = Depends(get_db)) -> GstReturnService:
    return GstReturnService(InvoiceRepository(db), ITCService(ITCRepository(db)))


def get_filing_service(db: AsyncSession = Depends(get_db)) -> FilingService:
    returns = GstReturnService(InvoiceRepository(db), ITCService(ITCRepository(db)))
    return FilingService(FilingRepository(db), returns)
