# taxengine/domain/services/tax_calculator.py
"""
GST calculation entry point.

Resolution order:
1. Calculation cache (best-effort, TTL from settings)
2. Country regime (India GST, else zero-tax passthrough)

Results are written back to the cache after every fresh computation.
"""

from __future__ import annotations

import hashlib
import logging

from pydantic import ValidationError

from taxengine.core.config import settings
from taxengine.domain.models.tax import TaxCalculationRequest, TaxCalculationResponse
from taxengine.domain.money import ZERO
from taxengine.domain.services.tax_regimes import RegimeRegistry, default_registry
from taxengine.infrastructure.cache.calculation_cache import CalculationCache

logger = logging.getLogger("tax_calculator")


def calculation_cache_key(request: TaxCalculationRequest) -> str:
    """
    Stable digest of every input that can change the result: tenant,
    destination address, origin state, shipping, each line's
    (category, HSN, SAC, subtotal) in order, and the customer.
    """
    addr = request.shipping_address
    origin = request.origin_address.state_code if request.origin_address else ""
    parts = [
        request.tenant_id,
        addr.country, addr.country_code, addr.state, addr.state_code, addr.city, addr.zip_code,
        origin or "",
        str(request.shipping_amount),
    ]
    for item in request.items:
        parts.append(
            f"{item.category_id or ''}|{item.hsn_code or ''}|{item.sac_code or ''}|{item.subtotal}"
        )
    if request.customer_id:
        parts.append(request.customer_id)
    return hashlib.sha256(":".join(parts).encode("utf-8")).hexdigest()


class TaxCalculator:
    def __init__(
        self,
        repo,
        cache: CalculationCache | None = None,
        registry: RegimeRegistry | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        self.repo = repo
        self.cache = cache
        self.registry = registry or default_registry()
        self.ttl_seconds = ttl_seconds or settings.TAX_CACHE_TTL_SECONDS

    async def _cached(self, key: str) -> TaxCalculationResponse | None:
        if self.cache is None:
            return None
        try:
            raw = await self.cache.get(key)
        except Exception as exc:
            logger.warning("Calculation cache read failed, recomputing: %s", exc)
            return None
        if not raw:
            return None
        try:
            return TaxCalculationResponse.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key[:12], exc)
            return None

    async def _store(self, key: str, response: TaxCalculationResponse) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, response.model_dump_json(), self.ttl_seconds)
        except Exception as exc:
            logger.warning("Calculation cache write failed: %s", exc)

    async def calculate_tax(self, request: TaxCalculationRequest) -> TaxCalculationResponse:
        key = calculation_cache_key(request)
        cached = await self._cached(key)
        if cached is not None:
            logger.debug("Calculation cache hit %s", key[:12])
            return cached

        subtotal = sum((item.subtotal for item in request.items), ZERO)
        regime = self.registry.resolve(request.country_code)
        response = await regime.calculate(request, subtotal, self.repo)

        await self._store(key, response)
        return response
