# taxengine/api/v1/__init__.py
"""
Versioned API v1, aggregates all sub-routers under ``/api/v1``.

Usage in ``main.py``::

    from taxengine.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from taxengine.api.v1.routes.gstr import router as gstr_router
from taxengine.api.v1.routes.health import router as health_router
from taxengine.api.v1.routes.itc import router as itc_router
from taxengine.api.v1.routes.tax import router as tax_router
from taxengine.api.v1.routes.tcs import router as tcs_router
from taxengine.api.v1.routes.tds import router as tds_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(health_router)
v1_router.include_router(tax_router)
v1_router.include_router(tds_router)
v1_router.include_router(tcs_router)
v1_router.include_router(itc_router)
v1_router.include_router(gstr_router)

__all__ = ["v1_router"]
