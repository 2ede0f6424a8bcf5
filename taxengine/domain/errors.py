# taxengine/domain/errors.py
"""
Error taxonomy for the tax engine.

Every error carries a stable ``code`` (used in the API error envelope) and a
human readable ``message``. The HTTP mapping lives in ``taxengine.api.errors``.
"""

from __future__ import annotations


class TaxEngineError(Exception):
    code = "TAX_ENGINE_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message


class InvalidInput(TaxEngineError):
    """Malformed request data: bad date, period, section or return type."""

    code = "INVALID_INPUT"


class InvalidJurisdiction(TaxEngineError):
    """Neither origin nor destination state could be resolved."""

    code = "INVALID_JURISDICTION"


class RateNotFound(TaxEngineError):
    """No TDS/TCS rate configured for the tenant and section."""

    code = "RATE_NOT_FOUND"


class RepositoryUnavailable(TaxEngineError):
    """A required lookup against the store failed."""

    code = "REPOSITORY_UNAVAILABLE"


class NotFound(TaxEngineError):
    code = "NOT_FOUND"


class FilingLocked(TaxEngineError):
    """The target is in a state that forbids the requested change."""

    code = "FILING_LOCKED"
