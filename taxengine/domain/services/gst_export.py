# taxengine/domain/services/gst_export.py
"""
Serialize GSTR-1 / GSTR-3B aggregates into the GSTN filing JSON.

- Field names are the wire codes carried by the models.
- Amounts are written as plain JSON numbers at full precision, never in
  exponent form and never through float.
- Optional fields are dropped when empty or zero.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from taxengine.domain.models.gstr import GSTR1Data, GSTR3BData

_OMIT_WHEN_EMPTY = frozenset({
    # GSTR-1
    "etin", "sbnum", "sbdt", "sbpcode", "desc", "docs", "from", "to",
    "nil_inter", "nil_intra", "expt_inter", "expt_intra", "ngsup_inter", "ngsup_intra",
    # GSTR-3B
    "unreg_details", "comp_details", "uin_details", "intr_amt", "ltfee_amt",
})


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: _prune(v)
            for k, v in value.items()
            if not (k in _OMIT_WHEN_EMPTY and not v)
        }
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


def to_filing_dict(data: BaseModel) -> dict[str, Any]:
    """Wire-shaped dict (Decimals kept) with optional empties removed."""
    return _prune(data.model_dump(by_alias=True))


def _encode(value: Any) -> str:
    if isinstance(value, dict):
        return "{" + ",".join(
            f"{json.dumps(str(k))}:{_encode(v)}" for k, v in value.items()
        ) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(v) for v in value) + "]"
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot export non-finite amount {value}")
        return format(value, "f")
    return json.dumps(value)


def dumps(data: GSTR1Data | GSTR3BData) -> str:
    return _encode(to_filing_dict(data))


def loads(text: str | bytes) -> dict[str, Any]:
    return json.loads(text, parse_float=Decimal)


def parse_gstr1(text: str | bytes) -> GSTR1Data:
    return GSTR1Data.model_validate(loads(text))


def parse_gstr3b(text: str | bytes) -> GSTR3BData:
    return GSTR3BData.model_validate(loads(text))
