"""Tests for the GSTN filing JSON exporter."""

import json
from decimal import Decimal

import pytest
from conftest import GSTIN_BUYER, GSTIN_SELF, make_invoice, make_item

from taxengine.domain.models.gstr import B2CLEntry, B2CLInvoice, GSTR1Data, GSTR3BData, NilSupplies
from taxengine.domain.services import gst_export
from taxengine.domain.services.gstr1_service import aggregate_gstr1
from taxengine.domain.services.gstr3b_service import aggregate_gstr3b


def _gstr1():
    invoices = [
        make_invoice("INV-1", [make_item("1000.50")], customer_gstin=GSTIN_BUYER, place_of_supply="27"),
        make_invoice("INV-2", [make_item("300000", interstate=True)], place_of_supply="29", is_interstate=True),
        make_invoice("INV-3", [make_item("100")], place_of_supply="27"),
    ]
    return aggregate_gstr1(GSTIN_SELF, "012025", invoices).data


def test_wire_codes():
    payload = json.loads(gst_export.dumps(_gstr1()))
    assert payload["gstin"] == GSTIN_SELF
    assert payload["ret_period"] == "012025"
    b2b = payload["b2b"][0]
    assert b2b["ctin"] == GSTIN_BUYER
    assert set(b2b["inv"][0]) == {"inum", "idt", "val", "pos", "rchrg", "inv_typ", "itms"}
    assert set(b2b["inv"][0]["itms"][0]["itm_det"]) == {"rt", "txval", "iamt", "camt", "samt", "csamt"}
    assert payload["doc_issue"][0]["from"] == "INV-1"
    assert "from_" not in payload["doc_issue"][0]


def test_optional_fields_omitted_when_empty():
    payload = json.loads(gst_export.dumps(_gstr1()))
    assert "etin" not in payload["b2cl"][0]["inv"][0]
    assert payload["nil"] == {}
    assert payload["cdnr"] == []
    assert "desc" not in payload["hsn"][0]

    gstr3b = json.loads(gst_export.dumps(aggregate_gstr3b(GSTIN_SELF, "012025", [])))
    assert gstr3b["itc_elg"] == {}
    assert gstr3b["intr_ltfee"] == {}
    assert gstr3b["sup_details"]["osup_det"]["txval"] == 0


def test_nonzero_optional_fields_kept():
    data = GSTR1Data(
        gstin=GSTIN_SELF,
        ret_period="012025",
        b2cl=[B2CLEntry(pos="29", inv=[B2CLInvoice(inum="A", idt="01-01-2025", val=Decimal("1"), etin="X")])],
        nil=NilSupplies(nil_inter=Decimal("5")),
    )
    payload = json.loads(gst_export.dumps(data))
    assert payload["b2cl"][0]["inv"][0]["etin"] == "X"
    assert payload["nil"] == {"nil_inter": 5}


def test_amounts_never_in_exponent_form():
    data = GSTR1Data(
        gstin=GSTIN_SELF,
        ret_period="012025",
        nil=NilSupplies(nil_inter=Decimal("1E+7"), nil_intra=Decimal("0.0000001")),
    )
    text = gst_export.dumps(data)
    assert "E+" not in text and "E-" not in text
    assert '"nil_inter":10000000' in text
    assert '"nil_intra":0.0000001' in text


def test_amounts_are_exact():
    text = gst_export.dumps(_gstr1())
    assert '"txval":1000.50' in text


def test_non_finite_amount_rejected():
    data = GSTR1Data(gstin=GSTIN_SELF, ret_period="012025")
    data.nil.nil_inter = Decimal("NaN")
    with pytest.raises(ValueError):
        gst_export.dumps(data)


def test_round_trip():
    original = _gstr1()
    assert gst_export.parse_gstr1(gst_export.dumps(original)) == original

    gstr3b = aggregate_gstr3b(GSTIN_SELF, "012025", [make_invoice("INV-1", [make_item("10")])])
    assert gst_export.parse_gstr3b(gst_export.dumps(gstr3b)) == gstr3b


def test_gstr3b_model_type():
    parsed = gst_export.parse_gstr3b(gst_export.dumps(aggregate_gstr3b(GSTIN_SELF, "012025", [])))
    assert isinstance(parsed, GSTR3BData)
