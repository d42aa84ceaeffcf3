from __future__ import annotations

from datetime import date

from reportlab.pdfbase import pdfmetrics

from settlement.core.config import get_config
from settlement.core.enums import InvoiceDirection
from settlement.services.invoice_pdf import (
    JAPANESE_FONT,
    build_invoice_document,
    included_consumption_tax,
    render_invoice_pdf,
)
from settlement.services.invoice_service import InvoiceService
from settlement.utils.ids import new_invoice_number


def test_included_consumption_tax_floors():
    assert included_consumption_tax(1_100_000) == 100_000
    assert included_consumption_tax(1_080_000) == 98_181
    assert included_consumption_tax(0) == 0


def test_invoice_number_prefix_by_direction():
    assert new_invoice_number(InvoiceDirection.CONTRACTOR_TO_OPERATOR, on=date(2026, 1, 2)).startswith("CINV-2026-")
    number = new_invoice_number(InvoiceDirection.OPERATOR_TO_CLIENT, on=date(2027, 5, 1))
    assert number.startswith("INV-OP-2027-")
    assert len(number.rsplit("-", 1)[1]) == 8


def test_client_invoice_is_issued_by_operator(session, seed_contract):
    seeded = seed_contract(session, client_support=True)
    invoice = InvoiceService(db=session).create_invoice(seeded["contract"].id, "client").invoice

    document = build_invoice_document(invoice, organization=seeded["organization"], project=seeded["project"])

    assert document["issuer"]["name"] == get_config().OPERATOR_NAME
    assert document["recipient"]["name"] == seeded["organization"].name
    assert document["total_amount"] == 1_080_000
    assert document["consumption_tax"] == 98_181
    assert document["issue_date"] == ""
    assert document["project_title"] == "Bridge inspection"


def test_completion_invoice_renders_pdf(session, seed_contract):
    seeded = seed_contract(session, contractor_support=True)
    invoice = InvoiceService(db=session).create_invoice(
        seeded["contract"].id, "completion", today=date(2026, 10, 19)
    ).invoice

    document = build_invoice_document(invoice, contractor=seeded["contractor"])
    assert document["issuer"]["name"] == "Sato Taro"
    assert document["memo"] == "contractor support deduction 8%"

    pdf = render_invoice_pdf(document)
    assert pdf.startswith(b"%PDF")


def test_japanese_party_names_use_cid_font(session, seed_contract):
    seeded = seed_contract(session, client_support=True)
    seeded["organization"].name = "株式会社山田建設"
    seeded["organization"].address = "大阪府大阪市北区"
    seeded["project"].title = "橋梁点検業務"
    session.commit()
    invoice = InvoiceService(db=session).create_invoice(seeded["contract"].id, "client").invoice

    document = build_invoice_document(invoice, organization=seeded["organization"], project=seeded["project"])
    assert document["recipient"]["name"] == "株式会社山田建設"

    pdf = render_invoice_pdf(document)
    assert pdf.startswith(b"%PDF")
    assert JAPANESE_FONT in pdfmetrics.getRegisteredFontNames()
    assert JAPANESE_FONT.encode() in pdf
