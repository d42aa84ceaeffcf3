"""Invoice PDF rendering.

Builds a printable invoice with ReportLab from a stored invoice and the
parties on either side of it.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR
from io import BytesIO
from typing import Any

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from settlement.core.config import get_config
from settlement.core.enums import InvoiceDirection
from settlement.database.models import Invoice, Organization, Project, User

CONSUMPTION_TAX_RATE = Decimal("0.1")
# Built-in Adobe CID font with kana and kanji glyphs.
JAPANESE_FONT = "HeiseiKakuGo-W5"


def included_consumption_tax(amount: int) -> int:
    """Consumption tax contained in a tax-included amount, floored to whole yen."""
    tax = Decimal(amount) * CONSUMPTION_TAX_RATE / (Decimal(1) + CONSUMPTION_TAX_RATE)
    return int(tax.to_integral_value(rounding=ROUND_FLOOR))


def japanese_font() -> str:
    if JAPANESE_FONT not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(JAPANESE_FONT))
    return JAPANESE_FONT


def _yen(value: int | None) -> str:
    return f"JPY {value or 0:,}"


def build_invoice_document(
    invoice: Invoice,
    organization: Organization | None = None,
    contractor: User | None = None,
    project: Project | None = None,
) -> dict[str, Any]:
    """Collect the fields printed on the invoice."""
    cfg = get_config()
    if invoice.direction == InvoiceDirection.OPERATOR_TO_CLIENT.value:
        issuer = {"name": cfg.OPERATOR_NAME, "email": cfg.OPERATOR_EMAIL, "address": cfg.OPERATOR_ADDRESS}
        recipient = {
            "name": organization.name if organization else "",
            "email": organization.email if organization else "",
            "address": organization.address if organization else "",
        }
    else:
        issuer = {
            "name": contractor.display_name if contractor else "",
            "email": contractor.email if contractor else "",
            "address": contractor.address if contractor else "",
        }
        recipient = {"name": cfg.OPERATOR_NAME, "email": cfg.OPERATOR_EMAIL, "address": cfg.OPERATOR_ADDRESS}

    return {
        "invoice_number": invoice.invoice_number,
        "issue_date": invoice.issue_date.isoformat() if invoice.issue_date else "",
        "due_date": invoice.due_date.isoformat() if invoice.due_date else "",
        "status": invoice.status,
        "project_title": project.title if project else "",
        "issuer": issuer,
        "recipient": recipient,
        "base_amount": invoice.base_amount,
        "system_fee": invoice.system_fee,
        "total_amount": invoice.total_amount,
        "tax_rate": float(CONSUMPTION_TAX_RATE),
        "consumption_tax": included_consumption_tax(invoice.total_amount),
        "withholding": invoice.withholding_amount,
        "final_amount": invoice.final_amount,
        "memo": invoice.memo or "",
    }


def render_invoice_pdf(document: dict[str, Any]) -> bytes:
    """Render the fields from ``build_invoice_document`` into PDF bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=f"Invoice {document['invoice_number']}",
    )

    font = japanese_font()
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontName=font,
        fontSize=22,
        textColor=colors.HexColor("#2C3E50"),
        spaceAfter=12,
        alignment=TA_CENTER,
    )
    body_style = ParagraphStyle("InvoiceBody", parent=styles["Normal"], fontName=font)

    issuer = document["issuer"]
    recipient = document["recipient"]
    elements: list[Any] = [
        Paragraph("INVOICE", title_style),
        Paragraph(f"No. {document['invoice_number']}", body_style),
        Spacer(1, 6 * mm),
    ]

    parties = Table(
        [
            ["Bill To:", "", "Issue Date:", document["issue_date"]],
            [recipient["name"], "", "Due Date:", document["due_date"]],
            [recipient["address"] or "", "", "From:", issuer["name"]],
            [recipient["email"] or "", "", "", issuer["email"] or ""],
        ],
        colWidths=[65 * mm, 10 * mm, 30 * mm, 65 * mm],
    )
    parties.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, -1), font),
                ("FONTNAME", (0, 0), (0, 0), "Helvetica-Bold"),
                ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.extend([parties, Spacer(1, 8 * mm)])

    if document["project_title"]:
        elements.extend([Paragraph(f"Project: {document['project_title']}", body_style), Spacer(1, 4 * mm)])

    rows = [
        ["Description", "Amount"],
        ["Contract amount", _yen(document["base_amount"])],
        ["Support fee", _yen(document["system_fee"])],
        ["Subtotal", _yen(document["total_amount"])],
        [f"Consumption tax ({int(document['tax_rate'] * 100)}%, included)", _yen(document["consumption_tax"])],
        ["Withholding tax", f"- {_yen(document['withholding'])}"],
        ["Amount payable", _yen(document["final_amount"])],
    ]
    amounts = Table(rows, colWidths=[110 * mm, 60 * mm])
    amounts.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#34495E")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("LINEABOVE", (0, -1), (-1, -1), 1.0, colors.black),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -2), 0.25, colors.grey),
            ]
        )
    )
    elements.append(amounts)

    if document["memo"]:
        elements.extend([Spacer(1, 6 * mm), Paragraph(f"Notes: {document['memo']}", body_style)])

    doc.build(elements)
    return buffer.getvalue()
