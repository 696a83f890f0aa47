"""Render a certificate as an A4 PDF document."""

from __future__ import annotations

import io
from datetime import date, datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from cargo_certs import models

NAVY = colors.Color(30 / 255, 58 / 255, 95 / 255)
BOX_BORDER = colors.Color(200 / 255, 200 / 255, 200 / 255)
BOX_FILL = colors.Color(245 / 255, 245 / 255, 245 / 255)
FOOTER_GREY = colors.Color(128 / 255, 128 / 255, 128 / 255)

MARGIN = 20 * mm
LABEL_WIDTH = 50 * mm

FOOTER_NOTICE = "This certificate is electronically generated and valid without signature."

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def format_date(value: date | datetime) -> str:
    """en-GB long form: 05 March 2025."""
    return f"{value.day:02d} {_MONTHS[value.month - 1]} {value.year}"


def format_number(value: float) -> str:
    return f"{float(value):,.2f}"


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            name="CertTitle",
            parent=base["Heading1"],
            fontName="Helvetica-Bold",
            fontSize=22,
            leading=26,
            alignment=TA_CENTER,
            textColor=colors.white,
        ),
        "number": ParagraphStyle(
            name="CertNumber",
            parent=base["Normal"],
            fontSize=14,
            leading=18,
            alignment=TA_CENTER,
            textColor=colors.white,
        ),
        "section": ParagraphStyle(
            name="Section",
            parent=base["Heading3"],
            fontName="Helvetica-Bold",
            fontSize=11,
            spaceBefore=8,
            spaceAfter=4,
        ),
        "label": ParagraphStyle(
            name="Label", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=10, leading=13
        ),
        "value": ParagraphStyle(name="Value", parent=base["Normal"], fontSize=10, leading=13),
        "description": ParagraphStyle(
            name="Description",
            parent=base["Normal"],
            fontSize=10,
            leading=13,
            leftIndent=LABEL_WIDTH,
            spaceAfter=4,
        ),
        "box_title": ParagraphStyle(
            name="BoxTitle", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=9, leading=12
        ),
        "box_text": ParagraphStyle(name="BoxText", parent=base["Normal"], fontSize=9, leading=12),
    }


def _rows(pairs: list[tuple[str, str]], styles: dict[str, ParagraphStyle], width: float) -> Table:
    data = [
        [Paragraph(escape(label), styles["label"]), Paragraph(escape(value), styles["value"])]
        for label, value in pairs
    ]
    table = Table(data, colWidths=[LABEL_WIDTH, width - LABEL_WIDTH])
    table.setStyle(
        TableStyle(
            [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, -1), 1),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
            ]
        )
    )
    return table


def generate_certificate_pdf(
    certificate: models.Certificate, generated_at: datetime | None = None
) -> bytes:
    """Build the certificate PDF; `certificate.contract` must be loaded."""

    generated_at = generated_at or datetime.now(timezone.utc)
    contract = certificate.contract

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN + 10 * mm,
        title=certificate.certificate_number,
        author="Cargo Insurance Certificates",
    )
    width = doc.width
    styles = _styles()
    story = []

    # Header band
    header = Table(
        [
            [Paragraph("CARGO INSURANCE CERTIFICATE", styles["title"])],
            [Paragraph(escape(certificate.certificate_number), styles["number"])],
        ],
        colWidths=[width],
    )
    header.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), NAVY),
                ("TOPPADDING", (0, 0), (-1, 0), 12),
                ("BOTTOMPADDING", (0, -1), (-1, -1), 12),
            ]
        )
    )
    story.append(header)
    story.append(Spacer(1, 10))

    story.append(Paragraph("Certificate Details", styles["section"]))
    story.append(
        _rows(
            [
                ("Certificate No:", certificate.certificate_number),
                ("Issue Date:", format_date(certificate.issue_date)),
                ("Contract No:", contract.contract_number),
                ("Coverage Type:", contract.coverage_type),
            ],
            styles,
            width,
        )
    )

    story.append(Paragraph("Insured Information", styles["section"]))
    story.append(_rows([("Insured Name:", certificate.insured_name)], styles, width))

    # The description is a free-standing paragraph so long text can break across pages.
    story.append(Paragraph("Cargo Details", styles["section"]))
    story.append(Paragraph("Description:", styles["label"]))
    story.append(
        Paragraph(escape(certificate.cargo_description).replace("\n", "<br/>"), styles["description"])
    )
    story.append(_rows([("Transport:", certificate.transport_means)], styles, width))

    story.append(Paragraph("Route Information", styles["section"]))
    story.append(
        _rows(
            [
                ("Departure:", certificate.departure_country),
                ("Arrival:", certificate.arrival_country),
                ("Loading Date:", format_date(certificate.loading_date)),
            ],
            styles,
            width,
        )
    )

    story.append(Paragraph("Value Information", styles["section"]))
    story.append(
        _rows(
            [
                ("Local Value:", f"{format_number(certificate.value_local)} {certificate.currency}"),
                ("Value (EUR):", f"{format_number(certificate.value_euro)} EUR"),
                (
                    "Exchange Rate:",
                    f"1 {certificate.currency} = {float(certificate.exchange_rate):.6f} EUR",
                ),
            ],
            styles,
            width,
        )
    )
    story.append(Spacer(1, 10))

    validity = Table(
        [
            [Paragraph("Contract Validity Period", styles["box_title"])],
            [
                Paragraph(
                    f"{format_date(contract.start_date)} to {format_date(contract.end_date)}",
                    styles["box_text"],
                )
            ],
            [
                Paragraph(
                    f"Maximum Sum Insured: {format_number(contract.sum_insured)} EUR "
                    f"(+{float(contract.additional_si_percentage):g}%)",
                    styles["box_text"],
                )
            ],
        ],
        colWidths=[width],
    )
    validity.setStyle(
        TableStyle(
            [
                ("BOX", (0, 0), (-1, -1), 0.75, BOX_BORDER),
                ("BACKGROUND", (0, 0), (-1, -1), BOX_FILL),
                ("LEFTPADDING", (0, 0), (-1, -1), 5 * mm),
                ("TOPPADDING", (0, 0), (-1, 0), 6),
                ("BOTTOMPADDING", (0, -1), (-1, -1), 6),
            ]
        )
    )
    story.append(validity)

    generated_line = f"Generated on {format_date(generated_at)}"

    def _footer(canvas, _doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(FOOTER_GREY)
        page_width, _ = A4
        canvas.drawCentredString(page_width / 2, 20 * mm, generated_line)
        canvas.drawCentredString(page_width / 2, 15 * mm, FOOTER_NOTICE)
        canvas.restoreState()

    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buffer.getvalue()
