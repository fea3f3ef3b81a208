"""Printable invoice PDFs, rendered from the invoice documents built by sales_service."""
from io import BytesIO
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak


def _invoice_elements(invoice: Dict[str, Any], styles) -> List:
    """Flowables for one invoice."""
    elements = []

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    header_style = ParagraphStyle(
        'InvoiceHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Shop header
    shop = invoice['shop']
    elements.append(Paragraph(escape(shop.get('name') or 'INVOICE'), title_style))
    if shop.get('address'):
        elements.append(Paragraph(escape(shop['address']), header_style))

    contact_parts = []
    if shop.get('phone'):
        contact_parts.append(f"Tel: {escape(shop['phone'])}")
    if shop.get('email'):
        contact_parts.append(f"Email: {escape(shop['email'])}")
    if shop.get('gst'):
        contact_parts.append(f"GST: {escape(shop['gst'])}")
    if contact_parts:
        elements.append(Paragraph(" | ".join(contact_parts), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Invoice metadata
    customer = invoice['customer']
    info_data = [
        ['Invoice No:', invoice['invoiceNumber']],
        ['Date:', f"{invoice['date']} {invoice['time']}"],
        ['Customer:', customer['name']],
    ]
    if customer.get('phone'):
        info_data.append(['Phone:', customer['phone']])

    info_table = Table(info_data, colWidths=[2*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items
    table_data = [['Product', 'Qty', 'Price', 'Total']]
    for item in invoice['items']:
        table_data.append([item['name'], str(item['quantity']), item['price'], item['total']])

    items_table = Table(table_data, colWidths=[3.7*inch, 0.8*inch, 1.1*inch, 1.1*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#667EEA')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (1, 1), (1, -1), 'CENTER'),
        ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals_data = [['Subtotal:', invoice['subtotal']]]
    if invoice.get('discount'):
        discount = invoice['discount']
        label = discount['label']
        if discount.get('code'):
            label = f"{label} [{discount['code']}]"
        totals_data.append([f"{label}:", f"-{discount['amount']}"])
    totals_data.append(['Tax:', invoice['tax']])
    totals_data.append(['TOTAL:', invoice['total']])

    totals_table = Table(totals_data, colWidths=[5.6*inch, 1.1*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('LINEABOVE', (0, -1), (-1, -1), 1.5, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)

    if invoice.get('footer'):
        elements.append(Spacer(1, 0.4*inch))
        footer_style = ParagraphStyle('InvoiceFooter', parent=styles['Normal'], fontSize=9,
                                      textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
        elements.append(Paragraph(escape(invoice['footer']), footer_style))

    return elements


def render_invoices_pdf(invoices: List[Dict[str, Any]]) -> BytesIO:
    """
    Render invoice documents as one A4 PDF, one invoice per page.

    Args:
        invoices: Outputs of ``sales_service.build_invoice``

    Returns:
        Buffer positioned at the start of the PDF
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        title=invoices[0]['invoiceNumber'] if len(invoices) == 1 else 'Invoices',
    )

    styles = getSampleStyleSheet()
    elements = []
    for index, invoice in enumerate(invoices):
        if index:
            elements.append(PageBreak())
        elements.extend(_invoice_elements(invoice, styles))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def render_invoice_pdf(invoice: Dict[str, Any]) -> BytesIO:
    """Render a single invoice document as an A4 PDF."""
    return render_invoices_pdf([invoice])
