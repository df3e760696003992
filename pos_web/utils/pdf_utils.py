"""
PDF Generation Utilities
Receipt PDF sized for a thermal paper roll
"""

from io import BytesIO
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from pos_web.utils.receipt import receipt_text

PAGE_WIDTH = 58 * mm
MARGIN = 3 * mm
LINE_HEIGHT = 3.6 * mm
FONT = 'Courier'
FONT_BOLD = 'Courier-Bold'
FONT_SIZE = 7


def generate_receipt_pdf(receipt, title='Receipt'):
    """
    Generate PDF receipt from a laid-out receipt

    The page is exactly as tall as the printed text; the business name and
    the TOTAL line are bold.

    Args:
        receipt: dict returned by receipt.build_receipt
        title: PDF document title

    Returns:
        BytesIO: the PDF, positioned at the start
    """
    lines = receipt_text(receipt).split('\n')
    height = len(lines) * LINE_HEIGHT + 2 * MARGIN

    output = BytesIO()
    pdf = canvas.Canvas(output, pagesize=(PAGE_WIDTH, height))
    pdf.setTitle(title)

    y = height - MARGIN - LINE_HEIGHT
    for idx, line in enumerate(lines):
        bold = idx == 0 or line.startswith('TOTAL')
        pdf.setFont(FONT_BOLD if bold else FONT, FONT_SIZE)
        pdf.drawString(MARGIN, y, line)
        y -= LINE_HEIGHT

    pdf.showPage()
    pdf.save()
    output.seek(0)
    return output
