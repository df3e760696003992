"""
Receipt Routes
Printable receipts. Public: the link is opened from the payment popup and
by the Bluetooth print app, neither of which carries a login.
"""

from flask import Blueprint, render_template, request, send_file, current_app

from pos_web.services.backend import get_backend
from pos_web.utils.pdf_utils import generate_receipt_pdf
from pos_web.utils.receipt import (
    ReceiptError, load_receipt, build_receipt, is_mobile, bluetooth_print_url
)

bp = Blueprint('receipts', __name__)


def business_lines():
    config = current_app.config
    return config['BUSINESS_NAME'], (config['BUSINESS_ADDRESS_LINE1'], config['BUSINESS_ADDRESS_LINE2'])


@bp.route('/receipt/<order_id>')
def receipt(order_id):
    """Receipt page; desktop browsers print it straight away"""
    try:
        order = load_receipt(get_backend(), order_id)
    except ReceiptError as e:
        current_app.logger.warning(f"Receipt {order_id} unavailable: {e.message}")
        return render_template('receipts/receipt.html', error=e.message), e.status_code

    name, address = business_lines()
    mobile = is_mobile(request.headers.get('User-Agent', ''))
    return render_template(
        'receipts/receipt.html',
        order=order,
        receipt=build_receipt(order, name, address),
        mobile=mobile,
        bluetooth_url=bluetooth_print_url(current_app.config['BACKEND_API_URL'], order_id) if mobile else None,
    )


@bp.route('/receipt/<order_id>/pdf')
def receipt_pdf(order_id):
    """Same receipt as a PDF download"""
    try:
        order = load_receipt(get_backend(), order_id)
    except ReceiptError as e:
        current_app.logger.warning(f"Receipt PDF {order_id} unavailable: {e.message}")
        return render_template('receipts/receipt.html', error=e.message), e.status_code

    name, address = business_lines()
    pdf = generate_receipt_pdf(build_receipt(order, name, address),
                               title=f"Receipt {order.order_number or order.id}")
    return send_file(
        pdf,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f"receipt_{order.order_number or order.id}.pdf",
    )
