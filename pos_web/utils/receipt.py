"""
Receipt Layout
Fixed-width text layout for 58mm thermal printers, shared by the HTML
receipt page and the PDF.
"""

import re

from pos_web.models import Order, ORDER_DINE_IN
from pos_web.services.backend import BackendError, BackendUnavailable
from pos_web.utils.helpers import format_rupiah, format_datetime, is_valid_receipt_id

RECEIPT_WIDTH = 30
QTY_WIDTH = 4
NAME_WIDTH = 16
PRICE_WIDTH = 10
LABEL_WIDTH = 18

MOBILE_UA_PATTERN = re.compile(
    r'Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini', re.IGNORECASE
)
BLUETOOTH_PRINT_SCHEME = 'my.bluetoothprint.scheme://'


class ReceiptError(Exception):
    """Receipt cannot be shown; the message is displayed as-is"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def format_price(amount):
    return format_rupiah(amount).rjust(PRICE_WIDTH)


def format_item_line(qty, name, subtotal):
    """'2x  Soto Ayam        Rp 30.000'"""
    qty_str = f"{qty}x".ljust(QTY_WIDTH)
    name_str = (name or '')[:NAME_WIDTH].ljust(NAME_WIDTH)
    return f"{qty_str}{name_str} {format_price(subtotal)}"


def format_total_line(label, amount):
    return f"{label.ljust(LABEL_WIDTH)} {format_price(amount)}"


def center_text(text, width=RECEIPT_WIDTH):
    pad = (width - len(text)) // 2
    return ' ' * max(pad, 0) + text


def is_mobile(user_agent):
    return bool(user_agent) and bool(MOBILE_UA_PATTERN.search(user_agent))


def bluetooth_print_url(api_url, order_id):
    """Deep link handled by the Bluetooth Print app on phones"""
    return f"{BLUETOOTH_PRINT_SCHEME}{api_url}/api/print/receipt/{order_id}"


def validate_order_id(order_id):
    """
    Raises:
        ReceiptError: missing or malformed order id
    """
    if not order_id or order_id in ('undefined', 'null'):
        raise ReceiptError('Invalid order ID')
    if not is_valid_receipt_id(order_id):
        raise ReceiptError('Invalid order ID format')


def load_receipt(backend, order_id):
    """
    Fetch the public receipt data of an order

    Returns:
        Order

    Raises:
        ReceiptError: invalid id, failed fetch or missing receipt
    """
    validate_order_id(order_id)

    try:
        result = backend.get_public_order(order_id)
    except BackendUnavailable as e:
        raise ReceiptError('Failed to load receipt', 502) from e
    except BackendError as e:
        raise ReceiptError(e.display_message('Failed to load receipt'), 502) from e

    if not isinstance(result, dict) or not result.get('success') or not result.get('data'):
        raise ReceiptError('Receipt not found', 404)

    return Order.from_dict(result['data'])


def build_receipt(order, business_name, address_lines=()):
    """
    Lay out an order as receipt sections

    Returns:
        dict: header, info, items and totals line lists plus payment_method
    """
    header = [center_text(business_name)]
    header.extend(center_text(line) for line in address_lines if line)

    info = [f"Order: {order.order_number or '-'}"]
    if order.customer_name:
        info.append(f"Customer: {order.customer_name}")
    if order.table_number:
        info.append(f"Table: {order.table_number}")
    info.append(f"Type: {'Dine In' if order.type_order == ORDER_DINE_IN else 'Takeaway'}")
    created = format_datetime(order.created_at)
    if created:
        info.append(created)

    items = [format_item_line(i.qty, i.product_name, i.subtotal) for i in order.items]

    totals = [format_total_line('Sub', order.subtotal)]
    if order.discount > 0:
        totals.append(format_total_line('Disc', order.discount))
    if order.tax > 0:
        totals.append(format_total_line('Tax', order.tax))
    totals.append(format_total_line('TOTAL', order.total))

    return {
        'header': header,
        'info': info,
        'items': items,
        'totals': totals,
        'payment_method': order.payment_method or '-',
        'footer': center_text('Thank you!'),
    }


def receipt_text(receipt):
    """Whole receipt as plain text"""
    rule = '-' * RECEIPT_WIDTH
    lines = list(receipt['header'])
    lines.append(rule)
    lines.extend(receipt['info'])
    lines.append(rule)
    lines.extend(receipt['items'])
    lines.append(rule)
    lines.extend(receipt['totals'])
    lines.append(rule)
    lines.append(f"Method: {receipt['payment_method']}")
    lines.append(receipt['footer'])
    return '\n'.join(lines)
