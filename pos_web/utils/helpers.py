"""
Helper Utilities
Common utility functions used across the application
"""

import math
import re
from datetime import datetime

UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE
)

# Stricter form used for receipt links: version 0-5 and RFC 4122 variant
RECEIPT_UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-5][0-9a-f]{3}-[089ab][0-9a-f]{3}-[0-9a-f]{12}$', re.IGNORECASE
)

HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-F]{6}$', re.IGNORECASE)
DEFAULT_COLOR = '#6B7280'

MONTHS_SHORT = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def is_valid_uuid(value):
    """Check if value is a UUID string"""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def is_valid_receipt_id(value):
    """Check if value is a versioned UUID as issued for orders"""
    return isinstance(value, str) and bool(RECEIPT_UUID_PATTERN.match(value))


def safe_color(color):
    """Return color if it is a #RRGGBB hex value, otherwise the neutral gray"""
    if color and isinstance(color, str) and HEX_COLOR_PATTERN.match(color):
        return color
    return DEFAULT_COLOR


def safe_parse_total(value):
    """
    Coerce a backend money value to a number

    Numbers are kept, numeric strings parsed, anything else is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return 0
        return value
    if isinstance(value, str):
        try:
            num = float(value)
        except ValueError:
            return 0
        if math.isnan(num):
            return 0
        return int(num) if num.is_integer() else num
    return 0


def format_rupiah(amount, symbol='Rp'):
    """
    Format amount the Indonesian way: Rp 15.000

    Fractions are rounded away; thousands use '.' as separator.
    """
    amount = safe_parse_total(amount)
    rounded = int(round(amount))
    sign = '-' if rounded < 0 else ''
    grouped = f"{abs(rounded):,}".replace(',', '.')
    return f"{sign}{symbol} {grouped}"


def parse_datetime(value):
    """
    Parse an ISO-8601 timestamp from the backend

    Returns a naive local datetime, or None for missing/invalid input.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_datetime(value):
    """Format timestamp as 18/10/2026 14.05.09"""
    dt = parse_datetime(value)
    if not dt:
        return ''
    return dt.strftime('%d/%m/%Y %H.%M.%S')


def format_date_short(value):
    """Format timestamp as '18 Oct'"""
    dt = parse_datetime(value)
    if not dt:
        return ''
    return f"{dt.day} {MONTHS_SHORT[dt.month - 1]}"


def format_date_long(value):
    """Format timestamp as '18 Oct 2026 14.05'"""
    dt = parse_datetime(value)
    if not dt:
        return ''
    return f"{dt.day:02d} {MONTHS_SHORT[dt.month - 1]} {dt.year} {dt.strftime('%H.%M')}"


def round_half_up(value):
    """Round to the nearest integer, halves away from zero for positives"""
    return int(math.floor(value + 0.5))


def parse_positive_int(value):
    """Parse a form value into an int > 0, or None"""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def paginate(items, page, per_page):
    """
    Slice a list for the given 1-based page

    Returns:
        tuple: (page_items, page, total_pages)
    """
    total_pages = math.ceil(len(items) / per_page) if per_page else 0
    page = max(1, page)
    start = (page - 1) * per_page
    return items[start:start + per_page], page, total_pages


def get_int_arg(args, name, default=1):
    """Read a positive integer query argument with a fallback"""
    value = parse_positive_int(args.get(name))
    return value if value is not None else default
