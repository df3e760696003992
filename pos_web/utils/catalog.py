"""
Product catalog helpers for the cashier grid and the admin product table
"""

from pos_web.utils.helpers import HEX_COLOR_PATTERN

ALL_CATEGORIES = 'all'
SORTABLE_FIELDS = ('name', 'price', 'category', 'code', 'type', 'active')


def category_names(products):
    """'all' followed by each product category in first-seen order; uncategorized products add none"""
    names = [ALL_CATEGORIES]
    for product in products:
        if isinstance(product.category, str) and product.category and product.category not in names:
            names.append(product.category)
    return names


def _text(value):
    """Lower-cased string field; non-string backend values count as blank"""
    return value.lower() if isinstance(value, str) else ''


def category_colors(products):
    """Map each category to the first valid color among its products"""
    colors = {}
    for product in products:
        if not isinstance(product.category, str) or not product.category or product.category in colors:
            continue
        if isinstance(product.color, str) and HEX_COLOR_PATTERN.match(product.color):
            colors[product.category] = product.color
    return colors


def filter_products(products, search='', category=ALL_CATEGORIES):
    """Cashier grid filter: name substring (case-insensitive) and category"""
    needle = _text(search)
    category = category or ALL_CATEGORIES
    return [
        p for p in products
        if needle in _text(p.name) and (category == ALL_CATEGORIES or p.category == category)
    ]


def search_products(products, term):
    """Admin search over name, category and code"""
    needle = _text(term)
    if not needle:
        return list(products)
    return [
        p for p in products
        if needle in _text(p.name)
        or needle in _text(p.category)
        or needle in _text(p.code)
    ]


def _sort_key(value):
    # numbers before strings before anything else, so mixed columns still sort
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, str(value))


def sort_products(products, key=None, direction='asc'):
    """
    Sort by a product field; missing values always go last

    Unknown keys leave the order untouched.
    """
    if key not in SORTABLE_FIELDS:
        return list(products)
    present = [p for p in products if getattr(p, key) is not None]
    missing = [p for p in products if getattr(p, key) is None]
    present.sort(key=lambda p: _sort_key(getattr(p, key)), reverse=(direction == 'desc'))
    return present + missing
