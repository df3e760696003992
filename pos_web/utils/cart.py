"""
Cashier Cart
Draft order built by the cashier before it is saved to the backend.

The cart lives in the signed session so it survives page reloads. When an
existing draft is being edited, its id is kept alongside the lines and the
save turns into an update of that draft.
"""

from flask import session

from pos_web.models import ORDER_DINE_IN, ORDER_TAKEAWAY, STATUS_DRAFT
from pos_web.utils.helpers import safe_parse_total, parse_positive_int

SESSION_KEY = 'cart'
ORDER_TYPES = (ORDER_DINE_IN, ORDER_TAKEAWAY)


class CartError(ValueError):
    """Cart cannot be turned into an order as it stands"""


class CartItem:
    """One product line in the cart"""

    def __init__(self, id, name, price, qty=1):
        self.id = str(id)
        self.name = name
        self.price = price
        self.qty = qty

    @property
    def subtotal(self):
        return self.price * self.qty

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'price': self.price, 'qty': self.qty}

    @classmethod
    def from_dict(cls, data):
        return cls(data['id'], data.get('name') or '', safe_parse_total(data.get('price')),
                   int(data.get('qty') or 1))


class Cart:
    """Cart lines plus the order header fields"""

    def __init__(self, items=None, customer_name='', table_number='',
                 order_type=ORDER_DINE_IN, editing_order_id=None):
        self.items = items or []
        self.customer_name = customer_name
        self.table_number = table_number
        self.order_type = order_type if order_type in ORDER_TYPES else ORDER_DINE_IN
        self.editing_order_id = editing_order_id

    # ------------------------------------------------------------------
    # Lines

    def find(self, product_id):
        product_id = str(product_id)
        for item in self.items:
            if item.id == product_id:
                return item
        return None

    def add_product(self, product):
        """Add one unit; a product already in the cart just gets qty + 1"""
        existing = self.find(product.id)
        if existing:
            existing.qty += 1
            return existing
        item = CartItem(product.id, product.name, product.price, 1)
        self.items.append(item)
        return item

    def increase(self, product_id):
        item = self.find(product_id)
        if item:
            item.qty += 1
        return item

    def decrease(self, product_id):
        """Remove one unit; the line disappears when it reaches zero"""
        item = self.find(product_id)
        if item:
            item.qty -= 1
            self.items = [i for i in self.items if i.qty > 0]
        return item

    def set_qty(self, product_id, value):
        """Set quantity from user input; anything but a positive integer is ignored"""
        qty = parse_positive_int(value)
        item = self.find(product_id)
        if item and qty is not None:
            item.qty = qty
            return True
        return False

    def remove(self, product_id):
        product_id = str(product_id)
        self.items = [i for i in self.items if i.id != product_id]

    # ------------------------------------------------------------------
    # Totals

    @property
    def total(self):
        return sum(i.price * i.qty for i in self.items)

    @property
    def count(self):
        return len(self.items)

    @property
    def is_empty(self):
        return not self.items

    @property
    def is_editing(self):
        return self.editing_order_id is not None

    # ------------------------------------------------------------------
    # Header fields

    def set_details(self, customer_name=None, table_number=None, order_type=None):
        if customer_name is not None:
            self.customer_name = customer_name
        if table_number is not None:
            self.table_number = table_number
        if order_type in ORDER_TYPES:
            self.order_type = order_type

    def reset(self):
        self.items = []
        self.customer_name = ''
        self.table_number = ''
        self.order_type = ORDER_DINE_IN
        self.editing_order_id = None

    # ------------------------------------------------------------------
    # Backend reconciliation

    def load_order(self, order):
        """
        Replace the cart with an existing draft order

        Lines of the same product are merged. Orders that are not drafts,
        or that carry no item list, are ignored.

        Returns:
            bool: True if the order was loaded
        """
        if order is None or order.status != STATUS_DRAFT or not order.has_items:
            return False

        merged = {}
        for line in order.items:
            key = str(line.product_id)
            if key in merged:
                merged[key].qty += line.qty
            else:
                merged[key] = CartItem(key, line.product_name, line.price, line.qty)

        self.items = list(merged.values())
        self.customer_name = order.customer_name or ''
        self.table_number = order.table_number or ''
        self.order_type = ORDER_TAKEAWAY if order.type_order == ORDER_TAKEAWAY else ORDER_DINE_IN
        self.editing_order_id = order.id
        return True

    def validate(self):
        if self.is_empty:
            raise CartError('Cart is empty')
        if self.order_type == ORDER_DINE_IN and not self.table_number:
            raise CartError('Table number is required for dine-in')

    def to_payload(self):
        """
        Order body for the backend

        Raises:
            CartError: empty cart, or dine-in without a table
        """
        self.validate()
        return {
            'customer_name': self.customer_name.strip() or '-',
            'table_number': self.table_number if self.order_type == ORDER_DINE_IN else None,
            'type_order': self.order_type,
            'items': [{'product_id': i.id, 'qty': i.qty} for i in self.items],
        }

    # ------------------------------------------------------------------
    # Session storage

    def to_dict(self):
        return {
            'items': [i.to_dict() for i in self.items],
            'customer_name': self.customer_name,
            'table_number': self.table_number,
            'order_type': self.order_type,
            'editing_order_id': self.editing_order_id,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            items=[CartItem.from_dict(i) for i in data.get('items', [])],
            customer_name=data.get('customer_name') or '',
            table_number=data.get('table_number') or '',
            order_type=data.get('order_type') or ORDER_DINE_IN,
            editing_order_id=data.get('editing_order_id'),
        )


def get_cart():
    """Cart of the current session"""
    return Cart.from_dict(session.get(SESSION_KEY))


def save_cart(cart):
    session[SESSION_KEY] = cart.to_dict()
    session.modified = True


def clear_cart():
    session.pop(SESSION_KEY, None)
