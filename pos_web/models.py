"""
Domain Models
Plain objects built from backend JSON. Nothing here is persisted locally;
the backend API owns all records.
"""

from flask_login import UserMixin

from pos_web.utils.helpers import (
    safe_parse_total, parse_datetime, safe_color, is_valid_uuid, round_half_up
)

ROLE_CASHIER = 'cashier'
ROLE_ADMIN = 'admin'
VALID_ROLES = (ROLE_CASHIER, ROLE_ADMIN)

STATUS_DRAFT = 'DRAFT'
STATUS_PAID = 'PAID'
STATUS_CANCELED = 'CANCELED'
ORDER_STATUSES = (STATUS_DRAFT, STATUS_PAID, STATUS_CANCELED)

ORDER_DINE_IN = 'dine_in'
ORDER_TAKEAWAY = 'takeaway'


class SessionUser(UserMixin):
    """Authenticated user held in the signed session"""

    def __init__(self, id, username, role, backend_token=None, backend_refresh_token=None):
        self.id = str(id)
        self.username = username
        self.role = role
        self.backend_token = backend_token
        self.backend_refresh_token = backend_refresh_token

    @property
    def name(self):
        return self.username

    @property
    def is_valid(self):
        """A session is only usable against the backend with a token"""
        return bool(self.backend_token)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def get_id(self):
        return self.id

    def to_session(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
            'backend_token': self.backend_token,
            'backend_refresh_token': self.backend_refresh_token,
        }

    @classmethod
    def from_session(cls, data):
        if not data or not data.get('id'):
            return None
        return cls(
            id=data['id'],
            username=data.get('username') or '',
            role=data.get('role'),
            backend_token=data.get('backend_token'),
            backend_refresh_token=data.get('backend_refresh_token'),
        )

    @classmethod
    def from_login_response(cls, data):
        """
        Build the user from a successful backend login response

        Returns None when the role is not one this front-end serves.
        """
        user = data.get('user') or {}
        role = user.get('role')
        if role not in VALID_ROLES:
            return None
        return cls(
            id=user.get('id'),
            username=user.get('username'),
            role=role,
            backend_token=data.get('accessToken'),
            backend_refresh_token=data.get('refreshToken'),
        )

    def __repr__(self):
        return f'<SessionUser {self.username} ({self.role})>'


class OrderItem:
    """Line of an order as returned by the backend"""

    def __init__(self, product_id, product_name, qty, price, subtotal):
        self.product_id = product_id
        self.product_name = product_name
        self.qty = qty
        self.price = price
        self.subtotal = subtotal

    @classmethod
    def from_dict(cls, data):
        qty = int(safe_parse_total(data.get('qty')))
        price = safe_parse_total(data.get('price'))
        subtotal = data.get('subtotal')
        return cls(
            product_id=data.get('product_id'),
            product_name=data.get('product_name') or '',
            qty=qty,
            price=price,
            subtotal=safe_parse_total(subtotal) if subtotal is not None else price * qty,
        )


class Order:
    """Order as returned by the backend"""

    STATUS_LABELS = {
        STATUS_DRAFT: 'Unpaid',
        STATUS_PAID: 'Paid',
        STATUS_CANCELED: 'Canceled',
    }

    def __init__(self, data):
        self.raw = data
        self.id = data.get('id')
        self.order_number = data.get('order_number')
        self.customer_name = data.get('customer_name')
        self.table_number = data.get('table_number')
        self.type_order = data.get('type_order')
        self.status = data.get('status') or STATUS_DRAFT
        self.subtotal = safe_parse_total(data.get('subtotal'))
        self.discount = safe_parse_total(data.get('discount'))
        self.tax = safe_parse_total(data.get('tax'))
        self.total = safe_parse_total(data.get('total'))
        self.payment_method = data.get('payment_method')
        self.created_at = parse_datetime(data.get('created_at'))
        self.updated_at = parse_datetime(data.get('updated_at'))
        self.paid_at = parse_datetime(data.get('paid_at'))
        raw_items = data.get('items')
        self.has_items = isinstance(raw_items, list)
        self.items = [OrderItem.from_dict(i) for i in raw_items] if self.has_items else []

    @classmethod
    def from_dict(cls, data):
        return cls(data or {})

    @property
    def is_draft(self):
        return self.status == STATUS_DRAFT

    @property
    def is_dine_in(self):
        return self.type_order == ORDER_DINE_IN

    @property
    def status_label(self):
        return self.STATUS_LABELS.get(self.status, self.status)

    @property
    def type_label(self):
        return 'Dine In' if self.is_dine_in else 'Takeaway'

    @property
    def has_tax(self):
        return self.tax > 0

    @property
    def tax_rate_percent(self):
        """Effective tax rate, rounded to a whole percent"""
        if not self.has_tax:
            return 0
        return round_half_up(self.tax / (self.subtotal or 1) * 100)

    @property
    def table_display(self):
        if not self.table_number or self.table_number == '-':
            return '-'
        return f'Table {self.table_number}'

    def __repr__(self):
        return f'<Order {self.order_number or self.id} {self.status}>'


class Product:
    """Sellable product"""

    def __init__(self, id, name, price, category=None, color=None, code=None, type=None, active=True):
        self.id = id
        self.name = name
        self.price = price
        self.category = category
        self.color = color
        self.code = code
        self.type = type
        self.active = active

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            price=safe_parse_total(data.get('price')),
            category=data.get('category'),
            color=data.get('color'),
            code=data.get('code'),
            type=data.get('type'),
            active=data.get('active', True) is True,
        )

    @property
    def display_color(self):
        return safe_color(self.color)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'category': self.category,
            'color': self.color,
            'code': self.code,
            'type': self.type,
            'active': self.active,
        }


class Category:
    """Product category with its display color"""

    def __init__(self, name, color=None):
        self.name = name
        self.color = safe_color(color)

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, str):
            return cls(data)
        return cls(data.get('name') or '', data.get('color'))


class StaffUser:
    """Account managed from the admin panel"""

    def __init__(self, id, username, role, active):
        self.id = id
        self.username = username
        self.role = role
        self.active = active

    @staticmethod
    def is_well_formed(data):
        """Backend records must carry a UUID id, a username, a known role and an active flag"""
        if not isinstance(data, dict):
            return False
        return (
            is_valid_uuid(data.get('id'))
            and isinstance(data.get('username'), str)
            and data.get('role') in VALID_ROLES
            and isinstance(data.get('active'), bool)
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id'),
            username=data.get('username'),
            role=data.get('role'),
            active=data.get('active', True),
        )
