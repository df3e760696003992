"""
Order Routes
Order list with filters, order detail and entry to editing a draft
"""

import math
from flask import Blueprint, render_template, request, redirect, url_for, flash, session, current_app
from flask_login import current_user

from pos_web.models import Order, ORDER_STATUSES
from pos_web.services.backend import get_backend, BackendError, BackendUnauthorized
from pos_web.utils.helpers import get_int_arg, safe_parse_total
from pos_web.utils.permissions import permission_required, Permissions

bp = Blueprint('orders', __name__)

DATE_RANGES = ('today', 'yesterday', '7days', '30days', 'all')
DEFAULT_DATE_RANGE = 'today'
DEFAULT_STATUS = 'DRAFT'

# Order id whose receipt the order list should pop up after a payment
RECEIPT_SESSION_KEY = 'print_receipt'


class OrderFilters:
    """Filters of the order list, read from the query string"""

    def __init__(self, args):
        self.search = (args.get('search') or '').strip()
        self.customer = (args.get('customer') or '').strip()
        self.table = (args.get('table') or '').strip()
        date_range = args.get('dateRange', DEFAULT_DATE_RANGE)
        self.date_range = date_range if date_range in DATE_RANGES else DEFAULT_DATE_RANGE
        status = args.get('status', DEFAULT_STATUS)
        self.status = status if status in ORDER_STATUSES or status == 'all' else DEFAULT_STATUS
        self.page = get_int_arg(args, 'page', 1)

    def to_params(self, limit):
        """Backend query; 'all' choices and blank fields are left out"""
        params = {'page': self.page, 'limit': limit}
        if self.search:
            params['search'] = self.search
        if self.customer:
            params['customer'] = self.customer
        if self.table:
            params['table'] = self.table
        if self.date_range != 'all':
            params['dateRange'] = self.date_range
        if self.status != 'all':
            params['status'] = self.status
        return params

    def to_args(self, **overrides):
        """Query string for links that keep the current filters"""
        args = {
            'search': self.search or None,
            'customer': self.customer or None,
            'table': self.table or None,
            'dateRange': self.date_range,
            'status': self.status,
            'page': self.page,
        }
        args.update(overrides)
        return args


def fetch_order(order_id):
    """
    Order by id from the backend

    Returns None when it does not exist or cannot be loaded.
    """
    try:
        data = get_backend().get_order(current_user.backend_token, order_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading order {order_id}: {e}")
        return None
    if not isinstance(data, dict):
        return None
    return Order.from_dict(data)


@bp.route('/')
@permission_required(Permissions.ACCESS_ORDERS)
def index():
    """Paginated order list"""
    filters = OrderFilters(request.args)
    limit = current_app.config['ORDERS_PER_PAGE']

    try:
        raw_orders, total = get_backend().list_orders(
            current_user.backend_token, params=filters.to_params(limit)
        )
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading orders: {e}")
        flash('Failed to load orders', 'danger')
        raw_orders, total = [], 0

    orders = [Order.from_dict(o) for o in raw_orders if isinstance(o, dict)]
    total = int(safe_parse_total(total))
    total_pages = math.ceil(total / limit) if limit else 0

    receipt_order_id = session.pop(RECEIPT_SESSION_KEY, None)

    return render_template(
        'orders/list.html',
        orders=orders,
        total=total,
        total_pages=total_pages,
        filters=filters,
        date_ranges=DATE_RANGES,
        statuses=ORDER_STATUSES,
        receipt_url=url_for('receipts.receipt', order_id=receipt_order_id) if receipt_order_id else None,
        dashboard_url=current_app.config.get('MAIN_DASHBOARD_URL'),
    )


@bp.route('/<order_id>')
@permission_required(Permissions.ACCESS_ORDERS)
def detail(order_id):
    """Order detail with items and totals"""
    order = fetch_order(order_id)
    if order is None:
        flash('Order not found', 'warning')
        return redirect(url_for('orders.index'))
    return render_template('orders/detail.html', order=order)


@bp.route('/<order_id>/edit')
@permission_required(Permissions.ACCESS_ORDERS)
def edit(order_id):
    """Open a draft order in the cashier screen"""
    order = fetch_order(order_id)
    if order is None:
        flash('Order not found', 'warning')
        return redirect(url_for('orders.index'))
    if not order.is_draft:
        flash('Only draft orders can be edited.', 'warning')
        return redirect(url_for('orders.detail', order_id=order_id))
    return redirect(url_for('cashier.index', edit=order_id))
