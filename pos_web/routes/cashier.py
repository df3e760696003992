"""
Cashier Routes
Product grid, cart handling and saving draft orders
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, jsonify, current_app
from flask_login import current_user

from pos_web.models import Product, Order
from pos_web.services.backend import get_backend, BackendError, BackendUnauthorized
from pos_web.utils.cart import get_cart, save_cart, CartError
from pos_web.utils.catalog import (
    ALL_CATEGORIES, category_names, category_colors, filter_products
)
from pos_web.utils.helpers import DEFAULT_COLOR
from pos_web.utils.permissions import permission_required, Permissions, wants_json
from pos_web.utils.reports import count_drafts

bp = Blueprint('cashier', __name__)


def load_products():
    """Products for the grid; an empty list when the backend fails"""
    try:
        data = get_backend().list_products(current_user.backend_token)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading products: {e}")
        return []
    return [Product.from_dict(p) for p in data if isinstance(p, dict)]


def load_draft(order_id):
    """Order to edit, or None when it cannot be fetched"""
    try:
        data = get_backend().get_order(current_user.backend_token, order_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.warning(f"Could not load order {order_id} for editing: {e}")
        return None
    return Order.from_dict(data) if isinstance(data, dict) else None


def cart_json(cart):
    return {
        'success': True,
        'items': [dict(i.to_dict(), subtotal=i.subtotal) for i in cart.items],
        'total': cart.total,
        'count': cart.count,
        'editing_order_id': cart.editing_order_id,
    }


def back_to_cashier(cart):
    """JSON for XHR callers, otherwise back to the grid with its filters"""
    if wants_json():
        return jsonify(cart_json(cart))
    return redirect(url_for(
        'cashier.index',
        search=request.form.get('search') or None,
        category=request.form.get('category') or None,
    ))


@bp.route('/')
@permission_required(Permissions.ACCESS_CASHIER)
def index():
    """Cashier screen; ?edit=<order id> loads a draft order into the cart"""
    cart = get_cart()

    edit_id = request.args.get('edit')
    if edit_id:
        order = load_draft(edit_id)
        if cart.load_order(order):
            save_cart(cart)
        else:
            flash('Only draft orders can be edited.', 'warning')

    products = load_products()
    search = request.args.get('search', '')
    category = request.args.get('category', ALL_CATEGORIES)

    return render_template(
        'cashier/index.html',
        cart=cart,
        products=filter_products(products, search, category),
        categories=category_names(products),
        category_colors=category_colors(products),
        default_color=DEFAULT_COLOR,
        search=search,
        category=category,
        table_count=current_app.config['TABLE_COUNT'],
    )


@bp.route('/add/<product_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def add(product_id):
    """Add one unit of a product to the cart"""
    cart = get_cart()
    product = next((p for p in load_products() if str(p.id) == product_id), None)
    if product is None:
        if wants_json():
            return jsonify({'success': False, 'error': 'Product not found'}), 404
        flash('Product not found', 'danger')
    else:
        cart.add_product(product)
        save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/increase/<product_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def increase(product_id):
    cart = get_cart()
    cart.increase(product_id)
    save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/decrease/<product_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def decrease(product_id):
    cart = get_cart()
    cart.decrease(product_id)
    save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/set-qty/<product_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def set_qty(product_id):
    """Set a line quantity; non-positive or non-numeric input is ignored"""
    cart = get_cart()
    if cart.set_qty(product_id, request.form.get('qty')):
        save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/remove/<product_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def remove(product_id):
    cart = get_cart()
    cart.remove(product_id)
    save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/details', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def details():
    """Update customer name, table and order type"""
    cart = get_cart()
    cart.set_details(
        customer_name=request.form.get('customer_name'),
        table_number=request.form.get('table_number'),
        order_type=request.form.get('order_type'),
    )
    save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/clear', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def clear():
    cart = get_cart()
    cart.reset()
    save_cart(cart)
    return back_to_cashier(cart)


@bp.route('/save', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def save():
    """
    Save the cart as an order

    Updates the draft being edited, otherwise creates a new order.
    """
    cart = get_cart()
    cart.set_details(
        customer_name=request.form.get('customer_name'),
        table_number=request.form.get('table_number'),
        order_type=request.form.get('order_type'),
    )
    save_cart(cart)

    try:
        payload = cart.to_payload()
    except CartError as e:
        if wants_json():
            return jsonify({'success': False, 'error': str(e)}), 400
        flash(str(e), 'warning')
        return redirect(url_for('cashier.index'))

    backend = get_backend()
    editing_order_id = cart.editing_order_id
    try:
        if editing_order_id:
            backend.update_order(current_user.backend_token, editing_order_id, payload)
        else:
            backend.create_order(current_user.backend_token, payload)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error saving order: {e}")
        message = e.display_message('Failed to save order')
        if wants_json():
            return jsonify({'success': False, 'error': message}), 502
        flash(message, 'danger')
        return redirect(url_for('cashier.index'))

    cart.reset()
    save_cart(cart)

    if editing_order_id:
        current_app.logger.info(f"Order {editing_order_id} updated by {current_user.username}")
        flash('Order updated successfully', 'success')
        target = url_for('orders.detail', order_id=editing_order_id)
    else:
        current_app.logger.info(f"New order saved by {current_user.username}")
        flash('Order saved successfully', 'success')
        target = url_for('orders.index')

    if wants_json():
        return jsonify({'success': True, 'redirect': target})
    return redirect(target)


@bp.route('/cancel-edit', methods=['POST'])
@permission_required(Permissions.ACCESS_CASHIER)
def cancel_edit():
    """Stop editing a draft and go back to the order list"""
    cart = get_cart()
    cart.reset()
    save_cart(cart)
    return redirect(url_for('orders.index'))


@bp.route('/draft-count')
@permission_required(Permissions.ACCESS_CASHIER)
def draft_count():
    """Number of unpaid orders for the navigation badge"""
    try:
        orders, _ = get_backend().list_orders(current_user.backend_token)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.warning(f"Could not load draft count: {e}")
        return jsonify({'count': 0})
    return jsonify({'count': count_drafts(Order.from_dict(o) for o in orders if isinstance(o, dict))})
