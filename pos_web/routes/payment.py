"""
Payment Routes
Checkout form for draft orders
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, jsonify, session, current_app
from flask_login import current_user

from pos_web.routes.orders import fetch_order, RECEIPT_SESSION_KEY
from pos_web.services.backend import get_backend, BackendError, BackendUnauthorized
from pos_web.utils.payment import PAYMENT_METHODS, compute_totals, parse_discount, is_truthy
from pos_web.utils.permissions import permission_required, Permissions, wants_json

bp = Blueprint('payment', __name__)


def payable_order(order_id):
    """
    Draft order to pay, or a redirect response when it cannot be paid

    Returns:
        tuple: (order, None) or (None, response)
    """
    order = fetch_order(order_id)
    if order is None:
        flash('Order not found', 'warning')
        return None, redirect(url_for('orders.index'))
    if not order.is_draft:
        flash('This order has already been processed.', 'info')
        return None, redirect(url_for('orders.detail', order_id=order_id))
    return order, None


def render_form(order, method='', discount=0, include_tax=False, status=200):
    totals = compute_totals(order.total, discount, include_tax, current_app.config['TAX_RATE'])
    return render_template(
        'payment/form.html',
        order=order,
        methods=PAYMENT_METHODS,
        method=method,
        totals=totals,
        tax_percent=round(current_app.config['TAX_RATE'] * 100),
    ), status


@bp.route('/<order_id>', methods=['GET'])
@permission_required(Permissions.ACCESS_ORDERS)
def form(order_id):
    """Payment form"""
    order, response = payable_order(order_id)
    if response:
        return response
    return render_form(order)


@bp.route('/<order_id>/preview', methods=['GET', 'POST'])
@permission_required(Permissions.ACCESS_ORDERS)
def preview(order_id):
    """Totals for the given discount and tax choice, for live updates on the form"""
    data = request.get_json(silent=True) or request.values
    order, response = payable_order(order_id)
    if response:
        return jsonify({'success': False, 'error': 'Order cannot be paid'}), 404
    totals = compute_totals(
        order.total,
        data.get('discount', 0),
        is_truthy(data.get('include_tax', False)),
        current_app.config['TAX_RATE'],
    )
    return jsonify({'success': True, 'totals': totals})


@bp.route('/<order_id>', methods=['POST'])
@permission_required(Permissions.ACCESS_ORDERS)
def pay(order_id):
    """Confirm payment"""
    order, response = payable_order(order_id)
    if response:
        return response

    method = (request.form.get('payment_method') or '').strip()
    include_tax = is_truthy(request.form.get('include_tax', False))
    discount = parse_discount(request.form.get('discount'))

    if method not in PAYMENT_METHODS:
        flash('Select a payment method first', 'warning')
        return render_form(order, method, discount, include_tax, status=400)

    try:
        get_backend().pay_order(current_user.backend_token, order_id, method, include_tax, discount)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Payment failed for order {order_id}: {e}")
        message = e.display_message('Failed to process payment')
        if wants_json():
            return jsonify({'success': False, 'error': message}), 502
        flash(f'Payment failed: {message}', 'danger')
        return render_form(order, method, discount, include_tax, status=502)

    current_app.logger.info(
        f"Order {order_id} paid by {current_user.username} via {method} "
        f"(discount={discount}, tax={'yes' if include_tax else 'no'})"
    )
    session[RECEIPT_SESSION_KEY] = order_id
    flash('Payment successful! The receipt opens in a new window.', 'success')

    receipt_url = url_for('receipts.receipt', order_id=order_id)
    if wants_json():
        return jsonify({'success': True, 'receipt_url': receipt_url, 'redirect': url_for('orders.index')})
    return redirect(url_for('orders.index'))
