"""
Admin Routes
Dashboard summary and management of users, products and categories
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from flask_login import current_user

from pos_web.models import Order, Product, Category, StaffUser, ROLE_CASHIER, VALID_ROLES
from pos_web.services.backend import get_backend, BackendError, BackendUnauthorized
from pos_web.utils.catalog import search_products, sort_products, SORTABLE_FIELDS
from pos_web.utils.helpers import (
    is_valid_uuid, parse_positive_int, paginate, get_int_arg, safe_color, DEFAULT_COLOR
)
from pos_web.utils.payment import is_truthy
from pos_web.utils.permissions import admin_required, permission_required, Permissions
from pos_web.utils.reports import admin_summary

bp = Blueprint('admin', __name__)

MIN_PASSWORD_LENGTH = 6


def try_fetch(fetch, what):
    """Run a backend read; None when it fails"""
    try:
        return fetch()
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading {what}: {e}")
        return None


def backend_action(action, success_message, failure_message):
    """
    Run a backend write and flash the outcome

    Returns:
        bool: True on success
    """
    try:
        action()
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"{failure_message}: {e}")
        flash(e.display_message(failure_message), 'danger')
        return False
    flash(success_message, 'success')
    return True


@bp.route('/')
@admin_required
def index():
    """Admin dashboard"""
    backend = get_backend()
    token = current_user.backend_token

    users = try_fetch(lambda: backend.list_users(token), 'users')
    products = try_fetch(lambda: backend.list_admin_products(token), 'products')
    orders = try_fetch(lambda: backend.list_orders(token)[0], 'orders')

    summary = admin_summary(
        users=users,
        products=products,
        orders=[Order.from_dict(o) for o in orders or [] if isinstance(o, dict)],
    )
    if users is None and products is None and orders is None:
        flash('Failed to load dashboard data', 'danger')

    return render_template('admin/index.html', summary=summary)


# =============================================================================
# USERS
# =============================================================================

@bp.route('/users')
@permission_required(Permissions.MANAGE_USERS)
def users():
    """User list; malformed records from the backend are skipped"""
    data = try_fetch(lambda: get_backend().list_users(current_user.backend_token), 'users') or []
    valid = []
    for record in data:
        if StaffUser.is_well_formed(record):
            valid.append(StaffUser.from_dict(record))
        else:
            current_app.logger.warning(f"Skipping malformed user record: {record!r}")
    return render_template('admin/users.html', users=valid, roles=VALID_ROLES)


@bp.route('/users', methods=['POST'])
@permission_required(Permissions.MANAGE_USERS)
def add_user():
    username = (request.form.get('username') or '').strip()
    password = request.form.get('password') or ''
    role = request.form.get('role') or ROLE_CASHIER

    if not username or not password.strip():
        flash('Username and password are required', 'danger')
    elif len(password) < MIN_PASSWORD_LENGTH:
        flash(f'Password must be at least {MIN_PASSWORD_LENGTH} characters', 'danger')
    elif role not in VALID_ROLES:
        flash('Invalid role', 'danger')
    else:
        backend_action(
            lambda: get_backend().create_user(current_user.backend_token, username, password, role),
            'User added successfully!', 'Failed to add user',
        )
    return redirect(url_for('admin.users'))


@bp.route('/users/<user_id>/edit', methods=['POST'])
@permission_required(Permissions.MANAGE_USERS)
def edit_user(user_id):
    username = (request.form.get('username') or '').strip()
    role = request.form.get('role')
    active = is_truthy(request.form.get('active', False))

    if not username:
        flash('Username is required', 'danger')
    elif not is_valid_uuid(user_id):
        flash('Invalid user ID', 'danger')
    elif role not in VALID_ROLES:
        flash('Invalid role', 'danger')
    elif user_id == current_user.id and not active:
        flash('You cannot deactivate your own account', 'warning')
    else:
        backend_action(
            lambda: get_backend().update_user(current_user.backend_token, user_id, username, role, active),
            'User updated successfully!', 'Failed to update user',
        )
    return redirect(url_for('admin.users'))


@bp.route('/users/<user_id>/toggle', methods=['POST'])
@permission_required(Permissions.MANAGE_USERS)
def toggle_user(user_id):
    """Flip the active flag, keeping username and role"""
    username = (request.form.get('username') or '').strip()
    role = request.form.get('role')
    if role not in VALID_ROLES:
        role = ROLE_CASHIER
    currently_active = is_truthy(request.form.get('active', False))

    if not is_valid_uuid(user_id):
        flash('Invalid user ID', 'danger')
    elif user_id == current_user.id:
        flash('You cannot deactivate your own account', 'warning')
    else:
        new_state = not currently_active
        backend_action(
            lambda: get_backend().update_user(current_user.backend_token, user_id, username, role, new_state),
            f"User {'activated' if new_state else 'deactivated'} successfully!",
            'Failed to change user status',
        )
    return redirect(url_for('admin.users'))


@bp.route('/users/<user_id>/password', methods=['POST'])
@permission_required(Permissions.MANAGE_USERS)
def reset_password(user_id):
    new_password = request.form.get('new_password') or ''
    confirm_password = request.form.get('confirm_password') or ''

    if not is_valid_uuid(user_id):
        flash('Invalid user ID', 'danger')
    elif len(new_password) < MIN_PASSWORD_LENGTH:
        flash(f'Password must be at least {MIN_PASSWORD_LENGTH} characters', 'danger')
    elif new_password != confirm_password:
        flash('Passwords do not match', 'danger')
    else:
        backend_action(
            lambda: get_backend().reset_password(current_user.backend_token, user_id, new_password),
            'Password reset successfully!', 'Failed to reset password',
        )
    return redirect(url_for('admin.users'))


@bp.route('/users/<user_id>/delete', methods=['POST'])
@permission_required(Permissions.MANAGE_USERS)
def delete_user(user_id):
    if not is_valid_uuid(user_id):
        flash('Invalid user ID', 'danger')
    elif user_id == current_user.id:
        flash('You cannot delete your own account', 'warning')
    else:
        backend_action(
            lambda: get_backend().delete_user(current_user.backend_token, user_id),
            'User deleted successfully!', 'Failed to delete user',
        )
    return redirect(url_for('admin.users'))


# =============================================================================
# PRODUCTS & CATEGORIES
# =============================================================================

def load_categories():
    data = try_fetch(
        lambda: get_backend().list_categories_with_color(current_user.backend_token), 'categories'
    ) or []
    return [Category.from_dict(c) for c in data if isinstance(c, (dict, str))]


def color_for(categories, name):
    """Color of the named category, None without a category"""
    if not name:
        return None
    for category in categories:
        if category.name == name:
            return category.color
    return None


def product_form_payload(categories):
    """
    Product fields from the submitted form

    Returns:
        tuple: (payload dict or None, error message or None)
    """
    name = (request.form.get('name') or '').strip()
    raw_price = (request.form.get('price') or '').strip()
    if not name or not raw_price:
        return None, 'Product name and price are required'
    price = parse_positive_int(raw_price)
    if price is None:
        return None, 'Price must be a positive number'

    category = (request.form.get('category') or '').strip() or None
    return {
        'name': name,
        'price': price,
        'category': category,
        'color': color_for(categories, category),
        'code': (request.form.get('code') or '').strip() or None,
        'type': (request.form.get('type') or '').strip() or None,
    }, None


def products_redirect():
    return redirect(url_for(
        'admin.products',
        tab=request.form.get('tab') or None,
        search=request.form.get('search') or None,
        sort=request.form.get('sort') or None,
        dir=request.form.get('dir') or None,
        page=request.form.get('page') or None,
    ))


@bp.route('/products')
@permission_required(Permissions.MANAGE_PRODUCTS)
def products():
    """Product table with search, sorting and pagination, plus the category tab"""
    data = try_fetch(
        lambda: get_backend().list_admin_products(current_user.backend_token), 'products'
    )
    if data is None:
        flash('Failed to load products', 'danger')
    all_products = [Product.from_dict(p) for p in data or [] if isinstance(p, dict)]

    search = request.args.get('search', '')
    sort = request.args.get('sort')
    direction = 'desc' if request.args.get('dir') == 'desc' else 'asc'

    matching = search_products(sort_products(all_products, sort, direction), search)
    page_products, page, total_pages = paginate(
        matching, get_int_arg(request.args, 'page', 1), current_app.config['ITEMS_PER_PAGE']
    )

    return render_template(
        'admin/products.html',
        tab='categories' if request.args.get('tab') == 'categories' else 'products',
        products=page_products,
        matching_count=len(matching),
        categories=load_categories(),
        search=search,
        sort=sort if sort in SORTABLE_FIELDS else None,
        direction=direction,
        page=page,
        total_pages=total_pages,
        default_color=DEFAULT_COLOR,
    )


@bp.route('/products', methods=['POST'])
@permission_required(Permissions.MANAGE_PRODUCTS)
def add_product():
    payload, error = product_form_payload(load_categories())
    if error:
        flash(error, 'danger')
    else:
        backend_action(
            lambda: get_backend().create_product(current_user.backend_token, payload),
            'Product added successfully!', 'Failed to add product',
        )
    return products_redirect()


@bp.route('/products/<product_id>/edit', methods=['POST'])
@permission_required(Permissions.MANAGE_PRODUCTS)
def edit_product(product_id):
    payload, error = product_form_payload(load_categories())
    if error:
        flash(error, 'danger')
    else:
        payload['id'] = product_id
        payload['active'] = is_truthy(request.form.get('active', False))
        backend_action(
            lambda: get_backend().update_product(current_user.backend_token, product_id, payload),
            'Product updated successfully!', 'Failed to update product',
        )
    return products_redirect()


@bp.route('/products/<product_id>/delete', methods=['POST'])
@permission_required(Permissions.MANAGE_PRODUCTS)
def delete_product(product_id):
    backend_action(
        lambda: get_backend().delete_product(current_user.backend_token, product_id),
        'Product deleted successfully!', 'Failed to delete product',
    )
    return products_redirect()


@bp.route('/categories', methods=['POST'])
@permission_required(Permissions.MANAGE_PRODUCTS)
def add_category():
    name = (request.form.get('name') or '').strip()
    color = request.form.get('color') or DEFAULT_COLOR
    if not name:
        flash('Category name is required', 'danger')
    else:
        backend_action(
            lambda: get_backend().create_category(current_user.backend_token, name, safe_color(color)),
            'Category added successfully!', 'Failed to add category',
        )
    return redirect(url_for('admin.products', tab='categories'))


@bp.route('/categories/delete', methods=['POST'])
@permission_required(Permissions.MANAGE_PRODUCTS)
def delete_category():
    """Products in the category lose their category and color on the backend side"""
    name = (request.form.get('name') or '').strip()
    if not name:
        flash('Category name is required', 'danger')
    else:
        backend_action(
            lambda: get_backend().delete_category(current_user.backend_token, name),
            f'Category "{name}" deleted', 'Failed to delete category',
        )
    return redirect(url_for('admin.products', tab='categories'))
