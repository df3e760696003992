"""
Permission Decorators and Role Utilities
"""

from functools import wraps
from flask import flash, redirect, url_for, jsonify, request
from flask_login import current_user

from pos_web.models import ROLE_ADMIN, ROLE_CASHIER, VALID_ROLES


class Permissions:
    """Permission name constants to avoid typos"""

    ACCESS_CASHIER = 'ACCESS_CASHIER'
    ACCESS_ORDERS = 'ACCESS_ORDERS'
    ACCESS_REPORT = 'ACCESS_REPORT'
    EXPORT_REPORT = 'EXPORT_REPORT'
    MANAGE_PRODUCTS = 'MANAGE_PRODUCTS'
    MANAGE_USERS = 'MANAGE_USERS'


# Roles granted each permission
PERMISSIONS = {
    Permissions.ACCESS_CASHIER: (ROLE_CASHIER, ROLE_ADMIN),
    Permissions.ACCESS_ORDERS: (ROLE_CASHIER, ROLE_ADMIN),
    Permissions.ACCESS_REPORT: (ROLE_CASHIER, ROLE_ADMIN),
    Permissions.EXPORT_REPORT: (ROLE_ADMIN,),
    Permissions.MANAGE_PRODUCTS: (ROLE_ADMIN,),
    Permissions.MANAGE_USERS: (ROLE_ADMIN,),
}


def has_permission(role, permission):
    """
    Check whether a role is granted a permission

    Unknown roles and unknown permissions are always denied.
    """
    if role not in VALID_ROLES:
        return False
    return role in PERMISSIONS.get(permission, ())


def wants_json():
    """True for API-style requests that should get JSON errors instead of redirects"""
    return request.is_json or request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def _deny(status, message, flash_message):
    if wants_json():
        return jsonify({'success': False, 'error': message}), status
    flash(flash_message, 'warning' if status == 401 else 'danger')
    return redirect(url_for('auth.login'))


def permission_required(permission):
    """
    Decorator to require a permission for a route

    Anonymous users, users with an unknown role and users lacking the
    permission are all sent back to the login page.

    Usage:
        @permission_required(Permissions.ACCESS_ORDERS)
        def orders():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated or current_user.role not in VALID_ROLES:
                return _deny(401, 'Authentication required', 'Please log in to access this page.')

            if not has_permission(current_user.role, permission):
                return _deny(403, 'Insufficient permissions',
                             'You do not have permission to access this page.')

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """
    Decorator to require admin role

    Usage:
        @admin_required
        def admin_dashboard():
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or current_user.role not in VALID_ROLES:
            return _deny(401, 'Authentication required', 'Please log in to access this page.')

        if current_user.role != ROLE_ADMIN:
            return _deny(403, 'Admin access required', 'This page requires administrator access.')

        return f(*args, **kwargs)
    return decorated_function
