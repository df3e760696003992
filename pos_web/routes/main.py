"""
Main Routes
Role home dashboard and the post-login redirect
"""

from flask import Blueprint, render_template, redirect, url_for
from flask_login import current_user, login_required

from pos_web.models import ROLE_ADMIN, ROLE_CASHIER

bp = Blueprint('main', __name__)

ROLE_LABELS = {
    ROLE_ADMIN: ('Administrator', 'Full access to every feature'),
    ROLE_CASHIER: ('Cashier', 'Transactions and sales reports'),
}


@bp.route('/')
@login_required
def index():
    """Dashboard with quick links for the user's role"""
    title, description = ROLE_LABELS.get(
        current_user.role, ('User', 'Welcome to the POS system')
    )
    return render_template('dashboard.html', role_title=title, role_description=description)


@bp.route('/auth-redirect')
def auth_redirect():
    """Send a freshly logged-in user to the home page of their role"""
    if not current_user.is_authenticated or not current_user.role:
        return redirect(url_for('auth.login'))
    if current_user.role == ROLE_ADMIN:
        return redirect(url_for('admin.index'))
    return redirect(url_for('main.index'))
