"""
Authentication Routes
Handles user login and logout against the backend API
"""

from flask import Blueprint, render_template, redirect, url_for, flash, request, session, current_app
from flask_login import login_user, logout_user, current_user

from pos_web import limiter, USER_SESSION_KEY
from pos_web.models import SessionUser
from pos_web.services.backend import get_backend, BackendError, BackendUnavailable
from pos_web.utils.cart import clear_cart

bp = Blueprint('auth', __name__)


def login_rate_limit():
    return current_app.config.get('LOGIN_RATE_LIMIT', '10 per minute')


def sign_in(user):
    """Store the user in the signed session and log them in"""
    session.clear()
    session[USER_SESSION_KEY] = user.to_session()
    session.permanent = True
    login_user(user)


def sign_out():
    """Forget the user and everything kept for them in the session"""
    logout_user()
    clear_cart()
    session.pop(USER_SESSION_KEY, None)


def authenticate(username, password):
    """
    Log in against the backend

    Returns:
        tuple: (SessionUser or None, error message or None)
    """
    try:
        data = get_backend().login(username, password)
    except BackendUnavailable:
        return None, 'Unable to reach the server. Check your connection.'
    except BackendError as e:
        current_app.logger.warning(f"Backend login failed for {username}: {e.message}")
        return None, 'Invalid username or password'

    user = SessionUser.from_login_response(data)
    if user is None:
        role = (data.get('user') or {}).get('role')
        current_app.logger.error(f"Login rejected, unsupported role received: {role}")
        return None, 'Invalid username or password'
    return user, None


@bp.route('/login', methods=['GET', 'POST'])
@limiter.limit(login_rate_limit, methods=['POST'])
def login():
    """User login"""
    if current_user.is_authenticated:
        return redirect(url_for('main.auth_redirect'))

    if request.method == 'POST':
        username = (request.form.get('username') or '').strip()
        password = request.form.get('password') or ''

        if not username or not password:
            flash('Username and password are required', 'warning')
            return render_template('auth/login.html', username=username), 400

        user, error = authenticate(username, password)
        if user is None:
            flash(error, 'danger')
            return render_template('auth/login.html', username=username), 401

        sign_in(user)
        current_app.logger.info(f"User {user.username} ({user.role}) logged in")
        return redirect(url_for('main.auth_redirect'))

    return render_template('auth/login.html')


@bp.route('/logout', methods=['GET', 'POST'])
def logout():
    """User logout"""
    if current_user.is_authenticated:
        current_app.logger.info(f"User {current_user.username} logged out")
    sign_out()
    flash('You have been logged out successfully.', 'info')
    return redirect(url_for('auth.login'))
