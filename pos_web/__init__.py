"""
Flask Application Factory
Initializes and configures the POS web front-end
"""

from flask import Flask, render_template, request, redirect, flash, jsonify, session, url_for
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import config
from pos_web.models import SessionUser
from pos_web.services.backend import init_backend, BackendUnauthorized
from pos_web.utils.error_logger import log_error
from pos_web.utils.helpers import format_rupiah, format_datetime, format_date_short, format_date_long
from pos_web.utils.permissions import Permissions, has_permission, wants_json

# Initialize extensions
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)

USER_SESSION_KEY = 'pos_user'


def create_app(config_name='default'):
    """
    Application factory pattern
    Creates and configures Flask application
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Validate secret key in production
    if config_name == 'production':
        if not app.config.get('SECRET_KEY') or app.config['SECRET_KEY'] == 'dev-secret-key-change-in-production':
            raise ValueError("Production requires a secure SECRET_KEY. Set it via environment variable.")
        if len(app.config['SECRET_KEY']) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters for production.")

    # Initialize extensions
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    init_backend(app)

    # Initialize Sentry if configured
    if app.config.get('SENTRY_DSN'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=config_name
        )
        app.logger.info("Sentry error tracking initialized")

    # Configure login manager
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    @login_manager.user_loader
    def load_user(user_id):
        """The user lives in the signed session; there is no local user table"""
        user = SessionUser.from_session(session.get(USER_SESSION_KEY))
        if user is None or user.id != user_id or not user.is_valid:
            return None
        return user

    # Register blueprints
    from pos_web.routes.auth import bp as auth_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')

    from pos_web.routes.main import bp as main_bp
    app.register_blueprint(main_bp)

    from pos_web.routes.cashier import bp as cashier_bp
    app.register_blueprint(cashier_bp, url_prefix='/cashier')

    from pos_web.routes.orders import bp as orders_bp
    app.register_blueprint(orders_bp, url_prefix='/orders')

    from pos_web.routes.payment import bp as payment_bp
    app.register_blueprint(payment_bp, url_prefix='/payment')

    from pos_web.routes.receipts import bp as receipts_bp
    app.register_blueprint(receipts_bp, url_prefix='/print')

    from pos_web.routes.reports import bp as reports_bp
    app.register_blueprint(reports_bp, url_prefix='/report')

    from pos_web.routes.admin import bp as admin_bp
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # Error handlers
    @app.errorhandler(403)
    def forbidden_error(error):
        return render_template('errors/403.html'), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        log_error(getattr(error, 'original_exception', None) or error, 500)
        return render_template('errors/500.html'), 500

    # CSRF error handler - returns JSON for API calls
    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        if wants_json():
            return jsonify({
                'error': 'CSRF token missing or invalid',
                'message': 'Please refresh the page and try again'
            }), 400
        flash('Session expired. Please try again.', 'warning')
        return redirect(request.referrer or url_for('auth.login'))

    @app.errorhandler(BackendUnauthorized)
    def handle_backend_unauthorized(error):
        """Backend token no longer accepted: drop the local session too"""
        from pos_web.routes.auth import sign_out
        app.logger.info(f"Backend rejected session token: {error.message}")
        sign_out()
        if wants_json():
            return jsonify({'success': False, 'error': 'Session expired'}), 401
        flash('Your session has expired. Please log in again.', 'warning')
        return redirect(url_for('auth.login'))

    # Context processors
    @app.context_processor
    def utility_processor():
        """Make utility functions available to all templates"""
        def format_currency(amount):
            return format_rupiah(amount, app.config.get('CURRENCY_SYMBOL', 'Rp'))

        return dict(
            format_currency=format_currency,
            format_datetime=format_datetime,
            format_date=format_date_short,
            format_date_long=format_date_long,
            business_name=app.config.get('BUSINESS_NAME', 'SOTO IBUK SENOPATI'),
            has_permission=has_permission,
            Permissions=Permissions,
            draft_poll_seconds=app.config.get('DRAFT_POLL_SECONDS', 30),
        )

    # Request hooks
    @app.before_request
    def before_request():
        session.permanent = True

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses"""
        csp = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "font-src 'self' https://cdn.jsdelivr.net; "
            "img-src 'self' data:; "
            "connect-src 'self'; "
            "frame-ancestors 'none'; "
            "form-action 'self';"
        )
        response.headers['Content-Security-Policy'] = csp
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'
        return response

    return app
