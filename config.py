"""
Application Configuration
Loads environment variables and provides configuration classes for different environments
"""

import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env file
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


class Config:
    """Base configuration class"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Backend REST API
    BACKEND_API_URL = (os.environ.get('BACKEND_API_URL') or 'http://localhost:4000').rstrip('/')
    BACKEND_TIMEOUT = float(os.environ.get('BACKEND_TIMEOUT', 10))
    BACKEND_RETRIES = int(os.environ.get('BACKEND_RETRIES', 2))

    # Business Configuration
    BUSINESS_NAME = os.environ.get('BUSINESS_NAME', 'SOTO IBUK SENOPATI')
    BUSINESS_ADDRESS_LINE1 = os.environ.get('BUSINESS_ADDRESS_LINE1', 'Jl.Tulodong Atas 1 no 3A')
    BUSINESS_ADDRESS_LINE2 = os.environ.get('BUSINESS_ADDRESS_LINE2', 'Kebayoran Baru, Jakarta Selatan')
    CURRENCY = os.environ.get('CURRENCY', 'IDR')
    CURRENCY_SYMBOL = os.environ.get('CURRENCY_SYMBOL', 'Rp')
    TAX_RATE = float(os.environ.get('TAX_RATE', 0.10))
    MAIN_DASHBOARD_URL = os.environ.get('MAIN_DASHBOARD_URL', '')

    # Cashier
    TABLE_COUNT = int(os.environ.get('TABLE_COUNT', 30))
    DRAFT_POLL_SECONDS = int(os.environ.get('DRAFT_POLL_SECONDS', 30))

    # Pagination
    ORDERS_PER_PAGE = int(os.environ.get('ORDERS_PER_PAGE', 10))
    ITEMS_PER_PAGE = int(os.environ.get('ITEMS_PER_PAGE', 10))

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(
        seconds=int(os.environ.get('PERMANENT_SESSION_LIFETIME', 8 * 60 * 60))
    )
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Security
    LOGIN_RATE_LIMIT = os.environ.get('LOGIN_RATE_LIMIT', '10 per minute')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

    # CSRF Configuration
    WTF_CSRF_TIME_LIMIT = None  # tokens live as long as the session
    WTF_CSRF_SSL_STRICT = False
    WTF_CSRF_HEADERS = ['X-CSRFToken', 'X-CSRF-Token']

    # Logging
    LOG_FOLDER = os.path.join(basedir, 'logs')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Sentry Error Tracking (optional)
    SENTRY_DSN = os.environ.get('SENTRY_DSN', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    # HTTPS unless SESSION_COOKIE_SECURE=false
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'True').lower() == 'true'
    PREFERRED_URL_SCHEME = 'https' if SESSION_COOKIE_SECURE else 'http'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    BACKEND_API_URL = 'http://backend.test'
    BACKEND_RETRIES = 0


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
