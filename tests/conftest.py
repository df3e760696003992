"""
Shared pytest fixtures and configuration for all tests.

Provides the Flask application, a test client, a mocked backend API client
and logged-in clients for each role. No test talks to a real backend.
"""

import pytest
import sys
import os
from unittest.mock import MagicMock

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pos_web import create_app
from pos_web.services.backend import BackendClient

ADMIN_ID = '11111111-1111-4111-8111-111111111111'
CASHIER_ID = '22222222-2222-4222-8222-222222222222'
ORDER_ID = '33333333-3333-4333-8333-333333333333'
OTHER_USER_ID = '44444444-4444-4444-8444-444444444444'


def login_response(user_id, username, role):
    """Body of a successful backend login"""
    return {
        'success': True,
        'user': {'id': user_id, 'username': username, 'role': role},
        'accessToken': f'access-{username}',
        'refreshToken': f'refresh-{username}',
    }


def make_order(**overrides):
    """Backend order record with sensible defaults"""
    order = {
        'id': ORDER_ID,
        'order_number': 'ORD-0001',
        'customer_name': 'Budi',
        'table_number': '5',
        'type_order': 'dine_in',
        'status': 'DRAFT',
        'subtotal': 30000,
        'discount': 0,
        'tax': 0,
        'total': 30000,
        'payment_method': None,
        'created_at': '2026-10-18T05:00:00.000Z',
        'items': [
            {'product_id': 'p1', 'product_name': 'Soto Ayam', 'qty': 2, 'price': 15000, 'subtotal': 30000},
        ],
    }
    order.update(overrides)
    return order


def make_product(**overrides):
    product = {
        'id': 'p1',
        'name': 'Soto Ayam',
        'price': 15000,
        'category': 'Food',
        'color': '#FF0000',
        'code': 'SA',
        'type': 'main',
        'active': True,
    }
    product.update(overrides)
    return product


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app('testing')
    app.config['SECRET_KEY'] = 'test-secret-key'
    return app


@pytest.fixture
def backend(app):
    """
    Mocked backend client installed on the app.

    Reads default to empty results so pages render without setup.
    """
    mock = MagicMock(spec=BackendClient)
    mock.base_url = app.config['BACKEND_API_URL']
    mock.list_products.return_value = []
    mock.list_orders.return_value = ([], 0)
    mock.get_order.return_value = None
    mock.list_users.return_value = []
    mock.list_admin_products.return_value = []
    mock.list_categories_with_color.return_value = []
    mock.report_orders.return_value = []
    mock.top_products.return_value = []
    mock.order_details.return_value = []
    mock.create_order.return_value = {'success': True}
    mock.update_order.return_value = {'success': True}
    mock.pay_order.return_value = {'success': True}
    app.extensions['backend'] = mock
    return mock


@pytest.fixture
def client(app, backend):
    """Create a test client for each test."""
    return app.test_client()


def login_as(client, backend, user_id, username, role):
    backend.login.return_value = login_response(user_id, username, role)
    client.post('/auth/login', data={'username': username, 'password': 'secret123'})
    backend.login.reset_mock()
    return client


@pytest.fixture
def auth_admin(client, backend):
    """
    Login as admin user and return authenticated client.
    Admin has access to every feature.
    """
    return login_as(client, backend, ADMIN_ID, 'admin', 'admin')


@pytest.fixture
def auth_cashier(client, backend):
    """
    Login as cashier user and return authenticated client.
    Cashier has cashier, orders and report access only.
    """
    return login_as(client, backend, CASHIER_ID, 'kasir', 'cashier')


# Pytest configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "security: marks tests as security-related"
    )
    config.addinivalue_line(
        "markers", "api: marks tests as JSON endpoint tests"
    )
