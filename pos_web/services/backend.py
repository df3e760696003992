"""
Backend API Client
Single point of contact with the POS backend REST API.

Every response uses the envelope {"success": bool, "data": ..., "message": str}.
Nothing is cached: each call goes to the backend.
"""

import logging
import requests
from flask import current_app
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pos_web.utils.error_logger import sanitize_data

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Backend call failed or returned something unusable"""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def display_message(self, default):
        """Message from the backend body when it sent one, otherwise default"""
        if isinstance(self.payload, dict) and self.payload.get('message'):
            return self.payload['message']
        return default

    def __str__(self):
        if self.status_code:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class BackendUnavailable(BackendError):
    """Backend could not be reached"""

    def __init__(self, message='Backend is unreachable'):
        super().__init__(message, status_code=503)


class BackendUnauthorized(BackendError):
    """Backend rejected the session token"""

    def __init__(self, message='Session expired', payload=None):
        super().__init__(message, status_code=401, payload=payload)


class BackendClient:
    """
    Thin wrapper around requests.Session for the backend API

    Usage:
        client = BackendClient('http://localhost:4000')
        products = client.list_products(token)
    """

    def __init__(self, base_url, timeout=10, retries=2, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if session is None and retries:
            # urllib3 only retries idempotent methods, so POST/PUT go out once
            adapter = HTTPAdapter(max_retries=Retry(
                total=retries,
                backoff_factor=0.2,
                status_forcelist=(502, 503, 504),
                raise_on_status=False,
            ))
            self.session.mount('http://', adapter)
            self.session.mount('https://', adapter)

    @classmethod
    def from_config(cls, config):
        return cls(
            config['BACKEND_API_URL'],
            timeout=config.get('BACKEND_TIMEOUT', 10),
            retries=config.get('BACKEND_RETRIES', 2),
        )

    # ------------------------------------------------------------------
    # Transport

    def url(self, path):
        return f"{self.base_url}{path}"

    def _headers(self, token):
        headers = {'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = f"Bearer {token}"
        return headers

    def request(self, method, path, token=None, params=None, json=None):
        """
        Send a request to the backend

        Returns:
            requests.Response

        Raises:
            BackendUnavailable: network failure or timeout
        """
        url = self.url(path)
        logger.debug("%s %s params=%s body=%s", method, url, params,
                     sanitize_data(json) if isinstance(json, dict) else None)
        try:
            return self.session.request(
                method, url,
                headers=self._headers(token),
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Backend unreachable: %s %s: %s", method, url, e)
            raise BackendUnavailable() from e

    @staticmethod
    def _decode(response):
        try:
            return response.json()
        except ValueError:
            return None

    def call(self, method, path, token=None, params=None, json=None):
        """
        Send a request and return the decoded JSON body

        Raises:
            BackendUnauthorized: HTTP 401 on an authenticated call
            BackendError: any other non-2xx status or a non-JSON body
        """
        response = self.request(method, path, token=token, params=params, json=json)
        payload = self._decode(response)

        if not response.ok:
            message = None
            if isinstance(payload, dict):
                message = payload.get('message')
            if not message:
                message = (response.text or '')[:200] or f"HTTP {response.status_code}"
            logger.warning("Backend error %s on %s %s: %s",
                           response.status_code, method, path, message)
            if response.status_code == 401 and token:
                raise BackendUnauthorized(message, payload=payload)
            raise BackendError(message, status_code=response.status_code, payload=payload)

        if payload is None:
            logger.error("Backend returned invalid JSON on %s %s", method, path)
            raise BackendError('Backend returned invalid JSON', status_code=response.status_code)

        return payload

    def fetch_data(self, path, token=None, params=None):
        """
        GET a list endpoint and unwrap the envelope

        Raises:
            BackendError: when the body is not {success: true, data: [...]}
        """
        result = self.call('GET', path, token=token, params=params)
        if isinstance(result, dict) and result.get('success') and isinstance(result.get('data'), list):
            return result['data']
        raise BackendError('Invalid API response format', payload=result)

    def fetch_one(self, path, token=None):
        """GET a single-record endpoint and return its data (may be None)"""
        result = self.call('GET', path, token=token)
        if isinstance(result, dict):
            return result.get('data')
        return None

    def ping(self):
        """Check that the backend answers at all"""
        try:
            response = self.request('GET', '/')
        except BackendUnavailable:
            return False
        return response.status_code < 500

    # ------------------------------------------------------------------
    # Authentication

    def login(self, username, password):
        """
        Exchange credentials for backend tokens

        Returns:
            dict: {success, user: {id, username, role}, accessToken, refreshToken}

        Raises:
            BackendError: rejected credentials, bad JSON or unreachable backend
        """
        result = self.call('POST', '/api/auth/login',
                           json={'username': username, 'password': password})
        if not isinstance(result, dict) or result.get('success') is not True:
            message = result.get('message') if isinstance(result, dict) else None
            raise BackendError(message or 'Login failed', payload=result)
        return result

    # ------------------------------------------------------------------
    # Products (cashier)

    def list_products(self, token):
        return self.fetch_data('/api/products', token)

    # ------------------------------------------------------------------
    # Orders

    def list_orders(self, token, params=None):
        """
        Returns:
            tuple: (orders, total) where total is the backend's match count
        """
        result = self.call('GET', '/api/orders', token=token, params=params)
        if not isinstance(result, dict):
            raise BackendError('Invalid API response format', payload=result)
        orders = result.get('data') or []
        if not isinstance(orders, list):
            raise BackendError('Invalid API response format', payload=result)
        return orders, result.get('total') or 0

    def get_order(self, token, order_id):
        return self.fetch_one(f'/api/orders/{order_id}', token)

    def create_order(self, token, payload):
        return self.call('POST', '/api/orders', token=token, json=payload)

    def update_order(self, token, order_id, payload):
        return self.call('PUT', f'/api/orders/{order_id}', token=token, json=payload)

    def pay_order(self, token, order_id, payment_method, include_tax, discount):
        return self.call('POST', f'/api/orders/{order_id}/pay', token=token, json={
            'paymentMethod': payment_method,
            'includeTax': include_tax,
            'discount': discount,
        })

    def get_public_order(self, order_id):
        """Receipt data; this endpoint needs no token"""
        return self.call('GET', f'/api/orders/{order_id}/public')

    # ------------------------------------------------------------------
    # Admin: users

    def list_users(self, token):
        return self.fetch_data('/api/admin/users', token)

    def create_user(self, token, username, password, role):
        return self.call('POST', '/api/admin/users', token=token, json={
            'username': username,
            'password': password,
            'role': role,
        })

    def update_user(self, token, user_id, username, role, active):
        return self.call('PUT', f'/api/admin/users/{user_id}', token=token, json={
            'username': username,
            'role': role,
            'active': active,
        })

    def reset_password(self, token, user_id, new_password):
        return self.call('POST', f'/api/admin/users/{user_id}/password', token=token,
                         json={'newPassword': new_password})

    def delete_user(self, token, user_id):
        return self.call('DELETE', f'/api/admin/users/{user_id}', token=token)

    # ------------------------------------------------------------------
    # Admin: products and categories

    def list_admin_products(self, token):
        return self.fetch_data('/api/admin/products', token)

    def create_product(self, token, payload):
        return self.call('POST', '/api/admin/products', token=token, json=payload)

    def update_product(self, token, product_id, payload):
        return self.call('PUT', f'/api/admin/products/{product_id}', token=token, json=payload)

    def delete_product(self, token, product_id):
        return self.call('DELETE', f'/api/admin/products/{product_id}', token=token)

    def list_categories_with_color(self, token):
        return self.fetch_data('/api/admin/products/categories-with-color', token)

    def create_category(self, token, name, color):
        return self.call('POST', '/api/admin/products/categories', token=token,
                         json={'name': name, 'color': color})

    def delete_category(self, token, name):
        return self.call('DELETE', '/api/admin/products/categories', token=token,
                         json={'name': name})

    # ------------------------------------------------------------------
    # Reports

    def order_details(self, token, order_id):
        """Sold product lines of an order, for the report table"""
        return self.fetch_data(f'/api/admin/orders/{order_id}/details', token)

    def report_orders(self, token, period='all'):
        return self.fetch_data('/api/admin/reports/orders', token, params={'period': period})

    def top_products(self, token, period=None, start=None, end=None):
        if start and end:
            params = {'start': start, 'end': end}
        else:
            params = {'period': period or 'all'}
        return self.fetch_data('/api/admin/reports/top-products', token, params=params)


def init_backend(app):
    """Attach a BackendClient to the app"""
    client = BackendClient.from_config(app.config)
    app.extensions['backend'] = client
    app.logger.info(f"Backend API: {client.base_url}")
    return client


def get_backend():
    """BackendClient of the current app"""
    return current_app.extensions['backend']
