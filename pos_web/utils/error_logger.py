"""
Error Logger Utility
Writes application errors to the application log with request context.
"""

import json
import logging
import traceback
from flask import request, has_request_context
from flask_login import current_user

logger = logging.getLogger('pos_web.errors')

# Keys to redact from request data
SENSITIVE_KEYS = {
    'password', 'newpassword', 'token', 'csrf_token', 'secret',
    'api_key', 'authorization', 'cookie', 'session'
}


def sanitize_data(data):
    """Redact sensitive keys from a dict."""
    if not isinstance(data, dict):
        return data
    sanitized = {}
    for key, value in data.items():
        if any(s in str(key).lower() for s in SENSITIVE_KEYS):
            sanitized[key] = '[REDACTED]'
        elif isinstance(value, dict):
            sanitized[key] = sanitize_data(value)
        else:
            sanitized[key] = str(value)[:500]  # Truncate long values
    return sanitized


def build_context():
    """Collect request details worth logging next to an error"""
    context = {}
    if not has_request_context():
        return context

    context['url'] = request.url[:512] if request.url else None
    context['method'] = request.method
    context['ip_address'] = request.remote_addr
    context['endpoint'] = request.endpoint

    raw_data = {}
    if request.form:
        raw_data['form'] = dict(request.form)
    if request.args:
        raw_data['args'] = dict(request.args)
    payload = request.get_json(silent=True) if request.is_json else None
    if isinstance(payload, dict):
        raw_data['json'] = payload
    if raw_data:
        context['request_data'] = sanitize_data(raw_data)

    if current_user and current_user.is_authenticated:
        context['user_id'] = current_user.id
        context['role'] = getattr(current_user, 'role', None)

    return context


def log_error(error, status_code=500):
    """
    Log an error with sanitized request context.

    Safe to call from error handlers.

    Args:
        error: The exception or error object
        status_code: HTTP status code (default 500)
    """
    error_type = type(error).__name__
    context = build_context()
    tb = traceback.format_exc()
    if tb == 'NoneType: None\n':
        tb = None

    logger.error(
        "%s (%s): %s | context=%s",
        error_type, status_code, str(error)[:2000],
        json.dumps(context, default=str)
    )
    if tb and status_code >= 500:
        logger.debug(tb)
    return context
