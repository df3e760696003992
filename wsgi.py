"""
WSGI Entry Point

Serve with any WSGI server, e.g.:
    gunicorn wsgi:application

Configuration comes from the environment or a .env file next to config.py
(SECRET_KEY and BACKEND_API_URL at minimum).
"""

import os

from pos_web import create_app

application = create_app(os.environ.get('FLASK_ENV', 'production'))
