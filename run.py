"""
Application Entry Point
Initializes and runs the POS web front-end
"""

import os
import logging
import click
from pos_web import create_app
from pos_web.services.backend import get_backend

# Determine configuration environment
config_name = os.environ.get('FLASK_ENV', 'development')
app = create_app(config_name)

# Setup logging
if not os.path.exists(app.config['LOG_FOLDER']):
    os.makedirs(app.config['LOG_FOLDER'])

logging.basicConfig(
    level=getattr(logging, app.config['LOG_LEVEL']),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(app.config['LOG_FOLDER'], 'app.log')),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@app.shell_context_processor
def make_shell_context():
    """Make the backend client and models available in Flask shell"""
    from pos_web import models
    return {
        'backend': get_backend(),
        'Order': models.Order,
        'Product': models.Product,
        'SessionUser': models.SessionUser,
    }


@app.cli.command('check-backend')
def check_backend():
    """Check that the backend API answers"""
    with app.app_context():
        backend = get_backend()
        if backend.ping():
            click.echo(f"Backend reachable at {backend.base_url}")
        else:
            logger.error(f"Backend not reachable at {backend.base_url}")
            raise SystemExit(1)


if __name__ == '__main__':
    is_dev = config_name == 'development'
    use_reloader = os.environ.get('FLASK_USE_RELOADER', 'true').lower() == 'true'
    port = int(os.environ.get('PORT', 5001))

    logger.info(f"Starting {app.config['BUSINESS_NAME']} POS front-end...")
    logger.info(f"Backend API: {app.config['BACKEND_API_URL']}")
    logger.info(f"Debug mode: {is_dev}, Auto-reload: {use_reloader}")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=is_dev,
        use_reloader=use_reloader
    )
