"""
Flask Application Factory for Canvas CMS.

This module provides the create_app() factory function that creates and
configures the Flask application. It initializes:
- SQLAlchemy database connection (SQLite)
- Blueprint registration
- Error handlers
- Logging configuration
- Default content type and admin seeding

Usage:
    # Development
    python -m canvas_cms.app

    # Production
    gunicorn -w 4 -b 0.0.0.0:5002 'canvas_cms.app:create_app()'
"""

import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_talisman import Talisman

from canvas_cms.config import get_config
from canvas_cms.models import db


migrate = Migrate()


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name ('development', 'testing', 'production').
                    If None, reads from FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    config_class.init_app(app)

    app.config['CONFIG_CLASS'] = config_class

    db.init_app(app)
    migrate.init_app(app, db)

    _init_security(app, config_class)

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from canvas_cms.models.user import User
        user = db.session.get(User, user_id)
        # Suspended accounts lose their cookie session too
        return user if user is not None and user.is_active else None

    _configure_logging(app)

    with app.app_context():
        db.create_all()
        _seed_content_types(app)
        _seed_default_admin(app)

    _register_blueprints(app)
    _register_error_handlers(app)

    @app.route('/health')
    @app.route('/api/v1/health')
    @app.limiter.exempt
    def health_check():
        """Health check endpoint for monitoring."""
        return jsonify({
            'status': 'healthy',
            'service': 'canvas_cms',
            'timestamp': datetime.now(timezone.utc).isoformat()
        })

    return app


def _init_security(app: Flask, config_class) -> None:
    """
    Initialize security extensions for the application.

    - Flask-Talisman for security headers (production only)
    - Flask-Limiter for rate limiting (disabled by RATELIMIT_ENABLED=False)

    Args:
        app: Flask application instance.
        config_class: Configuration class being used.
    """
    if config_class.__name__ == 'ProductionConfig':
        Talisman(
            app,
            force_https=True,
            strict_transport_security=True,
            strict_transport_security_max_age=31536000,  # 1 year
            content_security_policy={
                'default-src': "'self'",
                'script-src': ["'self'", "'unsafe-inline'"],
                'style-src': ["'self'", "'unsafe-inline'"],
                'img-src': ["'self'", "data:", "https:"],
            },
            frame_options='SAMEORIGIN',
            content_type_options=True,
        )
        app.logger.info('Security headers enabled (Flask-Talisman)')

    app.limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=app.config.get('RATELIMIT_DEFAULT', []),
        storage_uri="memory://",
    )


def _seed_content_types(app: Flask) -> None:
    """
    Create the configured content types (bundles) that don't exist yet.

    Args:
        app: Flask application instance.
    """
    from canvas_cms.models import ContentType

    for type_data in app.config.get('DEFAULT_CONTENT_TYPES', []):
        if db.session.get(ContentType, type_data['id']) is not None:
            continue

        db.session.add(ContentType(**type_data))
        app.logger.info(f"Created content type: {type_data['id']}")

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        app.logger.error(f"Failed to seed content types: {e}")


def _seed_default_admin(app: Flask) -> None:
    """
    Create the super admin account named by DEFAULT_ADMIN_EMAIL on first run.

    The account gets a random temporary password, logged at INFO level.

    Args:
        app: Flask application instance.
    """
    from canvas_cms.models import User

    email = app.config.get('DEFAULT_ADMIN_EMAIL')
    if not email:
        return

    email = email.lower().strip()
    if User.query.filter_by(email=email).first():
        app.logger.debug(f"User {email} already exists, skipping")
        return

    temp_password = secrets.token_urlsafe(16)
    user = User(email=email, name='Administrator', role='super_admin', status='active')
    user.set_password(temp_password)
    db.session.add(user)

    try:
        db.session.commit()
        app.logger.info(f"Created default super_admin user: {email} (temporary password: {temp_password})")
    except Exception as e:
        db.session.rollback()
        app.logger.error(f"Failed to seed default admin: {e}")


def _configure_logging(app: Flask) -> None:
    """
    Configure application logging.

    Records from the canvas_cms package loggers, the application logger
    included, are written to logs/canvas_cms.log when the directory is
    writable.

    Args:
        app: Flask application instance.
    """
    log_dir = app.config.get('BASE_DIR', os.getcwd())
    log_dir = os.path.join(str(log_dir), 'logs')

    package_logger = logging.getLogger('canvas_cms')
    package_logger.setLevel(logging.INFO)

    if not app.testing:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_dir, 'canvas_cms.log'))
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            # app.logger ('canvas_cms.app') propagates here
            package_logger.addHandler(file_handler)
        except (OSError, PermissionError):
            # Log path not writable, skip file logging
            pass

    app.logger.setLevel(logging.INFO)


def _register_blueprints(app: Flask) -> None:
    """
    Register blueprints with the application.

    API blueprints are registered with the /api/v1 prefix and fall under
    the default rate limits, page rendering at root.

    Args:
        app: Flask application instance.
    """
    from canvas_cms.routes import auth_bp, canvas_bp, pages_bp

    app.register_blueprint(canvas_bp, url_prefix='/api/v1/layout-canvas')
    app.logger.info('Registered layout canvas blueprint at /api/v1/layout-canvas')

    app.register_blueprint(auth_bp, url_prefix='/api/v1/auth')
    app.logger.info('Registered auth blueprint at /api/v1/auth')

    app.register_blueprint(pages_bp)
    # Public pages are not rate limited
    app.limiter.exempt(pages_bp)
    app.logger.info('Registered pages blueprint at /')


def _register_error_handlers(app: Flask) -> None:
    """
    Register error handlers for common HTTP errors.

    Args:
        app: Flask application instance.
    """
    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'status': 'error',
            'error': 'Bad Request',
            'message': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({
            'status': 'error',
            'error': 'Unauthorized',
            'message': 'Authentication required'
        }), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({
            'status': 'error',
            'error': 'Forbidden',
            'message': 'You do not have access to the requested resource'
        }), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'status': 'error',
            'error': 'Not Found',
            'message': 'The requested resource was not found'
        }), 404

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({
            'status': 'error',
            'error': 'Payload Too Large',
            'message': 'Request body exceeds the maximum allowed size'
        }), 413

    @app.errorhandler(500)
    def internal_server_error(error):
        return jsonify({
            'status': 'error',
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred'
        }), 500


if __name__ == '__main__':
    application = create_app()
    config = application.config['CONFIG_CLASS']
    application.run(
        host=config.HOST,
        port=config.PORT,
        debug=config.DEBUG
    )
