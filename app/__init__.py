import os
import json
import time
import uuid
import logging
import warnings
from datetime import timedelta
from flask import Flask, g, request, jsonify

# Suppress flask-limiter in-memory storage warning (fine for development)
warnings.filterwarnings('ignore', message='Using the in-memory storage')
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache

db = SQLAlchemy()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address, default_limits=["200 per minute"])
cache = Cache()


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""
    def format(self, record):
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        if hasattr(record, 'request_id'):
            log_data['request_id'] = record.request_id
        if hasattr(record, 'issue_id'):
            log_data['issue_id'] = record.issue_id
        if hasattr(record, 'fingerprint'):
            log_data['fingerprint'] = record.fingerprint
        return json.dumps(log_data)


def setup_logging(app):
    """Configure application logging based on environment."""
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_format = os.getenv('LOG_FORMAT', 'colored')

    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    level = level_map.get(log_level, logging.INFO)

    logger = logging.getLogger('issuedesk')
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if log_format == 'json':
        formatter = JSONFormatter(datefmt='%Y-%m-%dT%H:%M:%S')
    else:
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from app.config import config
    app.config.from_object(config[config_name])

    app.config.update(
        SESSION_COOKIE_SECURE=not app.debug,  # True in production (HTTPS only)
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=timedelta(days=7),
    )

    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    cache.init_app(app)

    setup_logging(app)

    @app.before_request
    def before_request():
        # Honour a request ID supplied by a load balancer
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())[:8]
        g.start_time = time.time()

    @app.after_request
    def after_request(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers['X-Request-ID'] = request_id

        if hasattr(g, 'start_time'):
            elapsed_ms = (time.time() - g.start_time) * 1000
            req_prefix = f"[{request_id}] " if request_id else ""
            log_msg = f"{req_prefix}[{elapsed_ms:7.1f}ms] {request.method} {request.path} -> {response.status_code}"

            req_logger = logging.getLogger('issuedesk')
            if elapsed_ms < 100:
                req_logger.debug(log_msg)
            elif elapsed_ms < 500:
                req_logger.info(log_msg)
            else:
                req_logger.warning(log_msg)
        return response

    from app.exceptions import IssueDeskError

    @app.errorhandler(IssueDeskError)
    def handle_domain_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'NotFound', 'message': 'Resource not found'}), 404

    @app.errorhandler(500)
    def handle_server_error(error):
        logger = logging.getLogger('issuedesk')
        logger.error(f"Server error: {error}")

        # Record the failure as an issue; tracking must never mask the original 500
        try:
            from app.services.error_tracker import capture_exception
            original = getattr(error, 'original_exception', None) or error
            capture_exception(original)
        except Exception as e:
            logger.warning(f"Failed to capture error: {e}")

        return jsonify({'error': 'ServerError', 'message': 'An unexpected error occurred'}), 500

    from app.routes.api import api_bp
    from app.routes.auth import auth_bp
    from app.routes.admin import admin_bp

    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # JSON API blueprints authenticate by session cookie or are public ingest
    csrf.exempt(api_bp)
    csrf.exempt(auth_bp)
    csrf.exempt(admin_bp)

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    with app.app_context():
        from app import models  # noqa: F401  (register tables)
        db.create_all()

    return app
