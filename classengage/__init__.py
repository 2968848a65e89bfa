"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from classengage.config import config, get_config
from classengage.errors import ServiceError
from classengage.extensions import db, socketio
from classengage.storage import init_storage

logger = logging.getLogger(__name__)


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    logging.getLogger('classengage').setLevel(level)


def _register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error):
        return jsonify({'success': False, 'message': 'File size cannot exceed 10MB.'}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'success': False, 'message': error.description}), error.code


def create_app(config_name=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )
    init_storage(app)

    # Register blueprints
    from classengage.routes import (
        auth_bp, classes_bp, contests_bp, polls_bp, public_bp, quizbattle_bp, tools_bp,
    )
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(classes_bp, url_prefix='/api/classes')
    app.register_blueprint(contests_bp, url_prefix='/api/contests')
    app.register_blueprint(polls_bp, url_prefix='/api/polls')
    app.register_blueprint(quizbattle_bp, url_prefix='/api/quizbattle')
    app.register_blueprint(tools_bp, url_prefix='/api/tools')
    app.register_blueprint(public_bp)

    _register_error_handlers(app)

    # Register Socket.IO events
    from classengage.sockets import register_socket_events
    register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created/verified")

    return app
