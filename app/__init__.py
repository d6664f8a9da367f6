# app/__init__.py

import logging
import os
import time

import click
from flask import Flask, request
from flask_cors import CORS
from sqlalchemy import text
from werkzeug.exceptions import HTTPException

from .config import Config
from db.extensions import db, migrate, mail, check_redis_health
from controllers.vendor_controller import vendor_bp
from controllers.map_controller import map_bp
from controllers.gallery_controller import gallery_bp
from controllers.user_controller import user_bp
from controllers.admin_controller import admin_bp
from models.vendor import Vendor  # noqa: F401  registers every vendor-related mapper
from models.adminUser import AdminUser
from models.notification import Notification  # noqa: F401
from models.platformSettings import PlatformSettings  # noqa: F401
from services.error_handler import AppError, handle_error
from services.live_session_service import LiveSessionService


def create_app(config_class=Config):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)

    # Admin auth rides on a cookie, so credentials must be allowed
    CORS(app,
         origins=app.config['CORS_ORIGINS'],
         methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'],
         supports_credentials=True,
         expose_headers=['Content-Type', 'Authorization'],
         max_age=3600
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Register blueprints
    app.register_blueprint(vendor_bp, url_prefix='/api')
    app.register_blueprint(map_bp, url_prefix='/api')
    app.register_blueprint(gallery_bp, url_prefix='/api')
    app.register_blueprint(user_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api')

    # Configure logging
    debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    app.logger.setLevel(log_level)

    # Request timing middleware for performance monitoring
    @app.before_request
    def before_request():
        request.start_time = time.time()
        if debug_mode:
            app.logger.debug(f"🚀 Started {request.method} {request.path}")

    @app.after_request
    def after_request(response):
        if hasattr(request, 'start_time'):
            elapsed = (time.time() - request.start_time) * 1000

            # Log slow requests (over 500ms)
            if elapsed > 500:
                app.logger.warning(
                    f"⚠️  SLOW REQUEST: {request.method} {request.path} "
                    f"took {elapsed:.2f}ms - Status: {response.status_code}"
                )
            elif debug_mode:
                app.logger.info(
                    f"✅ {request.method} {request.path} "
                    f"took {elapsed:.2f}ms - Status: {response.status_code}"
                )

        return response

    @app.errorhandler(AppError)
    def handle_app_error(e):
        db.session.rollback()
        handle_error(e, context=f"{request.method} {request.path}")
        return e.to_dict(), e.status_code

    # Global error handler
    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return {'success': False, 'message': e.description}, e.code
        db.session.rollback()
        app.logger.error(f"❌ Unhandled exception: {str(e)}", exc_info=True)
        return {
            'success': False,
            'message': 'Internal server error. Please try again.'
        }, 500

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring"""
        try:
            db.session.execute(text('SELECT 1'))
        except Exception as e:
            app.logger.error(f"❌ Health check failed: {str(e)}")
            return {
                'status': 'error',
                'message': str(e),
                'timestamp': time.time()
            }, 500

        redis_ok = check_redis_health()
        return {
            'status': 'ok' if redis_ok else 'degraded',
            'database': 'connected',
            'redis': 'connected' if redis_ok else 'unavailable',
            'timestamp': time.time()
        }, 200

    @app.cli.command('end-expired-sessions')
    def end_expired_sessions_command():
        """End live sessions whose scheduled end time has passed."""
        ended = LiveSessionService.end_expired_sessions()
        click.echo(f"Ended {len(ended)} expired live sessions")

    @app.cli.command('create-admin')
    @click.argument('username')
    @click.argument('email')
    @click.password_option()
    def create_admin_command(username, email, password):
        """Create an admin account for the dashboard."""
        if AdminUser.query.filter_by(username=username).first():
            raise click.ClickException(f"Admin '{username}' already exists")
        admin = AdminUser(username=username, email=email)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Created admin {username}")

    return app
