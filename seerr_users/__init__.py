# File: seerr_users/__init__.py
import os
import logging
import secrets
from logging.handlers import RotatingFileHandler

from flask import Flask, has_request_context, jsonify
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import config
from .errors import AccountError
from .extensions import db, migrate, login_manager, csrf, babel
from .models import Account, Setting


def get_locale_for_babel():
    if has_request_context() and current_user.is_authenticated and current_user.settings \
            and current_user.settings.locale:
        return current_user.settings.locale.replace('-', '_')
    return (Setting.get('LOCALE') or 'en').replace('-', '_')


def initialize_settings_from_db(app_instance):
    """Overlay upper-case rows of the settings table onto app.config. Missing tables are not an error."""
    if not app_instance.config.get('SECRET_KEY'):
        app_instance.config['SECRET_KEY'] = secrets.token_hex(32)

    engine_conn = None
    try:
        engine_conn = db.engine.connect()
        if not db.engine.dialect.has_table(engine_conn, Setting.__tablename__):
            app_instance.logger.warning("Settings table not found during init. Using defaults.")
            return

        settings_dict = {s.key: s.get_value() for s in Setting.query.all()}
        for k, v in settings_dict.items():
            if k.isupper():
                app_instance.config[k] = v
        app_instance.logger.info("Application settings loaded from database.")
    except Exception as e:
        app_instance.logger.warning(f"Could not load settings from database: {e}. Using defaults.")
    finally:
        if engine_conn:
            engine_conn.close()


def register_error_handlers(app):
    @app.errorhandler(AccountError)
    def account_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.__class__.__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'message': error.description, 'errors': [error.name.upper().replace(' ', '_')]}), error.code

    @app.errorhandler(Exception)
    def unexpected_error(error):
        app.logger.error(f"Unhandled error: {error}", exc_info=True)
        return jsonify({'message': 'Something went wrong.', 'errors': ['INTERNAL_ERROR']}), 500


def configure_logging(app):
    log_level_name = os.environ.get('FLASK_LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    app.logger.setLevel(log_level)

    if app.debug or app.testing:
        return log_level_name

    log_dir = 'logs'
    if not os.path.exists(log_dir):
        try:
            os.mkdir(log_dir)
        except OSError:
            app.logger.error(f"create_app(): Could not create '{log_dir}' directory for file logging.")
            return log_level_name

    file_handler = RotatingFileHandler(os.path.join(log_dir, 'seerr_users.log'), maxBytes=10240, backupCount=10)
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'))
    file_handler.setLevel(log_level)
    app.logger.addHandler(file_handler)
    app.logger.info(f"create_app(): File logging configured. Level: {log_level_name}")
    return log_level_name


def create_app(config_name=None):
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')

    app = Flask(__name__, instance_relative_config=True)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    log_level_name = configure_logging(app)
    app.logger.info(f"{app.config.get('APP_NAME')} starting (log level: {log_level_name})")

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    babel.init_app(app, locale_selector=get_locale_for_babel)

    with app.app_context():
        initialize_settings_from_db(app)

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(Account, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'message': 'You must be logged in to access this endpoint.', 'errors': ['UNAUTHORIZED']}), 401

    register_error_handlers(app)

    from .routes.auth import bp as auth_bp
    from .routes.users_modules import users_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(users_bp, url_prefix='/api/v1/user')

    return app
