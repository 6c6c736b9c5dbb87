# File: seerr_users/config.py
import os
import secrets


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ['true', '1', 'yes', 'on']


def _env_int(name, default=None):
    value = os.environ.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    """Base configuration class."""
    # Overridden by the SECRET_KEY row in the settings table once one exists
    SECRET_KEY = os.environ.get('SECRET_KEY') or secrets.token_hex(32)

    # Default to SQLite in the instance folder.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(os.path.abspath(os.path.dirname(os.path.dirname(__file__))), 'instance', 'seerr_users.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_NAME = "Seerr Users"
    APP_VERSION = "0.1.0"

    # Application settings (defaults that can be overridden by DB settings)
    APPLICATION_TITLE = os.environ.get('APPLICATION_TITLE', 'Jellyseerr')
    APPLICATION_URL = os.environ.get('APPLICATION_URL', '')
    LOCALE = os.environ.get('LOCALE', 'en')

    # The permanent owner account. Nobody else may touch it or grant ADMIN.
    OWNER_ACCOUNT_ID = _env_int('OWNER_ACCOUNT_ID', 1)

    # Bitmask handed to every newly created account (32 = REQUEST)
    DEFAULT_PERMISSIONS = _env_int('DEFAULT_PERMISSIONS', 32)

    # 'plex', 'jellyfin' or 'emby'
    MEDIA_SERVER_TYPE = os.environ.get('MEDIA_SERVER_TYPE', 'plex')

    # Plex
    PLEX_MACHINE_ID = os.environ.get('PLEX_MACHINE_ID')
    PLEX_CLIENT_IDENTIFIER = os.environ.get('PLEX_CLIENT_IDENTIFIER', 'seerr-users')

    # Jellyfin / Emby
    JELLYFIN_URL = os.environ.get('JELLYFIN_URL')
    JELLYFIN_API_KEY = os.environ.get('JELLYFIN_API_KEY')
    JELLYFIN_NAME = os.environ.get('JELLYFIN_NAME', 'Jellyfin')
    JELLYFIN_EXTERNAL_URL = os.environ.get('JELLYFIN_EXTERNAL_URL')

    # Tautulli
    TAUTULLI_HOSTNAME = os.environ.get('TAUTULLI_HOSTNAME')
    TAUTULLI_PORT = _env_int('TAUTULLI_PORT')
    TAUTULLI_API_KEY = os.environ.get('TAUTULLI_API_KEY')
    TAUTULLI_USE_SSL = _env_bool('TAUTULLI_USE_SSL')
    TAUTULLI_URL_BASE = os.environ.get('TAUTULLI_URL_BASE', '')

    # Default provider timeout
    API_TIMEOUT_SECONDS = _env_int('API_TIMEOUT_SECONDS', 10)

    # Email notifications
    MAIL_ENABLED = _env_bool('MAIL_ENABLED')
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
    MAIL_PORT = _env_int('MAIL_PORT', 25)
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS')
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_SENDER = os.environ.get('MAIL_SENDER', 'no-reply@localhost')

    # Request quotas. A limit of 0 means unlimited.
    DEFAULT_MOVIE_QUOTA_LIMIT = _env_int('DEFAULT_MOVIE_QUOTA_LIMIT', 0)
    DEFAULT_MOVIE_QUOTA_DAYS = _env_int('DEFAULT_MOVIE_QUOTA_DAYS', 7)
    DEFAULT_TV_QUOTA_LIMIT = _env_int('DEFAULT_TV_QUOTA_LIMIT', 0)
    DEFAULT_TV_QUOTA_DAYS = _env_int('DEFAULT_TV_QUOTA_DAYS', 7)

    DEFAULT_USERS_PER_PAGE = 10
    DEFAULT_REQUESTS_PER_PAGE = 20
    WATCHLIST_PAGE_SIZE = 20

    @staticmethod
    def init_app(app):
        # Create instance folder if it doesn't exist
        if not os.path.exists(app.instance_path):
            try:
                os.makedirs(app.instance_path)
            except OSError as e:
                app.logger.error(f"Error creating instance folder at {app.instance_path}: {e}")


class DevelopmentConfig(Config):
    DEBUG = True
    # SQLALCHEMY_ECHO = True # Useful for debugging SQL queries


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test_secret_key'
    MAIL_ENABLED = False
    TAUTULLI_HOSTNAME = None
    TAUTULLI_PORT = None
    TAUTULLI_API_KEY = None
    JELLYFIN_URL = 'http://jellyfin.test'
    JELLYFIN_API_KEY = 'jellyfin-key'
    PLEX_MACHINE_ID = 'machine-1'


class ProductionConfig(Config):
    DEBUG = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
