# File: seerr_users/extensions.py
import json

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_babel import Babel
from sqlalchemy.types import TypeDecorator, TEXT

# Database
db = SQLAlchemy()

# Migrations
migrate = Migrate()

# Login Manager
# API-only surface: unauthenticated requests get a JSON 401 from the unauthorized handler in create_app.
login_manager = LoginManager()
login_manager.session_protection = "basic"

# CSRF Protection
csrf = CSRFProtect()

# Babel
# Resolves the mail locale; the selector is registered in create_app.
babel = Babel()


class JSONEncodedDict(TypeDecorator):
    """Enables JSON storage by encoding and decoding on the fly."""
    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return json.dumps(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return json.loads(value)
        return value
