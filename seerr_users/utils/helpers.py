# File: seerr_users/utils/helpers.py
import hashlib
import math
import secrets
import string
from functools import wraps

from flask import current_app, request
from flask_login import current_user

# Models and db are imported inside the functions that need them to avoid a
# circular import (models -> permissions, routes -> helpers -> models).


def log_event(event_type, message: str, details: dict = None,
              actor_id: int = None, user_id: int = None):
    """Logs an event to the HistoryLog. Never raises."""
    from seerr_users.models import HistoryLog, EventType as EventTypeEnum
    from seerr_users.extensions import db

    if not isinstance(event_type, EventTypeEnum):
        current_app.logger.error(f"Invalid event_type provided to log_event: {event_type}")
        return

    try:
        log_entry = HistoryLog(
            event_type=event_type,
            message=message,
            details=details or {},
            target_user_id=user_id,
        )
        if actor_id is None and current_user and getattr(current_user, 'is_authenticated', False):
            log_entry.actor_id = current_user.id
        else:
            log_entry.actor_id = actor_id

        db.session.add(log_entry)
        db.session.commit()
        current_app.logger.info(f"History: [{event_type.name}] {message}")
    except Exception as e:
        current_app.logger.error(f"Failed to write history log for {event_type.name}: {e}", exc_info=True)
        db.session.rollback()


def permission_required(permissions, type='and'):
    """Decorator: the logged-in account must hold ``permissions``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from seerr_users.errors import Forbidden
            if not current_user.has_permission(permissions, type=type):
                raise Forbidden('You do not have permission to access this endpoint.')
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def self_or_permission_required(permissions, type='and', id_arg='user_id'):
    """Decorator: the account may act on itself, anyone else needs ``permissions``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from seerr_users.errors import Forbidden
            target_id = kwargs.get(id_arg)
            if target_id != current_user.id and not current_user.has_permission(permissions, type=type):
                raise Forbidden('You do not have permission to access this endpoint.')
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def get_int_arg(name, default=None, minimum=None):
    """Integer query-string argument. Missing or malformed values fall back to ``default``."""
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def page_info(total: int, page_size: int, skip: int) -> dict:
    page_size = max(int(page_size), 1)
    return {
        'pages': math.ceil(total / page_size),
        'pageSize': page_size,
        'results': total,
        'page': skip // page_size + 1,
    }


def generate_password(length: int = 16) -> str:
    """Random password with at least one lowercase, uppercase and digit."""
    alphabet = string.ascii_letters + string.digits
    while True:
        password = ''.join(secrets.choice(alphabet) for _ in range(length))
        if (any(c.islower() for c in password)
                and any(c.isupper() for c in password)
                and any(c.isdigit() for c in password)):
            return password


def gravatar_url(email: str, size: int = 200, default: str = 'mm') -> str:
    digest = hashlib.md5((email or '').strip().lower().encode('utf-8')).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?default={default}&size={size}"


def get_first_name(username: str) -> str:
    """Greeting name: 'john.doe' -> 'John', 'johndoe' -> 'Johndoe'."""
    if not username:
        return ''
    first = username.split('.')[0] if '.' in username else username
    if not first:
        first = username
    return first[:1].upper() + first[1:]
