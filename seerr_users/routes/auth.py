# File: seerr_users/routes/auth.py
from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from seerr_users.errors import InvalidRequest
from seerr_users.forms import LoginForm
from seerr_users.models import Account, EventType
from seerr_users.serializers import to_public_view
from seerr_users.utils.helpers import log_event

bp = Blueprint('auth', __name__)


@bp.route('/csrf', methods=['GET'])
def csrf_token():
    """Token for API clients to send back in the X-CSRFToken header."""
    return jsonify({'csrfToken': generate_csrf()})


@bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        raise InvalidRequest('Email and password are required.')

    email = form.email.data.strip().lower()
    account = Account.query.filter_by(email=email).first()
    if account is None or not account.check_password(form.password.data):
        log_event(EventType.LOGIN_FAIL, f"Failed login for '{email}'.")
        return jsonify({'message': 'Invalid email or password.', 'errors': ['INVALID_CREDENTIALS']}), 401

    login_user(account, remember=bool(form.remember.data))
    log_event(EventType.LOGIN_SUCCESS, f"'{account.display_name}' logged in.", actor_id=account.id,
              user_id=account.id)
    return jsonify(to_public_view(account, account.permissions, include_private=True))


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    account_id = current_user.id
    logout_user()
    log_event(EventType.LOGOUT, f"User {account_id} logged out.", actor_id=account_id, user_id=account_id)
    return jsonify({'status': 'ok'})


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(to_public_view(current_user, current_user.permissions, include_private=True))
