# File: seerr_users/routes/users_modules/permissions.py
"""Permission and username updates"""

from flask import jsonify, request
from flask_login import current_user, login_required

from seerr_users.errors import InvalidRequest
from seerr_users.permissions import Permission
from seerr_users.serializers import to_public_view, to_public_views
from seerr_users.services.account_service import PermissionUpdater
from seerr_users.utils.helpers import permission_required
from . import users_bp


def _permissions_from(body, required=True):
    value = body.get('permissions')
    if value is None and not required:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest('permissions must be an integer bitmask.')


@users_bp.route('/', methods=['PUT'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def bulk_update_users():
    body = request.get_json(silent=True) or {}
    ids = body.get('ids')
    if not isinstance(ids, list):
        raise InvalidRequest('ids must be a list of user ids.')
    try:
        ids = [int(user_id) for user_id in ids]
    except (TypeError, ValueError):
        raise InvalidRequest('ids must be a list of user ids.')

    updated = PermissionUpdater().bulk_update_permissions(ids, _permissions_from(body), current_user)
    return jsonify(to_public_views(updated, current_user.permissions))


@users_bp.route('/<int:user_id>', methods=['PUT'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def update_user(user_id):
    body = request.get_json(silent=True) or {}
    account = PermissionUpdater().update_account(
        user_id,
        current_user,
        username=body.get('username'),
        permissions=_permissions_from(body, required=False),
    )
    return jsonify(to_public_view(account, current_user.permissions))
