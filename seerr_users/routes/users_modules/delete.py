# File: seerr_users/routes/users_modules/delete.py
"""User deletion"""

from flask import current_app, jsonify
from flask_login import current_user, login_required

from seerr_users.permissions import Permission
from seerr_users.services.account_service import DeletionSaga
from seerr_users.utils.helpers import permission_required
from . import users_bp


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def delete_user(user_id):
    current_app.logger.info(f"Deleting user {user_id} (requested by {current_user.id})")
    report = DeletionSaga().run(user_id, current_user)
    return jsonify(report)
