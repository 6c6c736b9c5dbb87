# File: seerr_users/routes/users_modules/provisioning.py
"""Jellyfin account provisioning and credential resend"""

from flask import jsonify, request
from flask_login import login_required

from seerr_users.permissions import Permission
from seerr_users.services.account_service import AccountProvisioner
from seerr_users.utils.helpers import permission_required
from . import users_bp


@users_bp.route('/jellyfinuser', methods=['POST'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def create_jellyfin_user():
    body = request.get_json(silent=True) or {}
    result = AccountProvisioner().provision_linked_account(
        body.get('username'),
        password=body.get('password'),
        locale=body.get('locale'),
        email=body.get('email'),
    )
    return jsonify(result), 201


@users_bp.route('/<int:user_id>/welcome-mail', methods=['POST'])
@login_required
@permission_required(Permission.ADMIN)
def resend_welcome_mail(user_id):
    return jsonify(AccountProvisioner().reset_and_notify(user_id))
