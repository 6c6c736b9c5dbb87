# File: seerr_users/routes/users_modules/main.py
"""Directory listing, single-record views, local signup, requests and quota"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from seerr_users.permissions import Permission
from seerr_users.serializers import to_public_view
from seerr_users.services.account_service import AccountProvisioner
from seerr_users.services.directory_service import UserDirectory
from seerr_users.services.quota_service import QuotaCalculator
from seerr_users.utils.helpers import get_int_arg, permission_required, self_or_permission_required
from . import users_bp


@users_bp.route('/', methods=['GET'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def list_users():
    result = UserDirectory.list_accounts(
        skip=get_int_arg('skip', 0, minimum=0),
        take=get_int_arg('take', current_app.config.get('DEFAULT_USERS_PER_PAGE', 10), minimum=1),
        sort=request.args.get('sort'),
        caller_permissions=current_user.permissions,
    )
    return jsonify(result)


@users_bp.route('/', methods=['POST'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def create_user():
    body = request.get_json(silent=True) or {}
    account = AccountProvisioner().create_local_account(
        email=body.get('email'),
        username=body.get('username'),
        password=body.get('password'),
        avatar=body.get('avatar'),
    )
    return jsonify(to_public_view(account, current_user.permissions)), 201


@users_bp.route('/<int:user_id>', methods=['GET'])
@login_required
@self_or_permission_required(Permission.MANAGE_USERS)
def get_user(user_id):
    return jsonify(UserDirectory.get_account(user_id, current_user))


@users_bp.route('/<int:user_id>/requests', methods=['GET'])
@login_required
@self_or_permission_required([Permission.MANAGE_REQUESTS, Permission.REQUEST_VIEW], type='or')
def get_user_requests(user_id):
    result = UserDirectory.list_requests(
        user_id,
        skip=get_int_arg('skip', 0, minimum=0),
        take=get_int_arg('take', current_app.config.get('DEFAULT_REQUESTS_PER_PAGE', 20), minimum=1),
    )
    return jsonify(result)


@users_bp.route('/<int:user_id>/quota', methods=['GET'])
@login_required
@self_or_permission_required([Permission.MANAGE_USERS, Permission.MANAGE_REQUESTS], type='and')
def get_user_quota(user_id):
    return jsonify(QuotaCalculator.get_quota(user_id))
