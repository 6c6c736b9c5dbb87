# File: seerr_users/routes/users_modules/imports.py
"""Reconciliation of Plex and Jellyfin accounts into the directory"""

from flask import jsonify, request
from flask_login import current_user, login_required

from seerr_users.errors import InvalidRequest
from seerr_users.permissions import Permission
from seerr_users.serializers import to_public_views
from seerr_users.services.import_service import IdentityImporter
from seerr_users.utils.helpers import permission_required
from . import users_bp


@users_bp.route('/import-from-plex', methods=['POST'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def import_from_plex():
    body = request.get_json(silent=True) or {}
    # No plexIds means "import everyone with access"
    plex_ids = body.get('plexIds')
    if plex_ids is not None and not isinstance(plex_ids, list):
        raise InvalidRequest('plexIds must be a list.')
    created = IdentityImporter().import_from_plex(plex_ids)
    return jsonify(to_public_views(created, current_user.permissions)), 201


@users_bp.route('/import-from-jellyfin', methods=['POST'])
@login_required
@permission_required(Permission.MANAGE_USERS)
def import_from_jellyfin():
    body = request.get_json(silent=True) or {}
    jellyfin_ids = body.get('jellyfinUserIds')
    if not isinstance(jellyfin_ids, list):
        raise InvalidRequest('jellyfinUserIds must be a list.')
    created = IdentityImporter().import_from_jellyfin(
        jellyfin_ids, email=body.get('email'), locale=body.get('locale'))
    return jsonify(to_public_views(created, current_user.permissions)), 201
