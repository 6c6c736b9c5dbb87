# File: seerr_users/routes/users_modules/watch.py
"""Watch statistics and watchlist"""

from flask import jsonify
from flask_login import login_required

from seerr_users.permissions import Permission
from seerr_users.services.watch_service import WatchDataAggregator, WatchlistResolver
from seerr_users.utils.helpers import get_int_arg, self_or_permission_required
from . import users_bp


@users_bp.route('/<int:user_id>/watch_data', methods=['GET'])
@login_required
@self_or_permission_required(Permission.ADMIN)
def get_watch_data(user_id):
    return jsonify(WatchDataAggregator().watch_data(user_id))


@users_bp.route('/<int:user_id>/watchlist', methods=['GET'])
@login_required
@self_or_permission_required([Permission.MANAGE_REQUESTS, Permission.WATCHLIST_VIEW], type='or')
def get_watchlist(user_id):
    return jsonify(WatchlistResolver().watchlist(user_id, page=get_int_arg('page', 1, minimum=1)))
