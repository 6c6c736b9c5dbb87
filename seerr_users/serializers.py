# File: seerr_users/serializers.py
"""JSON views of accounts. Visibility depends on what the caller holds, not on the call site."""
from seerr_users.permissions import Permission, has_permission
from seerr_users.utils.timezone_utils import isoformat


def can_see_private_fields(caller_permissions: int) -> bool:
    return has_permission(Permission.MANAGE_USERS, caller_permissions or 0)


def to_public_view(account, caller_permissions: int, request_count: int = None, include_private: bool = None) -> dict:
    """
    Serialize ``account`` for a caller holding ``caller_permissions``.

    Password hash, Plex token and Jellyfin device id are never included.
    Email, provider ids and settings are included only for callers with
    MANAGE_USERS (or when ``include_private`` forces it, e.g. self-view).
    """
    view = {
        'id': account.id,
        'displayName': account.display_name,
        'username': account.username,
        'plexUsername': account.plex_username,
        'jellyfinUsername': account.jellyfin_username,
        'userType': account.user_type.value if account.user_type else None,
        'permissions': account.permissions or 0,
        'avatar': account.avatar,
        'movieQuotaLimit': account.movie_quota_limit,
        'movieQuotaDays': account.movie_quota_days,
        'tvQuotaLimit': account.tv_quota_limit,
        'tvQuotaDays': account.tv_quota_days,
        'createdAt': isoformat(account.created_at),
        'updatedAt': isoformat(account.updated_at),
    }
    if request_count is not None:
        view['requestCount'] = request_count

    if include_private is None:
        include_private = can_see_private_fields(caller_permissions)
    if include_private:
        view.update({
            'email': account.email,
            'plexId': account.plex_id,
            'jellyfinUserId': account.jellyfin_user_id,
            'subscriptionStatus': account.subscription_status,
            'subscriptionExpirationDate': isoformat(account.subscription_expiration_date),
            'suspiciousActivityCount': account.suspicious_activity_count or 0,
            'settings': {'locale': account.settings.locale} if account.settings else None,
        })
    return view


def to_public_views(accounts, caller_permissions: int) -> list:
    return [to_public_view(account, caller_permissions) for account in accounts]
