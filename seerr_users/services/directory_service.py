# File: seerr_users/services/directory_service.py
from typing import Any, Dict

from flask import current_app
from sqlalchemy import func

from seerr_users.errors import NotFound
from seerr_users.extensions import db
from seerr_users.models import Account, MediaRequest
from seerr_users.serializers import to_public_view
from seerr_users.utils.helpers import page_info

SORT_OPTIONS = ('updated', 'displayname', 'requests', 'subscriptionStatus',
                'subscriptionExpirationDate', 'suspiciousActivityCount')


def display_name_expression():
    """SQL twin of ``Account.display_name``, lower-cased for case-insensitive sorting."""
    return func.lower(func.coalesce(
        func.nullif(Account.username, ''),
        func.nullif(Account.plex_username, ''),
        func.nullif(Account.jellyfin_username, ''),
        Account.email,
    ))


class UserDirectory:
    """Read side of the account store: listings and single-record views"""

    @staticmethod
    def _request_counts_subquery():
        return (
            db.session.query(
                MediaRequest.requested_by_id.label('user_id'),
                func.count(MediaRequest.id).label('request_count'),
            )
            .group_by(MediaRequest.requested_by_id)
            .subquery()
        )

    @staticmethod
    def list_accounts(skip: int = 0, take: int = None, sort: str = None, caller_permissions: int = 0) -> Dict[str, Any]:
        """One page of accounts plus ``pageInfo``. Every ordering ends with ascending id."""
        take = take or current_app.config.get('DEFAULT_USERS_PER_PAGE', 10)
        skip = max(skip or 0, 0)

        counts = UserDirectory._request_counts_subquery()
        request_count = func.coalesce(counts.c.request_count, 0)
        query = db.session.query(Account, request_count).outerjoin(counts, counts.c.user_id == Account.id)

        if sort == 'updated':
            query = query.order_by(Account.updated_at.desc(), Account.id.asc())
        elif sort == 'displayname':
            query = query.order_by(display_name_expression().asc(), Account.id.asc())
        elif sort == 'requests':
            query = query.order_by(request_count.desc(), Account.id.asc())
        elif sort == 'subscriptionStatus':
            query = query.order_by(Account.subscription_status.asc(), Account.id.asc())
        elif sort == 'subscriptionExpirationDate':
            query = query.order_by(Account.subscription_expiration_date.asc(), Account.id.asc())
        elif sort == 'suspiciousActivityCount':
            query = query.order_by(Account.suspicious_activity_count.asc(), Account.id.asc())
        else:
            query = query.order_by(Account.id.asc())

        total = Account.query.count()
        rows = query.offset(skip).limit(take).all()

        return {
            'pageInfo': page_info(total, take, skip),
            'results': [to_public_view(account, caller_permissions, request_count=count) for account, count in rows],
        }

    @staticmethod
    def get_account_or_404(account_id: int) -> Account:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')
        return account

    @staticmethod
    def get_account(account_id: int, caller) -> Dict[str, Any]:
        account = UserDirectory.get_account_or_404(account_id)
        is_self = caller is not None and caller.id == account.id
        request_count = account.requests.count()
        return to_public_view(account, caller.permissions if caller else 0, request_count=request_count,
                              include_private=True if is_self else None)

    @staticmethod
    def list_requests(account_id: int, skip: int = 0, take: int = None) -> Dict[str, Any]:
        """The account's media requests, newest first."""
        take = take or current_app.config.get('DEFAULT_REQUESTS_PER_PAGE', 20)
        skip = max(skip or 0, 0)
        account = UserDirectory.get_account_or_404(account_id)

        query = MediaRequest.query.filter_by(requested_by_id=account.id)
        total = query.count()
        requests = query.order_by(MediaRequest.id.desc()).offset(skip).limit(take).all()

        return {
            'pageInfo': page_info(total, take, skip),
            'results': [media_request.to_dict() for media_request in requests],
        }
