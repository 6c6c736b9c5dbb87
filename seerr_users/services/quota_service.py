# File: seerr_users/services/quota_service.py
from typing import Any, Dict, Optional

from sqlalchemy import func

from seerr_users.errors import NotFound
from seerr_users.extensions import db
from seerr_users.models import Account, MediaRequest, MediaType, RequestStatus, Setting
from seerr_users.permissions import Permission
from seerr_users.utils.timezone_utils import days_ago


class QuotaCalculator:
    """Rolling-window request quotas per account"""

    @staticmethod
    def _limits(account: Account, media_type: MediaType):
        if media_type == MediaType.MOVIE:
            limit = account.movie_quota_limit
            days = account.movie_quota_days
            default_limit = Setting.get('DEFAULT_MOVIE_QUOTA_LIMIT', 0)
            default_days = Setting.get('DEFAULT_MOVIE_QUOTA_DAYS', 7)
        else:
            limit = account.tv_quota_limit
            days = account.tv_quota_days
            default_limit = Setting.get('DEFAULT_TV_QUOTA_LIMIT', 0)
            default_days = Setting.get('DEFAULT_TV_QUOTA_DAYS', 7)
        limit = default_limit if limit is None else limit
        days = default_days if days is None else days
        return (int(limit) if limit else None), int(days or 0)

    @staticmethod
    def _used(account: Account, media_type: MediaType, days: int) -> int:
        # Movies count one per request, TV counts requested seasons.
        measure = func.count(MediaRequest.id) if media_type == MediaType.MOVIE \
            else func.coalesce(func.sum(MediaRequest.season_count), 0)
        query = db.session.query(measure).filter(
            MediaRequest.requested_by_id == account.id,
            MediaRequest.media_type == media_type,
            MediaRequest.status != RequestStatus.DECLINED,
        )
        if days:
            query = query.filter(MediaRequest.created_at >= days_ago(days))
        return int(query.scalar() or 0)

    @classmethod
    def _bucket(cls, account: Account, media_type: MediaType) -> Dict[str, Any]:
        limit, days = cls._limits(account, media_type)
        used = cls._used(account, media_type, days)
        remaining: Optional[int] = max(limit - used, 0) if limit else None
        restricted = bool(limit) and remaining <= 0 and not account.has_permission(Permission.ADMIN)
        return {
            'days': days,
            'limit': limit,
            'used': used,
            'remaining': remaining,
            'restricted': restricted,
        }

    @classmethod
    def get_quota(cls, account_id: int) -> Dict[str, Any]:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')
        return {
            'movie': cls._bucket(account, MediaType.MOVIE),
            'tv': cls._bucket(account, MediaType.TV),
        }
