# File: seerr_users/services/watch_service.py
import math
from typing import Any, Callable, Dict, List

from flask import current_app
from sqlalchemy import and_, or_

from seerr_users.errors import NotFound, ProviderError
from seerr_users.extensions import db
from seerr_users.models import Account, MediaCatalogItem, MediaType, WatchlistEntry


class WatchDataAggregator:
    """Recently watched titles: Tautulli history joined against the local catalog"""

    def __init__(self, tautulli_factory: Callable = None):
        self._tautulli_factory = tautulli_factory

    def _tautulli(self):
        if self._tautulli_factory is not None:
            return self._tautulli_factory()
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_tautulli()

    def watch_data(self, account_id: int) -> Dict[str, Any]:
        # Configuration is checked before the account so an unconfigured
        # install answers the same way for every id.
        tautulli = self._tautulli()

        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')
        if not account.plex_id:
            raise NotFound('User does not have an associated Plex account.')

        try:
            play_count = tautulli.get_aggregate_play_count(account.plex_id)
            history = tautulli.get_watch_history(account.plex_id)
        except ProviderError as e:
            current_app.logger.error(f"WatchDataAggregator: Tautulli lookup failed for user {account_id}: {e}")
            raise e.to_upstream_failure('Failed to fetch user watch data') from e

        return {
            'recentlyWatched': [item.to_dict() for item in self.correlate(history)],
            'playCount': play_count,
        }

    @staticmethod
    def correlate(history: List[Dict[str, Any]]) -> List[MediaCatalogItem]:
        """
        Catalog items that appear in ``history``, ordered by their first
        appearance there (history is most recent first).
        """
        movie_keys = [str(r['rating_key']) for r in history
                      if r.get('media_type') == 'movie' and r.get('rating_key')]
        series_keys = [str(r['grandparent_rating_key']) for r in history
                       if r.get('media_type') == 'episode' and r.get('grandparent_rating_key')]
        if not movie_keys and not series_keys:
            return []

        clauses = []
        if movie_keys:
            clauses.append(and_(MediaCatalogItem.media_type == MediaType.MOVIE,
                                or_(MediaCatalogItem.rating_key.in_(movie_keys),
                                    MediaCatalogItem.rating_key_4k.in_(movie_keys))))
        if series_keys:
            clauses.append(and_(MediaCatalogItem.media_type == MediaType.TV,
                                or_(MediaCatalogItem.rating_key.in_(series_keys),
                                    MediaCatalogItem.rating_key_4k.in_(series_keys))))
        items = MediaCatalogItem.query.filter(or_(*clauses)).all()

        positions = {}
        for index, record in enumerate(history):
            if record.get('media_type') == 'episode':
                key = ('tv', str(record.get('grandparent_rating_key')))
            else:
                key = ('movie', str(record.get('rating_key')))
            positions.setdefault(key, index)

        def first_position(item):
            candidates = [positions.get((item.media_type.value, key))
                          for key in (item.rating_key, item.rating_key_4k) if key]
            found = [p for p in candidates if p is not None]
            return (min(found) if found else len(history), item.id)

        return sorted(items, key=first_position)


class WatchlistResolver:
    """Cached watchlist rows, or a live Plex fetch when there are none"""

    def __init__(self, plex_factory: Callable = None, page_size: int = None):
        self._plex_factory = plex_factory
        self.page_size = page_size

    def _plex(self, token):
        if self._plex_factory is not None:
            return self._plex_factory(token)
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_plex(token)

    def watchlist(self, account_id: int, page: int = 1) -> Dict[str, Any]:
        page_size = self.page_size or current_app.config.get('WATCHLIST_PAGE_SIZE', 20)
        page = max(page or 1, 1)
        offset = (page - 1) * page_size

        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')

        cached = WatchlistEntry.query.filter_by(requested_by_id=account.id)
        total = cached.count()
        if total > 0:
            rows = cached.order_by(WatchlistEntry.id.asc()).offset(offset).limit(page_size).all()
            return {
                'page': page,
                'totalPages': math.ceil(total / page_size),
                'totalResults': total,
                'results': [row.to_dict() for row in rows],
            }

        if not account.plex_token:
            return {'page': 1, 'totalPages': 1, 'totalResults': 0, 'results': []}

        try:
            live = self._plex(account.plex_token).get_watchlist_page(offset=offset, size=page_size)
        except ProviderError as e:
            current_app.logger.error(f"WatchlistResolver: Plex watchlist fetch failed for user {account_id}: {e}")
            raise e.to_upstream_failure('Failed to fetch Plex watchlist') from e

        total_live = live.get('totalSize') or 0
        return {
            'page': page,
            'totalPages': math.ceil(total_live / page_size),
            'totalResults': total_live,
            'results': [
                {
                    'ratingKey': item.get('ratingKey'),
                    'title': item.get('title'),
                    'mediaType': 'tv' if item.get('type') == 'show' else 'movie',
                    'tmdbId': item.get('tmdbId'),
                }
                for item in live.get('items') or []
            ],
        }
