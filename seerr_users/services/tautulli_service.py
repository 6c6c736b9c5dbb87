"""
Tautulli analytics client.
"""
from typing import Any, Dict, List, Optional

from seerr_users.errors import ProviderError
from seerr_users.services.base_provider import BaseProviderClient


class TautulliService(BaseProviderClient):
    """Read-only access to Tautulli's ``/api/v2`` command endpoint"""

    provider_name = 'tautulli'
    HISTORY_PAGE_LENGTH = 100

    def __init__(self, hostname: str, port: int, api_key: str, use_ssl: bool = False, url_base: str = ''):
        scheme = 'https' if use_ssl else 'http'
        url_base = (url_base or '').rstrip('/')
        if url_base and not url_base.startswith('/'):
            url_base = f'/{url_base}'
        super().__init__(f"{scheme}://{hostname}:{port}{url_base}", name='Tautulli')
        self.api_key = api_key

    def _command(self, cmd: str, **params) -> Any:
        payload = self._json('GET', '/api/v2', params={'apikey': self.api_key, 'cmd': cmd, **params}) or {}
        body = payload.get('response') or {}
        if body.get('result') != 'success':
            raise ProviderError(f"Tautulli command '{cmd}' failed: {body.get('message') or 'unknown error'}",
                                provider=self.provider_name)
        return body.get('data')

    def get_aggregate_play_count(self, plex_id: int) -> int:
        """All-time play count for the Plex user."""
        data = self._command('get_user_watch_time_stats', user_id=plex_id, query_days=0) or []
        if not data:
            return 0
        return int(data[0].get('total_plays') or 0)

    def get_watch_history(self, plex_id: int, max_records: int = 20) -> List[Dict[str, Any]]:
        """
        Most recent first, one record per movie or per series.

        Pages through ``get_history`` until ``max_records`` distinct titles are
        collected or history runs out.
        """
        results: List[Dict[str, Any]] = []
        seen = set()
        start = 0
        while len(results) < max_records:
            data = self._command(
                'get_history',
                grouping=1,
                order_column='date',
                order_dir='desc',
                user_id=plex_id,
                media_type='movie,episode',
                length=self.HISTORY_PAGE_LENGTH,
                start=start,
            ) or {}
            records = data.get('data') or []
            if not records:
                break
            for record in records:
                key = self._dedupe_key(record)
                if key in seen:
                    continue
                seen.add(key)
                results.append(record)
            if len(records) < self.HISTORY_PAGE_LENGTH:
                break
            start += self.HISTORY_PAGE_LENGTH
        return results[:max_records]

    @staticmethod
    def _dedupe_key(record: Dict[str, Any]) -> Optional[tuple]:
        if record.get('grandparent_rating_key'):
            return ('series', str(record['grandparent_rating_key']))
        return ('item', str(record.get('rating_key')))
