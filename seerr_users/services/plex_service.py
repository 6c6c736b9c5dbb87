# File: seerr_users/services/plex_service.py
from typing import Any, Dict, List, Optional

import xmltodict
from plexapi.exceptions import BadRequest, NotFound, Unauthorized
from plexapi.myplex import MyPlexAccount

from seerr_users.errors import ProviderError
from seerr_users.services.base_provider import BaseProviderClient
from seerr_users.utils.timeout_helper import get_api_timeout

PLEX_TV_URL = 'https://plex.tv'
PLEX_METADATA_URL = 'https://metadata.provider.plex.tv'


class PlexTvService(BaseProviderClient):
    """plex.tv access with one account's token (friends, server access, watchlist)"""

    provider_name = 'plex'

    def __init__(self, token: str, machine_id: Optional[str] = None, client_identifier: Optional[str] = None):
        super().__init__(PLEX_TV_URL, name='plex.tv')
        self.token = token
        self.machine_id = machine_id
        self.session.headers.update({
            'X-Plex-Token': token or '',
            'X-Plex-Client-Identifier': client_identifier or 'seerr-users',
        })
        self._account = None

    def _get_account(self) -> MyPlexAccount:
        """MyPlexAccount instance with caching"""
        if self._account is None:
            try:
                self._account = MyPlexAccount(token=self.token, session=self.session, timeout=get_api_timeout())
            except Unauthorized as e:
                raise ProviderError('Plex token was rejected', status_code=401, provider=self.provider_name) from e
            except (BadRequest, NotFound) as e:
                raise ProviderError(f'Plex account lookup failed: {e}', provider=self.provider_name) from e
        return self._account

    def list_shared_accounts(self) -> List[Dict[str, Any]]:
        """Friends and managed users of the token's account."""
        account = self._get_account()
        try:
            users = account.users()
        except (BadRequest, NotFound, Unauthorized) as e:
            raise ProviderError(f'Could not list Plex users: {e}', provider=self.provider_name) from e

        shared = []
        for user in users:
            shared.append({
                'id': int(user.id) if user.id is not None else None,
                'email': user.email,
                'username': user.username or user.title,
                'title': user.title,
                'thumb': user.thumb,
            })
        self.log_info(f"Retrieved {len(shared)} shared accounts")
        return shared

    def verify_access(self, remote_id: int) -> bool:
        """True if the Plex user currently has this server (``machine_id``) shared with them."""
        if not self.machine_id:
            self.log_warning("No Plex machine identifier configured, cannot verify server access")
            return False

        response = self._request('GET', '/api/users', headers={'Accept': 'application/xml'})
        container = xmltodict.parse(response.content).get('MediaContainer') or {}
        for user in _as_list(container.get('User')):
            if str(user.get('@id')) != str(remote_id):
                continue
            for server in _as_list(user.get('Server')):
                if server.get('@machineIdentifier') == self.machine_id:
                    return True
            return False
        return False

    def get_watchlist_page(self, offset: int = 0, size: int = 20) -> Dict[str, Any]:
        """
        One page of the account's Plex watchlist.

        Returns ``{'offset', 'size', 'totalSize', 'items'}``; each item carries
        ``ratingKey``, ``title``, ``type`` and the TMDB id from its metadata.
        """
        payload = self._json(
            'GET',
            f'{PLEX_METADATA_URL}/library/sections/watchlist/all',
            params={'X-Plex-Container-Start': offset, 'X-Plex-Container-Size': size},
        ) or {}
        container = payload.get('MediaContainer') or {}

        items = []
        for entry in container.get('Metadata') or []:
            rating_key = entry.get('ratingKey')
            items.append({
                'ratingKey': rating_key,
                'title': entry.get('title'),
                'type': entry.get('type'),
                'tmdbId': self._get_tmdb_id(rating_key),
            })

        return {
            'offset': offset,
            'size': size,
            'totalSize': int(container.get('totalSize') or 0),
            'items': items,
        }

    def _get_tmdb_id(self, rating_key: str) -> Optional[int]:
        payload = self._json('GET', f'{PLEX_METADATA_URL}/library/metadata/{rating_key}') or {}
        metadata = (payload.get('MediaContainer') or {}).get('Metadata') or []
        if not metadata:
            return None
        for guid in metadata[0].get('Guid') or []:
            guid_id = guid.get('id') or ''
            if guid_id.startswith('tmdb://'):
                try:
                    return int(guid_id[len('tmdb://'):])
                except ValueError:
                    return None
        return None


def _as_list(value) -> List[Dict[str, Any]]:
    """xmltodict gives a dict for one child and a list for several."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
