"""
Jellyfin / Emby account client.
Only the user-administration endpoints are wrapped here.
"""
from typing import Any, Dict, List

from seerr_users.services.base_provider import BaseProviderClient


class JellyfinService(BaseProviderClient):
    """Jellyfin user administration through the server API key"""

    provider_name = 'jellyfin'

    def __init__(self, base_url: str, api_key: str, name: str = None):
        super().__init__(base_url, name=name or 'Jellyfin')
        self.api_key = api_key
        self.session.headers.update({
            'X-Emby-Token': api_key or '',
            'Content-Type': 'application/json',
        })

    def list_users(self) -> List[Dict[str, Any]]:
        """Raw user records (``Id``, ``Name``, ...) as returned by ``GET /Users``."""
        users = self._json('GET', '/Users') or []
        self.log_info(f"Retrieved {len(users)} users")
        return users

    def create_user(self, name: str, password: str) -> Dict[str, Any]:
        created = self._json('POST', '/Users/New', json={'Name': name, 'Password': password}) or {}
        self.log_info(f"Created user '{name}' ({created.get('Id')})")
        return created

    def delete_user(self, user_id: str) -> None:
        self._request('DELETE', f'/Users/{user_id}')
        self.log_info(f"Deleted user {user_id}")

    def reset_password(self, user_id: str, new_password: str) -> None:
        """Clear the password, then set ``new_password`` from the empty one."""
        self._request('POST', f'/Users/{user_id}/Password', json={'ResetPassword': True})
        self._request('POST', f'/Users/{user_id}/Password', json={'CurrentPw': '', 'NewPw': new_password})
        self.log_info(f"Password reset for user {user_id}")
