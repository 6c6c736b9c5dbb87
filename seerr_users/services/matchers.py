# File: seerr_users/services/matchers.py
"""
Strategies that find the local account for a remote provider account.

Each matcher answers one question, ``find_existing(remote)``; the importers
decide what to do with the answer.
"""
from typing import Any, Dict, Optional

from sqlalchemy import or_

from seerr_users.models import Account


def derive_display_name(remote_name: str) -> str:
    """
    'john.doe' -> 'John DOE', 'johndoe' -> 'Johndoe'.

    A dotted name with an empty first or second part ('john.') is kept as is.
    """
    if not remote_name:
        return remote_name
    if '.' in remote_name:
        parts = remote_name.split('.')
        first, last = parts[0], parts[1]
        if first and last:
            return f"{first[:1].upper()}{first[1:]} {last.upper()}"
        return remote_name
    return remote_name[:1].upper() + remote_name[1:]


class AccountMatcher:
    provider = None

    def find_existing(self, remote: Dict[str, Any]) -> Optional[Account]:
        raise NotImplementedError


class PlexAccountMatcher(AccountMatcher):
    """Plex id first, then case-insensitive email."""
    provider = 'plex'

    def find_existing(self, remote):
        plex_id = remote.get('id')
        email = (remote.get('email') or '').strip().lower()
        clauses = []
        if plex_id is not None:
            clauses.append(Account.plex_id == plex_id)
        if email:
            clauses.append(Account.email == email)
        if not clauses:
            return None
        candidates = Account.query.filter(or_(*clauses)).order_by(Account.id.asc()).all()
        # An id match wins over an email match on another row
        for account in candidates:
            if plex_id is not None and account.plex_id == plex_id:
                return account
        return candidates[0] if candidates else None


class JellyfinAccountMatcher(AccountMatcher):
    """Jellyfin user id only: display names and emails are not unique on the server."""
    provider = 'jellyfin'

    def find_existing(self, remote):
        remote_id = remote.get('Id')
        if not remote_id:
            return None
        return Account.query.filter_by(jellyfin_user_id=remote_id).first()


MATCHERS = {
    PlexAccountMatcher.provider: PlexAccountMatcher,
    JellyfinAccountMatcher.provider: JellyfinAccountMatcher,
}


def get_matcher(provider: str) -> AccountMatcher:
    try:
        return MATCHERS[provider]()
    except KeyError:
        raise ValueError(f"No account matcher registered for provider '{provider}'")
