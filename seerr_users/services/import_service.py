# File: seerr_users/services/import_service.py
from typing import Callable, Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from seerr_users.errors import Conflict, InvalidRequest, ProviderError, Unconfigured
from seerr_users.extensions import db
from seerr_users.models import Account, AccountType, EventType
from seerr_users.services.account_service import (build_alt_provider_account, default_permissions,
                                                  get_permission_guard, persist_new_account)
from seerr_users.services.matchers import get_matcher
from seerr_users.utils.helpers import log_event


class IdentityImporter:
    """Match-or-create reconciliation of provider accounts into the local directory"""

    def __init__(self, plex_factory: Callable = None, jellyfin_factory: Callable = None):
        self._plex_factory = plex_factory
        self._jellyfin_factory = jellyfin_factory

    def _plex(self, token):
        if self._plex_factory is not None:
            return self._plex_factory(token)
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_plex(token)

    def _jellyfin(self):
        if self._jellyfin_factory is not None:
            return self._jellyfin_factory()
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_jellyfin()

    def import_from_plex(self, plex_ids: Optional[Iterable] = None) -> List[Account]:
        """
        Reconcile the owner's Plex friends with local accounts.

        Matched accounts are refreshed (and promoted LOCAL -> PLEX). Unmatched
        ones are created only in import-all mode (``plex_ids`` is None) or when
        listed, and only if Plex confirms they can reach this server. Returns
        the newly created accounts.
        """
        owner = db.session.get(Account, get_permission_guard().owner_account_id)
        if owner is None or not owner.plex_token:
            raise Unconfigured('Plex token not available.')

        wanted = None if plex_ids is None else {str(plex_id) for plex_id in plex_ids}
        plex = self._plex(owner.plex_token)
        matcher = get_matcher('plex')

        try:
            remote_accounts = plex.list_shared_accounts()
        except ProviderError as e:
            raise e.to_upstream_failure('Could not list Plex users') from e

        created = []
        for remote in remote_accounts:
            if not remote.get('email'):
                continue

            existing = matcher.find_existing(remote)
            if existing is not None:
                self._refresh_from_plex(existing, remote)
                continue

            if wanted is not None and str(remote.get('id')) not in wanted:
                continue

            try:
                has_access = plex.verify_access(remote.get('id'))
            except ProviderError as e:
                raise e.to_upstream_failure(f"Could not verify Plex access for {remote.get('username')}") from e
            if not has_access:
                current_app.logger.info(
                    f"IdentityImporter: Plex user {remote.get('username')} has no access to this server, skipping")
                continue

            account = Account(
                email=remote['email'],
                plex_id=remote.get('id'),
                plex_username=remote.get('username'),
                avatar=remote.get('thumb'),
                user_type=AccountType.PLEX,
                permissions=default_permissions(),
            )
            try:
                persist_new_account(account, None)
            except Conflict:
                current_app.logger.warning(f"IdentityImporter: {remote['email']} was created concurrently, skipping")
                continue
            created.append(account)
            log_event(EventType.USER_IMPORTED_FROM_PLEX, f"Imported Plex user '{account.plex_username}'.",
                      details={'plex_id': account.plex_id}, user_id=account.id)

        current_app.logger.info(f"IdentityImporter: Plex import created {len(created)} account(s)")
        return created

    @staticmethod
    def _refresh_from_plex(account: Account, remote: dict) -> None:
        account.avatar = remote.get('thumb') or account.avatar
        account.email = remote['email']
        account.plex_username = remote.get('username')
        if account.user_type == AccountType.LOCAL:
            account.user_type = AccountType.PLEX
            account.plex_id = remote.get('id')
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.warning(
                f"IdentityImporter: could not refresh account {account.id} from Plex: {e.orig}")
            return
        log_event(EventType.USER_UPDATED_FROM_PLEX, f"Refreshed '{account.display_name}' from Plex.",
                  user_id=account.id)

    def import_from_jellyfin(self, jellyfin_ids: Iterable[str], email: Optional[str] = None,
                             locale: Optional[str] = None) -> List[Account]:
        """Create local accounts for the listed Jellyfin users that are not linked yet."""
        if jellyfin_ids is None:
            raise InvalidRequest('jellyfinUserIds is required.')

        try:
            remote_users = self._jellyfin().list_users()
        except ProviderError as e:
            raise e.to_upstream_failure('Could not list Jellyfin users') from e
        by_id = {user.get('Id'): user for user in remote_users}
        matcher = get_matcher('jellyfin')

        created = []
        for jellyfin_id in jellyfin_ids:
            if matcher.find_existing({'Id': jellyfin_id}) is not None:
                current_app.logger.debug(f"IdentityImporter: Jellyfin user {jellyfin_id} already linked, skipping")
                continue

            remote = by_id.get(jellyfin_id)
            if remote is None:
                current_app.logger.warning(f"IdentityImporter: Jellyfin user {jellyfin_id} not found on server")
                continue

            account = build_alt_provider_account(remote, email=email)
            try:
                persist_new_account(account, locale)
            except Conflict:
                current_app.logger.warning(
                    f"IdentityImporter: email {account.email} already in use, skipping Jellyfin user {jellyfin_id}")
                continue
            created.append(account)
            log_event(EventType.USER_IMPORTED_FROM_JELLYFIN,
                      f"Imported Jellyfin user '{account.jellyfin_username}'.",
                      details={'jellyfin_user_id': jellyfin_id}, user_id=account.id)

        current_app.logger.info(f"IdentityImporter: Jellyfin import created {len(created)} account(s)")
        return created
