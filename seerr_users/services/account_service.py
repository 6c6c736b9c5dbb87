# File: seerr_users/services/account_service.py
import base64
import enum
from typing import Any, Callable, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from seerr_users.errors import (AccountError, Conflict, Forbidden, InvalidAccountState, InvalidRequest, NotFound,
                                ProviderError, Unconfigured, UpstreamFailure)
from seerr_users.extensions import db
from seerr_users.models import Account, AccountSettings, AccountType, EventType, MediaRequest, Setting
from seerr_users.permissions import Permission, PermissionGuard
from seerr_users.serializers import to_public_view
from seerr_users.services.matchers import derive_display_name
from seerr_users.services.notification_service import NotificationError, NotificationService
from seerr_users.utils.helpers import generate_password, gravatar_url, log_event

GENERATED_PASSWORD_TEMPLATE = 'generatedpassword'


def get_permission_guard() -> PermissionGuard:
    return PermissionGuard(int(current_app.config.get('OWNER_ACCOUNT_ID', 1)))


def default_permissions() -> int:
    return int(Setting.get('DEFAULT_PERMISSIONS', int(Permission.REQUEST)))


def resolve_locale(locale: Optional[str] = None) -> str:
    return locale or Setting.get('LOCALE') or 'en'


def jellyfin_device_id(name: str) -> str:
    return base64.b64encode(f'BOT_seerr_{name}'.encode('utf-8')).decode('ascii')


def email_in_use(email: str) -> bool:
    return Account.query.filter(Account.email == (email or '').strip().lower()).first() is not None


def persist_new_account(account: Account, locale: Optional[str]) -> Account:
    """Insert ``account`` together with its settings row in one commit."""
    account.settings = AccountSettings(locale=resolve_locale(locale))
    db.session.add(account)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning(f"AccountService: duplicate account for {account.email}: {e.orig}")
        raise Conflict('User already exists with submitted email.') from e
    return account


def build_alt_provider_account(remote_user: Dict[str, Any], email: Optional[str] = None) -> Account:
    """Local account for a Jellyfin/Emby user record (``Id``, ``Name``)."""
    name = remote_user.get('Name') or ''
    remote_id = remote_user.get('Id')
    return Account(
        email=email or name,
        username=derive_display_name(name),
        jellyfin_username=name,
        jellyfin_user_id=remote_id,
        jellyfin_device_id=jellyfin_device_id(name),
        user_type=AccountType.for_media_server(Setting.get('MEDIA_SERVER_TYPE', 'jellyfin')),
        permissions=default_permissions(),
        avatar=f'/avatarproxy/{remote_id}',
    )


class AccountProvisioner:
    """Creates accounts (local and Jellyfin-backed) and resends credentials"""

    def __init__(self, jellyfin_factory: Callable = None, notifications: NotificationService = None):
        self._jellyfin_factory = jellyfin_factory
        self.notifications = notifications or NotificationService()

    def _jellyfin(self):
        if self._jellyfin_factory is not None:
            return self._jellyfin_factory()
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_jellyfin()

    def create_local_account(self, email: Optional[str], username: Optional[str] = None,
                             password: Optional[str] = None, avatar: Optional[str] = None) -> Account:
        """Direct local signup by an administrator. Without a password one is generated and mailed."""
        email = (email or username or '').strip()
        if not email:
            raise InvalidRequest('An email address or username is required.')
        if email_in_use(email):
            raise Conflict('User already exists with submitted email.')

        send_password = not password
        if send_password and not NotificationService.is_enabled():
            raise InvalidRequest('Email notifications must be enabled')

        password = password or generate_password()
        account = Account(
            email=email,
            username=username,
            user_type=AccountType.LOCAL,
            permissions=default_permissions(),
            avatar=avatar or gravatar_url(email),
        )
        account.set_password(password)
        persist_new_account(account, None)

        log_event(EventType.USER_CREATED, f"Local account '{account.display_name}' created.",
                  details={'email': account.email}, user_id=account.id)
        if send_password:
            self.notifications.send_templated_async(
                GENERATED_PASSWORD_TEMPLATE, account.email, account.settings.locale,
                {'username': account.display_name, 'password': password},
            )
        return account

    def provision_linked_account(self, display_name: str, password: Optional[str] = None,
                                 locale: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a Jellyfin user and its local account.

        The generated (or supplied) password is returned once and never stored.
        Welcome mail goes out in the background when an email is given; a
        delivery failure is only logged.
        """
        if not display_name:
            raise InvalidRequest('A username is required.')
        local_email = email or display_name
        if email_in_use(local_email):
            raise Conflict('User already exists with submitted email.')

        password = password or generate_password()
        try:
            remote_user = self._jellyfin().create_user(display_name, password)
        except ProviderError as e:
            log_event(EventType.ERROR_PROVIDER, f"Jellyfin user creation failed for '{display_name}': {e.message}")
            raise e.to_upstream_failure('Could not create Jellyfin user') from e
        if not remote_user.get('Id'):
            raise UpstreamFailure('Jellyfin did not return the created user.')

        account = build_alt_provider_account(remote_user, email=email)
        persist_new_account(account, locale)
        log_event(EventType.USER_PROVISIONED_JELLYFIN,
                  f"Jellyfin account '{display_name}' provisioned.",
                  details={'jellyfin_user_id': account.jellyfin_user_id}, user_id=account.id)

        if email:
            current_app.logger.info(f"AccountProvisioner: sending generated password email for {email}")
            self.notifications.send_templated_async(
                GENERATED_PASSWORD_TEMPLATE, email, account.settings.locale,
                {'username': display_name, 'password': password},
            )

        return {
            'user': to_public_view(account, int(Permission.MANAGE_USERS)),
            'password': password,
            'locale': account.settings.locale,
        }

    def reset_and_notify(self, account_id: int) -> Dict[str, Any]:
        """New Jellyfin password, mailed synchronously in the account's locale."""
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')
        if not account.is_alt_provider_account or not account.jellyfin_user_id:
            raise InvalidAccountState('User is not a Jellyfin user.')
        # Mail must be deliverable before the remote password changes
        if not self.notifications.is_enabled():
            raise InvalidRequest('Email notifications must be enabled to reset and mail a password.')
        if not account.email or '@' not in account.email:
            raise InvalidRequest('User does not have a valid email address.')

        new_password = generate_password()
        try:
            self._jellyfin().reset_password(account.jellyfin_user_id, new_password)
        except ProviderError as e:
            raise e.to_upstream_failure('Could not reset Jellyfin password') from e

        locale = account.settings.locale if account.settings and account.settings.locale else 'en'
        current_app.logger.info(f"AccountProvisioner: sending generated password email for {account.email}")
        try:
            self.notifications.send_templated(
                GENERATED_PASSWORD_TEMPLATE, account.email, locale,
                {'username': account.jellyfin_username or '', 'password': new_password},
            )
        except NotificationError as e:
            current_app.logger.error(f"AccountProvisioner: failed to send welcome mail: {e}")
            raise UpstreamFailure(str(e)) from e

        log_event(EventType.USER_CREDENTIALS_RESET, f"Credentials reset and mailed for '{account.display_name}'.",
                  user_id=account.id)
        return {'success': True}


class PermissionUpdater:
    """Applies permission changes behind the escalation guard"""

    def __init__(self, guard: PermissionGuard = None):
        self.guard = guard or get_permission_guard()

    def bulk_update_permissions(self, ids: List[int], permissions: int, actor) -> List[Account]:
        """
        Set ``permissions`` on every listed account.

        Non-owner actors silently skip the owner. Rows are committed one by one,
        so a failure part-way leaves the earlier rows updated.
        """
        if not self.guard.can_grant(permissions, actor):
            raise Forbidden('You do not have permission to grant this level of access')

        target_ids = self.guard.filter_bulk_targets(ids, actor)
        accounts = Account.query.filter(Account.id.in_(target_ids)).order_by(Account.id.asc()).all()
        updated = []
        for account in accounts:
            account.permissions = permissions
            db.session.commit()
            updated.append(account)

        log_event(EventType.USER_PERMISSIONS_CHANGED,
                  f"Permissions set to {permissions} on {len(updated)} account(s).",
                  details={'user_ids': [a.id for a in updated], 'permissions': permissions})
        return updated

    def update_account(self, account_id: int, actor, username: Optional[str] = None,
                       permissions: Optional[int] = None) -> Account:
        if not self.guard.can_modify(account_id, actor):
            raise Forbidden('You do not have permission to modify this user')

        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')

        if permissions is not None and not self.guard.can_grant(permissions, actor):
            raise Forbidden('You do not have permission to grant this level of access')

        if username is not None:
            account.username = username
        if permissions is not None and permissions != account.permissions:
            previous = account.permissions
            account.permissions = permissions
            db.session.commit()
            log_event(EventType.USER_PERMISSIONS_CHANGED,
                      f"Permissions of '{account.display_name}' changed from {previous} to {permissions}.",
                      user_id=account.id)
        else:
            db.session.commit()
        return account


class StepOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    SKIPPED_ALREADY_ABSENT = "skipped_already_absent"
    FAILED_NONFATAL = "failed_nonfatal"
    FAILED_FATAL = "failed_fatal"


class DeletionFailed(AccountError):
    """A fatal saga step failed. Earlier steps stay committed."""
    status_code = 500
    code = 'DELETION_FAILED'

    def __init__(self, message, report):
        super().__init__(message)
        self.report = report

    def to_dict(self):
        return {**super().to_dict(), 'report': self.report}


class DeletionSaga:
    """
    Ordered, non-atomic account removal.

    Steps: deprovision the external account, delete the account's requests,
    delete the account row. A failure in the first step is tolerated; a
    failure in a later step stops the saga with earlier steps committed.
    """

    def __init__(self, guard: PermissionGuard = None, jellyfin_factory: Callable = None):
        self.guard = guard or get_permission_guard()
        self._jellyfin_factory = jellyfin_factory

    def _jellyfin(self):
        if self._jellyfin_factory is not None:
            return self._jellyfin_factory()
        from seerr_users.services.provider_factory import ProviderFactory
        return ProviderFactory.create_jellyfin()

    def run(self, account_id: int, actor) -> Dict[str, Any]:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound('User not found.')
        if account.id == self.guard.owner_account_id:
            raise Forbidden('This account cannot be deleted.')

        display_name = account.display_name
        report = {'userId': account.id, 'steps': []}

        report['steps'].append(self._deprovision_external(account))

        for step_name, step in (('delete_requests', self._delete_requests),
                                ('delete_account', self._delete_account)):
            try:
                step(account)
                report['steps'].append({'step': step_name, 'outcome': StepOutcome.SUCCEEDED.value})
            except Exception as e:
                db.session.rollback()
                current_app.logger.error(f"DeletionSaga: step '{step_name}' failed for user {account_id}: {e}",
                                         exc_info=True)
                report['steps'].append({'step': step_name, 'outcome': StepOutcome.FAILED_FATAL.value,
                                        'message': str(e)})
                log_event(EventType.ERROR_GENERAL, f"Deletion of user {account_id} stopped at '{step_name}'.",
                          details=report, user_id=account_id)
                raise DeletionFailed(f"Deletion stopped at '{step_name}': {e}", report) from e

        log_event(EventType.USER_DELETED, f"User '{display_name}' deleted.", details=report,
                  actor_id=getattr(actor, 'id', None), user_id=account_id)
        return report

    def _deprovision_external(self, account: Account) -> Dict[str, Any]:
        step = {'step': 'deprovision_external'}
        if not account.is_alt_provider_account or not account.jellyfin_user_id:
            step['outcome'] = StepOutcome.SKIPPED_ALREADY_ABSENT.value
            return step

        try:
            self._jellyfin().delete_user(account.jellyfin_user_id)
            step['outcome'] = StepOutcome.SUCCEEDED.value
        except ProviderError as e:
            if e.is_not_found:
                current_app.logger.warning(
                    f"DeletionSaga: Jellyfin user {account.jellyfin_user_id} not found, continuing with local deletion")
                step['outcome'] = StepOutcome.SKIPPED_ALREADY_ABSENT.value
            else:
                current_app.logger.error(
                    f"DeletionSaga: failed to delete Jellyfin user {account.jellyfin_user_id}: {e}")
                step['outcome'] = StepOutcome.FAILED_NONFATAL.value
                step['message'] = e.message
        except Unconfigured as e:
            current_app.logger.error(f"DeletionSaga: could not deprovision Jellyfin user: {e}")
            step['outcome'] = StepOutcome.FAILED_NONFATAL.value
            step['message'] = e.message
        return step

    @staticmethod
    def _delete_requests(account: Account):
        MediaRequest.query.filter_by(requested_by_id=account.id).delete(synchronize_session=False)
        db.session.commit()

    @staticmethod
    def _delete_account(account: Account):
        db.session.delete(account)
        db.session.commit()
