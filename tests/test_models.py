from seerr_users.models import Account, EventType, HistoryLog, Setting, SettingValueType
from seerr_users.permissions import Permission
from seerr_users.utils.helpers import get_first_name, log_event
from seerr_users.utils.timezone_utils import isoformat, utcnow


def test_setting_row_overrides_config(app):
    assert Setting.get('DEFAULT_PERMISSIONS') == 32

    Setting.set('DEFAULT_PERMISSIONS', 96, SettingValueType.INTEGER)

    assert Setting.get('DEFAULT_PERMISSIONS') == 96
    assert app.config['DEFAULT_PERMISSIONS'] == 96


def test_setting_defaults(app):
    assert Setting.get('NOT_A_KEY', 'fallback') == 'fallback'
    assert Setting.get('TAUTULLI_HOSTNAME', 'unset') == 'unset'
    Setting.set('MAIL_ENABLED', True, SettingValueType.BOOLEAN)
    assert Setting.get_bool('MAIL_ENABLED') is True


def test_display_name_fallback_chain():
    account = Account(email='Someone@Example.com')
    assert account.email == 'someone@example.com'
    assert account.display_name == 'someone@example.com'
    account.jellyfin_username = 'jelly'
    assert account.display_name == 'jelly'
    account.plex_username = 'plexy'
    assert account.display_name == 'plexy'
    account.username = 'Named'
    assert account.display_name == 'Named'


def test_account_permission_check():
    account = Account(email='a@example.com', permissions=int(Permission.MANAGE_USERS))
    assert account.has_permission(Permission.MANAGE_USERS)
    assert not account.has_permission([Permission.MANAGE_USERS, Permission.MANAGE_REQUESTS])
    assert account.has_permission([Permission.MANAGE_USERS, Permission.MANAGE_REQUESTS], type='or')


def test_password_hashing():
    account = Account(email='a@example.com')
    assert not account.check_password('anything')
    account.set_password('s3cret')
    assert account.check_password('s3cret')
    assert not account.check_password('wrong')


def test_log_event_writes_history(app):
    log_event(EventType.USER_DELETED, 'User removed.', details={'userId': 5}, actor_id=1, user_id=5)
    entry = HistoryLog.query.one()
    assert entry.event_type == EventType.USER_DELETED
    assert entry.details == {'userId': 5}
    assert (entry.actor_id, entry.target_user_id) == (1, 5)


def test_log_event_ignores_unknown_types(app):
    log_event('USER_DELETED', 'not an enum')
    assert HistoryLog.query.count() == 0


def test_first_name_for_greetings():
    assert get_first_name('john.doe') == 'John'
    assert get_first_name('johndoe') == 'Johndoe'
    assert get_first_name('') == ''


def test_isoformat_is_utc():
    assert isoformat(None) is None
    assert isoformat(utcnow()).endswith('Z')
