import pytest

from seerr_users import create_app
from seerr_users.extensions import db
from seerr_users.models import Account, AccountSettings, AccountType
from seerr_users.permissions import Permission


@pytest.fixture()
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        owner = Account(
            id=1,
            email='owner@example.com',
            username='owner',
            user_type=AccountType.PLEX,
            permissions=int(Permission.ADMIN),
            plex_id=1000,
            plex_token='owner-token',
        )
        owner.set_password('owner-password')
        owner.settings = AccountSettings(locale='en')
        db.session.add(owner)
        db.session.commit()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def owner(app):
    return db.session.get(Account, 1)


@pytest.fixture()
def make_account(app):
    """Factory for accounts with a settings row, the way every write path stores them."""
    def _make(email, permissions=int(Permission.REQUEST), user_type=AccountType.LOCAL, locale='en', **fields):
        account = Account(email=email, permissions=permissions, user_type=user_type, **fields)
        account.settings = AccountSettings(locale=locale)
        db.session.add(account)
        db.session.commit()
        return account
    return _make


@pytest.fixture()
def login(client):
    """Log the test client in as ``account`` through the Flask-Login session."""
    def _login(account):
        with client.session_transaction() as session:
            session['_user_id'] = str(account.id)
            session['_fresh'] = True
        return client
    return _login


class FakeJellyfin:
    """In-memory stand-in for JellyfinService."""

    def __init__(self, users=None):
        self.users = list(users or [])
        self.deleted = []
        self.passwords = {}
        self.delete_error = None
        self.create_error = None

    def list_users(self):
        return list(self.users)

    def create_user(self, name, password):
        if self.create_error:
            raise self.create_error
        user = {'Id': f'jf-{len(self.users) + 1}', 'Name': name}
        self.users.append(user)
        self.passwords[user['Id']] = password
        return user

    def delete_user(self, user_id):
        if self.delete_error:
            raise self.delete_error
        self.deleted.append(user_id)

    def reset_password(self, user_id, new_password):
        self.passwords[user_id] = new_password


class FakePlex:
    """In-memory stand-in for PlexTvService."""

    def __init__(self, shared=None, access=None, watchlist=None):
        self.shared = list(shared or [])
        self.access = set(access or [])
        self.watchlist = watchlist or {'offset': 0, 'size': 20, 'totalSize': 0, 'items': []}
        self.watchlist_calls = []

    def list_shared_accounts(self):
        return list(self.shared)

    def verify_access(self, remote_id):
        return remote_id in self.access

    def get_watchlist_page(self, offset=0, size=20):
        self.watchlist_calls.append((offset, size))
        return self.watchlist


class FakeTautulli:
    """In-memory stand-in for TautulliService."""

    def __init__(self, play_count=0, history=None, error=None):
        self.play_count = play_count
        self.history = list(history or [])
        self.error = error

    def get_aggregate_play_count(self, plex_id):
        if self.error:
            raise self.error
        return self.play_count

    def get_watch_history(self, plex_id, max_records=20):
        if self.error:
            raise self.error
        return list(self.history)


class FakeNotifications:
    """Records mails instead of sending them."""

    def __init__(self, error=None, enabled=True):
        self.sent = []
        self.error = error
        self.enabled = enabled

    def is_enabled(self):
        return self.enabled

    def send_templated(self, template, recipient, locale, fields):
        if self.error:
            raise self.error
        self.sent.append((template, recipient, locale, fields))

    def send_templated_async(self, template, recipient, locale, fields):
        self.sent.append((template, recipient, locale, fields))
        return None
