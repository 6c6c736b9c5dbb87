from conftest import FakeJellyfin, FakePlex
from seerr_users.extensions import db
from seerr_users.models import Account, AccountType, MediaRequest, MediaType, RequestStatus
from seerr_users.permissions import Permission
from seerr_users.services.provider_factory import ProviderFactory

API = '/api/v1/user'


def test_requires_login(client):
    response = client.get(f'{API}/')
    assert response.status_code == 401
    assert response.get_json()['errors'] == ['UNAUTHORIZED']


def test_login_and_me(client, owner):
    response = client.post('/auth/login', json={'email': 'OWNER@example.com', 'password': 'owner-password'})
    assert response.status_code == 200
    assert response.get_json()['email'] == 'owner@example.com'

    me = client.get('/auth/me').get_json()
    assert me['id'] == owner.id


def test_login_rejects_bad_password(client, owner):
    response = client.post('/auth/login', json={'email': 'owner@example.com', 'password': 'nope'})
    assert response.status_code == 401
    assert response.get_json()['errors'] == ['INVALID_CREDENTIALS']


def test_list_users_requires_manage_users(login, make_account):
    member = make_account('member@example.com')
    response = login(member).get(f'{API}/')
    assert response.status_code == 403
    assert response.get_json() == {'message': 'You do not have permission to access this endpoint.',
                                   'errors': ['FORBIDDEN']}


def test_list_users(login, owner, make_account):
    make_account('second@example.com', username='Second')

    body = login(owner).get(f'{API}/?take=1&skip=1&sort=displayname').get_json()

    assert body['pageInfo'] == {'pages': 2, 'pageSize': 1, 'results': 2, 'page': 2}
    assert [row['displayName'] for row in body['results']] == ['Second']
    assert body['results'][0]['email'] == 'second@example.com'


def test_get_user_self_and_other(login, make_account):
    member = make_account('member@example.com')
    other = make_account('other@example.com')
    client = login(member)

    own = client.get(f'{API}/{member.id}')
    assert own.status_code == 200
    assert own.get_json()['email'] == 'member@example.com'
    assert client.get(f'{API}/{other.id}').status_code == 403


def test_get_missing_user(login, owner):
    response = login(owner).get(f'{API}/999')
    assert response.status_code == 404
    assert response.get_json() == {'message': 'User not found.', 'errors': ['NOT_FOUND']}


def test_create_local_user(login, owner):
    client = login(owner)
    response = client.post(f'{API}/', json={'email': 'fresh@example.com', 'username': 'Fresh', 'password': 'pw'})
    assert response.status_code == 201
    assert response.get_json()['displayName'] == 'Fresh'

    duplicate = client.post(f'{API}/', json={'email': 'FRESH@example.com', 'password': 'pw'})
    assert duplicate.status_code == 409
    assert duplicate.get_json()['errors'] == ['USER_EXISTS']


def test_user_requests_visibility(login, make_account):
    viewer = make_account('viewer@example.com', permissions=int(Permission.REQUEST_VIEW))
    target = make_account('target@example.com')
    db.session.add(MediaRequest(media_type=MediaType.MOVIE, status=RequestStatus.PENDING,
                                requested_by_id=target.id))
    db.session.commit()

    body = login(viewer).get(f'{API}/{target.id}/requests').get_json()
    assert body['pageInfo']['results'] == 1
    assert body['results'][0]['type'] == 'movie'


def test_quota_needs_both_permissions(login, make_account):
    manager = make_account('manager@example.com', permissions=int(Permission.MANAGE_USERS))
    target = make_account('target@example.com')
    assert login(manager).get(f'{API}/{target.id}/quota').status_code == 403


def test_bulk_update_skips_owner(login, owner, make_account):
    manager = make_account('manager@example.com', permissions=int(Permission.MANAGE_USERS))
    target = make_account('target@example.com')

    response = login(manager).put(f'{API}/', json={'ids': [owner.id, target.id],
                                                   'permissions': int(Permission.VOTE)})

    assert response.status_code == 200
    assert [row['id'] for row in response.get_json()] == [target.id]
    assert db.session.get(Account, owner.id).permissions == int(Permission.ADMIN)


def test_bulk_update_validates_body(login, owner):
    response = login(owner).put(f'{API}/', json={'ids': 'all', 'permissions': 2})
    assert response.status_code == 400
    assert response.get_json()['errors'] == ['INVALID_REQUEST']


def test_single_update_cannot_grant_admin(login, make_account):
    manager = make_account('manager@example.com', permissions=int(Permission.MANAGE_USERS))
    target = make_account('target@example.com')

    response = login(manager).put(f'{API}/{target.id}', json={'permissions': int(Permission.ADMIN)})
    assert response.status_code == 403
    assert response.get_json()['message'] == 'You do not have permission to grant this level of access'


def test_delete_user_report(login, owner, make_account, monkeypatch):
    target_id = make_account('jf@example.com', user_type=AccountType.JELLYFIN, jellyfin_user_id='jf-1').id
    jellyfin = FakeJellyfin()
    monkeypatch.setattr(ProviderFactory, 'create_jellyfin', lambda: jellyfin)

    response = login(owner).delete(f'{API}/{target_id}')

    assert response.status_code == 200
    body = response.get_json()
    assert body['userId'] == target_id
    assert db.session.get(Account, target_id) is None
    assert [step['outcome'] for step in body['steps']] == ['succeeded', 'succeeded', 'succeeded']
    assert jellyfin.deleted == ['jf-1']


def test_delete_owner_forbidden(login, owner):
    assert login(owner).delete(f'{API}/{owner.id}').status_code == 403


def test_provision_jellyfin_user(login, owner, monkeypatch):
    monkeypatch.setattr(ProviderFactory, 'create_jellyfin', lambda: FakeJellyfin())

    response = login(owner).post(f'{API}/jellyfinuser', json={'username': 'john.doe', 'password': 'pw'})

    assert response.status_code == 201
    body = response.get_json()
    assert body['password'] == 'pw'
    assert body['user']['displayName'] == 'John DOE'
    assert body['locale'] == 'en'


def test_import_from_jellyfin_requires_list(login, owner):
    response = login(owner).post(f'{API}/import-from-jellyfin', json={'jellyfinUserIds': 'a1'})
    assert response.status_code == 400


def test_import_from_plex(login, owner, monkeypatch):
    plex = FakePlex(shared=[{'id': 10, 'email': 'alice@example.com', 'username': 'alice', 'title': 'alice',
                             'thumb': None}], access={10})
    monkeypatch.setattr(ProviderFactory, 'create_plex', lambda token: plex)

    response = login(owner).post(f'{API}/import-from-plex', json={})

    assert response.status_code == 201
    assert [row['plexUsername'] for row in response.get_json()] == ['alice']


def test_welcome_mail_requires_admin(login, make_account):
    manager = make_account('manager@example.com', permissions=int(Permission.MANAGE_USERS))
    target = make_account('jf@example.com', user_type=AccountType.JELLYFIN, jellyfin_user_id='jf-1')
    assert login(manager).post(f'{API}/{target.id}/welcome-mail').status_code == 403


def test_welcome_mail_for_plex_user(login, owner, make_account):
    target = make_account('plex@example.com', user_type=AccountType.PLEX)
    response = login(owner).post(f'{API}/{target.id}/welcome-mail')
    assert response.status_code == 400
    assert response.get_json() == {'message': 'User is not a Jellyfin user.', 'errors': ['INVALID_ACCOUNT_STATE']}


def test_welcome_mail_with_mail_disabled(login, owner, make_account, monkeypatch):
    target = make_account('jf@example.com', user_type=AccountType.JELLYFIN, jellyfin_user_id='jf-1')
    jellyfin = FakeJellyfin()
    monkeypatch.setattr(ProviderFactory, 'create_jellyfin', lambda: jellyfin)

    response = login(owner).post(f'{API}/{target.id}/welcome-mail')

    assert response.status_code == 400
    assert response.get_json()['errors'] == ['INVALID_REQUEST']
    assert jellyfin.passwords == {}


def test_watch_data_unconfigured(login, owner):
    response = login(owner).get(f'{API}/{owner.id}/watch_data')
    assert response.status_code == 404
    assert response.get_json() == {'message': 'Tautulli API not configured.', 'errors': ['NOT_CONFIGURED']}


def test_watchlist_for_self_without_token(login, make_account):
    member = make_account('member@example.com')
    body = login(member).get(f'{API}/{member.id}/watchlist').get_json()
    assert body == {'page': 1, 'totalPages': 1, 'totalResults': 0, 'results': []}


def test_unexpected_errors_are_generic(login, owner, monkeypatch):
    from seerr_users.services.directory_service import UserDirectory

    def broken(*args, **kwargs):
        raise RuntimeError('connection string leaked')

    monkeypatch.setattr(UserDirectory, 'list_accounts', broken)
    response = login(owner).get(f'{API}/')
    assert response.status_code == 500
    assert response.get_json() == {'message': 'Something went wrong.', 'errors': ['INTERNAL_ERROR']}
