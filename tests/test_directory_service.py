from datetime import datetime, timezone

import pytest

from seerr_users.errors import NotFound
from seerr_users.extensions import db
from seerr_users.models import MediaRequest, MediaType, RequestStatus
from seerr_users.permissions import Permission
from seerr_users.services.directory_service import UserDirectory
from seerr_users.utils.helpers import page_info


def _add_requests(account, count):
    for _ in range(count):
        db.session.add(MediaRequest(media_type=MediaType.MOVIE, status=RequestStatus.PENDING,
                                    requested_by_id=account.id))
    db.session.commit()


def test_display_name_sort_uses_fallback_chain(make_account):
    make_account('delta@example.com')
    make_account('x1@example.com', jellyfin_username='charlie')
    make_account('x2@example.com', plex_username='Alpha')
    make_account('x3@example.com', username='Bravo')

    result = UserDirectory.list_accounts(skip=0, take=10, sort='displayname',
                                         caller_permissions=int(Permission.ADMIN))
    names = [row['displayName'] for row in result['results']]
    assert names == ['Alpha', 'Bravo', 'charlie', 'delta@example.com', 'owner']


def test_empty_username_falls_through(make_account):
    make_account('zed@example.com', username='', plex_username='aaron')
    result = UserDirectory.list_accounts(sort='displayname', caller_permissions=int(Permission.ADMIN))
    assert result['results'][0]['displayName'] == 'aaron'


def test_requests_sort_and_counts(make_account, owner):
    busy = make_account('busy@example.com')
    quiet = make_account('quiet@example.com')
    _add_requests(busy, 3)
    _add_requests(quiet, 1)

    result = UserDirectory.list_accounts(sort='requests', caller_permissions=int(Permission.ADMIN))
    assert [(row['id'], row['requestCount']) for row in result['results']] == [
        (busy.id, 3), (quiet.id, 1), (owner.id, 0),
    ]


def test_default_sort_is_id_and_pages(make_account):
    for index in range(4):
        make_account(f'user{index}@example.com')

    result = UserDirectory.list_accounts(skip=2, take=2, caller_permissions=int(Permission.ADMIN))
    assert result['pageInfo'] == {'pages': 3, 'pageSize': 2, 'results': 5, 'page': 2}
    assert [row['id'] for row in result['results']] == [3, 4]


def _ids_without(result, account):
    return [row['id'] for row in result['results'] if row['id'] != account.id]


def test_updated_sort_is_newest_first(make_account, owner):
    march = make_account('march@example.com', updated_at=datetime(2024, 3, 1, tzinfo=timezone.utc))
    may = make_account('may@example.com', updated_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
    also_march = make_account('march2@example.com', updated_at=datetime(2024, 3, 1, tzinfo=timezone.utc))

    result = UserDirectory.list_accounts(sort='updated', caller_permissions=int(Permission.ADMIN))
    assert [row['id'] for row in result['results']] == [owner.id, may.id, march.id, also_march.id]


def test_subscription_status_sort_is_ascending(make_account, owner):
    expired = make_account('expired@example.com', subscription_status='expired')
    active = make_account('active@example.com', subscription_status='active')
    also_active = make_account('active2@example.com', subscription_status='active')

    result = UserDirectory.list_accounts(sort='subscriptionStatus', caller_permissions=int(Permission.ADMIN))
    assert _ids_without(result, owner) == [active.id, also_active.id, expired.id]


def test_subscription_expiration_sort_is_ascending(make_account, owner):
    late = make_account('late@example.com',
                        subscription_expiration_date=datetime(2025, 12, 31, tzinfo=timezone.utc))
    early = make_account('early@example.com',
                         subscription_expiration_date=datetime(2025, 1, 31, tzinfo=timezone.utc))
    also_early = make_account('early2@example.com',
                              subscription_expiration_date=datetime(2025, 1, 31, tzinfo=timezone.utc))

    result = UserDirectory.list_accounts(sort='subscriptionExpirationDate', caller_permissions=int(Permission.ADMIN))
    assert _ids_without(result, owner) == [early.id, also_early.id, late.id]


def test_suspicious_activity_sort_is_ascending(make_account, owner):
    flagged = make_account('flagged@example.com', suspicious_activity_count=5)
    clean = make_account('clean@example.com')
    watched = make_account('watched@example.com', suspicious_activity_count=2)

    result = UserDirectory.list_accounts(sort='suspiciousActivityCount', caller_permissions=int(Permission.ADMIN))
    assert [row['id'] for row in result['results']] == [owner.id, clean.id, watched.id, flagged.id]


def test_private_fields_follow_caller_permissions(make_account):
    account = make_account('private@example.com', plex_token='secret-token')

    public = UserDirectory.list_accounts(caller_permissions=int(Permission.REQUEST))['results']
    elevated = UserDirectory.list_accounts(caller_permissions=int(Permission.MANAGE_USERS))['results']

    assert all('email' not in row for row in public)
    row = next(r for r in elevated if r['id'] == account.id)
    assert row['email'] == 'private@example.com'
    assert row['settings'] == {'locale': 'en'}
    assert 'plexToken' not in row and 'passwordHash' not in row


def test_get_account_self_sees_private_fields(make_account):
    account = make_account('me@example.com')
    view = UserDirectory.get_account(account.id, account)
    assert view['email'] == 'me@example.com'
    assert view['requestCount'] == 0


def test_get_account_missing(app):
    with pytest.raises(NotFound):
        UserDirectory.get_account_or_404(999)


def test_list_requests_newest_first(make_account):
    account = make_account('req@example.com')
    _add_requests(account, 3)

    result = UserDirectory.list_requests(account.id, skip=0, take=2)
    assert result['pageInfo']['results'] == 3
    assert result['pageInfo']['pages'] == 2
    ids = [row['id'] for row in result['results']]
    assert ids == sorted(ids, reverse=True)


def test_page_info_arithmetic():
    assert page_info(0, 10, 0) == {'pages': 0, 'pageSize': 10, 'results': 0, 'page': 1}
    assert page_info(21, 10, 20)['page'] == 3
    assert page_info(21, 10, 20)['pages'] == 3
