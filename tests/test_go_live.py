# tests/test_go_live.py
from datetime import timedelta

import pytest

from db.extensions import db
from models.liveSession import VendorLiveSession
from models.platformSettings import PlatformSettings
from services.error_handler import AppError
from services.live_session_service import LiveSessionService
from services.live_status import utcnow


def go_live(client, headers, **body):
    payload = {'latitude': 40.7128, 'longitude': -74.006}
    payload.update(body)
    return client.post('/api/vendor/go-live', json=payload, headers=headers)


def test_requires_authentication(client):
    assert go_live(client, {}).status_code == 401


def test_requires_vendor_profile(client, auth_headers):
    response = go_live(client, auth_headers('no-vendor'))
    assert response.status_code == 404


def test_go_live_creates_session(client, auth_headers, make_vendor):
    vendor = make_vendor()
    response = go_live(client, auth_headers(vendor.user_id), duration=90, address='5th Ave')

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['session']['status'] == 'open'
    assert body['session']['was_scheduled_duration'] == 90
    assert body['session']['hasTimer'] is True
    assert VendorLiveSession.query.filter_by(vendor_id=vendor.id, is_active=True).count() == 1


def test_missing_coordinates_rejected(client, auth_headers, make_vendor):
    vendor = make_vendor()
    response = client.post('/api/vendor/go-live', json={}, headers=auth_headers(vendor.user_id))
    assert response.status_code == 400
    assert response.get_json()['type'] == 'GEOLOCATION'


def test_second_session_rejected(client, auth_headers, make_vendor):
    vendor = make_vendor()
    headers = auth_headers(vendor.user_id)
    assert go_live(client, headers).status_code == 201

    response = go_live(client, headers)
    assert response.status_code == 400
    assert VendorLiveSession.query.filter_by(vendor_id=vendor.id, is_active=True).count() == 1


def test_unique_index_violation_maps_to_conflict(app, make_vendor, monkeypatch):
    vendor = make_vendor()
    LiveSessionService.start_session(vendor, 40.0, -74.0)
    # Simulate the race: the pre-check misses the session created by another request
    monkeypatch.setattr(LiveSessionService, 'active_session_for', staticmethod(lambda vendor_id: None))

    with pytest.raises(AppError) as exc:
        LiveSessionService.start_session(vendor, 40.0, -74.0)
    assert exc.value.status_code == 409
    assert exc.value.code == 'ACTIVE_SESSION_EXISTS'


def test_pending_vendor_blocked_unless_auto_approval(client, auth_headers, make_vendor):
    vendor = make_vendor(status='pending')
    headers = auth_headers(vendor.user_id)
    response = go_live(client, headers)
    assert response.status_code == 400
    assert 'pending' in response.get_json()['error']

    PlatformSettings.current().allow_auto_vendor_approval = True
    db.session.commit()
    assert go_live(client, headers).status_code == 201


def test_can_go_live_rules():
    settings = PlatformSettings(require_vendor_approval=True, allow_auto_vendor_approval=False)
    assert LiveSessionService.can_go_live(' Approved ', settings)[0] is True
    assert LiveSessionService.can_go_live('active', settings)[0] is True
    assert LiveSessionService.can_go_live('rejected', settings)[0] is False

    settings.require_vendor_approval = False
    assert LiveSessionService.can_go_live('rejected', settings)[0] is True


def test_end_session(client, auth_headers, make_vendor):
    vendor = make_vendor()
    headers = auth_headers(vendor.user_id)
    go_live(client, headers)

    response = client.delete('/api/vendor/go-live', headers=headers)
    assert response.status_code == 200
    session = response.get_json()['session']
    assert session['is_active'] is False
    assert session['ended_by'] == 'vendor'

    assert client.delete('/api/vendor/go-live', headers=headers).status_code == 404


def test_status_endpoint(client, auth_headers, make_vendor):
    vendor = make_vendor()
    headers = auth_headers(vendor.user_id)

    body = client.get('/api/vendor/go-live', headers=headers).get_json()
    assert body['isLive'] is False
    assert body['session'] is None

    go_live(client, headers, duration=30)
    body = client.get('/api/vendor/go-live', headers=headers).get_json()
    assert body['isLive'] is True
    assert body['session']['status'] == 'open'
    assert 0 < body['session']['timeRemainingSeconds'] <= 30 * 60


def test_end_expired_sessions(app, make_vendor):
    now = utcnow()
    expired_vendor = make_vendor('owner-a')
    running_vendor = make_vendor('owner-b')
    db.session.add_all([
        VendorLiveSession(vendor_id=expired_vendor.id, latitude=1.0, longitude=1.0,
                          start_time=now - timedelta(hours=2), auto_end_time=now - timedelta(minutes=1)),
        VendorLiveSession(vendor_id=running_vendor.id, latitude=1.0, longitude=1.0,
                          start_time=now - timedelta(hours=2), auto_end_time=now + timedelta(hours=1)),
    ])
    db.session.commit()

    ended = LiveSessionService.end_expired_sessions(now)

    assert [s.vendor_id for s in ended] == [expired_vendor.id]
    assert ended[0].ended_by == 'timer'
    assert LiveSessionService.active_session_for(running_vendor.id) is not None


def test_expire_cli_command(app, make_vendor):
    now = utcnow()
    vendor = make_vendor()
    db.session.add(VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                                     start_time=now - timedelta(hours=1),
                                     auto_end_time=now - timedelta(minutes=5)))
    db.session.commit()

    result = app.test_cli_runner().invoke(args=['end-expired-sessions'])
    assert 'Ended 1 expired live sessions' in result.output


def test_expired_session_does_not_block_going_live(client, auth_headers, make_vendor):
    now = utcnow()
    vendor = make_vendor()
    stale = VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                              start_time=now - timedelta(hours=1),
                              auto_end_time=now - timedelta(minutes=10))
    db.session.add(stale)
    db.session.commit()
    stale_id = stale.id

    response = go_live(client, auth_headers(vendor.user_id))

    assert response.status_code == 201
    old = db.session.get(VendorLiveSession, stale_id)
    assert old.is_active is False
    assert old.ended_by == 'timer'
    assert VendorLiveSession.query.filter_by(vendor_id=vendor.id, is_active=True).count() == 1


def test_status_endpoint_ends_expired_session(client, auth_headers, make_vendor):
    now = utcnow()
    vendor = make_vendor()
    db.session.add(VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                                     start_time=now - timedelta(hours=1),
                                     auto_end_time=now - timedelta(minutes=10)))
    db.session.commit()

    body = client.get('/api/vendor/go-live', headers=auth_headers(vendor.user_id)).get_json()

    assert body['isLive'] is False
    assert body['session'] is None
    assert LiveSessionService.active_session_for(vendor.id) is None


def test_closing_session_is_not_reported_live(client, auth_headers, make_vendor):
    vendor = make_vendor()
    db.session.add(VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                                     start_time=utcnow() - timedelta(hours=8)))
    db.session.commit()

    body = client.get('/api/vendor/go-live', headers=auth_headers(vendor.user_id)).get_json()

    assert body['isLive'] is False
    assert body['session']['status'] == 'closing'
