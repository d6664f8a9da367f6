# tests/test_admin.py
from datetime import timedelta

from db.extensions import db
from models.liveSession import VendorLiveSession
from models.notification import Notification
from models.vendor import Vendor
from models.vendorFeedback import VendorFeedback
from services.live_status import utcnow


def test_admin_routes_require_cookie(client):
    assert client.get('/api/admin/vendors').status_code == 401
    assert client.get('/api/admin/me').get_json() == {'success': False, 'error': 'Unauthorized access'}


def test_login_sets_cookie_and_me(admin_client):
    body = admin_client.get('/api/admin/me').get_json()
    assert body['admin']['username'] == 'admin'


def test_logout_clears_cookie(admin_client):
    admin_client.delete('/api/admin/login')
    assert admin_client.get('/api/admin/me').status_code == 401


def test_login_rate_limited_after_five_failures(client, mock_redis):
    for _ in range(5):
        response = client.post('/api/admin/login', json={'username': 'admin', 'password': 'wrong'})
        assert response.status_code == 401

    response = client.post('/api/admin/login', json={'username': 'admin', 'password': 'wrong'})
    assert response.status_code == 429
    assert response.headers['Retry-After'] == '900'


def test_approve_and_reject_vendor(admin_client, make_vendor):
    vendor = make_vendor(status='pending')
    vendor_id, owner_id = vendor.id, vendor.user_id

    response = admin_client.put(f'/api/admin/vendors/{vendor_id}/status', json={'status': 'approved'})
    assert response.status_code == 200
    body = response.get_json()['vendor']
    assert body['status'] == 'approved'
    assert body['approved_at'] is not None

    response = admin_client.put(f'/api/admin/vendors/{vendor_id}/status',
                                json={'status': 'rejected', 'reason': 'Missing permit'})
    body = response.get_json()['vendor']
    assert body['status'] == 'rejected'
    assert body['approved_at'] is None
    assert body['rejection_reason'] == 'Missing permit'

    notifications = Notification.query.filter_by(recipient_id=owner_id).all()
    assert len(notifications) == 2
    assert 'Missing permit' in notifications[-1].message

    bad = admin_client.put(f'/api/admin/vendors/{vendor_id}/status', json={'status': 'banned'})
    assert bad.status_code == 400


def test_batch_approve_and_reject_vendors(admin_client, make_vendor):
    first = make_vendor('owner-a', business_name='Alpha', status='pending')
    second = make_vendor('owner-b', business_name='Beta', status='pending')
    ids = [first.id, second.id]

    response = admin_client.patch('/api/admin/vendors/batch', json={'vendorIds': ids, 'action': 'approve'})
    assert response.status_code == 200
    body = response.get_json()
    assert body['updated'] == 2
    assert {v['status'] for v in body['vendors']} == {'approved'}
    assert all(v['approved_at'] is not None for v in body['vendors'])

    response = admin_client.patch('/api/admin/vendors/batch',
                                  json={'vendorIds': ids, 'action': 'reject', 'reason': 'Expired permit'})
    body = response.get_json()
    assert {v['status'] for v in body['vendors']} == {'rejected'}
    assert {v['rejection_reason'] for v in body['vendors']} == {'Expired permit'}

    for owner_id in ('owner-a', 'owner-b'):
        notifications = Notification.query.filter_by(recipient_id=owner_id).all()
        assert len(notifications) == 2
        assert 'Expired permit' in notifications[-1].message


def test_batch_update_validation(admin_client, make_vendor):
    vendor = make_vendor(status='pending')
    vendor_id = vendor.id
    url = '/api/admin/vendors/batch'

    assert admin_client.patch(url, json={'vendorIds': [], 'action': 'approve'}).status_code == 400
    assert admin_client.patch(url, json={'vendorIds': ['1'], 'action': 'approve'}).status_code == 400
    assert admin_client.patch(url, json={'vendorIds': [vendor_id], 'action': 'ban'}).status_code == 400

    response = admin_client.patch(url, json={'vendorIds': [vendor_id, 9999], 'action': 'approve'})
    assert response.status_code == 404
    assert response.get_json()['missing'] == [9999]
    assert db.session.get(Vendor, vendor_id).status == 'pending'


def test_vendor_list_filters_and_paginates(admin_client, make_vendor):
    make_vendor('a', business_name='Alpha', status='pending')
    make_vendor('b', business_name='Beta', status='approved')
    make_vendor('c', business_name='Gamma', status='approved')

    body = admin_client.get('/api/admin/vendors?status=approved&limit=1').get_json()
    assert body['pagination']['total'] == 2
    assert body['pagination']['totalPages'] == 2
    assert len(body['vendors']) == 1

    body = admin_client.get('/api/admin/vendors?search=alp').get_json()
    assert [v['business_name'] for v in body['vendors']] == ['Alpha']


def test_vendor_status_overview(admin_client, make_vendor):
    live = make_vendor('live-owner', business_name='Live')
    make_vendor('idle-owner', business_name='Idle')
    db.session.add(VendorLiveSession(vendor_id=live.id, latitude=1.0, longitude=1.0,
                                     start_time=utcnow() - timedelta(hours=8)))
    db.session.commit()

    body = admin_client.get('/api/admin/vendor-status').get_json()
    statuses = {row['business_name']: row['status'] for row in body['vendors']}
    assert statuses == {'Idle': 'offline', 'Live': 'closing'}
    assert body['counts'] == {'offline': 1, 'closing': 1}


def test_feedback_listing_stats_and_update(admin_client, make_vendor):
    vendor = make_vendor()
    db.session.add_all([
        VendorFeedback(vendor_id=vendor.id, message='Map is slow', feedback_type='BUG', priority='high'),
        VendorFeedback(vendor_id=vendor.id, message='Love it', feedback_type='GENERAL'),
    ])
    db.session.commit()

    body = admin_client.get('/api/admin/feedback?type=bug').get_json()
    assert [f['message'] for f in body['feedback']] == ['Map is slow']
    feedback_id = body['feedback'][0]['id']

    stats = admin_client.get('/api/admin/feedback?stats=true').get_json()['stats']
    assert stats['total'] == 2
    assert stats['byStatus']['pending'] == 2
    assert stats['byType'] == {'BUG': 1, 'GENERAL': 1}

    response = admin_client.put('/api/admin/feedback', json={'id': feedback_id, 'status': 'resolved'})
    assert response.get_json()['feedback']['status'] == 'resolved'
    assert admin_client.put('/api/admin/feedback', json={'id': feedback_id, 'status': 'done'}).status_code == 400


def test_notifications_mark_read(admin_client):
    db.session.add_all([
        Notification(type='vendor_signup', message='New vendor'),
        Notification(type='feedback', message='New feedback'),
    ])
    db.session.commit()

    body = admin_client.get('/api/admin/notifications?type=unread').get_json()
    assert body['total'] == 2
    first_id = body['notifications'][0]['id']

    admin_client.patch('/api/admin/notifications', json={'action': 'mark_read', 'notificationId': first_id})
    assert admin_client.get('/api/admin/notifications/stats').get_json()['stats']['unread'] == 1

    response = admin_client.patch('/api/admin/notifications', json={'action': 'mark_all_read'})
    assert response.get_json()['updated'] == 1
    assert admin_client.patch('/api/admin/notifications', json={'action': 'archive'}).status_code == 400


def test_settings_validation(admin_client):
    assert admin_client.get('/api/admin/settings').get_json()['settings']['require_vendor_approval'] is True

    assert admin_client.put('/api/admin/settings', json={}).status_code == 400
    assert admin_client.put('/api/admin/settings', json={'maintenance_mode': 'yes'}).status_code == 400

    response = admin_client.put('/api/admin/settings', json={'allow_auto_vendor_approval': True})
    assert response.get_json()['settings']['allow_auto_vendor_approval'] is True


def test_analytics(admin_client, make_vendor):
    vendor = make_vendor()
    db.session.add(VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                                     start_time=utcnow() - timedelta(hours=1)))
    db.session.commit()

    body = admin_client.get('/api/admin/analytics?dateRange=7d').get_json()
    assert len(body['userGrowth']) == 7
    assert sum(day['count'] for day in body['liveSessions']) == 1
    assert body['topVendors'][0]['sessions'] == 1
    assert body['summary']['activeSessions'] == 1

    assert admin_client.get('/api/admin/analytics?dateRange=1y').status_code == 400


def test_expire_endpoint(admin_client, make_vendor):
    vendor = make_vendor()
    db.session.add(VendorLiveSession(vendor_id=vendor.id, latitude=1.0, longitude=1.0,
                                     start_time=utcnow() - timedelta(hours=1),
                                     auto_end_time=utcnow() - timedelta(minutes=1)))
    db.session.commit()

    body = admin_client.post('/api/admin/live-sessions/expire').get_json()
    assert body['ended'] == 1
