# tests/test_map_data.py
import json
from datetime import timedelta

from db.extensions import db
from models.liveSession import VendorLiveSession
from models.staticLocation import VendorStaticLocation
from services.live_status import utcnow


def start_session(vendor, lat=40.7, lng=-74.0, hours_ago=1):
    db.session.add(VendorLiveSession(
        vendor_id=vendor.id,
        latitude=lat,
        longitude=lng,
        start_time=utcnow() - timedelta(hours=hours_ago),
        is_active=True
    ))
    db.session.commit()


def test_map_view_only_lists_live_vendors(client, make_vendor):
    live = make_vendor('owner-live', business_name='Live Tacos')
    make_vendor('owner-idle', business_name='Idle Tacos', latitude=40.0, longitude=-73.0)
    start_session(live)

    response = client.get('/api/vendors/map-data')
    assert response.status_code == 200
    assert response.headers['Cache-Control'] == 'no-cache, no-store, must-revalidate'

    body = response.get_json()
    assert [m['title'] for m in body['markers']] == ['Live Tacos']
    assert body['liveCount'] == 1
    marker = body['markers'][0]
    assert marker['isLive'] is True
    assert marker['status'] == 'open'
    assert marker['position'] == {'lat': 40.7, 'lng': -74.0}
    assert marker['categoryIcon'] == '🛒'


def test_list_view_shows_offline_vendor_at_static_location(client, make_vendor):
    vendor = make_vendor('owner-static', business_name='Corner Coffee', subcategory='coffee')
    db.session.add(VendorStaticLocation(vendor_id=vendor.id, address='Main St', latitude=34.05, longitude=-118.24))
    db.session.commit()

    body = client.get('/api/vendors/map-data?showAll=true').get_json()

    assert len(body['markers']) == 1
    marker = body['markers'][0]
    assert marker['status'] == 'offline'
    assert marker['isLive'] is False
    assert marker['position'] == {'lat': 34.05, 'lng': -118.24}
    assert marker['categoryIcon'] == '☕'
    assert body['liveCount'] == 0


def test_list_view_excludes_unlisted_and_unlocated_vendors(client, make_vendor):
    make_vendor('owner-pending', status='pending', latitude=1.0, longitude=1.0)
    make_vendor('owner-nowhere')

    body = client.get('/api/vendors/map-data?showAll=true').get_json()
    assert body['markers'] == []


def test_long_session_is_closing(client, make_vendor):
    vendor = make_vendor()
    start_session(vendor, hours_ago=8)

    marker = client.get('/api/vendors/map-data').get_json()['markers'][0]
    assert marker['status'] == 'closing'
    assert marker['isLive'] is False


def test_bounds_filter_and_bad_bounds_ignored(client, make_vendor):
    inside = make_vendor('owner-in', business_name='Inside')
    outside = make_vendor('owner-out', business_name='Outside')
    start_session(inside, lat=40.7, lng=-74.0)
    start_session(outside, lat=51.5, lng=-0.1)

    bounds = json.dumps({'north': 41, 'south': 40, 'east': -73, 'west': -75})
    body = client.get('/api/vendors/map-data', query_string={'bounds': bounds}).get_json()
    assert [m['title'] for m in body['markers']] == ['Inside']

    body = client.get('/api/vendors/map-data', query_string={'bounds': '{not json'}).get_json()
    assert len(body['markers']) == 2


def test_user_location_sorts_by_distance(client, make_vendor):
    far = make_vendor('owner-far', business_name='Far')
    near = make_vendor('owner-near', business_name='Near')
    start_session(far, lat=41.0, lng=-74.0)
    start_session(near, lat=40.701, lng=-74.0)

    body = client.get('/api/vendors/map-data?lat=40.7&lng=-74.0').get_json()
    assert [m['title'] for m in body['markers']] == ['Near', 'Far']
    assert body['markers'][0]['distance'].endswith('m')


def test_map_data_error_returns_empty_markers(client, monkeypatch):
    def explode(show_all):
        raise RuntimeError('database unavailable')

    monkeypatch.setattr('services.map_service.MapService.load_vendors', staticmethod(explode))
    response = client.get('/api/vendors/map-data')
    assert response.status_code == 500
    assert response.get_json()['markers'] == []


def test_vendor_detail_and_search(client, make_vendor):
    vendor = make_vendor(business_name='Sunrise Smoothies', description='Fresh fruit smoothies')
    start_session(vendor)

    response = client.get(f'/api/vendors/{vendor.id}')
    assert response.status_code == 200
    detail = response.get_json()['vendor']
    assert detail['isLive'] is True
    assert detail['detailedStatus'] == 'live'
    assert detail['live_session']['is_active'] is True

    assert client.get('/api/vendors/9999').status_code == 404

    results = client.get('/api/search/vendors?q=smooth').get_json()['vendors']
    assert [v['business_name'] for v in results] == ['Sunrise Smoothies']
    assert client.get('/api/search/vendors?q=pizza').get_json()['vendors'] == []
