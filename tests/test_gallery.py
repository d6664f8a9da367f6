# tests/test_gallery.py
from io import BytesIO
from unittest.mock import patch

import pytest

from db.extensions import db
from models.vendorImage import VendorImage
from services.cloudinary_services import CloudinaryImageService


def image_file(name='photo.jpg', mimetype='image/jpeg', size=1024):
    return (BytesIO(b'\xff' * size), name, mimetype)


def uploaded(public_id):
    return {'success': True, 'url': f'https://cdn.example.com/{public_id}.jpg', 'public_id': public_id, 'error': None}


@pytest.fixture
def vendor(make_vendor):
    return make_vendor()


def add_images(vendor, count):
    images = [
        VendorImage(vendor_id=vendor.id, url=f'https://cdn.example.com/{i}.jpg', public_id=f'img-{i}', position=i)
        for i in range(count)
    ]
    db.session.add_all(images)
    db.session.commit()
    return images


def upload(client, headers, files):
    return client.post(
        '/api/vendors/gallery/upload',
        data={'images': files},
        headers=headers,
        content_type='multipart/form-data'
    )


def test_upload_saves_images_in_order(client, auth_headers, vendor):
    with patch.object(CloudinaryImageService, 'upload_vendor_image',
                      side_effect=[uploaded('a'), uploaded('b')]):
        response = upload(client, auth_headers(vendor.user_id), [image_file('a.jpg'), image_file('b.png', 'image/png')])

    assert response.status_code == 201
    images = response.get_json()['images']
    assert [img['position'] for img in images] == [0, 1]
    assert images[0]['url'].endswith('a.jpg')


def test_failed_upload_cleans_up_earlier_uploads(client, auth_headers, vendor):
    failure = {'success': False, 'url': None, 'public_id': None, 'error': 'quota exceeded'}
    with patch.object(CloudinaryImageService, 'upload_vendor_image', side_effect=[uploaded('first'), failure]), \
            patch.object(CloudinaryImageService, 'cleanup_uploads', return_value=1) as cleanup:
        response = upload(client, auth_headers(vendor.user_id), [image_file('a.jpg'), image_file('b.jpg')])

    assert response.status_code == 500
    cleanup.assert_called_once_with(['first'])
    assert VendorImage.query.filter_by(vendor_id=vendor.id).count() == 0


def test_rejects_wrong_type_and_oversized_files(client, auth_headers, vendor):
    headers = auth_headers(vendor.user_id)
    with patch.object(CloudinaryImageService, 'upload_vendor_image') as upload_mock:
        assert upload(client, headers, [image_file('a.gif', 'image/gif')]).status_code == 400
        assert upload(client, headers, [image_file(size=5 * 1024 * 1024 + 1)]).status_code == 400
    upload_mock.assert_not_called()


def test_gallery_limit(client, auth_headers, vendor):
    add_images(vendor, 9)
    with patch.object(CloudinaryImageService, 'upload_vendor_image') as upload_mock:
        response = upload(client, auth_headers(vendor.user_id), [image_file('a.jpg'), image_file('b.jpg')])
    assert response.status_code == 400
    upload_mock.assert_not_called()


def test_reorder_requires_permutation(client, auth_headers, vendor):
    images = add_images(vendor, 3)
    ids = [img.id for img in images]
    headers = auth_headers(vendor.user_id)

    response = client.post('/api/vendors/gallery/reorder', json={'imageIds': ids[:2]}, headers=headers)
    assert response.status_code == 400

    response = client.post('/api/vendors/gallery/reorder', json={'imageIds': list(reversed(ids))}, headers=headers)
    assert response.status_code == 200
    assert [img['id'] for img in response.get_json()['images']] == list(reversed(ids))


def test_update_title_and_captions_limits(client, auth_headers, vendor):
    image = add_images(vendor, 1)[0]
    headers = auth_headers(vendor.user_id)

    response = client.post('/api/vendors/gallery/update-title',
                           json={'imageId': image.id, 'title': 'x' * 101}, headers=headers)
    assert response.status_code == 400

    response = client.post('/api/vendors/gallery/update-title',
                           json={'imageId': image.id, 'title': ' Lunch rush '}, headers=headers)
    assert response.get_json()['image']['title'] == 'Lunch rush'

    response = client.post('/api/vendors/gallery/captions',
                           json={'captions': {str(image.id): 'y' * 501}}, headers=headers)
    assert response.status_code == 400

    response = client.post('/api/vendors/gallery/captions',
                           json={'captions': {str(image.id): 'Best tacos'}}, headers=headers)
    assert response.get_json()['images'][0]['caption'] == 'Best tacos'


def test_delete_image_compacts_positions(client, auth_headers, vendor):
    images = add_images(vendor, 3)
    with patch.object(CloudinaryImageService, 'delete_image', return_value={'success': True}) as delete_mock:
        response = client.post('/api/vendors/gallery/delete', json={'imageId': images[0].id},
                               headers=auth_headers(vendor.user_id))

    assert response.status_code == 200
    delete_mock.assert_called_once_with('img-0')
    assert [img['position'] for img in response.get_json()['images']] == [0, 1]


def test_other_users_cannot_touch_gallery(client, auth_headers, vendor):
    image = add_images(vendor, 1)[0]
    response = client.post('/api/vendors/gallery/update-title',
                           json={'imageId': image.id, 'title': 'hijack'}, headers=auth_headers('someone-else'))
    assert response.status_code == 404
