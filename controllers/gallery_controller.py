# controllers/gallery_controller.py

from flask import Blueprint, request, jsonify, current_app, g
from db.extensions import db
from models.vendorImage import VendorImage
from services.auth import login_required
from services.cloudinary_services import CloudinaryImageService
from services.utils import file_size
from services.vendor_service import VendorService

gallery_bp = Blueprint('gallery', __name__)

TITLE_MAX_LENGTH = 100
CAPTION_MAX_LENGTH = 500


def _owned_vendor():
    return VendorService.for_user(g.current_user.id)


def _gallery_payload(vendor):
    return [image.to_dict() for image in vendor.images]


@gallery_bp.route('/vendors/gallery', methods=['GET'])
@login_required
def list_gallery():
    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404
    return jsonify({'success': True, 'images': _gallery_payload(vendor)}), 200


@gallery_bp.route('/vendors/gallery/upload', methods=['POST'])
@login_required
def upload_images():
    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404

    files = [f for f in request.files.getlist('images') if f and f.filename]
    if not files:
        return jsonify({'success': False, 'error': 'No images provided'}), 400

    max_images = current_app.config['GALLERY_MAX_IMAGES']
    max_size = current_app.config['GALLERY_MAX_FILE_SIZE']
    allowed_types = current_app.config['GALLERY_ALLOWED_TYPES']

    existing = len(vendor.images)
    if existing + len(files) > max_images:
        return jsonify({
            'success': False,
            'error': f'Gallery limit is {max_images} images; you have {existing}'
        }), 400

    for image in files:
        if image.mimetype not in allowed_types:
            return jsonify({
                'success': False,
                'error': f'{image.filename}: only JPEG, PNG and WebP images are allowed'
            }), 400
        if file_size(image) > max_size:
            return jsonify({
                'success': False,
                'error': f'{image.filename}: images must be {max_size // (1024 * 1024)}MB or smaller'
            }), 400

    uploaded = []
    try:
        for image in files:
            result = CloudinaryImageService.upload_vendor_image(image, vendor.id, kind='gallery')
            if not result['success']:
                raise RuntimeError(f"Upload of {image.filename} failed: {result['error']}")
            uploaded.append(result['public_id'])

            db.session.add(VendorImage(
                vendor_id=vendor.id,
                url=result['url'],
                public_id=result['public_id'],
                title='',
                caption='',
                position=existing
            ))
            existing += 1

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Gallery upload failed for vendor {vendor.id}: {str(e)}")
        if uploaded:
            removed = CloudinaryImageService.cleanup_uploads(uploaded)
            current_app.logger.info(f"Cleaned up {removed}/{len(uploaded)} orphaned uploads")
        return jsonify({'success': False, 'error': 'Failed to upload images'}), 500

    db.session.refresh(vendor)
    return jsonify({
        'success': True,
        'uploaded': len(uploaded),
        'images': _gallery_payload(vendor)
    }), 201


@gallery_bp.route('/vendors/gallery/delete', methods=['POST', 'DELETE'])
@login_required
def delete_image():
    data = request.get_json(silent=True) or {}
    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404

    image = VendorImage.query.filter_by(id=data.get('imageId'), vendor_id=vendor.id).first()
    if not image:
        return jsonify({'success': False, 'error': 'Image not found'}), 404

    image_id = image.id
    result = CloudinaryImageService.delete_image(image.public_id)
    if not result['success']:
        return jsonify({'success': False, 'error': result['error']}), 500

    try:
        db.session.delete(image)
        db.session.flush()
        # Close the gap left in the ordering
        for position, remaining in enumerate(
                VendorImage.query.filter_by(vendor_id=vendor.id).order_by(VendorImage.position).all()):
            remaining.position = position
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Deleting image {image_id} failed: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to delete image'}), 500

    db.session.refresh(vendor)
    return jsonify({'success': True, 'images': _gallery_payload(vendor)}), 200


@gallery_bp.route('/vendors/gallery/reorder', methods=['POST', 'PUT'])
@login_required
def reorder_images():
    data = request.get_json(silent=True) or {}
    image_ids = data.get('imageIds')
    if not isinstance(image_ids, list) or not image_ids:
        return jsonify({'success': False, 'error': 'imageIds must be a non-empty list'}), 400

    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404

    images = {image.id: image for image in vendor.images}
    try:
        requested = [int(image_id) for image_id in image_ids]
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'imageIds must be integers'}), 400

    if sorted(requested) != sorted(images):
        return jsonify({'success': False, 'error': "imageIds must list each of the vendor's images once"}), 400

    for position, image_id in enumerate(requested):
        images[image_id].position = position
    db.session.commit()

    db.session.refresh(vendor)
    return jsonify({'success': True, 'images': _gallery_payload(vendor)}), 200


@gallery_bp.route('/vendors/gallery/update-title', methods=['POST', 'PUT'])
@login_required
def update_title():
    data = request.get_json(silent=True) or {}
    title = data.get('title')
    if not isinstance(title, str):
        return jsonify({'success': False, 'error': 'Title is required'}), 400
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        return jsonify({'success': False, 'error': f'Title must be {TITLE_MAX_LENGTH} characters or less'}), 400

    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404

    image = VendorImage.query.filter_by(id=data.get('imageId'), vendor_id=vendor.id).first()
    if not image:
        return jsonify({'success': False, 'error': 'Image not found'}), 404

    image.title = title
    db.session.commit()
    return jsonify({'success': True, 'image': image.to_dict()}), 200


@gallery_bp.route('/vendors/gallery/captions', methods=['POST', 'PUT'])
@login_required
def update_captions():
    data = request.get_json(silent=True) or {}
    captions = data.get('captions')
    if not isinstance(captions, dict) or not captions:
        return jsonify({'success': False, 'error': 'captions must be an object of imageId -> caption'}), 400

    vendor = _owned_vendor()
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404

    images = {str(image.id): image for image in vendor.images}
    for image_id, caption in captions.items():
        if str(image_id) not in images:
            return jsonify({'success': False, 'error': f'Image {image_id} not found'}), 404
        if not isinstance(caption, str):
            return jsonify({'success': False, 'error': 'Captions must be strings'}), 400
        if len(caption.strip()) > CAPTION_MAX_LENGTH:
            return jsonify({
                'success': False,
                'error': f'Captions must be {CAPTION_MAX_LENGTH} characters or less'
            }), 400

    for image_id, caption in captions.items():
        images[str(image_id)].caption = caption.strip()
    db.session.commit()

    return jsonify({'success': True, 'images': _gallery_payload(vendor)}), 200
