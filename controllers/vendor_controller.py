# controllers/vendor_controller.py

from flask import Blueprint, request, jsonify, current_app, g
from db.extensions import db
from models.announcement import VendorAnnouncement
from models.platformSettings import PlatformSettings
from models.vendorFeedback import VendorFeedback, FEEDBACK_TYPES, FEEDBACK_PRIORITIES
from services.auth import login_required
from services.cloudinary_services import CloudinaryImageService
from services.error_handler import AppError, handle_error
from services.live_session_service import LiveSessionService
from services.notification_service import NotificationService
from services.vendor_service import VendorService

vendor_bp = Blueprint('vendor', __name__)

ANNOUNCEMENT_MAX_LENGTH = 500


def _vendor_not_found():
    return jsonify({'success': False, 'error': 'Vendor profile not found'}), 404


@vendor_bp.route('/vendor/go-live', methods=['POST'])
@login_required
def go_live():
    data = request.get_json(silent=True) or {}

    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        settings = PlatformSettings.current()
        allowed, reason = LiveSessionService.can_go_live(vendor.status, settings)
        if not allowed:
            current_app.logger.info(f"Vendor {vendor.id} blocked from going live: {reason}")
            return jsonify({'success': False, 'error': reason}), 400

        session = LiveSessionService.start_session(
            vendor,
            data.get('latitude'),
            data.get('longitude'),
            address=data.get('address'),
            duration=data.get('duration')
        )
        return jsonify({
            'success': True,
            'session': LiveSessionService.describe(session),
            'message': 'You are now live!'
        }), 201

    except AppError as e:
        handle_error(e, context='go_live')
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Go live failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to go live'}), 500


@vendor_bp.route('/vendor/go-live', methods=['DELETE'])
@login_required
def end_live():
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        session = LiveSessionService.end_session(vendor, ended_by='vendor')
        if session is None:
            return jsonify({'success': False, 'error': 'No active live session found'}), 404

        return jsonify({
            'success': True,
            'session': session.to_dict(),
            'message': 'Live session ended'
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"End live failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to end live session'}), 500


@vendor_bp.route('/vendor/go-live', methods=['GET'])
@login_required
def live_status():
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        LiveSessionService.end_expired_sessions(vendor_id=vendor.id)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Expiring stale session failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to load live status'}), 500

    session = LiveSessionService.active_session_for(vendor.id)
    settings = PlatformSettings.current()
    can_go_live, reason = LiveSessionService.can_go_live(vendor.status, settings)

    return jsonify({
        'success': True,
        'isLive': LiveSessionService.is_live(session),
        'session': LiveSessionService.describe(session) if session else None,
        'canGoLive': can_go_live,
        'reason': reason
    }), 200


@vendor_bp.route('/vendor/profile', methods=['PUT'])
@login_required
def update_profile():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'error': 'No data provided'}), 400

    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        VendorService.update_profile(vendor, data)
        return jsonify({'success': True, 'vendor': vendor.to_dict()}), 200
    except AppError as e:
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Profile update failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to update profile'}), 500


@vendor_bp.route('/vendor/profile-image', methods=['POST'])
@login_required
def upload_profile_image():
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    image = request.files.get('image')
    if not image or image.filename == '':
        return jsonify({'success': False, 'error': 'No image provided'}), 400
    if image.mimetype not in current_app.config['GALLERY_ALLOWED_TYPES']:
        return jsonify({'success': False, 'error': 'Only JPEG, PNG and WebP images are allowed'}), 400

    result = CloudinaryImageService.upload_vendor_image(image, vendor.id, kind='profile')
    if not result['success']:
        return jsonify({'success': False, 'error': f"Image upload failed: {result['error']}"}), 500

    old_public_id = vendor.profile_image_public_id
    try:
        vendor.profile_image_url = result['url']
        vendor.profile_image_public_id = result['public_id']
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving profile image failed for vendor {vendor.id}: {str(e)}")
        CloudinaryImageService.cleanup_uploads([result['public_id']])
        return jsonify({'success': False, 'error': 'Failed to save profile image'}), 500

    if old_public_id:
        CloudinaryImageService.delete_image(old_public_id)

    return jsonify({'success': True, 'url': vendor.profile_image_url}), 200


@vendor_bp.route('/vendor/profile-image', methods=['DELETE'])
@login_required
def delete_profile_image():
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()
    if not vendor.profile_image_url:
        return jsonify({'success': False, 'error': 'No profile image to delete'}), 404

    result = CloudinaryImageService.delete_image(vendor.profile_image_public_id)
    if not result['success']:
        return jsonify({'success': False, 'error': result['error']}), 500

    vendor.profile_image_url = None
    vendor.profile_image_public_id = None
    db.session.commit()
    return jsonify({'success': True, 'message': 'Profile image removed'}), 200


@vendor_bp.route('/vendor/announcements', methods=['GET'])
@login_required
def list_announcements():
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()
    return jsonify({
        'success': True,
        'announcements': [a.to_dict() for a in vendor.announcements]
    }), 200


@vendor_bp.route('/vendor/announcements', methods=['POST'])
@login_required
def create_announcement():
    data = request.get_json(silent=True) or {}
    message = (data.get('message') or '').strip()
    if not message:
        return jsonify({'success': False, 'error': 'Message is required'}), 400
    if len(message) > ANNOUNCEMENT_MAX_LENGTH:
        return jsonify({
            'success': False,
            'error': f'Message must be {ANNOUNCEMENT_MAX_LENGTH} characters or less'
        }), 400

    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        announcement = VendorAnnouncement(
            vendor_id=vendor.id,
            message=message,
            image_url=data.get('image_url') or None
        )
        db.session.add(announcement)
        db.session.commit()
        return jsonify({'success': True, 'announcement': announcement.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Creating announcement failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to create announcement'}), 500


@vendor_bp.route('/vendor/announcements/<int:announcement_id>', methods=['DELETE'])
@login_required
def delete_announcement(announcement_id):
    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    announcement = VendorAnnouncement.query.filter_by(id=announcement_id, vendor_id=vendor.id).first()
    if not announcement:
        return jsonify({'success': False, 'error': 'Announcement not found'}), 404

    db.session.delete(announcement)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Announcement deleted'}), 200


@vendor_bp.route('/vendor/feedback', methods=['POST'])
@login_required
def submit_feedback():
    data = request.get_json(silent=True) or {}
    message = (data.get('message') or '').strip()
    feedback_type = (data.get('feedback_type') or 'GENERAL').upper()
    priority = (data.get('priority') or 'medium').lower()

    if not message:
        return jsonify({'success': False, 'error': 'Message is required'}), 400
    if feedback_type not in FEEDBACK_TYPES:
        return jsonify({'success': False, 'error': f"feedback_type must be one of {', '.join(FEEDBACK_TYPES)}"}), 400
    if priority not in FEEDBACK_PRIORITIES:
        return jsonify({'success': False, 'error': f"priority must be one of {', '.join(FEEDBACK_PRIORITIES)}"}), 400

    vendor = VendorService.for_user(g.current_user.id)
    if not vendor:
        return _vendor_not_found()

    try:
        feedback = VendorFeedback(
            vendor_id=vendor.id,
            message=message,
            feedback_type=feedback_type,
            priority=priority,
            status='pending'
        )
        db.session.add(feedback)
        NotificationService.notify_admins(
            'feedback',
            f"New {feedback_type.lower()} feedback from {vendor.business_name}",
            link='/admin/feedback'
        )
        db.session.commit()
        return jsonify({'success': True, 'feedback': feedback.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving feedback failed for vendor {vendor.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to submit feedback'}), 500
