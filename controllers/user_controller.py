# controllers/user_controller.py

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import IntegrityError

from db.extensions import db
from models.favorite import Favorite
from models.review import Review
from models.vendor import Vendor
from services.auth import login_required, current_user_or_none
from services.error_handler import AppError, handle_error
from services.live_session_service import LiveSessionService
from services.live_status import utcnow
from services.vendor_service import VendorService

user_bp = Blueprint('user', __name__)

USER_ROLES = ('customer', 'vendor')
REVIEW_MAX_LENGTH = 1000


@user_bp.route('/user/me', methods=['GET'])
@login_required
def me():
    user = g.current_user
    vendor = VendorService.for_user(user.id)
    return jsonify({
        'success': True,
        'user': user.to_dict(),
        'vendor': {
            'id': vendor.id,
            'business_name': vendor.business_name,
            'status': vendor.status,
            'profile_image_url': vendor.profile_image_url,
            'isLive': LiveSessionService.is_live(vendor.active_session),
        } if vendor else None
    }), 200


@user_bp.route('/user/switch-role', methods=['POST'])
@login_required
def switch_role():
    data = request.get_json(silent=True) or {}
    role = data.get('role')
    if role not in USER_ROLES:
        return jsonify({'success': False, 'error': f"role must be one of {', '.join(USER_ROLES)}"}), 400

    user = g.current_user
    if role == 'vendor' and not VendorService.for_user(user.id):
        return jsonify({
            'success': False,
            'error': 'Create a vendor profile before switching to the vendor role'
        }), 400

    user.active_role = role
    db.session.commit()
    current_app.logger.info(f"User {user.id} switched role to {role}")
    return jsonify({'success': True, 'user': user.to_dict()}), 200


@user_bp.route('/user/become-vendor', methods=['POST'])
@login_required
def become_vendor():
    data = request.get_json(silent=True) or {}
    try:
        vendor = VendorService.create_vendor(g.current_user, data)
    except AppError as e:
        db.session.rollback()
        handle_error(e, context='become_vendor')
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Vendor onboarding failed for user {g.current_user.id}: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to create vendor profile'}), 500

    message = 'Vendor profile approved' if vendor.status == 'approved' \
        else 'Vendor profile submitted for review'
    return jsonify({'success': True, 'vendor': vendor.to_dict(), 'message': message}), 201


@user_bp.route('/favorites', methods=['POST'])
@login_required
def toggle_favorite():
    data = request.get_json(silent=True) or {}
    vendor = db.session.get(Vendor, data.get('vendor_id')) if data.get('vendor_id') else None
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor not found'}), 404

    user = g.current_user
    favorite = Favorite.query.filter_by(customer_id=user.id, vendor_id=vendor.id).first()
    try:
        if favorite:
            db.session.delete(favorite)
            is_favorite = False
        else:
            db.session.add(Favorite(customer_id=user.id, vendor_id=vendor.id))
            is_favorite = True
        db.session.commit()
    except IntegrityError:
        # Double click: the favorite was already created by a parallel request
        db.session.rollback()
        is_favorite = True

    return jsonify({'success': True, 'isFavorite': is_favorite}), 200


@user_bp.route('/favorites', methods=['GET'])
def check_favorite():
    vendor_id = request.args.get('vendor_id', type=int)
    if not vendor_id:
        return jsonify({'success': False, 'error': 'vendor_id is required'}), 400

    user = current_user_or_none()
    if user is None:
        return jsonify({'isFavorite': False}), 200

    exists = Favorite.query.filter_by(customer_id=user.id, vendor_id=vendor_id).first() is not None
    return jsonify({'isFavorite': exists}), 200


@user_bp.route('/favorites/list', methods=['GET'])
@login_required
def list_favorites():
    now = utcnow()
    favorites = Favorite.query.filter_by(customer_id=g.current_user.id) \
        .order_by(Favorite.created_at.desc()).all()
    return jsonify({
        'success': True,
        'favorites': [
            dict(favorite.vendor.to_dict(), isLive=LiveSessionService.is_live(favorite.vendor.active_session, now))
            for favorite in favorites
        ]
    }), 200


@user_bp.route('/reviews', methods=['POST'])
@login_required
def create_review():
    data = request.get_json(silent=True) or {}
    vendor = db.session.get(Vendor, data.get('vendor_id')) if data.get('vendor_id') else None
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor not found'}), 404

    rating = data.get('rating')
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        return jsonify({'success': False, 'error': 'Rating must be a whole number between 1 and 5'}), 400

    text = (data.get('review') or '').strip()
    if not text:
        return jsonify({'success': False, 'error': 'Review text is required'}), 400
    if len(text) > REVIEW_MAX_LENGTH:
        return jsonify({'success': False, 'error': f'Review must be {REVIEW_MAX_LENGTH} characters or less'}), 400

    user = g.current_user
    if Review.query.filter_by(vendor_id=vendor.id, user_id=user.id).first():
        return jsonify({'success': False, 'error': 'You have already reviewed this vendor'}), 400

    try:
        review = Review(vendor_id=vendor.id, user_id=user.id, rating=rating, review=text, created_at=utcnow())
        db.session.add(review)
        db.session.flush()
        VendorService.refresh_rating(vendor)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'error': 'You have already reviewed this vendor'}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving review for vendor {vendor.id} failed: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to save review'}), 500

    return jsonify({
        'success': True,
        'review': review.to_dict(),
        'average_rating': vendor.average_rating,
        'total_reviews': vendor.total_reviews
    }), 201


@user_bp.route('/reviews', methods=['GET'])
def list_reviews():
    vendor_id = request.args.get('vendor_id', type=int)
    if not vendor_id:
        return jsonify({'success': False, 'error': 'vendor_id is required'}), 400

    reviews = Review.query.filter_by(vendor_id=vendor_id) \
        .order_by(Review.created_at.desc(), Review.id.desc()).all()
    return jsonify({'success': True, 'reviews': [review.to_dict() for review in reviews]}), 200
