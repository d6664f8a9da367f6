# controllers/map_controller.py

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.orm import selectinload

from db.extensions import db
from models.vendor import Vendor, LISTED_STATUSES
from services.live_status import utcnow
from services.map_service import MapService, parse_bounds
from services.utils import to_float, parse_int_arg
from services.vendor_service import VendorService

map_bp = Blueprint('map', __name__)

NO_CACHE = 'no-cache, no-store, must-revalidate'


@map_bp.route('/vendors/map-data', methods=['GET'])
def map_data():
    """
    Vendor markers for the customer map.

    ``showAll=true`` switches to the list view, which includes vendors that are
    not live right now.
    """
    show_all = request.args.get('showAll', 'false').lower() == 'true'
    bounds = None if show_all else parse_bounds(request.args.get('bounds'))

    user_location = None
    lat = to_float(request.args.get('lat'))
    lng = to_float(request.args.get('lng'))
    if lat is not None and lng is not None:
        user_location = {'lat': lat, 'lng': lng}

    try:
        now = utcnow()
        vendors = MapService.load_vendors(show_all)
        markers = MapService.build_markers(vendors, bounds=bounds, user_location=user_location, now=now)

        current_app.logger.debug(
            f"map-data: {len(vendors)} vendors loaded, {len(markers)} markers (showAll={show_all})"
        )
        response = jsonify({
            'markers': markers,
            'timestamp': now.isoformat(),
            'liveCount': sum(1 for m in markers if m['isLive'])
        })
        response.headers['Cache-Control'] = NO_CACHE
        return response, 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error building map data: {str(e)}", exc_info=True)
        response = jsonify({'error': 'Failed to fetch vendor data', 'markers': []})
        response.headers['Cache-Control'] = NO_CACHE
        return response, 500


@map_bp.route('/vendors/<int:vendor_id>', methods=['GET'])
def vendor_detail(vendor_id):
    vendor = Vendor.query.options(
        selectinload(Vendor.live_sessions),
        selectinload(Vendor.static_locations),
        selectinload(Vendor.images),
        selectinload(Vendor.announcements),
        selectinload(Vendor.reviews)
    ).filter(Vendor.id == vendor_id).first()

    if not vendor or vendor.status not in LISTED_STATUSES:
        return jsonify({'success': False, 'error': 'Vendor not found'}), 404

    return jsonify({'success': True, 'vendor': VendorService.public_profile(vendor)}), 200


@map_bp.route('/search/vendors', methods=['GET'])
def search_vendors():
    term = (request.args.get('q') or '').strip()
    category = (request.args.get('category') or '').strip() or None
    limit = parse_int_arg(request.args.get('limit'), 20, minimum=1, maximum=100)

    if not term and not category:
        return jsonify({'success': True, 'vendors': []}), 200

    try:
        vendors = VendorService.search(term, category, limit)
        return jsonify({
            'success': True,
            'vendors': [vendor.to_dict() for vendor in vendors]
        }), 200
    except Exception as e:
        current_app.logger.error(f"Vendor search failed for '{term}': {str(e)}")
        return jsonify({'success': False, 'error': 'Search failed'}), 500
