# services/map_service.py

import json

from flask import current_app
from sqlalchemy.orm import selectinload

from models.vendor import Vendor, LISTED_STATUSES
from models.liveSession import VendorLiveSession
from services.categories import category_icon
from services.live_status import (
    STATUS_OFFLINE,
    STATUS_OPEN,
    derive_status,
    distance_km,
    format_distance,
    format_remaining,
    resolve_coordinates,
    seconds_remaining,
    utcnow,
)


def parse_bounds(raw):
    """
    Parse the ``bounds`` query parameter (JSON with north/south/east/west).

    Returns None when absent or unusable; a bad value never fails the request.
    """
    if not raw:
        return None
    try:
        bounds = json.loads(raw)
        return {key: float(bounds[key]) for key in ('north', 'south', 'east', 'west')}
    except (ValueError, TypeError, KeyError) as e:
        current_app.logger.warning(f"Invalid bounds parameter {raw!r}: {e}")
        return None


def within_bounds(position, bounds):
    return (bounds['south'] <= position['lat'] <= bounds['north']
            and bounds['west'] <= position['lng'] <= bounds['east'])


class MapService:

    @staticmethod
    def load_vendors(show_all):
        """
        Map view: vendors with an active session.
        List view: every listed vendor, live or not.
        """
        query = Vendor.query.options(
            selectinload(Vendor.live_sessions),
            selectinload(Vendor.static_locations)
        )
        if show_all:
            query = query.filter(Vendor.status.in_(LISTED_STATUSES))
        else:
            query = query.join(VendorLiveSession).filter(VendorLiveSession.is_active.is_(True))
        return query.order_by(Vendor.id).all()

    @staticmethod
    def build_marker(vendor, now=None, user_location=None):
        """
        Marker payload for one vendor, or None when it has no position.
        """
        now = now or utcnow()
        session = vendor.active_session

        position = resolve_coordinates(vendor, session)
        if position is None:
            return None

        status = STATUS_OFFLINE
        remaining = 0
        if session is not None:
            status = derive_status(session, now, current_app.config.get('LIVE_SESSION_CLOSING_HOURS', 7))
            remaining = seconds_remaining(session, now)

        vendor_data = vendor.to_dict()
        vendor_data['live_session'] = session.to_dict() if session else None

        marker = {
            'id': vendor.id,
            'position': position,
            'title': vendor.business_name or 'Unknown Vendor',
            'description': vendor.description or 'Food Vendor',
            'isLive': status == STATUS_OPEN,
            'status': status,
            'categoryIcon': category_icon(vendor.subcategory),
            'timeRemaining': remaining // 60,
            'timeRemainingDisplay': format_remaining(remaining),
            'hasTimer': remaining > 0,
            'vendor': vendor_data,
        }

        if user_location:
            km = distance_km(user_location['lat'], user_location['lng'], position['lat'], position['lng'])
            marker['distance'] = format_distance(km)
            marker['distanceKm'] = round(km, 3)

        return marker

    @staticmethod
    def build_markers(vendors, bounds=None, user_location=None, now=None):
        now = now or utcnow()
        markers = []
        for vendor in vendors:
            try:
                marker = MapService.build_marker(vendor, now, user_location)
            except Exception as e:
                current_app.logger.warning(f"Failed to process vendor {vendor.id}: {e}")
                continue

            if marker is None:
                current_app.logger.debug(f"Vendor {vendor.id} has no coordinates, skipping")
                continue
            if bounds and not within_bounds(marker['position'], bounds):
                continue
            markers.append(marker)

        if user_location:
            markers.sort(key=lambda m: m['distanceKm'])
        return markers
