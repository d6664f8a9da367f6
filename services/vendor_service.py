# services/vendor_service.py

from flask import current_app
from sqlalchemy import func, or_

from db.extensions import db
from models.vendor import Vendor, LISTED_STATUSES
from models.review import Review
from models.platformSettings import PlatformSettings
from services.error_handler import AppError, ErrorType, ErrorSeverity
from services.live_status import derive_status, detailed_status, utcnow, STATUS_OPEN
from services.notification_service import NotificationService
from services.utils import validate_json, to_float

PROFILE_FIELDS = (
    'business_name', 'business_type', 'subcategory', 'description', 'tags',
    'contact_email', 'phone', 'address', 'city', 'latitude', 'longitude',
)


class VendorService:

    @staticmethod
    def for_user(user_id):
        return Vendor.query.filter_by(user_id=user_id).first()

    @staticmethod
    def _apply_profile_fields(vendor, data):
        for field in PROFILE_FIELDS:
            if field not in data:
                continue
            value = data[field]

            if field in ('latitude', 'longitude'):
                if value in (None, ''):
                    value = None
                else:
                    value = to_float(value)
                    if value is None:
                        raise AppError(ErrorType.VALIDATION, f'{field} must be a number', severity=ErrorSeverity.LOW)
            elif field == 'tags':
                if value is not None and not (isinstance(value, list) and all(isinstance(t, str) for t in value)):
                    raise AppError(ErrorType.VALIDATION, 'tags must be a list of strings', severity=ErrorSeverity.LOW)
            elif isinstance(value, str):
                value = value.strip()

            if field == 'business_name' and not value:
                raise AppError(ErrorType.VALIDATION, 'Business name cannot be empty', severity=ErrorSeverity.LOW)

            setattr(vendor, field, value)

    @staticmethod
    def create_vendor(user, data):
        """
        Onboard ``user`` as a vendor.

        The initial status is 'approved' when the platform does not require
        approval or auto-approves, otherwise 'pending'.
        """
        missing = validate_json(data, ['business_name', 'business_type'])
        if missing:
            raise AppError(ErrorType.VALIDATION, f"Missing required fields: {', '.join(missing)}",
                           severity=ErrorSeverity.LOW)

        if VendorService.for_user(user.id):
            raise AppError(ErrorType.VALIDATION, 'Vendor profile already exists', severity=ErrorSeverity.LOW)

        settings = PlatformSettings.current()
        auto_approve = not settings.require_vendor_approval or settings.allow_auto_vendor_approval

        vendor = Vendor(user_id=user.id, status='approved' if auto_approve else 'pending')
        if auto_approve:
            vendor.approved_at = utcnow()
        VendorService._apply_profile_fields(vendor, data)
        if not vendor.contact_email:
            vendor.contact_email = user.email

        user.active_role = 'vendor'
        db.session.add(vendor)
        db.session.flush()

        NotificationService.notify_admins(
            'vendor_signup',
            f"New vendor '{vendor.business_name}' signed up ({vendor.status})",
            link=f"/admin/vendors/{vendor.id}"
        )
        db.session.commit()
        current_app.logger.info(f"Vendor {vendor.id} created for user {user.id} with status {vendor.status}")

        NotificationService.send_vendor_welcome_email(vendor)
        return vendor

    @staticmethod
    def update_profile(vendor, data):
        VendorService._apply_profile_fields(vendor, data)
        db.session.commit()
        return vendor

    @staticmethod
    def refresh_rating(vendor):
        """Recompute average rating and review count from the reviews table."""
        average, count = db.session.query(
            func.avg(Review.rating), func.count(Review.id)
        ).filter(Review.vendor_id == vendor.id).one()
        vendor.average_rating = round(float(average), 2) if average is not None else None
        vendor.total_reviews = count

    @staticmethod
    def search(term=None, category=None, limit=20):
        query = Vendor.query.filter(Vendor.status.in_(LISTED_STATUSES))
        if term:
            pattern = f"%{term.strip()}%"
            query = query.filter(or_(
                Vendor.business_name.ilike(pattern),
                Vendor.description.ilike(pattern),
                Vendor.subcategory.ilike(pattern),
            ))
        if category:
            query = query.filter(or_(
                Vendor.business_type.ilike(category),
                Vendor.subcategory.ilike(f"%{category}%"),
            ))
        return query.order_by(Vendor.business_name).limit(limit).all()

    @staticmethod
    def public_profile(vendor, now=None):
        now = now or utcnow()
        session = vendor.active_session
        status = derive_status(session, now, current_app.config.get('LIVE_SESSION_CLOSING_HOURS', 7))

        data = vendor.to_dict()
        data.update({
            'live_session': session.to_dict() if session else None,
            'static_locations': [location.to_dict() for location in vendor.static_locations],
            'gallery': [image.to_dict() for image in vendor.images],
            'announcements': [a.to_dict() for a in vendor.announcements],
            'reviews': [r.to_dict() for r in sorted(vendor.reviews, key=lambda r: r.created_at, reverse=True)],
            'status_live': status,
            'detailedStatus': detailed_status(session, now),
            'isLive': status == STATUS_OPEN,
        })
        return data
