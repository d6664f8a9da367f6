# services/live_session_service.py

from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from db.extensions import db
from models.liveSession import VendorLiveSession
from services.error_handler import AppError, ErrorType, ErrorSeverity
from services.live_status import (
    STATUS_OPEN,
    derive_status,
    format_remaining,
    minutes_remaining,
    seconds_remaining,
    session_duration,
    utcnow,
)
from services.utils import to_float


class LiveSessionService:

    @staticmethod
    def can_go_live(vendor_status, settings):
        """
        Decide whether a vendor in ``vendor_status`` may start a session.

        Returns ``(allowed, reason)``.
        """
        clean_status = (vendor_status or '').strip().lower()

        if not settings.require_vendor_approval:
            return True, 'Vendor approval not required'

        if settings.allow_auto_vendor_approval and clean_status == 'pending':
            return True, 'Auto-approval enabled: pending vendors can go live'

        if clean_status in ('approved', 'active'):
            return True, 'Vendor is approved and can go live'

        return False, (
            f'Cannot go live. Your vendor status is "{vendor_status}". '
            'Please wait for admin approval or contact support.'
        )

    @staticmethod
    def active_session_for(vendor_id):
        return VendorLiveSession.query.filter_by(vendor_id=vendor_id, is_active=True).first()

    @staticmethod
    def is_live(session, now=None):
        """True only while the session derives to the open state."""
        closing_hours = current_app.config.get('LIVE_SESSION_CLOSING_HOURS', 7)
        return derive_status(session, now or utcnow(), closing_hours) == STATUS_OPEN

    @staticmethod
    def start_session(vendor, latitude, longitude, address=None, duration=None, now=None):
        """
        Open a live session at the given coordinates.

        ``duration`` is in minutes and sets the auto-end time. A session whose
        auto-end time has already passed is ended by the timer first. Raises
        AppError for invalid input or when the vendor is already live.
        """
        now = now or utcnow()
        lat = to_float(latitude)
        lng = to_float(longitude)
        if lat is None or lng is None:
            raise AppError(ErrorType.GEOLOCATION, 'Location coordinates are required',
                           severity=ErrorSeverity.LOW, status_code=400)
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise AppError(ErrorType.GEOLOCATION, 'Location coordinates are out of range',
                           severity=ErrorSeverity.LOW, status_code=400)

        duration_minutes = None
        if duration not in (None, ''):
            try:
                duration_minutes = int(duration)
            except (TypeError, ValueError):
                duration_minutes = 0
            max_minutes = current_app.config.get('LIVE_SESSION_MAX_DURATION_MINUTES', 24 * 60)
            if duration_minutes <= 0 or duration_minutes > max_minutes:
                raise AppError(ErrorType.VALIDATION,
                               f'Duration must be between 1 and {max_minutes} minutes',
                               severity=ErrorSeverity.LOW)

        LiveSessionService.end_expired_sessions(now, vendor_id=vendor.id)
        if LiveSessionService.active_session_for(vendor.id):
            raise AppError(ErrorType.VALIDATION,
                           'You already have an active live session. Please end it before starting a new one.',
                           severity=ErrorSeverity.LOW)

        session = VendorLiveSession(
            vendor_id=vendor.id,
            latitude=lat,
            longitude=lng,
            address=address or None,
            start_time=now,
            end_time=None,
            auto_end_time=now + timedelta(minutes=duration_minutes) if duration_minutes else None,
            was_scheduled_duration=duration_minutes,
            is_active=True
        )
        db.session.add(session)
        try:
            db.session.commit()
        except IntegrityError:
            # Another request opened a session between the check and the insert
            db.session.rollback()
            raise AppError(ErrorType.DATABASE,
                           'You already have an active live session. Please end it before starting a new one.',
                           severity=ErrorSeverity.MEDIUM, code='ACTIVE_SESSION_EXISTS', status_code=409)

        current_app.logger.info(f"Vendor {vendor.id} went live (session {session.id})")
        return session

    @staticmethod
    def end_session(vendor, ended_by='vendor', now=None):
        """Close the vendor's active session. Returns it, or None if there was none."""
        session = LiveSessionService.active_session_for(vendor.id)
        if session is None:
            return None

        session.end_time = now or utcnow()
        session.is_active = False
        session.ended_by = ended_by
        db.session.commit()
        current_app.logger.info(f"Vendor {vendor.id} ended session {session.id} ({ended_by})")
        return session

    @staticmethod
    def end_expired_sessions(now=None, vendor_id=None):
        """End every active session whose auto-end time has passed, optionally for one vendor."""
        now = now or utcnow()
        query = VendorLiveSession.query.filter(
            VendorLiveSession.is_active.is_(True),
            VendorLiveSession.auto_end_time.isnot(None),
            VendorLiveSession.auto_end_time < now
        )
        if vendor_id is not None:
            query = query.filter(VendorLiveSession.vendor_id == vendor_id)
        expired = query.all()

        for session in expired:
            session.is_active = False
            session.end_time = now
            session.ended_by = 'timer'

        if expired:
            db.session.commit()
            current_app.logger.info(f"Ended {len(expired)} expired live sessions")
        return expired

    @staticmethod
    def describe(session, now=None):
        """Session payload with derived status and countdown fields."""
        now = now or utcnow()
        remaining = seconds_remaining(session, now)
        data = session.to_dict()
        data.update({
            'status': derive_status(session, now, current_app.config.get('LIVE_SESSION_CLOSING_HOURS', 7)),
            'timeRemaining': minutes_remaining(session, now),
            'timeRemainingSeconds': remaining,
            'timeRemainingDisplay': format_remaining(remaining),
            'hasTimer': remaining > 0,
            'sessionDuration': session_duration(session, now),
        })
        return data
