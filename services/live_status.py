# services/live_status.py
"""
Live-status helpers shared by the map feed, the vendor dashboard and the
admin overview.

Every function here is pure: callers pass the current time in when they need
a stable clock (tests do), otherwise ``utcnow()`` is used. Timestamps are
compared as naive UTC datetimes, which is how the models store them.
"""

import logging
import math
import numbers
from datetime import datetime, timedelta

import pytz

logger = logging.getLogger(__name__)

STATUS_OPEN = 'open'
STATUS_CLOSING = 'closing'
STATUS_OFFLINE = 'offline'

DETAILED_LIVE = 'live'
DETAILED_CLOSING_SOON = 'closing_soon'

CLOSING_AFTER_HOURS = 7
CLOSING_SOON_MINUTES = 30
DEFAULT_SCHEDULED_DURATION_MINUTES = 120
EARTH_RADIUS_KM = 6371


def utcnow():
    """Current time as a naive UTC datetime."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def _field(record, name, default=None):
    """Read ``name`` from a model instance or a mapping."""
    if record is None:
        return default
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def parse_timestamp(value):
    """
    Normalise a timestamp to a naive UTC datetime.

    Accepts datetimes (naive ones are taken as UTC) and ISO 8601 strings,
    including the trailing ``Z`` the frontend sends. Returns None for None.
    Raises ValueError for anything that cannot be read as a timestamp.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(pytz.utc).replace(tzinfo=None)
    return dt


def _is_number(value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def _pair(lat, lng):
    if _is_number(lat) and _is_number(lng):
        return {'lat': float(lat), 'lng': float(lng)}
    return None


def derive_status(session, now=None, closing_after_hours=CLOSING_AFTER_HOURS):
    """
    Return ``'open'``, ``'closing'`` or ``'offline'`` for a live session.

    A session is offline when it is missing, inactive, ended, past its
    auto-end time, or carries timestamps that cannot be parsed. An active
    session becomes ``'closing'`` once it has been running for
    ``closing_after_hours``.
    """
    if session is None or not _field(session, 'is_active'):
        return STATUS_OFFLINE

    now = now or utcnow()
    try:
        start_time = parse_timestamp(_field(session, 'start_time'))
        end_time = parse_timestamp(_field(session, 'end_time'))
        auto_end_time = parse_timestamp(_field(session, 'auto_end_time'))
    except (TypeError, ValueError):
        return STATUS_OFFLINE

    if start_time is None:
        return STATUS_OFFLINE
    if end_time is not None and end_time < now:
        return STATUS_OFFLINE
    if auto_end_time is not None and auto_end_time < now:
        return STATUS_OFFLINE

    hours_active = (now - start_time).total_seconds() / 3600
    if hours_active >= closing_after_hours:
        return STATUS_CLOSING
    return STATUS_OPEN


def resolve_coordinates(vendor, session=None):
    """
    Pick the single position to show for a vendor.

    Order: the active session's coordinates, then the first static location
    with coordinates, then the coordinates on the vendor profile. Returns
    ``{'lat': ..., 'lng': ...}`` or None; never raises.
    """
    try:
        if session is not None and _field(session, 'is_active'):
            coords = _pair(_field(session, 'latitude'), _field(session, 'longitude'))
            if coords:
                return coords

        for location in _field(vendor, 'static_locations') or []:
            coords = _pair(_field(location, 'latitude'), _field(location, 'longitude'))
            if coords:
                return coords

        return _pair(_field(vendor, 'latitude'), _field(vendor, 'longitude'))
    except Exception as e:
        logger.warning(f"Could not resolve coordinates for vendor {_safe_id(vendor)}: {e}")
        return None


def _safe_id(vendor):
    try:
        return _field(vendor, 'id')
    except Exception:
        return None


def format_remaining(seconds):
    """Countdown text: ``'M:SS'`` while minutes remain, ``'Ss'`` below a minute."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}:{secs:02d}"
    return f"{secs}s"


def seconds_remaining(session, now=None):
    """Whole seconds until the session's auto-end time, 0 when there is none."""
    try:
        auto_end_time = parse_timestamp(_field(session, 'auto_end_time'))
    except (TypeError, ValueError):
        return 0
    if auto_end_time is None:
        return 0
    now = now or utcnow()
    return max(0, int((auto_end_time - now).total_seconds()))


def minutes_remaining(session, now=None):
    return seconds_remaining(session, now) // 60


def format_minutes(minutes):
    if minutes <= 0:
        return '0m'
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def session_duration(session, now=None):
    """How long the session has been running, e.g. ``'2h 15m'``."""
    try:
        start_time = parse_timestamp(_field(session, 'start_time'))
    except (TypeError, ValueError):
        return '0m'
    if start_time is None:
        return '0m'
    now = now or utcnow()
    return format_minutes(int((now - start_time).total_seconds() // 60))


def detailed_status(session, now=None):
    """
    Profile-page status: ``'live'``, ``'closing_soon'`` or ``'offline'``.

    ``closing_soon`` starts 30 minutes before the auto-end time, or before
    ``start_time + was_scheduled_duration`` when no auto-end is set.
    """
    if session is None or not _field(session, 'is_active'):
        return STATUS_OFFLINE

    now = now or utcnow()
    try:
        start_time = parse_timestamp(_field(session, 'start_time'))
        end_time = parse_timestamp(_field(session, 'end_time'))
        auto_end_time = parse_timestamp(_field(session, 'auto_end_time'))
    except (TypeError, ValueError):
        return STATUS_OFFLINE

    if start_time is None:
        return STATUS_OFFLINE
    if end_time is not None and now > end_time:
        return STATUS_OFFLINE

    if auto_end_time is not None:
        expected_end = auto_end_time
    else:
        scheduled = _field(session, 'was_scheduled_duration') or DEFAULT_SCHEDULED_DURATION_MINUTES
        expected_end = start_time + timedelta(minutes=scheduled)

    if expected_end - now <= timedelta(minutes=CLOSING_SOON_MINUTES):
        return DETAILED_CLOSING_SOON
    return DETAILED_LIVE


def distance_km(lat1, lng1, lat2, lng2):
    """Great-circle distance (haversine)."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def format_distance(km):
    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"
