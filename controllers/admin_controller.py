# controllers/admin_controller.py

from datetime import timedelta

from flask import Blueprint, request, jsonify, current_app, g, make_response
from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload

from db.extensions import db
from models.adminUser import AdminUser
from models.liveSession import VendorLiveSession
from models.notification import Notification
from models.platformSettings import PlatformSettings
from models.user import User
from models.vendor import Vendor, VENDOR_STATUSES
from models.vendorFeedback import VendorFeedback, FEEDBACK_STATUSES
from services.auth import ADMIN_COOKIE_NAME, admin_required, create_admin_token
from services.live_session_service import LiveSessionService
from services.live_status import (
    STATUS_OFFLINE,
    derive_status,
    minutes_remaining,
    session_duration,
    utcnow,
)
from services.notification_service import NotificationService
from services.rate_limiter import RateLimiter
from services.utils import get_client_ip, parse_int_arg

admin_bp = Blueprint('admin', __name__)

REVIEWABLE_STATUSES = ('approved', 'rejected', 'pending')
BATCH_ACTIONS = {'approve': 'approved', 'reject': 'rejected'}
SETTINGS_FIELDS = ('allow_auto_vendor_approval', 'require_vendor_approval', 'maintenance_mode')
DATE_RANGES = {'7d': 7, '30d': 30, '90d': 90}


def _login_limiter():
    return RateLimiter(
        'admin_login',
        max_attempts=current_app.config.get('LOGIN_MAX_ATTEMPTS', 5),
        window_seconds=current_app.config.get('LOGIN_WINDOW_SECONDS', 15 * 60)
    )


# ---------------------------------------------------------------- auth

@admin_bp.route('/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    client_ip = get_client_ip(request)
    limiter = _login_limiter()
    limit_enabled = current_app.config.get('LOGIN_RATE_LIMIT_ENABLED', True)

    if limit_enabled and limiter.is_rate_limited(client_ip):
        retry_after = limiter.remaining_seconds(client_ip)
        current_app.logger.warning(f"Admin login rate limited for {client_ip}")
        response = jsonify({
            'success': False,
            'error': 'Too many login attempts. Please try again later.',
            'retryAfter': retry_after
        })
        response.headers['Retry-After'] = str(retry_after)
        return response, 429

    if not username or not password:
        return jsonify({'success': False, 'error': 'Username and password are required'}), 400

    admin = AdminUser.query.filter_by(username=username).first()
    if not admin or not admin.check_password(password):
        if limit_enabled:
            limiter.record_attempt(client_ip)
        current_app.logger.warning(f"Failed admin login for '{username}' from {client_ip}")
        return jsonify({'success': False, 'error': 'Invalid credentials'}), 401

    if limit_enabled:
        limiter.reset(client_ip)

    token = create_admin_token(admin)
    response = make_response(jsonify({'success': True, 'admin': admin.to_dict()}))
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        token,
        max_age=current_app.config.get('ADMIN_TOKEN_TTL_HOURS', 24) * 3600,
        httponly=True,
        secure=current_app.config.get('ADMIN_COOKIE_SECURE', True),
        samesite='Lax',
        path='/'
    )
    current_app.logger.info(f"Admin {admin.username} logged in from {client_ip}")
    return response, 200


@admin_bp.route('/admin/login', methods=['DELETE'])
def admin_logout():
    response = make_response(jsonify({'success': True, 'message': 'Logged out'}))
    response.delete_cookie(ADMIN_COOKIE_NAME, path='/')
    return response, 200


@admin_bp.route('/admin/me', methods=['GET'])
@admin_required
def admin_me():
    return jsonify({
        'success': True,
        'admin': {
            'id': g.admin['adminId'],
            'username': g.admin['username'],
            'email': g.admin['email'],
        }
    }), 200


# ---------------------------------------------------------------- vendors

@admin_bp.route('/admin/vendors', methods=['GET'])
@admin_required
def list_vendors():
    status = request.args.get('status')
    search = (request.args.get('search') or '').strip()
    page = parse_int_arg(request.args.get('page'), 1, minimum=1)
    limit = parse_int_arg(request.args.get('limit'), 20, minimum=1, maximum=100)

    query = Vendor.query
    if status and status != 'all':
        query = query.filter(Vendor.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Vendor.business_name.ilike(pattern),
            Vendor.contact_email.ilike(pattern),
            Vendor.city.ilike(pattern)
        ))

    total = query.count()
    vendors = query.order_by(Vendor.created_at.desc(), Vendor.id.desc()) \
        .offset((page - 1) * limit).limit(limit).all()

    return jsonify({
        'success': True,
        'vendors': [vendor.to_dict() for vendor in vendors],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': (total + limit - 1) // limit
        }
    }), 200


@admin_bp.route('/admin/vendors/<int:vendor_id>', methods=['GET'])
@admin_required
def get_vendor(vendor_id):
    vendor = db.session.get(Vendor, vendor_id)
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor not found'}), 404

    data = vendor.to_dict()
    data.update({
        'admin_notes': vendor.admin_notes,
        'approved_by': vendor.approved_by,
        'owner': vendor.user.to_dict() if vendor.user else None,
        'live_sessions': [session.to_dict() for session in vendor.live_sessions[:20]],
        'static_locations': [location.to_dict() for location in vendor.static_locations],
    })
    return jsonify({'success': True, 'vendor': data}), 200


def _apply_vendor_status(vendor, status, reason=None, admin_notes=None):
    """Set a reviewed status on ``vendor`` and queue the owner's notification; the caller commits."""
    vendor.status = status
    if status == 'approved':
        vendor.approved_by = g.admin['adminId']
        vendor.approved_at = utcnow()
        vendor.rejection_reason = None
    elif status == 'rejected':
        vendor.approved_by = None
        vendor.approved_at = None
        vendor.rejection_reason = reason
    if admin_notes is not None:
        vendor.admin_notes = admin_notes

    message = f"Your vendor profile is now {status}"
    if status == 'rejected' and reason:
        message += f": {reason}"
    NotificationService.notify_user(vendor.user_id, 'vendor_status', message, link='/vendor/dashboard')


@admin_bp.route('/admin/vendors/<int:vendor_id>/status', methods=['PUT'])
@admin_required
def update_vendor_status(vendor_id):
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    reason = (data.get('reason') or '').strip() or None

    if status not in REVIEWABLE_STATUSES:
        return jsonify({
            'success': False,
            'error': f"status must be one of {', '.join(REVIEWABLE_STATUSES)}"
        }), 400

    vendor = db.session.get(Vendor, vendor_id)
    if not vendor:
        return jsonify({'success': False, 'error': 'Vendor not found'}), 404

    try:
        _apply_vendor_status(vendor, status, reason, admin_notes=data.get('admin_notes'))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Updating status of vendor {vendor_id} failed: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to update vendor status'}), 500

    current_app.logger.info(f"Admin {g.admin['username']} set vendor {vendor_id} to {status}")
    NotificationService.send_vendor_status_email(vendor, reason=reason)
    return jsonify({'success': True, 'vendor': vendor.to_dict()}), 200


@admin_bp.route('/admin/vendors/batch', methods=['PATCH'])
@admin_required
def batch_update_vendor_status():
    data = request.get_json(silent=True) or {}
    vendor_ids = data.get('vendorIds')
    action = data.get('action')
    reason = (data.get('reason') or '').strip() or None

    if (not isinstance(vendor_ids, list) or not vendor_ids
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in vendor_ids)):
        return jsonify({'success': False, 'error': 'vendorIds must be a non-empty list of vendor ids'}), 400
    if action not in BATCH_ACTIONS:
        return jsonify({
            'success': False,
            'error': f"action must be one of {', '.join(BATCH_ACTIONS)}"
        }), 400

    vendor_ids = list(dict.fromkeys(vendor_ids))
    vendors = Vendor.query.filter(Vendor.id.in_(vendor_ids)).all()
    missing = sorted(set(vendor_ids) - {vendor.id for vendor in vendors})
    if missing:
        return jsonify({'success': False, 'error': 'Vendor not found', 'missing': missing}), 404

    status = BATCH_ACTIONS[action]
    try:
        for vendor in vendors:
            _apply_vendor_status(vendor, status, reason)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Batch {action} of vendors {vendor_ids} failed: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to update vendors'}), 500

    current_app.logger.info(f"Admin {g.admin['username']} set {len(vendors)} vendors to {status}")
    for vendor in vendors:
        NotificationService.send_vendor_status_email(vendor, reason=reason)

    return jsonify({
        'success': True,
        'updated': len(vendors),
        'action': action,
        'vendors': [vendor.to_dict() for vendor in vendors]
    }), 200


@admin_bp.route('/admin/vendor-status', methods=['GET'])
@admin_required
def vendor_status_overview():
    now = utcnow()
    closing_hours = current_app.config.get('LIVE_SESSION_CLOSING_HOURS', 7)
    vendors = Vendor.query.options(selectinload(Vendor.live_sessions)).order_by(Vendor.business_name).all()

    overview = []
    for vendor in vendors:
        session = vendor.active_session
        if session is None:
            overview.append({
                'id': vendor.id,
                'business_name': vendor.business_name,
                'vendor_status': vendor.status,
                'status': STATUS_OFFLINE,
                'timeRemaining': 0,
                'sessionDuration': None,
                'session': None,
            })
            continue

        overview.append({
            'id': vendor.id,
            'business_name': vendor.business_name,
            'vendor_status': vendor.status,
            'status': derive_status(session, now, closing_hours),
            'timeRemaining': minutes_remaining(session, now),
            'sessionDuration': session_duration(session, now),
            'session': session.to_dict(),
        })

    counts = {}
    for row in overview:
        counts[row['status']] = counts.get(row['status'], 0) + 1

    return jsonify({'success': True, 'vendors': overview, 'counts': counts, 'timestamp': now.isoformat()}), 200


@admin_bp.route('/admin/live-sessions/expire', methods=['POST'])
@admin_required
def expire_sessions():
    try:
        ended = LiveSessionService.end_expired_sessions()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Expiring live sessions failed: {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to expire sessions'}), 500
    return jsonify({'success': True, 'ended': len(ended), 'sessionIds': [s.id for s in ended]}), 200


# ---------------------------------------------------------------- feedback

@admin_bp.route('/admin/feedback', methods=['GET'])
@admin_required
def list_feedback():
    if request.args.get('stats') == 'true':
        by_status = dict(db.session.query(VendorFeedback.status, func.count(VendorFeedback.id))
                         .group_by(VendorFeedback.status).all())
        by_type = dict(db.session.query(VendorFeedback.feedback_type, func.count(VendorFeedback.id))
                       .group_by(VendorFeedback.feedback_type).all())
        return jsonify({
            'success': True,
            'stats': {
                'total': sum(by_status.values()),
                'byStatus': {status: by_status.get(status, 0) for status in FEEDBACK_STATUSES},
                'byType': by_type,
            }
        }), 200

    page = parse_int_arg(request.args.get('page'), 1, minimum=1)
    limit = parse_int_arg(request.args.get('limit'), 20, minimum=1, maximum=100)

    query = VendorFeedback.query.join(Vendor)
    if request.args.get('status'):
        query = query.filter(VendorFeedback.status == request.args['status'])
    if request.args.get('type'):
        query = query.filter(VendorFeedback.feedback_type == request.args['type'].upper())
    if request.args.get('priority'):
        query = query.filter(VendorFeedback.priority == request.args['priority'].lower())
    if request.args.get('search'):
        pattern = f"%{request.args['search'].strip()}%"
        query = query.filter(or_(VendorFeedback.message.ilike(pattern), Vendor.business_name.ilike(pattern)))

    total = query.count()
    items = query.order_by(VendorFeedback.created_at.desc(), VendorFeedback.id.desc()) \
        .offset((page - 1) * limit).limit(limit).all()

    return jsonify({
        'success': True,
        'feedback': [item.to_dict() for item in items],
        'pagination': {'page': page, 'limit': limit, 'total': total, 'totalPages': (total + limit - 1) // limit}
    }), 200


@admin_bp.route('/admin/feedback', methods=['PUT'])
@admin_required
def update_feedback():
    data = request.get_json(silent=True) or {}
    feedback = db.session.get(VendorFeedback, data.get('id')) if data.get('id') else None
    if not feedback:
        return jsonify({'success': False, 'error': 'Feedback not found'}), 404

    status = data.get('status')
    if status not in FEEDBACK_STATUSES:
        return jsonify({'success': False, 'error': f"status must be one of {', '.join(FEEDBACK_STATUSES)}"}), 400

    feedback.status = status
    if 'admin_notes' in data:
        feedback.admin_notes = data['admin_notes']
    db.session.commit()
    return jsonify({'success': True, 'feedback': feedback.to_dict()}), 200


# ---------------------------------------------------------------- notifications

@admin_bp.route('/admin/notifications', methods=['GET'])
@admin_required
def list_notifications():
    limit = parse_int_arg(request.args.get('limit'), 20, minimum=1, maximum=100)
    offset = parse_int_arg(request.args.get('offset'), 0, minimum=0)
    notification_type = request.args.get('type')

    query = Notification.query
    if notification_type == 'unread':
        query = query.filter(Notification.is_read.is_(False))
    elif notification_type and notification_type != 'all':
        query = query.filter(Notification.type == notification_type)

    total = query.count()
    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()) \
        .offset(offset).limit(limit).all()

    return jsonify({
        'success': True,
        'notifications': [n.to_dict() for n in notifications],
        'total': total,
        'hasMore': offset + len(notifications) < total
    }), 200


@admin_bp.route('/admin/notifications', methods=['PATCH'])
@admin_required
def mark_notifications():
    data = request.get_json(silent=True) or {}
    action = data.get('action')

    if action == 'mark_read':
        notification = db.session.get(Notification, data.get('notificationId')) \
            if data.get('notificationId') else None
        if not notification:
            return jsonify({'success': False, 'error': 'Notification not found'}), 404
        notification.is_read = True
        db.session.commit()
        return jsonify({'success': True, 'updated': 1}), 200

    if action == 'mark_all_read':
        updated = Notification.query.filter(Notification.is_read.is_(False)) \
            .update({Notification.is_read: True}, synchronize_session=False)
        db.session.commit()
        return jsonify({'success': True, 'updated': updated}), 200

    return jsonify({'success': False, 'error': 'action must be mark_read or mark_all_read'}), 400


@admin_bp.route('/admin/notifications/stats', methods=['GET'])
@admin_required
def notification_stats():
    total = Notification.query.count()
    unread = Notification.query.filter(Notification.is_read.is_(False)).count()
    by_type = dict(db.session.query(Notification.type, func.count(Notification.id))
                   .group_by(Notification.type).all())
    return jsonify({'success': True, 'stats': {'total': total, 'unread': unread, 'byType': by_type}}), 200


# ---------------------------------------------------------------- analytics

def _daily_counts(timestamps, start, days):
    buckets = {(start + timedelta(days=i)).date().isoformat(): 0 for i in range(days)}
    for timestamp in timestamps:
        if timestamp is None:
            continue
        key = timestamp.date().isoformat()
        if key in buckets:
            buckets[key] += 1
    return [{'date': day, 'count': count} for day, count in buckets.items()]


@admin_bp.route('/admin/analytics', methods=['GET'])
@admin_required
def analytics():
    date_range = request.args.get('dateRange', '30d')
    days = DATE_RANGES.get(date_range)
    if days is None:
        return jsonify({'success': False, 'error': f"dateRange must be one of {', '.join(DATE_RANGES)}"}), 400

    now = utcnow()
    start = (now - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)

    try:
        user_dates = [row[0] for row in db.session.query(User.created_at).filter(User.created_at >= start)]
        vendor_dates = [row[0] for row in db.session.query(Vendor.created_at).filter(Vendor.created_at >= start)]
        session_dates = [row[0] for row in db.session.query(VendorLiveSession.start_time)
                         .filter(VendorLiveSession.start_time >= start)]

        feedback_by_type = dict(
            db.session.query(VendorFeedback.feedback_type, func.count(VendorFeedback.id))
            .filter(VendorFeedback.created_at >= start)
            .group_by(VendorFeedback.feedback_type).all()
        )
        feedback_by_status = dict(
            db.session.query(VendorFeedback.status, func.count(VendorFeedback.id))
            .filter(VendorFeedback.created_at >= start)
            .group_by(VendorFeedback.status).all()
        )

        session_count = func.count(VendorLiveSession.id).label('session_count')
        top_vendors = db.session.query(Vendor.id, Vendor.business_name, session_count) \
            .join(VendorLiveSession, VendorLiveSession.vendor_id == Vendor.id) \
            .filter(VendorLiveSession.start_time >= start) \
            .group_by(Vendor.id, Vendor.business_name) \
            .order_by(session_count.desc(), Vendor.id) \
            .limit(10).all()

        vendors_by_status = dict(db.session.query(Vendor.status, func.count(Vendor.id))
                                 .group_by(Vendor.status).all())
        summary = {
            'totalUsers': User.query.count(),
            'totalVendors': sum(vendors_by_status.values()),
            'vendorsByStatus': {status: vendors_by_status.get(status, 0) for status in VENDOR_STATUSES},
            'activeSessions': VendorLiveSession.query.filter(VendorLiveSession.is_active.is_(True)).count(),
            'newUsers': len(user_dates),
            'newVendors': len(vendor_dates),
            'sessionsInRange': len(session_dates),
        }
    except Exception as e:
        current_app.logger.error(f"Analytics query failed ({date_range}): {str(e)}")
        return jsonify({'success': False, 'error': 'Failed to load analytics'}), 500

    return jsonify({
        'success': True,
        'dateRange': date_range,
        'userGrowth': _daily_counts(user_dates, start, days),
        'vendorGrowth': _daily_counts(vendor_dates, start, days),
        'liveSessions': _daily_counts(session_dates, start, days),
        'feedback': {'byType': feedback_by_type, 'byStatus': feedback_by_status},
        'topVendors': [
            {'id': row.id, 'business_name': row.business_name, 'sessions': row.session_count}
            for row in top_vendors
        ],
        'summary': summary
    }), 200


# ---------------------------------------------------------------- settings

@admin_bp.route('/admin/settings', methods=['GET'])
@admin_required
def get_settings():
    settings = PlatformSettings.current()
    db.session.commit()
    return jsonify({'success': True, 'settings': settings.to_dict()}), 200


@admin_bp.route('/admin/settings', methods=['PUT'])
@admin_required
def update_settings():
    data = request.get_json(silent=True) or {}
    updates = {key: data[key] for key in SETTINGS_FIELDS if key in data}
    if not updates:
        return jsonify({
            'success': False,
            'error': f"Provide at least one of {', '.join(SETTINGS_FIELDS)}"
        }), 400

    for key, value in updates.items():
        if not isinstance(value, bool):
            return jsonify({'success': False, 'error': f'{key} must be a boolean'}), 400

    settings = PlatformSettings.current()
    for key, value in updates.items():
        setattr(settings, key, value)
    db.session.commit()

    current_app.logger.info(f"Admin {g.admin['username']} updated settings: {updates}")
    return jsonify({'success': True, 'settings': settings.to_dict()}), 200
