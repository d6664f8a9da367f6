# services/auth.py
"""
Request authentication.

Customers and vendors send ``Authorization: Bearer <token>`` issued by the
auth provider; the token is verified with ``AUTH_JWT_SECRET`` and the user row
is provisioned on first sight. Admins log in against ``admin_users`` and carry
a token issued here in the httpOnly ``admin-token`` cookie.
"""

from datetime import timedelta
from functools import wraps

import jwt
from flask import request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from db.extensions import db
from models.user import User
from services.live_status import utcnow

ADMIN_COOKIE_NAME = 'admin-token'


class AuthError(Exception):
    def __init__(self, message, status_code=401):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def extract_bearer_token():
    """Token from the Authorization header, or None when absent."""
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        raise AuthError("Invalid Authorization header format. Expected 'Bearer <token>'")
    return parts[1]


def verify_user_token(token):
    secret = current_app.config.get('AUTH_JWT_SECRET')
    if not secret:
        raise AuthError("AUTH_JWT_SECRET not configured", 500)

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=['HS256'],
            audience=current_app.config.get('AUTH_JWT_AUDIENCE', 'authenticated'),
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidAudienceError:
        raise AuthError("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {str(e)}")


def sync_user(payload):
    """Create or refresh the User row for a verified token payload."""
    user_id = payload.get('sub')
    if not user_id:
        raise AuthError("Token missing 'sub' claim")

    metadata = payload.get('user_metadata') or {}
    email = payload.get('email')
    full_name = metadata.get('full_name') or metadata.get('name')
    avatar_url = metadata.get('avatar_url')

    try:
        user = db.session.get(User, user_id)
        if user is None:
            current_app.logger.info(f"Provisioning new user {user_id}")
            user = User(id=user_id, email=email, full_name=full_name, avatar_url=avatar_url)
            db.session.add(user)
            db.session.commit()
        elif (email and user.email != email) or (full_name and user.full_name != full_name):
            user.email = email or user.email
            user.full_name = full_name or user.full_name
            user.avatar_url = avatar_url or user.avatar_url
            db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"User provisioning failed for {user_id}: {str(e)}")
        raise AuthError("User provisioning failed. Please contact support.")

    return user


def current_user_or_none():
    """Authenticated user for this request, or None. Bad tokens count as anonymous."""
    try:
        token = extract_bearer_token()
        user = sync_user(verify_user_token(token)) if token else None
    except AuthError as e:
        current_app.logger.info(f"Ignoring invalid credentials: {e.message}")
        user = None
    return user


def login_required(f):
    """Reject the request with 401 unless a valid bearer token is present."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = extract_bearer_token()
            if not token:
                raise AuthError("Not authenticated")
            g.current_user = sync_user(verify_user_token(token))
        except AuthError as e:
            return jsonify({'success': False, 'error': e.message}), e.status_code
        return f(*args, **kwargs)

    return decorated_function


def create_admin_token(admin):
    ttl_hours = current_app.config.get('ADMIN_TOKEN_TTL_HOURS', 24)
    now = utcnow()
    payload = {
        'adminId': admin.id,
        'username': admin.username,
        'email': admin.email,
        'type': 'admin',
        'iat': now,
        'exp': now + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, current_app.config['ADMIN_JWT_SECRET'], algorithm='HS256')


def verify_admin_token(token):
    """Decoded admin claims, or None for a missing/invalid/non-admin token."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, current_app.config['ADMIN_JWT_SECRET'], algorithms=['HS256'])
    except jwt.InvalidTokenError as e:
        current_app.logger.warning(f"Rejected admin token: {str(e)}")
        return None
    if claims.get('type') != 'admin':
        return None
    return claims


def admin_required(f):
    """Require a valid ``admin-token`` cookie; claims are exposed as ``g.admin``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = verify_admin_token(request.cookies.get(ADMIN_COOKIE_NAME))
        if not claims:
            return jsonify({'success': False, 'error': 'Unauthorized access'}), 401
        g.admin = claims
        return f(*args, **kwargs)

    return decorated_function
