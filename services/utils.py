# services/utils.py

import math
from flask_mail import Message
from db.extensions import mail
from flask import current_app


def validate_json(data, required_fields):
    """Return the required fields that are missing or empty in ``data``."""
    missing_fields = []
    for field in required_fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)
    return missing_fields


def to_float(value):
    """Coerce a JSON/form value to float; None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_int_arg(value, default, minimum=None, maximum=None):
    """Parse a query-string integer, falling back to ``default`` and clamping."""
    try:
        number = int(value) if value is not None else default
    except (TypeError, ValueError):
        number = default
    if minimum is not None:
        number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def get_client_ip(request):
    """Best guess at the caller's IP behind proxies."""
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()
    real_ip = request.headers.get('X-Real-IP')
    if real_ip:
        return real_ip
    cf_ip = request.headers.get('CF-Connecting-IP')
    if cf_ip:
        return cf_ip
    return request.remote_addr or 'unknown'


def file_size(file_storage):
    """Size in bytes of an uploaded file; the stream is rewound afterwards."""
    stream = file_storage.stream
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


def send_email(subject, recipients, body, html=None):
    """Send a plain/HTML email. Failures are logged; returns whether it was sent."""
    recipients = [r for r in recipients if r]
    if not recipients:
        current_app.logger.warning(f"No recipients for email '{subject}', skipping")
        return False

    msg = Message(subject, recipients=recipients)
    msg.body = body
    if html:
        msg.html = html
    try:
        mail.send(msg)
        current_app.logger.info(f"Mail '{subject}' sent to {recipients}")
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to send email '{subject}': {e}")
        return False
