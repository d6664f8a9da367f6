# services/error_handler.py
"""
Error classification used by controllers and services.

Plain exceptions are tagged with a type inferred from their message and a
severity, then logged at a matching level. ``AppError`` is raised by services
that know the HTTP status the caller should see.
"""

import enum
import logging
from services.live_status import utcnow

logger = logging.getLogger(__name__)


class ErrorType(enum.Enum):
    AUTHENTICATION = 'AUTHENTICATION'
    AUTHORIZATION = 'AUTHORIZATION'
    VALIDATION = 'VALIDATION'
    NETWORK = 'NETWORK'
    DATABASE = 'DATABASE'
    GEOLOCATION = 'GEOLOCATION'
    EXTERNAL_API = 'EXTERNAL_API'
    UNKNOWN = 'UNKNOWN'


class ErrorSeverity(enum.IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

_STATUS_CODES = {
    ErrorType.AUTHENTICATION: 401,
    ErrorType.AUTHORIZATION: 403,
    ErrorType.VALIDATION: 400,
}

# Checked in order; first match wins
_TYPE_KEYWORDS = [
    (ErrorType.AUTHENTICATION, ('auth', 'login', 'token')),
    (ErrorType.AUTHORIZATION, ('permission', 'unauthorized', 'forbidden')),
    (ErrorType.VALIDATION, ('validation', 'invalid')),
    (ErrorType.NETWORK, ('network', 'fetch', 'connection')),
    (ErrorType.DATABASE, ('database', 'sql', 'integrity')),
    (ErrorType.GEOLOCATION, ('geolocation', 'location', 'coordinates')),
    (ErrorType.EXTERNAL_API, ('api', 'external', 'cloudinary')),
]


class AppError(Exception):
    def __init__(self, error_type, message, severity=ErrorSeverity.MEDIUM,
                 code=None, details=None, context=None, status_code=None):
        super().__init__(message)
        self.type = error_type
        self.message = message
        self.severity = severity
        self.code = code
        self.details = details
        self.context = context
        self.timestamp = utcnow()
        self.status_code = status_code or _STATUS_CODES.get(error_type, 500)

    def to_dict(self):
        body = {
            'success': False,
            'error': self.message,
            'type': self.type.value,
        }
        if self.code:
            body['code'] = self.code
        return body


def infer_error_type(error):
    message = str(error).lower()
    for error_type, keywords in _TYPE_KEYWORDS:
        if any(keyword in message for keyword in keywords):
            return error_type
    return ErrorType.UNKNOWN


def handle_error(error, context=None, min_severity=ErrorSeverity.LOW):
    """Wrap ``error`` as an AppError (if it is not one already) and log it."""
    if isinstance(error, AppError):
        app_error = error
        if context and not app_error.context:
            app_error.context = context
    else:
        app_error = AppError(
            infer_error_type(error),
            str(error),
            severity=ErrorSeverity.MEDIUM,
            details=error,
            context=context,
        )

    if app_error.severity >= min_severity:
        logger.log(
            _LOG_LEVELS[app_error.severity],
            f"[{app_error.type.value}] {app_error.message}"
            + (f" (context: {app_error.context})" if app_error.context else "")
            + (f" code={app_error.code}" if app_error.code else "")
        )
    return app_error
