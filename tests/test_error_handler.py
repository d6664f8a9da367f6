# tests/test_error_handler.py
import logging

from services.error_handler import AppError, ErrorSeverity, ErrorType, handle_error, infer_error_type


def test_infer_type_from_message():
    assert infer_error_type(Exception('Token expired')) is ErrorType.AUTHENTICATION
    assert infer_error_type(Exception('Forbidden resource')) is ErrorType.AUTHORIZATION
    assert infer_error_type(Exception('invalid payload')) is ErrorType.VALIDATION
    assert infer_error_type(Exception('Connection reset')) is ErrorType.NETWORK
    assert infer_error_type(Exception('IntegrityError on insert')) is ErrorType.DATABASE
    assert infer_error_type(Exception('Geolocation denied')) is ErrorType.GEOLOCATION
    assert infer_error_type(Exception('Cloudinary timeout')) is ErrorType.EXTERNAL_API
    assert infer_error_type(Exception('boom')) is ErrorType.UNKNOWN


def test_status_codes_follow_type():
    assert AppError(ErrorType.AUTHENTICATION, 'x').status_code == 401
    assert AppError(ErrorType.AUTHORIZATION, 'x').status_code == 403
    assert AppError(ErrorType.VALIDATION, 'x').status_code == 400
    assert AppError(ErrorType.DATABASE, 'x').status_code == 500
    assert AppError(ErrorType.DATABASE, 'x', status_code=409).status_code == 409


def test_to_dict_includes_code_only_when_set():
    assert AppError(ErrorType.VALIDATION, 'bad').to_dict() == {
        'success': False, 'error': 'bad', 'type': 'VALIDATION'
    }
    assert AppError(ErrorType.DATABASE, 'dup', code='ACTIVE_SESSION_EXISTS').to_dict()['code'] == \
        'ACTIVE_SESSION_EXISTS'


def test_handle_error_wraps_plain_exceptions(caplog):
    original = ValueError('invalid latitude')
    with caplog.at_level(logging.INFO, logger='services.error_handler'):
        wrapped = handle_error(original, context='go_live')

    assert isinstance(wrapped, AppError)
    assert wrapped.type is ErrorType.VALIDATION
    assert wrapped.details is original
    assert 'go_live' in caplog.text


def test_handle_error_respects_min_severity(caplog):
    error = AppError(ErrorType.VALIDATION, 'quiet', severity=ErrorSeverity.LOW)
    with caplog.at_level(logging.DEBUG, logger='services.error_handler'):
        assert handle_error(error, min_severity=ErrorSeverity.HIGH) is error
    assert 'quiet' not in caplog.text
