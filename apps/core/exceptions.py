"""
Error taxonomy and the DRF exception handler

Every error leaves the API as ``{'success': False, 'error': {...}}``.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("visibility.audit")


def custom_exception_handler(exc, context):
    """Wrap DRF errors and the project's own exceptions in the error envelope."""
    response = exception_handler(exc, context)
    if response is not None:
        _log_security_event(exc, context, response.status_code)
        payload = response.data if isinstance(response.data, dict) else {'detail': response.data}
        response.data = _envelope(response.status_code, get_error_message(response.data), payload)
        return response

    for exc_class, render in _RENDERERS:
        if isinstance(exc, exc_class):
            code, body = render(exc)
            _log_security_event(exc, context, code)
            return Response(body, status=code)

    if isinstance(exc, OrgIntegrityError):
        logger.exception("Organization tree integrity failure (org_id=%s): %s", exc.org_id, exc)
    else:
        logger.exception("Unhandled error in API view: %s", exc)
    return Response(
        _envelope(500, 'Internal Server Error', {'detail': 'An unexpected error occurred.'}),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _render_api_exception(exc):
    details = {exc.field: [exc.message]} if exc.field else {'detail': exc.message}
    return exc.status_code, _envelope(exc.status_code, exc.message, details, error_type=exc.code)


def _render_django_validation(exc):
    logger.warning("Model validation failed: %s", exc)
    details = exc.message_dict if hasattr(exc, 'error_dict') else {'validation_errors': exc.messages}
    return status.HTTP_400_BAD_REQUEST, _envelope(400, 'Validation Error', details)


def _envelope(code, message, details, error_type=None):
    error = {
        'code': code,
        'message': message,
        'details': details,
    }
    if error_type:
        error['type'] = error_type
    return {'success': False, 'error': error}


def _log_security_event(exc, context, status_code):
    """Audit 401/403 responses with the acting organization of the request."""
    if status_code not in (401, 403):
        return

    request = context.get("request")
    if request is None:
        return

    user = getattr(request, "user", None)
    authenticated = bool(user and getattr(user, "is_authenticated", False))
    organization = getattr(request, "organization", None)

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)) or not authenticated:
        event_type = "unauthenticated_read"
    elif isinstance(exc, PermissionDenied):
        event_type = "visibility_denied"
    elif isinstance(exc, PermissionDeniedException):
        event_type = "action_denied"
    else:
        event_type = "access_refused"

    security_logger.warning(
        "api_security_event type=%s status=%s method=%s path=%s user_id=%s org_id=%s error=%s",
        event_type,
        status_code,
        request.method,
        request.path,
        user.pk if authenticated else None,
        getattr(organization, "pk", organization),
        exc.__class__.__name__,
    )


def get_error_message(data):
    """First human-readable message in a DRF error payload (nested dicts included)."""
    if isinstance(data, dict):
        for key in ('detail', 'non_field_errors'):
            if key in data:
                return get_error_message(data[key])
        for key, value in data.items():
            message = get_error_message(value)
            if message:
                return f"{key}: {message}"
        return ''
    if isinstance(data, (list, tuple)):
        return get_error_message(data[0]) if data else ''
    return str(data)


class OrgIntegrityError(Exception):
    """
    The organization tree is malformed (parent cycle, dangling parent,
    missing company root). Fatal: indicates structural data corruption.
    """

    def __init__(self, message, org_id=None):
        self.org_id = org_id
        super().__init__(message)


class APIException(Exception):
    """Domain error that maps onto an HTTP status and a machine-readable code."""

    default_code = 'error'
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, code=None, status_code=None, field=None):
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.field = field
        super().__init__(message)


class ValidationException(APIException):
    default_code = 'validation_error'

    def __init__(self, message, field=None, code=None):
        super().__init__(message, code=code, field=field)


class PermissionDeniedException(APIException):
    default_code = 'permission_denied'
    default_status = status.HTTP_403_FORBIDDEN

    def __init__(self, message="You do not have access to this record"):
        super().__init__(message)


class GoalLinkError(ValidationException):
    """A goal link was rejected before persistence."""


class CircularDependencyError(GoalLinkError):
    def __init__(self, parent_id=None, child_id=None):
        super().__init__(
            "This link would create a circular dependency",
            field='child',
            code='circular_dependency',
        )
        self.parent_id = parent_id
        self.child_id = child_id


class DuplicateLinkError(GoalLinkError):
    def __init__(self, parent_id=None, child_id=None, link_type=None):
        super().__init__("Link already exists", field='child', code='duplicate_link')
        self.parent_id = parent_id
        self.child_id = child_id
        self.link_type = link_type


class InvalidGoalLinkError(GoalLinkError):
    def __init__(self, message, field='child'):
        super().__init__(message, field=field, code='invalid_link')


_RENDERERS = (
    (APIException, _render_api_exception),
    (DjangoValidationError, _render_django_validation),
)
