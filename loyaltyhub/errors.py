"""
loyaltyhub/errors.py
--------------------
API exception hierarchy.

Services raise these; the handlers registered in create_app() turn them
into the JSON envelope  {success: false, message, errors?, ...}.
"""


class APIError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, errors=None, **payload):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors
        self.payload = payload

    def to_dict(self) -> dict:
        body = {'success': False, 'message': self.message}
        if self.errors:
            body['errors'] = list(self.errors)
        body.update(self.payload)
        return body


class ValidationError(APIError):
    status_code = 400
    default_message = 'Validation error'

    def __init__(self, message=None, errors=None, **payload):
        # A lone error doubles as the headline message
        if message is None and errors and len(errors) == 1:
            message = errors[0]
        super().__init__(message, errors, **payload)


class UnknownColumnError(ValidationError):
    """An identifier outside a model's column allowlist reached the accessor layer."""

    def __init__(self, table, column):
        super().__init__(f'Unknown column "{column}" for {table}')
        self.table = table
        self.column = column


class AuthenticationError(APIError):
    status_code = 401
    default_message = 'Invalid credentials'


class PermissionDenied(APIError):
    status_code = 403
    default_message = 'Permission denied'


class NotFoundError(APIError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(APIError):
    status_code = 409
    default_message = 'Conflict'
