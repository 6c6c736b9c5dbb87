# File: seerr_users/errors.py
"""Domain errors raised by the services and rendered as JSON by the app."""
from typing import Optional


class AccountError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {'message': self.message, 'errors': [self.code]}


class InvalidRequest(AccountError):
    status_code = 400
    code = 'INVALID_REQUEST'


class InvalidAccountState(AccountError):
    status_code = 400
    code = 'INVALID_ACCOUNT_STATE'


class Forbidden(AccountError):
    status_code = 403
    code = 'FORBIDDEN'


class NotFound(AccountError):
    status_code = 404
    code = 'NOT_FOUND'


class Unconfigured(AccountError):
    """A required provider is not set up. Reported as 404 like a missing resource."""
    status_code = 404
    code = 'NOT_CONFIGURED'


class Conflict(AccountError):
    status_code = 409
    code = 'USER_EXISTS'


class UpstreamFailure(AccountError):
    status_code = 502
    code = 'UPSTREAM_FAILURE'

    def __init__(self, message: str, upstream_status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.upstream_status = upstream_status


class ProviderError(Exception):
    """Raised by provider clients. ``status_code`` is the upstream HTTP status when known."""

    def __init__(self, message: str, status_code: Optional[int] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider

    @property
    def is_not_found(self):
        return self.status_code == 404

    def to_upstream_failure(self, context: str) -> UpstreamFailure:
        return UpstreamFailure(f"{context}: {self.message}", upstream_status=self.status_code)
