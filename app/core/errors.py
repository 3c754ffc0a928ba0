"""
Error variants returned (never raised) by the gateways.

SessionMissingError   - no active session; an expected, silent state
NotAuthenticatedError - operation needs a principal and none is loaded
InvalidPayloadError   - caller input rejected before any backend call
BackendError          - anything Supabase reported (network, validation, RLS),
                        including rows that fail to parse
RecordNotFoundError   - a scoped single-row query matched nothing
"""

from typing import Optional

from supabase import AuthSessionMissingError


class GatewayError(Exception):
    """Base for every error a gateway hands back to its caller"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation


class SessionMissingError(GatewayError):
    def __init__(self, operation: Optional[str] = None):
        super().__init__("Auth session missing!", operation)


class NotAuthenticatedError(GatewayError):
    def __init__(self, operation: Optional[str] = None):
        super().__init__("Not authenticated", operation)


class InvalidPayloadError(GatewayError):
    pass


class BackendError(GatewayError):
    pass


class RecordNotFoundError(BackendError):
    pass


def to_gateway_error(exc: Exception, operation: str) -> GatewayError:
    """Wrap an SDK exception into the matching variant, keeping it as __cause__."""
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, AuthSessionMissingError):
        error = SessionMissingError(operation)
    else:
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        error = BackendError(message, operation)
    error.__cause__ = exc
    return error
