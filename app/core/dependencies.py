"""
Core dependencies: state, gateways and error-result translation for routes
"""

from fastapi import HTTPException, Request, status
from typing import NoReturn

from app.core.errors import (
    GatewayError, InvalidPayloadError, NotAuthenticatedError, RecordNotFoundError,
    SessionMissingError
)
from app.core.results import GatewayResult
from app.core.state import AppState
from app.modules.auth.service import AuthGateway
from app.modules.subscriptions.service import SubscriptionsGateway


def get_store(request: Request) -> AppState:
    return request.app.state.store


def get_auth_gateway(request: Request) -> AuthGateway:
    gateway = getattr(request.app.state, "auth_gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase is not configured"
        )
    return gateway


def get_subscriptions_gateway(request: Request) -> SubscriptionsGateway:
    gateway = getattr(request.app.state, "subscriptions_gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase is not configured"
        )
    return gateway


def raise_for_error(error: GatewayError, default_status: int = status.HTTP_502_BAD_GATEWAY) -> NoReturn:
    if isinstance(error, (NotAuthenticatedError, SessionMissingError)):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error.message)
    if isinstance(error, InvalidPayloadError):
        raise HTTPException(status_code=422, detail=error.message)
    if isinstance(error, RecordNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    raise HTTPException(status_code=default_status, detail=error.message)


def unwrap(result: GatewayResult, default_status: int = status.HTTP_502_BAD_GATEWAY):
    """Return result.data, or raise the HTTPException matching result.error"""
    if result.error is not None:
        raise_for_error(result.error, default_status)
    return result.data
