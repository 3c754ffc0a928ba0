"""
Navigation guard.

Global rule (RouteGuardMiddleware, every request):
  protected prefix without a principal  -> login page
  auth pages with a principal           -> protected home
  anything else                         -> through

Selective rule (require_login dependency): single fixed login redirect,
no session bootstrap.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from starlette.responses import RedirectResponse

from app.config import settings
from app.core.state import AppState

logger = logging.getLogger(__name__)

# Liveness and readiness checks never touch Supabase
UNGUARDED_PATHS = frozenset({"/health", "/ready"})


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def resolve_redirect(path: str, is_authenticated: bool) -> Optional[str]:
    """Return the redirect target for `path`, or None to let the navigation through."""
    if _under(path, settings.protected_prefix) and not is_authenticated:
        return settings.login_path
    if path.startswith(settings.auth_prefix) and is_authenticated:
        return settings.home_path
    return None


async def guard_navigation(path: str, store: AppState, auth_gateway=None) -> Optional[str]:
    if not store.auth.is_authenticated and auth_gateway is not None:
        await auth_gateway.load_user()
    return resolve_redirect(path, store.auth.is_authenticated)


class RouteGuardMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope["app"].state
        store: Optional[AppState] = getattr(state, "store", None)
        if store is None:
            # Startup has not built the state yet
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        if path in UNGUARDED_PATHS:
            await self.app(scope, receive, send)
            return

        target = await guard_navigation(path, store, getattr(state, "auth_gateway", None))
        if target is None:
            await self.app(scope, receive, send)
            return

        logger.debug(f"Redirecting {path} -> {target}")
        response = RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
        await response(scope, receive, send)


def require_login(request: Request) -> None:
    """Per-route guard: anonymous callers go to the fallback login page."""
    store: AppState = request.app.state.store
    if not store.auth.is_authenticated and request.url.path != settings.fallback_login_path:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            headers={"Location": settings.fallback_login_path},
        )
