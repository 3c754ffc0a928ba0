import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.route_guard import RouteGuardMiddleware
from app.core.state import AppState
from app.database.supabase_client import SupabaseClient
from app.modules.auth import routes as auth_routes
from app.modules.auth.service import AuthGateway
from app.modules.pages import routes as pages_routes
from app.modules.subscriptions import routes as subscriptions_routes
from app.modules.subscriptions.service import SubscriptionsGateway

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


# Innermost first: the guard sees every navigation after CORS and headers
app.add_middleware(RouteGuardMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pages_routes.router)
app.include_router(auth_routes.router)
app.include_router(auth_routes.session_router)
app.include_router(subscriptions_routes.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    # One state container per process, shared by both gateways
    store = AppState()
    app.state.store = store
    app.state.auth_gateway = None
    app.state.subscriptions_gateway = None

    supabase = SupabaseClient.get_client() or await SupabaseClient.create_client()
    if supabase is None:
        logger.error("Supabase client unavailable; auth and subscriptions are disabled")
        return

    app.state.auth_gateway = AuthGateway(supabase, store)
    app.state.subscriptions_gateway = SubscriptionsGateway(supabase, store)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether the Supabase client was created."""
    return {"status": "ready", "supabase": SupabaseClient.is_available()}
