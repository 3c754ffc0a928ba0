from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from app.config import settings
from app.core.dependencies import get_auth_gateway, get_store, unwrap
from app.core.state import AppState
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, SessionResponse, OAuthProvider
)
from app.modules.auth.service import AuthGateway

router = APIRouter(prefix="/auth", tags=["auth"])

# Signing out happens from inside the protected area
session_router = APIRouter(prefix=settings.protected_prefix, tags=["auth"])


@router.get("/login")
async def login_page():
    """Login page for anonymous callers"""
    return {"page": "login", "providers": ["google", "github"]}


@router.post("/login", response_model=SessionResponse)
async def login(
    login_data: LoginRequest,
    gateway: AuthGateway = Depends(get_auth_gateway),
    store: AppState = Depends(get_store)
):
    unwrap(await gateway.sign_in(login_data.email, login_data.password), status.HTTP_401_UNAUTHORIZED)
    return SessionResponse(user=store.auth.user, message="Signed in")


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(
    register_data: RegisterRequest,
    gateway: AuthGateway = Depends(get_auth_gateway),
    store: AppState = Depends(get_store)
):
    unwrap(await gateway.sign_up(register_data.email, register_data.password), status.HTTP_400_BAD_REQUEST)
    return SessionResponse(user=store.auth.user, message="Account created")


@router.get("/oauth/{provider}")
async def oauth(provider: OAuthProvider, gateway: AuthGateway = Depends(get_auth_gateway)):
    """Send the browser to the provider; it comes back through /auth/callback"""
    if provider == "google":
        result = await gateway.sign_in_with_google()
    else:
        result = await gateway.sign_in_with_github()
    response = unwrap(result, status.HTTP_400_BAD_REQUEST)
    return RedirectResponse(response.url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/callback")
async def oauth_callback(
    code: str = Query(..., min_length=1),
    gateway: AuthGateway = Depends(get_auth_gateway)
):
    unwrap(await gateway.exchange_code(code), status.HTTP_400_BAD_REQUEST)
    return RedirectResponse(settings.home_path, status_code=status.HTTP_303_SEE_OTHER)


@session_router.post("/logout", response_model=SessionResponse)
async def logout(gateway: AuthGateway = Depends(get_auth_gateway)):
    unwrap(await gateway.sign_out())
    return SessionResponse(user=None, message="Signed out")
