from fastapi import APIRouter, Depends

from app.config import settings
from app.core.dependencies import get_store
from app.core.route_guard import require_login
from app.core.state import AppState

router = APIRouter(tags=["pages"])


@router.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@router.get("/about")
async def about():
    return {"page": "about"}


@router.get(settings.fallback_login_path)
async def legacy_login_page():
    return {"page": "login", "login_path": settings.login_path}


@router.get(settings.home_path)
async def home(store: AppState = Depends(get_store)):
    """Protected home; the global guard keeps anonymous callers out"""
    return {
        "page": "home",
        "user": store.auth.user,
        "subscriptions": len(store.subscriptions.subscriptions),
    }


@router.get("/account", dependencies=[Depends(require_login)])
async def account(store: AppState = Depends(get_store)):
    return {"page": "account", "user": store.auth.user}
