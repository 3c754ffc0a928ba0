from fastapi import APIRouter, Depends, status
from typing import List

from app.config import settings
from app.core.dependencies import get_store, get_subscriptions_gateway, unwrap
from app.core.state import AppState
from app.modules.subscriptions.schemas import (
    SubscriptionCreate, SubscriptionUpdate, SubscriptionResponse, SubscriptionSummary
)
from app.modules.subscriptions.service import SubscriptionsGateway, summarize_subscriptions

router = APIRouter(prefix=f"{settings.protected_prefix}/subscriptions", tags=["subscriptions"])


@router.get("", response_model=List[SubscriptionResponse])
async def list_subscriptions(gateway: SubscriptionsGateway = Depends(get_subscriptions_gateway)):
    """Reload from Supabase, ordered by next billing date"""
    return unwrap(await gateway.fetch_subscriptions())


@router.post("", response_model=SubscriptionResponse, status_code=201)
async def create_subscription(
    subscription_data: SubscriptionCreate,
    gateway: SubscriptionsGateway = Depends(get_subscriptions_gateway)
):
    return unwrap(await gateway.create_subscription(subscription_data))


@router.get("/summary", response_model=SubscriptionSummary)
async def subscription_summary(store: AppState = Depends(get_store)):
    """Spend totals over the cached list; call the list endpoint first to refresh it"""
    return summarize_subscriptions(store.subscriptions.subscriptions)


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
async def get_subscription(
    subscription_id: str,
    gateway: SubscriptionsGateway = Depends(get_subscriptions_gateway)
):
    return unwrap(await gateway.get_subscription(subscription_id))


@router.patch("/{subscription_id}", response_model=SubscriptionResponse)
async def update_subscription(
    subscription_id: str,
    subscription_data: SubscriptionUpdate,
    gateway: SubscriptionsGateway = Depends(get_subscriptions_gateway)
):
    return unwrap(await gateway.update_subscription(subscription_id, subscription_data))


@router.delete("/{subscription_id}", status_code=status.HTTP_200_OK)
async def delete_subscription(
    subscription_id: str,
    gateway: SubscriptionsGateway = Depends(get_subscriptions_gateway)
):
    unwrap(await gateway.delete_subscription(subscription_id))
    return {"message": "Subscription deleted successfully"}
