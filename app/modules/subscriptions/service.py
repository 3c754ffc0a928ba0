import logging
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError
from supabase import AsyncClient

from app.core.errors import (
    InvalidPayloadError, NotAuthenticatedError, RecordNotFoundError, to_gateway_error
)
from app.core.results import GatewayResult
from app.core.state import AppState
from app.modules.subscriptions.schemas import (
    SubscriptionCreate, SubscriptionUpdate, SubscriptionResponse, SubscriptionSummary
)

logger = logging.getLogger(__name__)

TABLE = "subscriptions"


class SubscriptionsGateway:
    """
    CRUD on the current principal's subscriptions.

    The local list in AppState.subscriptions is a cache of the table: it is
    written only after Supabase confirms a change, and every query is scoped
    by user_id.
    """

    def __init__(self, supabase: AsyncClient, store: AppState):
        self.supabase = supabase
        self.store = store

    @property
    def state(self):
        return self.store.subscriptions

    def _require_user_id(self, operation: str) -> Optional[str]:
        user = self.store.auth.user
        if user is None:
            logger.error(f"User not authenticated ({operation})")
            return None
        return user.id

    def _is_current(self, user_id: str) -> bool:
        """False when the principal changed while a request was in flight"""
        user = self.store.auth.user
        return user is not None and user.id == user_id

    async def fetch_subscriptions(self) -> GatewayResult[List[SubscriptionResponse]]:
        """Reload the whole list, soonest billing first. On failure the cache is emptied."""
        user_id = self._require_user_id("fetch_subscriptions")
        if user_id is None:
            return GatewayResult.failure(NotAuthenticatedError("fetch_subscriptions"))

        with self.state.busy():
            try:
                result = await self.supabase.table(TABLE)\
                    .select("*")\
                    .eq("user_id", user_id)\
                    .order("next_billing_date", desc=False)\
                    .execute()
                items = [SubscriptionResponse(**row) for row in (result.data or [])]
                if self._is_current(user_id):
                    self.state.replace_all(items)
                return GatewayResult.success(items)
            except Exception as e:
                logger.error(f"Error fetching subscriptions: {e}")
                if self._is_current(user_id):
                    self.state.clear()
                return GatewayResult.failure(to_gateway_error(e, "fetch_subscriptions"))

    async def create_subscription(
        self, payload: Union[SubscriptionCreate, Dict[str, Any]]
    ) -> GatewayResult[SubscriptionResponse]:
        user_id = self._require_user_id("create_subscription")
        if user_id is None:
            return GatewayResult.failure(NotAuthenticatedError("create_subscription"))

        with self.state.busy():
            try:
                data = validate_payload(SubscriptionCreate, payload, "create_subscription")\
                    .model_dump(mode="json")
                data["user_id"] = user_id
                result = await self.supabase.table(TABLE).insert(data).execute()
                if not result.data:
                    raise RecordNotFoundError("Insert returned no row", "create_subscription")
                created = SubscriptionResponse(**result.data[0])
                if self._is_current(user_id):
                    self.state.append(created)
                return GatewayResult.success(created)
            except Exception as e:
                logger.error(f"Error creating subscription: {e}")
                return GatewayResult.failure(to_gateway_error(e, "create_subscription"))

    async def update_subscription(
        self, subscription_id: str, payload: Union[SubscriptionUpdate, Dict[str, Any]]
    ) -> GatewayResult[SubscriptionResponse]:
        user_id = self._require_user_id("update_subscription")
        if user_id is None:
            return GatewayResult.failure(NotAuthenticatedError("update_subscription"))

        with self.state.busy():
            try:
                data = validate_payload(SubscriptionUpdate, payload, "update_subscription")\
                    .model_dump(mode="json", exclude_unset=True)
                if not data:
                    # No changes, return the stored record untouched
                    result = await self.supabase.table(TABLE)\
                        .select("*")\
                        .eq("id", subscription_id)\
                        .eq("user_id", user_id)\
                        .maybe_single()\
                        .execute()
                    if result is None or not result.data:
                        raise RecordNotFoundError("Subscription not found", "update_subscription")
                    return GatewayResult.success(SubscriptionResponse(**result.data))
                result = await self.supabase.table(TABLE)\
                    .update(data)\
                    .eq("id", subscription_id)\
                    .eq("user_id", user_id)\
                    .execute()
                if not result.data:
                    raise RecordNotFoundError("Subscription not found", "update_subscription")
                updated = SubscriptionResponse(**result.data[0])
                # An id missing from the cache is left alone; no insert here.
                if not self.state.replace(subscription_id, updated):
                    logger.debug(f"Updated subscription {subscription_id} is not in the local list")
                return GatewayResult.success(updated)
            except Exception as e:
                logger.error(f"Error updating subscription: {e}")
                return GatewayResult.failure(to_gateway_error(e, "update_subscription"))

    async def delete_subscription(self, subscription_id: str) -> GatewayResult[None]:
        """Delete by id. Matching no row is still a success."""
        user_id = self._require_user_id("delete_subscription")
        if user_id is None:
            return GatewayResult.failure(NotAuthenticatedError("delete_subscription"))

        with self.state.busy():
            try:
                await self.supabase.table(TABLE)\
                    .delete()\
                    .eq("id", subscription_id)\
                    .eq("user_id", user_id)\
                    .execute()
                self.state.remove(subscription_id)
                return GatewayResult.success()
            except Exception as e:
                logger.error(f"Error deleting subscription: {e}")
                return GatewayResult.failure(to_gateway_error(e, "delete_subscription"))

    async def get_subscription(self, subscription_id: str) -> GatewayResult[SubscriptionResponse]:
        user_id = self._require_user_id("get_subscription")
        if user_id is None:
            return GatewayResult.failure(NotAuthenticatedError("get_subscription"))

        with self.state.busy():
            try:
                result = await self.supabase.table(TABLE)\
                    .select("*")\
                    .eq("id", subscription_id)\
                    .eq("user_id", user_id)\
                    .maybe_single()\
                    .execute()
                if result is None or not result.data:
                    raise RecordNotFoundError("Subscription not found", "get_subscription")
                return GatewayResult.success(SubscriptionResponse(**result.data))
            except Exception as e:
                logger.error(f"Error fetching subscription: {e}")
                return GatewayResult.failure(to_gateway_error(e, "get_subscription"))


def validate_payload(model: Type[BaseModel], payload: Any, operation: str) -> BaseModel:
    """Validate caller input; only these failures count as the caller's fault."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidPayloadError(str(e), operation) from e


MONTHLY_FACTOR = {"weekly": 52 / 12, "monthly": 1.0, "yearly": 1 / 12}


def summarize_subscriptions(subscriptions: Iterable[SubscriptionResponse]) -> SubscriptionSummary:
    """Monthly and yearly spend per currency over active subscriptions"""
    active = 0
    cancelled = 0
    monthly: Dict[str, float] = {}
    for sub in subscriptions:
        if sub.status != "active":
            cancelled += 1
            continue
        active += 1
        currency = sub.currency.upper()
        monthly[currency] = monthly.get(currency, 0.0) + sub.amount * MONTHLY_FACTOR[sub.billing_cycle]
    return SubscriptionSummary(
        active_count=active,
        cancelled_count=cancelled,
        monthly_totals={c: round(v, 2) for c, v in monthly.items()},
        yearly_totals={c: round(v * 12, 2) for c, v in monthly.items()},
    )
