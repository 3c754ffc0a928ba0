from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, Literal, Optional
from datetime import date, datetime

BillingCycle = Literal["weekly", "monthly", "yearly"]
SubscriptionStatus = Literal["active", "cancelled"]


class SubscriptionCreate(BaseModel):
    name: str = Field(min_length=1)
    amount: float = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3)
    billing_cycle: BillingCycle
    next_billing_date: date
    status: SubscriptionStatus = "active"


class SubscriptionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    billing_cycle: Optional[BillingCycle] = None
    next_billing_date: Optional[date] = None
    status: Optional[SubscriptionStatus] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Every column is NOT NULL; leave a field out instead of nulling it
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class SubscriptionResponse(BaseModel):
    id: str
    user_id: str
    name: str
    amount: float
    currency: str
    billing_cycle: BillingCycle
    next_billing_date: date
    status: SubscriptionStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionSummary(BaseModel):
    active_count: int
    cancelled_count: int
    monthly_totals: Dict[str, float]  # currency -> monthly-equivalent spend
    yearly_totals: Dict[str, float]
