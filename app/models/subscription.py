# app/models/subscription.py
"""
Modèles Pydantic pour les abonnements dealers
"""

from pydantic import BaseModel, Field
from typing import NamedTuple, Optional
from datetime import datetime
from enum import Enum


class SubscriptionPlan(str, Enum):
    basic = "basic"
    premium = "premium"
    enterprise = "enterprise"


class SubscriptionStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    expired = "expired"
    cancelled = "cancelled"


class PlanTerms(NamedTuple):
    listing_limit: int
    monthly_price: int  # en roupies


PLAN_CATALOG: dict[SubscriptionPlan, PlanTerms] = {
    SubscriptionPlan.basic: PlanTerms(listing_limit=5, monthly_price=999),
    SubscriptionPlan.premium: PlanTerms(listing_limit=25, monthly_price=2999),
    SubscriptionPlan.enterprise: PlanTerms(listing_limit=100, monthly_price=9999),
}


class SubscriptionCreate(BaseModel):
    plan: SubscriptionPlan
    payment_method_id: str = Field(..., min_length=1)


class Subscription(BaseModel):
    """Modèle complet d'un abonnement"""
    id: str
    user_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    listing_limit: int = Field(..., ge=0)
    expires_at: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.active
