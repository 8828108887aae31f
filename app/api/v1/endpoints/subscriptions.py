"""
Routes API pour les abonnements dealers et les webhooks Stripe
"""
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import BaseModel

from app.api.deps import get_services, require_dealer, require_user
from app.container import Services
from app.models import (
    PLAN_CATALOG, Requester, Subscription, SubscriptionCreate, SubscriptionPlan,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class PlanInfo(BaseModel):
    plan: SubscriptionPlan
    listing_limit: int
    monthly_price: int


@router.get("/plans", response_model=List[PlanInfo])
def list_plans():
    """Catalogue des plans (limite d'annonces, prix mensuel en roupies)"""
    return [
        PlanInfo(plan=plan, listing_limit=terms.listing_limit, monthly_price=terms.monthly_price)
        for plan, terms in PLAN_CATALOG.items()
    ]


@router.get("/current", response_model=Optional[Subscription])
def get_current_subscription(
    user: Requester = Depends(require_user),
    services: Services = Depends(get_services),
):
    """Abonnement le plus récent (null si aucun)"""
    return services.subscriptions.get_current_subscription(user.user_id)


@router.post("/", response_model=Subscription, status_code=status.HTTP_201_CREATED)
def create_subscription(
    data: SubscriptionCreate,
    user: Requester = Depends(require_user),
    services: Services = Depends(get_services),
):
    return services.subscriptions.create_subscription(
        user.user_id, data.plan, data.payment_method_id
    )


@router.post("/trial", response_model=Subscription, status_code=status.HTTP_201_CREATED)
def start_trial(
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Essai gratuit du plan basic"""
    return services.subscriptions.start_trial(dealer.user_id)


@router.post("/{subscription_id}/cancel", response_model=Subscription)
def cancel_subscription(
    subscription_id: str,
    user: Requester = Depends(require_user),
    services: Services = Depends(get_services),
):
    return services.subscriptions.cancel_subscription(user.user_id, subscription_id)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    """
    Réception des événements Stripe.

    Un événement non géré ou portant un abonnement inconnu est acquitté sans effet.
    """
    payload = await request.body()
    event = services.billing.construct_event(payload, stripe_signature)
    updated = services.subscriptions.handle_webhook(event)
    return {"received": True, "updated": updated}
