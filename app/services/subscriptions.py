"""
Cycle de vie des abonnements : création, annulation, réconciliation des webhooks Stripe
"""
from calendar import monthrange
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging

from app.core.errors import NotFoundError, ValidationFailedError
from app.models import (
    PLAN_CATALOG, Subscription, SubscriptionPlan, SubscriptionStatus,
)

logger = logging.getLogger(__name__)

TRIAL_DAYS = 14

SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_PAID = "invoice.payment_succeeded"
INVOICE_FAILED = "invoice.payment_failed"


def add_months(moment: datetime, months: int = 1) -> datetime:
    """Ajoute des mois calendaires (31 janvier + 1 mois = 28/29 février)"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """L'ID d'abonnement d'une facture (ancien et nouveau format de l'API Stripe)"""
    if invoice.get("subscription"):
        return invoice["subscription"]
    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return details.get("subscription")


class SubscriptionService:
    def __init__(self, subscriptions, profiles, billing):
        self.subscriptions = subscriptions
        self.profiles = profiles
        self.billing = billing

    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        """L'abonnement le plus récent de l'utilisateur"""
        return self.subscriptions.latest_for_user(user_id)

    def _ensure_no_active(self, user_id: str) -> None:
        if self.subscriptions.active_for_user(user_id) is not None:
            raise ValidationFailedError(
                "SUBSCRIPTION_EXISTS", "User already has an active subscription"
            )

    def create_subscription(
        self,
        user_id: str,
        plan: SubscriptionPlan,
        payment_method_id: str,
    ) -> Subscription:
        """
        Souscrire un plan payant.

        Raises:
            ValidationFailedError: SUBSCRIPTION_EXISTS si un abonnement actif existe
            NotFoundError: PROFILE_NOT_FOUND sans email de contact
            UpstreamError: STRIPE_ERROR / SUBSCRIPTION_CREATION_FAILED
        """
        self._ensure_no_active(user_id)

        email = self.profiles.get_contact_email(user_id)
        if not email:
            raise NotFoundError("PROFILE_NOT_FOUND", "User profile not found")

        customer_id = self.subscriptions.billing_customer_id(user_id)
        if customer_id:
            customer_id = self.billing.retrieve_customer(customer_id)
        else:
            customer_id = self.billing.create_customer(email, payment_method_id)

        terms = PLAN_CATALOG[plan]
        stripe_subscription_id = self.billing.create_subscription(
            customer_id, plan.value, terms.monthly_price
        )

        subscription = self.subscriptions.create({
            "user_id": user_id,
            "plan": plan.value,
            "status": SubscriptionStatus.active.value,
            "stripe_subscription_id": stripe_subscription_id,
            "stripe_customer_id": customer_id,
            "listing_limit": terms.listing_limit,
            "expires_at": add_months(_now(), 1).isoformat(),
        })
        logger.info(f"✓ Abonnement {plan.value} actif pour {user_id}")
        return subscription

    def start_trial(self, user_id: str) -> Subscription:
        """
        Essai gratuit du plan basic offert à l'inscription d'un dealer.

        Un seul essai par utilisateur : tout abonnement antérieur, quel que soit
        son statut, ferme l'accès à l'essai.

        Raises:
            ValidationFailedError: TRIAL_ALREADY_USED
        """
        if self.subscriptions.latest_for_user(user_id) is not None:
            logger.warning(f"✗ Essai refusé pour {user_id} : historique d'abonnement existant")
            raise ValidationFailedError(
                "TRIAL_ALREADY_USED", "Free trial is only available once per account"
            )

        terms = PLAN_CATALOG[SubscriptionPlan.basic]
        return self.subscriptions.create({
            "user_id": user_id,
            "plan": SubscriptionPlan.basic.value,
            "status": SubscriptionStatus.active.value,
            "listing_limit": terms.listing_limit,
            "expires_at": (_now() + timedelta(days=TRIAL_DAYS)).isoformat(),
        })

    def cancel_subscription(self, user_id: str, subscription_id: str) -> Subscription:
        """
        Annuler un abonnement actif de l'utilisateur.

        L'annulation Stripe est faite au mieux : seule l'absence d'exception est
        vérifiée avant de passer le statut local à cancelled.
        """
        subscription = self.subscriptions.get_owned(subscription_id, user_id)
        if subscription is None:
            raise NotFoundError("SUBSCRIPTION_NOT_FOUND", "Subscription not found")

        if not subscription.is_active:
            raise ValidationFailedError("SUBSCRIPTION_NOT_ACTIVE", "Subscription is not active")

        if subscription.stripe_subscription_id:
            self.billing.cancel_subscription(subscription.stripe_subscription_id)

        updated = self.subscriptions.update(
            subscription_id, {"status": SubscriptionStatus.cancelled.value}
        )
        if updated is None:
            raise NotFoundError("SUBSCRIPTION_NOT_FOUND", "Subscription not found")

        logger.info(f"✓ Abonnement {subscription_id} annulé")
        return updated

    # ====================================
    # WEBHOOKS
    # ====================================

    def handle_webhook(self, event: Dict[str, Any]) -> bool:
        """
        Réconcilie l'état local avec un événement Stripe.

        Returns:
            True si un abonnement local a été mis à jour. Un type non géré ou un
            identifiant inconnu est un no-op (False), jamais rejoué.
        """
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == SUBSCRIPTION_UPDATED:
            status = (
                SubscriptionStatus.active
                if obj.get("status") == "active"
                else SubscriptionStatus.inactive
            )
            return self._reconcile(obj.get("id"), {"status": status.value}, event_type)

        if event_type == SUBSCRIPTION_DELETED:
            return self._reconcile(
                obj.get("id"), {"status": SubscriptionStatus.cancelled.value}, event_type
            )

        if event_type == INVOICE_PAID:
            return self._reconcile(
                _invoice_subscription_id(obj),
                {
                    "status": SubscriptionStatus.active.value,
                    "expires_at": add_months(_now(), 1).isoformat(),
                },
                event_type,
            )

        if event_type == INVOICE_FAILED:
            return self._reconcile(
                _invoice_subscription_id(obj),
                {"status": SubscriptionStatus.inactive.value},
                event_type,
            )

        logger.debug(f"Webhook ignoré: {event_type}")
        return False

    def _reconcile(self, stripe_subscription_id: Optional[str], data: Dict[str, Any], event_type: str) -> bool:
        if not stripe_subscription_id:
            logger.warning(f"Webhook {event_type} sans identifiant d'abonnement")
            return False

        updated = self.subscriptions.update_by_billing_id(stripe_subscription_id, data)
        if updated is None:
            logger.warning(f"Webhook {event_type}: abonnement inconnu {stripe_subscription_id}")
            return False

        logger.info(f"✓ Webhook {event_type}: {stripe_subscription_id} → {data['status']}")
        return True
