"""
Passerelle de facturation Stripe.

Toute erreur Stripe est convertie en UpstreamError(STRIPE_ERROR). La clé API est
passée à chaque appel : aucun état global n'est modifié.
"""
from typing import Any, Dict, Optional
import json
import logging

import stripe

from app.core.errors import UpstreamError, ValidationFailedError

logger = logging.getLogger(__name__)


class BillingGateway:
    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str] = None,
        currency: str = "inr",
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def _require_key(self) -> str:
        if not self.api_key:
            raise UpstreamError("STRIPE_ERROR", "Billing is not configured")
        return self.api_key

    def retrieve_customer(self, customer_id: str) -> str:
        try:
            customer = stripe.Customer.retrieve(customer_id, api_key=self._require_key())
        except stripe.StripeError as e:
            logger.error(f"✗ Stripe: récupération client {customer_id}: {e}")
            raise UpstreamError("STRIPE_ERROR", str(e))
        return customer["id"]

    def create_customer(self, email: str, payment_method_id: str) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._require_key(),
                email=email,
                payment_method=payment_method_id,
                invoice_settings={"default_payment_method": payment_method_id},
            )
        except stripe.StripeError as e:
            logger.error(f"✗ Stripe: création client: {e}")
            raise UpstreamError("STRIPE_ERROR", str(e))

        logger.info(f"✓ Client Stripe créé: {customer['id']}")
        return customer["id"]

    def create_subscription(self, customer_id: str, plan_name: str, monthly_price: int) -> str:
        """Abonnement mensuel au prix du plan (montant en unités monétaires, converti en centimes)"""
        api_key = self._require_key()
        try:
            price = stripe.Price.create(
                api_key=api_key,
                currency=self.currency,
                unit_amount=monthly_price * 100,
                recurring={"interval": "month"},
                product_data={"name": f"{plan_name.upper()} Plan"},
            )
            subscription = stripe.Subscription.create(
                api_key=api_key,
                customer=customer_id,
                items=[{"price": price["id"]}],
                payment_behavior="default_incomplete",
                expand=["latest_invoice.payment_intent"],
            )
        except stripe.StripeError as e:
            logger.error(f"✗ Stripe: création abonnement pour {customer_id}: {e}")
            raise UpstreamError("STRIPE_ERROR", str(e))

        logger.info(f"✓ Abonnement Stripe créé: {subscription['id']}")
        return subscription["id"]

    def cancel_subscription(self, stripe_subscription_id: str) -> None:
        try:
            stripe.Subscription.cancel(stripe_subscription_id, api_key=self._require_key())
        except stripe.StripeError as e:
            logger.error(f"✗ Stripe: annulation {stripe_subscription_id}: {e}")
            raise UpstreamError("STRIPE_ERROR", str(e))

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Vérifie la signature du webhook et renvoie l'événement sous forme de dict.

        Sans STRIPE_WEBHOOK_SECRET aucun événement n'est accepté.
        """
        if not self.webhook_secret:
            logger.error("✗ Webhook Stripe reçu sans STRIPE_WEBHOOK_SECRET configuré")
            raise ValidationFailedError("INVALID_WEBHOOK", "Webhook secret not configured")

        try:
            stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise ValidationFailedError("INVALID_WEBHOOK", str(e))

        try:
            event = json.loads(payload)
        except ValueError as e:
            raise ValidationFailedError("INVALID_WEBHOOK", f"Invalid payload: {e}")

        if not isinstance(event, dict) or "type" not in event:
            raise ValidationFailedError("INVALID_WEBHOOK", "Missing event type")
        return event
