"""
Quotas d'annonces liés à l'abonnement du dealer.

Le contrôle est une lecture suivie d'une écriture, sans verrou ni transaction :
deux créations simultanées peuvent toutes deux passer le comptage et dépasser
la limite d'au plus le nombre de requêtes concurrentes. Accepté (création
d'annonce = action humaine, peu fréquente).
"""
from typing import Optional
import logging

from app.core.errors import QuotaExceededError
from app.models import FeatureFlags, Requester, Subscription, SubscriptionPlan

logger = logging.getLogger(__name__)


class QuotaEnforcer:
    def __init__(self, subscriptions, properties):
        self.subscriptions = subscriptions
        self.properties = properties

    def _active_subscription(self, dealer_id: str) -> Optional[Subscription]:
        subscription = self.subscriptions.latest_for_user(dealer_id)
        if subscription is None or not subscription.is_active:
            return None
        return subscription

    def ensure_can_create(self, dealer_id: str) -> Subscription:
        """
        Vérifie qu'une nouvelle annonce est autorisée.

        Returns:
            L'abonnement courant

        Raises:
            QuotaExceededError: SUBSCRIPTION_INACTIVE ou LISTING_LIMIT_REACHED
        """
        subscription = self._active_subscription(dealer_id)
        if subscription is None:
            logger.info(f"Création refusée pour {dealer_id}: abonnement inactif")
            raise QuotaExceededError("SUBSCRIPTION_INACTIVE", "Active subscription required")

        count = self.properties.count_active(dealer_id)
        if count >= subscription.listing_limit:
            logger.info(
                f"Création refusée pour {dealer_id}: {count}/{subscription.listing_limit} annonces"
            )
            raise QuotaExceededError(
                "LISTING_LIMIT_REACHED",
                "Listing limit reached for current plan",
                details={"limit": subscription.listing_limit, "current": count},
            )

        return subscription

    def feature_flags(self, requester: Requester) -> FeatureFlags:
        """Droits du tableau de bord (informatif, ne bloque rien)"""
        if not requester.is_dealer:
            return FeatureFlags()

        subscription = self._active_subscription(requester.user_id)
        if subscription is None:
            return FeatureFlags()

        count = self.properties.count_active(requester.user_id)
        remaining = max(0, subscription.listing_limit - count)

        return FeatureFlags(
            can_post_property=remaining > 0,
            remaining_listings=remaining,
            can_access_analytics=subscription.plan != SubscriptionPlan.basic,
            can_export_leads=subscription.plan == SubscriptionPlan.enterprise,
        )
