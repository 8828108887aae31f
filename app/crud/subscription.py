# app/crud/subscription.py
"""
Opérations CRUD pour les abonnements et les profils
"""

from typing import Any, Dict, Optional
from supabase import Client
import logging

from app.core.errors import UpstreamError
from app.models import Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)


class SubscriptionCRUD:
    """Classe pour gérer les opérations CRUD sur les abonnements"""

    def __init__(self, db: Client):
        self.db = db
        self.table_name = "subscriptions"

    def _first(self, query, context: str) -> Optional[Subscription]:
        try:
            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"Erreur {context}: {e}")
            raise UpstreamError("DATABASE_ERROR", str(e))
        if response.data:
            return Subscription(**response.data[0])
        return None

    def latest_for_user(self, user_id: str) -> Optional[Subscription]:
        """
        Abonnement courant : le plus récemment créé, quel que soit son statut

        Args:
            user_id: ID de l'utilisateur

        Returns:
            Abonnement ou None
        """
        query = self.db.table(self.table_name)\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)
        return self._first(query, f"récupération abonnement {user_id}")

    def active_for_user(self, user_id: str) -> Optional[Subscription]:
        """N'importe quel abonnement actif de l'utilisateur"""
        query = self.db.table(self.table_name)\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("status", SubscriptionStatus.active.value)
        return self._first(query, f"recherche abonnement actif {user_id}")

    def billing_customer_id(self, user_id: str) -> Optional[str]:
        """Client Stripe déjà associé à l'utilisateur, s'il existe"""
        try:
            response = self.db.table(self.table_name)\
                .select("stripe_customer_id")\
                .eq("user_id", user_id)\
                .not_.is_("stripe_customer_id", "null")\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur recherche client Stripe {user_id}: {e}")
            raise UpstreamError("DATABASE_ERROR", str(e))

        if response.data:
            return response.data[0].get("stripe_customer_id")
        return None

    def get_owned(self, subscription_id: str, user_id: str) -> Optional[Subscription]:
        """Abonnement par ID, seulement s'il appartient à l'utilisateur"""
        query = self.db.table(self.table_name)\
            .select("*")\
            .eq("id", subscription_id)\
            .eq("user_id", user_id)
        return self._first(query, f"récupération abonnement {subscription_id}")

    def create(self, data: Dict[str, Any]) -> Subscription:
        """Insérer un abonnement"""
        try:
            response = self.db.table(self.table_name).insert(data).execute()
        except Exception as e:
            logger.error(f"Erreur création abonnement: {e}")
            raise UpstreamError("SUBSCRIPTION_CREATION_FAILED", str(e))

        if not response.data:
            raise UpstreamError("SUBSCRIPTION_CREATION_FAILED", "Aucune donnée retournée après insertion")

        logger.info(f"✓ Abonnement créé: {response.data[0]['id']}")
        return Subscription(**response.data[0])

    def update(self, subscription_id: str, data: Dict[str, Any]) -> Optional[Subscription]:
        """Mise à jour partielle par ID local"""
        try:
            response = self.db.table(self.table_name)\
                .update(data)\
                .eq("id", subscription_id)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur mise à jour abonnement {subscription_id}: {e}")
            raise UpstreamError("SUBSCRIPTION_UPDATE_FAILED", str(e))

        if response.data:
            return Subscription(**response.data[0])
        return None

    def update_by_billing_id(
        self, stripe_subscription_id: str, data: Dict[str, Any]
    ) -> Optional[Subscription]:
        """Mise à jour par identifiant d'abonnement Stripe (webhooks)"""
        try:
            response = self.db.table(self.table_name)\
                .update(data)\
                .eq("stripe_subscription_id", stripe_subscription_id)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur webhook abonnement {stripe_subscription_id}: {e}")
            raise UpstreamError("WEBHOOK_UPDATE_FAILED", str(e))

        if response.data:
            return Subscription(**response.data[0])
        return None


class ProfileCRUD:
    """Lecture des profils (créés par le fournisseur d'identité)"""

    def __init__(self, db: Client):
        self.db = db
        self.table_name = "profiles"

    def get_contact_email(self, user_id: str) -> Optional[str]:
        try:
            response = self.db.table(self.table_name)\
                .select("contact_email")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur récupération profil {user_id}: {e}")
            raise UpstreamError("DATABASE_ERROR", str(e))

        if response.data:
            return response.data[0].get("contact_email")
        return None


def get_subscription_crud(db: Client) -> SubscriptionCRUD:
    return SubscriptionCRUD(db)


def get_profile_crud(db: Client) -> ProfileCRUD:
    return ProfileCRUD(db)
