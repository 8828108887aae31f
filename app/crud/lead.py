# app/crud/lead.py
"""
Opérations CRUD pour les leads (demandes de contact)
"""

from typing import Any, Dict, List, Optional, Tuple
from supabase import Client
import logging

from app.core.errors import UpstreamError
from app.models import Lead

logger = logging.getLogger(__name__)


class LeadCRUD:
    """Classe pour gérer les opérations CRUD sur les leads"""

    def __init__(self, db: Client):
        self.db = db
        self.table_name = "leads"

    def create(self, data: Dict[str, Any]) -> Lead:
        """
        Créer un nouveau lead

        Args:
            data: Colonnes du lead, dealer_id compris

        Returns:
            Lead créé avec son ID

        Raises:
            UpstreamError: Si l'insertion échoue
        """
        try:
            response = self.db.table(self.table_name).insert(data).execute()
        except Exception as e:
            logger.error(f"Erreur création lead: {e}")
            raise UpstreamError("LEAD_CREATION_FAILED", str(e))

        if not response.data:
            raise UpstreamError("LEAD_CREATION_FAILED", "Aucune donnée retournée après insertion")

        logger.info(f"Lead créé avec succès: {response.data[0]['id']}")
        return Lead(**response.data[0])

    def get_by_id(self, lead_id: str) -> Optional[Lead]:
        """
        Récupérer un lead par son ID

        Args:
            lead_id: UUID du lead

        Returns:
            Lead trouvé ou None
        """
        try:
            response = self.db.table(self.table_name)\
                .select("*")\
                .eq("id", lead_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur récupération lead {lead_id}: {e}")
            raise UpstreamError("LEAD_FETCH_FAILED", str(e))

        if response.data:
            return Lead(**response.data[0])
        return None

    def list_for_dealer(
        self,
        dealer_id: str,
        property_id: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Lead], int]:
        """
        Leads d'un dealer, plus récents d'abord

        Args:
            dealer_id: Dealer propriétaire (référence copiée à la création)
            property_id: Restreindre à une annonce
            offset: Nombre d'éléments à sauter
            limit: Nombre maximum d'éléments

        Returns:
            (leads de la page, total)
        """
        try:
            query = self.db.table(self.table_name)\
                .select("*", count="exact")\
                .eq("dealer_id", dealer_id)

            if property_id:
                query = query.eq("property_id", property_id)

            query = query.order("created_at", desc=True)
            query = query.range(offset, offset + limit - 1)

            response = query.execute()
        except Exception as e:
            logger.error(f"Erreur récupération liste leads: {e}")
            raise UpstreamError("LEAD_FETCH_FAILED", str(e))

        return [Lead(**lead) for lead in (response.data or [])], response.count or 0

    def update_status(self, lead_id: str, status: str) -> Optional[Lead]:
        """Mettre à jour uniquement le statut d'un lead"""
        try:
            response = self.db.table(self.table_name)\
                .update({"status": status})\
                .eq("id", lead_id)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur mise à jour lead {lead_id}: {e}")
            raise UpstreamError("LEAD_UPDATE_FAILED", str(e))

        if not response.data:
            return None

        logger.info(f"Statut du lead {lead_id} mis à jour: {status}")
        return Lead(**response.data[0])

    def count_for_dealer(self, dealer_id: str, status: Optional[str] = None) -> int:
        """Nombre de leads d'un dealer, éventuellement pour un statut donné"""
        try:
            query = self.db.table(self.table_name)\
                .select("id", count="exact")\
                .eq("dealer_id", dealer_id)
            if status:
                query = query.eq("status", status)
            response = query.execute()
        except Exception as e:
            logger.error(f"Erreur comptage leads dealer {dealer_id}: {e}")
            raise UpstreamError("LEAD_FETCH_FAILED", str(e))

        return response.count or 0

    def property_ids_for_dealer(self, dealer_id: str) -> List[str]:
        """Référence d'annonce de chaque lead du dealer (une entrée par lead)"""
        try:
            response = self.db.table(self.table_name)\
                .select("property_id")\
                .eq("dealer_id", dealer_id)\
                .execute()
        except Exception as e:
            logger.error(f"Erreur récupération leads dealer {dealer_id}: {e}")
            raise UpstreamError("LEAD_FETCH_FAILED", str(e))

        return [row["property_id"] for row in (response.data or [])]


def get_lead_crud(db: Client) -> LeadCRUD:
    """Factory function pour créer une instance LeadCRUD"""
    return LeadCRUD(db)
