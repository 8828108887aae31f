"""
Opérations CRUD pour Properties
"""
from typing import Any, Dict, List, Optional, Tuple
from pydantic import ValidationError
from supabase import Client
from app.core.errors import UpstreamError
from app.models import Property, PropertyStatus
from app.services.predicates import Conjunction
import logging

logger = logging.getLogger(__name__)


def _to_property(row: Dict[str, Any]) -> Property:
    """Ligne Supabase -> Property ; une ligne illisible devient une erreur amont"""
    try:
        return Property(**row)
    except ValidationError as e:
        logger.error(f"✗ Ligne propriété invalide {row.get('id')}: {e}")
        raise UpstreamError("PROPERTY_INVALID_ROW", f"Invalid property row {row.get('id')}")


class PropertyCRUD:
    def __init__(self, db: Client):
        self.db = db
        self.table = "properties"

    def create(self, data: Dict[str, Any]) -> Property:
        """Créer une nouvelle annonce"""
        try:
            result = self.db.table(self.table).insert(data).execute()
        except Exception as e:
            logger.error(f"✗ Erreur création propriété: {e}")
            raise UpstreamError("PROPERTY_CREATION_FAILED", str(e))

        if not result.data:
            raise UpstreamError("PROPERTY_CREATION_FAILED", "Aucune donnée retournée après insertion")

        logger.info(f"✓ Propriété créée: {result.data[0]['id']}")
        return _to_property(result.data[0])

    def get_by_id(self, property_id: str) -> Optional[Property]:
        """Récupérer une annonce par ID"""
        try:
            result = self.db.table(self.table)\
                .select("*")\
                .eq("id", property_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"✗ Erreur récupération propriété {property_id}: {e}")
            raise UpstreamError("PROPERTY_FETCH_FAILED", str(e))

        if result.data:
            return _to_property(result.data[0])
        return None

    def search(
        self,
        where: Conjunction,
        sort,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Property], int]:
        """
        Lecture filtrée, triée et paginée.

        Returns:
            (annonces de la page, total sur l'ensemble filtré)
        """
        try:
            query = self.db.table(self.table).select("*", count="exact")
            query = where.apply(query)
            query = sort.apply(query)
            result = query.range(offset, offset + limit - 1).execute()
        except Exception as e:
            logger.error(f"✗ Erreur récupération propriétés: {e}")
            raise UpstreamError("PROPERTY_FETCH_FAILED", str(e))

        properties = [_to_property(item) for item in (result.data or [])]
        return properties, result.count or 0

    def update(self, property_id: str, data: Dict[str, Any]) -> Optional[Property]:
        """Mise à jour partielle d'une annonce"""
        try:
            result = self.db.table(self.table)\
                .update(data)\
                .eq("id", property_id)\
                .execute()
        except Exception as e:
            logger.error(f"✗ Erreur mise à jour propriété {property_id}: {e}")
            raise UpstreamError("PROPERTY_UPDATE_FAILED", str(e))

        if result.data:
            logger.info(f"✓ Propriété mise à jour: {property_id}")
            return _to_property(result.data[0])
        return None

    def count_active(self, dealer_id: str) -> int:
        """Nombre d'annonces non archivées d'un dealer"""
        try:
            result = self.db.table(self.table)\
                .select("id", count="exact")\
                .eq("dealer_id", dealer_id)\
                .neq("status", PropertyStatus.archived.value)\
                .execute()
        except Exception as e:
            logger.error(f"✗ Erreur comptage annonces dealer {dealer_id}: {e}")
            raise UpstreamError("PROPERTY_FETCH_FAILED", str(e))

        return result.count or 0

    def list_for_dealer(
        self,
        dealer_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Property], int]:
        """Annonces non archivées d'un dealer, plus récentes d'abord"""
        try:
            result = self.db.table(self.table)\
                .select("*", count="exact")\
                .eq("dealer_id", dealer_id)\
                .neq("status", PropertyStatus.archived.value)\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except Exception as e:
            logger.error(f"✗ Erreur récupération annonces dealer {dealer_id}: {e}")
            raise UpstreamError("PROPERTY_FETCH_FAILED", str(e))

        properties = [_to_property(item) for item in (result.data or [])]
        return properties, result.count or 0

    def increment_views(self, property_id: str) -> None:
        """Incrément atomique du compteur de vues (fonction SQL increment_property_views)"""
        self.db.rpc("increment_property_views", {"property_id": property_id}).execute()


def get_property_crud(db: Client) -> PropertyCRUD:
    return PropertyCRUD(db)
