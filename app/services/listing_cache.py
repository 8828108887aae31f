"""
Cache des annonces (meilleur effort).

Clés :
- ``property:{id}``         une annonce (TTL 300 s par défaut)
- ``properties:{signature}`` une page de résultats filtrés

La base reste la source de vérité. Toute défaillance du cache est journalisée
puis ignorée : l'opération continue comme si le cache n'existait pas.
"""
import hashlib
import json
import logging
from typing import Optional

from pydantic import ValidationError

from app.core.errors import CacheUnavailableError
from app.models import Pagination, Property, PropertyFilters, PropertyPage, Requester

logger = logging.getLogger(__name__)

PROPERTY_KEY_PREFIX = "property:"
LIST_KEY_PREFIX = "properties:"


def property_key(property_id: str) -> str:
    return f"{PROPERTY_KEY_PREFIX}{property_id}"


def filter_signature(
    filters: PropertyFilters,
    pagination: Pagination,
    requester: Optional[Requester] = None,
) -> str:
    """
    Clé stable d'une lecture filtrée.

    La portée de visibilité en fait partie : un dealer voit ses brouillons,
    sa page ne doit pas être servie à un autre utilisateur.
    """
    scope = "public"
    if requester is not None and requester.is_dealer:
        scope = f"dealer:{requester.user_id}"

    payload = {
        "filters": filters.model_dump(mode="json", exclude_none=True),
        "page": pagination.model_dump(mode="json"),
        "scope": scope,
    }
    if "amenities" in payload["filters"]:
        payload["filters"]["amenities"] = sorted(payload["filters"]["amenities"])

    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(canonical.encode()).hexdigest()


class ListingCache:
    def __init__(self, store=None, property_ttl: int = 300, list_ttl: int = 300):
        self.store = store
        self.property_ttl = property_ttl
        self.list_ttl = list_ttl

    @property
    def enabled(self) -> bool:
        return self.store is not None

    async def _get(self, key: str) -> Optional[str]:
        if not self.enabled:
            return None
        try:
            return await self.store.get(key)
        except CacheUnavailableError as e:
            logger.warning(f"Cache indisponible (lecture {key}): {e}")
            return None

    async def _set(self, key: str, value: str, ttl: int) -> None:
        if not self.enabled:
            return
        try:
            await self.store.set(key, value, ttl)
        except CacheUnavailableError as e:
            logger.warning(f"Cache indisponible (écriture {key}): {e}")

    # ---------------------------------------------------------------
    # Annonce unitaire
    # ---------------------------------------------------------------

    async def get_property(self, property_id: str) -> Optional[Property]:
        raw = await self._get(property_key(property_id))
        if raw is None:
            return None
        try:
            return Property.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Entrée de cache illisible pour {property_id}, ignorée")
            await self.invalidate_property(property_id)
            return None

    async def put_property(self, prop: Property) -> None:
        await self._set(property_key(prop.id), prop.model_dump_json(), self.property_ttl)

    async def invalidate_property(self, property_id: str) -> None:
        if not self.enabled:
            return
        try:
            await self.store.delete(property_key(property_id))
        except CacheUnavailableError as e:
            logger.warning(f"Cache indisponible (invalidation {property_id}): {e}")

    # ---------------------------------------------------------------
    # Pages filtrées
    # ---------------------------------------------------------------

    async def get_page(self, signature: str) -> Optional[PropertyPage]:
        raw = await self._get(f"{LIST_KEY_PREFIX}{signature}")
        if raw is None:
            return None
        try:
            return PropertyPage.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Page de cache illisible ({signature}), ignorée")
            return None

    async def put_page(self, signature: str, page: PropertyPage) -> None:
        await self._set(f"{LIST_KEY_PREFIX}{signature}", page.model_dump_json(), self.list_ttl)

    async def invalidate_lists(self) -> None:
        if not self.enabled:
            return
        try:
            removed = await self.store.delete_prefix(LIST_KEY_PREFIX)
            logger.debug(f"{removed} pages de cache invalidées")
        except CacheUnavailableError as e:
            logger.warning(f"Cache indisponible (invalidation des listes): {e}")

    async def invalidate_after_write(self, property_id: Optional[str] = None) -> None:
        """Après création/mise à jour/archivage : l'annonce et toutes les pages"""
        if property_id:
            await self.invalidate_property(property_id)
        await self.invalidate_lists()
