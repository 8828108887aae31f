"""
Service des annonces : lecture via cache, écritures soumises au quota, cycle de vie
draft → published → archived.
"""
from typing import Optional
import logging

from app.core.errors import AccessDeniedError, NotFoundError, ValidationFailedError
from app.models import (
    Pagination, Property, PropertyCreate, PropertyFilters, PropertyPage,
    PropertyStatus, PropertyUpdate, Requester,
)
from app.services.listing_cache import ListingCache, filter_signature
from app.services.query_composer import QueryComposer
from app.services.quota import QuotaEnforcer
from app.services.tasks import DetachedTasks

logger = logging.getLogger(__name__)


class ListingService:
    def __init__(
        self,
        properties,
        quota: QuotaEnforcer,
        cache: ListingCache,
        composer: QueryComposer,
        tasks: DetachedTasks,
    ):
        self.properties = properties
        self.quota = quota
        self.cache = cache
        self.composer = composer
        self.tasks = tasks

    # ====================================
    # LECTURES
    # ====================================

    async def get_property(self, property_id: str, requester: Optional[Requester] = None) -> Property:
        """
        Lecture d'une annonce via le cache.

        Chaque lecture réussie planifie, sans l'attendre, l'incrément du compteur
        de vues suivi de l'invalidation de l'entrée de cache : la lecture
        suivante reprend le compteur à jour depuis la base.

        Raises:
            NotFoundError: annonce inexistante
            AccessDeniedError: brouillon lu par un autre que son dealer
        """
        user_id = requester.user_id if requester else None

        cached = await self.cache.get_property(property_id)
        if cached is not None:
            self._ensure_visible(cached, user_id)
            self._schedule_view_bump(property_id)
            return cached

        prop = self.properties.get_by_id(property_id)
        if prop is None:
            raise NotFoundError("PROPERTY_NOT_FOUND", "Property not found")

        self._ensure_visible(prop, user_id)
        await self.cache.put_property(prop)
        self._schedule_view_bump(property_id)
        return prop

    async def list_properties(
        self,
        filters: PropertyFilters,
        pagination: Pagination,
        requester: Optional[Requester] = None,
    ) -> PropertyPage:
        """Recherche filtrée ; les pages sont mises en cache sous la signature des filtres"""
        signature = filter_signature(filters, pagination, requester)

        cached = await self.cache.get_page(signature)
        if cached is not None:
            return cached

        page = self.composer.run(filters, pagination, requester)
        await self.cache.put_page(signature, page)
        return page

    def list_dealer_properties(self, dealer_id: str, pagination: Pagination) -> PropertyPage:
        """Annonces non archivées du dealer, plus récentes d'abord"""
        properties, total = self.properties.list_for_dealer(
            dealer_id, offset=pagination.offset, limit=pagination.limit
        )
        return PropertyPage(
            properties=properties, total=total, page=pagination.page, limit=pagination.limit
        )

    # ====================================
    # ÉCRITURES
    # ====================================

    async def create_property(self, dealer_id: str, data: PropertyCreate) -> Property:
        """Créer une annonce (toujours en brouillon) si le quota le permet"""
        self.quota.ensure_can_create(dealer_id)

        row = data.model_dump(mode="json")
        row.update(
            dealer_id=dealer_id,
            status=PropertyStatus.draft.value,
            views_count=0,
        )
        prop = self.properties.create(row)

        await self.cache.invalidate_after_write()
        return prop

    async def update_property(self, property_id: str, dealer_id: str, updates: PropertyUpdate) -> Property:
        existing = self._get_owned(property_id, dealer_id)
        if existing.status == PropertyStatus.archived:
            raise ValidationFailedError("PROPERTY_ARCHIVED", "Archived properties cannot be modified")

        data = updates.model_dump(mode="json", exclude_unset=True)
        if not data:
            raise ValidationFailedError("VALIDATION_ERROR", "No fields to update")

        return await self._write(property_id, data)

    async def publish_property(self, property_id: str, dealer_id: str) -> Property:
        """draft → published (sans effet si déjà publiée)"""
        existing = self._get_owned(property_id, dealer_id)
        if existing.status == PropertyStatus.published:
            return existing
        if existing.status == PropertyStatus.archived:
            raise ValidationFailedError(
                "INVALID_STATUS_TRANSITION", "Archived properties cannot be published"
            )

        prop = await self._write(property_id, {"status": PropertyStatus.published.value})
        logger.info(f"✓ Annonce {property_id} publiée")
        return prop

    async def archive_property(self, property_id: str, dealer_id: str) -> Property:
        """Suppression logique, irréversible par l'API"""
        existing = self._get_owned(property_id, dealer_id)
        if existing.status == PropertyStatus.archived:
            return existing

        prop = await self._write(property_id, {"status": PropertyStatus.archived.value})
        logger.info(f"✓ Annonce {property_id} archivée")
        return prop

    # ====================================
    # INTERNES
    # ====================================

    async def _write(self, property_id: str, data: dict) -> Property:
        prop = self.properties.update(property_id, data)
        if prop is None:
            raise NotFoundError("PROPERTY_NOT_FOUND", "Property not found or access denied")
        await self.cache.invalidate_after_write(property_id)
        return prop

    def _get_owned(self, property_id: str, dealer_id: str) -> Property:
        prop = self.properties.get_by_id(property_id)
        if prop is None or prop.dealer_id != dealer_id:
            raise NotFoundError("PROPERTY_NOT_FOUND", "Property not found or access denied")
        return prop

    @staticmethod
    def _ensure_visible(prop: Property, user_id: Optional[str]) -> None:
        if not prop.is_visible_to(user_id):
            raise AccessDeniedError("ACCESS_DENIED", "Cannot access draft property")

    def _schedule_view_bump(self, property_id: str) -> None:
        self.tasks.spawn(self._bump_views(property_id), name=f"views:{property_id}")

    async def _bump_views(self, property_id: str) -> None:
        self.properties.increment_views(property_id)
        await self.cache.invalidate_property(property_id)
