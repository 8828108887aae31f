"""
Routes API pour les annonces immobilières
"""
from decimal import Decimal
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_requester, get_services, require_dealer
from app.container import Services
from app.models import (
    Pagination, Property, PropertyCreate, PropertyFilters, PropertyPage,
    PropertyType, PropertyUpdate, Requester, SortKey, SortOrder,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: SortKey = Query(SortKey.created_at),
    sort_order: SortOrder = Query(SortOrder.desc),
) -> Pagination:
    return Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


def get_filters(
    city: Optional[str] = None,
    state: Optional[str] = None,
    property_type: Optional[PropertyType] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_size: Optional[Decimal] = Query(None, ge=0),
    max_size: Optional[Decimal] = Query(None, ge=0),
    bedrooms: Optional[int] = Query(None, ge=0),
    bathrooms: Optional[int] = Query(None, ge=0),
    amenities: Optional[List[str]] = Query(None),
) -> PropertyFilters:
    return PropertyFilters(
        city=city, state=state, property_type=property_type,
        min_price=min_price, max_price=max_price,
        min_size=min_size, max_size=max_size,
        bedrooms=bedrooms, bathrooms=bathrooms,
        amenities=amenities,
    )


@router.get("/", response_model=PropertyPage)
async def list_properties(
    filters: PropertyFilters = Depends(get_filters),
    pagination: Pagination = Depends(get_pagination),
    requester: Requester = Depends(get_requester),
    services: Services = Depends(get_services),
):
    """
    Recherche filtrée et paginée.

    Les invités ne voient que les annonces publiées ; un dealer voit en plus
    ses propres brouillons.
    """
    return await services.listings.list_properties(filters, pagination, requester)


@router.get("/mine", response_model=PropertyPage)
def list_my_properties(
    pagination: Pagination = Depends(get_pagination),
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Annonces non archivées du dealer connecté"""
    return services.listings.list_dealer_properties(dealer.user_id, pagination)


@router.get("/{property_id}", response_model=Property)
async def get_property(
    property_id: str,
    requester: Requester = Depends(get_requester),
    services: Services = Depends(get_services),
):
    """Récupérer une annonce par son ID (incrémente le compteur de vues en arrière-plan)"""
    return await services.listings.get_property(property_id, requester)


@router.post("/", response_model=Property, status_code=status.HTTP_201_CREATED)
async def create_property(
    property_data: PropertyCreate,
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Créer une annonce en brouillon (soumis au quota de l'abonnement)"""
    prop = await services.listings.create_property(dealer.user_id, property_data)
    logger.info(f"✓ Annonce créée: {prop.id}")
    return prop


@router.put("/{property_id}", response_model=Property)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    return await services.listings.update_property(property_id, dealer.user_id, property_data)


@router.post("/{property_id}/publish", response_model=Property)
async def publish_property(
    property_id: str,
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    return await services.listings.publish_property(property_id, dealer.user_id)


@router.delete("/{property_id}", response_model=Property)
async def archive_property(
    property_id: str,
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Archiver une annonce (suppression logique)"""
    return await services.listings.archive_property(property_id, dealer.user_id)
