"""
Composition des lectures d'annonces : filtres, visibilité, tri, pagination
"""
from dataclasses import dataclass
from typing import Optional
import logging

from app.models import (
    Pagination, PropertyFilters, PropertyPage, PropertyStatus,
    Requester, SortKey, SortOrder,
)
from app.services.predicates import AnyOf, Conjunction, Node, Op, Predicate, all_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SortSpec:
    field: str = SortKey.created_at.value
    descending: bool = True

    def apply(self, query):
        # "id" départage les égalités pour une pagination stable
        return query.order(self.field, desc=self.descending).order("id", desc=self.descending)


@dataclass(frozen=True)
class ListingQuery:
    where: Conjunction
    sort: SortSpec
    offset: int
    limit: int


def filter_predicates(filters: PropertyFilters) -> list[Predicate]:
    """Un prédicat par filtre renseigné"""
    predicates: list[Predicate] = []

    if filters.city:
        predicates.append(Predicate("city", Op.ilike, filters.city))
    if filters.state:
        predicates.append(Predicate("state", Op.ilike, filters.state))
    if filters.property_type is not None:
        predicates.append(Predicate("property_type", Op.eq, filters.property_type.value))
    if filters.min_price is not None:
        predicates.append(Predicate("price", Op.gte, filters.min_price))
    if filters.max_price is not None:
        predicates.append(Predicate("price", Op.lte, filters.max_price))
    if filters.min_size is not None:
        predicates.append(Predicate("size", Op.gte, filters.min_size))
    if filters.max_size is not None:
        predicates.append(Predicate("size", Op.lte, filters.max_size))
    if filters.bedrooms is not None:
        predicates.append(Predicate("bedrooms", Op.eq, filters.bedrooms))
    if filters.bathrooms is not None:
        predicates.append(Predicate("bathrooms", Op.eq, filters.bathrooms))
    if filters.amenities:
        predicates.append(Predicate("amenities", Op.contains, tuple(filters.amenities)))

    return predicates


def visibility_predicate(requester: Optional[Requester]) -> Node:
    """
    Annonces publiées pour tous, plus ses propres brouillons pour un dealer.
    Ajouté systématiquement : aucun filtre ne peut le contourner.
    """
    published = Predicate("status", Op.eq, PropertyStatus.published.value)
    if requester is not None and requester.is_dealer:
        own_drafts = all_of(
            Predicate("status", Op.eq, PropertyStatus.draft.value),
            Predicate("dealer_id", Op.eq, requester.user_id),
        )
        return AnyOf((all_of(published), own_drafts))
    return published


class QueryComposer:
    """Construit et exécute les lectures filtrées/triées/paginées"""

    def __init__(self, properties):
        self.properties = properties

    def compose(
        self,
        filters: PropertyFilters,
        pagination: Pagination,
        requester: Optional[Requester] = None,
    ) -> ListingQuery:
        where = all_of(*filter_predicates(filters), visibility_predicate(requester))
        sort = SortSpec(
            field=pagination.sort_by.value,
            descending=pagination.sort_order == SortOrder.desc,
        )
        return ListingQuery(
            where=where,
            sort=sort,
            offset=pagination.offset,
            limit=pagination.limit,
        )

    def run(
        self,
        filters: PropertyFilters,
        pagination: Pagination,
        requester: Optional[Requester] = None,
    ) -> PropertyPage:
        """Exécute la requête. Une erreur de la base remonte en UpstreamError."""
        query = self.compose(filters, pagination, requester)
        properties, total = self.properties.search(
            where=query.where,
            sort=query.sort,
            offset=query.offset,
            limit=query.limit,
        )
        logger.debug(
            f"🔍 {len(properties)}/{total} annonces (page {pagination.page}, "
            f"{len(query.where)} prédicats)"
        )
        return PropertyPage(
            properties=properties,
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )
