# app/models/search.py
"""
Modèles de recherche : filtres, pagination/tri, réponse de la recherche IA
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional
from decimal import Decimal
from enum import Enum

from .property import Property, PropertyType


class SortKey(str, Enum):
    price = "price"
    size = "size"
    created_at = "created_at"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class PropertyFilters(BaseModel):
    """Filtres combinés en ET logique. Un champ absent n'ajoute aucune contrainte."""
    city: Optional[str] = None
    state: Optional[str] = None
    property_type: Optional[PropertyType] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_size: Optional[Decimal] = Field(None, ge=0)
    max_size: Optional[Decimal] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    amenities: Optional[list[str]] = None

    @field_validator("city", "state")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class Pagination(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort_by: SortKey = SortKey.created_at
    sort_order: SortOrder = SortOrder.desc

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ParsedQuery(BaseModel):
    """Résultat de la traduction d'une requête libre"""
    filters: PropertyFilters = Field(default_factory=PropertyFilters)
    intent: str = ""
    source: str = "local"  # "nlp" ou "local"


class AISearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    context: Optional[dict[str, Any]] = None


class AISearchResponse(BaseModel):
    summary: str
    properties: list[Property]
    suggested_filters: PropertyFilters
    total_results: int
    intent: str = ""
