# app/models/property.py

from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PropertyType(str, Enum):
    apartment = "apartment"
    house = "house"
    villa = "villa"
    plot = "plot"
    commercial = "commercial"


class PropertyStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


class SizeUnit(str, Enum):
    sqft = "sqft"
    sqm = "sqm"
    acres = "acres"


class PropertyBase(BaseModel):
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=20, max_length=5000)
    price: Decimal = Field(..., ge=0)
    location: str = Field(..., min_length=2, max_length=255)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    pincode: str = Field(..., pattern=r"^\d{6}$")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    size: Decimal = Field(..., gt=0)
    size_unit: SizeUnit = SizeUnit.sqft
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    property_type: PropertyType
    amenities: list[str] = Field(default_factory=list)

    @field_validator("amenities")
    @classmethod
    def dedupe_amenities(cls, v: list[str]) -> list[str]:
        """Supprime doublons et entrées vides en gardant l'ordre"""
        seen = []
        for item in v:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen


class PropertyCreate(PropertyBase):
    """Données saisies par le dealer. Statut, compteur et propriétaire sont imposés par le service."""
    pass


class PropertyUpdate(BaseModel):
    """Tous les champs sont optionnels pour la mise à jour (le statut passe par publish/archive)"""
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, min_length=20, max_length=5000)
    price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = Field(None, min_length=2, max_length=255)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    pincode: Optional[str] = Field(None, pattern=r"^\d{6}$")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    size: Optional[Decimal] = Field(None, gt=0)
    size_unit: Optional[SizeUnit] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    property_type: Optional[PropertyType] = None
    amenities: Optional[list[str]] = None


class Property(PropertyBase):
    """
    Modèle complet avec métadonnées, tel que lu en base.

    Lecture permissive : les contraintes de saisie ne sont pas réappliquées.
    """
    title: str
    description: str = ""
    price: Decimal
    location: str = ""
    city: str
    state: str = ""
    pincode: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    size: Decimal
    amenities: list[str] = Field(default_factory=list)

    id: str
    dealer_id: str
    status: PropertyStatus = PropertyStatus.draft
    views_count: int = Field(0, ge=0)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    def is_visible_to(self, user_id: Optional[str]) -> bool:
        """Un brouillon n'est lisible que par son dealer"""
        if self.status == PropertyStatus.draft:
            return user_id is not None and user_id == self.dealer_id
        return True

    @field_validator("amenities", mode="before")
    @classmethod
    def null_amenities(cls, v):
        return [] if v is None else v


class PropertyPage(BaseModel):
    """Page de résultats + total pour la pagination"""
    properties: list[Property]
    total: int
    page: int
    limit: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
