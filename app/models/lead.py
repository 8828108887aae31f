# app/models/lead.py
"""
Modèles Pydantic pour les leads (demandes de contact sur une annonce)
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum
import re


class LeadStatus(str, Enum):
    """Statuts usuels du pipeline. Indicatifs : aucune transition n'est imposée."""
    new = "new"
    contacted = "contacted"
    converted = "converted"
    closed = "closed"


class LeadCreate(BaseModel):
    """Formulaire de contact soumis par un visiteur"""
    property_id: str = Field(..., min_length=1)
    user_name: str = Field(..., min_length=2, max_length=100)
    user_email: str = Field(..., max_length=255)
    user_phone: str = Field(..., pattern=r"^(\+91)?[6-9]\d{9}$")
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("user_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Valider le format email"""
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(pattern, v):
            raise ValueError('Format email invalide')
        return v.lower()


class LeadStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)


class Lead(BaseModel):
    """Modèle complet d'un lead"""
    id: str
    property_id: str
    dealer_id: str
    user_name: str
    user_email: str
    user_phone: str
    message: Optional[str] = None
    status: str = LeadStatus.new.value
    created_at: datetime

    class Config:
        from_attributes = True


class LeadPage(BaseModel):
    leads: list[Lead]
    total: int
    page: int
    limit: int


class PropertyLeadCount(BaseModel):
    property_id: str
    count: int


class LeadAnalytics(BaseModel):
    """Compteurs du tableau de bord dealer"""
    total_leads: int = 0
    new_leads: int = 0
    contacted_leads: int = 0
    converted_leads: int = 0
    leads_by_property: list[PropertyLeadCount] = Field(default_factory=list)
