# app/models/user.py
"""
Identité du demandeur et droits dérivés de son abonnement.
L'authentification elle-même est assurée par le fournisseur d'identité externe.
"""

from pydantic import BaseModel
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    dealer = "dealer"
    guest = "guest"


class Requester(BaseModel):
    """Utilisateur à l'origine de la requête (anonyme = invité sans id)"""
    user_id: Optional[str] = None
    role: UserRole = UserRole.guest

    @property
    def is_dealer(self) -> bool:
        return self.role == UserRole.dealer and self.user_id is not None


class FeatureFlags(BaseModel):
    """Droits affichés dans le tableau de bord dealer"""
    can_post_property: bool = False
    remaining_listings: int = 0
    can_access_analytics: bool = False
    can_export_leads: bool = False
