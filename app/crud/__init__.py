# app/crud/__init__.py
"""
Couche CRUD (Supabase)

Modules CRUD:
- Property: Annonces immobilières
- Lead: Demandes de contact
- Subscription / Profile: Abonnements dealers et profils
"""

from .property import PropertyCRUD, get_property_crud
from .lead import LeadCRUD, get_lead_crud
from .subscription import (
    SubscriptionCRUD, ProfileCRUD,
    get_subscription_crud, get_profile_crud,
)

__all__ = [
    # Property CRUD
    "PropertyCRUD",
    "get_property_crud",

    # Lead CRUD
    "LeadCRUD",
    "get_lead_crud",

    # Subscription CRUD
    "SubscriptionCRUD",
    "ProfileCRUD",
    "get_subscription_crud",
    "get_profile_crud",
]
