# app/models/__init__.py
"""
Modèles Pydantic de l'API

Modules:
- Property : Annonces immobilières
- Search : Filtres, pagination, recherche IA
- Lead : Demandes de contact
- Subscription : Abonnements dealers
- User : Demandeur et droits
"""

# ====================================
# PROPERTY MODELS
# ====================================
from .property import (
    PropertyType,
    PropertyStatus,
    SizeUnit,
    PropertyBase,
    PropertyCreate,
    PropertyUpdate,
    Property,
    PropertyPage,
)

# ====================================
# SEARCH MODELS
# ====================================
from .search import (
    SortKey,
    SortOrder,
    PropertyFilters,
    Pagination,
    ParsedQuery,
    AISearchRequest,
    AISearchResponse,
)

# ====================================
# LEAD MODELS
# ====================================
from .lead import (
    LeadStatus,
    LeadCreate,
    LeadStatusUpdate,
    Lead,
    LeadPage,
    PropertyLeadCount,
    LeadAnalytics,
)

# ====================================
# SUBSCRIPTION MODELS
# ====================================
from .subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
    PlanTerms,
    PLAN_CATALOG,
    SubscriptionCreate,
    Subscription,
)

# ====================================
# USER MODELS
# ====================================
from .user import (
    UserRole,
    Requester,
    FeatureFlags,
)

# ====================================
# EXPORTS
# ====================================
__all__ = [
    # Property
    "PropertyType",
    "PropertyStatus",
    "SizeUnit",
    "PropertyBase",
    "PropertyCreate",
    "PropertyUpdate",
    "Property",
    "PropertyPage",

    # Search
    "SortKey",
    "SortOrder",
    "PropertyFilters",
    "Pagination",
    "ParsedQuery",
    "AISearchRequest",
    "AISearchResponse",

    # Lead
    "LeadStatus",
    "LeadCreate",
    "LeadStatusUpdate",
    "Lead",
    "LeadPage",
    "PropertyLeadCount",
    "LeadAnalytics",

    # Subscription
    "SubscriptionPlan",
    "SubscriptionStatus",
    "PlanTerms",
    "PLAN_CATALOG",
    "SubscriptionCreate",
    "Subscription",

    # User
    "UserRole",
    "Requester",
    "FeatureFlags",
]
