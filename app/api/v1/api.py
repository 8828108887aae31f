"""Router API principal v1"""
from fastapi import APIRouter
from app.api.v1.endpoints import properties, ai, leads, subscriptions, dealers

# Créer le router principal
api_router = APIRouter()

# ==================== PROPERTIES ====================
api_router.include_router(
    properties.router,
    prefix="/properties",
    tags=["Properties"]
)

# ==================== LEADS ====================
api_router.include_router(
    leads.router,
    prefix="/leads",
    tags=["Leads"]
)

# ==================== SUBSCRIPTIONS ====================
api_router.include_router(
    subscriptions.router,
    prefix="/subscriptions",
    tags=["Subscriptions"]
)

# ==================== DEALERS ====================
api_router.include_router(
    dealers.router,
    prefix="/dealers",
    tags=["Dealers"]
)

# ==================== AI SEARCH ====================
api_router.include_router(
    ai.router,
    prefix="/ai",
    tags=["AI Search"]
)
