"""
Routes API pour les leads (demandes de contact)
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_services, require_dealer
from app.api.v1.endpoints.properties import get_pagination
from app.container import Services
from app.models import (
    Lead, LeadAnalytics, LeadCreate, LeadPage, LeadStatusUpdate, Pagination, Requester,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=Lead, status_code=status.HTTP_201_CREATED)
def create_lead(
    lead_data: LeadCreate,
    services: Services = Depends(get_services),
):
    """
    Créer un lead sur une annonce (ouvert aux invités)

    - **user_email**: email valide
    - **user_phone**: mobile indien (+91 optionnel, 10 chiffres commençant par 6-9)
    """
    lead = services.leads.create_lead(lead_data)
    logger.info(f"Lead créé: {lead.id}")
    return lead


@router.get("/", response_model=LeadPage)
def list_leads(
    property_id: Optional[str] = Query(None, description="Filtrer par annonce"),
    pagination: Pagination = Depends(get_pagination),
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Leads du dealer connecté, plus récents d'abord"""
    return services.leads.list_dealer_leads(dealer.user_id, pagination, property_id=property_id)


@router.get("/analytics", response_model=LeadAnalytics)
def get_lead_analytics(
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    """Compteurs par statut et répartition par annonce"""
    return services.leads.lead_analytics(dealer.user_id)


@router.patch("/{lead_id}/status", response_model=Lead)
def update_lead_status(
    lead_id: str,
    update: LeadStatusUpdate,
    dealer: Requester = Depends(require_dealer),
    services: Services = Depends(get_services),
):
    return services.leads.update_lead_status(lead_id, dealer.user_id, update.status)
