"""
Leads et statistiques du tableau de bord dealer
"""
from collections import Counter
from typing import Optional
import logging

from app.core.errors import NotFoundError, ValidationFailedError
from app.models import (
    Lead, LeadAnalytics, LeadCreate, LeadPage, LeadStatus,
    Pagination, PropertyLeadCount,
)

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(self, leads, properties):
        self.leads = leads
        self.properties = properties

    def create_lead(self, data: LeadCreate) -> Lead:
        """
        Créer un lead sur une annonce.

        Le dealer_id est copié depuis l'annonce au moment de la création et n'est
        plus jamais recalculé.
        """
        prop = self.properties.get_by_id(data.property_id)
        if prop is None:
            raise NotFoundError("PROPERTY_NOT_FOUND", "Property not found")

        row = data.model_dump(mode="json")
        row.update(dealer_id=prop.dealer_id, status=LeadStatus.new.value)

        return self.leads.create(row)

    def list_dealer_leads(
        self,
        dealer_id: str,
        pagination: Pagination,
        property_id: Optional[str] = None,
    ) -> LeadPage:
        leads, total = self.leads.list_for_dealer(
            dealer_id,
            property_id=property_id,
            offset=pagination.offset,
            limit=pagination.limit,
        )
        return LeadPage(leads=leads, total=total, page=pagination.page, limit=pagination.limit)

    def update_lead_status(self, lead_id: str, dealer_id: str, status: str) -> Lead:
        """
        Changer le statut d'un lead. Seul le dealer référencé sur le lead peut le faire.
        Toute valeur non vide est acceptée : aucun graphe de transitions n'est imposé.
        """
        status = (status or "").strip()
        if not status:
            raise ValidationFailedError("VALIDATION_ERROR", "Status is required")

        existing = self.leads.get_by_id(lead_id)
        if existing is None or existing.dealer_id != dealer_id:
            raise NotFoundError("LEAD_NOT_FOUND", "Lead not found or access denied")

        lead = self.leads.update_status(lead_id, status)
        if lead is None:
            raise NotFoundError("LEAD_NOT_FOUND", "Lead not found or access denied")
        return lead

    def lead_analytics(self, dealer_id: str) -> LeadAnalytics:
        """Compteurs par statut + répartition par annonce (regroupement en mémoire)"""
        by_property = Counter(self.leads.property_ids_for_dealer(dealer_id))

        return LeadAnalytics(
            total_leads=self.leads.count_for_dealer(dealer_id),
            new_leads=self.leads.count_for_dealer(dealer_id, LeadStatus.new.value),
            contacted_leads=self.leads.count_for_dealer(dealer_id, LeadStatus.contacted.value),
            converted_leads=self.leads.count_for_dealer(dealer_id, LeadStatus.converted.value),
            leads_by_property=[
                PropertyLeadCount(property_id=pid, count=count)
                for pid, count in by_property.items()
            ],
        )
