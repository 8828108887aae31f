"""Endpoints de recherche en langage naturel"""
from typing import List
import logging

from fastapi import APIRouter, Depends, Query

from app.ai import SearchAssistant
from app.api.deps import get_services
from app.container import Services
from app.models import AISearchRequest, AISearchResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/search", response_model=AISearchResponse)
async def search(
    request: AISearchRequest,
    services: Services = Depends(get_services),
):
    """
    Recherche d'annonces à partir d'une phrase libre

    - **query**: ex. "3 BHK apartment in Mumbai under 80 lakhs"
    - **context**: contexte optionnel transmis au service NLP
    """
    logger.info(f"📩 Recherche reçue : {request.query}")
    return await services.search.search(request.query, request.context)


@router.get("/suggestions", response_model=List[str])
def suggestions(q: str = Query("", max_length=100)):
    """Suggestions de recherche (5 au plus)"""
    return SearchAssistant.suggestions(q)
