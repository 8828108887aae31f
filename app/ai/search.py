"""
Recherche en langage naturel : traduction en filtres puis lecture publique des annonces.
"""
from typing import Any, Dict, List, Optional
import logging

from app.ai.filter_translator import FilterTranslator, build_search_summary
from app.models import AISearchResponse, Pagination

logger = logging.getLogger(__name__)

TOP_RESULTS = 10

SUGGESTIONS = [
    "2 BHK apartment in Mumbai",
    "3 BHK house with parking",
    "Villa under 1 crore",
    "Commercial property in Bangalore",
    "Plot near highway",
    "Luxury apartment with gym",
    "4 BHK penthouse",
    "Budget apartment under 50 lakhs",
]


class SearchAssistant:
    def __init__(self, translator: FilterTranslator, listings):
        self.translator = translator
        self.listings = listings

    async def search(self, query: str, context: Optional[Dict[str, Any]] = None) -> AISearchResponse:
        """Recherche visiteur (annonces publiées uniquement), 10 premiers résultats"""
        parsed = self.translator.translate(query, context)

        page = await self.listings.list_properties(
            parsed.filters, Pagination(page=1, limit=20), requester=None
        )
        logger.info(f"🔍 Recherche IA ({parsed.source}): {page.total} résultats")

        return AISearchResponse(
            summary=build_search_summary(query, page.properties, page.total, shown=TOP_RESULTS),
            properties=page.properties[:TOP_RESULTS],
            suggested_filters=parsed.filters,
            total_results=page.total,
            intent=parsed.intent,
        )

    @staticmethod
    def suggestions(partial_query: str, limit: int = 5) -> List[str]:
        needle = (partial_query or "").lower()
        return [s for s in SUGGESTIONS if needle in s.lower()][:limit]
