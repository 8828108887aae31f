"""
Traduction d'une requête en langage naturel en filtres de recherche.

Le service NLP externe est essayé en premier ; en cas d'échec (réseau, timeout,
réponse invalide) on retombe silencieusement sur une extraction locale par
mots-clés et expressions régulières.
"""
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence
import logging
import re

from pydantic import ValidationError

from app.ai.nlp_client import NLPClient, NLPServiceError
from app.models import ParsedQuery, Property, PropertyFilters, PropertyType

logger = logging.getLogger(__name__)


# Premier type trouvé gagne, dans cet ordre
PROPERTY_TYPE_KEYWORDS = (
    (PropertyType.apartment, ("apartment", "flat")),
    (PropertyType.house, ("house",)),
    (PropertyType.villa, ("villa",)),
    (PropertyType.plot, ("plot", "land")),
    (PropertyType.commercial, ("commercial", "office")),
)

KNOWN_CITIES = (
    "mumbai", "delhi", "bangalore", "hyderabad", "chennai", "kolkata",
    "pune", "ahmedabad", "surat", "jaipur", "lucknow", "kanpur",
    "nagpur", "indore", "thane", "bhopal", "visakhapatnam", "pimpri",
    "patna", "vadodara", "ghaziabad", "ludhiana", "agra", "nashik",
)

# Tous les équipements trouvés sont retenus
AMENITY_KEYWORDS = (
    (("parking",), "Parking"),
    (("gym", "fitness"), "Gym"),
    (("pool", "swimming"), "Swimming Pool"),
    (("garden",), "Garden"),
    (("security",), "24/7 Security"),
    (("lift", "elevator"), "Elevator"),
    (("power backup",), "Power Backup"),
)

BEDROOM_PATTERN = re.compile(r"(\d+)\s*(bhk|bedroom|bed)", re.IGNORECASE)
PRICE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(lakhs?|crores?|cr)", re.IGNORECASE)

LAKH = Decimal(100_000)
CRORE = Decimal(10_000_000)


def parse_query_locally(query: str) -> PropertyFilters:
    """Extraction des critères par mots-clés (type, chambres, budget, ville, équipements)"""
    text = query.lower()
    criteria: Dict[str, Any] = {}

    # TYPE DE BIEN
    for property_type, keywords in PROPERTY_TYPE_KEYWORDS:
        if any(kw in text for kw in keywords):
            criteria["property_type"] = property_type
            break

    # CHAMBRES
    match = BEDROOM_PATTERN.search(text)
    if match:
        criteria["bedrooms"] = int(match.group(1))

    # BUDGET : plafond, plancher à 50 %
    match = PRICE_PATTERN.search(text)
    if match:
        amount = Decimal(match.group(1))
        unit = match.group(2).lower()
        multiplier = CRORE if unit.startswith("cr") else LAKH
        max_price = (amount * multiplier).to_integral_value(rounding=ROUND_FLOOR)
        criteria["max_price"] = max_price
        criteria["min_price"] = (max_price / 2).to_integral_value(rounding=ROUND_FLOOR)

    # VILLE
    for city in KNOWN_CITIES:
        if city in text:
            criteria["city"] = city.capitalize()
            break

    # ÉQUIPEMENTS
    amenities = [label for keywords, label in AMENITY_KEYWORDS if any(kw in text for kw in keywords)]
    if amenities:
        criteria["amenities"] = amenities

    return PropertyFilters(**criteria)


def build_search_summary(query: str, properties: Sequence[Property], total: int, shown: int = 10) -> str:
    """Résumé lisible : nombre de résultats, prix moyen (au millier près), villes"""
    if total == 0:
        return f'No properties found matching "{query}". Try adjusting your search criteria.'

    summary = f"Found {total} properties"

    if properties:
        average = sum((p.price for p in properties), Decimal(0)) / len(properties)
        rounded = int((average / 1000).quantize(Decimal(1), rounding=ROUND_HALF_UP) * 1000)
        summary += f" with an average price of ₹{rounded:,}"

        cities: List[str] = list(dict.fromkeys(p.city for p in properties))
        if len(cities) == 1:
            summary += f" in {cities[0]}"
        elif len(cities) <= 3:
            summary += f" across {', '.join(cities)}"

    summary += f". Showing top {min(shown, total)} results."
    return summary


class FilterTranslator:
    def __init__(self, nlp_client: Optional[NLPClient] = None):
        self.nlp_client = nlp_client

    def translate(self, query: str, context: Optional[Dict[str, Any]] = None) -> ParsedQuery:
        """Ne lève jamais d'erreur liée au service NLP"""
        if self.nlp_client is not None:
            try:
                payload = self.nlp_client.parse_query(query, context)
                filters = PropertyFilters.model_validate(payload.get("filters") or {})
                intent = payload.get("intent") or ""
                return ParsedQuery(filters=filters, intent=str(intent), source="nlp")
            except (NLPServiceError, ValidationError) as e:
                logger.warning(f"⚠️ Service NLP indisponible, parsing local: {e}")

        return ParsedQuery(filters=parse_query_locally(query), source="local")
