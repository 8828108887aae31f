"""
Client du service NLP externe qui transforme une requête libre en filtres.
"""
from typing import Any, Dict, Optional
import logging

import requests

logger = logging.getLogger(__name__)


class NLPServiceError(Exception):
    """Échec réseau, timeout ou réponse inexploitable du service NLP"""
    pass


class NLPClient:
    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_url = f"{base_url.rstrip('/')}/parse-query"
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def parse_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Appelle POST /parse-query.

        Returns:
            {"filters": {...}, "intent": "..."}

        Raises:
            NLPServiceError: pour toute erreur (le parsing local prend le relais)
        """
        try:
            logger.info("📡 Appel du service NLP...")
            response = requests.post(
                self.api_url,
                headers=self.headers,
                json={"query": query, "context": context},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise NLPServiceError(str(e)) from e

        if not isinstance(payload, dict):
            raise NLPServiceError(f"Réponse inattendue: {type(payload).__name__}")
        return payload
