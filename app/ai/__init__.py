"""
Module AI : recherche d'annonces en langage naturel.
Service NLP externe avec repli sur un parsing local par mots-clés.
"""

from .filter_translator import FilterTranslator, parse_query_locally, build_search_summary
from .nlp_client import NLPClient, NLPServiceError
from .search import SearchAssistant

__all__ = [
    "FilterTranslator",
    "parse_query_locally",
    "build_search_summary",
    "NLPClient",
    "NLPServiceError",
    "SearchAssistant",
]
