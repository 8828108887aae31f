"""
Client Supabase pour l'application.

Le client est construit explicitement par le point d'entrée (voir app.container)
et transmis aux couches CRUD ; aucun module ne le crée implicitement.
"""
from supabase import create_client, Client
from supabase.client import ClientOptions
import logging

from app.core.config import Settings

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings) -> Client:
    """
    Crée un client Supabase avec la clé de service.

    Args:
        settings: Paramètres de l'application

    Returns:
        Client Supabase configuré

    Raises:
        Exception: Si la configuration Supabase est invalide
    """
    try:
        logger.info("🔌 Initialisation du client Supabase...")

        client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY,
            options=ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
            ),
        )

        logger.info("✅ Client Supabase initialisé avec succès")
        return client

    except Exception as e:
        logger.error(f"❌ Erreur lors de l'initialisation Supabase: {str(e)}")
        raise
