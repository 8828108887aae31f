"""
Assemblage des services à partir de la configuration.

Construit une seule fois au démarrage (lifespan FastAPI) puis partagé via
``app.state.services``. Les tests construisent leurs propres Services avec
des doublures.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from app.ai import FilterTranslator, NLPClient, SearchAssistant
from app.core.config import Settings
from app.crud import (
    get_lead_crud, get_profile_crud, get_property_crud, get_subscription_crud,
)
from app.db import RedisCache, create_supabase_client
from app.services.billing import BillingGateway
from app.services.leads import LeadService
from app.services.listing_cache import ListingCache
from app.services.listings import ListingService
from app.services.query_composer import QueryComposer
from app.services.quota import QuotaEnforcer
from app.services.subscriptions import SubscriptionService
from app.services.tasks import DetachedTasks

logger = logging.getLogger(__name__)


@dataclass
class Services:
    listings: ListingService
    leads: LeadService
    subscriptions: SubscriptionService
    quota: QuotaEnforcer
    search: SearchAssistant
    billing: BillingGateway
    tasks: DetachedTasks
    cache_store: Optional[RedisCache] = None

    async def close(self) -> None:
        """Attend les tâches détachées puis ferme Redis"""
        await self.tasks.drain()
        if self.cache_store is not None:
            await self.cache_store.close()
        logger.info("✓ Services arrêtés")


def build_services(settings: Settings) -> Services:
    db = create_supabase_client(settings)

    properties = get_property_crud(db)
    leads = get_lead_crud(db)
    subscriptions = get_subscription_crud(db)
    profiles = get_profile_crud(db)

    cache_store = RedisCache.from_url(settings.REDIS_URL) if settings.REDIS_URL else None
    if cache_store is None:
        logger.info("Cache désactivé (REDIS_URL absent)")

    cache = ListingCache(
        cache_store,
        property_ttl=settings.PROPERTY_CACHE_TTL,
        list_ttl=settings.LIST_CACHE_TTL,
    )
    tasks = DetachedTasks()
    quota = QuotaEnforcer(subscriptions, properties)
    listings = ListingService(properties, quota, cache, QueryComposer(properties), tasks)

    billing = BillingGateway(
        settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.BILLING_CURRENCY,
    )

    nlp_client = None
    if settings.AI_SERVICE_URL:
        nlp_client = NLPClient(
            settings.AI_SERVICE_URL,
            api_key=settings.AI_API_KEY,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )

    return Services(
        listings=listings,
        leads=LeadService(leads, properties),
        subscriptions=SubscriptionService(subscriptions, profiles, billing),
        quota=quota,
        search=SearchAssistant(FilterTranslator(nlp_client), listings),
        billing=billing,
        tasks=tasks,
        cache_store=cache_store,
    )
