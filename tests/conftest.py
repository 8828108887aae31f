"""
Fixtures partagées : doublures en mémoire des stockages (Supabase, Redis),
de la passerelle Stripe et du service NLP.
"""
import itertools
import os
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import pytest

# Variables d'environnement de test (avant tout import de la configuration)
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")

from app.ai import FilterTranslator, NLPServiceError, SearchAssistant
from app.container import Services
from app.core.errors import CacheUnavailableError
from app.models import (
    Lead, Property, PropertyStatus, Subscription, SubscriptionPlan,
    SubscriptionStatus, PLAN_CATALOG,
)
from app.services.billing import BillingGateway
from app.services.leads import LeadService
from app.services.listing_cache import ListingCache
from app.services.listings import ListingService
from app.services.query_composer import QueryComposer
from app.services.quota import QuotaEnforcer
from app.services.subscriptions import SubscriptionService
from app.services.tasks import DetachedTasks

from tests.utils.factories import WEBHOOK_SECRET, property_create_data


_tick = itertools.count()


def _timestamp() -> str:
    """Horodatage strictement croissant (ordre de création déterministe)"""
    return (datetime.now(timezone.utc) + timedelta(microseconds=next(_tick))).isoformat()


def _sort_value(value: Any) -> Any:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return str(value)


# ====================================
# STOCKAGES EN MÉMOIRE
# ====================================

class FakePropertyStore:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.search_calls = 0
        self.get_calls = 0

    def create(self, data: Dict[str, Any]) -> Property:
        now = _timestamp()
        row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **data}
        self.rows[row["id"]] = row
        return Property(**row)

    def get_by_id(self, property_id: str) -> Optional[Property]:
        self.get_calls += 1
        row = self.rows.get(property_id)
        return Property(**row) if row else None

    def search(self, where, sort, offset: int = 0, limit: int = 20):
        self.search_calls += 1
        matched = [row for row in self.rows.values() if where.matches(row)]
        matched.sort(
            key=lambda r: (_sort_value(r[sort.field]), r["id"]),
            reverse=sort.descending,
        )
        page = matched[offset:offset + limit]
        return [Property(**row) for row in page], len(matched)

    def update(self, property_id: str, data: Dict[str, Any]) -> Optional[Property]:
        row = self.rows.get(property_id)
        if row is None:
            return None
        row.update(data, updated_at=_timestamp())
        return Property(**row)

    def count_active(self, dealer_id: str) -> int:
        return sum(
            1 for row in self.rows.values()
            if row["dealer_id"] == dealer_id and row["status"] != PropertyStatus.archived.value
        )

    def list_for_dealer(self, dealer_id: str, offset: int = 0, limit: int = 20):
        rows = [
            row for row in self.rows.values()
            if row["dealer_id"] == dealer_id and row["status"] != PropertyStatus.archived.value
        ]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [Property(**row) for row in rows[offset:offset + limit]], len(rows)

    def increment_views(self, property_id: str) -> None:
        row = self.rows.get(property_id)
        if row is not None:
            row["views_count"] = row.get("views_count", 0) + 1

    def seed(self, dealer_id: str, status: PropertyStatus = PropertyStatus.published, **overrides) -> Property:
        """Insère directement une annonce (hors service, sans quota)"""
        data = property_create_data(**overrides)
        data.update(dealer_id=dealer_id, status=status.value, views_count=0)
        return self.create(data)


class FakeLeadStore:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    def create(self, data: Dict[str, Any]) -> Lead:
        row = {"id": str(uuid.uuid4()), "created_at": _timestamp(), **data}
        self.rows[row["id"]] = row
        return Lead(**row)

    def get_by_id(self, lead_id: str) -> Optional[Lead]:
        row = self.rows.get(lead_id)
        return Lead(**row) if row else None

    def list_for_dealer(self, dealer_id: str, property_id: Optional[str] = None, offset: int = 0, limit: int = 20):
        rows = [
            row for row in self.rows.values()
            if row["dealer_id"] == dealer_id and (property_id is None or row["property_id"] == property_id)
        ]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [Lead(**row) for row in rows[offset:offset + limit]], len(rows)

    def update_status(self, lead_id: str, status: str) -> Optional[Lead]:
        row = self.rows.get(lead_id)
        if row is None:
            return None
        row["status"] = status
        return Lead(**row)

    def count_for_dealer(self, dealer_id: str, status: Optional[str] = None) -> int:
        return sum(
            1 for row in self.rows.values()
            if row["dealer_id"] == dealer_id and (status is None or row["status"] == status)
        )

    def property_ids_for_dealer(self, dealer_id: str) -> List[str]:
        return [row["property_id"] for row in self.rows.values() if row["dealer_id"] == dealer_id]


class FakeSubscriptionStore:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    def _user_rows(self, user_id: str) -> List[Dict[str, Any]]:
        rows = [row for row in self.rows.values() if row["user_id"] == user_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def latest_for_user(self, user_id: str) -> Optional[Subscription]:
        rows = self._user_rows(user_id)
        return Subscription(**rows[0]) if rows else None

    def active_for_user(self, user_id: str) -> Optional[Subscription]:
        for row in self._user_rows(user_id):
            if row["status"] == SubscriptionStatus.active.value:
                return Subscription(**row)
        return None

    def billing_customer_id(self, user_id: str) -> Optional[str]:
        for row in self._user_rows(user_id):
            if row.get("stripe_customer_id"):
                return row["stripe_customer_id"]
        return None

    def get_owned(self, subscription_id: str, user_id: str) -> Optional[Subscription]:
        row = self.rows.get(subscription_id)
        if row is None or row["user_id"] != user_id:
            return None
        return Subscription(**row)

    def create(self, data: Dict[str, Any]) -> Subscription:
        row = {"id": str(uuid.uuid4()), "created_at": _timestamp(), **data}
        self.rows[row["id"]] = row
        return Subscription(**row)

    def update(self, subscription_id: str, data: Dict[str, Any]) -> Optional[Subscription]:
        row = self.rows.get(subscription_id)
        if row is None:
            return None
        row.update(data)
        return Subscription(**row)

    def update_by_billing_id(self, stripe_subscription_id: str, data: Dict[str, Any]) -> Optional[Subscription]:
        updated = None
        for row in self.rows.values():
            if row.get("stripe_subscription_id") == stripe_subscription_id:
                row.update(data)
                updated = Subscription(**row)
        return updated

    def seed(
        self,
        user_id: str,
        plan: SubscriptionPlan = SubscriptionPlan.basic,
        status: SubscriptionStatus = SubscriptionStatus.active,
        **overrides,
    ) -> Subscription:
        data = {
            "user_id": user_id,
            "plan": plan.value,
            "status": status.value,
            "listing_limit": PLAN_CATALOG[plan].listing_limit,
            "expires_at": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        }
        data.update(overrides)
        return self.create(data)


class FakeProfileStore:
    def __init__(self):
        self.emails: Dict[str, str] = {}

    def get_contact_email(self, user_id: str) -> Optional[str]:
        return self.emails.get(user_id)


class FakeCacheStore:
    """Remplace RedisCache (même interface asynchrone)"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise CacheUnavailableError("connection refused")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> int:
        self._check()
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def delete_prefix(self, prefix: str) -> int:
        self._check()
        keys = [key for key in self.data if key.startswith(prefix)]
        for key in keys:
            del self.data[key]
        return len(keys)

    async def close(self) -> None:
        pass


class FakeBilling(BillingGateway):
    """Passerelle Stripe sans réseau ; la vérification des webhooks reste réelle"""

    def __init__(self, webhook_secret: Optional[str] = None):
        super().__init__("sk_test_fake", webhook_secret=webhook_secret)
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def retrieve_customer(self, customer_id: str) -> str:
        self._record("retrieve_customer", customer_id)
        return customer_id

    def create_customer(self, email: str, payment_method_id: str) -> str:
        self._record("create_customer", email, payment_method_id)
        return "cus_new"

    def create_subscription(self, customer_id: str, plan_name: str, monthly_price: int) -> str:
        self._record("create_subscription", customer_id, plan_name, monthly_price)
        return f"sub_{plan_name}"

    def cancel_subscription(self, stripe_subscription_id: str) -> None:
        self._record("cancel_subscription", stripe_subscription_id)


class FakeNLPClient:
    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.calls: List[tuple] = []

    def parse_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((query, context))
        if self.error is not None:
            raise self.error
        return self.payload


# ====================================
# FIXTURES
# ====================================

@pytest.fixture
def property_store():
    return FakePropertyStore()


@pytest.fixture
def lead_store():
    return FakeLeadStore()


@pytest.fixture
def subscription_store():
    return FakeSubscriptionStore()


@pytest.fixture
def profile_store():
    return FakeProfileStore()


@pytest.fixture
def cache_store():
    return FakeCacheStore()


@pytest.fixture
def billing():
    return FakeBilling(webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def tasks():
    return DetachedTasks()


@pytest.fixture
def listing_cache(cache_store):
    return ListingCache(cache_store, property_ttl=300, list_ttl=300)


@pytest.fixture
def quota(subscription_store, property_store):
    return QuotaEnforcer(subscription_store, property_store)


@pytest.fixture
def listing_service(property_store, quota, listing_cache, tasks):
    return ListingService(
        property_store, quota, listing_cache, QueryComposer(property_store), tasks
    )


@pytest.fixture
def lead_service(lead_store, property_store):
    return LeadService(lead_store, property_store)


@pytest.fixture
def subscription_service(subscription_store, profile_store, billing):
    return SubscriptionService(subscription_store, profile_store, billing)


@pytest.fixture
def nlp_unavailable():
    return FakeNLPClient(error=NLPServiceError("timeout"))


@pytest.fixture
def services(listing_service, lead_service, subscription_service, quota, billing, tasks):
    """Services complets branchés sur les doublures (tests API)"""
    return Services(
        listings=listing_service,
        leads=lead_service,
        subscriptions=subscription_service,
        quota=quota,
        search=SearchAssistant(FilterTranslator(None), listing_service),
        billing=billing,
        tasks=tasks,
    )
