# tests/test_subscriptions.py
"""
Tests du cycle de vie des abonnements, des webhooks et de la passerelle Stripe
Exécuter: pytest tests/test_subscriptions.py -v
"""
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import stripe
from freezegun import freeze_time

from app.core.errors import NotFoundError, UpstreamError, ValidationFailedError
from app.models import SubscriptionPlan, SubscriptionStatus
from app.services.billing import BillingGateway
from app.services.subscriptions import add_months

from tests.utils.factories import WEBHOOK_SECRET, sign_webhook


# ====================================
# ARITHMÉTIQUE DES DATES
# ====================================

@pytest.mark.parametrize(
    "start, months, expected",
    [
        (datetime(2026, 1, 15), 1, datetime(2026, 2, 15)),
        (datetime(2026, 1, 31), 1, datetime(2026, 2, 28)),
        (datetime(2028, 1, 31), 1, datetime(2028, 2, 29)),
        (datetime(2026, 12, 10), 1, datetime(2027, 1, 10)),
        (datetime(2026, 3, 31), 13, datetime(2027, 4, 30)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


# ====================================
# CRÉATION
# ====================================

@freeze_time("2026-01-31 10:00:00")
def test_create_subscription(subscription_service, profile_store, billing):
    profile_store.emails["user-1"] = "dealer@example.com"

    subscription = subscription_service.create_subscription("user-1", SubscriptionPlan.premium, "pm_123")

    assert subscription.status == SubscriptionStatus.active
    assert subscription.listing_limit == 25
    assert subscription.stripe_subscription_id == "sub_premium"
    assert subscription.stripe_customer_id == "cus_new"
    assert subscription.expires_at == datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)
    assert ("create_customer", "dealer@example.com", "pm_123") in billing.calls
    assert ("create_subscription", "cus_new", "premium", 2999) in billing.calls


def test_create_reuses_billing_customer(subscription_service, subscription_store, profile_store, billing):
    profile_store.emails["user-1"] = "dealer@example.com"
    subscription_store.seed(
        "user-1", status=SubscriptionStatus.cancelled, stripe_customer_id="cus_existing"
    )

    subscription_service.create_subscription("user-1", SubscriptionPlan.basic, "pm_123")

    assert ("retrieve_customer", "cus_existing") in billing.calls
    assert not any(call[0] == "create_customer" for call in billing.calls)


def test_create_rejected_when_active_exists(subscription_service, subscription_store, profile_store, billing):
    profile_store.emails["user-1"] = "dealer@example.com"
    subscription_store.seed("user-1")

    with pytest.raises(ValidationFailedError) as exc:
        subscription_service.create_subscription("user-1", SubscriptionPlan.enterprise, "pm_123")

    assert exc.value.code == "SUBSCRIPTION_EXISTS"
    assert billing.calls == []


def test_create_requires_profile(subscription_service):
    with pytest.raises(NotFoundError) as exc:
        subscription_service.create_subscription("user-1", SubscriptionPlan.basic, "pm_123")
    assert exc.value.code == "PROFILE_NOT_FOUND"


def test_billing_failure_stores_nothing(subscription_service, subscription_store, profile_store, billing):
    profile_store.emails["user-1"] = "dealer@example.com"
    billing.error = UpstreamError("STRIPE_ERROR", "card declined")

    with pytest.raises(UpstreamError):
        subscription_service.create_subscription("user-1", SubscriptionPlan.basic, "pm_123")
    assert subscription_store.rows == {}


@freeze_time("2026-03-01 00:00:00")
def test_trial_lasts_fourteen_days(subscription_service):
    subscription = subscription_service.start_trial("dealer-1")

    assert subscription.plan == SubscriptionPlan.basic
    assert subscription.listing_limit == 5
    assert subscription.expires_at == datetime(2026, 3, 15, tzinfo=timezone.utc)


def test_trial_not_granted_twice(subscription_service, subscription_store):
    trial = subscription_service.start_trial("dealer-1")
    subscription_service.cancel_subscription("dealer-1", trial.id)

    with pytest.raises(ValidationFailedError) as exc:
        subscription_service.start_trial("dealer-1")

    assert exc.value.code == "TRIAL_ALREADY_USED"
    assert len(subscription_store.rows) == 1
    assert subscription_store.rows[trial.id]["status"] == "cancelled"


def test_trial_refused_after_paid_plan_lapsed(subscription_service, subscription_store):
    subscription_store.seed("dealer-1", status=SubscriptionStatus.inactive)

    with pytest.raises(ValidationFailedError) as exc:
        subscription_service.start_trial("dealer-1")
    assert exc.value.code == "TRIAL_ALREADY_USED"


# ====================================
# ANNULATION
# ====================================

def test_cancel_subscription(subscription_service, subscription_store, billing):
    sub = subscription_store.seed("user-1", stripe_subscription_id="sub_1")

    cancelled = subscription_service.cancel_subscription("user-1", sub.id)

    assert cancelled.status == SubscriptionStatus.cancelled
    assert ("cancel_subscription", "sub_1") in billing.calls


def test_cancel_other_users_subscription(subscription_service, subscription_store):
    sub = subscription_store.seed("user-1")

    with pytest.raises(NotFoundError) as exc:
        subscription_service.cancel_subscription("user-2", sub.id)
    assert exc.value.code == "SUBSCRIPTION_NOT_FOUND"


def test_cancel_inactive_subscription(subscription_service, subscription_store):
    sub = subscription_store.seed("user-1", status=SubscriptionStatus.expired)

    with pytest.raises(ValidationFailedError) as exc:
        subscription_service.cancel_subscription("user-1", sub.id)
    assert exc.value.code == "SUBSCRIPTION_NOT_ACTIVE"


# ====================================
# WEBHOOKS
# ====================================

def event(event_type, obj):
    return {"type": event_type, "data": {"object": obj}}


def test_invoice_failed_deactivates(subscription_service, subscription_store):
    sub = subscription_store.seed("user-1", stripe_subscription_id="sub_1")

    assert subscription_service.handle_webhook(
        event("invoice.payment_failed", {"subscription": "sub_1"})
    )
    assert subscription_store.rows[sub.id]["status"] == "inactive"


@freeze_time("2026-05-10 12:00:00")
def test_invoice_paid_renews(subscription_service, subscription_store):
    sub = subscription_store.seed(
        "user-1", status=SubscriptionStatus.inactive, stripe_subscription_id="sub_1"
    )

    subscription_service.handle_webhook(event(
        "invoice.payment_succeeded",
        {"parent": {"subscription_details": {"subscription": "sub_1"}}},
    ))

    row = subscription_store.rows[sub.id]
    assert row["status"] == "active"
    assert row["expires_at"].startswith("2026-06-10T12:00:00")


@pytest.mark.parametrize(
    "event_type, remote_status, expected",
    [
        ("customer.subscription.updated", "active", "active"),
        ("customer.subscription.updated", "past_due", "inactive"),
        ("customer.subscription.deleted", "canceled", "cancelled"),
    ],
)
def test_subscription_events(subscription_service, subscription_store, event_type, remote_status, expected):
    sub = subscription_store.seed("user-1", stripe_subscription_id="sub_1")

    subscription_service.handle_webhook(event(event_type, {"id": "sub_1", "status": remote_status}))

    assert subscription_store.rows[sub.id]["status"] == expected


def test_unknown_event_or_subscription_is_noop(subscription_service, subscription_store):
    sub = subscription_store.seed("user-1", stripe_subscription_id="sub_1")

    assert not subscription_service.handle_webhook(event("charge.refunded", {"id": "ch_1"}))
    assert not subscription_service.handle_webhook(
        event("invoice.payment_failed", {"subscription": "sub_unknown"})
    )
    assert not subscription_service.handle_webhook(event("invoice.payment_failed", {}))
    assert subscription_store.rows[sub.id]["status"] == "active"


# ====================================
# PASSERELLE STRIPE
# ====================================

def test_gateway_creates_price_then_subscription(monkeypatch):
    price_create = MagicMock(return_value={"id": "price_1"})
    sub_create = MagicMock(return_value={"id": "sub_1"})
    monkeypatch.setattr(stripe.Price, "create", price_create)
    monkeypatch.setattr(stripe.Subscription, "create", sub_create)

    gateway = BillingGateway("sk_test", currency="inr")
    assert gateway.create_subscription("cus_1", "premium", 2999) == "sub_1"

    price_kwargs = price_create.call_args.kwargs
    assert price_kwargs["unit_amount"] == 299900
    assert price_kwargs["recurring"] == {"interval": "month"}
    assert price_kwargs["product_data"] == {"name": "PREMIUM Plan"}
    assert sub_create.call_args.kwargs["items"] == [{"price": "price_1"}]
    assert sub_create.call_args.kwargs["api_key"] == "sk_test"


def test_gateway_wraps_stripe_errors(monkeypatch):
    monkeypatch.setattr(
        stripe.Customer, "create", MagicMock(side_effect=stripe.StripeError("card declined"))
    )

    with pytest.raises(UpstreamError) as exc:
        BillingGateway("sk_test").create_customer("a@example.com", "pm_1")
    assert exc.value.code == "STRIPE_ERROR"


def test_gateway_without_key():
    with pytest.raises(UpstreamError):
        BillingGateway(None).cancel_subscription("sub_1")


def test_webhook_signed_payload_parsed():
    payload = json.dumps(event("invoice.payment_failed", {"subscription": "sub_1"})).encode()
    gateway = BillingGateway("sk_test", webhook_secret=WEBHOOK_SECRET)

    parsed = gateway.construct_event(payload, sign_webhook(payload))

    assert parsed["type"] == "invoice.payment_failed"


def test_webhook_rejected_without_secret():
    payload = json.dumps(event("invoice.payment_succeeded", {"subscription": "sub_1"})).encode()

    with pytest.raises(ValidationFailedError) as exc:
        BillingGateway("sk_test").construct_event(payload, None)

    assert exc.value.code == "INVALID_WEBHOOK"


def test_webhook_bad_signature_rejected():
    gateway = BillingGateway("sk_test", webhook_secret="whsec_test")
    payload = json.dumps(event("invoice.payment_failed", {})).encode()

    with pytest.raises(ValidationFailedError) as exc:
        gateway.construct_event(payload, "t=1,v1=bad")
    assert exc.value.code == "INVALID_WEBHOOK"


def test_webhook_invalid_json_rejected():
    gateway = BillingGateway("sk_test", webhook_secret=WEBHOOK_SECRET)

    with pytest.raises(ValidationFailedError) as exc:
        gateway.construct_event(b"not json", sign_webhook(b"not json"))
    assert exc.value.code == "INVALID_WEBHOOK"
