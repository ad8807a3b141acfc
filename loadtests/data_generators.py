"""Faker-based payloads for the Locust scenarios.

Every payload matches the pydantic request schemas of the storefront API.
"""

import random
import uuid

from faker import Faker

fake = Faker()

ADMIN_HEADERS = {"X-User-Id": "loadtest-admin", "X-User-Role": "admin"}
WEBHOOK_HEADERS = {"X-Gateway-Signature": "test-signature"}


def session_key() -> str:
    return f"lt-session-{uuid.uuid4().hex}"


def service_data() -> dict:
    return {
        "title": f"{fake.catch_phrase()[:60]} {uuid.uuid4().hex[:6]}",
        "service_type": random.choice(["editing", "formatting", "design", "illustration"]),
        "base_price": round(random.uniform(50, 500), 2),
        "description": fake.paragraph(),
    }


def variant_data() -> dict:
    return {
        "title": random.choice(["Copy edit", "Line edit", "Proofread"]),
        "price": round(random.uniform(0.01, 0.03), 2),
        "unit_type": "per_word",
        "turnaround_days": random.randint(5, 30),
        "min_quantity": 1000,
        "max_quantity": 200000,
    }


def cart_item(variant_id: str) -> dict:
    return {
        "variant_id": variant_id,
        "quantity": random.randint(1000, 120000),
        "item_meta": {
            "turnaround_tier": random.choice(["standard", "rush", "express"]),
            "add_ons": random.sample(["priority_support", "additional_revision"], k=random.randint(0, 2)),
        },
    }


def checkout_data() -> dict:
    return {
        "billing_details": {
            "name": fake.name(),
            "email": f"{uuid.uuid4().hex[:8]}@{fake.free_email_domain()}",
            "country": fake.country_code(),
            "city": fake.city()[:100],
        },
        "payment_method": "stripe",
        "requirements": {"genre": random.choice(["fantasy", "memoir", "thriller"]), "notes": fake.sentence()},
    }


def webhook_success(gateway_payment_id: str) -> dict:
    return {
        "event": "payment.completed",
        "gateway_payment_id": gateway_payment_id,
        "transaction_id": f"ch_{uuid.uuid4().hex[:14]}",
    }
