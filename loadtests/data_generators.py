"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
(rating 1-5, non-blank content, known enum values) and match the exact
field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# A small pool of products so rating aggregates and listings grow under load
PRODUCT_POOL = [f"prod-lt-{n:03d}" for n in range(25)]

# ---------- Reviews ----------


def product_id() -> str:
    return random.choice(PRODUCT_POOL)


def customer_id() -> str:
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def rating() -> int:
    """Skewed towards positive ratings, like real review traffic."""
    return random.choices([1, 2, 3, 4, 5], weights=[5, 5, 15, 30, 45])[0]


def review_content(min_sentences: int = 2) -> str:
    """Review text long enough to clear the too-short heuristic."""
    return " ".join(fake.sentences(nb=random.randint(min_sentences, 5)))


def review_data(product: str | None = None, auto_moderate: bool = False) -> dict:
    """Generate SubmitReviewRequest payload matching schema field names."""
    return {
        "product_id": product or product_id(),
        "customer_id": customer_id(),
        "customer_name": fake.name()[:200],
        "customer_email": f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "rating": rating(),
        "title": fake.sentence(nb_words=5)[:200],
        "content": review_content(),
        "verified": random.random() < 0.7,
        "recommend_product": random.random() < 0.8,
        "photos": [fake.image_url() for _ in range(random.randint(0, 2))] or None,
        "pros": [fake.word() for _ in range(random.randint(0, 3))] or None,
        "source": random.choice(["website", "email", "api"]),
        "auto_moderate": auto_moderate,
    }


def spammy_content() -> str:
    """Content that trips at least two spam indicators."""
    return f"FREE MONEY visit http://{fake.domain_name()} and http://{fake.domain_name()} call 555-123-4567"


def response_data() -> dict:
    """Generate AddResponseRequest payload."""
    return {
        "responder_id": f"merchant-lt-{uuid.uuid4().hex[:6]}",
        "responder_name": fake.company()[:200],
        "responder_type": "merchant",
        "content": fake.sentence(nb_words=12),
    }


def vote_data() -> dict:
    return {"voter_id": customer_id(), "helpful": random.random() < 0.75}


# ---------- Moderation ----------


def moderation_rule_data() -> dict:
    """Generate CreateModerationRuleRequest payload."""
    action = random.choice(["approve", "reject", "flag"])
    rule_type = {"approve": "auto_approve", "reject": "auto_reject", "flag": "flag_for_review"}[action]
    return {
        "name": f"LT {fake.word().capitalize()} rule {uuid.uuid4().hex[:4]}",
        "type": rule_type,
        "action": action,
        "conditions": {"keywords": [fake.word()]},
        "priority": random.randint(0, 10),
    }


# ---------- Analytics ----------


def ledger_event_data() -> dict:
    """Generate TrackEventRequest payload for collection and widget traffic."""
    event_type = random.choice(
        ["request_sent", "request_opened", "request_clicked", "widget_view", "widget_interaction"]
    )
    entity = "widget" if event_type.startswith("widget") else "collection_request"
    return {
        "type": event_type,
        "entity": entity,
        "entity_id": uuid.uuid4().hex[:12],
        "product_id": product_id(),
        "campaign_id": "camp-lt" if entity == "collection_request" else None,
        "widget_id": "widget-lt" if entity == "widget" else None,
    }


# ---------- Social proof ----------


def ab_test_data() -> dict:
    """Generate CreateABTestRequest payload with two variants."""
    return {
        "name": f"LT display test {uuid.uuid4().hex[:6]}",
        "variants": [
            {"id": "A", "name": "Helpful first", "settings": {"sort_by": "helpful"}},
            {"id": "B", "name": "Recent first", "settings": {"sort_by": "recent"}},
        ],
    }


def variant_observation() -> dict:
    """One visitor: always an impression, sometimes a click or a conversion."""
    clicked = random.random() < 0.3
    converted = clicked and random.random() < 0.4
    return {
        "variant_id": random.choice(["A", "B"]),
        "impression": True,
        "click": clicked,
        "conversion": converted,
        "revenue": round(random.uniform(10, 200), 2) if converted else None,
    }
