"""Social proof strategy: which reviews to show, and how much to trust a product.

All functions here are pure over their inputs except the statistics roll-up.
Reviews are plain mappings (the shape ``review_to_dict`` produces), so
callers can pass stored reviews or reviews from elsewhere.
"""

from enum import Enum

from trust.social_proof.ab_test import ABTest, ABTestStatus
from trust.social_proof.badge import TrustBadge
from trust.social_proof.display_rule import DisplayRule
from trust.social_proof.element import SocialProofElement
from trust.utils.numbers import percentage, round_half_up
from trust.utils.repository import fetch_all

SHOWCASE_THRESHOLD = 4.5
BALANCED_THRESHOLD = 3.5
RECOMMENDED_COUNT = 5


class DisplayStrategy(Enum):
    SHOWCASE_EXCELLENCE = "showcase_excellence"
    BALANCED = "balanced"
    CREDIBILITY_FOCUS = "credibility_focus"


def _helpful(review):
    return review.get("helpful_count") or 0


def _has_media(review):
    return bool(review.get("photos") or review.get("videos"))


def optimize_review_display(product_id, reviews, performance=None):
    """Pick a display strategy from the reviews' average rating.

    ≥ 4.5 showcases the most helpful positive reviews, ≥ 3.5 mixes three
    positive reviews with the two most helpful three-star ones, anything
    lower (or no reviews at all) leans on verified reviews.
    """
    reviews = list(reviews)
    average = sum(r["rating"] for r in reviews) / len(reviews) if reviews else None
    positive = [r for r in reviews if r["rating"] >= 4]

    # sorted() is stable: equally helpful reviews keep their input order
    if average is not None and average >= SHOWCASE_THRESHOLD:
        strategy = DisplayStrategy.SHOWCASE_EXCELLENCE
        recommended = sorted(positive, key=_helpful, reverse=True)[:RECOMMENDED_COUNT]
        reasoning = ["High rating product - showcasing top positive reviews"]
    elif average is not None and average >= BALANCED_THRESHOLD:
        strategy = DisplayStrategy.BALANCED
        critical = sorted((r for r in reviews if r["rating"] == 3), key=_helpful, reverse=True)[:2]
        recommended = positive[:3] + critical
        reasoning = ["Mixed ratings - showing balanced perspective"]
    else:
        strategy = DisplayStrategy.CREDIBILITY_FOCUS
        verified = [r for r in reviews if r.get("verified")]
        recommended = sorted(verified, key=_helpful, reverse=True)[:RECOMMENDED_COUNT]
        reasoning = ["Lower ratings - focusing on verified and helpful reviews"]

    # Media is called out in the reasoning only; the order is left as chosen
    if any(_has_media(r) for r in recommended):
        reasoning.append("Prioritizing reviews with photos/videos for authenticity")

    return {
        "product_id": str(product_id),
        "display_strategy": strategy.value,
        "recommended_reviews": recommended,
        "reasoning": reasoning,
        "average_rating": round_half_up(average, 1) if average is not None else 0,
        "performance": performance or {},
    }


def trust_score_breakdown(aggregate):
    average_rating = aggregate.get("average_rating") or 0
    total_reviews = aggregate.get("total_reviews") or 0
    verified_reviews = aggregate.get("verified_reviews") or 0

    return {
        "rating": average_rating / 5 * 40,
        "volume": min(total_reviews / 100, 1) * 30,
        "verification": verified_reviews / total_reviews * 20 if total_reviews else 0,
        "recency": 10,
    }


def calculate_trust_score(aggregate):
    """0-100 composite of rating, review volume and verification rate."""
    score = sum(trust_score_breakdown(aggregate).values())
    return int(round_half_up(min(max(score, 0), 100)))


def conversion_insights(product_id, aggregate):
    average_rating = aggregate.get("average_rating") or 0
    total_reviews = aggregate.get("total_reviews") or 0

    review_impact = "positive"
    recommendations = []

    if average_rating >= 4.5 and total_reviews >= 50:
        review_impact = "high_positive"
        recommendations.append(
            {
                "type": "showcase",
                "message": "Feature reviews prominently - strong conversion driver",
                "priority": "high",
            }
        )
    elif average_rating < 3.5:
        review_impact = "negative"
        recommendations.append(
            {
                "type": "address_concerns",
                "message": "Low ratings may hurt conversions - address customer concerns",
                "priority": "critical",
            }
        )

    if total_reviews < 10:
        recommendations.append(
            {"type": "collect_more", "message": "Low review count - run collection campaign", "priority": "high"}
        )

    trust_score = calculate_trust_score(aggregate)
    if trust_score < 60:
        recommendations.append(
            {
                "type": "build_trust",
                "message": "Add verified badges and highlight positive reviews",
                "priority": "medium",
            }
        )

    return {
        "product_id": str(product_id),
        "review_impact": review_impact,
        "recommendations": recommendations,
        "metrics": {"trust_score": trust_score},
    }


def optimization_statistics():
    tests = fetch_all(ABTest)
    elements = fetch_all(SocialProofElement)
    impressions = sum(element.impressions for element in elements)
    clicks = sum(element.clicks for element in elements)

    return {
        "display_rules": len(fetch_all(DisplayRule)),
        "trust_badges": len(fetch_all(TrustBadge)),
        "social_proof_elements": {
            "total": len(elements),
            "active": sum(1 for element in elements if element.enabled),
        },
        "ab_tests": {
            "total": len(tests),
            "active": sum(1 for test in tests if test.status == ABTestStatus.ACTIVE.value),
        },
        "performance": {
            "total_impressions": impressions,
            "total_clicks": clicks,
            "average_ctr": percentage(clicks, impressions),
        },
    }
