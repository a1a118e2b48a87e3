"""FastAPI routes for the social proof engine: display rules, trust badges,
social proof elements, display optimization and A/B tests.
"""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from trust.api.envelope import ok
from trust.api.schemas import (
    ChangeABTestStatusRequest,
    CreateABTestRequest,
    CreateDisplayRuleRequest,
    CreateSocialProofElementRequest,
    CreateTrustBadgeRequest,
    EvaluateDisplayRequest,
    OptimizeDisplayRequest,
    RatingAggregateSchema,
    TrackInteractionRequest,
    TrackVariantRequest,
    UpdateDisplayRuleRequest,
    UpdateTrustBadgeRequest,
)
from trust.projections.product_rating import product_rating_summary
from trust.review.queries import product_reviews, review_to_dict
from trust.social_proof.ab_test import (
    ABTest,
    ChangeABTestStatus,
    ComputeABTestResults,
    CreateABTest,
    TrackVariant,
    list_ab_tests,
)
from trust.social_proof.badge import (
    CreateTrustBadge,
    DeleteTrustBadge,
    TrustBadge,
    UpdateTrustBadge,
    applicable_badges,
    list_trust_badges,
)
from trust.social_proof.display_rule import (
    CreateDisplayRule,
    DeleteDisplayRule,
    DisplayRule,
    UpdateDisplayRule,
    evaluate_display_rules,
    list_display_rules,
)
from trust.social_proof.element import (
    CreateSocialProofElement,
    SocialProofElement,
    TrackSocialProofInteraction,
    list_social_proof_elements,
)
from trust.social_proof.optimizer import (
    calculate_trust_score,
    conversion_insights,
    optimization_statistics,
    optimize_review_display,
    trust_score_breakdown,
)

router = APIRouter(prefix="/social-proof", tags=["social-proof"])


# ---------------------------------------------------------------------------
# Display rules
# ---------------------------------------------------------------------------
@router.get("/display-rules")
async def read_display_rules():
    return ok([rule.to_dict() for rule in list_display_rules()])


@router.post("/display-rules", status_code=201)
async def create_display_rule(body: CreateDisplayRuleRequest):
    command = CreateDisplayRule(
        name=body.name,
        priority=body.priority,
        enabled=body.enabled,
        **body.conditions.model_dump(),
        **body.display_settings.model_dump(),
    )
    rule_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(DisplayRule).get(rule_id).to_dict())


@router.post("/display-rules/evaluate")
async def evaluate_display(body: EvaluateDisplayRequest):
    """The display settings that apply to a page context."""
    return ok(evaluate_display_rules(body.page_type, body.product_category, body.visitor_segment))


@router.put("/display-rules/{rule_id}")
async def update_display_rule(rule_id: str, body: UpdateDisplayRuleRequest):
    command = UpdateDisplayRule(rule_id=rule_id, name=body.name, priority=body.priority, enabled=body.enabled)
    current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(DisplayRule).get(rule_id).to_dict())


@router.delete("/display-rules/{rule_id}")
async def delete_display_rule(rule_id: str):
    return ok(current_domain.process(DeleteDisplayRule(rule_id=rule_id), asynchronous=False))


# ---------------------------------------------------------------------------
# Trust badges
# ---------------------------------------------------------------------------
@router.get("/badges")
async def read_badges():
    return ok([badge.to_dict() for badge in list_trust_badges()])


@router.post("/badges", status_code=201)
async def create_badge(body: CreateTrustBadgeRequest):
    command = CreateTrustBadge(
        name=body.name,
        badge_type=body.type,
        icon=body.icon,
        description=body.description,
        display_locations=json.dumps(body.display_locations) if body.display_locations else None,
        enabled=body.enabled,
        **body.criteria.model_dump(),
        **body.style.model_dump(),
    )
    badge_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(TrustBadge).get(badge_id).to_dict())


@router.put("/badges/{badge_id}")
async def update_badge(badge_id: str, body: UpdateTrustBadgeRequest):
    command = UpdateTrustBadge(
        badge_id=badge_id,
        name=body.name,
        description=body.description,
        enabled=body.enabled,
    )
    current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(TrustBadge).get(badge_id).to_dict())


@router.delete("/badges/{badge_id}")
async def delete_badge(badge_id: str):
    return ok(current_domain.process(DeleteTrustBadge(badge_id=badge_id), asynchronous=False))


@router.post("/badges/applicable")
async def badges_for_aggregate(body: RatingAggregateSchema):
    """Badges a rating aggregate qualifies for, without reading the store."""
    return ok([badge.to_dict() for badge in applicable_badges(body.model_dump())])


# ---------------------------------------------------------------------------
# Social proof elements
# ---------------------------------------------------------------------------
@router.get("/elements")
async def read_elements(include_disabled: bool = False):
    return ok([element.to_dict() for element in list_social_proof_elements(enabled_only=not include_disabled)])


@router.post("/elements", status_code=201)
async def create_element(body: CreateSocialProofElementRequest):
    command = CreateSocialProofElement(
        element_type=body.type,
        content=body.content,
        display_type=body.display_type,
        triggers=json.dumps(body.triggers) if body.triggers is not None else None,
        frequency=body.frequency,
        style=json.dumps(body.style),
        enabled=body.enabled,
    )
    element_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(SocialProofElement).get(element_id).to_dict())


@router.post("/elements/{element_id}/track")
async def track_element(element_id: str, body: TrackInteractionRequest):
    command = TrackSocialProofInteraction(element_id=element_id, interaction=body.interaction)
    return ok(current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Product-level social proof
# ---------------------------------------------------------------------------
@router.get("/products/{product_id}/badges")
async def product_badges(product_id: str):
    aggregate = product_rating_summary(product_id)
    return ok([badge.to_dict() for badge in applicable_badges(aggregate)])


@router.get("/products/{product_id}/trust-score")
async def product_trust_score(product_id: str):
    aggregate = product_rating_summary(product_id)
    return ok(
        {
            "product_id": product_id,
            "trust_score": calculate_trust_score(aggregate),
            "breakdown": trust_score_breakdown(aggregate),
        }
    )


@router.post("/trust-score")
async def trust_score(body: RatingAggregateSchema):
    aggregate = body.model_dump()
    return ok({"trust_score": calculate_trust_score(aggregate), "breakdown": trust_score_breakdown(aggregate)})


@router.post("/products/{product_id}/optimize")
async def optimize_display(product_id: str, body: OptimizeDisplayRequest):
    """Pick a display strategy; defaults to the product's approved reviews."""
    reviews = body.reviews
    if reviews is None:
        stored = product_reviews(product_id, limit=None)["reviews"]
        reviews = [review_to_dict(review) for review in stored]
    return ok(optimize_review_display(product_id, reviews, body.performance))


@router.get("/products/{product_id}/insights")
async def product_insights(product_id: str):
    return ok(conversion_insights(product_id, product_rating_summary(product_id)))


@router.get("/statistics")
async def statistics():
    return ok(optimization_statistics())


# ---------------------------------------------------------------------------
# A/B tests
# ---------------------------------------------------------------------------
@router.get("/ab-tests")
async def read_ab_tests(status: str | None = None):
    return ok([test.to_dict() for test in list_ab_tests(status)])


@router.post("/ab-tests", status_code=201)
async def create_ab_test(body: CreateABTestRequest):
    command = CreateABTest(
        name=body.name,
        variants=json.dumps([variant.model_dump() for variant in body.variants]),
        traffic_allocation=json.dumps(body.traffic_allocation) if body.traffic_allocation is not None else None,
        end_date=body.end_date,
    )
    test_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(ABTest).get(test_id).to_dict())


@router.get("/ab-tests/{test_id}")
async def read_ab_test(test_id: str):
    return ok(current_domain.repository_for(ABTest).get(test_id).to_dict())


@router.post("/ab-tests/{test_id}/track")
async def track_variant(test_id: str, body: TrackVariantRequest):
    command = TrackVariant(
        test_id=test_id,
        variant_id=body.variant_id,
        impression=body.impression,
        click=body.click,
        conversion=body.conversion,
        revenue=body.revenue,
    )
    return ok(current_domain.process(command, asynchronous=False))


@router.post("/ab-tests/{test_id}/results")
async def ab_test_results(test_id: str):
    """Compute per-variant results and declare the winner."""
    return ok(current_domain.process(ComputeABTestResults(test_id=test_id), asynchronous=False))


@router.put("/ab-tests/{test_id}/status")
async def change_ab_test_status(test_id: str, body: ChangeABTestStatusRequest):
    command = ChangeABTestStatus(test_id=test_id, status=body.status)
    return ok(current_domain.process(command, asynchronous=False))
