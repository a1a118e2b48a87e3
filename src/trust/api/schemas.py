"""Pydantic request schemas for the trust API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
Responses use the ``{"success": ..., "data" | "error": ...}`` envelope built
in ``trust.api.envelope``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    product_id: str
    customer_id: str
    rating: int = Field(ge=1, le=5)
    content: str = Field(min_length=1)
    title: str | None = Field(default=None, max_length=200)
    customer_name: str | None = Field(default=None, max_length=200)
    customer_email: str | None = Field(default=None, max_length=254)
    verified: bool = False
    recommend_product: bool = True
    photos: list[str] | None = None
    videos: list[str] | None = None
    pros: list[str] | None = None
    cons: list[str] | None = None
    source: Literal["website", "email", "import", "api"] = "website"
    auto_moderate: bool = False


class UpdateReviewRequest(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    recommend_product: bool | None = None
    verified: bool | None = None
    photos: list[str] | None = None
    videos: list[str] | None = None
    pros: list[str] | None = None
    cons: list[str] | None = None


class VoteRequest(BaseModel):
    voter_id: str
    helpful: bool


class AddResponseRequest(BaseModel):
    responder_id: str
    content: str = Field(min_length=1)
    responder_name: str | None = None
    responder_type: Literal["merchant", "support", "customer"] = "merchant"


class ModerateReviewRequest(BaseModel):
    status: Literal["approved", "rejected", "flagged"]
    moderator_id: str
    notes: str | None = None


class FlagReviewRequest(BaseModel):
    reason: str | None = None
    flagged_by: str | None = None


class ImportReviewRecord(BaseModel):
    product_id: str
    customer_id: str
    rating: int = Field(ge=1, le=5)
    content: str = Field(min_length=1)
    title: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    verified: bool = False
    recommend_product: bool = True


class ImportReviewsRequest(BaseModel):
    reviews: list[ImportReviewRecord]


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------
class RuleConditionsSchema(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    min_length: int | None = Field(default=None, ge=0)
    verified: bool | None = None
    keywords: list[str] | None = None


class CreateModerationRuleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: Literal["auto_approve", "auto_reject", "flag_for_review"]
    action: Literal["approve", "reject", "flag"]
    conditions: RuleConditionsSchema | None = None
    priority: int = 0
    enabled: bool = True


class UpdateModerationRuleRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    type: Literal["auto_approve", "auto_reject", "flag_for_review"] | None = None
    action: Literal["approve", "reject", "flag"] | None = None
    conditions: RuleConditionsSchema | None = None
    priority: int | None = None
    enabled: bool | None = None


class ModerateContentRequest(BaseModel):
    content: str
    content_id: str | None = None
    content_type: str = "review"
    rating: int | None = Field(default=None, ge=1, le=5)
    verified: bool | None = None
    customer_email: str | None = None


class ReviewQueueItemRequest(BaseModel):
    action: Literal["approve", "reject"]
    reviewed_by: str
    notes: str | None = None


class BlockedWordRequest(BaseModel):
    word: str = Field(min_length=1)


class BlockedEmailRequest(BaseModel):
    email: str = Field(min_length=3)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
class TrackEventRequest(BaseModel):
    type: str = Field(min_length=1)
    entity: str = Field(min_length=1)
    entity_id: str | None = None
    product_id: str | None = None
    user_id: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    sentiment: Literal["positive", "negative", "neutral", "mixed"] | None = None
    campaign_id: str | None = None
    widget_id: str | None = None
    helpful_votes: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None


class CreateReportRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: Literal["reviews", "collection", "widgets", "sentiment"]
    filters: dict[str, Any] = Field(default_factory=dict)
    schedule: Literal["daily", "weekly", "monthly", "none"] = "none"
    format: Literal["json", "csv"] = "json"
    recipients: list[str] = Field(default_factory=list)


class DashboardWidgetSchema(BaseModel):
    type: Literal[
        "review_metrics",
        "collection_performance",
        "widget_performance",
        "rating_distribution",
        "top_reviewers",
    ]
    limit: int | None = Field(default=None, ge=1)


class CreateDashboardRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    widgets: list[DashboardWidgetSchema] = Field(default_factory=list)
    layout: Literal["grid", "list"] = "grid"
    refresh_interval: int = Field(default=300, ge=1)
    filters: dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False


class CreateAlertRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    metric: str = Field(min_length=1)
    operator: Literal["greater_than", "less_than"]
    threshold: float
    channels: list[str] = Field(default_factory=lambda: ["email"])
    recipients: list[str] = Field(default_factory=list)
    enabled: bool = True


class CheckAlertsRequest(BaseModel):
    metrics: dict[str, float]


class ProductComparisonRequest(BaseModel):
    product_ids: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Social proof
# ---------------------------------------------------------------------------
class DisplaySettingsSchema(BaseModel):
    show_rating: bool | None = None
    show_review_count: bool | None = None
    show_stars: bool | None = None
    show_trust_badges: bool | None = None
    show_top_reviews: bool | None = None
    review_count: int | None = Field(default=None, ge=0)
    sort_by: Literal["helpful", "recent", "rating_high", "rating_low"] | None = None
    highlight_verified: bool | None = None
    show_photos: bool | None = None


class DisplayConditionsSchema(BaseModel):
    page_type: str | None = None
    product_category: str | None = None
    visitor_segment: str | None = None


class CreateDisplayRuleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    priority: int = 0
    enabled: bool = True
    conditions: DisplayConditionsSchema = Field(default_factory=DisplayConditionsSchema)
    display_settings: DisplaySettingsSchema = Field(default_factory=DisplaySettingsSchema)


class UpdateDisplayRuleRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    priority: int | None = None
    enabled: bool | None = None


class EvaluateDisplayRequest(BaseModel):
    page_type: str | None = None
    product_category: str | None = None
    visitor_segment: str | None = None


class BadgeCriteriaSchema(BaseModel):
    min_reviews: int | None = Field(default=None, ge=0)
    min_rating: float | None = Field(default=None, ge=0, le=5)
    min_verified_reviews: int | None = Field(default=None, ge=0)
    min_recommendation_rate: int | None = Field(default=None, ge=0, le=100)


class BadgeStyleSchema(BaseModel):
    background_color: str | None = None
    text_color: str | None = None
    border_color: str | None = None
    size: Literal["small", "medium", "large"] | None = None


class CreateTrustBadgeRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: Literal["verified_reviews", "top_rated", "customer_favorite", "award"]
    icon: str | None = None
    description: str | None = None
    criteria: BadgeCriteriaSchema = Field(default_factory=BadgeCriteriaSchema)
    display_locations: list[str] | None = None
    style: BadgeStyleSchema = Field(default_factory=BadgeStyleSchema)
    enabled: bool = True


class UpdateTrustBadgeRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    enabled: bool | None = None


class OptimizeDisplayRequest(BaseModel):
    reviews: list[dict[str, Any]] | None = None
    performance: dict[str, Any] = Field(default_factory=dict)


class RatingAggregateSchema(BaseModel):
    average_rating: float = Field(default=0, ge=0, le=5)
    total_reviews: int = Field(default=0, ge=0)
    verified_reviews: int = Field(default=0, ge=0)
    recommendation_rate: int = Field(default=0, ge=0, le=100)


class VariantSchema(BaseModel):
    id: str = Field(min_length=1)
    name: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


class CreateABTestRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    variants: list[VariantSchema] = Field(min_length=2)
    traffic_allocation: dict[str, float] | None = None
    end_date: datetime | None = None


class TrackVariantRequest(BaseModel):
    variant_id: str
    impression: bool = False
    click: bool = False
    conversion: bool = False
    revenue: float | None = Field(default=None, ge=0)


class ChangeABTestStatusRequest(BaseModel):
    status: Literal["active", "paused", "completed"]


class CreateSocialProofElementRequest(BaseModel):
    type: Literal["recent_review", "trending", "customer_count", "rating_highlight"]
    content: str | None = None
    display_type: Literal["notification", "banner", "inline"] = "notification"
    triggers: dict[str, Any] | None = None
    frequency: str | None = None
    style: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class TrackInteractionRequest(BaseModel):
    interaction: Literal["impression", "click", "conversion"]
