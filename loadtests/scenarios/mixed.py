"""Mixed workload scenario.

Combines journeys from the review store, moderation, analytics and social
proof with weights that model storefront traffic. This is the recommended
scenario for load baseline testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.moderation import ModeratorSessionJourney
from loadtests.scenarios.reviews import (
    AutoModeratedSubmissionJourney,
    ReviewBrowsingJourney,
    ReviewLifecycleJourney,
)
from loadtests.scenarios.social_proof import (
    ABTestJourney,
    AnalyticsReadJourney,
    StorefrontJourney,
)


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Reads dominate: shoppers browse listings and product pages far more
    often than they write reviews, and moderators are a small minority.

    Reviews (45%):
    - Browsing listings, search and statistics
    - Full review lifecycle
    - Auto-moderated submissions

    Storefront (30%):
    - Display settings, trust score, badges, widget views

    Back office (25%):
    - Moderator sessions, analytics reads, A/B tests
    """

    wait_time = between(0.5, 3)
    tasks = {
        ReviewBrowsingJourney: 25,
        ReviewLifecycleJourney: 12,
        AutoModeratedSubmissionJourney: 8,
        StorefrontJourney: 30,
        ModeratorSessionJourney: 8,
        AnalyticsReadJourney: 10,
        ABTestJourney: 7,
    }
