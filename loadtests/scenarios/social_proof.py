"""Social proof and analytics load test scenarios.

Covers A/B test traffic (many observations per test), storefront reads
(display rules, trust score, badges) and ledger intake.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import ab_test_data, ledger_event_data, product_id, variant_observation
from loadtests.helpers.response import extract_error_detail, payload
from loadtests.helpers.state import ABTestState

OBSERVATIONS_PER_TEST = 20


class ABTestJourney(SequentialTaskSet):
    """Create test -> Track observations -> Compute results -> Complete."""

    def on_start(self):
        self.state = ABTestState()

    @task
    def create(self):
        with self.client.post(
            "/social-proof/ab-tests",
            json=ab_test_data(),
            catch_response=True,
            name="POST /social-proof/ab-tests",
        ) as resp:
            if resp.status_code == 201:
                self.state.test_id = payload(resp)["id"]
            else:
                resp.failure(f"Create test failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def track(self):
        for _ in range(OBSERVATIONS_PER_TEST):
            with self.client.post(
                f"/social-proof/ab-tests/{self.state.test_id}/track",
                json=variant_observation(),
                catch_response=True,
                name="POST /social-proof/ab-tests/{id}/track",
            ) as resp:
                if resp.status_code == 200:
                    self.state.observations += 1
                else:
                    resp.failure(f"Track failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def results(self):
        with self.client.post(
            f"/social-proof/ab-tests/{self.state.test_id}/results",
            catch_response=True,
            name="POST /social-proof/ab-tests/{id}/results",
        ) as resp:
            if resp.status_code == 200:
                self.state.winner = payload(resp)["winner"]
            else:
                resp.failure(f"Results failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def complete(self):
        self.client.put(
            f"/social-proof/ab-tests/{self.state.test_id}/status",
            json={"status": "completed"},
            name="PUT /social-proof/ab-tests/{id}/status",
        )

    @task
    def done(self):
        self.interrupt()


class StorefrontJourney(SequentialTaskSet):
    """What a product page asks for: display settings, trust score, badges, widget view."""

    def on_start(self):
        self.product_id = product_id()

    @task
    def display_settings(self):
        self.client.post(
            "/social-proof/display-rules/evaluate",
            json={"page_type": "product"},
            name="POST /social-proof/display-rules/evaluate",
        )

    @task
    def trust_score(self):
        self.client.get(
            f"/social-proof/products/{self.product_id}/trust-score",
            name="GET /social-proof/products/{id}/trust-score",
        )

    @task
    def badges(self):
        self.client.get(
            f"/social-proof/products/{self.product_id}/badges",
            name="GET /social-proof/products/{id}/badges",
        )

    @task
    def track_view(self):
        with self.client.post(
            "/analytics/events",
            json=ledger_event_data(),
            catch_response=True,
            name="POST /analytics/events",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Track event failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class AnalyticsReadJourney(SequentialTaskSet):
    """Dashboard-style reads over the ledger."""

    @task
    def review_metrics(self):
        self.client.get("/analytics/reviews", name="GET /analytics/reviews")

    @task
    def distribution(self):
        self.client.get("/analytics/ratings/distribution", name="GET /analytics/ratings/distribution")

    @task
    def top_reviewers(self):
        self.client.get("/analytics/top-reviewers?limit=10", name="GET /analytics/top-reviewers")

    @task
    def done(self):
        self.interrupt()


class SocialProofUser(HttpUser):
    """Storefront and experiment traffic only."""

    wait_time = between(0.5, 2)
    tasks = {
        StorefrontJourney: 8,
        ABTestJourney: 2,
        AnalyticsReadJourney: 3,
    }
