"""Review store load test scenarios.

Stateful SequentialTaskSet journeys covering the review lifecycle and the
read side (listings, ratings, search). Steps execute in order: each
depends on the previous step succeeding.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import product_id, response_data, review_data, vote_data
from loadtests.helpers.response import extract_error_detail, payload
from loadtests.helpers.state import ReviewState


class ReviewLifecycleJourney(SequentialTaskSet):
    """Submit -> Vote (x2) -> Respond -> Approve -> Read rating.

    Generates ledger entries review_created and review_approved and
    refreshes the product's rating aggregate.
    """

    def on_start(self):
        self.state = ReviewState()

    @task
    def submit(self):
        data = review_data()
        with self.client.post("/reviews", json=data, catch_response=True, name="POST /reviews") as resp:
            if resp.status_code == 201:
                review = payload(resp)
                self.state.review_id = review["id"]
                self.state.product_id = review["product_id"]
            else:
                resp.failure(f"Submit failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def vote_helpful(self):
        self._vote()

    @task
    def vote_again(self):
        self._vote()

    def _vote(self):
        with self.client.post(
            f"/reviews/{self.state.review_id}/votes",
            json=vote_data(),
            catch_response=True,
            name="POST /reviews/{id}/votes",
        ) as resp:
            if resp.status_code == 200:
                self.state.vote_count += 1
            else:
                resp.failure(f"Vote failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def respond(self):
        with self.client.post(
            f"/reviews/{self.state.review_id}/responses",
            json=response_data(),
            catch_response=True,
            name="POST /reviews/{id}/responses",
        ) as resp:
            if resp.status_code == 201:
                self.state.response_count = payload(resp)["response_count"]
            else:
                resp.failure(f"Response failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def approve(self):
        with self.client.put(
            f"/reviews/{self.state.review_id}/moderate",
            json={"status": "approved", "moderator_id": "lt-moderator"},
            catch_response=True,
            name="PUT /reviews/{id}/moderate",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "approved"
            else:
                resp.failure(f"Approve failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def read_rating(self):
        with self.client.get(
            f"/products/{self.state.product_id}/rating",
            catch_response=True,
            name="GET /products/{id}/rating",
        ) as resp:
            if resp.status_code == 200 and payload(resp)["total_reviews"] < 1:
                resp.failure("Approved review missing from rating aggregate")
            elif resp.status_code != 200:
                resp.failure(f"Rating read failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class AutoModeratedSubmissionJourney(SequentialTaskSet):
    """Submit with auto-moderation -> Read the review back."""

    def on_start(self):
        self.state = ReviewState()

    @task
    def submit(self):
        with self.client.post(
            "/reviews",
            json=review_data(auto_moderate=True),
            catch_response=True,
            name="POST /reviews (auto-moderate)",
        ) as resp:
            if resp.status_code == 201:
                review = payload(resp)
                self.state.review_id = review["id"]
                self.state.current_status = review["status"]
            else:
                resp.failure(f"Submit failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def read_back(self):
        with self.client.get(
            f"/reviews/{self.state.review_id}",
            catch_response=True,
            name="GET /reviews/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Read failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ReviewBrowsingJourney(SequentialTaskSet):
    """Product listing (two sort orders) -> Search -> Statistics."""

    def on_start(self):
        self.product_id = product_id()

    @task
    def list_recent(self):
        self.client.get(
            f"/products/{self.product_id}/reviews?sort_by=recent&limit=10",
            name="GET /products/{id}/reviews",
        )

    @task
    def list_helpful(self):
        self.client.get(
            f"/products/{self.product_id}/reviews?sort_by=helpful&limit=10",
            name="GET /products/{id}/reviews",
        )

    @task
    def search(self):
        self.client.get("/reviews/search?q=good&limit=10", name="GET /reviews/search")

    @task
    def statistics(self):
        self.client.get(f"/reviews/statistics?product_id={self.product_id}", name="GET /reviews/statistics")

    @task
    def done(self):
        self.interrupt()


class ReviewUser(HttpUser):
    """Review store traffic only."""

    wait_time = between(0.5, 2)
    tasks = {
        ReviewLifecycleJourney: 5,
        AutoModeratedSubmissionJourney: 3,
        ReviewBrowsingJourney: 8,
    }
