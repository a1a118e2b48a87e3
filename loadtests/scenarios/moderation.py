"""Moderation engine load test scenarios.

A moderator session that creates a rule, pushes content through the
engine, and works the queue.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import moderation_rule_data, review_content, spammy_content
from loadtests.helpers.response import extract_error_detail, payload
from loadtests.helpers.state import ModerationState


class ModeratorSessionJourney(SequentialTaskSet):
    """Create rule -> Moderate clean/short/spam content -> Review queue -> Delete rule."""

    def on_start(self):
        self.state = ModerationState()

    @task
    def create_rule(self):
        with self.client.post(
            "/moderation/rules",
            json=moderation_rule_data(),
            catch_response=True,
            name="POST /moderation/rules",
        ) as resp:
            if resp.status_code == 201:
                self.state.rule_ids.append(payload(resp)["id"])
            else:
                resp.failure(f"Create rule failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def moderate_clean(self):
        self._moderate(review_content(), expected=None)

    @task
    def moderate_short(self):
        self._moderate("good", expected=None)

    @task
    def moderate_spam(self):
        self._moderate(spammy_content(), expected="rejected")

    def _moderate(self, content, expected):
        with self.client.post(
            "/moderation/moderate",
            json={"content": content, "content_type": "review"},
            catch_response=True,
            name="POST /moderation/moderate",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Moderate failed: {resp.status_code} {extract_error_detail(resp)}")
                return
            verdict = payload(resp)
            if expected and verdict["status"] != expected:
                resp.failure(f"Expected {expected}, got {verdict['status']}")
            if verdict.get("queue_item_id"):
                self.state.queue_item_ids.append(verdict["queue_item_id"])

    @task
    def read_queue(self):
        self.client.get("/moderation/queue?limit=20", name="GET /moderation/queue")

    @task
    def review_queue_items(self):
        for item_id in self.state.queue_item_ids:
            with self.client.post(
                f"/moderation/queue/{item_id}/review",
                json={"action": "approve", "reviewed_by": "lt-moderator"},
                catch_response=True,
                name="POST /moderation/queue/{id}/review",
            ) as resp:
                # Another session may have reviewed it already
                if resp.status_code not in (200, 409):
                    resp.failure(f"Queue review failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def delete_rules(self):
        for rule_id in self.state.rule_ids:
            self.client.delete(f"/moderation/rules/{rule_id}", name="DELETE /moderation/rules/{id}")

    @task
    def done(self):
        self.interrupt()


class ModerationUser(HttpUser):
    """Moderation traffic only."""

    wait_time = between(1, 3)
    tasks = [ModeratorSessionJourney]
