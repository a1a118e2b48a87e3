import json

import pytest
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from trust.social_proof.ab_test import ABTest, ABTestStatus, ABTestWinnerDeclared

VARIANTS = [
    {"id": "A", "name": "Photos first", "settings": {"sort": "media"}},
    {"id": "B", "name": "Most helpful", "settings": {"sort": "helpful"}},
]


def _test(**overrides):
    defaults = {"name": "Review ordering", "variants": VARIANTS}
    defaults.update(overrides)
    return ABTest.start(**defaults)


def _observe(test, variant_id, impressions, conversions, revenue=0.0):
    for i in range(impressions):
        converted = i < conversions
        test.track(variant_id, impression=True, conversion=converted, revenue=revenue if converted else None)


class TestABTestCreation:
    def test_results_start_zeroed(self):
        test = _test()
        assert test.status == ABTestStatus.ACTIVE.value
        assert test.winner is None
        for variant_id in ("A", "B"):
            assert test.result_map[variant_id] == {
                "impressions": 0,
                "clicks": 0,
                "conversions": 0,
                "revenue": 0.0,
                "conversion_rate": 0,
            }

    def test_default_allocation_splits_evenly(self):
        assert _test().allocation == {"A": 50, "B": 50}

    def test_needs_two_variants(self):
        with pytest.raises(ValidationError) as exc:
            _test(variants=VARIANTS[:1])
        assert "variants" in exc.value.messages

    def test_variant_ids_must_be_unique(self):
        with pytest.raises(ValidationError):
            _test(variants=[{"id": "A"}, {"id": "A"}])

    def test_allocation_cannot_exceed_100(self):
        with pytest.raises(ValidationError) as exc:
            _test(traffic_allocation={"A": 70, "B": 40})
        assert "traffic_allocation" in exc.value.messages

    def test_allocation_keys_must_be_variants(self):
        with pytest.raises(ValidationError):
            _test(traffic_allocation={"A": 50, "Z": 50})


class TestVariantTracking:
    def test_counters_accumulate(self):
        test = _test()
        test.track("A", impression=True)
        test.track("A", impression=True, click=True)
        result = test.track("A", conversion=True, revenue=19.99)
        assert result["impressions"] == 2
        assert result["clicks"] == 1
        assert result["conversions"] == 1
        assert result["revenue"] == 19.99
        assert result["conversion_rate"] == 50.0

    def test_conversion_rate_guarded_without_impressions(self):
        result = _test().track("B", conversion=True)
        assert result["conversion_rate"] == 0

    def test_unknown_variant(self):
        with pytest.raises(ObjectNotFoundError):
            _test().track("Z", impression=True)

    @pytest.mark.parametrize("transition", ["pause", "complete"])
    def test_tracking_requires_an_active_test(self, transition):
        test = _test()
        getattr(test, transition)()
        with pytest.raises(InvalidOperationError):
            test.track("A", impression=True)


class TestWinnerSelection:
    def test_highest_conversion_rate_wins(self):
        test = _test()
        _observe(test, "A", impressions=5, conversions=2, revenue=10.0)
        _observe(test, "B", impressions=10, conversions=2, revenue=10.0)

        variants, best = test.declare_winner()

        rates = {v["variant_id"]: v["conversion_rate"] for v in variants}
        assert rates == {"A": 40.0, "B": 20.0}
        assert best["variant_id"] == "A"
        assert test.winner == "A"

    def test_revenue_per_visitor(self):
        test = _test()
        _observe(test, "A", impressions=4, conversions=1, revenue=10.0)
        variants, _ = test.summary()
        assert variants[0]["revenue_per_visitor"] == 2.5
        assert variants[1]["revenue_per_visitor"] == 0

    def test_tie_goes_to_lowest_variant_id(self):
        test = _test(variants=[{"id": "B", "name": "b"}, {"id": "A", "name": "a"}])
        _observe(test, "A", impressions=4, conversions=1)
        _observe(test, "B", impressions=8, conversions=2)
        _, best = test.declare_winner()
        assert best["variant_id"] == "A"

    def test_winner_uses_unrounded_rate(self):
        test = _test()
        test.results = json.dumps(
            {
                "A": {"impressions": 10000, "clicks": 0, "conversions": 3333, "revenue": 0.0, "conversion_rate": 33.33},
                "B": {"impressions": 3, "clicks": 0, "conversions": 1, "revenue": 0.0, "conversion_rate": 33.33},
            }
        )
        variants, best = test.declare_winner()
        assert [v["conversion_rate"] for v in variants] == [33.33, 33.33]
        assert best["variant_id"] == "B"
        assert test.winner == "B"

    def test_no_data_still_picks_deterministically(self):
        test = _test()
        _, best = test.declare_winner()
        assert best["variant_id"] == "A"

    def test_declaring_raises_event(self):
        test = _test()
        _observe(test, "B", impressions=2, conversions=1)
        test.declare_winner()
        event = test._events[-1]
        assert isinstance(event, ABTestWinnerDeclared)
        assert event.winner == "B"
        assert event.conversion_rate == 50.0


class TestStatusTransitions:
    def test_pause_and_resume(self):
        test = _test()
        test.pause()
        assert test.status == ABTestStatus.PAUSED.value
        test.resume()
        assert test.status == ABTestStatus.ACTIVE.value

    def test_complete_sets_end_date(self):
        test = _test()
        test.complete()
        assert test.status == ABTestStatus.COMPLETED.value
        assert test.end_date is not None

    def test_completed_is_terminal(self):
        test = _test()
        test.complete()
        with pytest.raises(InvalidOperationError):
            test.resume()
        with pytest.raises(InvalidOperationError):
            test.complete()

    def test_cannot_resume_active_test(self):
        with pytest.raises(InvalidOperationError):
            _test().resume()
