"""Unit tests for scoring primitives."""
from datetime import date, datetime

import pytest

from conftest import TODAY, make_criterion, make_metric, make_pilot
from pilot_manager.services.scoring_primitives import (
    criteria_completion_fraction,
    days_remaining,
    engagement_fraction,
    progress_percent,
    round_half_up,
    status_weight,
    timeline_bucket_fraction,
    timeline_progress_fraction,
)


class TestCriteriaCompletion:
    """Test weighted criteria completion."""

    def test_empty_criteria_scores_zero(self):
        assert criteria_completion_fraction([]) == 0.0

    def test_partial_credit_by_status(self):
        criteria = [
            make_criterion("Achieved", weight=2),
            make_criterion("In Progress", weight=2),
            make_criterion("At Risk", weight=4),
            make_criterion("Failed", weight=2),
        ]
        # (2 + 1 + 1 + 0) / 10
        assert criteria_completion_fraction(criteria) == pytest.approx(0.4)

    def test_not_started_counts_nothing(self):
        criteria = [make_criterion("Not Started"), make_criterion("Not Started")]
        assert criteria_completion_fraction(criteria) == 0.0

    def test_all_achieved_is_complete(self):
        criteria = [make_criterion("Achieved", weight=5), make_criterion("Achieved", weight=5)]
        assert criteria_completion_fraction(criteria) == 1.0


class TestTimeline:
    """Test timeline fractions and buckets."""

    def test_progress_halfway(self, pilot):
        assert timeline_progress_fraction(pilot, TODAY) == pytest.approx(0.5)
        assert progress_percent(pilot, TODAY) == 50

    def test_progress_is_clamped(self, pilot):
        assert timeline_progress_fraction(pilot, date(2024, 12, 1)) == 0.0
        assert timeline_progress_fraction(pilot, date(2026, 3, 1)) == 1.0
        assert progress_percent(pilot, date(2026, 3, 1)) == 100

    def test_zero_length_pilot_progress(self):
        pilot = make_pilot(start_date=date(2025, 7, 2), end_date=date(2025, 7, 2))
        assert timeline_progress_fraction(pilot, date(2025, 7, 1)) == 0.0
        assert timeline_progress_fraction(pilot, date(2025, 7, 2)) == 1.0

    @pytest.mark.parametrize(
        "today, expected",
        [
            (date(2025, 1, 31), 1.0),
            (date(2025, 5, 1), 0.9),
            (date(2025, 7, 2), 0.8),
            (date(2025, 11, 1), 0.7),
            (date(2025, 12, 31), 0.7),
        ],
    )
    def test_bucket_by_elapsed_share(self, pilot, today, expected):
        assert timeline_bucket_fraction(pilot, today) == expected

    def test_bucket_past_end_date(self):
        active = make_pilot(status="Active")
        converted = make_pilot(status="Converted")
        after_end = date(2026, 1, 5)

        assert timeline_bucket_fraction(active, after_end) == 0.3
        assert timeline_bucket_fraction(converted, after_end) == 1.0

    def test_bucket_before_start(self, pilot):
        assert timeline_bucket_fraction(pilot, date(2024, 12, 1)) == 1.0


class TestEngagement:
    """Test metric engagement fraction."""

    def test_no_metrics_is_neutral(self):
        assert engagement_fraction([], TODAY) == 0.5

    def test_five_recent_metrics(self, recent_metrics):
        assert engagement_fraction(recent_metrics, TODAY) == 1.0

    def test_three_recent_metrics(self, recent_metrics):
        assert engagement_fraction(recent_metrics[:3], TODAY) == 0.8

    def test_one_recent_metric(self, recent_metrics):
        old = [make_metric(datetime(2025, 5, 1)) for _ in range(4)]
        assert engagement_fraction(recent_metrics[:1] + old, TODAY) == 0.6

    def test_only_stale_metrics(self):
        stale = [make_metric(datetime(2025, 5, 1)), make_metric(datetime(2025, 6, 1))]
        assert engagement_fraction(stale, TODAY) == 0.4

    def test_recency_counts_calendar_days(self):
        """Time of day is ignored: 7 calendar days back is recent, 8 is not."""
        early = make_metric(datetime(2025, 6, 25, 0, 5))
        late = make_metric(datetime(2025, 6, 25, 23, 0))
        eight_days = make_metric(datetime(2025, 6, 24, 23, 59))

        assert engagement_fraction([early], TODAY) == 0.6
        assert engagement_fraction([late], TODAY) == 0.6
        assert engagement_fraction([eight_days], TODAY) == 0.4


class TestStatusWeight:
    """Test status weight lookup."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            ("Converted", 1.0),
            ("Active", 0.8),
            ("Completed", 0.7),
            ("At Risk", 0.4),
            ("Lost", 0.0),
            ("Paused", 0.5),
        ],
    )
    def test_weights(self, status, expected):
        assert status_weight(status) == expected


class TestHelpers:
    def test_days_remaining(self, pilot):
        assert days_remaining(pilot, TODAY) == 182
        assert days_remaining(pilot, date(2026, 1, 10)) == -10

    def test_round_half_up(self):
        assert round_half_up(89.5) == 90
        assert round_half_up(90.5) == 91
        assert round_half_up(0.49) == 0
