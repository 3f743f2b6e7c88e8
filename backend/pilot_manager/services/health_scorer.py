"""Pilot health score calculation service."""
from datetime import date
from typing import Dict, List, Optional, Sequence

from pilot_manager.models.schemas import HealthScoreBreakdown, Metric, Pilot, SuccessCriterion
from pilot_manager.services.scoring_config import DEFAULT_HEALTH_CONFIG, HealthScoreConfig
from pilot_manager.services.scoring_primitives import (
    criteria_completion_fraction,
    engagement_fraction,
    round_half_up,
    status_weight,
    timeline_bucket_fraction,
)


class HealthScorer:
    """
    Combine the scoring primitives into a single 0-100 health score.

    The denominator varies with the data available: criteria (40 points)
    and engagement (20 points) only count when the pilot has criteria or
    metrics, while timeline (30) and status (10) always count. A pilot with
    neither criteria nor metrics is therefore scored on timeline and status
    alone.
    """

    def __init__(
        self,
        pilot: Pilot,
        criteria: Optional[Sequence[SuccessCriterion]] = None,
        metrics: Optional[Sequence[Metric]] = None,
        today: Optional[date] = None,
        config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
    ):
        """
        Initialize health scorer.

        Args:
            pilot: Pilot being scored
            criteria: Success criteria belonging to the pilot
            metrics: Metrics recorded for the pilot
            today: Reference date (defaults to today)
            config: Point allocation and lookup tables
        """
        self.pilot = pilot
        self.criteria = list(criteria or [])
        self.metrics = list(metrics or [])
        self.today = today
        self.config = config

    def _contributions(self) -> Dict[str, float]:
        cfg = self.config
        contributions: Dict[str, float] = {}

        if self.criteria:
            contributions["criteria"] = (
                criteria_completion_fraction(self.criteria, cfg) * cfg.criteria_points
            )

        contributions["timeline"] = (
            timeline_bucket_fraction(self.pilot, self.today, cfg) * cfg.timeline_points
        )

        if self.metrics:
            contributions["engagement"] = (
                engagement_fraction(self.metrics, self.today, cfg) * cfg.engagement_points
            )

        contributions["status"] = status_weight(self.pilot.status, cfg) * cfg.status_points
        return contributions

    def _max_score(self, factors: List[str]) -> float:
        points = {
            "criteria": self.config.criteria_points,
            "timeline": self.config.timeline_points,
            "engagement": self.config.engagement_points,
            "status": self.config.status_points,
        }
        return sum(points[factor] for factor in factors)

    def calculate_health_score(self) -> int:
        """
        Calculate the health score.

        Returns:
            Integer score in [0, 100]
        """
        contributions = self._contributions()
        max_score = self._max_score(list(contributions))
        if max_score <= 0:
            return 0
        score = round_half_up(sum(contributions.values()) / max_score * 100)
        return max(0, min(100, score))

    def calculate_breakdown(self) -> HealthScoreBreakdown:
        """Health score together with the per-factor points that produced it."""
        contributions = self._contributions()
        factors = list(contributions)
        health_score = self.calculate_health_score()
        return HealthScoreBreakdown(
            health_score=health_score,
            score_band=self._get_score_band(health_score),
            contributions={name: round(value, 2) for name, value in contributions.items()},
            max_score=self._max_score(factors),
            factors_applied=factors,
        )

    def _get_score_band(self, score: float) -> str:
        """Get score band label based on thresholds."""
        for threshold, label in self.config.score_bands:
            if score >= threshold:
                return label
        return self.config.score_bands[-1][1]


def compute_health_score(
    pilot: Pilot,
    criteria: Optional[Sequence[SuccessCriterion]] = None,
    metrics: Optional[Sequence[Metric]] = None,
    today: Optional[date] = None,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> int:
    """
    Calculate a pilot's health score.

    Args:
        pilot: Pilot being scored
        criteria: Success criteria belonging to the pilot
        metrics: Metrics recorded for the pilot
        today: Reference date (defaults to today)
        config: Optional override of the point tables

    Returns:
        Integer score in [0, 100]
    """
    scorer = HealthScorer(pilot, criteria, metrics, today=today, config=config)
    return scorer.calculate_health_score()
