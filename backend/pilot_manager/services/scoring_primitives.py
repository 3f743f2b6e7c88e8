"""Sub-scores shared by the health score engine and the risk assessor.

All functions are pure: they read pilot records and return floats or ints.
``today`` defaults to ``date.today()`` and exists so callers can score a
pilot as of a fixed date.
"""
import logging
import math
from datetime import date
from typing import Iterable, Optional, Sequence

from pilot_manager.models.schemas import Metric, Pilot, SuccessCriterion
from pilot_manager.services.scoring_config import DEFAULT_HEALTH_CONFIG, HealthScoreConfig

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching dashboard rounding."""
    return int(math.floor(value + 0.5))


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def elapsed_fraction(pilot: Pilot, today: Optional[date] = None) -> Optional[float]:
    """Unclamped elapsed/total duration, or None for a zero-length pilot."""
    total_days = (pilot.end_date - pilot.start_date).days
    if total_days <= 0:
        return None
    return (_today(today) - pilot.start_date).days / total_days


def criteria_completion_fraction(
    criteria: Sequence[SuccessCriterion],
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> float:
    """
    Weighted completion ratio in [0, 1].

    Achieved criteria count their full weight, In Progress half and
    At Risk a quarter; anything else counts nothing.
    """
    if not criteria:
        return 0.0

    total_weight = 0.0
    achieved_weight = 0.0
    for criterion in criteria:
        total_weight += criterion.weight
        achieved_weight += criterion.weight * config.criteria_credit.get(criterion.status, 0.0)

    return achieved_weight / total_weight if total_weight > 0 else 0.0


def timeline_progress_fraction(pilot: Pilot, today: Optional[date] = None) -> float:
    """Elapsed share of the pilot window, clamped to [0, 1]."""
    fraction = elapsed_fraction(pilot, today)
    if fraction is None:
        return 1.0 if _today(today) >= pilot.end_date else 0.0
    return max(0.0, min(1.0, fraction))


def timeline_bucket_fraction(
    pilot: Pilot,
    today: Optional[date] = None,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> float:
    """Schedule position score used by the health score (0-1)."""
    fraction = elapsed_fraction(pilot, today)
    if fraction is None:
        # Zero-length window: only "past the end" or "on the last day"
        fraction = 2.0 if _today(today) > pilot.end_date else 1.0

    if fraction > 1:
        if pilot.status == "Converted":
            return config.overdue_converted_score
        return config.overdue_score

    for upper_bound, score in config.timeline_buckets:
        if fraction < upper_bound:
            return score
    return config.timeline_late_score


def engagement_fraction(
    metrics: Sequence[Metric],
    today: Optional[date] = None,
    config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG,
) -> float:
    """
    Score recent metric activity (0-1); 0.5 when nothing was ever recorded.

    Recency is measured in calendar days: a metric counts when its
    ``recorded_at`` date is at most ``recent_metric_days`` before ``today``,
    whatever the time of day.
    """
    if not metrics:
        return config.engagement_no_metrics_score

    reference = _today(today)
    recent = sum(
        1 for metric in metrics
        if (reference - metric.recorded_at.date()).days <= config.recent_metric_days
    )

    for minimum, score in config.engagement_steps:
        if recent >= minimum:
            return score
    return config.engagement_idle_score


def status_weight(status: str, config: HealthScoreConfig = DEFAULT_HEALTH_CONFIG) -> float:
    """Fixed weight per pilot status, 0.5 for anything unrecognised."""
    weight = config.status_weights.get(status)
    if weight is None:
        logger.debug("Unknown pilot status %r, using default weight", status)
        return config.unknown_status_weight
    return weight


def days_remaining(pilot: Pilot, today: Optional[date] = None) -> int:
    """Whole days until the end date; negative once the pilot is overdue."""
    return (pilot.end_date - _today(today)).days


def progress_percent(pilot: Pilot, today: Optional[date] = None) -> int:
    """Timeline progress as a 0-100 percentage."""
    return round_half_up(timeline_progress_fraction(pilot, today) * 100)


def count_matching(values: Iterable[str], accepted: Iterable[str]) -> int:
    accepted = set(accepted)
    return sum(1 for value in values if value in accepted)
