"""Risk level, quick conversion probability and insight generation for pilots."""
import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from pilot_manager.models.schemas import (
    Insight,
    Metric,
    Pilot,
    RiskLevel,
    Stakeholder,
    SuccessCriterion,
)
from pilot_manager.services.scoring_config import (
    DEFAULT_PROBABILITY_CONFIG,
    DEFAULT_RISK_CONFIG,
    ConversionProbabilityConfig,
    RiskConfig,
)
from pilot_manager.services.scoring_primitives import (
    count_matching,
    days_remaining,
    round_half_up,
)

logger = logging.getLogger(__name__)


class RiskAssessor:
    """Additive point system mapping a pilot onto Low/Medium/High/Critical."""

    def __init__(
        self,
        config: RiskConfig = DEFAULT_RISK_CONFIG,
        probability_config: ConversionProbabilityConfig = DEFAULT_PROBABILITY_CONFIG,
    ):
        self.config = config
        self.probability_config = probability_config

    def risk_points(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion] = (),
        stakeholders: Sequence[Stakeholder] = (),
        today: Optional[date] = None,
    ) -> int:
        """
        Total risk points for a pilot.

        Each factor contributes independently; the pilot status adds on top
        of everything else.
        """
        cfg = self.config
        points = 0

        points += _first_below(pilot.health_score, cfg.health_points)
        points += _first_below(days_remaining(pilot, today), cfg.deadline_points)

        troubled = count_matching((c.status for c in criteria), cfg.troubled_criteria_statuses)
        points += _first_above(troubled, cfg.troubled_criteria_points)

        disengaged = count_matching(
            (s.engagement_level for s in stakeholders), cfg.disengaged_levels
        )
        points += _first_above(disengaged, cfg.disengaged_stakeholder_points)

        points += cfg.status_points.get(pilot.status, 0)
        return points

    def assess_risk(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion] = (),
        stakeholders: Sequence[Stakeholder] = (),
        today: Optional[date] = None,
    ) -> RiskLevel:
        points = self.risk_points(pilot, criteria, stakeholders, today)
        for minimum, level in self.config.levels:
            if points >= minimum:
                return level
        return self.config.default_level

    def calculate_conversion_probability(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion] = (),
        stakeholders: Sequence[Stakeholder] = (),
        today: Optional[date] = None,
    ) -> int:
        """
        Quick conversion probability anchored on the pilot's health score.

        Unlike ``ConversionPredictor`` this counts achieved criteria without
        weights and applies hard status overrides: Converted is always 100,
        Lost always 0, and At Risk never exceeds 40.
        """
        cfg = self.probability_config
        probability = float(pilot.health_score)

        if criteria:
            achieved = sum(1 for c in criteria if c.status == "Achieved")
            criteria_percent = achieved / len(criteria) * 100
            probability = (probability + criteria_percent) / 2

        champions = sum(1 for s in stakeholders if s.engagement_level == "High")
        if champions >= cfg.many_champions:
            probability += cfg.many_champions_bonus
        elif champions == 1:
            probability += cfg.one_champion_bonus

        if days_remaining(pilot, today) < 0:
            probability -= cfg.overdue_penalty

        if pilot.status == "Converted":
            probability = 100
        elif pilot.status == "Lost":
            probability = 0
        elif pilot.status == "At Risk":
            probability = min(probability, cfg.at_risk_cap)

        probability = max(0.0, min(100.0, probability))
        return round_half_up(probability)


def _first_below(value: float, table: Sequence[Tuple[float, int]]) -> int:
    for upper_bound, points in table:
        if value < upper_bound:
            return points
    return 0


def _first_above(value: float, table: Sequence[Tuple[float, int]]) -> int:
    for lower_bound, points in table:
        if value > lower_bound:
            return points
    return 0


_default_assessor = RiskAssessor()


def assess_risk(
    pilot: Pilot,
    criteria: Sequence[SuccessCriterion] = (),
    stakeholders: Sequence[Stakeholder] = (),
    today: Optional[date] = None,
) -> RiskLevel:
    """Map a pilot, its criteria and stakeholders to a risk level."""
    return _default_assessor.assess_risk(pilot, criteria, stakeholders, today)


def calculate_conversion_probability(
    pilot: Pilot,
    criteria: Sequence[SuccessCriterion] = (),
    stakeholders: Sequence[Stakeholder] = (),
    today: Optional[date] = None,
) -> int:
    return _default_assessor.calculate_conversion_probability(pilot, criteria, stakeholders, today)


def generate_insights(
    pilot: Pilot,
    criteria: Sequence[SuccessCriterion] = (),
    stakeholders: Sequence[Stakeholder] = (),
    metrics: Sequence[Metric] = (),
    today: Optional[date] = None,
) -> List[Insight]:
    """
    Build actionable insights for a pilot.

    Args:
        pilot: Pilot being reviewed
        criteria: Success criteria belonging to the pilot
        stakeholders: Stakeholders attached to the pilot
        metrics: Metrics recorded for the pilot (currently unused by the rules)
        today: Reference date (defaults to today)

    Returns:
        Insights ordered timeline, criteria, engagement, health, conversion
    """
    insights: List[Insight] = []
    remaining = days_remaining(pilot, today)

    if remaining < 0:
        insights.append(Insight(
            type="warning",
            category="timeline",
            message=f"Pilot is {abs(remaining)} days past end date",
            action="Schedule extension discussion or conversion meeting",
        ))
    elif remaining < 7:
        insights.append(Insight(
            type="warning",
            category="timeline",
            message=f"Only {remaining} days remaining",
            action="Prepare final demo and conversion proposal",
        ))

    at_risk = sum(1 for c in criteria if c.status == "At Risk")
    if at_risk:
        insights.append(Insight(
            type="alert",
            category="success_criteria",
            message=f"{at_risk} success criteria at risk",
            action="Review blockers and allocate resources",
        ))

    unresponsive = sum(1 for s in stakeholders if s.engagement_level == "Unresponsive")
    if unresponsive:
        insights.append(Insight(
            type="alert",
            category="engagement",
            message=f"{unresponsive} unresponsive stakeholders",
            action="Re-engage through executive sponsor or champion",
        ))

    if pilot.health_score < 50:
        insights.append(Insight(
            type="critical",
            category="health",
            message="Low health score indicates pilot at risk",
            action="Schedule escalation meeting with leadership",
        ))

    if pilot.health_score > 80 and 0 < remaining < 14:
        insights.append(Insight(
            type="success",
            category="conversion",
            message="Strong pilot performance - ready for conversion",
            action="Begin contract negotiations",
        ))

    logger.debug("Generated %s insights for pilot %s", len(insights), pilot.id)
    return insights
