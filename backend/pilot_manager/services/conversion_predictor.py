"""Weighted multi-factor conversion prediction for pilots."""
import logging
from datetime import date
from typing import List, Optional, Sequence

from pilot_manager.models.schemas import (
    ConversionPrediction,
    Pilot,
    PredictionFactors,
    Recommendation,
    RiskItem,
    Stakeholder,
    SuccessCriterion,
)
from pilot_manager.services.scoring_config import (
    DEFAULT_PREDICTOR_CONFIG,
    OTHER_INDUSTRY,
    PredictorConfig,
    industry_lookup,
)
from pilot_manager.services.scoring_primitives import round_half_up

logger = logging.getLogger(__name__)


class ConversionPredictor:
    """
    Predict the likelihood that a pilot converts into a paying customer.

    Five factor scores in [0, 1] are combined with weights summing to 100:
    criteria completion (35), stakeholder engagement (25), timeline progress
    (20), contract value (10) and industry success rate (10). Identified
    risks then multiply the weighted base score down.

    The predictor keeps its own criteria and timeline measures. Criteria
    completion here only credits Achieved criteria and is neutral (0.5) for
    a pilot without criteria, and no status overrides are applied; see
    ``RiskAssessor.calculate_conversion_probability`` for the override path.
    """

    def __init__(self, config: PredictorConfig = DEFAULT_PREDICTOR_CONFIG):
        self.config = config

    def predict_conversion(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion] = (),
        stakeholders: Sequence[Stakeholder] = (),
        today: Optional[date] = None,
    ) -> ConversionPrediction:
        """
        Run the full prediction.

        Args:
            pilot: Pilot data
            criteria: Success criteria for the pilot
            stakeholders: Stakeholder data
            today: Reference date (defaults to today)

        Returns:
            Prediction with probability, base score, factors, risks and recommendation
        """
        today = today or date.today()
        weights = self.config.weights

        criteria_score = self.calculate_criteria_score(criteria)
        stakeholder_score = self.calculate_stakeholder_score(stakeholders, today)
        timeline_score = self.calculate_timeline_score(pilot, criteria, today)
        value_score = self.calculate_value_score(pilot.contract_value)
        industry_score = self.get_industry_score(pilot.industry)

        base_score = (
            criteria_score * weights.criteria_completion
            + stakeholder_score * weights.stakeholder_engagement
            + timeline_score * weights.timeline_progress
            + value_score * weights.contract_value
            + industry_score * weights.industry_success
        )

        risks = self.identify_risks(pilot, criteria, stakeholders, today)
        final_score = base_score
        for risk in risks:
            final_score *= risk.multiplier

        final_score = max(0, min(100, round_half_up(final_score)))

        logger.debug(
            "Pilot %s prediction: base=%.1f final=%s risks=%s",
            pilot.id, base_score, final_score, [r.type for r in risks],
        )

        return ConversionPrediction(
            conversion_probability=final_score,
            base_score=round_half_up(base_score),
            factors=PredictionFactors(
                criteria_completion=round_half_up(criteria_score * 100),
                stakeholder_engagement=round_half_up(stakeholder_score * 100),
                timeline_progress=round_half_up(timeline_score * 100),
                contract_value=round_half_up(value_score * 100),
                industry_success=round_half_up(industry_score * 100),
            ),
            risks=risks,
            recommendation=self.get_recommendation(final_score),
        )

    # Factor scores

    def calculate_criteria_score(self, criteria: Sequence[SuccessCriterion]) -> float:
        """Weighted share of achieved criteria (0-1), neutral when there are none."""
        if not criteria:
            return self.config.no_criteria_score

        total_weight = sum(c.weight for c in criteria)
        if total_weight <= 0:
            return self.config.no_criteria_score
        completed_weight = sum(c.weight for c in criteria if c.status == "Achieved")
        return completed_weight / total_weight

    def calculate_stakeholder_score(
        self, stakeholders: Sequence[Stakeholder], today: Optional[date] = None
    ) -> float:
        """Average engagement level, discounted by time since last contact."""
        if not stakeholders:
            return self.config.no_stakeholders_score

        today = today or date.today()
        total = 0.0
        for stakeholder in stakeholders:
            base = self.config.engagement_scores.get(
                stakeholder.engagement_level, self.config.unknown_engagement_score
            )
            days_since = self.get_days_since(stakeholder.last_contact, today)
            total += base * self.recency_multiplier(days_since)

        return total / len(stakeholders)

    def recency_multiplier(self, days_since_contact: int) -> float:
        for lower_bound, multiplier in self.config.recency_multipliers:
            if days_since_contact > lower_bound:
                return multiplier
        return 1.0

    def calculate_timeline_score(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion],
        today: Optional[date] = None,
    ) -> float:
        """1.0 when criteria keep pace with elapsed time, penalised by the gap otherwise."""
        today = today or date.today()
        total_days = self.get_days_between(pilot.start_date, pilot.end_date)
        elapsed = self.get_days_since(pilot.start_date, today)
        time_progress = elapsed / total_days if total_days > 0 else 1.0

        criteria_progress = self.calculate_criteria_score(criteria)
        if criteria_progress >= time_progress:
            return 1.0

        gap = time_progress - criteria_progress
        return max(0.0, 1 - gap * self.config.behind_schedule_penalty)

    def calculate_value_score(self, contract_value: float) -> float:
        for minimum, score in self.config.contract_value_steps:
            if contract_value >= minimum:
                return score
        return self.config.contract_value_floor

    def get_industry_score(self, industry: str) -> float:
        rates = self.config.industry_success_rates
        if industry not in rates:
            logger.debug("No success rate for industry %r, using %s", industry, OTHER_INDUSTRY)
        return industry_lookup(rates, industry)

    # Risks and recommendation

    def identify_risks(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion],
        stakeholders: Sequence[Stakeholder],
        today: Optional[date] = None,
    ) -> List[RiskItem]:
        cfg = self.config
        multipliers = cfg.risk_multipliers
        today = today or date.today()

        risks: List[RiskItem] = []
        days_remaining = self.get_days_between(today, pilot.end_date)
        criteria_score = self.calculate_criteria_score(criteria)
        health_score = pilot.health_score or 0

        if days_remaining < cfg.deadline_days and criteria_score < cfg.deadline_completion:
            risks.append(RiskItem(
                type="deadline_approaching",
                severity="high",
                message=(
                    f"Only {days_remaining} days remaining with "
                    f"{round_half_up(criteria_score * 100)}% criteria complete"
                ),
                multiplier=multipliers.deadline_approaching,
            ))

        days_since_contact = self.get_most_recent_stakeholder_contact(stakeholders, today)
        if days_since_contact > cfg.disengaged_days:
            if days_since_contact >= cfg.no_contact_days:
                message = "No recorded stakeholder contact"
            else:
                message = f"No stakeholder contact in {days_since_contact} days"
            risks.append(RiskItem(
                type="stakeholder_disengaged",
                severity="high" if days_since_contact > cfg.disengaged_high_severity_days else "medium",
                message=message,
                multiplier=multipliers.stakeholder_disengaged,
            ))

        if health_score < cfg.low_health_threshold:
            risks.append(RiskItem(
                type="low_health_score",
                severity="high",
                message=f"Health score critically low at {health_score:g}%",
                multiplier=multipliers.low_health_score,
            ))

        if days_remaining < cfg.stalled_days and criteria_score < cfg.stalled_completion:
            risks.append(RiskItem(
                type="criteria_stalled",
                severity="high",
                message=(
                    f"Less than {round_half_up(cfg.stalled_completion * 100)}% criteria "
                    f"complete with < {cfg.stalled_days} days remaining"
                ),
                multiplier=multipliers.criteria_stalled,
            ))

        return risks

    def get_recommendation(self, score: float) -> Recommendation:
        for tier in self.config.recommendation_tiers:
            if score >= tier.min_score:
                return Recommendation(status=tier.status, action=tier.action, priority=tier.priority)
        tier = self.config.recommendation_tiers[-1]
        return Recommendation(status=tier.status, action=tier.action, priority=tier.priority)

    # Date helpers

    def get_days_since(self, value: Optional[date], today: Optional[date] = None) -> int:
        """Days since ``value``; the no-contact sentinel (999) when it is missing."""
        if value is None:
            return self.config.no_contact_days
        return ((today or date.today()) - value).days

    @staticmethod
    def get_days_between(start: date, end: date) -> int:
        return max(0, (end - start).days)

    def get_most_recent_stakeholder_contact(
        self, stakeholders: Sequence[Stakeholder], today: Optional[date] = None
    ) -> int:
        contacts = [
            self.get_days_since(s.last_contact, today)
            for s in stakeholders
            if s.last_contact is not None
        ]
        return min(contacts) if contacts else self.config.no_contact_days


def predict_conversion(
    pilot: Pilot,
    criteria: Sequence[SuccessCriterion] = (),
    stakeholders: Sequence[Stakeholder] = (),
    today: Optional[date] = None,
    config: PredictorConfig = DEFAULT_PREDICTOR_CONFIG,
) -> ConversionPrediction:
    """Convenience wrapper around ``ConversionPredictor.predict_conversion``."""
    return ConversionPredictor(config).predict_conversion(pilot, criteria, stakeholders, today)
