"""Unit tests for the conversion predictor."""
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from conftest import TODAY, make_criterion, make_pilot, make_stakeholder
from pilot_manager.services.conversion_predictor import ConversionPredictor, predict_conversion
from pilot_manager.services.risk_assessor import calculate_conversion_probability
from pilot_manager.services.scoring_config import (
    DEFAULT_INDUSTRY_SUCCESS_RATES,
    DEFAULT_PREDICTOR_CONFIG,
    PredictorConfig,
)


def days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)


@pytest.fixture
def predictor():
    return ConversionPredictor()


@pytest.fixture
def strong_inputs():
    """Pilot with every factor at its best, no risks triggered."""
    pilot = make_pilot(health_score=100, contract_value=1_000_000)
    criteria = [make_criterion("Achieved"), make_criterion("Achieved", weight=3)]
    stakeholders = [make_stakeholder("High", TODAY)]
    return pilot, criteria, stakeholders


class TestFactorScores:
    """Test individual factor scores."""

    def test_stakeholder_recency_discount(self, predictor):
        """High engagement contacted 20 days ago contributes 0.7, not 1.0."""
        score = predictor.calculate_stakeholder_score([make_stakeholder("High", days_ago(20))], TODAY)
        assert score == pytest.approx(0.7)

    @pytest.mark.parametrize(
        "days, multiplier",
        [(0, 1.0), (7, 1.0), (8, 0.85), (14, 0.85), (15, 0.7), (30, 0.7), (31, 0.5)],
    )
    def test_recency_thresholds(self, predictor, days, multiplier):
        assert predictor.recency_multiplier(days) == multiplier

    def test_stakeholder_average(self, predictor):
        stakeholders = [
            make_stakeholder("High", TODAY),
            make_stakeholder("Low", days_ago(10)),
            make_stakeholder("Champion", TODAY),
        ]
        # (1.0 + 0.3 * 0.85 + 0.5) / 3
        assert predictor.calculate_stakeholder_score(stakeholders, TODAY) == pytest.approx(0.585)

    def test_missing_contact_counts_as_long_ago(self, predictor):
        assert predictor.calculate_stakeholder_score([make_stakeholder("High")], TODAY) == 0.5

    def test_no_stakeholders(self, predictor):
        assert predictor.calculate_stakeholder_score([], TODAY) == 0.3

    def test_criteria_score_only_credits_achieved(self, predictor):
        criteria = [make_criterion("Achieved", weight=3), make_criterion("In Progress", weight=1)]
        assert predictor.calculate_criteria_score(criteria) == 0.75

    def test_criteria_score_is_neutral_without_criteria(self, predictor):
        assert predictor.calculate_criteria_score([]) == 0.5

    def test_timeline_on_schedule(self, predictor, pilot):
        assert predictor.calculate_timeline_score(pilot, [make_criterion("Achieved")], TODAY) == 1.0

    def test_timeline_behind_schedule(self, predictor, pilot):
        criteria = [make_criterion("Achieved"), make_criterion("Not Started", weight=4)]
        # time 0.5, criteria 0.2: 1 - 1.5 * 0.3
        assert predictor.calculate_timeline_score(pilot, criteria, TODAY) == pytest.approx(0.55)

    def test_timeline_far_behind_floors_at_zero(self, predictor):
        pilot = make_pilot(end_date=date(2025, 3, 1))
        assert predictor.calculate_timeline_score(pilot, [make_criterion("Failed")], TODAY) == 0.0

    @pytest.mark.parametrize(
        "value, expected",
        [(2_000_000, 1.0), (1_000_000, 1.0), (600_000, 0.7), (250_000, 0.5), (100_000, 0.3), (99_999, 0.2)],
    )
    def test_value_score(self, predictor, value, expected):
        assert predictor.calculate_value_score(value) == expected

    def test_industry_score(self, predictor):
        assert predictor.get_industry_score("Technology") == 0.75
        assert predictor.get_industry_score("Education") == 0.60
        assert predictor.get_industry_score("Aerospace") == 0.65

    def test_custom_industry_table_falls_back_to_other(self):
        config = PredictorConfig(industry_success_rates={"Technology": 0.9, "Other": 0.4})
        predictor = ConversionPredictor(config)

        assert predictor.get_industry_score("Technology") == 0.9
        assert predictor.get_industry_score("Retail") == 0.4
        result = predictor.predict_conversion(make_pilot(industry="Retail"), today=TODAY)
        assert result.factors.industry_success == 40

    def test_industry_table_without_other_row_is_rejected(self):
        with pytest.raises(ValidationError, match="industry_success_rates"):
            PredictorConfig(industry_success_rates={"Technology": 0.9})


class TestPrediction:
    """Test the combined prediction."""

    def test_weights_sum_to_100(self):
        assert DEFAULT_PREDICTOR_CONFIG.weights.total() == 100

    def test_perfect_factors_give_base_100(self, strong_inputs):
        rates = {industry: 1.0 for industry in DEFAULT_INDUSTRY_SUCCESS_RATES}
        config = PredictorConfig(industry_success_rates=rates)

        result = predict_conversion(*strong_inputs, today=TODAY, config=config)

        assert result.base_score == 100
        assert result.conversion_probability == 100
        assert result.risks == []
        assert result.recommendation.status == "strong"

    def test_factors_reported_as_percentages(self, predictor, strong_inputs):
        result = predictor.predict_conversion(*strong_inputs, today=TODAY)

        assert result.factors.criteria_completion == 100
        assert result.factors.stakeholder_engagement == 100
        assert result.factors.industry_success == 75

    def test_low_health_multiplier(self, predictor):
        pilot = make_pilot(industry="Healthcare", health_score=40, contract_value=1_000_000)
        criteria = [make_criterion("Achieved")]
        stakeholders = [make_stakeholder("High", days_ago(1))]

        result = predictor.predict_conversion(pilot, criteria, stakeholders, today=TODAY)

        # base 35 + 25 + 20 + 10 + 6.8 = 96.8, then x0.6
        assert result.base_score == 97
        assert [r.type for r in result.risks] == ["low_health_score"]
        assert result.conversion_probability == 58
        assert result.recommendation.status == "at_risk"

    def test_deadline_and_stall_risks(self, predictor):
        pilot = make_pilot(end_date=date(2025, 7, 12))
        criteria = [make_criterion("Not Started"), make_criterion("In Progress")]
        stakeholders = [make_stakeholder("Medium", days_ago(2))]

        risks = predictor.identify_risks(pilot, criteria, stakeholders, TODAY)

        assert [r.type for r in risks] == ["deadline_approaching", "criteria_stalled"]
        assert risks[0].message == "Only 10 days remaining with 0% criteria complete"

    def test_disengaged_severity(self, predictor, pilot):
        medium = predictor.identify_risks(pilot, [], [make_stakeholder("High", days_ago(10))], TODAY)
        high = predictor.identify_risks(pilot, [], [make_stakeholder("High", days_ago(20))], TODAY)

        assert medium[0].type == "stakeholder_disengaged"
        assert medium[0].severity == "medium"
        assert high[0].severity == "high"
        assert high[0].message == "No stakeholder contact in 20 days"

    def test_most_recent_contact_wins(self, predictor, pilot):
        stakeholders = [make_stakeholder("Low", days_ago(40)), make_stakeholder("High", days_ago(3))]
        assert predictor.identify_risks(pilot, [], stakeholders, TODAY) == []

    def test_no_contact_history_is_disengaged(self, predictor, pilot):
        risks = predictor.identify_risks(pilot, [], [], TODAY)
        assert risks[0].type == "stakeholder_disengaged"
        assert risks[0].severity == "high"

    def test_no_status_overrides(self, predictor, strong_inputs):
        """Unlike the quick probability, the predictor ignores Converted and Lost."""
        pilot, criteria, stakeholders = strong_inputs
        lost = pilot.model_copy(update={"status": "Lost"})
        converted = make_pilot(status="Converted", health_score=0)

        lost_prediction = predictor.predict_conversion(lost, criteria, stakeholders, today=TODAY)
        converted_prediction = predictor.predict_conversion(converted, [], [], today=TODAY)

        assert lost_prediction.conversion_probability > 0
        assert calculate_conversion_probability(lost, criteria, stakeholders, today=TODAY) == 0
        assert converted_prediction.conversion_probability < 100
        assert calculate_conversion_probability(converted, [], [], today=TODAY) == 100

    def test_repeated_predictions_are_identical(self, predictor, strong_inputs):
        first = predictor.predict_conversion(*strong_inputs, today=TODAY)
        second = predictor.predict_conversion(*strong_inputs, today=TODAY)
        assert first == second


class TestRecommendation:
    @pytest.mark.parametrize(
        "score, status, priority",
        [
            (95, "strong", "low"),
            (80, "strong", "low"),
            (79, "moderate", "medium"),
            (60, "moderate", "medium"),
            (59, "at_risk", "high"),
            (40, "at_risk", "high"),
            (39, "critical", "urgent"),
            (0, "critical", "urgent"),
        ],
    )
    def test_tiers(self, predictor, score, status, priority):
        recommendation = predictor.get_recommendation(score)
        assert recommendation.status == status
        assert recommendation.priority == priority


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
