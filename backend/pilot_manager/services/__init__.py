"""
Pilot scoring services.

Provides stateless scorers for:
- Health score (criteria, timeline, engagement, status)
- Risk level and the quick conversion probability
- Weighted conversion prediction with risk multipliers
- Financial projections (ROI, payback, expansion, lifetime value)
- Portfolio aggregation across pilots
"""
from pilot_manager.services.conversion_predictor import ConversionPredictor, predict_conversion
from pilot_manager.services.health_scorer import HealthScorer, compute_health_score
from pilot_manager.services.portfolio_aggregator import PortfolioAggregator
from pilot_manager.services.risk_assessor import (
    RiskAssessor,
    assess_risk,
    calculate_conversion_probability,
    generate_insights,
)
from pilot_manager.services.value_calculator import ValueCalculator

__all__ = [
    "ConversionPredictor",
    "predict_conversion",
    "HealthScorer",
    "compute_health_score",
    "PortfolioAggregator",
    "RiskAssessor",
    "assess_risk",
    "calculate_conversion_probability",
    "generate_insights",
    "ValueCalculator",
]
