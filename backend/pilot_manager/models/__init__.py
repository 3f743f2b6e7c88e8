"""Entity and result schemas."""
from pilot_manager.models.schemas import (
    ConversionPrediction,
    FinancialSummary,
    HealthScoreBreakdown,
    Metric,
    Pilot,
    PilotCreate,
    PilotEvaluation,
    Stakeholder,
    SuccessCriterion,
)

__all__ = [
    "ConversionPrediction",
    "FinancialSummary",
    "HealthScoreBreakdown",
    "Metric",
    "Pilot",
    "PilotCreate",
    "PilotEvaluation",
    "Stakeholder",
    "SuccessCriterion",
]
