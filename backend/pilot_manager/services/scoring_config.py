"""Immutable configuration tables for the scoring components.

Every scorer reads its weights, thresholds and industry rates from one of
the frozen models below. The module-level ``DEFAULT_*`` instances are what
the services use unless a caller passes its own table, e.g.::

    config = PredictorConfig(weights=PredictorWeights(criteria_completion=50, ...))
    ConversionPredictor(config=config)

Step tables are tuples of ``(threshold, value)`` pairs evaluated in order
with ``>=`` (or ``>`` / ``<`` where the field name says so), first match wins.
Industry tables are keyed by industry name and must include an "Other" row,
which every unlisted industry falls back to.
"""
from typing import Dict, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

OTHER_INDUSTRY = "Other"

T = TypeVar("T")


class FrozenConfig(BaseModel):
    """Base for configuration tables that must not change after creation."""

    model_config = ConfigDict(frozen=True)


def _require_other_row(tables: Dict[str, Dict[str, object]]) -> None:
    """Industry tables must carry an "Other" row for unlisted industries."""
    missing = sorted(name for name, table in tables.items() if OTHER_INDUSTRY not in table)
    if missing:
        raise ValueError(f"industry tables missing an {OTHER_INDUSTRY!r} row: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Health score
# ---------------------------------------------------------------------------

class HealthScoreConfig(FrozenConfig):
    criteria_points: float = 40
    timeline_points: float = 30
    engagement_points: float = 20
    status_points: float = 10

    # Partial credit per criterion status (Achieved counts full weight)
    criteria_credit: Dict[str, float] = Field(default_factory=lambda: {
        "Achieved": 1.0,
        "In Progress": 0.5,
        "At Risk": 0.25,
    })

    # (upper bound on elapsed fraction, score) - uses < comparison in order
    timeline_buckets: Tuple[Tuple[float, float], ...] = (
        (0.25, 1.0),
        (0.5, 0.9),
        (0.75, 0.8),
    )
    timeline_late_score: float = 0.7
    overdue_converted_score: float = 1.0
    overdue_score: float = 0.3

    recent_metric_days: int = 7
    # (minimum recent metric count, score)
    engagement_steps: Tuple[Tuple[int, float], ...] = (
        (5, 1.0),
        (3, 0.8),
        (1, 0.6),
    )
    engagement_idle_score: float = 0.4
    engagement_no_metrics_score: float = 0.5

    status_weights: Dict[str, float] = Field(default_factory=lambda: {
        "Converted": 1.0,
        "Active": 0.8,
        "Completed": 0.7,
        "At Risk": 0.4,
        "Lost": 0.0,
    })
    unknown_status_weight: float = 0.5

    # Score bands (min threshold, label) - uses >= comparison in order
    score_bands: Tuple[Tuple[float, str], ...] = (
        (80, "Healthy"),
        (60, "Stable"),
        (40, "Watch"),
        (0, "At Risk"),
    )


# ---------------------------------------------------------------------------
# Risk assessment
# ---------------------------------------------------------------------------

class RiskConfig(FrozenConfig):
    # (health score upper bound, points) - uses < comparison
    health_points: Tuple[Tuple[float, int], ...] = ((30, 3), (50, 2), (70, 1))
    # (days remaining upper bound, points) - uses < comparison
    deadline_points: Tuple[Tuple[int, int], ...] = ((0, 3), (7, 2), (14, 1))
    # (count lower bound, points) - uses > comparison
    troubled_criteria_points: Tuple[Tuple[int, int], ...] = ((2, 2), (0, 1))
    disengaged_stakeholder_points: Tuple[Tuple[int, int], ...] = ((1, 2), (0, 1))

    troubled_criteria_statuses: Tuple[str, ...] = ("At Risk", "Failed")
    disengaged_levels: Tuple[str, ...] = ("Low", "Unresponsive")
    status_points: Dict[str, int] = Field(default_factory=lambda: {
        "At Risk": 2,
        "Lost": 5,
    })

    # (minimum total points, level) - uses >= comparison in order
    levels: Tuple[Tuple[int, str], ...] = (
        (7, "Critical"),
        (5, "High"),
        (3, "Medium"),
    )
    default_level: str = "Low"


class ConversionProbabilityConfig(FrozenConfig):
    """Tables for the health-score based probability used on the risk path."""

    many_champions: int = 2
    many_champions_bonus: float = 10
    one_champion_bonus: float = 5
    overdue_penalty: float = 30
    at_risk_cap: float = 40


# ---------------------------------------------------------------------------
# Conversion predictor
# ---------------------------------------------------------------------------

class PredictorWeights(FrozenConfig):
    """Factor weights (must sum to 100)."""

    criteria_completion: float = 35
    stakeholder_engagement: float = 25
    timeline_progress: float = 20
    contract_value: float = 10
    industry_success: float = 10

    def total(self) -> float:
        return (
            self.criteria_completion
            + self.stakeholder_engagement
            + self.timeline_progress
            + self.contract_value
            + self.industry_success
        )


class RiskMultipliers(FrozenConfig):
    deadline_approaching: float = 0.7
    stakeholder_disengaged: float = 0.8
    low_health_score: float = 0.6
    criteria_stalled: float = 0.75


class RecommendationTier(FrozenConfig):
    min_score: float
    status: str
    action: str
    priority: str


DEFAULT_INDUSTRY_SUCCESS_RATES: Dict[str, float] = {
    "Technology": 0.75,
    "Financial Services": 0.72,
    "Healthcare": 0.68,
    "Manufacturing": 0.70,
    "Retail": 0.65,
    "Education": 0.60,
    OTHER_INDUSTRY: 0.65,
}


class PredictorConfig(FrozenConfig):
    weights: PredictorWeights = Field(default_factory=PredictorWeights)
    risk_multipliers: RiskMultipliers = Field(default_factory=RiskMultipliers)

    no_criteria_score: float = 0.5
    no_stakeholders_score: float = 0.3
    no_contact_days: int = 999

    engagement_scores: Dict[str, float] = Field(default_factory=lambda: {
        "High": 1.0,
        "Medium": 0.6,
        "Low": 0.3,
        "Unresponsive": 0.1,
    })
    unknown_engagement_score: float = 0.5
    # (days since contact lower bound, multiplier) - uses > comparison
    recency_multipliers: Tuple[Tuple[int, float], ...] = (
        (30, 0.5),
        (14, 0.7),
        (7, 0.85),
    )

    behind_schedule_penalty: float = 1.5

    # (minimum contract value, score)
    contract_value_steps: Tuple[Tuple[float, float], ...] = (
        (1_000_000, 1.0),
        (500_000, 0.7),
        (250_000, 0.5),
        (100_000, 0.3),
    )
    contract_value_floor: float = 0.2

    industry_success_rates: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_INDUSTRY_SUCCESS_RATES)
    )

    deadline_days: int = 14
    deadline_completion: float = 0.8
    disengaged_days: int = 7
    disengaged_high_severity_days: int = 14
    low_health_threshold: float = 50
    stalled_days: int = 30
    stalled_completion: float = 0.3

    recommendation_tiers: Tuple[RecommendationTier, ...] = (
        RecommendationTier(
            min_score=80,
            status="strong",
            action="Continue current trajectory. Focus on final success criteria.",
            priority="low",
        ),
        RecommendationTier(
            min_score=60,
            status="moderate",
            action="Monitor closely. Address any risks proactively.",
            priority="medium",
        ),
        RecommendationTier(
            min_score=40,
            status="at_risk",
            action="Immediate intervention required. Schedule executive alignment call.",
            priority="high",
        ),
        RecommendationTier(
            min_score=float("-inf"),
            status="critical",
            action="Escalate immediately. Consider pivot or extension strategy.",
            priority="urgent",
        ),
    )

    @model_validator(mode="after")
    def _check_industry_tables(self) -> "PredictorConfig":
        _require_other_row({"industry_success_rates": self.industry_success_rates})
        return self


# ---------------------------------------------------------------------------
# Financial projections
# ---------------------------------------------------------------------------

class RoiAssumptions(FrozenConfig):
    """Flat assumptions behind the 3-year LTV inside the ROI calculation."""

    churn_rate: float = 0.08
    expansion_rate: float = 0.15


class FinancialConfig(FrozenConfig):
    gross_margin: float = 0.8
    default_conversion_probability: float = 50
    roi: RoiAssumptions = Field(default_factory=RoiAssumptions)

    churn_rates: Dict[str, float] = Field(default_factory=lambda: {
        "Technology": 0.08,
        "Financial Services": 0.05,
        "Healthcare": 0.06,
        "Manufacturing": 0.07,
        "Retail": 0.12,
        "Education": 0.10,
        OTHER_INDUSTRY: 0.08,
    })
    expansion_rates: Dict[str, float] = Field(default_factory=lambda: {
        "Technology": 0.25,
        "Financial Services": 0.20,
        "Healthcare": 0.15,
        "Manufacturing": 0.18,
        "Retail": 0.12,
        "Education": 0.10,
        OTHER_INDUSTRY: 0.15,
    })
    expansion_multipliers: Dict[str, float] = Field(default_factory=lambda: {
        "Technology": 2.5,
        "Financial Services": 2.0,
        "Healthcare": 1.8,
        "Manufacturing": 2.2,
        "Retail": 1.5,
        "Education": 1.3,
        OTHER_INDUSTRY: 1.5,
    })
    # Year-over-year growth for years 2..5 of the expansion estimate
    expansion_year_steps: Tuple[float, ...] = (0.15, 0.20, 0.15, 0.10)

    expansion_drivers: Dict[str, Tuple[str, ...]] = Field(default_factory=lambda: {
        "Technology": ("Rapid user growth", "Feature expansion", "Multi-product adoption"),
        "Financial Services": ("Regulatory compliance value", "Risk reduction", "Process automation"),
        "Healthcare": ("Patient volume growth", "Additional departments", "Compliance requirements"),
        "Manufacturing": ("Production scaling", "Additional facilities", "Supply chain integration"),
        "Retail": ("Store expansion", "Seasonal growth", "Omnichannel integration"),
        "Education": ("Student enrollment growth", "Additional programs", "District-wide adoption"),
        OTHER_INDUSTRY: ("User growth", "Feature adoption", "Process expansion"),
    })

    # (min ROI %, label)
    roi_categories: Tuple[Tuple[float, str], ...] = (
        (200, "Excellent"),
        (100, "Strong"),
        (50, "Good"),
        (0, "Moderate"),
    )
    roi_floor_category: str = "Poor"

    # (max payback months, label, message) - uses <= comparison
    payback_categories: Tuple[Tuple[int, str, str], ...] = (
        (6, "Excellent", "Outstanding payback period - strong investment"),
        (12, "Good", "Solid payback period - good investment"),
        (18, "Fair", "Acceptable payback period - monitor closely"),
    )
    payback_floor_category: Tuple[str, str] = (
        "Concerning",
        "Long payback period - evaluate strategic value",
    )

    # (min multiplier, recommendation)
    expansion_recommendations: Tuple[Tuple[float, str], ...] = (
        (2.3, "High expansion potential - prioritize customer success and upsell strategies"),
        (1.8, "Moderate expansion potential - focus on feature adoption and value demonstration"),
    )
    expansion_floor_recommendation: str = (
        "Standard expansion potential - maintain strong relationship and service delivery"
    )

    @model_validator(mode="after")
    def _check_industry_tables(self) -> "FinancialConfig":
        _require_other_row({
            "churn_rates": self.churn_rates,
            "expansion_rates": self.expansion_rates,
            "expansion_multipliers": self.expansion_multipliers,
            "expansion_drivers": self.expansion_drivers,
        })
        return self


DEFAULT_HEALTH_CONFIG = HealthScoreConfig()
DEFAULT_RISK_CONFIG = RiskConfig()
DEFAULT_PROBABILITY_CONFIG = ConversionProbabilityConfig()
DEFAULT_PREDICTOR_CONFIG = PredictorConfig()
DEFAULT_FINANCIAL_CONFIG = FinancialConfig()


def industry_lookup(table: Dict[str, T], industry: str) -> T:
    """Return the table entry for ``industry``, falling back to the "Other" row."""
    value = table.get(industry)
    if value is None:
        return table[OTHER_INDUSTRY]
    return value
