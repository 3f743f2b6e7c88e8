"""Pydantic schemas for pilot records and scoring results."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


PilotStatus = Literal["Active", "At Risk", "Completed", "Converted", "Lost"]
CriterionStatus = Literal["Not Started", "In Progress", "At Risk", "Achieved", "Failed"]
EngagementLevel = Literal["High", "Medium", "Low", "Unresponsive"]
RiskLevel = Literal["Low", "Medium", "High", "Critical"]


# Entity schemas (owned by the storage collaborator, read-only to the scorers)
class PilotCreate(BaseModel):
    """Pilot fields supplied by a client; the store assigns the id."""
    model_config = ConfigDict(from_attributes=True)

    company_name: str = ""
    industry: str = "Other"
    start_date: date
    end_date: date
    # Kept as plain strings so unknown values reach the scoring fallbacks
    status: str = "Active"
    health_score: float = Field(default=0, ge=0, le=100)
    contract_value: float = 0
    arr_projection: float = 0
    conversion_probability: Optional[float] = Field(default=None, ge=0, le=100)
    primary_contact: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self) -> "PilotCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Pilot(PilotCreate):
    id: int


class SuccessCriterion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    pilot_id: Optional[int] = None
    description: str = ""
    target_value: Optional[str] = None
    current_value: Optional[str] = None
    status: str = "Not Started"
    weight: float = Field(default=1, gt=0)


class Stakeholder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    pilot_id: Optional[int] = None
    name: str = ""
    role: Optional[str] = None
    email: Optional[str] = None
    engagement_level: str = "Medium"
    last_contact: Optional[date] = None


class Metric(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    pilot_id: Optional[int] = None
    name: str
    value: Optional[str] = None
    type: Optional[str] = None
    recorded_at: datetime


# Health score schemas
class HealthScoreBreakdown(BaseModel):
    health_score: int
    score_band: str
    contributions: Dict[str, float]
    max_score: float
    factors_applied: List[str]


class Insight(BaseModel):
    type: Literal["warning", "alert", "critical", "success"]
    category: str
    message: str
    action: str


# Conversion prediction schemas
class RiskItem(BaseModel):
    type: str
    severity: Literal["medium", "high"]
    message: str
    multiplier: float


class Recommendation(BaseModel):
    status: Literal["strong", "moderate", "at_risk", "critical"]
    action: str
    priority: Literal["low", "medium", "high", "urgent"]


class PredictionFactors(BaseModel):
    criteria_completion: int
    stakeholder_engagement: int
    timeline_progress: int
    contract_value: int
    industry_success: int


class ConversionPrediction(BaseModel):
    conversion_probability: int
    base_score: int
    factors: PredictionFactors
    risks: List[RiskItem] = Field(default_factory=list)
    recommendation: Recommendation


# Financial projection schemas
class RoiAnalysis(BaseModel):
    pilot_cost: float
    projected_arr: float
    conversion_probability: Optional[float] = None
    expected_revenue: int
    first_year_profit: int
    roi: Optional[float] = None
    roi_category: Optional[str] = None
    three_year_ltv: int
    ltv_to_cac: Optional[float] = None
    break_even_months: Optional[int] = None


class AnnualProjection(BaseModel):
    year: int
    arr: int
    cumulative_revenue: int
    churn_adjusted_retention: int


class PaybackAnalysis(BaseModel):
    payback_months: Optional[int] = None
    payback_years: Optional[float] = None
    monthly_profit: Optional[int] = None
    payback_category: Optional[str] = None
    message: str


class FiveYearProjection(BaseModel):
    year1: int
    year2: int
    year3: int
    year4: int
    year5: int
    total: int


class ExpansionAnalysis(BaseModel):
    initial_arr: float
    industry: str
    expansion_multiplier: float
    estimated_total_value: int
    estimated_expansion: int
    five_year_projection: FiveYearProjection
    expansion_drivers: List[str]
    recommendation: str


class LifetimeValue(BaseModel):
    lifetime_value: Optional[int] = None
    avg_life_years: int
    annual_revenue: float
    gross_margin: float
    churn_rate: float
    retention_rate: float


class FinancialSummary(BaseModel):
    pilot_id: int
    company_name: str
    arr_projection: float
    roi: RoiAnalysis
    annual_projections: List[AnnualProjection]
    payback: PaybackAnalysis
    expansion: ExpansionAnalysis
    lifetime_value: LifetimeValue


# Service-level schemas
class PilotSummary(BaseModel):
    pilot: Pilot
    days_remaining: int
    progress: int
    risk_level: RiskLevel
    success_criteria_count: int
    stakeholder_count: int
    metrics_count: int


class PilotEvaluation(BaseModel):
    pilot: Pilot
    health_score: int
    conversion_probability: int
    days_remaining: int
    progress: int
    risk_level: RiskLevel
    success_criteria: List[SuccessCriterion]
    stakeholders: List[Stakeholder]
    metrics: List[Metric]
    insights: List[Insight]


class PilotScoreRequest(BaseModel):
    """Pilot plus its related records, scored without touching storage."""
    pilot: Pilot
    success_criteria: List[SuccessCriterion] = Field(default_factory=list)
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    metrics: List[Metric] = Field(default_factory=list)
    as_of: Optional[date] = None


class PilotScoreResponse(BaseModel):
    health: HealthScoreBreakdown
    risk_level: RiskLevel
    conversion_probability: int
    prediction: ConversionPrediction
    insights: List[Insight]


class ScoreRefreshResponse(BaseModel):
    pilot_id: int
    health_score: int
    conversion_probability: int
    message: str


class PortfolioSummary(BaseModel):
    total_pipeline_value: float
    conversion_rate: Optional[Dict[str, Any]] = None
    average_time_to_close: Optional[int] = None
    status_breakdown: Dict[str, Dict[str, float]]
    risk_distribution: Dict[str, Dict[str, Any]]
    top_industries: List[Dict[str, Any]]
    criteria_completion: Dict[str, Any]
    stakeholder_engagement: Dict[str, Any]
    quarterly_forecast: List[Dict[str, Any]]
