"""Pilot evaluation service: fetch records from storage, run the scoring pipeline."""
import logging
from datetime import date
from functools import lru_cache
from typing import List, Optional, Sequence, TypeVar

from pilot_manager.config import get_settings
from pilot_manager.models.schemas import (
    ConversionPrediction,
    FinancialSummary,
    Metric,
    Pilot,
    PilotCreate,
    PilotEvaluation,
    PilotScoreRequest,
    PilotScoreResponse,
    PilotSummary,
    PortfolioSummary,
    ScoreRefreshResponse,
    Stakeholder,
    SuccessCriterion,
)
from pilot_manager.services.conversion_predictor import ConversionPredictor
from pilot_manager.services.health_scorer import HealthScorer
from pilot_manager.services.pilot_exceptions import InvalidPilotDataError, PilotNotFoundError
from pilot_manager.services.pilot_store import InMemoryPilotRepository, PilotRepository
from pilot_manager.services.portfolio_aggregator import PortfolioAggregator
from pilot_manager.services.risk_assessor import RiskAssessor, generate_insights
from pilot_manager.services.scoring_primitives import days_remaining, progress_percent
from pilot_manager.services.value_calculator import ValueCalculator

logger = logging.getLogger(__name__)

R = TypeVar("R", SuccessCriterion, Stakeholder, Metric)


class PilotService:
    """
    Glue between a ``PilotRepository`` and the stateless scorers.

    Detail views recompute the health score first and feed it to the risk
    assessor and the quick conversion probability. Nothing is written back
    unless ``refresh_scores`` is called.
    """

    def __init__(
        self,
        repository: PilotRepository,
        risk_assessor: Optional[RiskAssessor] = None,
        predictor: Optional[ConversionPredictor] = None,
        value_calculator: Optional[ValueCalculator] = None,
    ):
        self.repository = repository
        self.risk_assessor = risk_assessor or RiskAssessor()
        self.predictor = predictor or ConversionPredictor()
        self.value_calculator = value_calculator or ValueCalculator()

    def _require_pilot(self, pilot_id: int) -> Pilot:
        pilot = self.repository.get_pilot(pilot_id)
        if pilot is None:
            raise PilotNotFoundError(pilot_id)
        return pilot

    def _attach(self, pilot_id: int, record: R) -> R:
        """Bind a related record to an existing pilot before it is stored."""
        self._require_pilot(pilot_id)
        if record.pilot_id is not None and record.pilot_id != pilot_id:
            raise InvalidPilotDataError(
                f"{type(record).__name__} belongs to pilot {record.pilot_id}, not {pilot_id}"
            )
        return record.model_copy(update={"pilot_id": pilot_id})

    # Record creation

    def create_pilot(self, data: PilotCreate) -> Pilot:
        pilot = self.repository.create_pilot(data)
        logger.info("Created pilot %s for %s", pilot.id, pilot.company_name)
        return pilot

    def add_success_criterion(self, pilot_id: int, criterion: SuccessCriterion) -> SuccessCriterion:
        return self.repository.add_success_criterion(self._attach(pilot_id, criterion))

    def add_stakeholder(self, pilot_id: int, stakeholder: Stakeholder) -> Stakeholder:
        return self.repository.add_stakeholder(self._attach(pilot_id, stakeholder))

    def add_metric(self, pilot_id: int, metric: Metric) -> Metric:
        return self.repository.add_metric(self._attach(pilot_id, metric))

    # Scoring

    def _evaluate(
        self,
        pilot: Pilot,
        criteria: Sequence[SuccessCriterion],
        stakeholders: Sequence[Stakeholder],
        metrics: Sequence[Metric],
        today: Optional[date],
    ) -> PilotEvaluation:
        health_score = HealthScorer(pilot, criteria, metrics, today=today).calculate_health_score()
        scored = pilot.model_copy(update={"health_score": health_score})
        probability = self.risk_assessor.calculate_conversion_probability(
            scored, criteria, stakeholders, today
        )

        return PilotEvaluation(
            pilot=scored,
            health_score=health_score,
            conversion_probability=probability,
            days_remaining=days_remaining(pilot, today),
            progress=progress_percent(pilot, today),
            risk_level=self.risk_assessor.assess_risk(scored, criteria, stakeholders, today),
            success_criteria=list(criteria),
            stakeholders=list(stakeholders),
            metrics=list(metrics),
            insights=generate_insights(scored, criteria, stakeholders, metrics, today),
        )

    def evaluate_pilot(self, pilot_id: int, today: Optional[date] = None) -> PilotEvaluation:
        """
        Recompute every score for one pilot.

        Args:
            pilot_id: Pilot to evaluate
            today: Reference date (defaults to today)

        Returns:
            Evaluation with health score, probability, risk level and insights

        Raises:
            PilotNotFoundError: If the repository does not know the pilot
        """
        pilot = self._require_pilot(pilot_id)
        return self._evaluate(
            pilot,
            self.repository.get_success_criteria(pilot_id),
            self.repository.get_stakeholders(pilot_id),
            self.repository.get_metrics(pilot_id),
            today,
        )

    def list_pilot_summaries(self, today: Optional[date] = None) -> List[PilotSummary]:
        """List view; risk uses each pilot's stored health score."""
        summaries = []
        for pilot in self.repository.list_pilots():
            criteria = self.repository.get_success_criteria(pilot.id)
            stakeholders = self.repository.get_stakeholders(pilot.id)
            summaries.append(PilotSummary(
                pilot=pilot,
                days_remaining=days_remaining(pilot, today),
                progress=progress_percent(pilot, today),
                risk_level=self.risk_assessor.assess_risk(pilot, criteria, stakeholders, today),
                success_criteria_count=len(criteria),
                stakeholder_count=len(stakeholders),
                metrics_count=len(self.repository.get_metrics(pilot.id)),
            ))
        return summaries

    def predict(self, pilot_id: int, today: Optional[date] = None) -> ConversionPrediction:
        pilot = self._require_pilot(pilot_id)
        return self.predictor.predict_conversion(
            pilot,
            self.repository.get_success_criteria(pilot_id),
            self.repository.get_stakeholders(pilot_id),
            today,
        )

    def financials(self, pilot_id: int, pilot_cost: Optional[float] = None) -> FinancialSummary:
        settings = get_settings()
        pilot = self._require_pilot(pilot_id)
        cost = settings.default_pilot_cost if pilot_cost is None else pilot_cost
        return self.value_calculator.build_financial_summary(
            pilot,
            pilot_cost=cost,
            years=settings.projection_years,
            avg_customer_life_years=settings.customer_life_years,
        )

    def refresh_scores(self, pilot_id: int, today: Optional[date] = None) -> ScoreRefreshResponse:
        """Recompute health score and conversion probability and persist both."""
        evaluation = self.evaluate_pilot(pilot_id, today)
        self.repository.save_scores(
            pilot_id, evaluation.health_score, evaluation.conversion_probability
        )
        logger.info(
            "Refreshed scores for pilot %s: health=%s probability=%s",
            pilot_id, evaluation.health_score, evaluation.conversion_probability,
        )
        return ScoreRefreshResponse(
            pilot_id=pilot_id,
            health_score=evaluation.health_score,
            conversion_probability=evaluation.conversion_probability,
            message="Scores updated",
        )

    def score_records(self, request: PilotScoreRequest) -> PilotScoreResponse:
        """Score a pilot supplied inline with its records, without touching storage."""
        pilot = request.pilot
        for record in [*request.success_criteria, *request.stakeholders, *request.metrics]:
            if record.pilot_id is not None and record.pilot_id != pilot.id:
                raise InvalidPilotDataError(
                    f"{type(record).__name__} belongs to pilot {record.pilot_id}, not {pilot.id}"
                )

        today = request.as_of
        evaluation = self._evaluate(
            pilot, request.success_criteria, request.stakeholders, request.metrics, today
        )
        health = HealthScorer(
            pilot, request.success_criteria, request.metrics, today=today
        ).calculate_breakdown()
        prediction = self.predictor.predict_conversion(
            evaluation.pilot, request.success_criteria, request.stakeholders, today
        )
        return PilotScoreResponse(
            health=health,
            risk_level=evaluation.risk_level,
            conversion_probability=evaluation.conversion_probability,
            prediction=prediction,
            insights=evaluation.insights,
        )

    def portfolio_summary(self, today: Optional[date] = None) -> PortfolioSummary:
        pilots = self.repository.list_pilots()
        aggregator = PortfolioAggregator(
            pilots,
            criteria_by_pilot={p.id: self.repository.get_success_criteria(p.id) for p in pilots},
            stakeholders_by_pilot={p.id: self.repository.get_stakeholders(p.id) for p in pilots},
            today=today,
        )
        return aggregator.build_summary()


@lru_cache()
def get_pilot_service() -> PilotService:
    """Get cached service backed by the process-wide in-memory repository."""
    return PilotService(InMemoryPilotRepository())
