"""Pilot scoring API endpoints."""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

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
from pilot_manager.services.pilot_exceptions import InvalidPilotDataError, PilotNotFoundError
from pilot_manager.services.pilot_service import PilotService, get_pilot_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[PilotSummary])
async def list_pilots(
    as_of: Optional[date] = None,
    service: PilotService = Depends(get_pilot_service),
):
    """List all pilots with days remaining, progress and risk level."""
    return service.list_pilot_summaries(today=as_of)


@router.post("", response_model=Pilot, status_code=201)
async def create_pilot(
    data: PilotCreate,
    service: PilotService = Depends(get_pilot_service),
):
    """Create a pilot; the id is assigned by the store."""
    return service.create_pilot(data)


@router.get("/portfolio/summary", response_model=PortfolioSummary)
async def portfolio_summary(
    as_of: Optional[date] = None,
    service: PilotService = Depends(get_pilot_service),
):
    """Aggregate pipeline, conversion and engagement statistics."""
    return service.portfolio_summary(today=as_of)


@router.post("/score", response_model=PilotScoreResponse)
async def score_pilot(
    request: PilotScoreRequest,
    service: PilotService = Depends(get_pilot_service),
):
    """Score a pilot supplied in the request body without storing it."""
    try:
        return service.score_records(request)
    except InvalidPilotDataError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/{pilot_id}", response_model=PilotEvaluation)
async def get_pilot(
    pilot_id: int,
    as_of: Optional[date] = None,
    service: PilotService = Depends(get_pilot_service),
):
    """Get a single pilot with recomputed scores and insights."""
    try:
        return service.evaluate_pilot(pilot_id, today=as_of)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{pilot_id}/prediction", response_model=ConversionPrediction)
async def get_prediction(
    pilot_id: int,
    as_of: Optional[date] = None,
    service: PilotService = Depends(get_pilot_service),
):
    """Get the weighted conversion prediction for a pilot."""
    try:
        return service.predict(pilot_id, today=as_of)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{pilot_id}/financials", response_model=FinancialSummary)
async def get_financials(
    pilot_id: int,
    pilot_cost: Optional[float] = Query(default=None, gt=0),
    service: PilotService = Depends(get_pilot_service),
):
    """Get ROI, annual projections, payback, expansion and lifetime value."""
    try:
        return service.financials(pilot_id, pilot_cost=pilot_cost)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{pilot_id}/refresh", response_model=ScoreRefreshResponse)
async def refresh_scores(
    pilot_id: int,
    as_of: Optional[date] = None,
    service: PilotService = Depends(get_pilot_service),
):
    """Recompute and persist a pilot's health score and conversion probability."""
    try:
        return service.refresh_scores(pilot_id, today=as_of)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{pilot_id}/success-criteria", response_model=SuccessCriterion, status_code=201)
async def add_success_criterion(
    pilot_id: int,
    criterion: SuccessCriterion,
    service: PilotService = Depends(get_pilot_service),
):
    """Attach a success criterion to a pilot."""
    try:
        return service.add_success_criterion(pilot_id, criterion)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPilotDataError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{pilot_id}/stakeholders", response_model=Stakeholder, status_code=201)
async def add_stakeholder(
    pilot_id: int,
    stakeholder: Stakeholder,
    service: PilotService = Depends(get_pilot_service),
):
    """Attach a stakeholder to a pilot."""
    try:
        return service.add_stakeholder(pilot_id, stakeholder)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPilotDataError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{pilot_id}/metrics", response_model=Metric, status_code=201)
async def add_metric(
    pilot_id: int,
    metric: Metric,
    service: PilotService = Depends(get_pilot_service),
):
    """Record a metric for a pilot."""
    try:
        return service.add_metric(pilot_id, metric)
    except PilotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPilotDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
