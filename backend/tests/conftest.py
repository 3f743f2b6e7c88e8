"""Shared fixtures for pilot scoring tests."""
from datetime import date, datetime, timedelta

import pytest

from pilot_manager.models.schemas import Metric, Pilot, Stakeholder, SuccessCriterion
from pilot_manager.services.pilot_service import PilotService
from pilot_manager.services.pilot_store import InMemoryPilotRepository

# 2025-01-01 -> 2025-12-31 is a 364-day window; this date sits exactly halfway
TODAY = date(2025, 7, 2)


def make_pilot(**overrides) -> Pilot:
    data = {
        "id": 1,
        "company_name": "Acme Corp",
        "industry": "Technology",
        "start_date": date(2025, 1, 1),
        "end_date": date(2025, 12, 31),
        "status": "Active",
        "health_score": 75,
        "contract_value": 300000,
        "arr_projection": 1000000,
        "conversion_probability": 50,
        "primary_contact": "Dana Reyes",
    }
    data.update(overrides)
    return Pilot(**data)


def make_criterion(status: str, weight: float = 1, pilot_id: int = 1) -> SuccessCriterion:
    return SuccessCriterion(
        pilot_id=pilot_id,
        description=f"{status} criterion",
        target_value="100",
        current_value="50",
        status=status,
        weight=weight,
    )


def make_stakeholder(level: str, last_contact=None, pilot_id: int = 1) -> Stakeholder:
    return Stakeholder(
        pilot_id=pilot_id,
        name=f"{level} stakeholder",
        role="Sponsor",
        email="sponsor@example.com",
        engagement_level=level,
        last_contact=last_contact,
    )


def make_metric(recorded_at: datetime, pilot_id: int = 1) -> Metric:
    return Metric(
        pilot_id=pilot_id,
        name="weekly_active_users",
        value="120",
        type="usage",
        recorded_at=recorded_at,
    )


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def pilot():
    return make_pilot()


@pytest.fixture
def recent_metrics():
    """Five metrics recorded within the last week."""
    return [make_metric(datetime(2025, 6, 27, 9, 30) + timedelta(days=i)) for i in range(5)]


@pytest.fixture
def repository():
    """Repository with one healthy pilot (1) and one struggling pilot (2)."""
    healthy = make_pilot(id=1)
    struggling = make_pilot(
        id=2,
        company_name="Globex",
        industry="Retail",
        end_date=date(2025, 6, 20),
        status="At Risk",
        health_score=35,
        contract_value=80000,
        arr_projection=120000,
        conversion_probability=30,
    )
    return InMemoryPilotRepository(
        pilots=[healthy, struggling],
        criteria=[
            make_criterion("Achieved", weight=5),
            make_criterion("Achieved", weight=5),
            make_criterion("Failed", pilot_id=2),
            make_criterion("At Risk", pilot_id=2),
        ],
        stakeholders=[
            make_stakeholder("High", date(2025, 6, 30)),
            make_stakeholder("Unresponsive", date(2025, 4, 1), pilot_id=2),
            make_stakeholder("Low", None, pilot_id=2),
        ],
        metrics=[make_metric(datetime(2025, 6, 30, 12, 0))],
    )


@pytest.fixture
def service(repository):
    return PilotService(repository)
