"""Storage contract for pilot records and an in-memory implementation."""
from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterable, List, Optional, Protocol, TypeVar

from pilot_manager.models.schemas import (
    Metric,
    Pilot,
    PilotCreate,
    Stakeholder,
    SuccessCriterion,
)
from pilot_manager.services.pilot_exceptions import PilotNotFoundError

R = TypeVar("R", SuccessCriterion, Stakeholder, Metric)


class PilotRepository(Protocol):
    """Protocol for whatever storage owns pilots and their related records."""

    def get_pilot(self, pilot_id: int) -> Optional[Pilot]:
        """Return the pilot or None when the id is unknown."""
        ...

    def list_pilots(self) -> List[Pilot]:
        ...

    def get_success_criteria(self, pilot_id: int) -> List[SuccessCriterion]:
        ...

    def get_stakeholders(self, pilot_id: int) -> List[Stakeholder]:
        ...

    def get_metrics(self, pilot_id: int) -> List[Metric]:
        ...

    def create_pilot(self, data: PilotCreate) -> Pilot:
        """Store a new pilot under a freshly assigned id."""
        ...

    def add_success_criterion(self, criterion: SuccessCriterion) -> SuccessCriterion:
        ...

    def add_stakeholder(self, stakeholder: Stakeholder) -> Stakeholder:
        ...

    def add_metric(self, metric: Metric) -> Metric:
        ...

    def save_scores(self, pilot_id: int, health_score: float, conversion_probability: float) -> Pilot:
        """
        Persist recomputed scores onto the pilot record.

        Args:
            pilot_id: Pilot to update
            health_score: Recomputed health score (0-100)
            conversion_probability: Recomputed conversion probability (0-100)

        Returns:
            Updated pilot
        """
        ...


class InMemoryPilotRepository:
    """Dictionary-backed repository; records are keyed by pilot id."""

    def __init__(
        self,
        pilots: Iterable[Pilot] = (),
        criteria: Iterable[SuccessCriterion] = (),
        stakeholders: Iterable[Stakeholder] = (),
        metrics: Iterable[Metric] = (),
    ):
        self._lock = threading.Lock()
        self._pilots: Dict[int, Pilot] = {}
        self._criteria: Dict[int, List[SuccessCriterion]] = {}
        self._stakeholders: Dict[int, List[Stakeholder]] = {}
        self._metrics: Dict[int, List[Metric]] = {}
        self._record_ids = itertools.count(1)

        for pilot in pilots:
            self.add_pilot(pilot)
        for criterion in criteria:
            self.add_success_criterion(criterion)
        for stakeholder in stakeholders:
            self.add_stakeholder(stakeholder)
        for metric in metrics:
            self.add_metric(metric)

    # Writes

    def add_pilot(self, pilot: Pilot) -> Pilot:
        with self._lock:
            self._pilots[pilot.id] = pilot
        return pilot

    def create_pilot(self, data: PilotCreate) -> Pilot:
        with self._lock:
            pilot_id = max(self._pilots, default=0) + 1
            pilot = Pilot(id=pilot_id, **data.model_dump())
            self._pilots[pilot_id] = pilot
        return pilot

    def add_success_criterion(self, criterion: SuccessCriterion) -> SuccessCriterion:
        return self._append(self._criteria, criterion)

    def add_stakeholder(self, stakeholder: Stakeholder) -> Stakeholder:
        return self._append(self._stakeholders, stakeholder)

    def add_metric(self, metric: Metric) -> Metric:
        return self._append(self._metrics, metric)

    def _append(self, table: Dict[int, List[R]], record: R) -> R:
        if record.pilot_id is None:
            raise ValueError(f"{type(record).__name__} has no pilot_id")
        with self._lock:
            if record.id is None:
                record = record.model_copy(update={"id": next(self._record_ids)})
            table.setdefault(record.pilot_id, []).append(record)
        return record

    def save_scores(self, pilot_id: int, health_score: float, conversion_probability: float) -> Pilot:
        with self._lock:
            pilot = self._pilots.get(pilot_id)
            if pilot is None:
                raise PilotNotFoundError(pilot_id)
            updated = pilot.model_copy(update={
                "health_score": health_score,
                "conversion_probability": conversion_probability,
            })
            self._pilots[pilot_id] = updated
            return updated

    # Reads (copies, so callers cannot mutate stored lists)

    def get_pilot(self, pilot_id: int) -> Optional[Pilot]:
        return self._pilots.get(pilot_id)

    def list_pilots(self) -> List[Pilot]:
        return sorted(self._pilots.values(), key=lambda p: p.id)

    def get_success_criteria(self, pilot_id: int) -> List[SuccessCriterion]:
        return list(self._criteria.get(pilot_id, []))

    def get_stakeholders(self, pilot_id: int) -> List[Stakeholder]:
        return list(self._stakeholders.get(pilot_id, []))

    def get_metrics(self, pilot_id: int) -> List[Metric]:
        return list(self._metrics.get(pilot_id, []))
