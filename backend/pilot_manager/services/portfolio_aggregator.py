"""Portfolio-level aggregation over already-loaded pilot records."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pilot_manager.models.schemas import Pilot, PortfolioSummary, Stakeholder, SuccessCriterion
from pilot_manager.services.scoring_primitives import round_half_up

OPEN_STATUSES = ("Active", "At Risk")
CLOSED_STATUSES = ("Converted", "Lost", "Completed")
STATUS_KEYS = {
    "Active": "active",
    "At Risk": "at_risk",
    "Completed": "completed",
    "Converted": "converted",
    "Lost": "lost",
}
ENGAGEMENT_KEYS = ("High", "Medium", "Low", "Unresponsive")
DEFAULT_PROBABILITY = 50


def _probability(pilot: Pilot) -> float:
    if pilot.conversion_probability is None:
        return DEFAULT_PROBABILITY
    return pilot.conversion_probability


def _month_start(year: int, month: int) -> date:
    """First day of ``month`` (0-based offsets allowed) relative to ``year``."""
    year += month // 12
    return date(year, month % 12 + 1, 1)


class PortfolioAggregator:
    """Dashboard statistics across every pilot in the portfolio."""

    def __init__(
        self,
        pilots: Sequence[Pilot],
        criteria_by_pilot: Optional[Mapping[int, Sequence[SuccessCriterion]]] = None,
        stakeholders_by_pilot: Optional[Mapping[int, Sequence[Stakeholder]]] = None,
        today: Optional[date] = None,
    ):
        self.pilots = list(pilots)
        self.criteria_by_pilot = criteria_by_pilot or {}
        self.stakeholders_by_pilot = stakeholders_by_pilot or {}
        self.today = today or date.today()

    @property
    def open_pilots(self) -> List[Pilot]:
        return [p for p in self.pilots if p.status in OPEN_STATUSES]

    def get_total_pipeline_value(self) -> float:
        """Sum of ARR projections for Active and At Risk pilots."""
        return sum(p.arr_projection or 0 for p in self.open_pilots)

    def get_conversion_rate(self) -> Optional[Dict[str, Any]]:
        closed = [p for p in self.pilots if p.status in CLOSED_STATUSES]
        if not closed:
            return None

        converted = sum(1 for p in self.pilots if p.status == "Converted")
        return {
            "rate": converted / len(closed) * 100,
            "converted": converted,
            "total": len(closed),
            "lost": len(closed) - converted,
        }

    def get_average_time_to_close(self) -> Optional[int]:
        """Average pilot length in days across converted pilots."""
        converted = [p for p in self.pilots if p.status == "Converted"]
        if not converted:
            return None
        total_days = sum((p.end_date - p.start_date).days for p in converted)
        return round_half_up(total_days / len(converted))

    def get_top_performing_industries(self) -> List[Dict[str, Any]]:
        stats: Dict[str, Dict[str, float]] = {}
        for pilot in self.pilots:
            entry = stats.setdefault(
                pilot.industry, {"total": 0, "converted": 0, "active": 0, "total_value": 0}
            )
            entry["total"] += 1
            entry["total_value"] += pilot.arr_projection or 0
            if pilot.status == "Converted":
                entry["converted"] += 1
            elif pilot.status in OPEN_STATUSES:
                entry["active"] += 1

        industries = []
        for industry, entry in stats.items():
            completed = entry["total"] - entry["active"]
            industries.append({
                "industry": industry,
                "conversion_rate": entry["converted"] / completed * 100 if completed > 0 else 0,
                "total_pilots": entry["total"],
                "active_pilots": entry["active"],
                "converted_pilots": entry["converted"],
                "total_value": entry["total_value"],
                "avg_value": round_half_up(entry["total_value"] / entry["total"]),
            })

        return sorted(industries, key=lambda item: item["conversion_rate"], reverse=True)

    def get_risk_distribution(self) -> Dict[str, Dict[str, Any]]:
        """Bucket open pilots by their stored conversion probability."""
        distribution: Dict[str, Dict[str, Any]] = {
            bucket: {"count": 0, "value": 0, "pilots": []}
            for bucket in ("strong", "moderate", "at_risk", "critical")
        }

        for pilot in self.open_pilots:
            probability = _probability(pilot)
            if probability >= 80:
                bucket = "strong"
            elif probability >= 60:
                bucket = "moderate"
            elif probability >= 40:
                bucket = "at_risk"
            else:
                bucket = "critical"

            distribution[bucket]["count"] += 1
            distribution[bucket]["value"] += pilot.arr_projection or 0
            distribution[bucket]["pilots"].append({
                "id": pilot.id,
                "company": pilot.company_name,
                "value": pilot.arr_projection,
                "probability": probability,
            })

        return distribution

    def get_pilots_by_status(self) -> Dict[str, Dict[str, float]]:
        breakdown = {key: {"count": 0, "value": 0} for key in STATUS_KEYS.values()}
        for pilot in self.pilots:
            key = STATUS_KEYS.get(pilot.status)
            if key is None:
                continue
            breakdown[key]["count"] += 1
            breakdown[key]["value"] += pilot.arr_projection or 0
        return breakdown

    def get_criteria_completion_stats(self) -> Dict[str, Any]:
        stats = {
            "total_criteria": 0,
            "achieved": 0,
            "in_progress": 0,
            "at_risk": 0,
            "not_started": 0,
            "avg_completion_rate": 0,
        }
        status_keys = {
            "Achieved": "achieved",
            "In Progress": "in_progress",
            "At Risk": "at_risk",
            "Not Started": "not_started",
        }

        open_pilots = self.open_pilots
        total_completion = 0.0
        for pilot in open_pilots:
            criteria = self.criteria_by_pilot.get(pilot.id, [])
            stats["total_criteria"] += len(criteria)
            for criterion in criteria:
                key = status_keys.get(criterion.status)
                if key:
                    stats[key] += 1

            total_weight = sum(c.weight for c in criteria)
            if total_weight > 0:
                achieved = sum(c.weight for c in criteria if c.status == "Achieved")
                total_completion += achieved / total_weight * 100

        if open_pilots:
            stats["avg_completion_rate"] = round_half_up(total_completion / len(open_pilots))
        return stats

    def get_stakeholder_engagement_overview(self) -> Dict[str, Any]:
        overview: Dict[str, Any] = {"total": 0}
        overview.update({level.lower(): 0 for level in ENGAGEMENT_KEYS})
        attention: List[Dict[str, Any]] = []

        open_pilots = self.open_pilots
        for pilot in open_pilots:
            stakeholders = self.stakeholders_by_pilot.get(pilot.id, [])
            overview["total"] += len(stakeholders)
            for stakeholder in stakeholders:
                if stakeholder.engagement_level in ENGAGEMENT_KEYS:
                    overview[stakeholder.engagement_level.lower()] += 1

            if stakeholders and all(
                s.engagement_level in ("Low", "Unresponsive") for s in stakeholders
            ):
                attention.append({
                    "pilot_id": pilot.id,
                    "company": pilot.company_name,
                    "stakeholder_count": len(stakeholders),
                })

        overview["avg_stakeholders_per_pilot"] = (
            round_half_up(overview["total"] / len(open_pilots) * 10) / 10 if open_pilots else 0
        )
        overview["pilots_needing_attention"] = attention
        return overview

    def get_quarterly_revenue_forecast(self, quarters: int = 4) -> List[Dict[str, Any]]:
        """Probability-weighted ARR of open pilots ending in each coming quarter."""
        forecast = []
        month_index = self.today.month - 1

        for i in range(quarters):
            quarter_start = _month_start(self.today.year, month_index + i * 3)
            quarter_end = _month_start(self.today.year, month_index + (i + 1) * 3) - timedelta(days=1)

            closing = [
                p for p in self.open_pilots
                if quarter_start <= p.end_date <= quarter_end
            ]
            projected = sum((p.arr_projection or 0) * _probability(p) / 100 for p in closing)

            forecast.append({
                "quarter": f"Q{(quarter_start.month - 1) // 3 + 1} {quarter_start.year}",
                "start_date": quarter_start.isoformat(),
                "end_date": quarter_end.isoformat(),
                "pilots_closing": len(closing),
                "projected_revenue": round_half_up(projected),
                "best_case": sum(p.arr_projection or 0 for p in closing),
                "pilots": [
                    {
                        "company": p.company_name,
                        "value": p.arr_projection,
                        "probability": p.conversion_probability,
                    }
                    for p in closing
                ],
            })

        return forecast

    def build_summary(self) -> PortfolioSummary:
        return PortfolioSummary(
            total_pipeline_value=self.get_total_pipeline_value(),
            conversion_rate=self.get_conversion_rate(),
            average_time_to_close=self.get_average_time_to_close(),
            status_breakdown=self.get_pilots_by_status(),
            risk_distribution=self.get_risk_distribution(),
            top_industries=self.get_top_performing_industries(),
            criteria_completion=self.get_criteria_completion_stats(),
            stakeholder_engagement=self.get_stakeholder_engagement_overview(),
            quarterly_forecast=self.get_quarterly_revenue_forecast(),
        )
