"""Financial value calculation service: ROI, payback, expansion and lifetime value."""
import logging
import math
from typing import List, Optional, Tuple

from pilot_manager.models.schemas import (
    AnnualProjection,
    ExpansionAnalysis,
    FinancialSummary,
    FiveYearProjection,
    LifetimeValue,
    PaybackAnalysis,
    Pilot,
    RoiAnalysis,
)
from pilot_manager.services.scoring_config import (
    DEFAULT_FINANCIAL_CONFIG,
    OTHER_INDUSTRY,
    FinancialConfig,
    industry_lookup,
)
from pilot_manager.services.scoring_primitives import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_PILOT_COST = 50000


class ValueCalculator:
    """
    Project the financial value of converting a pilot.

    Three expansion assumptions coexist on purpose and are configured
    separately: the ROI's 3-year LTV uses a flat rate (``config.roi``),
    annual projections use the per-industry ``expansion_rates`` table, and
    the expansion estimate uses ``expansion_year_steps`` with the
    per-industry ``expansion_multipliers``.
    """

    def __init__(self, config: FinancialConfig = DEFAULT_FINANCIAL_CONFIG):
        self.config = config

    def _probability(self, pilot: Pilot) -> float:
        if pilot.conversion_probability is None:
            return self.config.default_conversion_probability
        return pilot.conversion_probability

    def _expected_revenue(self, pilot: Pilot) -> float:
        return (pilot.arr_projection or 0) * self._probability(pilot) / 100

    def calculate_roi(self, pilot: Pilot, pilot_cost: float = DEFAULT_PILOT_COST) -> RoiAnalysis:
        """
        Calculate first-year ROI for a pilot.

        Args:
            pilot: Pilot data
            pilot_cost: Cost to run the pilot

        Returns:
            ROI analysis; ratio fields are None when the pilot cost is not positive
        """
        gross_margin = self.config.gross_margin
        expected_revenue = self._expected_revenue(pilot)
        first_year_profit = expected_revenue * gross_margin

        # 3-year LTV with flat churn and expansion, independent of industry
        growth = (1 - self.config.roi.churn_rate) * (1 + self.config.roi.expansion_rate)
        year2_revenue = expected_revenue * growth
        year3_revenue = year2_revenue * growth
        three_year_ltv = (expected_revenue + year2_revenue + year3_revenue) * gross_margin

        roi: Optional[float] = None
        roi_category: Optional[str] = None
        ltv_to_cac: Optional[float] = None
        if pilot_cost > 0:
            raw_roi = (first_year_profit - pilot_cost) / pilot_cost * 100
            roi = round_half_up(raw_roi * 10) / 10
            roi_category = self.categorize_roi(raw_roi)
            ltv_to_cac = round_half_up(three_year_ltv / pilot_cost * 10) / 10
        else:
            logger.warning("Pilot %s has non-positive pilot cost %s; ROI not calculable", pilot.id, pilot_cost)

        return RoiAnalysis(
            pilot_cost=pilot_cost,
            projected_arr=pilot.arr_projection,
            conversion_probability=pilot.conversion_probability,
            expected_revenue=round_half_up(expected_revenue),
            first_year_profit=round_half_up(first_year_profit),
            roi=roi,
            roi_category=roi_category,
            three_year_ltv=round_half_up(three_year_ltv),
            ltv_to_cac=ltv_to_cac,
            break_even_months=self.calculate_break_even_months(pilot_cost, first_year_profit),
        )

    def project_annual_value(self, pilot: Pilot, years: int = 5) -> List[AnnualProjection]:
        """Year-by-year ARR with industry churn and expansion applied after year one."""
        churn_rate = self.get_churn_rate(pilot.industry)
        expansion_rate = self.get_expansion_rate(pilot.industry)

        projections: List[AnnualProjection] = []
        current_arr = self._expected_revenue(pilot)
        cumulative = 0

        for year in range(1, years + 1):
            if year > 1:
                current_arr = current_arr * (1 - churn_rate) * (1 + expansion_rate)
            # Running total builds on the previous year's rounded figure
            cumulative = round_half_up(cumulative + current_arr)
            projections.append(AnnualProjection(
                year=year,
                arr=round_half_up(current_arr),
                cumulative_revenue=cumulative,
                churn_adjusted_retention=round_half_up((1 - churn_rate) ** (year - 1) * 100),
            ))

        return projections

    def calculate_payback_period(
        self, pilot: Pilot, pilot_cost: float = DEFAULT_PILOT_COST
    ) -> PaybackAnalysis:
        """Months of probability-weighted gross profit needed to recover the pilot cost."""
        monthly_profit = self._expected_revenue(pilot) / 12 * self.config.gross_margin

        if monthly_profit <= 0:
            return PaybackAnalysis(message="Unable to calculate payback - no projected profit")

        payback_months = max(0, math.ceil(pilot_cost / monthly_profit))
        category, message = self.categorize_payback(payback_months)

        return PaybackAnalysis(
            payback_months=payback_months,
            payback_years=round_half_up(payback_months / 12 * 10) / 10,
            monthly_profit=round_half_up(monthly_profit),
            payback_category=category,
            message=message,
        )

    def estimate_expansion_potential(self, pilot: Pilot) -> ExpansionAnalysis:
        """Estimate total account value from the industry expansion multiplier."""
        base_arr = pilot.arr_projection or 0
        industry = pilot.industry or OTHER_INDUSTRY
        multiplier = industry_lookup(self.config.expansion_multipliers, industry)

        years = [round_half_up(base_arr)]
        for step in self.config.expansion_year_steps:
            years.append(round_half_up(years[-1] * (1 + step)))
        years = (years + [0] * 5)[:5]

        return ExpansionAnalysis(
            initial_arr=base_arr,
            industry=industry,
            expansion_multiplier=multiplier,
            estimated_total_value=round_half_up(base_arr * multiplier),
            estimated_expansion=round_half_up(base_arr * (multiplier - 1)),
            five_year_projection=FiveYearProjection(
                year1=years[0],
                year2=years[1],
                year3=years[2],
                year4=years[3],
                year5=years[4],
                total=sum(years),
            ),
            expansion_drivers=list(industry_lookup(self.config.expansion_drivers, industry)),
            recommendation=self.get_expansion_recommendation(multiplier),
        )

    def calculate_customer_lifetime_value(
        self, pilot: Pilot, avg_customer_life_years: int = 5
    ) -> LifetimeValue:
        """
        Customer lifetime value as a retention/churn perpetuity.

        ``avg_customer_life_years`` is reported back but does not bound the
        calculation.
        """
        annual_revenue = pilot.arr_projection or 0
        gross_margin = self.config.gross_margin
        churn_rate = self.get_churn_rate(pilot.industry)
        retention_rate = 1 - churn_rate

        lifetime_value: Optional[int] = None
        if churn_rate > 0:
            lifetime_value = round_half_up(annual_revenue * gross_margin * (retention_rate / churn_rate))
        else:
            logger.warning("Zero churn rate for industry %r; lifetime value not calculable", pilot.industry)

        return LifetimeValue(
            lifetime_value=lifetime_value,
            avg_life_years=avg_customer_life_years,
            annual_revenue=annual_revenue,
            gross_margin=gross_margin * 100,
            churn_rate=churn_rate * 100,
            retention_rate=retention_rate * 100,
        )

    def build_financial_summary(
        self,
        pilot: Pilot,
        pilot_cost: float = DEFAULT_PILOT_COST,
        years: int = 5,
        avg_customer_life_years: int = 5,
    ) -> FinancialSummary:
        """All five projections for one pilot."""
        return FinancialSummary(
            pilot_id=pilot.id,
            company_name=pilot.company_name,
            arr_projection=pilot.arr_projection,
            roi=self.calculate_roi(pilot, pilot_cost),
            annual_projections=self.project_annual_value(pilot, years),
            payback=self.calculate_payback_period(pilot, pilot_cost),
            expansion=self.estimate_expansion_potential(pilot),
            lifetime_value=self.calculate_customer_lifetime_value(pilot, avg_customer_life_years),
        )

    # Helper methods

    def categorize_roi(self, roi: float) -> str:
        for minimum, label in self.config.roi_categories:
            if roi >= minimum:
                return label
        return self.config.roi_floor_category

    def categorize_payback(self, months: int) -> Tuple[str, str]:
        for maximum, label, message in self.config.payback_categories:
            if months <= maximum:
                return label, message
        return self.config.payback_floor_category

    @staticmethod
    def calculate_break_even_months(cost: float, annual_profit: float) -> Optional[int]:
        if annual_profit <= 0:
            return None
        return math.ceil(cost / annual_profit * 12)

    def get_churn_rate(self, industry: str) -> float:
        return industry_lookup(self.config.churn_rates, industry)

    def get_expansion_rate(self, industry: str) -> float:
        return industry_lookup(self.config.expansion_rates, industry)

    def get_expansion_recommendation(self, multiplier: float) -> str:
        for minimum, recommendation in self.config.expansion_recommendations:
            if multiplier >= minimum:
                return recommendation
        return self.config.expansion_floor_recommendation
