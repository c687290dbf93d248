"""
Financial calculation API endpoints.

These endpoints accept calculator inputs and return calculated results.
Nothing is persisted; every request is computed on demand.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Dict, List, Optional, Union
from datetime import date

from realtor_tools.calculations import amortization, cma, investment, net_sheet
from realtor_tools.calculations import prequalification
from realtor_tools.calculations.common import CalculatorConfig, InvalidInput, Ratio
from realtor_tools.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_calculator_config() -> CalculatorConfig:
    """Dependency providing the configured calculator defaults."""
    return get_settings().calculator_config()


def _bad_request(name: str, error: InvalidInput) -> HTTPException:
    logger.warning(f"Rejected {name} input ({error.field}): {error}")
    return HTTPException(status_code=400, detail=str(error))


class RatioOut(BaseModel):
    """A ratio that may be not applicable (zero denominator)."""

    applicable: bool
    value: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def from_ratio(cls, ratio: Ratio) -> "RatioOut":
        if ratio.applicable:
            return cls(applicable=True, value=ratio.amount)
        return cls(applicable=False, reason=ratio.reason)


# === Amortization ===


class AmortizationRequest(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_interest_rate_percent: float
    term_months: int = 360
    down_payment: float = 0.0
    first_payment_date: Optional[date] = None
    include_schedule: bool = True


class AmortizationRowOut(BaseModel):
    period: int
    payment_date: Optional[date] = None
    payment: float
    principal: float
    interest: float
    remaining_balance: float


class AmortizationResponse(BaseModel):
    monthly_payment: float
    total_interest: float
    total_paid: float
    total_principal: float
    schedule: List[AmortizationRowOut] = []


@router.post("/amortization", response_model=AmortizationResponse)
async def calculate_amortization(
    inputs: AmortizationRequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Generate loan payment and amortization schedule."""
    try:
        loan = amortization.LoanInput(
            principal=inputs.principal,
            annual_interest_rate_percent=inputs.annual_interest_rate_percent,
            term_months=inputs.term_months,
            down_payment=inputs.down_payment,
        )
        result = amortization.amortize_loan(loan, config, inputs.first_payment_date)
    except InvalidInput as e:
        raise _bad_request("amortization", e)

    schedule = []
    if inputs.include_schedule:
        schedule = [
            AmortizationRowOut(
                period=row.period,
                payment_date=row.payment_date,
                payment=round(row.payment, 2),
                principal=round(row.principal, 2),
                interest=round(row.interest, 2),
                remaining_balance=round(row.remaining_balance, 2),
            )
            for row in result.schedule
        ]

    logger.debug(f"Amortized {inputs.principal} over {inputs.term_months} months")

    return AmortizationResponse(
        monthly_payment=round(result.monthly_payment, 2),
        total_interest=round(result.total_interest, 2),
        total_paid=round(result.total_paid, 2),
        total_principal=round(sum(row.principal for row in result.schedule), 2),
        schedule=schedule,
    )


# === Prequalification ===


class PrequalRequest(BaseModel):
    """Input for mortgage prequalification."""

    gross_monthly_income: float
    monthly_debts: float = 0.0
    down_payment_amount: float = 0.0
    interest_rate_percent: float
    loan_term_months: int = 360
    taxes_and_insurance_monthly: float = 0.0
    property_tax_rate_percent: float = 0.0
    insurance_rate_percent: float = 0.0
    pmi_rate_percent: float = 0.0
    hoa_monthly: float = 0.0
    closing_cost_percent: float = 3.0
    min_down_payment_percent: float = 5.0
    front_end_ratio_cap_percent: Optional[float] = None
    back_end_ratio_cap_percent: Optional[float] = None

    def to_input(self) -> prequalification.PrequalInput:
        return prequalification.PrequalInput(**self.model_dump())


class PaymentBreakdownOut(BaseModel):
    principal_and_interest: float
    property_taxes: float
    homeowners_insurance: float
    taxes_and_insurance_estimate: float
    mortgage_insurance: float
    hoa_fees: float
    total_monthly_payment: float


class CashToCloseOut(BaseModel):
    down_payment_required: float
    down_payment_percentage: float
    closing_costs: float
    total_cash_needed: float
    has_enough_cash: bool
    cash_shortfall: float
    suggested_closing_cost_reduction: float
    remaining_deficiency: float


class PrequalResponse(BaseModel):
    program_name: Optional[str] = None
    max_monthly_payment: float
    max_loan_amount: float
    max_purchase_price: float
    front_end_limit: float
    back_end_limit: float
    available_for_principal_and_interest: float
    qualifies: bool
    housing_ratio_percent: float
    total_ratio_percent: float
    payment_breakdown: PaymentBreakdownOut
    cash_to_close: CashToCloseOut

    @classmethod
    def from_result(cls, result: prequalification.PrequalResult) -> "PrequalResponse":
        breakdown = result.payment_breakdown
        cash = result.cash_to_close
        return cls(
            program_name=result.program_name,
            max_monthly_payment=round(result.max_monthly_payment, 2),
            max_loan_amount=round(result.max_loan_amount, 2),
            max_purchase_price=round(result.max_purchase_price, 2),
            front_end_limit=round(result.front_end_limit, 2),
            back_end_limit=round(result.back_end_limit, 2),
            available_for_principal_and_interest=round(
                result.available_for_principal_and_interest, 2
            ),
            qualifies=result.qualifies,
            housing_ratio_percent=round(result.housing_ratio_percent, 2),
            total_ratio_percent=round(result.total_ratio_percent, 2),
            payment_breakdown=PaymentBreakdownOut(
                principal_and_interest=round(breakdown.principal_and_interest, 2),
                property_taxes=round(breakdown.property_taxes, 2),
                homeowners_insurance=round(breakdown.homeowners_insurance, 2),
                taxes_and_insurance_estimate=round(
                    breakdown.taxes_and_insurance_estimate, 2
                ),
                mortgage_insurance=round(breakdown.mortgage_insurance, 2),
                hoa_fees=round(breakdown.hoa_fees, 2),
                total_monthly_payment=round(breakdown.total_monthly_payment, 2),
            ),
            cash_to_close=CashToCloseOut(
                down_payment_required=round(cash.down_payment_required, 2),
                down_payment_percentage=round(cash.down_payment_percentage, 2),
                closing_costs=round(cash.closing_costs, 2),
                total_cash_needed=round(cash.total_cash_needed, 2),
                has_enough_cash=cash.has_enough_cash,
                cash_shortfall=round(cash.cash_shortfall, 2),
                suggested_closing_cost_reduction=round(
                    cash.suggested_closing_cost_reduction, 2
                ),
                remaining_deficiency=round(cash.remaining_deficiency, 2),
            ),
        )


@router.post("/prequalification", response_model=PrequalResponse)
async def calculate_prequalification(
    inputs: PrequalRequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Maximum affordable loan and purchase price under DTI caps."""
    try:
        result = prequalification.prequalify(inputs.to_input(), config)
    except InvalidInput as e:
        raise _bad_request("prequalification", e)

    return PrequalResponse.from_result(result)


@router.post("/prequalification/programs", response_model=List[PrequalResponse])
async def calculate_prequalification_programs(
    inputs: PrequalRequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Prequalify against each standard loan program."""
    try:
        results = prequalification.prequalify_programs(inputs.to_input(), config=config)
    except InvalidInput as e:
        raise _bad_request("prequalification", e)

    return [PrequalResponse.from_result(r) for r in results]


# === Investment analysis ===


class LoanIn(BaseModel):
    principal: float
    annual_interest_rate_percent: float
    term_months: int = 360


class UnitIn(BaseModel):
    monthly_rent: float
    monthly_expenses: Union[float, Dict[str, float]] = 0.0
    vacancy_rate_percent: float = 0.0
    other_monthly_income: float = 0.0
    label: Optional[str] = None
    potential_rent: Optional[float] = None
    repair_costs: float = 0.0
    projected_vacancy_rate_percent: Optional[float] = None
    projected_monthly_expenses: Optional[Union[float, Dict[str, float]]] = None


class OfferTargetsIn(BaseModel):
    target_cap_rate_percent: float = 8.0
    target_cash_on_cash_percent: float = 12.0
    offer_discount_percent: float = 10.0


class InvestmentRequest(BaseModel):
    """Input for rental investment analysis."""

    purchase_price: float
    down_payment: float
    units: List[UnitIn]
    loan: Optional[LoanIn] = None
    projection_years: int = 5
    annual_rent_growth_percent: float = 0.0
    annual_expense_growth_percent: float = 0.0
    annual_appreciation_percent: float = 3.0
    closing_costs: float = 0.0
    renovation_costs: float = 0.0
    management_fee_percent: float = 0.0
    projected_management_fee_percent: Optional[float] = None
    targets: Optional[OfferTargetsIn] = None

    def to_input(self) -> investment.InvestmentInput:
        loan = None
        if self.loan is not None:
            loan = amortization.LoanInput(
                principal=self.loan.principal,
                annual_interest_rate_percent=self.loan.annual_interest_rate_percent,
                term_months=self.loan.term_months,
            )
        return investment.InvestmentInput(
            purchase_price=self.purchase_price,
            down_payment=self.down_payment,
            units=[investment.InvestmentUnit(**unit.model_dump()) for unit in self.units],
            loan=loan,
            projection_years=self.projection_years,
            annual_rent_growth_percent=self.annual_rent_growth_percent,
            annual_expense_growth_percent=self.annual_expense_growth_percent,
            annual_appreciation_percent=self.annual_appreciation_percent,
            closing_costs=self.closing_costs,
            renovation_costs=self.renovation_costs,
            management_fee_percent=self.management_fee_percent,
            projected_management_fee_percent=self.projected_management_fee_percent,
        )


class UnitAnalysisOut(BaseModel):
    label: str
    gross_monthly_income: float
    effective_monthly_income: float
    management_fee_monthly: float
    operating_expenses_monthly: float
    annual_noi: float

    @classmethod
    def from_analysis(cls, unit: investment.UnitAnalysis) -> "UnitAnalysisOut":
        return cls(
            label=unit.label,
            gross_monthly_income=round(unit.gross_monthly_income, 2),
            effective_monthly_income=round(unit.effective_monthly_income, 2),
            management_fee_monthly=round(unit.management_fee_monthly, 2),
            operating_expenses_monthly=round(unit.operating_expenses_monthly, 2),
            annual_noi=round(unit.annual_noi, 2),
        )


class ProjectionYearOut(BaseModel):
    year: int
    effective_income: float
    management_fees: float
    operating_expenses: float
    noi: float
    debt_service: float
    cash_flow: float
    property_value: float
    loan_balance: float
    equity: float
    cap_rate: RatioOut
    cash_on_cash_return: RatioOut


class OfferTargetsOut(BaseModel):
    cap_rate_based_price: float
    cash_on_cash_based_price: float
    recommended_purchase_price: float
    max_offer_price: float


class ValueAddOut(BaseModel):
    current_noi: float
    improved_noi: float
    noi_increase: float
    total_income_increase: float
    total_repair_costs: float
    improved_property_value: float
    current_cap_rate: RatioOut
    improved_cap_rate: RatioOut
    value_gain: RatioOut
    units: List[UnitAnalysisOut]

    @classmethod
    def from_analysis(cls, analysis: investment.ValueAddAnalysis) -> "ValueAddOut":
        return cls(
            current_noi=round(analysis.current_noi, 2),
            improved_noi=round(analysis.improved_noi, 2),
            noi_increase=round(analysis.noi_increase, 2),
            total_income_increase=round(analysis.total_income_increase, 2),
            total_repair_costs=round(analysis.total_repair_costs, 2),
            improved_property_value=round(analysis.improved_property_value, 2),
            current_cap_rate=RatioOut.from_ratio(analysis.current_cap_rate),
            improved_cap_rate=RatioOut.from_ratio(analysis.improved_cap_rate),
            value_gain=RatioOut.from_ratio(analysis.value_gain),
            units=[UnitAnalysisOut.from_analysis(u) for u in analysis.units],
        )


class InvestmentResponse(BaseModel):
    units: List[UnitAnalysisOut]
    noi: float
    monthly_debt_service: float
    annual_debt_service: float
    annual_cash_flow: float
    cash_invested: float
    cap_rate: RatioOut
    cash_on_cash_return: RatioOut
    dscr: RatioOut
    hold_period_irr: RatioOut
    equity_multiple: RatioOut
    projections: List[ProjectionYearOut]
    value_add: ValueAddOut
    expense_breakdown: Dict[str, float]
    offer_targets: Optional[OfferTargetsOut] = None


@router.post("/investment", response_model=InvestmentResponse)
async def calculate_investment(
    inputs: InvestmentRequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Rental cash flow, return ratios and hold projection."""
    analysis_input = inputs.to_input()
    try:
        result = investment.analyze_investment(analysis_input, config)
        targets = None
        if inputs.targets is not None:
            targets = investment.offer_targets(
                result,
                target_cap_rate_percent=inputs.targets.target_cap_rate_percent,
                target_cash_on_cash_percent=inputs.targets.target_cash_on_cash_percent,
                offer_discount_percent=inputs.targets.offer_discount_percent,
            )
    except InvalidInput as e:
        raise _bad_request("investment", e)

    logger.debug(
        f"Analyzed {len(inputs.units)} units over {inputs.projection_years} years"
    )

    return InvestmentResponse(
        units=[UnitAnalysisOut.from_analysis(u) for u in result.units],
        noi=round(result.noi, 2),
        monthly_debt_service=round(result.monthly_debt_service, 2),
        annual_debt_service=round(result.annual_debt_service, 2),
        annual_cash_flow=round(result.annual_cash_flow, 2),
        cash_invested=round(result.cash_invested, 2),
        cap_rate=RatioOut.from_ratio(result.cap_rate),
        cash_on_cash_return=RatioOut.from_ratio(result.cash_on_cash_return),
        dscr=RatioOut.from_ratio(result.dscr),
        hold_period_irr=RatioOut.from_ratio(result.hold_period_irr),
        equity_multiple=RatioOut.from_ratio(result.equity_multiple),
        value_add=ValueAddOut.from_analysis(result.value_add),
        projections=[
            ProjectionYearOut(
                year=p.year,
                effective_income=round(p.effective_income, 2),
                management_fees=round(p.management_fees, 2),
                operating_expenses=round(p.operating_expenses, 2),
                noi=round(p.noi, 2),
                debt_service=round(p.debt_service, 2),
                cash_flow=round(p.cash_flow, 2),
                property_value=round(p.property_value, 2),
                loan_balance=round(p.loan_balance, 2),
                equity=round(p.equity, 2),
                cap_rate=RatioOut.from_ratio(p.cap_rate),
                cash_on_cash_return=RatioOut.from_ratio(p.cash_on_cash_return),
            )
            for p in result.projections
        ],
        expense_breakdown={
            label: round(amount, 2)
            for label, amount in investment.expense_breakdown(
                analysis_input.units
            ).items()
        },
        offer_targets=(
            OfferTargetsOut(
                cap_rate_based_price=round(targets.cap_rate_based_price, 2),
                cash_on_cash_based_price=round(targets.cash_on_cash_based_price, 2),
                recommended_purchase_price=round(targets.recommended_purchase_price, 2),
                max_offer_price=round(targets.max_offer_price, 2),
            )
            if targets
            else None
        ),
    )


# === CMA ===


class ComparableIn(BaseModel):
    sale_price: float
    square_footage: float
    sale_date: Optional[date] = None
    distance_miles: Optional[float] = None
    adjustment_factor: Optional[float] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    days_on_market: Optional[int] = None
    address: Optional[str] = None


class CMARequest(BaseModel):
    """Input for a quick comparative market analysis."""

    square_footage: float
    comparables: List[ComparableIn]
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    as_of: Optional[date] = None
    band_method: str = "fixed"

    def to_input(self) -> cma.CMAInput:
        return cma.CMAInput(
            square_footage=self.square_footage,
            comparables=[cma.Comparable(**c.model_dump()) for c in self.comparables],
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            as_of=self.as_of,
            band_method=self.band_method,
        )


class ComparableOut(BaseModel):
    address: Optional[str] = None
    adjusted_price: float
    price_per_square_foot: float
    weight: float


class CMAResponse(BaseModel):
    estimated_value: float
    value_range_low: float
    value_range_high: float
    price_per_square_foot_used: float
    band_percent: float
    comparables: List[ComparableOut]
    average_days_on_market: Optional[float] = None
    absorption_months: Optional[float] = None

    @classmethod
    def from_result(cls, result: cma.CMAResult) -> "CMAResponse":
        return cls(
            estimated_value=round(result.estimated_value, 2),
            value_range_low=round(result.value_range_low, 2),
            value_range_high=round(result.value_range_high, 2),
            price_per_square_foot_used=round(result.price_per_square_foot_used, 2),
            band_percent=round(result.band_percent, 2),
            comparables=[
                ComparableOut(
                    address=c.address,
                    adjusted_price=round(c.adjusted_price, 2),
                    price_per_square_foot=round(c.price_per_square_foot, 2),
                    weight=round(c.weight, 4),
                )
                for c in result.comparables
            ],
            average_days_on_market=result.average_days_on_market,
            absorption_months=(
                round(result.absorption_months, 1)
                if result.absorption_months is not None
                else None
            ),
        )


@router.post("/cma", response_model=CMAResponse)
async def calculate_cma(
    inputs: CMARequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Estimate value and range from comparable sales."""
    try:
        result = cma.estimate_value(inputs.to_input(), config)
    except InvalidInput as e:
        raise _bad_request("cma", e)

    return CMAResponse.from_result(result)


# === Seller net sheet ===


class NetSheetRequest(BaseModel):
    """
    Input for a seller net sheet.

    Either ``sale_price`` or an ``estimate`` (CMA input whose estimated
    value becomes the sale price) must be supplied.
    """

    sale_price: Optional[float] = None
    mortgage_payoff: float = 0.0
    commission_rate_percent: float = 6.0
    closing_costs: Dict[str, float] = {}
    location: Optional[str] = None
    estimate: Optional[CMARequest] = None


class NetSheetLineItemOut(BaseModel):
    label: str
    amount: float
    percent_of_sale: float
    source: str


class NetSheetResponse(BaseModel):
    sale_price: float
    mortgage_payoff: float
    commission_amount: float
    total_costs: float
    net_proceeds: float
    line_items: List[NetSheetLineItemOut]
    location_code: Optional[str] = None
    location_name: Optional[str] = None
    estimate: Optional[CMAResponse] = None


@router.post("/net-sheet", response_model=NetSheetResponse)
async def calculate_net_sheet(
    inputs: NetSheetRequest,
    config: CalculatorConfig = Depends(get_calculator_config),
):
    """Estimated seller net proceeds."""
    try:
        estimate = None
        sale_price = inputs.sale_price
        if sale_price is None:
            if inputs.estimate is None:
                raise InvalidInput(
                    "sale_price or estimate is required", "sale_price"
                )
            estimate = cma.estimate_value(inputs.estimate.to_input(), config)
            sale_price = estimate.estimated_value

        result = net_sheet.compute_net_sheet(
            net_sheet.NetSheetInput(
                sale_price=sale_price,
                mortgage_payoff=inputs.mortgage_payoff,
                commission_rate_percent=inputs.commission_rate_percent,
                closing_costs=inputs.closing_costs,
                location=inputs.location,
            )
        )
    except InvalidInput as e:
        raise _bad_request("net sheet", e)

    return NetSheetResponse(
        sale_price=round(result.sale_price, 2),
        mortgage_payoff=round(result.mortgage_payoff, 2),
        commission_amount=round(result.commission_amount, 2),
        total_costs=round(result.total_costs, 2),
        net_proceeds=round(result.net_proceeds, 2),
        line_items=[
            NetSheetLineItemOut(
                label=item.label,
                amount=round(item.amount, 2),
                percent_of_sale=round(item.percent_of_sale, 2),
                source=item.source,
            )
            for item in result.line_items
        ],
        location_code=result.location_code,
        location_name=result.location_name,
        estimate=CMAResponse.from_result(estimate) if estimate else None,
    )
