"""
Rental Investment Analysis

Per-unit and aggregate NOI, cap rate, cash-on-cash return, DSCR and a
yearly hold projection with independent rent and expense growth.

The headline metrics describe the property as it operates today. Units may
also carry an improved scenario (potential rent after repairs, projected
vacancy and expenses); the value-add analysis compares the two.

Ratios are returned as Value/NotApplicable; a zero denominator never
produces Infinity or NaN.
"""

from typing import Dict, List, Mapping, Optional, Union
from dataclasses import dataclass, field, replace

from realtor_tools.calculations.amortization import (
    AmortizationResult,
    LoanInput,
    amortize_loan,
    calculate_debt_service,
    financed_amount,
    remaining_balance,
    validate_down_payment,
)
from realtor_tools.calculations.common import (
    CalculatorConfig,
    DEFAULT_CONFIG,
    InvalidInput,
    NotApplicable,
    Ratio,
    Value,
    require_non_negative,
    require_percent,
    safe_ratio,
)
from realtor_tools.calculations.irr import calculate_irr, calculate_multiple


@dataclass
class InvestmentUnit:
    """A rentable unit; expenses are a monthly total or itemized by label."""

    monthly_rent: float
    monthly_expenses: Union[float, Mapping[str, float]] = 0.0
    vacancy_rate_percent: float = 0.0
    other_monthly_income: float = 0.0
    label: Optional[str] = None
    # Improved scenario; None keeps the current figure
    potential_rent: Optional[float] = None
    repair_costs: float = 0.0
    projected_vacancy_rate_percent: Optional[float] = None
    projected_monthly_expenses: Optional[Union[float, Mapping[str, float]]] = None

    def expense_total(self) -> float:
        return _expense_sum(self.monthly_expenses)

    def improved(self) -> "InvestmentUnit":
        """The unit as operated after repairs."""
        return replace(
            self,
            monthly_rent=_current_if_none(self.potential_rent, self.monthly_rent),
            vacancy_rate_percent=_current_if_none(
                self.projected_vacancy_rate_percent, self.vacancy_rate_percent
            ),
            monthly_expenses=_current_if_none(
                self.projected_monthly_expenses, self.monthly_expenses
            ),
        )


def _expense_sum(expenses: Union[float, Mapping[str, float]]) -> float:
    if isinstance(expenses, Mapping):
        return sum(expenses.values())
    return expenses


def _current_if_none(projected, current):
    return current if projected is None else projected


@dataclass
class InvestmentInput:
    purchase_price: float
    down_payment: float
    units: List[InvestmentUnit]
    loan: Optional[LoanInput] = None
    projection_years: int = 5
    annual_rent_growth_percent: float = 0.0
    annual_expense_growth_percent: float = 0.0
    annual_appreciation_percent: float = 3.0
    closing_costs: float = 0.0
    renovation_costs: float = 0.0
    management_fee_percent: float = 0.0
    projected_management_fee_percent: Optional[float] = None


@dataclass
class UnitAnalysis:
    label: str
    gross_monthly_income: float
    effective_monthly_income: float
    management_fee_monthly: float
    operating_expenses_monthly: float
    annual_noi: float


@dataclass
class ProjectionYear:
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
    cap_rate: Ratio
    cash_on_cash_return: Ratio


@dataclass
class ValueAddAnalysis:
    """Current operation against the improved scenario."""

    current_noi: float
    improved_noi: float
    noi_increase: float
    total_income_increase: float  # annual gross rent
    total_repair_costs: float
    improved_property_value: float
    current_cap_rate: Ratio
    improved_cap_rate: Ratio
    value_gain: Ratio  # NOI increase capitalized at the current cap rate
    units: List[UnitAnalysis] = field(default_factory=list)


@dataclass
class InvestmentResult:
    units: List[UnitAnalysis]
    noi: float
    monthly_debt_service: float
    annual_debt_service: float
    annual_cash_flow: float
    cash_invested: float
    cap_rate: Ratio
    cash_on_cash_return: Ratio
    dscr: Ratio
    hold_period_irr: Ratio
    equity_multiple: Ratio
    value_add: ValueAddAnalysis
    projections: List[ProjectionYear] = field(default_factory=list)


@dataclass
class OfferTargets:
    cap_rate_based_price: float
    cash_on_cash_based_price: float
    recommended_purchase_price: float
    max_offer_price: float


def _validate_expenses(expenses: Union[float, Mapping[str, float]], name: str) -> None:
    if isinstance(expenses, Mapping):
        for amount in expenses.values():
            require_non_negative(amount, name)
    else:
        require_non_negative(expenses, name)


def _validate(inputs: InvestmentInput, config: CalculatorConfig) -> None:
    require_non_negative(inputs.purchase_price, "purchase_price")
    validate_down_payment(inputs.down_payment, inputs.purchase_price)
    require_non_negative(inputs.closing_costs, "closing_costs")
    require_non_negative(inputs.renovation_costs, "renovation_costs")
    require_percent(inputs.management_fee_percent, "management_fee_percent")

    if not inputs.units:
        raise InvalidInput("At least one unit is required", "units")

    if inputs.projected_management_fee_percent is not None:
        require_percent(
            inputs.projected_management_fee_percent, "projected_management_fee_percent"
        )

    for unit in inputs.units:
        require_non_negative(unit.monthly_rent, "monthly_rent")
        require_non_negative(unit.other_monthly_income, "other_monthly_income")
        require_percent(unit.vacancy_rate_percent, "vacancy_rate_percent")
        require_non_negative(unit.repair_costs, "repair_costs")
        _validate_expenses(unit.monthly_expenses, "monthly_expenses")
        if unit.potential_rent is not None:
            require_non_negative(unit.potential_rent, "potential_rent")
        if unit.projected_vacancy_rate_percent is not None:
            require_percent(
                unit.projected_vacancy_rate_percent, "projected_vacancy_rate_percent"
            )
        if unit.projected_monthly_expenses is not None:
            _validate_expenses(
                unit.projected_monthly_expenses, "projected_monthly_expenses"
            )

    if not 1 <= inputs.projection_years <= config.max_projection_years:
        raise InvalidInput(
            f"projection_years must be between 1 and {config.max_projection_years}",
            "projection_years",
        )

    for rate, name in (
        (inputs.annual_rent_growth_percent, "annual_rent_growth_percent"),
        (inputs.annual_expense_growth_percent, "annual_expense_growth_percent"),
        (inputs.annual_appreciation_percent, "annual_appreciation_percent"),
    ):
        if rate <= -100:
            raise InvalidInput(f"{name} must be greater than -100", name)


def analyze_unit(unit: InvestmentUnit, management_fee_percent: float, index: int) -> UnitAnalysis:
    """Monthly income and expenses for one unit, with annual NOI."""
    gross = unit.monthly_rent + unit.other_monthly_income
    effective = gross * (1 - unit.vacancy_rate_percent / 100)
    management = effective * management_fee_percent / 100
    expenses = unit.expense_total()

    return UnitAnalysis(
        label=unit.label or f"Unit {index}",
        gross_monthly_income=gross,
        effective_monthly_income=effective,
        management_fee_monthly=management,
        operating_expenses_monthly=expenses,
        annual_noi=(effective - management - expenses) * 12,
    )


def _financing(
    inputs: InvestmentInput, config: CalculatorConfig
) -> Optional[AmortizationResult]:
    """Amortize the loan, or None for an all-cash purchase."""
    if inputs.loan is None:
        return None
    validate_down_payment(inputs.loan.down_payment, inputs.loan.principal)
    if financed_amount(inputs.loan) == 0:
        return None
    return amortize_loan(inputs.loan, config)


def _loan_balance(loan: Optional[LoanInput], period: int) -> float:
    if loan is None or financed_amount(loan) == 0:
        return 0.0
    return remaining_balance(
        financed_amount(loan),
        loan.annual_interest_rate_percent,
        loan.term_months,
        period,
    )


def project_years(
    inputs: InvestmentInput,
    unit_results: List[UnitAnalysis],
    amortization: Optional[AmortizationResult],
    cash_invested: float,
) -> List[ProjectionYear]:
    """
    Yearly hold projection.

    Income, expenses and property value compound annually and independently
    from the analysed year, so year k carries ``(1 + growth)^k`` of each.
    Debt service and loan balance follow the amortization schedule.
    """
    base_income = sum(u.effective_monthly_income for u in unit_results) * 12
    base_expenses = sum(u.operating_expenses_monthly for u in unit_results) * 12
    rent_growth = inputs.annual_rent_growth_percent / 100
    expense_growth = inputs.annual_expense_growth_percent / 100
    appreciation = inputs.annual_appreciation_percent / 100
    management_rate = inputs.management_fee_percent / 100

    projections = []
    for year in range(1, inputs.projection_years + 1):
        income = base_income * (1 + rent_growth) ** year
        management = income * management_rate
        expenses = base_expenses * (1 + expense_growth) ** year
        noi = income - management - expenses

        if amortization is None:
            debt_service = 0.0
        else:
            debt_service = calculate_debt_service(
                amortization.schedule, (year - 1) * 12 + 1, year * 12
            )
        cash_flow = noi - debt_service

        property_value = inputs.purchase_price * (1 + appreciation) ** year
        loan_balance = _loan_balance(inputs.loan, year * 12)

        projections.append(
            ProjectionYear(
                year=year,
                effective_income=income,
                management_fees=management,
                operating_expenses=expenses,
                noi=noi,
                debt_service=debt_service,
                cash_flow=cash_flow,
                property_value=property_value,
                loan_balance=loan_balance,
                equity=property_value - loan_balance,
                cap_rate=safe_ratio(noi, property_value, "Property value is zero"),
                cash_on_cash_return=safe_ratio(
                    cash_flow, cash_invested, "No cash invested"
                ),
            )
        )
    return projections


def _hold_period_returns(cash_invested: float, projections: List[ProjectionYear]):
    """IRR and equity multiple of buying, holding and selling at projected value."""
    if cash_invested == 0:
        reason = "No cash invested"
        return NotApplicable(reason), NotApplicable(reason)

    flows = [-cash_invested] + [p.cash_flow for p in projections]
    flows[-1] += projections[-1].equity

    try:
        irr_ratio: Ratio = Value(calculate_irr(flows))
    except ValueError as e:
        irr_ratio = NotApplicable(str(e))

    try:
        multiple_ratio: Ratio = Value(calculate_multiple(flows))
    except ValueError as e:
        multiple_ratio = NotApplicable(str(e))

    return irr_ratio, multiple_ratio


def value_add_analysis(
    inputs: InvestmentInput, current_units: List[UnitAnalysis]
) -> ValueAddAnalysis:
    """
    Compare current operation with the improved scenario.

    The improved cap rate is measured on the purchase price plus unit repair
    costs. Value gain capitalizes the NOI increase at the current cap rate,
    and is not applicable unless the current cap rate is positive.
    """
    management_percent = _current_if_none(
        inputs.projected_management_fee_percent, inputs.management_fee_percent
    )
    improved_units = [
        analyze_unit(unit.improved(), management_percent, i)
        for i, unit in enumerate(inputs.units, start=1)
    ]

    current_noi = sum(u.annual_noi for u in current_units)
    improved_noi = sum(u.annual_noi for u in improved_units)
    noi_increase = improved_noi - current_noi

    total_repairs = sum(unit.repair_costs for unit in inputs.units)
    improved_value = inputs.purchase_price + total_repairs
    income_increase = sum(
        (unit.improved().monthly_rent - unit.monthly_rent) * 12
        for unit in inputs.units
    )

    current_cap_rate = safe_ratio(
        current_noi, inputs.purchase_price, "Purchase price is zero"
    )
    if current_cap_rate.applicable and current_cap_rate.amount > 0:
        value_gain: Ratio = Value(noi_increase / current_cap_rate.amount)
    else:
        value_gain = NotApplicable("Current cap rate is not positive")

    return ValueAddAnalysis(
        current_noi=current_noi,
        improved_noi=improved_noi,
        noi_increase=noi_increase,
        total_income_increase=income_increase,
        total_repair_costs=total_repairs,
        improved_property_value=improved_value,
        current_cap_rate=current_cap_rate,
        improved_cap_rate=safe_ratio(
            improved_noi, improved_value, "Improved property value is zero"
        ),
        value_gain=value_gain,
        units=improved_units,
    )


def analyze_investment(
    inputs: InvestmentInput, config: Optional[CalculatorConfig] = None
) -> InvestmentResult:
    """
    Analyze a rental property purchase.

    Args:
        inputs: Property, financing, unit and growth assumptions
        config: Calculator configuration (schedule and projection bounds)

    Returns:
        InvestmentResult; ratio fields are NotApplicable when their
        denominator (price, debt service, cash invested) is zero

    Raises:
        InvalidInput: For negative amounts, a down payment above the price,
            no units, out-of-range percentages or projection length, or an
            invalid loan
    """
    config = config or DEFAULT_CONFIG
    _validate(inputs, config)

    unit_results = [
        analyze_unit(unit, inputs.management_fee_percent, i)
        for i, unit in enumerate(inputs.units, start=1)
    ]
    noi = sum(u.annual_noi for u in unit_results)

    amortization = _financing(inputs, config)
    monthly_debt_service = amortization.monthly_payment if amortization else 0.0
    annual_debt_service = monthly_debt_service * 12
    annual_cash_flow = noi - annual_debt_service

    repairs = sum(unit.repair_costs for unit in inputs.units)
    cash_invested = (
        inputs.down_payment + inputs.closing_costs + inputs.renovation_costs + repairs
    )

    projections = project_years(inputs, unit_results, amortization, cash_invested)
    hold_irr, equity_multiple = _hold_period_returns(cash_invested, projections)

    return InvestmentResult(
        units=unit_results,
        noi=noi,
        monthly_debt_service=monthly_debt_service,
        annual_debt_service=annual_debt_service,
        annual_cash_flow=annual_cash_flow,
        cash_invested=cash_invested,
        cap_rate=safe_ratio(noi, inputs.purchase_price, "Purchase price is zero"),
        cash_on_cash_return=safe_ratio(
            annual_cash_flow, cash_invested, "No cash invested"
        ),
        dscr=safe_ratio(
            noi, annual_debt_service, "No debt service (all-cash purchase)"
        ),
        hold_period_irr=hold_irr,
        equity_multiple=equity_multiple,
        value_add=value_add_analysis(inputs, unit_results),
        projections=projections,
    )


def offer_targets(
    result: InvestmentResult,
    target_cap_rate_percent: float = 8.0,
    target_cash_on_cash_percent: float = 12.0,
    offer_discount_percent: float = 10.0,
) -> OfferTargets:
    """
    Purchase prices that hit a target cap rate and cash-on-cash return.

    The cash-on-cash price is the value, at the target cap rate, of the NOI
    needed to cover current debt service plus the target return on the
    cash invested. The recommendation is the lower of the two prices and
    the max offer applies a negotiating discount to it.
    """
    if target_cap_rate_percent <= 0:
        raise InvalidInput(
            "target_cap_rate_percent must be greater than zero",
            "target_cap_rate_percent",
        )
    require_non_negative(target_cash_on_cash_percent, "target_cash_on_cash_percent")
    require_percent(offer_discount_percent, "offer_discount_percent")

    target_cap = target_cap_rate_percent / 100
    cap_rate_price = result.noi / target_cap

    desired_cash_flow = result.cash_invested * target_cash_on_cash_percent / 100
    required_noi = desired_cash_flow + result.annual_debt_service
    cash_on_cash_price = required_noi / target_cap

    recommended = min(cap_rate_price, cash_on_cash_price)

    return OfferTargets(
        cap_rate_based_price=cap_rate_price,
        cash_on_cash_based_price=cash_on_cash_price,
        recommended_purchase_price=recommended,
        max_offer_price=recommended * (1 - offer_discount_percent / 100),
    )


def expense_breakdown(units: List[InvestmentUnit]) -> Dict[str, float]:
    """Sum itemized monthly expenses across units by label."""
    totals: Dict[str, float] = {}
    for unit in units:
        if isinstance(unit.monthly_expenses, Mapping):
            for label, amount in unit.monthly_expenses.items():
                totals[label] = totals.get(label, 0.0) + amount
        else:
            totals["Other"] = totals.get("Other", 0.0) + unit.monthly_expenses
    return totals
