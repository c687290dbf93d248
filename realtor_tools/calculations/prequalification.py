"""
Mortgage Prequalification

Derives the maximum affordable loan and purchase price from income, debts
and down payment under front-end (housing) and back-end (total) DTI caps.
"""

from typing import List, Optional
from dataclasses import dataclass, replace

from realtor_tools.calculations.amortization import payment_factor, principal_from_payment
from realtor_tools.calculations.common import (
    CalculatorConfig,
    DEFAULT_CONFIG,
    InvalidInput,
    require_non_negative,
    require_percent,
    require_positive,
    require_term,
)
from realtor_tools.calculations.presets import LOAN_PROGRAMS, LoanProgram

# Mortgage insurance applies below 20% down, i.e. when loan > 4x down payment
PMI_FREE_LOAN_TO_DOWN = 4
RATIO_TOLERANCE = 1e-9


@dataclass
class PrequalInput:
    gross_monthly_income: float
    monthly_debts: float
    down_payment_amount: float
    interest_rate_percent: float
    loan_term_months: int = 360
    taxes_and_insurance_monthly: float = 0.0
    property_tax_rate_percent: float = 0.0  # annual % of price
    insurance_rate_percent: float = 0.0  # annual % of price
    pmi_rate_percent: float = 0.0  # annual % of loan when < 20% down
    hoa_monthly: float = 0.0
    closing_cost_percent: float = 3.0
    min_down_payment_percent: float = 5.0
    front_end_ratio_cap_percent: Optional[float] = None
    back_end_ratio_cap_percent: Optional[float] = None


@dataclass
class PaymentBreakdown:
    principal_and_interest: float
    property_taxes: float
    homeowners_insurance: float
    taxes_and_insurance_estimate: float
    mortgage_insurance: float
    hoa_fees: float
    total_monthly_payment: float


@dataclass
class CashToClose:
    down_payment_required: float
    down_payment_percentage: float
    closing_costs: float
    total_cash_needed: float
    has_enough_cash: bool
    cash_shortfall: float
    suggested_closing_cost_reduction: float
    remaining_deficiency: float


@dataclass
class PrequalResult:
    max_monthly_payment: float
    max_loan_amount: float
    max_purchase_price: float
    front_end_limit: float
    back_end_limit: float
    available_for_principal_and_interest: float
    qualifies: bool
    housing_ratio_percent: float
    total_ratio_percent: float
    payment_breakdown: PaymentBreakdown
    cash_to_close: CashToClose
    program_name: Optional[str] = None


def _validate(inputs: PrequalInput, config: CalculatorConfig) -> None:
    require_positive(inputs.gross_monthly_income, "gross_monthly_income")
    require_non_negative(inputs.monthly_debts, "monthly_debts")
    require_non_negative(inputs.down_payment_amount, "down_payment_amount")
    require_non_negative(inputs.interest_rate_percent, "interest_rate_percent")
    require_term(inputs.loan_term_months, config)
    require_non_negative(
        inputs.taxes_and_insurance_monthly, "taxes_and_insurance_monthly"
    )
    require_non_negative(inputs.property_tax_rate_percent, "property_tax_rate_percent")
    require_non_negative(inputs.insurance_rate_percent, "insurance_rate_percent")
    require_non_negative(inputs.pmi_rate_percent, "pmi_rate_percent")
    require_non_negative(inputs.hoa_monthly, "hoa_monthly")
    require_percent(inputs.closing_cost_percent, "closing_cost_percent")
    require_percent(inputs.min_down_payment_percent, "min_down_payment_percent")


def _ratio_caps(inputs: PrequalInput, config: CalculatorConfig):
    front = inputs.front_end_ratio_cap_percent
    back = inputs.back_end_ratio_cap_percent
    if front is None:
        front = config.front_end_ratio_cap_percent
    if back is None:
        back = config.back_end_ratio_cap_percent

    for value, name in (
        (front, "front_end_ratio_cap_percent"),
        (back, "back_end_ratio_cap_percent"),
    ):
        if value <= 0 or value > 100:
            raise InvalidInput(f"{name} must be in (0, 100]", name)

    return front, back


def solve_max_loan(
    budget: float,
    down_payment: float,
    factor: float,
    price_cost_rate: float,
    pmi_rate: float,
) -> float:
    """
    Largest loan whose monthly cost fits the budget.

    Monthly cost of a loan L is ``factor*L + (L + down)*price_cost_rate``
    plus ``pmi_rate*L`` when the down payment is under 20% of the price,
    i.e. when ``L > 4*down``. Each side of that threshold is linear in L.

    Args:
        budget: Monthly amount available after fixed costs
        down_payment: Cash down payment
        factor: Principal-and-interest payment per dollar of loan
        price_cost_rate: Monthly taxes and insurance per dollar of price
        pmi_rate: Monthly mortgage insurance per dollar of loan
    """
    if budget <= 0:
        return 0.0

    no_pmi_loan = (budget - down_payment * price_cost_rate) / (factor + price_cost_rate)
    if no_pmi_loan <= 0:
        return 0.0

    pmi_free_limit = down_payment * PMI_FREE_LOAN_TO_DOWN
    if pmi_rate == 0 or no_pmi_loan <= pmi_free_limit:
        return no_pmi_loan

    pmi_loan = (budget - down_payment * price_cost_rate) / (
        factor + price_cost_rate + pmi_rate
    )
    return max(pmi_loan, pmi_free_limit)


def payment_breakdown(inputs: PrequalInput, loan_amount: float) -> PaymentBreakdown:
    """Monthly PITI (plus HOA) for a loan amount."""
    price = loan_amount + inputs.down_payment_amount
    principal_and_interest = loan_amount * payment_factor(
        inputs.interest_rate_percent, inputs.loan_term_months
    )
    property_taxes = price * inputs.property_tax_rate_percent / 100 / 12
    insurance = price * inputs.insurance_rate_percent / 100 / 12

    mortgage_insurance = 0.0
    if loan_amount > inputs.down_payment_amount * PMI_FREE_LOAN_TO_DOWN:
        mortgage_insurance = loan_amount * inputs.pmi_rate_percent / 100 / 12

    total = (
        principal_and_interest
        + property_taxes
        + insurance
        + inputs.taxes_and_insurance_monthly
        + mortgage_insurance
        + inputs.hoa_monthly
    )

    return PaymentBreakdown(
        principal_and_interest=principal_and_interest,
        property_taxes=property_taxes,
        homeowners_insurance=insurance,
        taxes_and_insurance_estimate=inputs.taxes_and_insurance_monthly,
        mortgage_insurance=mortgage_insurance,
        hoa_fees=inputs.hoa_monthly,
        total_monthly_payment=total,
    )


def cash_to_close(
    purchase_price: float,
    funds_available: float,
    closing_cost_percent: float,
    min_down_payment_percent: float,
) -> CashToClose:
    """
    Compare available funds with the minimum cash needed at closing.

    Any shortfall is first covered by a suggested seller concession of up to
    the full closing costs; the remainder is the buyer's deficiency.
    """
    min_down_payment = purchase_price * min_down_payment_percent / 100
    closing_costs = purchase_price * closing_cost_percent / 100
    total_needed = min_down_payment + closing_costs

    has_enough = funds_available >= total_needed
    shortfall = 0.0 if has_enough else total_needed - funds_available

    suggested_reduction = min(shortfall, closing_costs)
    remaining = max(0.0, shortfall - closing_costs)

    return CashToClose(
        down_payment_required=min_down_payment,
        down_payment_percentage=(
            funds_available / purchase_price * 100 if purchase_price > 0 else 0.0
        ),
        closing_costs=closing_costs,
        total_cash_needed=total_needed,
        has_enough_cash=has_enough,
        cash_shortfall=shortfall,
        suggested_closing_cost_reduction=suggested_reduction,
        remaining_deficiency=remaining,
    )


def prequalify(
    inputs: PrequalInput, config: Optional[CalculatorConfig] = None
) -> PrequalResult:
    """
    Calculate maximum affordable loan and purchase price.

    Debts at or above the back-end limit are not an error: the result
    reports zero affordability (no loan, purchase price equal to the down
    payment, ``qualifies`` False).

    Raises:
        InvalidInput: For non-positive income, negative amounts or rates,
            an invalid term, or ratio caps outside (0, 100]
    """
    config = config or DEFAULT_CONFIG
    _validate(inputs, config)
    front_cap, back_cap = _ratio_caps(inputs, config)

    income = inputs.gross_monthly_income
    front_end_limit = income * front_cap / 100
    back_end_limit = income * back_cap / 100 - inputs.monthly_debts
    max_monthly_payment = max(0.0, min(front_end_limit, back_end_limit))

    available = (
        max_monthly_payment - inputs.taxes_and_insurance_monthly - inputs.hoa_monthly
    )

    factor = payment_factor(inputs.interest_rate_percent, inputs.loan_term_months)
    price_cost_rate = (
        (inputs.property_tax_rate_percent + inputs.insurance_rate_percent) / 100 / 12
    )
    pmi_rate = inputs.pmi_rate_percent / 100 / 12

    if price_cost_rate == 0 and pmi_rate == 0:
        # Only fixed costs: the inverse of the payment formula
        max_loan = principal_from_payment(
            available, inputs.interest_rate_percent, inputs.loan_term_months
        )
    else:
        max_loan = solve_max_loan(
            available, inputs.down_payment_amount, factor, price_cost_rate, pmi_rate
        )
    max_price = max_loan + inputs.down_payment_amount

    breakdown = payment_breakdown(inputs, max_loan)
    if max_loan == 0:
        housing_payment = 0.0
    else:
        housing_payment = breakdown.total_monthly_payment

    housing_ratio = housing_payment / income * 100
    total_ratio = (housing_payment + inputs.monthly_debts) / income * 100
    qualifies = (
        max_loan > 0
        and housing_ratio <= front_cap + RATIO_TOLERANCE
        and total_ratio <= back_cap + RATIO_TOLERANCE
    )

    return PrequalResult(
        max_monthly_payment=max_monthly_payment,
        max_loan_amount=max_loan,
        max_purchase_price=max_price,
        front_end_limit=front_end_limit,
        back_end_limit=back_end_limit,
        available_for_principal_and_interest=max(0.0, available),
        qualifies=qualifies,
        housing_ratio_percent=housing_ratio,
        total_ratio_percent=total_ratio,
        payment_breakdown=breakdown,
        cash_to_close=cash_to_close(
            max_price,
            inputs.down_payment_amount,
            inputs.closing_cost_percent,
            inputs.min_down_payment_percent,
        ),
    )


def prequalify_programs(
    inputs: PrequalInput,
    programs: Optional[List[LoanProgram]] = None,
    config: Optional[CalculatorConfig] = None,
) -> List[PrequalResult]:
    """Run prequalification once per loan program's DTI caps."""
    if programs is None:
        programs = LOAN_PROGRAMS

    results = []
    for program in programs:
        program_inputs = replace(
            inputs,
            front_end_ratio_cap_percent=program.housing_ratio_percent,
            back_end_ratio_cap_percent=program.total_ratio_percent,
            min_down_payment_percent=program.min_down_payment_percent,
        )
        result = prequalify(program_inputs, config)
        result.program_name = program.name
        results.append(result)
    return results
