"""
Loan Amortization Calculations

Fixed-rate monthly payment, inverse payment (loan size for a payment budget),
remaining balance, and the period-by-period amortization schedule.

Rates are entered as annual percentages (6.0 for 6%).
"""

from typing import List, Optional
from datetime import date
from dataclasses import dataclass, field
from dateutil.relativedelta import relativedelta

from realtor_tools.calculations.common import (
    CalculatorConfig,
    DEFAULT_CONFIG,
    InvalidInput,
    require_non_negative,
    require_positive,
    require_term,
)


@dataclass
class LoanInput:
    """
    Loan terms supplied by the user.

    The amount financed is ``principal - down_payment``.
    """

    principal: float
    annual_interest_rate_percent: float
    term_months: int
    down_payment: float = 0.0


@dataclass
class AmortizationRow:
    """A single period of the amortization schedule."""

    period: int
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    payment_date: Optional[date] = None


@dataclass
class AmortizationResult:
    monthly_payment: float
    total_interest: float
    total_paid: float
    schedule: List[AmortizationRow] = field(default_factory=list)


def _monthly_rate(annual_rate_percent: float) -> float:
    return annual_rate_percent / 100 / 12


def monthly_payment(
    principal: float, annual_rate_percent: float, term_months: int
) -> float:
    """
    Calculate the fully amortizing monthly payment.

    Args:
        principal: Loan principal amount
        annual_rate_percent: Annual interest rate in percent (e.g., 6.0)
        term_months: Number of monthly payments

    Returns:
        Monthly payment amount (positive number)
    """
    if principal <= 0 or term_months <= 0:
        return 0.0

    monthly_rate = _monthly_rate(annual_rate_percent)

    if monthly_rate == 0:
        return principal / term_months

    return principal * monthly_rate / (1 - (1 + monthly_rate) ** (-term_months))


def principal_from_payment(
    payment: float, annual_rate_percent: float, term_months: int
) -> float:
    """
    Reverse amortization: the loan amount a monthly payment supports.

    Used when qualifying a borrower. Given a payment budget, rate and term,
    returns the maximum principal that fits.
    """
    if payment <= 0 or term_months <= 0:
        return 0.0

    monthly_rate = _monthly_rate(annual_rate_percent)

    if monthly_rate == 0:
        return payment * term_months

    return payment * (1 - (1 + monthly_rate) ** (-term_months)) / monthly_rate


def payment_factor(annual_rate_percent: float, term_months: int) -> float:
    """Monthly payment per dollar of principal."""
    return monthly_payment(1.0, annual_rate_percent, term_months)


def remaining_balance(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
    payments_completed: int,
) -> float:
    """Calculate remaining loan balance after N payments."""
    if payments_completed >= term_months:
        return 0.0

    monthly_rate = _monthly_rate(annual_rate_percent)
    payment = monthly_payment(principal, annual_rate_percent, term_months)

    if monthly_rate == 0:
        return max(0.0, principal - payment * payments_completed)

    growth = (1 + monthly_rate) ** payments_completed
    balance = principal * growth - payment * ((growth - 1) / monthly_rate)

    return max(0.0, balance)


def amortize(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
    config: Optional[CalculatorConfig] = None,
    first_payment_date: Optional[date] = None,
) -> AmortizationResult:
    """
    Generate the full amortization schedule for a fixed-rate loan.

    The last period's principal portion is whatever balance remains, so the
    schedule always ends at exactly zero and the principal portions sum to
    the original principal.

    Args:
        principal: Loan principal amount
        annual_rate_percent: Annual interest rate in percent
        term_months: Number of monthly payments
        config: Calculator configuration (schedule length bound)
        first_payment_date: Date of first payment; rows are undated if omitted

    Returns:
        AmortizationResult with payment, totals and schedule

    Raises:
        InvalidInput: For non-positive principal or term, negative rate, or
            a term longer than the configured maximum
    """
    config = config or DEFAULT_CONFIG

    require_positive(principal, "principal")
    require_non_negative(annual_rate_percent, "annual_interest_rate_percent")
    require_term(term_months, config)

    monthly_rate = _monthly_rate(annual_rate_percent)
    payment = monthly_payment(principal, annual_rate_percent, term_months)

    schedule = []
    balance = principal

    for period in range(1, term_months + 1):
        interest = balance * monthly_rate

        if period == term_months:
            # Final payment absorbs the rounding remainder
            principal_pmt = balance
            period_payment = principal_pmt + interest
            balance = 0.0
        else:
            principal_pmt = payment - interest
            period_payment = payment
            balance -= principal_pmt

        period_date = None
        if first_payment_date is not None:
            period_date = first_payment_date + relativedelta(months=period - 1)

        schedule.append(
            AmortizationRow(
                period=period,
                payment=period_payment,
                principal=principal_pmt,
                interest=interest,
                remaining_balance=balance,
                payment_date=period_date,
            )
        )

    total_interest = calculate_total_interest(schedule)

    return AmortizationResult(
        monthly_payment=payment,
        total_interest=total_interest,
        total_paid=principal + total_interest,
        schedule=schedule,
    )


def amortize_loan(
    loan: LoanInput,
    config: Optional[CalculatorConfig] = None,
    first_payment_date: Optional[date] = None,
) -> AmortizationResult:
    """
    Amortize the financed portion of a LoanInput record.

    Raises:
        InvalidInput: If the down payment is negative or exceeds the
            principal, or the amount financed is not positive
    """
    validate_down_payment(loan.down_payment, loan.principal)
    return amortize(
        financed_amount(loan),
        loan.annual_interest_rate_percent,
        loan.term_months,
        config,
        first_payment_date,
    )


def financed_amount(loan: LoanInput) -> float:
    return loan.principal - loan.down_payment


def calculate_total_interest(schedule: List[AmortizationRow]) -> float:
    """Calculate total interest paid over loan term."""
    return sum(row.interest for row in schedule)


def calculate_debt_service(
    schedule: List[AmortizationRow], start_period: int, end_period: int
) -> float:
    """Calculate total debt service (P+I) for a range of periods."""
    return sum(
        row.payment for row in schedule if start_period <= row.period <= end_period
    )


def validate_down_payment(down_payment: float, price: float) -> None:
    """A down payment may not exceed the price it is paid against."""
    require_non_negative(down_payment, "down_payment")
    if down_payment > price:
        raise InvalidInput("down_payment must not exceed the price", "down_payment")
