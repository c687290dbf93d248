"""
Tests for mortgage prequalification.
"""

import pytest

from realtor_tools.calculations.amortization import monthly_payment, principal_from_payment
from realtor_tools.calculations.common import CalculatorConfig, InvalidInput
from realtor_tools.calculations.prequalification import (
    PrequalInput,
    cash_to_close,
    prequalify,
    prequalify_programs,
    solve_max_loan,
)
from realtor_tools.calculations.presets import LoanProgram


def make_input(**overrides):
    values = dict(
        gross_monthly_income=8000,
        monthly_debts=500,
        down_payment_amount=50000,
        interest_rate_percent=6.0,
        loan_term_months=360,
    )
    values.update(overrides)
    return PrequalInput(**values)


class TestDebtToIncomeCaps:
    """Front-end and back-end ratio limits."""

    def test_front_end_binding(self):
        """8000 income, 500 debts: 28% housing cap (2240) is below 36% total (2380)."""
        result = prequalify(make_input())
        assert result.front_end_limit == pytest.approx(2240)
        assert result.back_end_limit == pytest.approx(2380)
        assert result.max_monthly_payment == pytest.approx(2240)
        assert result.max_monthly_payment <= 2380

    def test_back_end_binding(self):
        result = prequalify(make_input(monthly_debts=1000))
        assert result.max_monthly_payment == pytest.approx(1880)

    def test_payment_within_back_end_cap(self):
        for debts in [0, 250, 900, 1500, 2500, 4000]:
            result = prequalify(make_input(monthly_debts=debts))
            assert result.max_monthly_payment / 8000 <= 0.36 + 1e-12

    def test_custom_caps_from_config(self):
        config = CalculatorConfig(
            front_end_ratio_cap_percent=31, back_end_ratio_cap_percent=43
        )
        result = prequalify(make_input(), config)
        assert result.max_monthly_payment == pytest.approx(2480)

    def test_caps_on_input_override_config(self):
        result = prequalify(make_input(front_end_ratio_cap_percent=25))
        assert result.max_monthly_payment == pytest.approx(2000)


class TestMaxLoan:
    """Inverting the payment formula."""

    def test_max_loan_inverts_payment(self):
        result = prequalify(make_input())
        expected = principal_from_payment(2240, 6.0, 360)
        assert result.max_loan_amount == pytest.approx(expected)
        assert result.max_purchase_price == pytest.approx(expected + 50000)

    def test_fixed_taxes_and_insurance_reduce_budget(self):
        result = prequalify(make_input(taxes_and_insurance_monthly=400))
        assert result.available_for_principal_and_interest == pytest.approx(1840)
        assert result.max_loan_amount == pytest.approx(
            principal_from_payment(1840, 6.0, 360)
        )

    def test_hoa_reduces_budget(self):
        without = prequalify(make_input())
        with_hoa = prequalify(make_input(hoa_monthly=200))
        assert with_hoa.max_loan_amount < without.max_loan_amount

    def test_price_based_costs_fill_budget(self):
        """With tax and insurance rates, total PITI lands on the cap."""
        result = prequalify(
            make_input(property_tax_rate_percent=1.25, insurance_rate_percent=0.35)
        )
        breakdown = result.payment_breakdown
        assert breakdown.total_monthly_payment == pytest.approx(2240)
        assert breakdown.property_taxes == pytest.approx(
            result.max_purchase_price * 0.0125 / 12
        )
        assert breakdown.mortgage_insurance == 0

    def test_mortgage_insurance_below_twenty_percent_down(self):
        result = prequalify(
            make_input(
                down_payment_amount=10000,
                pmi_rate_percent=0.5,
                property_tax_rate_percent=1.25,
                insurance_rate_percent=0.35,
            )
        )
        breakdown = result.payment_breakdown
        assert breakdown.mortgage_insurance > 0
        assert breakdown.total_monthly_payment == pytest.approx(2240)
        assert result.max_loan_amount > 4 * 10000

    def test_loan_capped_at_pmi_threshold(self):
        """When PMI would push the payment over budget, stop at 20% down."""
        factor = monthly_payment(1.0, 6.0, 360)
        down = 100000
        # Budget that fits exactly 4x the down payment without PMI
        budget = 4 * down * factor + 1
        loan = solve_max_loan(budget, down, factor, 0.0, 0.05)
        assert loan == pytest.approx(4 * down)

    def test_zero_rate_loan(self):
        result = prequalify(make_input(interest_rate_percent=0))
        assert result.max_loan_amount == pytest.approx(2240 * 360)

    def test_monotonic_in_income(self):
        previous = -1.0
        for income in range(1000, 20001, 250):
            result = prequalify(
                make_input(
                    gross_monthly_income=income,
                    monthly_debts=800,
                    down_payment_amount=15000,
                    property_tax_rate_percent=1.25,
                    insurance_rate_percent=0.35,
                    pmi_rate_percent=0.5,
                    hoa_monthly=50,
                )
            )
            assert result.max_purchase_price >= previous
            previous = result.max_purchase_price


class TestZeroAffordability:
    """Debts above the threshold report zero, not an error."""

    def test_debts_exceed_back_end_limit(self):
        result = prequalify(make_input(gross_monthly_income=5000, monthly_debts=2000))
        assert result.max_monthly_payment == 0
        assert result.max_loan_amount == 0
        assert result.max_purchase_price == 50000
        assert result.qualifies is False

    def test_fixed_costs_exceed_payment(self):
        result = prequalify(make_input(taxes_and_insurance_monthly=3000))
        assert result.max_loan_amount == 0
        assert result.available_for_principal_and_interest == 0
        assert result.qualifies is False

    def test_qualifies_when_loan_fits(self):
        result = prequalify(make_input())
        assert result.qualifies is True
        assert result.housing_ratio_percent <= 28 + 1e-6


class TestCashToClose:
    def test_enough_cash(self):
        analysis = cash_to_close(300000, 50000, 3.0, 5.0)
        assert analysis.total_cash_needed == pytest.approx(24000)
        assert analysis.has_enough_cash is True
        assert analysis.cash_shortfall == 0

    def test_shortfall_covered_by_concession(self):
        analysis = cash_to_close(300000, 20000, 3.0, 5.0)
        assert analysis.cash_shortfall == pytest.approx(4000)
        assert analysis.suggested_closing_cost_reduction == pytest.approx(4000)
        assert analysis.remaining_deficiency == 0

    def test_shortfall_beyond_closing_costs(self):
        analysis = cash_to_close(300000, 5000, 3.0, 5.0)
        assert analysis.suggested_closing_cost_reduction == pytest.approx(9000)
        assert analysis.remaining_deficiency == pytest.approx(10000)

    def test_zero_price(self):
        analysis = cash_to_close(0, 0, 3.0, 5.0)
        assert analysis.down_payment_percentage == 0


class TestLoanPrograms:
    def test_default_programs(self):
        results = prequalify_programs(make_input())
        assert [r.program_name for r in results] == ["Conventional", "FHA"]
        assert results[1].max_purchase_price > results[0].max_purchase_price

    def test_program_minimum_down_payment(self):
        results = prequalify_programs(make_input())
        fha = results[1]
        assert fha.cash_to_close.down_payment_required == pytest.approx(
            fha.max_purchase_price * 0.035
        )

    def test_custom_program(self):
        program = LoanProgram("Strict", 20, 30, 10.0)
        [result] = prequalify_programs(make_input(), [program])
        assert result.max_monthly_payment == pytest.approx(1600)


class TestPrequalValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"gross_monthly_income": 0},
            {"monthly_debts": -1},
            {"down_payment_amount": -100},
            {"interest_rate_percent": -1},
            {"loan_term_months": 0},
            {"loan_term_months": 600},
            {"taxes_and_insurance_monthly": -5},
            {"closing_cost_percent": 150},
            {"front_end_ratio_cap_percent": 0},
            {"back_end_ratio_cap_percent": 120},
        ],
    )
    def test_invalid_input(self, overrides):
        with pytest.raises(InvalidInput):
            prequalify(make_input(**overrides))
