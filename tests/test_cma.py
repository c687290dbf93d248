"""
Tests for the quick comparative market analysis.
"""

import pytest
from datetime import date

from realtor_tools.calculations.cma import (
    CMAInput,
    Comparable,
    comparable_weight,
    estimate_value,
    months_between,
)
from realtor_tools.calculations.common import CalculatorConfig, InvalidInput


class TestEstimate:
    def test_equal_weight_average(self, cma_input):
        """Unweighted comparables average 250, 250 and 260 $/sf."""
        result = estimate_value(cma_input)
        assert result.price_per_square_foot_used == pytest.approx(760 / 3)
        assert result.estimated_value == pytest.approx(1900 * 760 / 3)

    def test_fixed_band(self, cma_input):
        result = estimate_value(cma_input)
        assert result.band_percent == pytest.approx(8.0)
        assert result.value_range_low == pytest.approx(result.estimated_value * 0.92)
        assert result.value_range_high == pytest.approx(result.estimated_value * 1.08)

    def test_range_brackets_estimate(self, cma_input):
        for method in ("fixed", "stdev"):
            cma_input.band_method = method
            result = estimate_value(cma_input)
            assert result.value_range_low <= result.estimated_value <= result.value_range_high

    def test_configured_band(self, cma_input):
        result = estimate_value(cma_input, CalculatorConfig(cma_band_percent=5))
        assert result.value_range_high == pytest.approx(result.estimated_value * 1.05)

    def test_single_comparable(self):
        result = estimate_value(
            CMAInput(
                square_footage=1500,
                comparables=[Comparable(sale_price=300000, square_footage=1200)],
            )
        )
        assert result.estimated_value == pytest.approx(375000)
        assert result.comparables[0].weight == pytest.approx(1.0)


class TestWeighting:
    def test_closer_comparable_weighs_more(self):
        inputs = CMAInput(
            square_footage=1000,
            comparables=[
                Comparable(sale_price=200000, square_footage=1000, distance_miles=0),
                Comparable(sale_price=300000, square_footage=1000, distance_miles=1),
            ],
        )
        result = estimate_value(inputs)
        assert result.price_per_square_foot_used == pytest.approx(700 / 3)

    def test_recent_sale_weighs_more(self):
        """Recency runs from the latest sale when no as-of date is given."""
        inputs = CMAInput(
            square_footage=1000,
            comparables=[
                Comparable(sale_price=200000, square_footage=1000, sale_date=date(2024, 1, 1)),
                Comparable(sale_price=300000, square_footage=1000, sale_date=date(2025, 1, 1)),
            ],
        )
        result = estimate_value(inputs)
        assert result.price_per_square_foot_used == pytest.approx(800 / 3)

    def test_explicit_as_of(self):
        comp = Comparable(sale_price=1, square_footage=1, sale_date=date(2024, 1, 1))
        assert comparable_weight(comp, date(2026, 1, 1)) == pytest.approx(1 / 3)
        assert comparable_weight(comp, None) == 1.0

    def test_adjustment_factor_discounts(self):
        comp = Comparable(sale_price=1, square_footage=1, distance_miles=1, adjustment_factor=2)
        assert comparable_weight(comp, None) == pytest.approx(0.25)

    def test_weights_normalized(self):
        inputs = CMAInput(
            square_footage=1000,
            comparables=[
                Comparable(sale_price=200000, square_footage=1000, distance_miles=0.5),
                Comparable(sale_price=250000, square_footage=1100, distance_miles=2),
                Comparable(sale_price=260000, square_footage=1200, distance_miles=0.1),
            ],
        )
        result = estimate_value(inputs)
        assert sum(c.weight for c in result.comparables) == pytest.approx(1.0)

    def test_months_between(self):
        assert months_between(date(2024, 1, 1), date(2025, 1, 1)) == 12
        assert months_between(date(2025, 1, 15), date(2025, 3, 1)) == pytest.approx(1 + 14 / 30)
        assert months_between(date(2025, 6, 1), date(2025, 1, 1)) == 0


class TestStdevBand:
    def test_band_from_dispersion(self):
        inputs = CMAInput(
            square_footage=1000,
            comparables=[
                Comparable(sale_price=200000, square_footage=1000),
                Comparable(sale_price=300000, square_footage=1000),
            ],
            band_method="stdev",
        )
        result = estimate_value(inputs)
        assert result.band_percent == pytest.approx(20.0)
        assert result.value_range_low == pytest.approx(200000)
        assert result.value_range_high == pytest.approx(300000)

    def test_band_floor(self, cma_input):
        """Tightly clustered comparables still get the minimum band."""
        cma_input.band_method = "stdev"
        result = estimate_value(cma_input)
        assert result.band_percent == pytest.approx(2.0)

    def test_identical_comparables_use_floor(self):
        inputs = CMAInput(
            square_footage=1000,
            comparables=[Comparable(sale_price=250000, square_footage=1000)] * 3,
            band_method="stdev",
        )
        result = estimate_value(inputs, CalculatorConfig(cma_min_band_percent=3))
        assert result.band_percent == pytest.approx(3.0)


class TestAdjustments:
    def test_bedroom_and_bathroom_adjustment(self):
        config = CalculatorConfig(bedroom_adjustment=10000, bathroom_adjustment=5000)
        inputs = CMAInput(
            square_footage=2000,
            bedrooms=3,
            bathrooms=2,
            comparables=[
                Comparable(sale_price=400000, square_footage=2000, bedrooms=2, bathrooms=3)
            ],
        )
        result = estimate_value(inputs, config)
        assert result.comparables[0].adjusted_price == pytest.approx(405000)
        assert result.estimated_value == pytest.approx(405000)

    def test_no_adjustment_by_default(self):
        inputs = CMAInput(
            square_footage=2000,
            bedrooms=4,
            comparables=[Comparable(sale_price=400000, square_footage=2000, bedrooms=2)],
        )
        assert estimate_value(inputs).estimated_value == pytest.approx(400000)

    def test_adjustment_cannot_push_price_below_zero(self):
        config = CalculatorConfig(bedroom_adjustment=100000)
        inputs = CMAInput(
            square_footage=1000,
            bedrooms=1,
            comparables=[Comparable(sale_price=50000, square_footage=1000, bedrooms=3)],
        )
        with pytest.raises(InvalidInput):
            estimate_value(inputs, config)


class TestMarketActivity:
    def test_days_on_market_and_absorption(self):
        inputs = CMAInput(
            square_footage=1000,
            comparables=[
                Comparable(sale_price=250000, square_footage=1000, days_on_market=20),
                Comparable(sale_price=250000, square_footage=1000, days_on_market=40),
                Comparable(sale_price=250000, square_footage=1000),
            ],
        )
        result = estimate_value(inputs)
        assert result.average_days_on_market == pytest.approx(30)
        assert result.absorption_months == pytest.approx(1.0)

    def test_no_days_on_market(self, cma_input):
        result = estimate_value(cma_input)
        assert result.average_days_on_market is None
        assert result.absorption_months is None


class TestCMAValidation:
    def test_empty_comparables(self):
        with pytest.raises(InvalidInput) as exc:
            estimate_value(CMAInput(square_footage=1500, comparables=[]))
        assert exc.value.field == "comparables"

    def test_zero_square_footage_rejects_batch(self, comparables):
        comparables.append(Comparable(sale_price=400000, square_footage=0))
        with pytest.raises(InvalidInput):
            estimate_value(CMAInput(square_footage=1900, comparables=comparables))

    @pytest.mark.parametrize(
        "subject_sqft, comp_kwargs, band_method",
        [
            (0, {}, "fixed"),
            (1500, {"sale_price": 0}, "fixed"),
            (1500, {"square_footage": -10}, "fixed"),
            (1500, {"distance_miles": -1}, "fixed"),
            (1500, {"adjustment_factor": 0}, "fixed"),
            (1500, {}, "median"),
        ],
    )
    def test_invalid_input(self, subject_sqft, comp_kwargs, band_method):
        values = dict(sale_price=300000, square_footage=1500)
        values.update(comp_kwargs)
        with pytest.raises(InvalidInput):
            estimate_value(
                CMAInput(
                    square_footage=subject_sqft,
                    comparables=[Comparable(**values)],
                    band_method=band_method,
                )
            )
