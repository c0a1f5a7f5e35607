"""Tests for the amortization calculator."""

import pytest

from loanmatch.core.errors import InvalidLoanInputError
from loanmatch.services.amortization import calculate_monthly_payment, summarize_payment


def _annuity(principal, rate, n):
    r = rate / 100 / 12
    return principal * r * (1 + r) ** n / ((1 + r) ** n - 1)


class TestCalculateMonthlyPayment:
    def test_default_wizard_loan(self):
        payment = calculate_monthly_payment(1_500_000, 7.5, 48)
        assert payment == round(_annuity(1_500_000, 7.5, 48), 2)
        # The wizard's hard-coded default display value
        assert payment == pytest.approx(36_414.38, rel=0.005)

    def test_rounded_to_cents(self):
        payment = calculate_monthly_payment(250_000, 11.25, 18)
        assert payment == round(payment, 2)

    def test_zero_rate_is_straight_line(self):
        assert calculate_monthly_payment(1_200_000, 0, 48) == 1_200_000 / 48
        assert calculate_monthly_payment(100_000, 0, 3) == 100_000 / 3

    def test_higher_rate_costs_more(self):
        assert calculate_monthly_payment(500_000, 12, 36) > calculate_monthly_payment(500_000, 8, 36)

    @pytest.mark.parametrize(
        "principal, rate, term",
        [
            (0, 7.5, 48),
            (-1000, 7.5, 48),
            (100_000, -0.1, 12),
            (100_000, 7.5, 0),
            (100_000, 7.5, -12),
            (100_000, 7.5, 12.5),
        ],
    )
    def test_invalid_inputs_raise(self, principal, rate, term):
        with pytest.raises(InvalidLoanInputError):
            calculate_monthly_payment(principal, rate, term)

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            calculate_monthly_payment(100_000, 7.5, 0)


class TestSummarizePayment:
    def test_totals_follow_monthly_payment(self):
        summary = summarize_payment(800_000, 9.42, 36)
        assert summary.total_payment == summary.monthly_payment * 36
        assert summary.total_interest == summary.total_payment - 800_000
        assert summary.total_interest > 0

    def test_zero_rate_has_no_interest(self):
        summary = summarize_payment(120_000, 0, 12)
        assert summary.monthly_payment == 10_000
        assert summary.total_interest == pytest.approx(0)
