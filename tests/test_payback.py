import unittest

from appraisal.core.payback import calculate_payback_period
from appraisal.core.validator import InvalidParameters


class PaybackPeriodTests(unittest.TestCase):
    def test_exact_period_boundary(self) -> None:
        result = calculate_payback_period([200, 200, 200, 200], 400)
        self.assertEqual(result.payback_period, 2.0)
        self.assertTrue(result.is_within_project_life)
        self.assertEqual(result.cumulative_cash_flows, [-200.0, 0.0, 200.0, 400.0])

    def test_interpolates_within_crossing_period(self) -> None:
        result = calculate_payback_period([100, 200, 300], 250)
        self.assertAlmostEqual(result.payback_period, 1.75)

    def test_recovered_in_first_period(self) -> None:
        result = calculate_payback_period([1000, 50], 250)
        self.assertAlmostEqual(result.payback_period, 0.25)

    def test_never_recovered(self) -> None:
        result = calculate_payback_period([100, 100], 500)
        self.assertIsNone(result.payback_period)
        self.assertFalse(result.is_within_project_life)
        self.assertEqual(result.cumulative_cash_flows, [-400.0, -300.0])

    def test_repeat_invocation_is_identical(self) -> None:
        flows = [120.5, 80.25, 300.0, 10.0]
        first = calculate_payback_period(flows, 333.3)
        second = calculate_payback_period(flows, 333.3)
        self.assertEqual(first, second)

    def test_investment_must_be_positive(self) -> None:
        with self.assertRaises(InvalidParameters):
            calculate_payback_period([100], 0)


if __name__ == "__main__":
    unittest.main()
