import unittest

from appraisal.core.npv import calculate_npv
from appraisal.core.sensitivity import perform_sensitivity_analysis
from appraisal.core.validator import InvalidParameters
from appraisal.models.requests import CalculationKind, build_parameters


class SensitivityTests(unittest.TestCase):
    def setUp(self) -> None:
        self.base_case = {"cash_flows": [100, 100, 100], "discount_rate": 0.10, "initial_investment": 200}

    def test_npv_response_to_discount_rate(self) -> None:
        params = build_parameters(
            "SENSITIVITY",
            {"metric": "npv", "base_case": self.base_case, "variables": {"discount_rate": [0.05, 0.10, 0.15]}},
        )
        result = perform_sensitivity_analysis(params)
        base_npv = calculate_npv([100, 100, 100], 0.10, 200).npv
        self.assertAlmostEqual(result.base_value, base_npv)

        low, same, high = result.variables["discount_rate"]
        self.assertAlmostEqual(low.percentage_change, -50.0)
        self.assertAlmostEqual(same.impact, 0.0)
        self.assertGreater(low.impact, 0)
        self.assertLess(high.impact, 0)
        self.assertAlmostEqual(high.result, calculate_npv([100, 100, 100], 0.15, 200).npv)

    def test_invalid_point_is_reported_without_failing(self) -> None:
        params = build_parameters(
            "SENSITIVITY",
            {"metric": "npv", "base_case": self.base_case, "variables": {"discount_rate": [-2.0, 0.2]}},
        )
        invalid, valid = perform_sensitivity_analysis(params).variables["discount_rate"]
        self.assertIsNone(invalid.result)
        self.assertIsNone(invalid.impact)
        self.assertIsNotNone(valid.result)

    def test_break_even_metric_with_zero_base_input(self) -> None:
        params = build_parameters(
            "SENSITIVITY",
            {
                "metric": "break_even_units",
                "base_case": {"fixed_costs": 1000, "variable_cost_per_unit": 0, "price_per_unit": 10},
                "variables": {"variable_cost_per_unit": [5]},
            },
        )
        point = perform_sensitivity_analysis(params).variables["variable_cost_per_unit"][0]
        self.assertIsNone(point.percentage_change)
        self.assertAlmostEqual(point.result, 200.0)
        self.assertAlmostEqual(point.impact, 100.0)

    def test_frame_has_one_row_per_point(self) -> None:
        params = build_parameters(
            "SENSITIVITY",
            {
                "metric": "npv",
                "base_case": self.base_case,
                "variables": {"discount_rate": [0.05, 0.15], "initial_investment": [150]},
            },
        )
        frame = perform_sensitivity_analysis(params).to_frame()
        self.assertEqual(len(frame), 3)
        self.assertEqual(sorted(frame["variable"].unique()), ["discount_rate", "initial_investment"])

    def test_unknown_variable_rejected(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters(
                "SENSITIVITY",
                {"metric": "npv", "base_case": self.base_case, "variables": {"tax_rate": [0.2]}},
            )

    def test_metric_must_match_base_case(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters(
                "SENSITIVITY",
                {"metric": "irr", "base_case": {**self.base_case, "kind": CalculationKind.NPV}, "variables": {}},
            )


if __name__ == "__main__":
    unittest.main()
