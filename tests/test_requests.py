import unittest

from appraisal.core.validator import InvalidCashFlows, InvalidParameters
from appraisal.models.requests import (
    CalculationKind,
    CalculationRequest,
    CalculationResult,
    NPVParameters,
    ProjectionParameters,
    SensitivityParameters,
    build_parameters,
)


class BuildParametersTests(unittest.TestCase):
    def test_builds_typed_record_for_kind(self) -> None:
        record = build_parameters("NPV", {"cash_flows": [1, 2], "discount_rate": 0.1})
        self.assertIsInstance(record, NPVParameters)
        self.assertEqual(record.kind, CalculationKind.NPV)
        self.assertEqual(record.cash_flows, [1.0, 2.0])
        self.assertEqual(record.initial_investment, 0.0)

    def test_unknown_kind(self) -> None:
        with self.assertRaises(InvalidParameters) as ctx:
            build_parameters("DCF", {})
        self.assertIn("Unknown calculation type", str(ctx.exception))

    def test_non_mapping_payload_rejected(self) -> None:
        for payload in ([1, 2], "cash_flows", 3.5):
            with self.subTest(payload=payload), self.assertRaises(InvalidParameters):
                build_parameters("NPV", payload)

    def test_unexpected_field_rejected(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters("IRR", {"cash_flows": [-1, 2], "rate": 0.2})

    def test_missing_field_rejected(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters("PAYBACK", {"cash_flows": [1, 2]})

    def test_cash_flow_type_checks(self) -> None:
        for flows in ("100,200", [100, "200"], [100, True], [float("nan")]):
            with self.subTest(flows=flows), self.assertRaises(InvalidCashFlows):
                build_parameters("NPV", {"cash_flows": flows, "discount_rate": 0.1})

    def test_irr_requires_two_periods(self) -> None:
        with self.assertRaises(InvalidCashFlows):
            build_parameters("IRR", {"cash_flows": [-100]})

    def test_break_even_domain(self) -> None:
        cases = [
            {"fixed_costs": -1, "variable_cost_per_unit": 1, "price_per_unit": 2},
            {"fixed_costs": 1, "variable_cost_per_unit": -1, "price_per_unit": 2},
            {"fixed_costs": 1, "variable_cost_per_unit": 1, "price_per_unit": 0},
        ]
        for payload in cases:
            with self.subTest(payload=payload), self.assertRaises(InvalidParameters):
                build_parameters("BREAKEVEN", payload)

    def test_projection_periods_must_be_whole(self) -> None:
        record = build_parameters(
            CalculationKind.PROJECTION, {"base_cash_flow": 10, "growth_rate": 0.0, "periods": 3.0}
        )
        self.assertIsInstance(record, ProjectionParameters)
        self.assertEqual(record.periods, 3)
        with self.assertRaises(InvalidParameters):
            build_parameters("PROJECTION", {"base_cash_flow": 10, "growth_rate": 0.0, "periods": 2.5})

    def test_records_are_immutable(self) -> None:
        record = build_parameters("NPV", {"cash_flows": [1], "discount_rate": 0.1})
        with self.assertRaises(Exception):
            record.discount_rate = 0.2

    def test_sensitivity_base_case_tagged_from_metric(self) -> None:
        record = build_parameters(
            "SENSITIVITY",
            {
                "metric": "payback_period",
                "base_case": {"cash_flows": [100, 100], "initial_investment": 150},
                "variables": {"initial_investment": [100, 200]},
            },
        )
        self.assertIsInstance(record, SensitivityParameters)
        self.assertEqual(record.base_case.kind, CalculationKind.PAYBACK)

    def test_sensitivity_metric_outside_closed_set(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters(
                "SENSITIVITY",
                {"metric": "roi", "base_case": {"cash_flows": [1], "discount_rate": 0.1}, "variables": {}},
            )

    def test_sensitivity_values_must_be_finite(self) -> None:
        with self.assertRaises(InvalidParameters):
            build_parameters(
                "SENSITIVITY",
                {
                    "metric": "npv",
                    "base_case": {"cash_flows": [1], "discount_rate": 0.1},
                    "variables": {"discount_rate": [float("inf")]},
                },
            )


class EnvelopeTests(unittest.TestCase):
    def test_request_message_shape(self) -> None:
        request = CalculationRequest("abc", CalculationKind.IRR, {"cash_flows": [-1, 2]})
        message = request.to_message()
        self.assertEqual(message, {"id": "abc", "kind": "IRR", "parameters": {"cash_flows": [-1, 2]}})
        self.assertEqual(CalculationRequest.from_message(message), request)

    def test_failure_message_carries_error_only(self) -> None:
        message = CalculationResult("abc", False, error="bad", error_type="InvalidParameters").to_message()
        self.assertNotIn("payload", message)
        self.assertEqual(message["error_type"], "InvalidParameters")
        self.assertFalse(CalculationResult.from_message(message).success)


if __name__ == "__main__":
    unittest.main()
