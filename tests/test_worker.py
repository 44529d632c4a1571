import threading
import unittest

from appraisal.models.requests import CalculationRequest, CalculationResult
from appraisal.runtime.worker import ProcessExecutionContext, handle_request


class HandleRequestTests(unittest.TestCase):
    def test_success_envelope(self) -> None:
        result = handle_request(
            {"id": "1", "kind": "BREAKEVEN", "parameters": {"fixed_costs": 100, "variable_cost_per_unit": 5, "price_per_unit": 10}}
        )
        self.assertTrue(result.success)
        self.assertEqual(result.correlation_id, "1")
        self.assertAlmostEqual(result.payload["break_even_units"], 20.0)

    def test_failure_envelope_names_error_type(self) -> None:
        result = handle_request({"id": "2", "kind": "NPV", "parameters": {"cash_flows": [], "discount_rate": 0.1}})
        self.assertFalse(result.success)
        self.assertEqual(result.error_type, "InvalidCashFlows")
        self.assertIn("non-empty", result.error)

    def test_unknown_kind_is_a_failure(self) -> None:
        result = handle_request({"id": "3", "kind": "DCF", "parameters": {}})
        self.assertFalse(result.success)
        self.assertEqual(result.correlation_id, "3")

    def test_cleanup_is_acknowledged(self) -> None:
        result = handle_request({"id": "4", "kind": "CLEANUP", "parameters": {}})
        self.assertTrue(result.success)
        self.assertEqual(result.payload, {"message": "Resources cleaned up"})


class ProcessExecutionContextTests(unittest.TestCase):
    def test_round_trip_through_worker_process(self) -> None:
        received = []
        done = threading.Event()

        def on_message(message):
            received.append(CalculationResult.from_message(message))
            done.set()

        context = ProcessExecutionContext(start_method="spawn")
        context.start(on_message, lambda exc: done.set())
        try:
            self.assertTrue(context.alive)
            request = CalculationRequest.from_message(
                {"id": "abc", "kind": "NPV", "parameters": {"cash_flows": [110], "discount_rate": 0.1}}
            )
            context.post(request.to_message())
            self.assertTrue(done.wait(30))
        finally:
            context.terminate(2.0)

        self.assertEqual(len(received), 1)
        self.assertEqual(received[0].correlation_id, "abc")
        self.assertAlmostEqual(received[0].payload["npv"], 100.0)
        self.assertFalse(context.alive)

    def test_crash_is_reported_as_fault(self) -> None:
        faults = []
        done = threading.Event()

        def on_fault(exc):
            faults.append(exc)
            done.set()

        context = ProcessExecutionContext(start_method="spawn")
        context.start(lambda message: None, on_fault)
        try:
            context.kill()
            self.assertTrue(done.wait(30))
        finally:
            context.terminate(2.0)
        self.assertEqual(len(faults), 1)
        self.assertIn("exited unexpectedly", str(faults[0]))


if __name__ == "__main__":
    unittest.main()
