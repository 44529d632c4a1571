import unittest

from appraisal.models.requests import build_parameters
from appraisal.runtime.cache import ResultCache, cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ResultCacheTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()

    def test_entries_expire_after_ttl(self) -> None:
        cache = ResultCache(max_size=5, ttl=10.0, clock=self.clock)
        cache.set("a", 1)
        self.clock.now = 9.9
        self.assertEqual(cache.get("a"), 1)
        self.clock.now = 10.0
        self.assertIsNone(cache.get("a"))
        self.assertEqual(len(cache), 0)

    def test_least_recently_used_is_evicted(self) -> None:
        cache = ResultCache(max_size=2, ttl=60.0, clock=self.clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        self.assertIsNone(cache.get("b"))
        self.assertEqual(cache.get("a"), 1)
        self.assertEqual(cache.get("c"), 3)

    def test_zero_size_disables_caching(self) -> None:
        cache = ResultCache(max_size=0, clock=self.clock)
        cache.set("a", 1)
        self.assertFalse(cache.enabled)
        self.assertIsNone(cache.get("a"))

    def test_key_depends_on_kind_and_inputs(self) -> None:
        first = build_parameters("NPV", {"cash_flows": [1, 2], "discount_rate": 0.1})
        same = build_parameters("NPV", {"cash_flows": [1.0, 2.0], "discount_rate": 0.1})
        other = build_parameters("NPV", {"cash_flows": [1, 2], "discount_rate": 0.2})
        self.assertEqual(cache_key(first.kind, first), cache_key(same.kind, same))
        self.assertNotEqual(cache_key(first.kind, first), cache_key(other.kind, other))
        self.assertTrue(cache_key(first.kind, first).startswith("NPV:"))


if __name__ == "__main__":
    unittest.main()
