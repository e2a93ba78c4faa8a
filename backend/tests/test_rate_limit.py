import unittest
from unittest.mock import MagicMock

from legate.middleware.errors import RateLimited
from legate.middleware.rate_limit import (
    InMemoryRateLimitStore,
    WriteRateLimiter,
    client_key,
)


class ManualClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _request(headers):
    request = MagicMock()
    request.headers = {k.lower(): v for k, v in headers.items()}
    return request


class TestClientKey(unittest.TestCase):

    def test_prefers_first_forwarded_hop(self):
        request = _request({"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1", "X-Real-IP": "10.0.0.2"})
        self.assertEqual(client_key(request), "203.0.113.7")

    def test_falls_back_to_real_ip(self):
        self.assertEqual(client_key(_request({"X-Real-IP": " 10.0.0.2 "})), "10.0.0.2")

    def test_falls_back_to_truncated_user_agent(self):
        request = _request({"User-Agent": "x" * 100})
        self.assertEqual(client_key(request), "ua:" + "x" * 64)
        self.assertEqual(client_key(_request({})), "ua:")


class TestInMemoryRateLimitStore(unittest.TestCase):

    def test_sliding_window(self):
        store = InMemoryRateLimitStore()

        for second in range(3):
            self.assertTrue(store.hit("k", max_hits=3, window_seconds=60, now=100 + second).allowed)

        denied = store.hit("k", max_hits=3, window_seconds=60, now=130)
        self.assertFalse(denied.allowed)
        self.assertEqual(denied.retry_after_seconds, 30)

        # first hit (t=100) leaves the window at t=160
        self.assertTrue(store.hit("k", max_hits=3, window_seconds=60, now=160).allowed)

    def test_retry_after_rounds_up_and_is_at_least_one(self):
        store = InMemoryRateLimitStore()
        store.hit("k", max_hits=1, window_seconds=60, now=0)

        self.assertEqual(store.hit("k", 1, 60, now=30.2).retry_after_seconds, 30)
        self.assertEqual(store.hit("k", 1, 60, now=59.99).retry_after_seconds, 1)

    def test_denied_hits_are_not_recorded(self):
        store = InMemoryRateLimitStore()
        store.hit("k", 1, 60, now=0)
        store.hit("k", 1, 60, now=10)
        store.hit("k", 1, 60, now=20)

        self.assertTrue(store.hit("k", 1, 60, now=60).allowed)

    def test_stale_keys_are_dropped(self):
        store = InMemoryRateLimitStore()
        for i in range(1000):
            store.hit(f"spoofed-{i}", 40, 60, now=0)
        self.assertEqual(store.tracked_keys(), 1000)

        store.hit("latecomer", 40, 60, now=10_000)

        self.assertEqual(store.tracked_keys(), 1)

    def test_sweep_keeps_clients_inside_the_window(self):
        store = InMemoryRateLimitStore()
        store.hit("old", 1, 60, now=0)
        store.hit("recent", 1, 60, now=50)

        store.hit("new", 1, 60, now=70)

        self.assertEqual(store.tracked_keys(), 2)
        self.assertFalse(store.hit("recent", 1, 60, now=71).allowed)

    def test_keys_are_independent(self):
        store = InMemoryRateLimitStore()
        store.hit("a", 1, 60, now=0)
        self.assertTrue(store.hit("b", 1, 60, now=0).allowed)

        store.reset()
        self.assertTrue(store.hit("a", 1, 60, now=1).allowed)


class TestWriteRateLimiter(unittest.TestCase):

    def test_rejects_after_budget(self):
        clock = ManualClock()
        store = InMemoryRateLimitStore()
        limiter = WriteRateLimiter(store, max_requests=40, window_seconds=60, clock=clock)
        request = _request({"X-Forwarded-For": "198.51.100.1"})

        for _ in range(40):
            limiter.check(request)

        clock.now += 15
        with self.assertRaises(RateLimited) as ctx:
            limiter.check(request)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.detail, "Too many requests. Please try again shortly.")
        self.assertEqual(ctx.exception.retry_after_seconds, 45)
        self.assertEqual(ctx.exception.headers, {"Retry-After": "45"})

        # other clients are unaffected
        limiter.check(_request({"X-Forwarded-For": "198.51.100.2"}))

    def test_keys_are_prefixed(self):
        store = MagicMock()
        store.hit.return_value = MagicMock(allowed=True)
        limiter = WriteRateLimiter(store, max_requests=5, clock=ManualClock(7.0))

        limiter.check(_request({"X-Real-IP": "10.1.1.1"}))

        store.hit.assert_called_once_with("estate-invites:10.1.1.1", 5, 60, 7.0)


if __name__ == "__main__":
    unittest.main()
