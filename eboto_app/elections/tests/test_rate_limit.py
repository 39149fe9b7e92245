from dataclasses import dataclass
from unittest.mock import patch

from django.core.cache import cache
from django.test import SimpleTestCase

from elections.rate_limit import allow_request


@dataclass
class _Entry:
    value: int
    expires_at: float | None


class _ExpiringCache:
    """Cache double whose incr() drops the expiry, as some backends do."""

    def __init__(self) -> None:
        self.now = 1000.0
        self.entries: dict[str, _Entry] = {}

    def _alive(self, key: str) -> bool:
        entry = self.entries.get(key)
        return entry is not None and (entry.expires_at is None or entry.expires_at > self.now)

    def add(self, key: str, value: int, timeout: int) -> bool:
        if self._alive(key):
            return False
        self.entries[key] = _Entry(value=value, expires_at=self.now + timeout)
        return True

    def incr(self, key: str) -> int:
        if not self._alive(key):
            raise ValueError("Key does not exist")
        entry = self.entries[key]
        entry.value += 1
        entry.expires_at = None
        return entry.value

    def touch(self, key: str, timeout: int) -> bool:
        if not self._alive(key):
            return False
        self.entries[key].expires_at = self.now + timeout
        return True

    def set(self, key: str, value: int, timeout: int) -> None:
        self.entries[key] = _Entry(value=value, expires_at=self.now + timeout)


class AllowRequestTests(SimpleTestCase):
    def setUp(self) -> None:
        cache.clear()

    def _allow(self, *parts: str, limit: int = 2) -> bool:
        return allow_request(scope="test", key_parts=list(parts), limit=limit, window_seconds=60)

    def test_blocks_after_limit_per_key(self) -> None:
        self.assertTrue(self._allow("1", "juan"))
        self.assertTrue(self._allow("1", "juan"))
        self.assertFalse(self._allow("1", "juan"))
        self.assertTrue(self._allow("1", "maria"))
        self.assertTrue(self._allow("2", "juan"))

    def test_zero_limit_always_blocks(self) -> None:
        self.assertFalse(self._allow("1", "juan", limit=0))

    def test_window_closes_even_when_incr_drops_expiry(self) -> None:
        fake = _ExpiringCache()
        with patch("elections.rate_limit.cache", fake):
            self.assertTrue(self._allow("1", "juan", limit=1))
            self.assertFalse(self._allow("1", "juan", limit=1))
            fake.now += 61
            self.assertTrue(self._allow("1", "juan", limit=1))

    def test_cache_keys_do_not_contain_raw_parts(self) -> None:
        fake = _ExpiringCache()
        with patch("elections.rate_limit.cache", fake):
            self._allow("1", "juan@example.com")
        (key,) = fake.entries
        self.assertTrue(key.startswith("rate_limit:test:"))
        self.assertNotIn("juan", key)
