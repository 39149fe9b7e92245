import hashlib
import logging
from collections.abc import Iterable

from django.core.cache import cache

logger = logging.getLogger(__name__)


def _cache_key(*, scope: str, key_parts: Iterable[str]) -> str:
    # Key parts may contain emails; hash them so they never land in cache keys verbatim.
    digest = hashlib.sha256("\x1f".join(str(p) for p in key_parts).encode("utf-8")).hexdigest()
    return f"rate_limit:{scope}:{digest}"


def allow_request(*, scope: str, key_parts: Iterable[str], limit: int, window_seconds: int) -> bool:
    """Fixed-window counter; returns False once ``limit`` hits land in one window."""
    if limit <= 0:
        return False

    key = _cache_key(scope=scope, key_parts=key_parts)

    if cache.add(key, 1, timeout=window_seconds):
        return True

    try:
        count = int(cache.incr(key))
    except ValueError:
        # The window expired between add() and incr(); start a new one.
        cache.set(key, 1, timeout=window_seconds)
        return True

    # Some backends drop the expiry on incr(); put it back so the window can close.
    cache.touch(key, timeout=window_seconds)

    if count > limit:
        logger.info("Rate limit exceeded scope=%s count=%s limit=%s", scope, count, limit)
        return False
    return True
