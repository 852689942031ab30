"""Per-IP signup rate limiting using throttled-py"""
from dataclasses import dataclass
from datetime import timedelta

from throttled import Throttled, RateLimiterType, store, rate_limiter

from core.config import (
    REDIS_URL,
    RATE_LIMIT_ALGORITHM,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_MS,
    logger,
)
from core.exceptions import RateLimited

_ALGORITHMS = {t.value: t for t in RateLimiterType}


def build_store(redis_url: str = ""):
    """Redis when configured (shared across workers/instances), otherwise process memory."""
    try:
        if redis_url:
            # RedisStore expects the URL string, not a Redis client object
            storage = store.RedisStore(server=redis_url)
            logger.info("[rate_limit] Using Redis for rate limiting")
            return storage
        logger.warning("[rate_limit] REDIS_URL not set - using in-memory storage (not suitable for multiple instances)")
    except Exception as ex:
        logger.warning(f"[rate_limit] Redis connection failed, using in-memory storage: {ex}")
    return store.MemoryStore()


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int | None = None


class SignupRateLimiter:
    """
    Caps signup attempts per client IP within a rolling window.

    The counter read-increment-compare is done atomically by the throttled
    store, so concurrent requests from the same IP can't slip past the cap.
    """

    def __init__(
        self,
        window: timedelta = timedelta(milliseconds=RATE_LIMIT_WINDOW_MS),
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        storage=None,
        algorithm: str = RATE_LIMIT_ALGORITHM,
    ):
        if algorithm not in _ALGORITHMS:
            raise ValueError(f"unknown rate limit algorithm: {algorithm}")
        self.algorithm = algorithm
        self.window = window
        self.max_requests = max_requests
        self.storage = storage if storage is not None else store.MemoryStore()
        self._throttle = Throttled(
            using=_ALGORITHMS[algorithm].value,
            quota=rate_limiter.per_duration(window, limit=max_requests),
            store=self.storage,
        )

    @staticmethod
    def _key(client_ip: str) -> str:
        return f"signup:{client_ip}"

    def hit(self, client_ip: str) -> RateLimitDecision:
        """Count one attempt for ``client_ip`` and report whether it is within budget."""
        try:
            result = self._throttle.limit(self._key(client_ip), cost=1)
        except Exception as ex:
            # Fail open - a broken limiter backend must not take signups down
            logger.warning(f"[rate_limit] Signup rate limit check failed: {ex}")
            return RateLimitDecision(allowed=True)

        if not result.limited:
            return RateLimitDecision(allowed=True)

        logger.warning(f"Rate limit exceeded for IP: {client_ip}")
        retry_after = getattr(getattr(result, "state", None), "retry_after", None)
        if retry_after is not None:
            retry_after = max(1, int(round(retry_after)))
        return RateLimitDecision(allowed=False, retry_after=retry_after)

    def check(self, client_ip: str) -> None:
        """Raise RateLimited when ``client_ip`` is over budget."""
        decision = self.hit(client_ip)
        if not decision.allowed:
            raise RateLimited(f"signup budget exhausted for {client_ip}", retry_after=decision.retry_after)


def create_signup_limiter() -> SignupRateLimiter:
    """Limiter built from environment configuration."""
    return SignupRateLimiter(storage=build_store(REDIS_URL))
