"""Per-connection limits for WebSocket traffic."""

import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field


class TokenBucket:
    """Rate limiter using the token bucket algorithm.

    Tokens refill at ``rate`` per second up to ``burst``. Each consume()
    call takes one token and returns False when none is left, in which case
    the caller drops the message.
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        if rate <= 0 or burst < 1:
            raise ValueError(f"rate must be positive and burst at least 1, got rate={rate} burst={burst}")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last_refill = clock()

    @property
    def tokens(self) -> float:
        return self._tokens

    def consume(self) -> bool:
        """Take one token. Returns True if allowed, False if rate-limited."""
        now = self._clock()
        self._tokens = min(self._burst, self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now

        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True


class ConnectionLimits(BaseModel):
    """
    Abuse limits applied to every player connection.

    A round needs only a handful of messages per player (one submission,
    maybe a resubmission), so the defaults are far above legitimate play.
    """

    model_config = ConfigDict(frozen=True)

    messages_per_second: float = Field(default=50.0, gt=0)
    message_burst: int = Field(default=80, ge=1)
    # consecutive undecodable frames before the socket is closed
    max_decode_errors: int = Field(default=5, ge=1)

    def new_bucket(self, clock: Callable[[], float] = time.monotonic) -> TokenBucket:
        return TokenBucket(rate=self.messages_per_second, burst=self.message_burst, clock=clock)
