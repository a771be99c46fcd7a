import logging
import random
import time
from typing import Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.stop import stop_base
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

# Status codes a cold or redeploying host answers with before it is ready.
RETRYABLE_STATUSES = frozenset({404, 502, 503})

MAX_DELAY_SECONDS = 120.0
BACKOFF_FACTOR = 2.0
JITTER_RATIO = 0.25


class TransientFetchError(Exception):
    def __init__(self, url: str, status_code: Optional[int] = None):
        super().__init__(f"Transient failure fetching {url} (status={status_code})")
        self.url = url
        self.status_code = status_code


class FetchExhausted(Exception):
    def __init__(self, url: str, attempts: int, waited_seconds: float, last_error: Optional[BaseException]):
        super().__init__(
            f"Giving up on {url} after {attempts} attempts and {waited_seconds:.1f}s of waiting: {last_error}"
        )
        self.url = url
        self.attempts = attempts
        self.waited_seconds = waited_seconds
        self.last_error = last_error


class stop_after_total_wait(stop_base):
    """Stop once the time spent sleeping between attempts reaches ``max_wait`` seconds."""

    def __init__(self, max_wait: float):
        self.max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> bool:
        return retry_state.idle_for >= self.max_wait


class wait_capped_backoff(wait_base):
    """``initial * factor**(n-1)`` plus up to ``jitter`` of itself, never above ``cap``."""

    def __init__(
        self,
        initial: float,
        factor: float = BACKOFF_FACTOR,
        jitter: float = JITTER_RATIO,
        cap: float = MAX_DELAY_SECONDS,
        rng: Callable[[float, float], float] = random.uniform,
    ):
        self.initial = initial
        self.factor = factor
        self.jitter = jitter
        self.cap = cap
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        base = min(self.initial * self.factor ** (retry_state.attempt_number - 1), self.cap)
        return min(base * (1 + self.rng(0.0, self.jitter)), self.cap)


def _send(session: requests.Session, method: str, url: str, timeout: float, **kwargs) -> requests.Response:
    response = session.request(method, url, timeout=timeout, **kwargs)
    if response.status_code in RETRYABLE_STATUSES:
        raise TransientFetchError(url, response.status_code)
    response.raise_for_status()
    return response


def fetch_with_retry(
    session: requests.Session,
    method: str,
    url: str,
    max_attempts: int = 5,
    initial_delay_ms: int = 2000,
    max_total_wait_ms: int = 300_000,
    timeout: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
    wait: Optional[wait_base] = None,
    **kwargs,
) -> requests.Response:
    """Send a request, retrying cold-start statuses and network errors.

    404/502/503, connection errors and timeouts are retried with growing,
    jittered delays until ``max_attempts`` or until the accumulated wait
    reaches ``max_total_wait_ms``; then ``FetchExhausted`` is raised. Any other
    error status raises ``requests.HTTPError`` on the first occurrence.
    """
    def _exhausted(retry_state: RetryCallState):
        last_error = retry_state.outcome.exception() if retry_state.outcome else None
        raise FetchExhausted(
            url=url,
            attempts=retry_state.attempt_number,
            waited_seconds=retry_state.idle_for,
            last_error=last_error,
        ) from last_error

    retrying = Retrying(
        retry=retry_if_exception_type(
            (TransientFetchError, requests.ConnectionError, requests.Timeout)
        ),
        stop=stop_after_attempt(max_attempts) | stop_after_total_wait(max_total_wait_ms / 1000.0),
        wait=wait or wait_capped_backoff(initial_delay_ms / 1000.0),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=_exhausted,
    )
    return retrying(_send, session, method, url, timeout, **kwargs)
