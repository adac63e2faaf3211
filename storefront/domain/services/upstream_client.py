"""
Etsy API v3 client.

Auth is a read-only keystring sent as `x-api-key`; no OAuth.

No method here raises on upstream trouble: every call returns a Result. The retry ladder
(tenacity) separates transient failures (transport errors, 429, 5xx), which are retried with
backoff, from permanent ones (missing key, 404, other 4xx, unparseable body), which fail at once.
Raw upstream detail is logged here and never copied into the returned message.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from storefront.core.config import Settings
from storefront.domain.models.result import Result, UpstreamErrorKind

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

_BODY_PREVIEW = 500


class RetryPolicy(BaseModel):
    max_retries: int = 3
    network_base_ms: int = 500
    network_cap_ms: int = 4000
    rate_limit_base_ms: int = 1000
    rate_limit_cap_ms: int = 8000
    retry_after_cap_ms: int = 30_000

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            network_base_ms=settings.retry_network_base_ms,
            network_cap_ms=settings.retry_network_cap_ms,
            rate_limit_base_ms=settings.retry_rate_limit_base_ms,
            rate_limit_cap_ms=settings.retry_rate_limit_cap_ms,
            retry_after_cap_ms=settings.retry_after_cap_ms,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def network_delay_ms(self, attempt: int) -> int:
        # also used for 5xx
        return min(self.network_base_ms * 2 ** attempt, self.network_cap_ms)

    def rate_limit_delay_ms(self, attempt: int, retry_after: Optional[str] = None) -> int:
        seconds = _parse_retry_after(retry_after)
        if seconds is not None:
            return min(seconds * 1000, self.retry_after_cap_ms)
        return min(self.rate_limit_base_ms * 2 ** attempt, self.rate_limit_cap_ms)


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _body_preview(response: httpx.Response) -> str:
    try:
        text = response.text
    except Exception:
        return "(unreadable)"
    return text if len(text) <= _BODY_PREVIEW else text[:_BODY_PREVIEW] + "…[truncated]"


class RetryableStatus(Exception):
    """A 429 or 5xx answer; carries the response so the wait strategy can read Retry-After."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response

    @property
    def status(self) -> int:
        return self.response.status_code


class BackoffWait:
    """
    tenacity wait strategy driven by RetryPolicy: 429 uses the rate-limit schedule
    (or Retry-After), transport errors and 5xx use the network schedule.
    """

    def __init__(self, policy: RetryPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        attempt = retry_state.attempt_number - 1
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RetryableStatus) and exc.status == 429:
            delay = self.policy.rate_limit_delay_ms(attempt, exc.response.headers.get("Retry-After"))
        else:
            delay = self.policy.network_delay_ms(attempt)
        return delay / 1000.0


def _log_retry(path: str, attempts: int):
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        delay_ms = int(retry_state.next_action.sleep * 1000)
        if isinstance(exc, RetryableStatus):
            reason = "rate_limited" if exc.status == 429 else f"server_error status={exc.status}"
            body = "" if exc.status == 429 else f" body={_body_preview(exc.response)}"
        else:
            reason, body = f"network_error err={exc!r}", ""
        logger.warning(
            "etsy %s path=%s attempt=%s/%s retry_in=%sms%s",
            reason, path, retry_state.attempt_number, attempts, delay_ms, body,
        )
    return before_sleep


class EtsyClient:
    """
    Thin async wrapper over a shared httpx.AsyncClient.
    `sleep` is the cooperative backoff suspension, injectable for tests.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: Optional[str],
        base_url: str = "https://openapi.etsy.com/v3/application",
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _retrying(self, path: str) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=BackoffWait(self.policy),
            retry=retry_if_exception_type((httpx.TransportError, RetryableStatus)),
            before_sleep=_log_retry(path, self.policy.max_attempts),
            sleep=self._sleep,
            reraise=False,
        )

    async def _attempt(self, url: str, path: str, params, headers) -> httpx.Response:
        t0 = time.perf_counter()
        response = await self.http.get(url, params=params, headers=headers)
        logger.debug(
            "etsy response path=%s status=%s time=%.3fs",
            path, response.status_code, time.perf_counter() - t0,
        )
        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableStatus(response)
        return response

    async def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        if not self.api_key:
            # server-side only; the caller just sees the kind
            logger.error("etsy ETSY_API_KEY is not set path=%s", path)
            return Result.failure(UpstreamErrorKind.MISSING_CREDENTIAL, "Etsy API key is not configured")

        url = f"{self.base_url}{path}"
        headers = {"x-api-key": self.api_key, "Accept": "application/json"}

        try:
            response = await self._retrying(path)(self._attempt, url, path, params, headers)
        except RetryError as e:
            return self._exhausted(path, e)

        status = response.status_code
        if status == 404:
            logger.warning("etsy not_found path=%s body=%s", path, _body_preview(response))
            return Result.failure(UpstreamErrorKind.NOT_FOUND, f"Resource not found: {path}", 404)

        if not response.is_success:
            logger.error("etsy api_error path=%s status=%s body=%s", path, status, _body_preview(response))
            return Result.failure(UpstreamErrorKind.UPSTREAM_ERROR, f"Etsy API error ({status})", status)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("etsy parse_error path=%s status=%s err=%s body=%s", path, status, e, _body_preview(response))
            return Result.failure(UpstreamErrorKind.UNKNOWN, "Failed to parse Etsy API response")

        return Result.success(data)

    def _exhausted(self, path: str, error: RetryError) -> Result:
        attempts = error.last_attempt.attempt_number
        exc = error.last_attempt.exception()

        if isinstance(exc, RetryableStatus) and exc.status == 429:
            logger.warning("etsy rate_limited path=%s attempts=%s giving up", path, attempts)
            return Result.failure(
                UpstreamErrorKind.RATE_LIMITED,
                "Etsy API rate limit exceeded. Please try again shortly.",
                429,
            )
        if isinstance(exc, RetryableStatus):
            logger.error(
                "etsy api_error path=%s status=%s attempts=%s body=%s",
                path, exc.status, attempts, _body_preview(exc.response),
            )
            return Result.failure(UpstreamErrorKind.UPSTREAM_ERROR, f"Etsy API error ({exc.status})", exc.status)

        logger.error("etsy network_error path=%s attempts=%s err=%r", path, attempts, exc)
        return Result.failure(UpstreamErrorKind.NETWORK_ERROR, f"Network error after {attempts} attempts")
