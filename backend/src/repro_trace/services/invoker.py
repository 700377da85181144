"""Resilient provider invocation: deadline, retry with backoff, failure capture."""

from __future__ import annotations

import random
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable

from pydantic import BaseModel, Field

from repro_trace.contracts.invocation import (
    InvocationFailure,
    InvocationOutcome,
    InvocationRequest,
    InvocationSuccess,
    ProviderMeta,
)
from repro_trace.errors import ConfigurationError, ProviderError
from repro_trace.logging_config import get_logger
from repro_trace.services.provider import ProviderClient, ProviderResponse, classify_provider_error

logger = get_logger(__name__)


class RetryPolicy(BaseModel):
    """Attempt cap and backoff schedule for one invocation."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay_ms: int = Field(default=400, ge=0)
    jitter_ms: int = Field(default=150, ge=0)

    def backoff_bounds_ms(self, attempt: int) -> tuple[int, int]:
        """Inclusive lower / exclusive upper bound of the sleep after ``attempt``."""
        base = self.base_delay_ms * 2 ** (attempt - 1)
        return base, base + max(self.jitter_ms, 1)


class Invoker:
    """Executes one provider call per ``invoke`` and never raises for provider faults."""

    def __init__(
        self,
        client: ProviderClient,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock

    def invoke(self, request: InvocationRequest) -> InvocationOutcome:
        t0 = self._clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._call_with_deadline(request)
                if not response.output_text.strip():
                    raise ProviderError(
                        "Provider returned an empty output_text.",
                        kind="empty_output",
                        error_body={"response_id": response.response_id},
                    )
            except ConfigurationError:
                raise
            except Exception as exc:
                error = classify_provider_error(exc)
                logger.warning(
                    "invocation_attempt_failed",
                    attempt=attempt,
                    kind=error.kind,
                    status_code=error.status_code,
                    retryable=error.retry_hint,
                    error=error.message[:200],
                )
                if error.retry_hint and attempt < self.policy.max_attempts:
                    delay_ms = self._backoff_ms(attempt)
                    logger.info("invocation_backoff", attempt=attempt, delay_ms=delay_ms)
                    self._sleep(delay_ms / 1000.0)
                    continue

                latency_ms = self._elapsed_ms(t0)
                logger.info(
                    "invocation_failed",
                    kind=error.kind,
                    attempts=attempt,
                    latency_ms=latency_ms,
                )
                return InvocationFailure(
                    kind=error.kind,
                    message=error.message,
                    provider_status_code=error.status_code,
                    provider_error_body=error.error_body,
                    latency_ms=latency_ms,
                )

            latency_ms = self._elapsed_ms(t0)
            logger.info(
                "invocation_succeeded",
                attempts=attempt,
                latency_ms=latency_ms,
                response_id=response.response_id,
            )
            return InvocationSuccess(
                output_text=response.output_text,
                latency_ms=latency_ms,
                provider_meta=ProviderMeta(
                    response_id=response.response_id,
                    request_id=response.request_id,
                    model=response.model or request.model,
                    usage=response.usage,
                    attempts=attempt,
                ),
            )

    def _call_with_deadline(self, request: InvocationRequest) -> ProviderResponse:
        """Run one attempt, abandoning the wait once ``timeout_ms`` elapses."""
        if request.timeout_ms <= 0:
            return self._client.create_response(request)

        # Single-use worker: a timed-out call may still be blocked on the network.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="provider-call")
        try:
            future = executor.submit(self._client.create_response, request)
            try:
                return future.result(timeout=request.timeout_ms / 1000.0)
            except FutureTimeoutError:
                future.cancel()
                raise ProviderError(
                    f"Timeout after {request.timeout_ms}ms",
                    kind="timeout",
                    context={"timeout_ms": request.timeout_ms},
                ) from None
        finally:
            executor.shutdown(wait=False)

    def _backoff_ms(self, attempt: int) -> int:
        low, high = self.policy.backoff_bounds_ms(attempt)
        return self._rng.randrange(low, high)

    def _elapsed_ms(self, t0: float) -> int:
        return max(0, int((self._clock() - t0) * 1000))
