"""Generate flow: invoke the provider, persist the trace, return a minimal view."""

from __future__ import annotations

import uuid
from typing import Any

from repro_trace.config import Settings
from repro_trace.contracts.generation import GenerateRequest, GenerateResponse
from repro_trace.contracts.invocation import InvocationFailure, InvocationRequest, InvocationSuccess
from repro_trace.contracts.trace import (
    EnvironmentFingerprint,
    TraceRecord,
    TraceRequest,
    TraceSummary,
    new_trace_id,
    now_ms,
)
from repro_trace.errors import StorageError
from repro_trace.logging_config import call_context, get_logger
from repro_trace.services.environment import capture_environment
from repro_trace.services.invoker import Invoker
from repro_trace.services.trace_store import TraceStore

logger = get_logger(__name__)


class GenerationService:
    """Composes the invoker and the trace store for one call at a time."""

    def __init__(
        self,
        invoker: Invoker,
        store: TraceStore,
        settings: Settings,
        environment: EnvironmentFingerprint | None = None,
    ) -> None:
        self.invoker = invoker
        self.store = store
        self.settings = settings
        self.environment = environment or capture_environment(settings.service_version)

    def generate(self, request: GenerateRequest) -> GenerateResponse:
        """
        Run one traced completion.

        The trace id is allocated before the provider call. The outcome is
        reported even when the trace write fails; ``id`` is then None and
        ``trace_error`` describes the storage fault.
        """
        trace_id = new_trace_id()
        request_id = request.request_id or str(uuid.uuid4())
        invocation = InvocationRequest(
            prompt=request.prompt,
            model=request.model or self.settings.default_model,
            temperature=(
                request.temperature
                if request.temperature is not None
                else self.settings.default_temperature
            ),
            max_tokens=request.max_tokens or self.settings.default_max_tokens,
            timeout_ms=(
                request.timeout_ms
                if request.timeout_ms is not None
                else self.settings.default_timeout_ms
            ),
        )

        with call_context(trace_id=trace_id, correlation_id=request_id):
            logger.info("generate_started", model=invocation.model, timeout_ms=invocation.timeout_ms)
            outcome = self.invoker.invoke(invocation)

            record = TraceRecord(
                id=trace_id,
                created_at_ms=now_ms(),
                env=self.environment,
                request=TraceRequest(
                    prompt=invocation.prompt,
                    model=invocation.model,
                    temperature=invocation.temperature,
                    max_tokens=invocation.max_tokens,
                    request_id=request_id,
                ),
                outcome=outcome,
            )

            stored_id: str | None = trace_id
            trace_error: dict[str, Any] | None = None
            try:
                self.store.put(record)
            except StorageError as e:
                logger.error("trace_not_persisted", code=e.code, error=e.message)
                stored_id = None
                trace_error = e.to_dict()

        if isinstance(outcome, InvocationSuccess):
            return GenerateResponse(
                id=stored_id,
                request_id=request_id,
                output=outcome.output_text,
                latency_ms=outcome.latency_ms,
                trace_error=trace_error,
            )
        return GenerateResponse(
            id=stored_id,
            request_id=request_id,
            output="",
            latency_ms=outcome.latency_ms,
            error=_failure_view(outcome),
            trace_error=trace_error,
        )

    def get_trace(self, trace_id: str) -> TraceRecord | None:
        return self.store.get(trace_id)

    def recent_traces(
        self,
        limit: int = 20,
        since_ms: int | None = None,
        until_ms: int | None = None,
    ) -> list[TraceSummary]:
        return self.store.list_recent(limit=limit, since_ms=since_ms, until_ms=until_ms)

    def health(self) -> dict[str, Any]:
        return service_health(self.settings)


def service_health(settings: Settings) -> dict[str, Any]:
    """Liveness view. Needs no provider credentials."""
    return {
        "ok": True,
        "service": settings.service_name,
        "version": settings.service_version,
    }


def _failure_view(failure: InvocationFailure) -> dict[str, Any]:
    view: dict[str, Any] = {"type": failure.kind, "message": failure.message}
    if failure.provider_status_code is not None:
        view["provider_status_code"] = failure.provider_status_code
    return view
