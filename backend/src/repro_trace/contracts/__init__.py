"""Contracts package - export key models."""

from repro_trace.contracts.invocation import (
    RETRYABLE_KINDS,
    InvocationFailure,
    InvocationOutcome,
    InvocationRequest,
    InvocationSuccess,
    ProviderMeta,
)
from repro_trace.contracts.trace import (
    EnvironmentFingerprint,
    TraceRecord,
    TraceRequest,
    TraceSummary,
    new_trace_id,
    now_ms,
)
from repro_trace.contracts.generation import GenerateRequest, GenerateResponse

__all__ = [
    "EnvironmentFingerprint",
    "GenerateRequest",
    "GenerateResponse",
    "InvocationFailure",
    "InvocationOutcome",
    "InvocationRequest",
    "InvocationSuccess",
    "ProviderMeta",
    "RETRYABLE_KINDS",
    "TraceRecord",
    "TraceRequest",
    "TraceSummary",
    "new_trace_id",
    "now_ms",
]
