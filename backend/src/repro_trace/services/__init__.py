"""Services package - export service abstractions."""

from repro_trace.services.environment import capture_environment
from repro_trace.services.generation import GenerationService, service_health
from repro_trace.services.invoker import Invoker, RetryPolicy
from repro_trace.services.provider import (
    OpenAIResponsesClient,
    ProviderClient,
    ProviderResponse,
    classify_provider_error,
)
from repro_trace.services.trace_store import TraceStore

__all__ = [
    "GenerationService",
    "Invoker",
    "OpenAIResponsesClient",
    "ProviderClient",
    "ProviderResponse",
    "RetryPolicy",
    "TraceStore",
    "capture_environment",
    "classify_provider_error",
    "service_health",
]
