"""OpenAI Responses API client and provider error classification."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import openai
from pydantic import BaseModel

from repro_trace.contracts.invocation import InvocationRequest
from repro_trace.errors import ConfigurationError, FailureKind, ProviderError
from repro_trace.logging_config import get_logger

logger = get_logger(__name__)

PROVIDER_NAME = "openai"


class ProviderResponse(BaseModel):
    """Normalized provider reply, before output validation."""

    output_text: str
    response_id: str | None = None
    request_id: str | None = None
    model: str | None = None
    usage: dict[str, Any] | None = None


class ProviderClient(Protocol):
    """Anything that can run one completion call for the invoker."""

    def create_response(self, request: InvocationRequest) -> ProviderResponse: ...


def to_json_safe(obj: Any) -> Any:
    """Recursively convert SDK objects (with model_dump) to plain JSON values."""
    if hasattr(obj, "model_dump"):
        return to_json_safe(obj.model_dump(mode="json"))
    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(v) for v in obj]
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


class OpenAIResponsesClient:
    """Thin wrapper over ``openai.OpenAI().responses``.

    Built once at startup and shared read-only across calls. SDK-level
    retries are disabled; the invoker owns the retry policy.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ConfigurationError(
                    "Missing OPENAI_API_KEY in environment variables.",
                    context={"setting": "openai_api_key"},
                )
            client = openai.OpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self._client = client

    def create_response(self, request: InvocationRequest) -> ProviderResponse:
        kwargs: dict[str, Any] = {
            "model": request.model,
            "input": request.prompt,
            "temperature": request.temperature,
            "max_output_tokens": request.max_tokens,
        }
        if request.timeout_ms > 0:
            kwargs["timeout"] = request.timeout_ms / 1000.0

        resp = self._client.responses.create(**kwargs)

        usage = getattr(resp, "usage", None)
        model = getattr(resp, "model", None)
        return ProviderResponse(
            output_text=getattr(resp, "output_text", None) or "",
            response_id=getattr(resp, "id", None),
            request_id=getattr(resp, "_request_id", None),
            model=model if isinstance(model, str) else None,
            usage=to_json_safe(usage) if usage is not None else None,
        )


def classify_provider_error(exc: BaseException) -> ProviderError:
    """Map any exception raised by a provider call onto the failure taxonomy.

    429 -> rate_limit, >=500 -> provider_error, SDK timeout -> timeout (all
    retryable). Every other shape, including 4xx and connection errors,
    maps to unknown and is terminal.
    """
    if isinstance(exc, ProviderError):
        return exc

    if isinstance(exc, openai.APITimeoutError):
        return ProviderError(
            str(exc) or "Request timed out.",
            kind="timeout",
            provider=PROVIDER_NAME,
        )

    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        body = _status_error_body(exc)
        kind: FailureKind
        if status == 429:
            kind = "rate_limit"
        elif status >= 500:
            kind = "provider_error"
        else:
            kind = "unknown"
        return ProviderError(
            exc.message,
            kind=kind,
            status_code=status,
            error_body=body,
            provider=PROVIDER_NAME,
        )

    if isinstance(exc, openai.APIError):
        return ProviderError(
            exc.message,
            kind="unknown",
            error_body=to_json_safe(exc.body) if exc.body is not None else None,
            provider=PROVIDER_NAME,
        )

    logger.debug("unrecognised_provider_exception", exc_type=type(exc).__name__)
    return ProviderError(
        str(exc) or type(exc).__name__,
        kind="unknown",
        error_body={"type": type(exc).__name__, "message": str(exc)},
        provider=PROVIDER_NAME,
    )


def _status_error_body(exc: openai.APIStatusError) -> Any:
    if exc.body is not None:
        return to_json_safe(exc.body)
    response = getattr(exc, "response", None)
    if isinstance(response, httpx.Response):
        try:
            text = response.text
        except httpx.ResponseNotRead:
            return None
        return text[:2000] or None
    return None
