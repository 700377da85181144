"""
Error taxonomy for the repro-trace system.

Defines hierarchical exceptions with standardized attributes for consistent
error handling, logging, and client communication.

Each error class implements:
- code: String identifier for the error type
- message: Human-readable description
- context: Dict containing additional contextual information
- retry_hint: Boolean indicating if retry might succeed
"""
from __future__ import annotations
from typing import Any, Literal

FailureKind = Literal["rate_limit", "timeout", "provider_error", "empty_output", "unknown"]

# Transient kinds; the invoker retries these and nothing else.
RETRYABLE_KINDS: frozenset[str] = frozenset({"rate_limit", "timeout", "provider_error"})


class ReproTraceError(Exception):
    """Base exception for all repro-trace errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context) if context else {}
        self.retry_hint = retry_hint

    def to_dict(self) -> dict[str, Any]:
        """Serialize to structured dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
            "retry_hint": self.retry_hint,
        }


class ProviderError(ReproTraceError):
    """A single failed provider attempt, already classified.

    Raised and caught inside the invoker's attempt loop; callers of
    ``Invoker.invoke`` only ever see the resulting failure outcome.
    ``retry_hint`` follows from ``kind`` (see RETRYABLE_KINDS).
    """

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind = "unknown",
        status_code: int | None = None,
        error_body: Any = None,
        provider: str = "openai",
        code: str = "PROVIDER_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = dict(context) if context else {}
        ctx["provider"] = provider
        ctx["kind"] = kind
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message, code=code, context=ctx, retry_hint=kind in RETRYABLE_KINDS)
        self.kind = kind
        self.status_code = status_code
        self.error_body = error_body


class ConfigurationError(ReproTraceError):
    """Missing or invalid configuration."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CONFIGURATION_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class StorageError(ReproTraceError):
    """Trace persistence failure (init, write, or corrupt read)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "STORAGE_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)
