"""Invocation contracts: one prompt-completion request and its outcome."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repro_trace.errors import RETRYABLE_KINDS, FailureKind


class InvocationRequest(BaseModel):
    """Parameters for a single provider call. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(min_length=1)
    model: str = Field(min_length=1)
    temperature: float
    max_tokens: int = Field(gt=0)
    timeout_ms: int = Field(default=0, ge=0)  # 0 = no deadline

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be blank")
        return v


class ProviderMeta(BaseModel):
    """Provider-side identifiers and usage for a successful call."""

    model_config = ConfigDict(frozen=True)

    response_id: str | None = None
    request_id: str | None = None
    model: str
    usage: dict[str, Any] | None = None
    attempts: int = Field(ge=1)


class InvocationSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["ok"] = "ok"
    output_text: str = Field(min_length=1)
    latency_ms: int = Field(ge=0)
    provider_meta: ProviderMeta


class InvocationFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    kind: FailureKind
    message: str
    provider_status_code: int | None = None
    provider_error_body: Any = None
    latency_ms: int = Field(ge=0)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


InvocationOutcome = Annotated[
    Union[InvocationSuccess, InvocationFailure],
    Field(discriminator="status"),
]
