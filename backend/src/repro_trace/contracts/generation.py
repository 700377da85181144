"""Boundary models for the generate/lookup flow used by outer surfaces."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class GenerateRequest(BaseModel):
    """Caller input. Unset fields fall back to the configured defaults."""

    prompt: str = Field(min_length=1)
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    timeout_ms: int | None = Field(default=None, ge=0)
    request_id: str | None = None

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be blank")
        return v


class GenerateResponse(BaseModel):
    """Minimal outcome view returned to the caller.

    ``id`` is the trace record id, or None when the trace write failed;
    in that case ``trace_error`` holds the storage fault.
    """

    id: str | None
    request_id: str
    output: str = ""
    latency_ms: int
    error: dict[str, Any] | None = None
    trace_error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
