"""Reproducibility trace records: one immutable record per invocation."""

import time
import uuid

from pydantic import BaseModel, ConfigDict, Field

from repro_trace.contracts.invocation import InvocationOutcome


def new_trace_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


class EnvironmentFingerprint(BaseModel):
    """Where the call ran. Captured once per record, never mutated."""

    model_config = ConfigDict(frozen=True)

    runtime_version: str
    platform: str
    host_name: str
    service_version: str


class TraceRequest(BaseModel):
    """Request snapshot stored with the trace."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    model: str
    temperature: float
    max_tokens: int
    request_id: str


class TraceRecord(BaseModel):
    """Full record of one invocation: environment, request and outcome.

    ``id`` and ``created_at_ms`` are supplied by the caller; the id is
    generated before the provider call so it can be returned even when
    the call fails.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    created_at_ms: int = Field(ge=0)
    env: EnvironmentFingerprint
    request: TraceRequest
    outcome: InvocationOutcome


class TraceSummary(BaseModel):
    """Row-level view used when listing records by creation time."""

    id: str
    created_at_ms: int
