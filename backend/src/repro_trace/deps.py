"""Dependency injection helpers."""

from __future__ import annotations

from repro_trace.config import Settings, get_settings
from repro_trace.logging_config import configure_logging, get_logger
from repro_trace.services.generation import GenerationService
from repro_trace.services.invoker import Invoker, RetryPolicy
from repro_trace.services.provider import OpenAIResponsesClient, ProviderClient
from repro_trace.services.trace_store import TraceStore

logger = get_logger(__name__)


def create_provider_client(settings: Settings) -> OpenAIResponsesClient:
    """Create the shared OpenAI client. Raises ConfigurationError without a key."""
    return OpenAIResponsesClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )


def create_retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        base_delay_ms=settings.retry_base_delay_ms,
        jitter_ms=settings.retry_jitter_ms,
    )


def create_trace_store(settings: Settings) -> TraceStore:
    """Open (and initialize) the trace database."""
    return TraceStore(settings.trace_db_path)


def create_invoker(settings: Settings, client: ProviderClient) -> Invoker:
    return Invoker(client, create_retry_policy(settings))


def create_generation_service(
    settings: Settings | None = None,
    client: ProviderClient | None = None,
    store: TraceStore | None = None,
) -> GenerationService:
    """Create generation service with default dependencies."""
    _settings = settings or get_settings()
    _client = client or create_provider_client(_settings)
    _store = store or create_trace_store(_settings)
    return GenerationService(
        invoker=create_invoker(_settings, _client),
        store=_store,
        settings=_settings,
    )


def bootstrap(
    settings: Settings | None = None,
    client: ProviderClient | None = None,
) -> GenerationService:
    """
    Process startup: configure logging, open the store, build the client.

    Raises ConfigurationError or StorageError; callers should abort start-up
    rather than serve broken calls.
    """
    _settings = settings or get_settings()
    configure_logging(_settings.log_level)
    store = create_trace_store(_settings)
    logger.info("trace_store_ready", path=store.path)
    try:
        _client = client or create_provider_client(_settings)
    except Exception:
        store.close()
        raise
    service = create_generation_service(_settings, client=_client, store=store)
    logger.info(
        "service_started",
        service=_settings.service_name,
        version=_settings.service_version,
    )
    return service
