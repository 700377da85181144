"""Operator CLI: repro-trace {generate,show,recent,health}."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from pydantic import ValidationError

from repro_trace.config import Settings, get_settings
from repro_trace.deps import bootstrap, create_trace_store
from repro_trace.errors import ConfigurationError, StorageError
from repro_trace.contracts.generation import GenerateRequest
from repro_trace.logging_config import configure_logging
from repro_trace.services.generation import service_health
from repro_trace.services.provider import ProviderClient

# 1: the call failed, or the trace is missing or unreadable.
# 2: the command could not run (bad input, configuration, storage).
EXIT_FAILURE = 1
EXIT_STARTUP = 2


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="repro-trace", description="Traced LLM prompt completion")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Run one traced completion")
    gen.add_argument("--prompt", required=True, help="Prompt text")
    gen.add_argument("--model", default=None, help="Model name (default from settings)")
    gen.add_argument("--temperature", type=float, default=None, help="Sampling temperature")
    gen.add_argument("--max-tokens", type=int, default=None, help="Max output tokens")
    gen.add_argument("--timeout-ms", type=int, default=None, help="Per-attempt deadline, 0 disables")
    gen.add_argument("--request-id", default=None, help="Caller-supplied request id")

    show = subparsers.add_parser("show", help="Print a stored trace record")
    show.add_argument("trace_id", help="Trace record id")

    recent = subparsers.add_parser("recent", help="List recent trace ids")
    recent.add_argument("--limit", type=_positive_int, default=20, help="Max rows")
    recent.add_argument("--since-ms", type=int, default=None, help="Only records created at or after")

    subparsers.add_parser("health", help="Check settings and the trace store")
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    client: ProviderClient | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _settings = settings or get_settings()

    try:
        if args.command == "generate":
            return _generate(args, _settings, client)

        configure_logging(_settings.log_level)
        store = create_trace_store(_settings)
        try:
            if args.command == "health":
                store.count()
                _print_json(service_health(_settings))
                return 0
            if args.command == "show":
                try:
                    record = store.get(args.trace_id)
                except StorageError as exc:
                    if exc.code != "CORRUPT_TRACE":
                        raise
                    _print_json(exc.to_dict(), stream=sys.stderr)
                    return EXIT_FAILURE
                if record is None:
                    print(f"Trace {args.trace_id} not found", file=sys.stderr)
                    return EXIT_FAILURE
                _print_json(record.model_dump(mode="json"))
                return 0
            if args.command == "recent":
                rows = store.list_recent(limit=args.limit, since_ms=args.since_ms)
                _print_json([r.model_dump() for r in rows])
                return 0
        finally:
            store.close()
    except ValidationError as exc:
        _print_json(
            {
                "code": "INVALID_REQUEST",
                "message": "Invalid generate request",
                "errors": json.loads(exc.json(include_url=False)),
            },
            stream=sys.stderr,
        )
        return EXIT_STARTUP
    except (ConfigurationError, StorageError) as exc:
        _print_json(exc.to_dict(), stream=sys.stderr)
        return EXIT_STARTUP

    parser.error("Unknown command")
    return EXIT_STARTUP


def _generate(args: argparse.Namespace, settings: Settings, client: ProviderClient | None) -> int:
    # Validate before opening the store or building the client.
    request = GenerateRequest(
        prompt=args.prompt,
        model=args.model,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        timeout_ms=args.timeout_ms,
        request_id=args.request_id,
    )
    service = bootstrap(settings, client=client)
    try:
        response = service.generate(request)
    finally:
        service.store.close()
    _print_json(response.model_dump(exclude_none=True))
    return 0 if response.ok else EXIT_FAILURE


def _print_json(payload: Any, stream: Any = None) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False), file=stream or sys.stdout)


if __name__ == "__main__":
    raise SystemExit(main())
