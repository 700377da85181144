"""Tests for the repro-trace operator CLI."""

import json
import sqlite3
from pathlib import Path

import pytest

from repro_trace.cli import EXIT_FAILURE, EXIT_STARTUP, build_parser, main
from repro_trace.config import Settings
from repro_trace.services.provider import ProviderResponse
from repro_trace.services.trace_store import TraceStore


class StaticClient:
    def __init__(self, text: str) -> None:
        self.text = text
        self.requests = []

    def create_response(self, request):
        self.requests.append(request)
        return ProviderResponse(output_text=self.text, response_id="resp_cli")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key=None,
        trace_db_path=str(tmp_path / "cli.sqlite3"),
        retry_base_delay_ms=0,
        retry_jitter_ms=0,
    )


def _stdout_json(capsys):
    return json.loads(capsys.readouterr().out)


class TestParser:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_generate_flags(self):
        args = build_parser().parse_args(
            ["generate", "--prompt", "hi", "--max-tokens", "5", "--timeout-ms", "0", "--temperature", "0.1"]
        )
        assert args.prompt == "hi"
        assert args.max_tokens == 5
        assert args.timeout_ms == 0
        assert args.temperature == 0.1
        assert args.model is None


class TestGenerate:

    def test_generate_then_show(self, settings, capsys):
        client = StaticClient("Hello from the CLI.")

        code = main(["generate", "--prompt", "Say hello", "--request-id", "cli-1"], settings=settings, client=client)
        assert code == 0
        generated = _stdout_json(capsys)
        assert generated["output"] == "Hello from the CLI."
        assert generated["request_id"] == "cli-1"
        assert "error" not in generated

        code = main(["show", generated["id"]], settings=settings)
        assert code == 0
        shown = _stdout_json(capsys)
        assert shown["id"] == generated["id"]
        assert shown["request"]["prompt"] == "Say hello"
        assert shown["outcome"]["status"] == "ok"
        assert shown["outcome"]["provider_meta"]["response_id"] == "resp_cli"

    def test_failed_outcome_exits_nonzero(self, settings, capsys):
        code = main(["generate", "--prompt", "hi"], settings=settings, client=StaticClient("  "))

        assert code == EXIT_FAILURE
        body = _stdout_json(capsys)
        assert body["error"]["type"] == "empty_output"
        assert body["output"] == ""
        assert body["id"]

    def test_missing_api_key_is_startup_error(self, settings, capsys):
        code = main(["generate", "--prompt", "hi"], settings=settings)

        assert code == EXIT_STARTUP
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "CONFIGURATION_ERROR" in captured.err

    @pytest.mark.parametrize("prompt", ["   ", "\n\t"])
    def test_blank_prompt_is_usage_error(self, settings, capsys, prompt):
        client = StaticClient("unused")

        code = main(["generate", "--prompt", prompt], settings=settings, client=client)

        assert code == EXIT_STARTUP
        captured = capsys.readouterr()
        assert captured.out == ""
        assert json.loads(captured.err)["code"] == "INVALID_REQUEST"
        assert client.requests == []
        assert not Path(settings.trace_db_path).exists()

    def test_invalid_max_tokens_is_usage_error(self, settings, capsys):
        code = main(["generate", "--prompt", "hi", "--max-tokens", "0"], settings=settings, client=StaticClient("x"))
        assert code == EXIT_STARTUP
        assert "INVALID_REQUEST" in capsys.readouterr().err


class TestLookup:

    def test_show_missing_trace(self, settings, capsys):
        code = main(["show", "nope"], settings=settings)
        assert code == EXIT_FAILURE
        assert "not found" in capsys.readouterr().err

    def test_recent_lists_newest_first(self, settings, capsys):
        client = StaticClient("ok")
        ids = []
        for prompt in ("one", "two"):
            main(["generate", "--prompt", prompt], settings=settings, client=client)
            ids.append(_stdout_json(capsys)["id"])

        code = main(["recent", "--limit", "5"], settings=settings)
        assert code == 0
        rows = _stdout_json(capsys)
        assert {row["id"] for row in rows} == set(ids)
        assert rows[0]["created_at_ms"] >= rows[1]["created_at_ms"]

    def test_recent_on_empty_store(self, settings, capsys):
        assert main(["recent"], settings=settings) == 0
        assert _stdout_json(capsys) == []

    @pytest.mark.parametrize("limit", ["0", "-3"])
    def test_recent_rejects_non_positive_limit(self, settings, limit):
        with pytest.raises(SystemExit) as exc_info:
            main(["recent", "--limit", limit], settings=settings)
        assert exc_info.value.code == 2

    def test_show_corrupt_trace_is_lookup_failure(self, settings, capsys):
        TraceStore(settings.trace_db_path).close()
        conn = sqlite3.connect(settings.trace_db_path)
        try:
            conn.execute(
                "INSERT INTO trace_records (id, created_at_ms, payload_json) VALUES (?, ?, ?)",
                ("broken", 1, "{not json"),
            )
            conn.commit()
        finally:
            conn.close()

        code = main(["show", "broken"], settings=settings)

        assert code == EXIT_FAILURE
        assert "CORRUPT_TRACE" in capsys.readouterr().err


class TestHealth:

    def test_health(self, settings, capsys):
        code = main(["health"], settings=settings, client=StaticClient("ok"))
        assert code == 0
        assert _stdout_json(capsys) == {"ok": True, "service": "llm-repro-trace-kit", "version": "0.1.0"}

    def test_health_needs_no_api_key(self, settings, capsys):
        assert main(["health"], settings=settings) == 0
        assert _stdout_json(capsys)["ok"] is True

    def test_health_reports_unusable_store(self, settings, tmp_path, capsys):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        broken = settings.model_copy(update={"trace_db_path": str(blocker / "db.sqlite3")})

        assert main(["health"], settings=broken) == EXIT_STARTUP
        assert "STORAGE_UNAVAILABLE" in capsys.readouterr().err
