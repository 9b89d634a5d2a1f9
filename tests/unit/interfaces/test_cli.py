"""Tests for the command line entrypoint."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import pytest

from codeseek.infrastructure.config import AppConfig
from codeseek.interfaces.cli import cli


class TestParseArgs:
    def test_serve(self) -> None:
        args = cli._parse_args(["serve", "--port", "9000", "--log-level", "DEBUG"])
        assert args.command == "serve"
        assert args.port == 9000
        assert args.host is None
        assert args.log_level == "DEBUG"

    def test_extract(self) -> None:
        args = cli._parse_args(
            [
                "extract",
                "https://www.javbus.com/SSIS-001",
                "--title",
                "SSIS-001",
                "--no-cache",
                "--timeout-ms",
                "8000",
            ]
        )
        assert args.command == "extract"
        assert args.url == "https://www.javbus.com/SSIS-001"
        assert args.title == "SSIS-001"
        assert args.no_cache is True
        assert args.no_retry is False
        assert args.timeout_ms == 8000

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args([])

    def test_invalid_log_level(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args(["serve", "--log-level", "LOUD"])


class TestLoad:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: WARNING\n", encoding="utf-8")
        args = cli._parse_args(
            ["serve", "--config", str(path), "--log-level", "ERROR", "--log-format", "json"]
        )

        config = cli._load(args)
        assert config.log_level == "ERROR"
        assert config.log_format == "json"


class TestStart:
    @pytest.fixture(autouse=True)
    def _quiet_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda config: {})

    def test_extract_prints_payload(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        async def fake_run(config: AppConfig, args: argparse.Namespace) -> tuple[dict, int]:
            return {"success": True, "url": args.url}, 0

        monkeypatch.setattr(cli, "run_extract", fake_run)
        code = cli.start(["extract", "https://www.javbus.com/SSIS-001"])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {
            "success": True,
            "url": "https://www.javbus.com/SSIS-001",
        }

    def test_extract_exit_code_passed_through(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        async def fake_run(config: AppConfig, args: argparse.Namespace) -> tuple[dict, int]:
            return {"success": False}, 2

        monkeypatch.setattr(cli, "run_extract", fake_run)
        assert cli.start(["extract", "not-a-url"]) == 2

    def test_serve_runs_uvicorn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: dict[str, Any] = {}

        def fake_run(app: Any, **kwargs: Any) -> None:
            calls.update(kwargs)

        monkeypatch.setattr(cli.uvicorn, "run", fake_run)
        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.setenv("PORT", "9100")

        assert cli.start(["serve"]) == 0
        assert calls["host"] == "0.0.0.0"
        assert calls["port"] == 9100
