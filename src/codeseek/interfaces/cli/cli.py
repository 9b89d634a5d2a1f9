from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from codeseek.domain.entities import ExtractionValidationError, SearchResultStub
from codeseek.infrastructure.config import AppConfig, ExtractionOptions, load_config
from codeseek.infrastructure.logging.setup import configure_logging
from codeseek.interfaces.api.detail.presenter import (
    error_payload,
    present_single,
    record_error_payload,
)
from codeseek.interfaces.app import create_app
from codeseek.interfaces.app_state import AppState
from codeseek.interfaces.composition import build_state, settings_from_config, teardown_state

log = structlog.get_logger(__name__)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="codeseek")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None, help="Bind host (overrides HOST env).")
    serve.add_argument("--port", default=None, type=int, help="Bind port (overrides PORT env).")
    _add_config_flags(serve)

    extract = sub.add_parser("extract", help="Extract one detail record and print JSON.")
    extract.add_argument("url", help="Search result or detail page URL.")
    extract.add_argument("--title", default="", help="Title of the search result.")
    extract.add_argument("--keyword", default=None, help="Search keyword used for ranking.")
    extract.add_argument("--source", default="", help="Source site id, if known.")
    extract.add_argument("--no-cache", action="store_true", help="Bypass the cache.")
    extract.add_argument("--no-retry", action="store_true", help="Disable the retry.")
    extract.add_argument("--timeout-ms", default=None, type=int, help="Per-fetch timeout.")
    _add_config_flags(extract)

    return parser.parse_args(list(argv) if argv is not None else None)


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


async def run_extract(config: AppConfig, args: argparse.Namespace) -> tuple[dict[str, Any], int]:
    """One extraction outside the web server. Returns (payload, exit code)."""
    state = AppState()
    await build_state(state, config, start_sweeper=False)
    try:
        stub = SearchResultStub(
            id=args.url,
            title=args.title,
            url=args.url,
            source=args.source,
            keyword=args.keyword,
        )
        options = ExtractionOptions(
            timeout_ms=args.timeout_ms,
            enable_cache=False if args.no_cache else None,
            enable_retry=False if args.no_retry else None,
        )
        settings = settings_from_config(config.extraction, options)
        log.info("cli_extract_started", url=args.url, backend=state.detail_cache.backend)
        try:
            result = await state.detail_extraction_uc.extract_single(stub, settings)
        except ExtractionValidationError as e:
            payload, _ = error_payload(e, search_url=args.url)
            return payload, 2
        if result.record.is_error:
            payload, _ = record_error_payload(result)
            return payload, 1
        return present_single(result, config.extraction), 0
    finally:
        await teardown_state(state)


def start(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint. Config is loaded exactly once here."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "extract":
        payload, code = asyncio.run(run_extract(config, args))
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return code

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "8787"))
    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
