"""Command line: generate a brief or run the API server."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from sourcebrief.config import Settings, settings
from sourcebrief.db.factory import create_store
from sourcebrief.logging_config import configure_logging
from sourcebrief.orchestrator.errors import BriefError
from sourcebrief.orchestrator.generator import BriefGenerator, select_backend


def read_url_lines(text: str) -> list[str]:
    """One URL per line; blank lines ignored."""
    return [line.strip() for line in text.splitlines() if line.strip()]


async def run_generate(urls: list[str], config: Settings) -> dict:
    store = create_store(config)
    await store.connect()
    try:
        generator = BriefGenerator(store, select_backend(config))
        brief = await generator.generate(urls)
        return brief.to_json()
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sourcebrief", description="Research briefs from URLs")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a brief and print it as JSON")
    gen.add_argument("urls", nargs="*", help="URLs to analyze")
    gen.add_argument("--file", type=Path, help="Read newline-separated URLs from a file")

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("sourcebrief.main:app", host=args.host, port=args.port)
        return 0

    urls = list(args.urls)
    if args.file:
        urls.extend(read_url_lines(args.file.read_text(encoding="utf-8")))

    try:
        brief = asyncio.run(run_generate(urls, settings))
    except BriefError as exc:
        print(json.dumps(exc.to_payload(), indent=2), file=sys.stderr)
        return 1
    print(json.dumps(brief, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
