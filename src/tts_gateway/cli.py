"""
Command-Line Interface for tts-gateway.

Usage Examples:
    # Run the HTTP server (settings from config/settings.yaml + environment)
    tts-gateway serve

    # Override the listen address, or run without session auth
    tts-gateway serve --host 127.0.0.1 --port 9000 --open

    # One-off synthesis straight through the provider
    tts-gateway speak "Hello there" --out hello.mp3 --model aura-2-theia-en

Environment Variables:
    DEEPGRAM_API_KEY: Provider API key (required)
    SESSION_SECRET: Persistent session secret (enables nonce checks)
    PORT, HOST: Listen address
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional

from tts_gateway.core.config import MissingApiKeyError, Settings, load_settings
from tts_gateway.core.logging import configure_logging

API_KEY_HELP = """
ERROR: Deepgram API key not found!

Please set your API key using one of these methods:

1. Create a .env file (recommended):
   DEEPGRAM_API_KEY=your_api_key_here

2. Environment variable:
   export DEEPGRAM_API_KEY=your_api_key_here

Get your API key at: https://console.deepgram.com
"""


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Settings YAML file (default: config/settings.yaml)")

    parser = argparse.ArgumentParser(prog="tts-gateway", description="tts-gateway CLI")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", parents=[common], help="Run the HTTP server")
    serve.add_argument("--host", help="Listen host override")
    serve.add_argument("--port", type=int, help="Listen port override")
    serve.add_argument("--open", action="store_true",
                       help="Open mode: no session auth, POST /tts/synthesize")

    speak = sub.add_parser("speak", parents=[common], help="Synthesize text to a file")
    speak.add_argument("text", help="Text to synthesize")
    speak.add_argument("--out", required=True, help="Output audio file")
    speak.add_argument("--model", help="Model override")
    speak.add_argument("--json", action="store_true", help="Print JSON summary")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "serve"
        args.config = args.host = args.port = None
        args.open = False
    return args


def _load(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config)
    try:
        settings.require_api_key()
    except MissingApiKeyError:
        print(API_KEY_HELP, file=sys.stderr)
        raise SystemExit(1)
    return settings


def startup_banner(settings: Settings) -> str:
    """Human-readable summary of the listen address and mounted routes."""
    line = "=" * 70
    port = settings.server.port
    if settings.session.enabled:
        nonce_status = " (nonce required)" if settings.session.require_nonce else ""
        routes = [
            f"GET  /api/session{nonce_status}",
            "POST /api/text-to-speech (auth required)",
            "GET  /api/metadata",
        ]
    else:
        routes = [
            "POST /tts/synthesize",
            "GET  /api/metadata",
        ]
    body = "\n".join(f"  {r}" for r in routes)
    return f"\n{line}\nBackend API Server running at http://localhost:{port}\n\n{body}\n{line}\n"


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from tts_gateway.main import create_app

    server = settings.server
    if args.host or args.port:
        server = dataclasses.replace(server, host=args.host or server.host, port=args.port or server.port)
    session = settings.session
    if args.open:
        session = dataclasses.replace(session, enabled=False)
    settings = dataclasses.replace(settings, server=server, session=session)

    app = create_app(settings)
    print(startup_banner(settings))
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)
    return 0


async def _speak_async(settings: Settings, text: str, model: Optional[str]) -> bytes:
    from tts_gateway.services.provider import DeepgramProvider
    from tts_gateway.services.synthesis import SynthesisProxy

    provider = DeepgramProvider.from_config(settings.provider)
    try:
        return await SynthesisProxy(provider, settings.provider.default_model).synthesize(text, model)
    finally:
        await provider.aclose()


def _speak(args: argparse.Namespace, settings: Settings) -> int:
    from tts_gateway.services.errors import GatewayError

    try:
        audio = asyncio.run(_speak_async(settings, args.text, args.model))
    except GatewayError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(audio)

    payload = {
        "out": str(out),
        "bytes": len(audio),
        "model": args.model or settings.provider.default_model,
    }
    if args.json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = _load(args)
    configure_logging(config={"level": settings.logging.level, "log_dir": settings.logging.log_dir})

    if args.command == "speak":
        return _speak(args, settings)
    return _serve(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
