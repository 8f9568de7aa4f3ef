from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from ..config import load_settings
from ..errors import ConfigurationError, ImageDecodeError, ProviderChainError, ProviderError
from ..extraction.normalizer import TransactionNormalizer
from ..extraction.response import EXPECT_ARRAY, EXPECT_OBJECT
from ..logging import get_logger
from ..providers.base import KIND_CLOUDFLARE
from ..providers.cloudflare import CloudflareClient
from ..service import ExtractionService

LOG = get_logger("cli-main")


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..api import create_app
    import uvicorn

    settings = load_settings(os.getcwd())
    allow_origins = ns.allow_origins
    if allow_origins and "*" in allow_origins:
        allow_origins = ["*"]
    app = create_app(settings, allow_origins=allow_origins)
    uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
    return 0


def _handle_extract(ns: argparse.Namespace) -> int:
    service = ExtractionService.from_settings(load_settings(os.getcwd()))
    try:
        result = service.analyze_file(
            ns.image,
            prompt=ns.prompt,
            members=ns.members,
            currency=ns.currency,
        )
    except ConfigurationError as exc:
        LOG.error(str(exc))
        return 2
    except ImageDecodeError as exc:
        LOG.error(str(exc))
        return 2
    except ProviderChainError as exc:
        LOG.error(f"All providers failed: {exc.details}")
        return 1
    _print_json(result.to_dict())
    return 0 if result.success else 1


def _handle_normalize(ns: argparse.Namespace) -> int:
    if ns.input and ns.input != "-":
        try:
            with open(ns.input, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as exc:
            LOG.error(f"Unable to read {ns.input}: {exc}")
            return 2
    else:
        text = sys.stdin.read()
    transactions = TransactionNormalizer(ns.members).normalize_text(text, expect=ns.expect)
    _print_json([tx.to_dict() for tx in transactions])
    return 0 if transactions else 1


def _handle_providers(_: argparse.Namespace) -> int:
    settings = load_settings(os.getcwd())
    _print_json([p.describe() for p in settings.providers])
    return 0 if settings.has_provider else 1


def _handle_agree(_: argparse.Namespace) -> int:
    settings = load_settings(os.getcwd())
    targets = [p for p in settings.providers if p.kind == KIND_CLOUDFLARE]
    if not targets:
        LOG.error("No Cloudflare provider configured (CLOUDFLARE_ACCOUNT_ID/CLOUDFLARE_API_TOKEN).")
        return 2
    code = 0
    for config in targets:
        try:
            body = CloudflareClient(config).agree_to_license()
        except ProviderError as exc:
            LOG.error(f"License acceptance failed for {config.model}: {exc} {exc.details or ''}")
            code = 1
            continue
        LOG.info(f"License accepted for {config.model}")
        _print_json(body.get("result"))
    return code


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="statement-scan",
        description="Extract transactions from bank app screenshots with vision language models.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP endpoint with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8787)
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve.set_defaults(handler=_handle_serve)

    extract = subparsers.add_parser("extract", help="Extract transactions from a local screenshot.")
    extract.add_argument("--image", required=True, help="Path to the screenshot (PNG/JPG)")
    extract.add_argument("--member", action="append", dest="members", help="Ledger member (repeatable)")
    extract.add_argument("--currency", help="Currency hint, e.g. AUD")
    extract.add_argument("--prompt", help="Replace the default extraction prompt")
    extract.set_defaults(handler=_handle_extract)

    normalize = subparsers.add_parser("normalize", help="Normalize saved model output into transactions.")
    normalize.add_argument("--input", help="File with raw model text (default: stdin)")
    normalize.add_argument("--member", action="append", dest="members", help="Ledger member (repeatable)")
    normalize.add_argument("--expect", choices=[EXPECT_ARRAY, EXPECT_OBJECT], default=EXPECT_ARRAY)
    normalize.set_defaults(handler=_handle_normalize)

    providers = subparsers.add_parser("providers", help="Show the configured provider chain.")
    providers.set_defaults(handler=_handle_providers)

    agree = subparsers.add_parser(
        "cloudflare-agree",
        help="Accept the Workers AI model license for configured Cloudflare models.",
    )
    agree.set_defaults(handler=_handle_agree)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
