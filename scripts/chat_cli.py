#!/usr/bin/env python
"""Interactive stdin/stdout chat loop against a local orchestrator."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import yaml

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from orchestrator.bootstrap import build_orchestrator  # noqa: E402
from orchestrator.core.config import Settings  # noqa: E402
from orchestrator.core.logging import configure_logging  # noqa: E402
from orchestrator.domain.loader import builtin_domain_names, read_builtin_domain, read_domain_document  # noqa: E402
from orchestrator.engine.orchestrator import Orchestrator  # noqa: E402

EXIT_COMMANDS = {"quit", ":q"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with a domain from the terminal")
    parser.add_argument(
        "--domain",
        default="banking",
        help=f"Built-in domain name ({', '.join(builtin_domain_names())}) or path to a JSON/YAML document.",
    )
    parser.add_argument(
        "--detailed",
        action="store_true",
        help="Print intent, slots and outcome after each reply.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level for the engine.")
    return parser.parse_args()


def load_domain(engine: Orchestrator, domain: str) -> bool:
    path = Path(domain)
    document = read_domain_document(path) if path.suffix else read_builtin_domain(domain)
    runtime = engine.load_domain(document)
    for warning in runtime.validation.warnings:
        print(f"warning: {warning}")
    if not runtime.is_valid:
        for error in runtime.validation.errors:
            print(f"error: {error}", file=sys.stderr)
        return False
    return True


async def chat_loop(engine: Orchestrator, detailed: bool) -> None:
    session_id = engine.start_conversation("cli")
    print(f"Domain: {engine.current_domain()['name']}  (type 'quit' to leave, ':summary' for a recap)")

    while True:
        try:
            text = input("you> ")
        except EOFError:
            break
        if text.strip().lower() in EXIT_COMMANDS:
            break
        if text.strip() == ":summary":
            print(engine.get_conversation_summary(session_id))
            continue

        result = await engine.process_message_detailed(session_id, text)
        print(f"bot> {result.response}")
        if detailed:
            details = {
                "intent": result.intent,
                "slots": result.slots,
                "outcome": result.outcome.value,
                "missing_slots": result.missing_slots,
                "processing_time_ms": round(result.processing_time_ms, 2),
            }
            print(json.dumps(details, indent=2))

    engine.end_conversation(session_id)


def main() -> int:
    args = parse_args()
    configure_logging(args.log_level)

    settings = Settings(default_domain=None, preload_domains=[])
    engine = build_orchestrator(settings)
    try:
        if not load_domain(engine, args.domain):
            return 1
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Could not load domain {args.domain}: {exc}", file=sys.stderr)
        return 1

    asyncio.run(chat_loop(engine, args.detailed))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
