"""
kinnikureward/cli.py

Command line entry point.

Run with: kinnikureward serve
      or: python -m kinnikureward serve
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

import trio

from .api import RewardAPI
from .config import DEFAULT_CATALOG, Settings
from .errors import ConfigurationError, InvalidWorkoutError
from .messages import FixedTextGenerator
from .rewards import WorkoutEntry, calculate_reward

logger = logging.getLogger("kinnikureward.cli")

LOG_FORMAT = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'


def _parse_workout(value: str) -> WorkoutEntry:
    kind, sep, reps = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected TYPE:REPS, got {value!r}")
    try:
        return WorkoutEntry(type=kind, reps=int(reps))
    except ValueError:
        raise argparse.ArgumentTypeError(f"reps must be an integer, got {reps!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kinnikureward",
        description="Workout rewards on the Symbol ledger",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Run the reward API server")
    p_serve.add_argument("--host", default=None, help="Bind address (default: KINNIKU_HOST or 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=None, help="Listen port (default: KINNIKU_PORT or 8080)")
    p_serve.add_argument("--node-url", default=None, help="Symbol REST gateway (default: SYMBOL_NODE_URL)")
    p_serve.add_argument(
        "--fixed-message",
        default=None,
        help="Use this text instead of calling Gemini (offline runs)",
    )

    p_quote = sub.add_parser("quote", help="Show the reward for a batch of workouts")
    p_quote.add_argument(
        "workouts",
        nargs="+",
        type=_parse_workout,
        metavar="TYPE:REPS",
        help="e.g. squats:50 pushups:20",
    )
    return parser


def run_serve(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(str(e))
        print(f"[ERR] {e}", file=sys.stderr)
        return 1

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.node_url:
        overrides["node_url"] = args.node_url.rstrip("/")
    if overrides:
        settings = replace(settings, **overrides)

    text_generator = FixedTextGenerator(args.fixed_message) if args.fixed_message else None
    api = RewardAPI.from_settings(settings, text_generator=text_generator)

    logger.info(f"Ledger node: {settings.node_url}")
    if not settings.has_signing_key:
        logger.warning("PRIVATE_KEY is not set")

    async def run():
        try:
            await api.start()
        finally:
            await api.stop()

    try:
        trio.run(run)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


def run_quote(workouts: List[WorkoutEntry]) -> int:
    try:
        result = calculate_reward(workouts, DEFAULT_CATALOG)
    except InvalidWorkoutError as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 1
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.cmd == "serve":
        return run_serve(args)
    return run_quote(args.workouts)


if __name__ == "__main__":
    sys.exit(main())
