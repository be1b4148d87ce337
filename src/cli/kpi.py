# =============================================================================
# src/cli/kpi.py - KPI cache command-line tool
# =============================================================================
#
# Operator tool for working with the KPI cache outside the API server:
#
#   key        : print the Stability Key and cache key for a brand identity
#   normalize  : run the numeric normalizer on one or more raw scores
#   score      : run one full request (cache lookup, refresh if needed) and
#                print the payload with its cache status
#
# Typical usage:
#   python -m src.cli key https://www.Example.com/pricing --seed 7
#   python -m src.cli normalize 72 88.5 101 --seed 3
#   python -m src.cli score example.com --brand-name Example --json
#
# Log output always goes to stderr so stdout carries only the result.
# =============================================================================

"""Standalone CLI for the Ubiqitum KPI cache.

Usage::

    python -m src.cli key example.com --market uk
    python -m src.cli normalize 50 --seed 1
    python -m src.cli score example.com --window-days 30 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Sequence

from src.config.settings import Settings
from src.models.cache import StabilityMode
from src.models.identity import IdentityDescriptor
from src.models.scoring import ScoringRequest
from src.utils.errors import BadInputError, UbiqitumError
from src.utils.logging import configure_logging
from src.utils.numeric import normalize_score
from src.utils.stability_key import build_stability_key, cache_key, stability_key_parts

_EXIT_OK = 0
_EXIT_FAILED = 1
_EXIT_BAD_INPUT = 2


def _identity_from_args(args: argparse.Namespace) -> IdentityDescriptor:
    return IdentityDescriptor.resolve(
        args.brand_url,
        brand_name=args.brand_name,
        market=args.market,
        sector=args.sector,
        segment=args.segment,
        timeframe=args.timeframe,
        industry_definition=args.industry_definition,
        seed=args.seed,
    )


def _emit(data: dict[str, Any], json_output: bool) -> None:
    if json_output:
        print(json.dumps(data, indent=2, default=str))
        return
    for name, value in data.items():
        if isinstance(value, dict):
            print(f"{name}:")
            for sub_name, sub_value in value.items():
                print(f"  {sub_name:<22} {sub_value}")
        else:
            print(f"{name:<24} {value}")


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_key(args: argparse.Namespace) -> int:
    identity = _identity_from_args(args)
    sk = build_stability_key(identity)
    _emit(
        {
            "sk": sk,
            "cache_key": cache_key(args.namespace or Settings().cache_namespace, sk),
            "parts": "|".join(stability_key_parts(identity)),
        },
        args.json_output,
    )
    return _EXIT_OK


def _cmd_normalize(args: argparse.Namespace) -> int:
    results = {raw: normalize_score(float(raw), args.seed) for raw in args.values}
    if args.json_output:
        print(json.dumps(results))
    else:
        for raw, value in results.items():
            print(f"{raw} -> {value}")
    return _EXIT_OK


async def _score(args: argparse.Namespace) -> int:
    # Deferred import: src.main loads settings and builds the provider stack.
    from src.main import _build_all, _close_all, config, settings

    # Importing src.main reconfigures logging onto stdout.
    configure_logging(log_level="WARNING", stream=sys.stderr)

    request = ScoringRequest(
        brand_url=args.brand_url,
        identity=_identity_from_args(args),
        allow_model_inference=not args.no_inference,
    )
    components = _build_all(settings, config)
    orchestrator = components["orchestrator"]
    try:
        result = await orchestrator.get_kpis(
            request,
            mode=StabilityMode(args.mode),
            window_days=args.window_days,
        )
    finally:
        await _close_all(components)

    _emit(
        {
            "status": result.status.value,
            "sk": result.sk,
            "last_refreshed_at": result.last_refreshed_at.isoformat(),
            "payload": result.payload.model_dump(),
        },
        args.json_output,
    )
    return _EXIT_OK


def _cmd_score(args: argparse.Namespace) -> int:
    return asyncio.run(_score(args))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _add_identity_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("brand_url", help="Brand URL or bare domain.")
    parser.add_argument("--brand-name", default=None)
    parser.add_argument("--market", default=None, help='Defaults to "global".')
    parser.add_argument("--sector", default=None)
    parser.add_argument("--segment", default=None, help='Defaults to "b2c".')
    parser.add_argument("--timeframe", default=None, help='Defaults to "current".')
    parser.add_argument("--industry-definition", default=None)
    parser.add_argument("--seed", type=int, default=None)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Inspect and exercise the Ubiqitum KPI cache.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print results as JSON.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    key = sub.add_parser("key", help="Print the Stability Key for a brand identity.")
    _add_identity_arguments(key)
    key.add_argument(
        "--namespace",
        default=None,
        help="Cache key prefix. Defaults to CACHE_NAMESPACE from the environment.",
    )
    key.set_defaults(handler=_cmd_key)

    normalize = sub.add_parser("normalize", help="Normalize raw scores.")
    normalize.add_argument("values", nargs="+", help="Raw numeric scores.")
    normalize.add_argument("--seed", type=int, default=0)
    normalize.set_defaults(handler=_cmd_normalize)

    score = sub.add_parser("score", help="Fetch KPI scores through the cache.")
    _add_identity_arguments(score)
    score.add_argument(
        "--mode",
        choices=[m.value for m in StabilityMode],
        default=StabilityMode.PINNED.value,
    )
    score.add_argument("--window-days", type=int, default=None)
    score.add_argument(
        "--no-inference",
        action="store_true",
        help="Ask the upstream not to infer missing identity fields.",
    )
    score.set_defaults(handler=_cmd_score)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, run the chosen subcommand and return its exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging(log_level="WARNING", stream=sys.stderr)

    try:
        return args.handler(args)
    except BadInputError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return _EXIT_BAD_INPUT
    except UbiqitumError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return _EXIT_FAILED
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return _EXIT_BAD_INPUT


if __name__ == "__main__":
    sys.exit(main())
