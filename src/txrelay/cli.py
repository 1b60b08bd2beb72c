"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command line utility for inspecting a configured executor.

Usage examples:
  TXRELAY_USE_BUNDLE=1 txrelay health
  txrelay --network mainnet estimate --instructions 3
  txrelay stats
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from .builder import ExecutorBuilder
from .errors import ConfigurationError
from .payload import SYSTEM_PROGRAM_ID, build_transaction, transfer_instruction
from .runtime import ExecutionEngine
from .settings import ExecutorSettings


def _sample_payload(instructions: int, payer: str):
    return build_transaction(
        [transfer_instruction(payer, SYSTEM_PROGRAM_ID, 1) for _ in range(instructions)],
        fee_payer=payer,
    )


async def run_health(engine: ExecutionEngine) -> int:
    health = await engine.get_health()
    for name, healthy in health.items():
        print(f"{name}={'ok' if healthy else 'down'}")
    return 0 if any(health.values()) else 1


def run_estimate(engine: ExecutionEngine, *, instructions: int, payer: str) -> int:
    costs = engine.estimate_cost(_sample_payload(instructions, payer))
    for name, lamports in costs.items():
        print(f"{name}_lamports={lamports}")
    return 0


def run_stats(engine: ExecutionEngine, *, instructions: int, payer: str) -> int:
    stats = engine.get_execution_stats(_sample_payload(instructions, payer))
    print(f"strategy={stats['strategy']}")
    print(f"enabled_channels={','.join(stats['enabled_channels']) or '-'}")
    for name, lamports in stats["estimated_cost"].items():
        print(f"estimated_{name}_lamports={lamports}")
    return 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="txrelay", description="Transaction executor utility")
    parser.add_argument("--network", choices=("devnet", "testnet", "mainnet"), default=None)
    parser.add_argument("--rpc-endpoint", type=str, default=None)
    parser.add_argument("--log-level", type=str, default="WARNING")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("health", help="Probe every enabled channel and the fallback network")
    for name, text in (
        ("estimate", "Estimate per-channel cost of a sample payload"),
        ("stats", "Show enabled channels, strategy and cost estimate"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("--instructions", type=int, default=1)
        sub.add_argument("--payer", type=str, default=SYSTEM_PROGRAM_ID)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = ExecutorSettings.from_env()
        overrides = {
            key: value
            for key, value in (("network", args.network), ("rpc_endpoint", args.rpc_endpoint))
            if value is not None
        }
        if overrides:
            settings = ExecutorSettings.from_mapping({**settings.model_dump(), **overrides})
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    engine = ExecutorBuilder().settings(settings).build()
    if args.command == "health":
        return asyncio.run(run_health(engine))
    if args.command == "estimate":
        return run_estimate(engine, instructions=args.instructions, payer=args.payer)
    return run_stats(engine, instructions=args.instructions, payer=args.payer)


if __name__ == "__main__":
    raise SystemExit(main())
