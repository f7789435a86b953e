"""
main.py
Jupiter client – command-line entry point.

  python main.py search USDC
  python main.py quote <inputMint> <outputMint> <amount> [--slippage-bps 50]

Prints the raw API payload as JSON on stdout; logs go to stderr.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from config.config import JupiterConfig, cfg
from core.jupiter_connector import JupiterConnector
from jup_common.errors import JupiterError


def setup_logging(settings: JupiterConfig = cfg) -> None:
    """Configure loguru: coloured stderr + optional rotating file."""
    logger.remove()
    fmt = (
        "<green>{time:HH:mm:ss.SSS}</green> | <level>{level:<8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    )
    logger.add(sys.stderr, level=settings.LOG_LEVEL, format=fmt, colorize=True)
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            level="DEBUG", rotation=settings.LOG_ROTATION,
            retention=settings.LOG_RETENTION, compression="gz", enqueue=True,
        )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jupiter", description="Rate-limited Jupiter API client")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="search tokens by name, symbol or mint")
    s.add_argument("query")

    q = sub.add_parser("quote", help="fetch a swap quote")
    q.add_argument("input_mint")
    q.add_argument("output_mint")
    q.add_argument("amount", type=int, help="amount in raw units of the input token")
    q.add_argument("--slippage-bps", type=int, default=None)

    for sp in (s, q):
        sp.add_argument("--strict", action="store_true", help="fail on schema mismatch")
    return p


async def run(args: argparse.Namespace, connector: JupiterConnector) -> object:
    strict = True if args.strict else None
    async with connector:
        if args.command == "search":
            return await connector.search_tokens(args.query, is_strict=strict)
        return await connector.get_quote(
            args.input_mint, args.output_mint, args.amount,
            slippage_bps=args.slippage_bps, is_strict=strict,
        )


def main(argv: Optional[List[str]] = None, connector: Optional[JupiterConnector] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    logger.debug(f"Jupiter quota ≈ {cfg.requests_per_minute:g} req/min")

    try:
        result = asyncio.run(run(args, connector or JupiterConnector()))
    except (JupiterError, ValidationError, httpx.HTTPError) as exc:
        logger.error(f"❌ {args.command} failed: {exc}")
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
