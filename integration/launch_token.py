#!/usr/bin/env python3
"""integration/launch_token.py

CLI entrypoint: launch one token on pump.fun from the command line.

Usage:
    SOLANA_PRIVATE_KEY=... python3 -m integration.launch_token \\
        --name "My Token" --ticker MYT --image-url https://.../logo.png

Contract:
- stdout carries EXACTLY one JSON line (result or error summary)
- all logs go to stderr
- exit code 0 on confirmed launch, 1 on failure, 2 on ambiguous outcome
  (confirmation timed out; the summary includes a follow-up status lookup)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

import aiohttp

from config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_launch_config
from execution.broadcaster import reconcile_launch
from execution.launch_errors import ConfirmationTimeoutError, LaunchError, NetworkError
from execution.launch_pipeline import launch_token_with_retry
from execution.models import LaunchOptions
from ingestion.rpc.client import SolanaLedgerRpc
from integration.key_manager import KeyLoadError, load_wallet_keypair
from integration.wallet_context import KeypairWalletContext

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNKNOWN_OUTCOME = 2


def _emit(summary: Dict[str, Any]) -> None:
    print(json.dumps(summary, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Launch a token on pump.fun")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to launch.yaml")
    ap.add_argument("--name", required=True, help="Token name")
    ap.add_argument("--ticker", required=True, help="Token ticker/symbol")
    ap.add_argument("--description", default=None, help="Token description")
    ap.add_argument("--twitter", default=None)
    ap.add_argument("--telegram", default=None)
    ap.add_argument("--website", default=None)
    ap.add_argument("--image-url", default=None, help="Image to attach to the metadata")
    ap.add_argument("--initial-liquidity-sol", type=float, default=None, help="Initial buy in SOL")
    ap.add_argument("--slippage-bps", type=int, default=None, help="Slippage tolerance in bps")
    ap.add_argument("--priority-fee", type=float, default=None, help="Priority fee in SOL")
    ap.add_argument(
        "--attempts",
        type=int,
        default=1,
        help="Total attempts when the blockhash fetch fails (nothing is re-sent after broadcast)",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def options_from_args(args: argparse.Namespace) -> LaunchOptions:
    return LaunchOptions.from_dict({
        "description": args.description,
        "twitter": args.twitter,
        "telegram": args.telegram,
        "website": args.website,
        "image_url": args.image_url,
        "initial_liquidity_sol": args.initial_liquidity_sol,
        "slippage_bps": args.slippage_bps,
        "priority_fee": args.priority_fee,
    })


async def _run(args: argparse.Namespace) -> int:
    try:
        loaded = load_launch_config(args.config)
        keypair = load_wallet_keypair()
        options = options_from_args(args)
    except (ConfigError, KeyLoadError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        _emit({"ok": False, "reason": "invalid_input", "error": str(e)})
        return EXIT_FAILED

    cfg = loaded.config
    rpc = SolanaLedgerRpc.from_url(
        cfg.rpc_url,
        commitment=cfg.commitment,
        poll_interval_seconds=cfg.confirm_poll_interval_seconds,
    )
    wallet = KeypairWalletContext(keypair, rpc)
    timeout = aiohttp.ClientTimeout(total=cfg.http_timeout_seconds)

    async with rpc, aiohttp.ClientSession(timeout=timeout) as session:
        try:
            result = await asyncio.wait_for(
                launch_token_with_retry(
                    wallet,
                    args.name,
                    args.ticker,
                    options,
                    attempts=args.attempts,
                    config=cfg,
                    session=session,
                ),
                timeout=cfg.launch_timeout_seconds,
            )
        except ConfirmationTimeoutError as e:
            try:
                status = await reconcile_launch(rpc, e.signature)
            except NetworkError as lookup_error:
                logger.warning(f"[launch] Status lookup for {e.signature} failed: {lookup_error}")
                status = None
            _emit({
                "ok": False,
                "reason": e.reason,
                "error": str(e),
                "signature": e.signature,
                "observed_status": None if status is None else {
                    "slot": status.slot,
                    "confirmation_status": status.confirmation_status,
                    "err": status.err,
                },
            })
            return EXIT_UNKNOWN_OUTCOME
        except LaunchError as e:
            _emit({"ok": False, "reason": e.reason, "error": str(e), "logs": e.logs})
            return EXIT_FAILED
        except asyncio.TimeoutError:
            logger.error(f"[launch] Timed out after {cfg.launch_timeout_seconds}s; on-chain outcome unknown")
            _emit({"ok": False, "reason": "launch_timeout", "error": "launch timed out"})
            return EXIT_UNKNOWN_OUTCOME

    _emit({"ok": True, **result.to_dict()})
    return EXIT_OK


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
