"""execution/launch_pipeline.py

Token launch orchestrator.

Flow:
1. Generate the mint keypair (fresh per call, never reused)
2. MetadataPublisher.publish -> MetadataRecord
3. TransactionBuilder.build -> unsigned bytes
4. TransactionSigner.sign -> SignedLaunchTransaction
5. Broadcaster.submit -> confirmed signature

Any stage failure stops the run and is re-raised unchanged. No partial
LaunchResult is ever returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

import aiohttp
from solders.keypair import Keypair

from config.launch_schema import LaunchConfig
from execution.broadcaster import Broadcaster
from execution.launch_errors import EscrowError, LaunchError
from execution.metadata_publisher import MetadataPublisher
from execution.models import LaunchOptions, LaunchRequest, LaunchResult
from execution.transaction_builder import TransactionBuilder
from execution.transaction_signer import TransactionSigner
from integration.key_manager import write_keypair_file
from integration.wallet_context import WalletContext

logger = logging.getLogger(__name__)

OptionsLike = Union[LaunchOptions, Mapping[str, Any], None]


def _coerce_options(options: OptionsLike) -> LaunchOptions:
    if isinstance(options, LaunchOptions):
        return options
    return LaunchOptions.from_dict(options)


class LaunchPipeline:
    """
    Runs launches against one HTTP session and config.

    Holds no per-launch state, so one instance can serve concurrent launches.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: Optional[LaunchConfig] = None,
    ):
        self.config = config or LaunchConfig()
        self.publisher = MetadataPublisher(session, metadata_url=self.config.metadata_url)
        self.builder = TransactionBuilder(session, trade_url=self.config.trade_url)
        self.signer = TransactionSigner()

    async def launch(
        self,
        wallet: WalletContext,
        name: str,
        ticker: str,
        options: OptionsLike = None,
    ) -> LaunchResult:
        request = LaunchRequest(name=name, ticker=ticker, options=_coerce_options(options))
        try:
            return await self._run(wallet, request)
        except LaunchError as e:
            logger.error(f"[launch] Failed ({e.reason}): {e}")
            if e.logs:
                logger.error("[launch] Transaction logs:\n" + "\n".join(e.logs))
            raise

    async def _run(self, wallet: WalletContext, request: LaunchRequest) -> LaunchResult:
        logger.info(f"[launch] Starting token launch for {request.name} ({request.ticker})")

        mint = Keypair()
        mint_address = str(mint.pubkey())
        logger.info(f"[launch] Mint public key: {mint_address}")

        logger.info("[launch] Uploading metadata to IPFS...")
        metadata = await self.publisher.publish(request.name, request.ticker, request.options)

        logger.info("[launch] Creating token transaction...")
        unsigned = await self.builder.build(
            wallet.public_address(), mint_address, metadata, request.options
        )

        signed = await self.signer.sign(unsigned, mint, wallet, wallet.rpc)

        if self.config.mint_key_escrow_dir:
            try:
                path = write_keypair_file(mint, self.config.mint_key_escrow_dir)
            except OSError as e:
                raise EscrowError(f"Could not escrow mint keypair {mint_address}: {e}") from e
            logger.info(f"[launch] Mint keypair escrowed at {path}")

        logger.info("[launch] Sending transaction...")
        broadcaster = Broadcaster(wallet.rpc, max_retries=self.config.max_send_retries)
        signature = await broadcaster.submit(signed, signed.checkpoint)

        logger.info(f"[launch] Token launch successful: {signature}")
        return LaunchResult(
            signature=signature,
            mint=mint_address,
            metadata_uri=metadata.metadata_uri,
        )


async def launch_token(
    wallet: WalletContext,
    name: str,
    ticker: str,
    options: OptionsLike = None,
    *,
    config: Optional[LaunchConfig] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> LaunchResult:
    """Launch a token on pump.fun.

    Args:
        wallet: Caller wallet and ledger RPC.
        name: Token name.
        ticker: Token symbol.
        options: LaunchOptions, or a mapping of option names (snake_case or
            camelCase) to values.
        config: Endpoints and broadcast settings (defaults if omitted).
        session: aiohttp session to reuse; a private one is opened otherwise.

    Returns:
        LaunchResult with signature, mint address and metadata URI.

    Raises:
        LaunchError: Subclass describing the failing stage.
    """
    config = config or LaunchConfig()
    if session is not None:
        return await LaunchPipeline(session, config).launch(wallet, name, ticker, options)

    timeout = aiohttp.ClientTimeout(total=config.http_timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as own_session:
        return await LaunchPipeline(own_session, config).launch(wallet, name, ticker, options)


async def launch_token_with_retry(
    wallet: WalletContext,
    name: str,
    ticker: str,
    options: OptionsLike = None,
    *,
    attempts: int = 3,
    backoff_seconds: float = 1.0,
    **kwargs: Any,
) -> LaunchResult:
    """Run launch_token, re-running the whole pipeline on retryable errors.

    Only errors flagged ``retryable`` (blockhash fetch) are retried; they occur
    before broadcast, so no transaction is ever sent twice. Each attempt uses
    a fresh mint keypair and blockhash.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    delay = backoff_seconds
    attempt = 1
    while True:
        try:
            return await launch_token(wallet, name, ticker, options, **kwargs)
        except LaunchError as e:
            if not e.retryable or attempt >= attempts:
                raise
            logger.warning(f"[launch] Attempt {attempt}/{attempts} failed ({e.reason}), retrying in {delay:.1f}s")
        await asyncio.sleep(delay)
        delay *= 2
        attempt += 1
