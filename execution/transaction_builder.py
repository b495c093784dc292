"""execution/transaction_builder.py

Requests an unsigned token-creation transaction from PumpPortal (trade-local).

The response body is the serialized transaction; it is returned as-is and
never inspected here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from config.launch_schema import DEFAULT_TRADE_URL
from execution.launch_errors import NetworkError, TransactionBuildError
from execution.models import LaunchOptions, MetadataRecord

logger = logging.getLogger(__name__)

# Fixed by the trade-local API contract
CREATE_ACTION = "create"
DENOMINATED_IN_SOL = "true"  # API expects the string, not a bool
POOL = "pump"


def build_create_payload(
    wallet_address: str,
    mint_address: str,
    metadata: MetadataRecord,
    options: LaunchOptions,
) -> Dict[str, Any]:
    """Build the JSON action payload for a create + initial buy."""
    return {
        "publicKey": wallet_address,
        "action": CREATE_ACTION,
        "tokenMetadata": {
            "name": metadata.name,
            "symbol": metadata.symbol,
            "uri": metadata.metadata_uri,
        },
        "mint": mint_address,
        "denominatedInSol": DENOMINATED_IN_SOL,
        "amount": options.initial_liquidity_sol,
        "slippage": options.slippage_bps,
        "priorityFee": options.priority_fee,
        "pool": POOL,
    }


class TransactionBuilder:
    """Client for the remote transaction builder."""

    def __init__(self, session: aiohttp.ClientSession, *, trade_url: str = DEFAULT_TRADE_URL):
        self.session = session
        self.trade_url = trade_url

    async def build(
        self,
        wallet_address: str,
        mint_address: str,
        metadata: MetadataRecord,
        options: Optional[LaunchOptions] = None,
    ) -> bytes:
        """Request the unsigned create transaction.

        Args:
            wallet_address: Payer / creator wallet (base58).
            mint_address: Public key of the fresh mint keypair.
            metadata: Record returned by the metadata publisher.
            options: Liquidity, slippage and fee settings.

        Returns:
            Serialized unsigned transaction bytes.

        Raises:
            TransactionBuildError: Non-success status; carries status and body verbatim.
            NetworkError: Transport failure.
        """
        payload = build_create_payload(wallet_address, mint_address, metadata, options or LaunchOptions())

        try:
            async with self.session.post(self.trade_url, json=payload) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    logger.error(f"[builder] Transaction creation failed: HTTP {response.status}: {error_text}")
                    raise TransactionBuildError(response.status, error_text)
                data = await response.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout requesting transaction from {self.trade_url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Error requesting transaction from {self.trade_url}: {e}") from e

        logger.info(f"[builder] Received unsigned transaction ({len(data)} bytes)")
        return data
