"""
ingestion/rpc/client.py

Ledger RPC access for the launch pipeline.

Three operations are consumed:
- fetch_checkpoint: latest blockhash + last valid block height
- submit: send signed transaction bytes (preflight on, bounded node retries)
- confirm: poll a signature until confirmed or the blockhash expires
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.models import TxOpts
from solders.rpc.errors import SendTransactionPreflightFailureMessage
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from execution.launch_errors import (
    CheckpointFetchError,
    ConfirmationTimeoutError,
    NetworkError,
    PreflightError,
)
from execution.models import Checkpoint, ConfirmationStatus

logger = logging.getLogger(__name__)


_CONFIRMATION_NAMES = (
    (TransactionConfirmationStatus.Processed, "processed"),
    (TransactionConfirmationStatus.Confirmed, "confirmed"),
    (TransactionConfirmationStatus.Finalized, "finalized"),
)


def _confirmation_name(status: Optional[TransactionConfirmationStatus]) -> Optional[str]:
    for member, name in _CONFIRMATION_NAMES:
        if status == member:
            return name
    return None


class LedgerRpc(ABC):
    """
    Abstract ledger node interface used by the signer and broadcaster.

    Implementations raise the launch error taxonomy, never raw client errors.
    """

    @abstractmethod
    async def fetch_checkpoint(self) -> Checkpoint:
        """
        Fetch the latest blockhash.

        Raises:
            CheckpointFetchError: If the node could not be queried.
        """
        pass

    @abstractmethod
    async def submit(self, raw_tx: bytes, *, max_retries: int) -> str:
        """
        Submit signed transaction bytes with preflight simulation enabled.

        Returns:
            Transaction signature (base58).

        Raises:
            PreflightError: If the node's simulation rejects the transaction.
            NetworkError: On transport failure.
        """
        pass

    @abstractmethod
    async def confirm(self, signature: str, checkpoint: Checkpoint) -> ConfirmationStatus:
        """
        Block until the signature is confirmed or the checkpoint expires.

        The returned status may carry an execution error in ``err``.

        Raises:
            ConfirmationTimeoutError: If block height passed the checkpoint's
                last valid height without confirmation, or the node could
                not be polled at all. Either way the outcome is unknown.
        """
        pass

    @abstractmethod
    async def get_signature_status(self, signature: str) -> Optional[ConfirmationStatus]:
        """
        Single status lookup by signature (searches transaction history).

        Returns:
            Status, or None if the node has no record of the signature.
        """
        pass


class SolanaLedgerRpc(LedgerRpc):
    """
    LedgerRpc backed by solana-py's AsyncClient.

    The client may be shared between concurrent launches; this class
    holds no per-launch state.
    """

    def __init__(
        self,
        client: AsyncClient,
        *,
        commitment: str = "confirmed",
        poll_interval_seconds: float = 0.5,
        max_poll_failures: int = 10,
    ):
        self._client = client
        self._commitment = Commitment(commitment)
        self._poll_interval = poll_interval_seconds
        self._max_poll_failures = max_poll_failures

    @classmethod
    def from_url(cls, rpc_url: str, **kwargs: Any) -> "SolanaLedgerRpc":
        commitment = kwargs.get("commitment", "confirmed")
        return cls(AsyncClient(rpc_url, commitment=Commitment(commitment)), **kwargs)

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "SolanaLedgerRpc":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def fetch_checkpoint(self) -> Checkpoint:
        try:
            resp = await self._client.get_latest_blockhash(self._commitment)
        except (SolanaRpcException, RPCException) as e:
            logger.error(f"[rpc] getLatestBlockhash failed: {_describe(e)}")
            raise CheckpointFetchError(f"Failed to fetch latest blockhash: {_describe(e)}") from e

        value = resp.value
        return Checkpoint(
            blockhash=value.blockhash,
            last_valid_block_height=value.last_valid_block_height,
        )

    async def submit(self, raw_tx: bytes, *, max_retries: int) -> str:
        opts = TxOpts(
            skip_confirmation=True,
            skip_preflight=False,
            preflight_commitment=self._commitment,
            max_retries=max_retries,
        )
        try:
            resp = await self._client.send_raw_transaction(raw_tx, opts=opts)
        except RPCException as e:
            logs = _preflight_logs(e)
            logger.error(f"[rpc] sendTransaction rejected: {e}")
            raise PreflightError(f"Transaction rejected in preflight: {e}", logs=logs) from e
        except SolanaRpcException as e:
            logger.error(f"[rpc] sendTransaction transport failure: {_describe(e)}")
            raise NetworkError(f"Failed to submit transaction: {_describe(e)}") from e

        return str(resp.value)

    async def confirm(self, signature: str, checkpoint: Checkpoint) -> ConfirmationStatus:
        sig = Signature.from_string(signature)
        failures = 0
        while True:
            try:
                status = await self._signature_status(sig, search_history=False)
                block_height = None
                if status is None or not status.is_confirmed:
                    block_height = await self._block_height()
            except NetworkError as e:
                # The transaction is already out; a failed poll says nothing about it.
                failures += 1
                if failures > self._max_poll_failures:
                    raise ConfirmationTimeoutError(
                        signature,
                        checkpoint.last_valid_block_height,
                        detail=f"status polling failed {failures} times in a row: {e}",
                    ) from e
                logger.warning(f"[rpc] Poll {failures}/{self._max_poll_failures} for {signature} failed: {e}")
                await asyncio.sleep(self._poll_interval)
                continue
            failures = 0

            if block_height is None:
                if status.err is not None:
                    status = ConfirmationStatus(
                        slot=status.slot,
                        confirmation_status=status.confirmation_status,
                        err=status.err,
                        logs=await self._transaction_logs(sig),
                    )
                return status

            if block_height > checkpoint.last_valid_block_height:
                raise ConfirmationTimeoutError(signature, checkpoint.last_valid_block_height)

            await asyncio.sleep(self._poll_interval)

    async def get_signature_status(self, signature: str) -> Optional[ConfirmationStatus]:
        return await self._signature_status(Signature.from_string(signature), search_history=True)

    async def _signature_status(self, sig: Signature, *, search_history: bool) -> Optional[ConfirmationStatus]:
        try:
            resp = await self._client.get_signature_statuses(
                [sig], search_transaction_history=search_history
            )
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"Failed to query signature status: {_describe(e)}") from e

        status = resp.value[0]
        if status is None:
            return None
        return ConfirmationStatus(
            slot=status.slot,
            confirmation_status=_confirmation_name(status.confirmation_status),
            err=str(status.err) if status.err is not None else None,
        )

    async def _block_height(self) -> int:
        try:
            resp = await self._client.get_block_height(self._commitment)
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"Failed to query block height: {_describe(e)}") from e
        return resp.value

    async def _transaction_logs(self, sig: Signature) -> List[str]:
        """Log messages of an included transaction; empty if the node has none yet."""
        try:
            resp = await self._client.get_transaction(
                sig, commitment=self._commitment, max_supported_transaction_version=0
            )
        except (SolanaRpcException, RPCException) as e:
            logger.warning(f"[rpc] Could not fetch logs for {sig}: {_describe(e)}")
            return []
        if resp.value is None or resp.value.transaction.meta is None:
            return []
        return list(resp.value.transaction.meta.log_messages or [])


def _preflight_logs(exc: RPCException) -> List[str]:
    """Simulation logs attached to a preflight failure, if the node sent any."""
    err = exc.args[0] if exc.args else None
    if isinstance(err, SendTransactionPreflightFailureMessage):
        return list(err.data.logs or [])
    return []


def _describe(exc: Exception) -> str:
    # SolanaRpcException keeps its text in error_msg, not in args
    if isinstance(exc, SolanaRpcException):
        return exc.error_msg
    return str(exc)
