"""execution/broadcaster.py

Submits a signed launch transaction and waits for confirmation.

The node-side resubmission ceiling (max_retries) is the only retry in the
pipeline. A signature bound to an expired blockhash cannot be resent as-is.
"""

from __future__ import annotations

import logging
from typing import Optional

from execution.launch_errors import ExecutionError
from execution.models import Checkpoint, ConfirmationStatus, SignedLaunchTransaction
from ingestion.rpc.client import LedgerRpc

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEND_RETRIES = 5


class Broadcaster:
    def __init__(self, rpc: LedgerRpc, *, max_retries: int = DEFAULT_MAX_SEND_RETRIES):
        self.rpc = rpc
        self.max_retries = max_retries

    async def submit(
        self,
        signed: SignedLaunchTransaction,
        checkpoint: Optional[Checkpoint] = None,
    ) -> str:
        """Send ``signed`` and block until it is confirmed.

        Args:
            signed: Fully signed transaction.
            checkpoint: Blockhash window to wait within (defaults to the one
                bound at signing).

        Returns:
            Confirmed transaction signature.

        Raises:
            PreflightError: Node simulation rejected the transaction.
            ExecutionError: Included, but program execution failed.
            ConfirmationTimeoutError: Blockhash expired first; outcome unknown.
            NetworkError: Transport failure.
        """
        checkpoint = checkpoint or signed.checkpoint

        signature = await self.rpc.submit(signed.to_bytes(), max_retries=self.max_retries)
        logger.info(f"[broadcast] Submitted {signature}, awaiting confirmation")

        status = await self.rpc.confirm(signature, checkpoint)
        if status.err is not None:
            logger.error(f"[broadcast] {signature} failed on-chain: {status.err}")
            raise ExecutionError(status.err, signature=signature, logs=status.logs)

        logger.info(f"[broadcast] {signature} confirmed in slot {status.slot}")
        return signature


async def reconcile_launch(rpc: LedgerRpc, signature: str) -> Optional[ConfirmationStatus]:
    """Look up a signature once, e.g. after a ConfirmationTimeoutError.

    Returns:
        The node's status for the signature, or None if it has no record.
    """
    status = await rpc.get_signature_status(signature)
    if status is None:
        logger.info(f"[broadcast] No record of {signature}")
    else:
        logger.info(
            f"[broadcast] {signature}: status={status.confirmation_status} err={status.err}"
        )
    return status
