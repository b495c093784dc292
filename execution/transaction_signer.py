"""execution/transaction_signer.py

Turns the builder's unsigned bytes into a fully signed transaction.

Steps:
1. Deserialize into a VersionedTransaction (legacy or v0 message).
2. Fetch a fresh blockhash and bind it into the message.
3. Sign with the mint keypair, then hand over to the wallet for its signature.

Rebinding the blockhash changes the message bytes, so any signatures the
builder left in place are discarded before signing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message, MessageV0, to_bytes_versioned
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from execution.launch_errors import DeserializationError, SigningError
from execution.models import SignedLaunchTransaction
from ingestion.rpc.client import LedgerRpc

if TYPE_CHECKING:
    from integration.wallet_context import WalletContext

logger = logging.getLogger(__name__)


def deserialize_transaction(data: bytes) -> VersionedTransaction:
    """Parse wire bytes into a VersionedTransaction.

    Raises:
        DeserializationError: If the bytes are not a valid transaction.
    """
    if not data:
        raise DeserializationError("Unsigned transaction payload is empty")
    try:
        return VersionedTransaction.from_bytes(bytes(data))
    except Exception as e:
        raise DeserializationError(f"Malformed transaction bytes ({len(data)} bytes): {e}") from e


def with_blockhash(message, blockhash: Hash):
    """Return a copy of ``message`` referencing ``blockhash``."""
    if isinstance(message, MessageV0):
        return MessageV0(
            message.header,
            message.account_keys,
            blockhash,
            message.instructions,
            message.address_table_lookups,
        )
    header = message.header
    return Message.new_with_compiled_instructions(
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        message.account_keys,
        blockhash,
        message.instructions,
    )


def required_signers(tx: VersionedTransaction) -> List:
    message = tx.message
    return list(message.account_keys[: message.header.num_required_signatures])


def sign_slot(tx: VersionedTransaction, signer: Keypair) -> VersionedTransaction:
    """Sign ``tx`` with ``signer`` and place the signature at the signer's slot.

    Other slots are left untouched.

    Raises:
        SigningError: If the signer is not one of the message's required signers.
    """
    signers = required_signers(tx)
    pubkey = signer.pubkey()
    if pubkey not in signers:
        raise SigningError(f"{pubkey} is not a required signer of this transaction")

    signatures = list(tx.signatures)
    if len(signatures) < len(signers):
        signatures.extend([Signature.default()] * (len(signers) - len(signatures)))

    signatures[signers.index(pubkey)] = signer.sign_message(to_bytes_versioned(tx.message))
    return VersionedTransaction.populate(tx.message, signatures)


class TransactionSigner:
    """Binds a fresh blockhash and collects mint + wallet signatures."""

    async def sign(
        self,
        unsigned: bytes,
        mint_identity: Keypair,
        wallet: "WalletContext",
        checkpoint_provider: LedgerRpc,
    ) -> SignedLaunchTransaction:
        """Produce a fully signed transaction.

        Args:
            unsigned: Serialized transaction from the builder.
            mint_identity: Fresh keypair of the token being created.
            wallet: Caller's wallet; signs after the mint.
            checkpoint_provider: Ledger RPC used for the blockhash.

        Raises:
            DeserializationError: Malformed bytes (not retryable).
            CheckpointFetchError: Blockhash fetch failed (retryable).
            SigningError: A signer is not required by the message.
        """
        tx = deserialize_transaction(unsigned)

        # Fetched here, never earlier: the blockhash bounds the broadcast window.
        checkpoint = await checkpoint_provider.fetch_checkpoint()
        message = with_blockhash(tx.message, checkpoint.blockhash)
        blank = [Signature.default()] * message.header.num_required_signatures
        tx = VersionedTransaction.populate(message, blank)

        tx = sign_slot(tx, mint_identity)
        tx = wallet.sign_transaction(tx)

        missing = [
            str(key)
            for key, sig in zip(required_signers(tx), tx.signatures)
            if sig == Signature.default()
        ]
        if missing:
            raise SigningError(f"Transaction is missing signatures for: {', '.join(missing)}")

        logger.info(
            f"[signer] Signed with blockhash {checkpoint.blockhash} "
            f"(valid until height {checkpoint.last_valid_block_height})"
        )
        return SignedLaunchTransaction(transaction=tx, checkpoint=checkpoint)
