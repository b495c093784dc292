"""integration/wallet_context.py

Caller context handed to the launch pipeline: wallet identity plus ledger RPC.

The wallet is used read-only (address + signing) and may be shared between
concurrent launches.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from execution.transaction_signer import sign_slot
from ingestion.rpc.client import LedgerRpc


class WalletContext(ABC):
    """Wallet identity and ledger access for one caller."""

    @abstractmethod
    def public_address(self) -> str:
        """Base58 address of the wallet paying for the launch."""
        pass

    @abstractmethod
    def sign_transaction(self, tx: VersionedTransaction) -> VersionedTransaction:
        """Return ``tx`` with the wallet's signature added at its slot."""
        pass

    @property
    @abstractmethod
    def rpc(self) -> LedgerRpc:
        pass


class KeypairWalletContext(WalletContext):
    """WalletContext backed by an in-memory keypair."""

    def __init__(self, keypair: Keypair, rpc: LedgerRpc):
        self._keypair = keypair
        self._rpc = rpc

    def public_address(self) -> str:
        return str(self._keypair.pubkey())

    def sign_transaction(self, tx: VersionedTransaction) -> VersionedTransaction:
        return sign_slot(tx, self._keypair)

    @property
    def rpc(self) -> LedgerRpc:
        return self._rpc
