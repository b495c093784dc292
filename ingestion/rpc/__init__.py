"""
ingestion/rpc package

Ledger RPC access (blockhash, submission, confirmation) for the launch pipeline.
"""
from .client import LedgerRpc, SolanaLedgerRpc

__all__ = [
    'LedgerRpc',
    'SolanaLedgerRpc',
]
