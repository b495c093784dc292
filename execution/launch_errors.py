"""execution/launch_errors.py

Error taxonomy for the token launch pipeline.

Every error carries:
- reason: stable string code (see integration/reject_reasons.py)
- logs: optional node-supplied diagnostic logs (empty when none were given)

Stages raise these unmodified; the orchestrator never wraps them.
"""

from __future__ import annotations

from typing import List, Optional

from integration.reject_reasons import (
    LAUNCH_CHECKPOINT_FETCH_FAILED,
    LAUNCH_CONFIRMATION_TIMEOUT,
    LAUNCH_DESERIALIZATION_FAILED,
    LAUNCH_EXECUTION_FAILED,
    LAUNCH_METADATA_SCHEMA_INVALID,
    LAUNCH_METADATA_UPLOAD_FAILED,
    LAUNCH_MINT_ESCROW_FAILED,
    LAUNCH_NETWORK_ERROR,
    LAUNCH_PREFLIGHT_FAILED,
    LAUNCH_SIGNING_FAILED,
    LAUNCH_TX_BUILD_FAILED,
    assert_reason_known,
)


class LaunchError(Exception):
    """Base exception for all launch pipeline failures."""

    reason: str = LAUNCH_NETWORK_ERROR
    retryable: bool = False

    def __init__(self, message: str, *, logs: Optional[List[str]] = None):
        super().__init__(message)
        self.logs: List[str] = list(logs) if logs else []


class NetworkError(LaunchError):
    """Raised when an endpoint could not be reached or the transport failed."""

    reason = LAUNCH_NETWORK_ERROR


class MetadataUploadError(LaunchError):
    """Raised when the metadata host answers with a non-success status."""

    reason = LAUNCH_METADATA_UPLOAD_FAILED

    def __init__(self, status: int, status_text: str):
        super().__init__(f"Metadata upload failed: {status} {status_text}")
        self.status = status
        self.status_text = status_text


class SchemaError(LaunchError):
    """Raised when the metadata response lacks required fields."""

    reason = LAUNCH_METADATA_SCHEMA_INVALID


class TransactionBuildError(LaunchError):
    """Raised when the transaction builder answers with a non-success status.

    The response body is kept verbatim; the remote service puts its
    diagnostics there.
    """

    reason = LAUNCH_TX_BUILD_FAILED

    def __init__(self, status: int, body: str):
        super().__init__(f"Transaction creation failed: {status} - {body}")
        self.status = status
        self.body = body


class DeserializationError(LaunchError):
    """Raised when the unsigned transaction bytes cannot be parsed."""

    reason = LAUNCH_DESERIALIZATION_FAILED


class SigningError(LaunchError):
    """Raised when a signer does not match the message's required signers."""

    reason = LAUNCH_SIGNING_FAILED


class EscrowError(LaunchError):
    """Raised when the mint keypair could not be written to the escrow directory.

    Raised before broadcast, so nothing has been sent.
    """

    reason = LAUNCH_MINT_ESCROW_FAILED


class CheckpointFetchError(NetworkError):
    """Raised when the latest blockhash could not be fetched."""

    reason = LAUNCH_CHECKPOINT_FETCH_FAILED
    retryable = True


class PreflightError(LaunchError):
    """Raised when the node rejects the transaction during preflight simulation."""

    reason = LAUNCH_PREFLIGHT_FAILED


class ExecutionError(LaunchError):
    """Raised when the transaction was included but its execution failed."""

    reason = LAUNCH_EXECUTION_FAILED

    def __init__(
        self,
        detail: str,
        *,
        signature: Optional[str] = None,
        logs: Optional[List[str]] = None,
    ):
        super().__init__(f"Transaction failed: {detail}", logs=logs)
        self.detail = detail
        self.signature = signature


class ConfirmationTimeoutError(LaunchError):
    """Raised when the blockhash expired, or the node stopped answering, before
    confirmation was observed.

    The transaction may still land. Query the ledger by ``signature``
    (see execution.broadcaster.reconcile_launch) before assuming failure.
    """

    reason = LAUNCH_CONFIRMATION_TIMEOUT

    def __init__(
        self,
        signature: str,
        last_valid_block_height: int,
        *,
        detail: Optional[str] = None,
    ):
        message = f"{signature} not confirmed before block height {last_valid_block_height}"
        if detail:
            message = f"{signature} confirmation unknown: {detail}"
        super().__init__(message)
        self.signature = signature
        self.last_valid_block_height = last_valid_block_height


for _cls in (
    LaunchError,
    NetworkError,
    MetadataUploadError,
    SchemaError,
    TransactionBuildError,
    DeserializationError,
    SigningError,
    EscrowError,
    CheckpointFetchError,
    PreflightError,
    ExecutionError,
    ConfirmationTimeoutError,
):
    assert_reason_known(_cls.reason)
