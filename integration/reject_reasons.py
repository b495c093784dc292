"""integration/reject_reasons.py

Canonical failure reasons for the token launch pipeline.

Keep as simple string constants so we can:
- aggregate stats (why did a launch NOT produce a mint?)
- avoid ad-hoc reason strings drifting across modules
"""

# Transport
LAUNCH_NETWORK_ERROR = "launch_network_error"

# Metadata publication
LAUNCH_METADATA_UPLOAD_FAILED = "launch_metadata_upload_failed"
LAUNCH_METADATA_SCHEMA_INVALID = "launch_metadata_schema_invalid"

# Remote transaction construction
LAUNCH_TX_BUILD_FAILED = "launch_tx_build_failed"

# Signing
LAUNCH_DESERIALIZATION_FAILED = "launch_deserialization_failed"
LAUNCH_CHECKPOINT_FETCH_FAILED = "launch_checkpoint_fetch_failed"
LAUNCH_SIGNING_FAILED = "launch_signing_failed"

# Mint key escrow
LAUNCH_MINT_ESCROW_FAILED = "launch_mint_escrow_failed"

# Broadcast / confirmation
LAUNCH_PREFLIGHT_FAILED = "launch_preflight_failed"
LAUNCH_EXECUTION_FAILED = "launch_execution_failed"
LAUNCH_CONFIRMATION_TIMEOUT = "launch_confirmation_timeout"

# -----------------------------
# Guardrail: enum-only reasons
# -----------------------------

# Collect all uppercase string constants defined in this module.
_KNOWN_REASONS = {
    v for k, v in globals().items() if k.isupper() and isinstance(v, str)
}


def assert_reason_known(reason: str) -> None:
    """Raise if the provided reason isn't in the canonical set.

    This is intentionally strict so any new reason requires updating this file.
    """

    if reason not in _KNOWN_REASONS:
        raise ValueError(f"Unknown reject_reason: {reason!r}. Add it to integration/reject_reasons.py")
