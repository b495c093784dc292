"""config/launch_schema.py

Defines the configuration schema for the launch pipeline.
Implements manual validation to avoid Pydantic dependency.
"""

from dataclasses import dataclass
from typing import Any, Optional


DEFAULT_METADATA_URL = "https://pump.fun/api/ipfs"
DEFAULT_TRADE_URL = "https://pumpportal.fun/api/trade-local"
DEFAULT_SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class LaunchConfig:
    """
    Endpoints, timeouts and broadcast settings for one process.
    """
    # Remote services
    metadata_url: str = DEFAULT_METADATA_URL
    trade_url: str = DEFAULT_TRADE_URL
    rpc_url: str = DEFAULT_SOLANA_RPC_URL
    http_timeout_seconds: float = 30.0

    # Broadcast
    commitment: str = "confirmed"
    max_send_retries: int = 5
    confirm_poll_interval_seconds: float = 0.5

    # Whole-pipeline cancellation boundary (applied by the caller)
    launch_timeout_seconds: float = 180.0

    # Mint keypair escrow directory; None discards the key after signing
    mint_key_escrow_dir: Optional[str] = None

    def __post_init__(self):
        """Validate constraints manually since we don't have Pydantic."""
        for name in ("metadata_url", "trade_url", "rpc_url"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                raise ValueError(f"{name} must be an http(s) URL, got {value!r}")

        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(
                f"commitment must be one of {'|'.join(COMMITMENT_LEVELS)}, got: {self.commitment}"
            )

        self._validate_range("http_timeout_seconds", self.http_timeout_seconds, 1.0, 300.0)
        self._validate_range("max_send_retries", self.max_send_retries, 0, 20)
        self._validate_range("confirm_poll_interval_seconds", self.confirm_poll_interval_seconds, 0.05, 10.0)
        self._validate_range("launch_timeout_seconds", self.launch_timeout_seconds, 10.0, None)

        if isinstance(self.max_send_retries, bool) or not isinstance(self.max_send_retries, int):
            raise ValueError(f"max_send_retries must be an integer, got {self.max_send_retries!r}")

    def _validate_range(self, name: str, value: Any, min_val: float, max_val: Optional[float] = None) -> None:
        try:
            val = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be numeric, got {value}")

        if val < min_val:
            raise ValueError(f"{name} {val} is below minimum {min_val}")
        if max_val is not None and val > max_val:
            raise ValueError(f"{name} {val} is above maximum {max_val}")
