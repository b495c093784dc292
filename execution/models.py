"""execution/models.py

Data models for the token launch pipeline.

Flow: LaunchRequest -> MetadataRecord -> unsigned bytes
      -> SignedLaunchTransaction -> LaunchResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from solders.hash import Hash
from solders.transaction import VersionedTransaction

from execution.launch_errors import SchemaError


DEFAULT_INITIAL_LIQUIDITY_SOL = 0.0001
DEFAULT_SLIPPAGE_BPS = 5
DEFAULT_PRIORITY_FEE_SOL = 0.00005

# camelCase keys accepted from agent tooling -> field names
_OPTION_ALIASES = {
    "imageUrl": "image_url",
    "initialLiquiditySOL": "initial_liquidity_sol",
    "slippageBps": "slippage_bps",
    "priorityFee": "priority_fee",
}


# String values from loose callers are parsed; int() rejects "5.5"
_NUMERIC_OPTIONS = {
    "initial_liquidity_sol": float,
    "priority_fee": float,
    "slippage_bps": int,
}


def default_description(name: str) -> str:
    return f"{name} token created via SolanaAgentKit"


@dataclass(frozen=True)
class LaunchOptions:
    """Optional launch parameters. Every field falls back to a default.

    Attributes:
        description: Token description (defaults to one derived from the name).
        twitter: Twitter/X link.
        telegram: Telegram link.
        website: Project website.
        image_url: Image to fetch and attach to the metadata upload.
        initial_liquidity_sol: Initial buy in SOL.
        slippage_bps: Slippage tolerance in basis points.
        priority_fee: Priority fee in SOL.
    """
    description: Optional[str] = None
    twitter: Optional[str] = None
    telegram: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    initial_liquidity_sol: float = DEFAULT_INITIAL_LIQUIDITY_SOL
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    priority_fee: float = DEFAULT_PRIORITY_FEE_SOL

    def __post_init__(self):
        """Validate constraints manually."""
        for name in ("initial_liquidity_sol", "priority_fee"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        if not self.initial_liquidity_sol > 0:
            raise ValueError(
                f"initial_liquidity_sol must be positive, got {self.initial_liquidity_sol}"
            )
        if not self.priority_fee > 0:
            raise ValueError(f"priority_fee must be positive, got {self.priority_fee}")
        if isinstance(self.slippage_bps, bool) or not isinstance(self.slippage_bps, int):
            raise ValueError(f"slippage_bps must be an integer, got {self.slippage_bps!r}")
        if self.slippage_bps < 0:
            raise ValueError(f"slippage_bps cannot be negative, got {self.slippage_bps}")

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "LaunchOptions":
        """Build options from a loose mapping (snake_case or camelCase keys).

        None values are dropped so that defaults apply. Numeric strings are
        parsed; anything unparseable raises ValueError.
        """
        if not raw:
            return cls()
        known = set(cls.__dataclass_fields__)
        kwargs: Dict[str, Any] = {}
        for key, value in raw.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown launch option: {key}")
            if isinstance(value, str) and name in _NUMERIC_OPTIONS:
                value = _NUMERIC_OPTIONS[name](value)
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class LaunchRequest:
    name: str
    ticker: str
    options: LaunchOptions = field(default_factory=LaunchOptions)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Token name must be a non-empty string")
        if not isinstance(self.ticker, str) or not self.ticker.strip():
            raise ValueError("Token ticker must be a non-empty string")

    @property
    def description(self) -> str:
        return self.options.description or default_description(self.name)


@dataclass(frozen=True)
class MetadataRecord:
    """Metadata echoed back by the hosting service plus its content URI."""
    name: str
    symbol: str
    metadata_uri: str
    description: Optional[str] = None
    image_uri: Optional[str] = None
    twitter: Optional[str] = None
    telegram: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Any) -> "MetadataRecord":
        """Validate and convert the upload response body.

        Expected shape::

            {"metadata": {"name": ..., "symbol": ..., ...}, "metadataUri": "..."}

        Raises:
            SchemaError: If the body is not a mapping or a required field is absent.
        """
        if not isinstance(payload, Mapping):
            raise SchemaError(f"Metadata response must be a JSON object, got {type(payload).__name__}")

        metadata = payload.get("metadata")
        if not isinstance(metadata, Mapping):
            raise SchemaError("Metadata response is missing 'metadata' object")

        missing = [k for k in ("name", "symbol") if not metadata.get(k)]
        if not payload.get("metadataUri"):
            missing.append("metadataUri")
        if missing:
            raise SchemaError(f"Metadata response is missing required fields: {', '.join(missing)}")

        return cls(
            name=str(metadata["name"]),
            symbol=str(metadata["symbol"]),
            metadata_uri=str(payload["metadataUri"]),
            description=metadata.get("description"),
            image_uri=metadata.get("image"),
            twitter=metadata.get("twitter"),
            telegram=metadata.get("telegram"),
            website=metadata.get("website"),
        )


@dataclass(frozen=True)
class Checkpoint:
    """Recent blockhash and the last block height at which it stays valid."""
    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True)
class SignedLaunchTransaction:
    transaction: VersionedTransaction
    checkpoint: Checkpoint

    @property
    def signature(self) -> str:
        return str(self.transaction.signatures[0])

    def to_bytes(self) -> bytes:
        return bytes(self.transaction)


@dataclass(frozen=True)
class ConfirmationStatus:
    """Ledger-reported status of a submitted signature."""
    slot: int
    confirmation_status: Optional[str] = None
    err: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmation_status in ("confirmed", "finalized")


@dataclass(frozen=True)
class LaunchResult:
    signature: str
    mint: str
    metadata_uri: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "signature": self.signature,
            "mint": self.mint,
            "metadataUri": self.metadata_uri,
        }
