"""integration/key_manager.py

Safe wallet key loading from environment variables:
- Reads SOLANA_PRIVATE_KEY from environment
- Supports Base58 string and JSON array formats
- Raises KeyLoadError if key is missing or invalid

Also writes mint keypairs in solana-keygen format for escrow.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

import base58
from solders.keypair import Keypair


ENV_PRIVATE_KEY = "SOLANA_PRIVATE_KEY"


class KeyLoadError(Exception):
    """Raised when key loading fails."""
    pass


def parse_private_key(key_str: str) -> bytes:
    """Parse a secret key given as Base58 or as a JSON array of bytes.

    Returns:
        Raw 64-byte Ed25519 secret key.

    Raises:
        KeyLoadError: If the string is in neither format.
    """
    key_str = key_str.strip()

    # Try JSON array format first
    if key_str.startswith("["):
        try:
            key_array = json.loads(key_str)
        except json.JSONDecodeError as e:
            raise KeyLoadError(f"Invalid JSON key array: {e}") from e
        if (
            isinstance(key_array, list)
            and len(key_array) == 64
            and all(isinstance(x, int) and 0 <= x <= 255 for x in key_array)
        ):
            return bytes(key_array)
        raise KeyLoadError("JSON key array must contain exactly 64 byte values")

    try:
        key_bytes = base58.b58decode(key_str)
    except ValueError:
        key_bytes = b""
    if len(key_bytes) == 64:  # Ed25519 secret key is 64 bytes
        return key_bytes

    preview = f"{key_str[:6]}..." if len(key_str) > 6 else key_str
    raise KeyLoadError(
        f"Invalid {ENV_PRIVATE_KEY} format. Expected Base58 string or JSON array. Got: {preview}"
    )


def load_wallet_keypair(environ: Optional[Mapping[str, str]] = None) -> Keypair:
    """Load the caller's wallet keypair from SOLANA_PRIVATE_KEY.

    Raises:
        KeyLoadError: If variable is missing or key is invalid.
    """
    env = os.environ if environ is None else environ
    key_str = env.get(ENV_PRIVATE_KEY, "")

    if not key_str:
        raise KeyLoadError(f"{ENV_PRIVATE_KEY} environment variable is not set")

    try:
        return Keypair.from_bytes(parse_private_key(key_str))
    except ValueError as e:
        # solders rejects secret/public halves that don't match
        raise KeyLoadError(f"Invalid {ENV_PRIVATE_KEY}: {e}") from e


def write_keypair_file(keypair: Keypair, directory: str) -> Path:
    """Write ``keypair`` to ``<directory>/<pubkey>.json`` readable by owner only.

    The file holds a JSON array of the 64 secret key bytes, as solana-keygen does.
    """
    dir_path = Path(directory)
    dir_path.mkdir(parents=True, exist_ok=True)
    path = dir_path / f"{keypair.pubkey()}.json"

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(list(bytes(keypair)), f)
    return path
