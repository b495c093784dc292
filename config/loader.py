"""config/loader.py

Launch config loader for config/launch.yaml.

Design goals:
- No extra deps beyond PyYAML.
- Deterministic config hash (sha256 of file bytes) to log with each launch.
- Environment variables override file values for endpoints.
"""

from __future__ import annotations

import dataclasses
import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from config.launch_schema import LaunchConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/launch.yaml"

# env var -> LaunchConfig field
ENV_OVERRIDES = {
    "SOLANA_RPC_URL": "rpc_url",
    "PUMPFUN_METADATA_URL": "metadata_url",
    "PUMPPORTAL_TRADE_URL": "trade_url",
    "LAUNCH_MINT_KEY_ESCROW_DIR": "mint_key_escrow_dir",
}


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class LoadedConfig:
    path: str
    config: LaunchConfig
    config_hash: str  # sha256 hex, empty when no file was read


def _sha256_file(path: Path) -> str:
    b = path.read_bytes()
    return hashlib.sha256(b).hexdigest()


def build_launch_config(
    raw: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> LaunchConfig:
    """Build a LaunchConfig from a mapping, applying environment overrides.

    Raises:
        ConfigError: On unknown keys or values failing validation.
    """
    known = {f.name for f in dataclasses.fields(LaunchConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    values: Dict[str, Any] = dict(raw)
    env = os.environ if environ is None else environ
    for var, name in ENV_OVERRIDES.items():
        if env.get(var):
            values[name] = env[var]

    try:
        return LaunchConfig(**values)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid launch config: {e}") from e


def load_launch_config(
    path: str = DEFAULT_CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> LoadedConfig:
    """Load and validate the launch config.

    A missing file is not an error: defaults plus environment overrides apply.
    """
    p = Path(path)
    if not p.exists():
        logger.warning(f"[config] {p} not found, using defaults")
        return LoadedConfig(path=str(p), config=build_launch_config({}, environ), config_hash="")

    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{p.name} must be a YAML mapping (dict at top-level)")

    loaded = LoadedConfig(
        path=str(p),
        config=build_launch_config(raw, environ),
        config_hash=_sha256_file(p),
    )
    logger.info(f"[config] Loaded launch config from {p} (sha256={loaded.config_hash[:12]})")
    return loaded
