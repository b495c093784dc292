from pathlib import Path

import pytest

from config.launch_schema import DEFAULT_METADATA_URL, LaunchConfig
from config.loader import ConfigError, build_launch_config, load_launch_config


def test_defaults_are_valid():
    cfg = LaunchConfig()
    assert cfg.metadata_url == DEFAULT_METADATA_URL
    assert cfg.commitment == "confirmed"
    assert cfg.max_send_retries == 5
    assert cfg.mint_key_escrow_dir is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"commitment": "recent"},
        {"max_send_retries": 50},
        {"max_send_retries": 2.5},
        {"rpc_url": "ws://localhost:8900"},
        {"http_timeout_seconds": 0},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        LaunchConfig(**kwargs)


def test_load_yaml_file(tmp_path):
    path = tmp_path / "launch.yaml"
    path.write_text("max_send_retries: 3\ncommitment: finalized\n", encoding="utf-8")

    loaded = load_launch_config(str(path), environ={})

    assert loaded.config.max_send_retries == 3
    assert loaded.config.commitment == "finalized"
    assert len(loaded.config_hash) == 64


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "launch.yaml"
    path.write_text("max_retries: 3\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="max_retries"):
        load_launch_config(str(path), environ={})


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "launch.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_launch_config(str(path), environ={})


def test_missing_file_uses_defaults(tmp_path):
    loaded = load_launch_config(str(tmp_path / "nope.yaml"), environ={})
    assert loaded.config == LaunchConfig()
    assert loaded.config_hash == ""


def test_env_overrides_file_values():
    cfg = build_launch_config(
        {"rpc_url": "https://file.example"},
        environ={"SOLANA_RPC_URL": "https://env.example"},
    )
    assert cfg.rpc_url == "https://env.example"


def test_invalid_value_wrapped_as_config_error():
    with pytest.raises(ConfigError):
        build_launch_config({"commitment": "bogus"}, environ={})


def test_shipped_config_loads():
    path = Path(__file__).resolve().parent.parent / "config" / "launch.yaml"
    loaded = load_launch_config(str(path), environ={})
    assert loaded.config.max_send_retries == 5
