import asyncio

import pytest
from solders.keypair import Keypair

from execution.launch_errors import TransactionBuildError
from execution.models import LaunchOptions, MetadataRecord
from execution.transaction_builder import TransactionBuilder, build_create_payload

from conftest import METADATA_URI


RECORD = MetadataRecord(name="Moon", symbol="MOON", metadata_uri=METADATA_URI)


def _build(serve, services, wallet_address, mint_address, options=None):
    async def scenario():
        async with serve(services) as (session, config, _base_url):
            builder = TransactionBuilder(session, trade_url=config.trade_url)
            return await builder.build(wallet_address, mint_address, RECORD, options)

    return asyncio.run(scenario())


def test_payload_shape():
    payload = build_create_payload("WALLET", "MINT", RECORD, LaunchOptions(slippage_bps=10))
    assert payload == {
        "publicKey": "WALLET",
        "action": "create",
        "tokenMetadata": {"name": "Moon", "symbol": "MOON", "uri": METADATA_URI},
        "mint": "MINT",
        "denominatedInSol": "true",
        "amount": 0.0001,
        "slippage": 10,
        "priorityFee": 0.00005,
        "pool": "pump",
    }


def test_build_posts_json_and_returns_raw_bytes(serve, services):
    wallet, mint = str(Keypair().pubkey()), str(Keypair().pubkey())
    services.trade_body_override = b"\x01\x02opaque"

    data = _build(serve, services, wallet, mint, LaunchOptions(initial_liquidity_sol=0.25))

    assert data == b"\x01\x02opaque"
    assert services.trade_calls == 1
    sent = services.trade_payloads[0]
    assert sent["publicKey"] == wallet
    assert sent["mint"] == mint
    assert sent["amount"] == 0.25
    assert sent["denominatedInSol"] == "true"


def test_error_carries_status_and_body_verbatim(serve, services):
    services.trade_status = 400
    services.trade_error_body = "Bad Request: insufficient SOL for initial buy"

    with pytest.raises(TransactionBuildError) as exc_info:
        _build(serve, services, "WALLET", "MINT")

    err = exc_info.value
    assert err.status == 400
    assert err.body == "Bad Request: insufficient SOL for initial buy"
    assert "400" in str(err)
    assert "Bad Request: insufficient SOL for initial buy" in str(err)
