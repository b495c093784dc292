import contextlib
from typing import Any, Dict, List, Optional

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from config.launch_schema import LaunchConfig
from execution.launch_errors import CheckpointFetchError, ConfirmationTimeoutError, PreflightError
from execution.models import Checkpoint, ConfirmationStatus
from ingestion.rpc.client import LedgerRpc
from integration.wallet_context import KeypairWalletContext


PUMP_PROGRAM_ID = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
METADATA_URI = "https://ipfs.io/ipfs/QmTestMetadataUri"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def make_unsigned_tx(payer: Pubkey, mint: Pubkey, *, legacy: bool = False) -> bytes:
    """Serialized create-style transaction requiring payer and mint signatures."""
    ix = Instruction(
        PUMP_PROGRAM_ID,
        b"\x18\x1e\xc8\x28\x05\x1c\x07\x77",
        [
            AccountMeta(mint, True, True),
            AccountMeta(payer, True, True),
        ],
    )
    stale = Hash.new_unique()
    if legacy:
        message = Message.new_with_blockhash([ix], payer, stale)
    else:
        message = MessageV0.try_compile(payer, [ix], [], stale)
    blank = [Signature.default()] * message.header.num_required_signatures
    return bytes(VersionedTransaction.populate(message, blank))


def verify_signatures(tx: VersionedTransaction) -> List[bool]:
    message = tx.message
    signers = message.account_keys[: message.header.num_required_signatures]
    data = to_bytes_versioned(message)
    return [sig.verify(key, data) for key, sig in zip(signers, tx.signatures)]


class FakeLedger(LedgerRpc):
    """In-memory node: validates signatures on submit, scripted confirmation."""

    def __init__(self):
        self.checkpoints: List[Checkpoint] = []
        self.submitted: List[VersionedTransaction] = []
        self.submit_retries: List[int] = []
        self.checkpoint_failures = 0
        self.execution_error: Optional[str] = None
        self.execution_logs: List[str] = []
        self.never_confirm = False
        self.statuses: Dict[str, ConfirmationStatus] = {}

    async def fetch_checkpoint(self) -> Checkpoint:
        if self.checkpoint_failures > 0:
            self.checkpoint_failures -= 1
            raise CheckpointFetchError("node unavailable")
        checkpoint = Checkpoint(blockhash=Hash.new_unique(), last_valid_block_height=1_000 + len(self.checkpoints))
        self.checkpoints.append(checkpoint)
        return checkpoint

    async def submit(self, raw_tx: bytes, *, max_retries: int) -> str:
        tx = VersionedTransaction.from_bytes(raw_tx)
        if not all(verify_signatures(tx)):
            raise PreflightError(
                "Transaction signature verification failure",
                logs=["Program log: signature verification failed"],
            )
        self.submitted.append(tx)
        self.submit_retries.append(max_retries)
        return str(tx.signatures[0])

    async def confirm(self, signature: str, checkpoint: Checkpoint) -> ConfirmationStatus:
        if self.never_confirm:
            raise ConfirmationTimeoutError(signature, checkpoint.last_valid_block_height)
        status = ConfirmationStatus(
            slot=42,
            confirmation_status="confirmed",
            err=self.execution_error,
            logs=list(self.execution_logs) if self.execution_error else [],
        )
        self.statuses[signature] = status
        return status

    async def get_signature_status(self, signature: str) -> Optional[ConfirmationStatus]:
        return self.statuses.get(signature)


class FakeLaunchServices:
    """aiohttp app standing in for the metadata host and the trade-local builder."""

    def __init__(self):
        self.ipfs_status = 200
        self.ipfs_payload: Optional[Dict[str, Any]] = None
        self.trade_status = 200
        self.trade_error_body = ""
        self.trade_body_override: Optional[bytes] = None
        self.image_status = 200

        self.upload_calls = 0
        self.trade_calls = 0
        self.image_calls = 0
        self.upload_fields: Dict[str, str] = {}
        self.upload_files: List[Dict[str, Any]] = []
        self.trade_payloads: List[Dict[str, Any]] = []

    async def handle_ipfs(self, request: web.Request) -> web.Response:
        self.upload_calls += 1
        post = await request.post()
        self.upload_fields = {}
        self.upload_files = []
        for key, value in post.items():
            if isinstance(value, web.FileField):
                self.upload_files.append({
                    "name": key,
                    "filename": value.filename,
                    "content_type": value.content_type,
                    "data": value.file.read(),
                })
            else:
                self.upload_fields[key] = value

        if self.ipfs_status != 200:
            return web.Response(status=self.ipfs_status)
        if self.ipfs_payload is not None:
            return web.json_response(self.ipfs_payload)
        return web.json_response({
            "metadata": {
                "name": self.upload_fields.get("name"),
                "symbol": self.upload_fields.get("symbol"),
                "description": self.upload_fields.get("description"),
                "showName": True,
            },
            "metadataUri": METADATA_URI,
        })

    async def handle_trade(self, request: web.Request) -> web.Response:
        self.trade_calls += 1
        payload = await request.json()
        self.trade_payloads.append(payload)
        if self.trade_status != 200:
            return web.Response(status=self.trade_status, text=self.trade_error_body)
        if self.trade_body_override is not None:
            return web.Response(body=self.trade_body_override)
        body = make_unsigned_tx(
            Pubkey.from_string(payload["publicKey"]),
            Pubkey.from_string(payload["mint"]),
        )
        return web.Response(body=body, content_type="application/octet-stream")

    async def handle_image(self, request: web.Request) -> web.Response:
        self.image_calls += 1
        if self.image_status != 200:
            return web.Response(status=self.image_status)
        return web.Response(body=PNG_BYTES, content_type="image/png")

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/ipfs", self.handle_ipfs)
        app.router.add_post("/api/trade-local", self.handle_trade)
        app.router.add_get("/image.png", self.handle_image)
        return app


@contextlib.asynccontextmanager
async def _serve(services: FakeLaunchServices, **config_overrides):
    """Start the fake services; yield (session, config, base_url)."""
    server = TestServer(services.make_app())
    await server.start_server()
    try:
        config = LaunchConfig(
            metadata_url=str(server.make_url("/api/ipfs")),
            trade_url=str(server.make_url("/api/trade-local")),
            confirm_poll_interval_seconds=0.05,
            **config_overrides,
        )
        async with aiohttp.ClientSession() as session:
            yield session, config, str(server.make_url("/"))
    finally:
        await server.close()


@pytest.fixture
def serve():
    return _serve


@pytest.fixture
def services() -> FakeLaunchServices:
    return FakeLaunchServices()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def wallet_keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def wallet(wallet_keypair, ledger) -> KeypairWalletContext:
    return KeypairWalletContext(wallet_keypair, ledger)


@pytest.fixture
def unsigned_tx():
    return make_unsigned_tx


@pytest.fixture
def check_signatures():
    return verify_signatures
