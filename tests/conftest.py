"""
kinnikureward/tests/conftest.py

Shared fixtures: a fake Symbol REST gateway behind httpx.MockTransport,
a fixed signing key and addresses on both networks.
"""

import hashlib
import json
import struct

import httpx
import pytest

from kinnikureward.config import REWARD_MOSAIC_ID
from kinnikureward.ledger.address import (
    NETWORK_MAINNET,
    NETWORK_TESTNET,
    NETWORKS,
    address_from_public_key,
)
from kinnikureward.ledger.client import NodeClient
from kinnikureward.ledger.signing import verify_signature


TEST_PRIVATE_KEY = "0123456789ABCDEF" * 4
NODE_URL = "http://node.test:3000"


class FakeNode:
    """
    Answers the handful of gateway routes the service uses and records
    every request it sees.
    """

    def __init__(self, network_type: int = NETWORK_MAINNET):
        self.network_type = network_type
        self.generation_hash_override = None
        self.requests = []
        self.announced = []
        self.accounts = {}  # plain address -> [{"id": ..., "amount": ...}]
        self.failures = {}  # path prefix -> HTTP status
        self.node_info = None  # overrides the /node/info body when set

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for prefix, status in self.failures.items():
            if path.startswith(prefix):
                return httpx.Response(status, json={"code": "InternalError", "message": "node is sad"})

        if request.method == "GET" and path == "/node/info":
            body = self.node_info
            if body is None:
                body = {
                    "networkIdentifier": self.network_type,
                    "networkGenerationHashSeed": self.generation_hash.hex().upper(),
                }
            return httpx.Response(200, json=body)

        if request.method == "GET" and path.startswith("/accounts/"):
            address = path.rsplit("/", 1)[-1]
            if address not in self.accounts:
                return httpx.Response(
                    404,
                    json={"code": "ResourceNotFound", "message": f"no resource exists with id '{address}'"},
                )
            return httpx.Response(200, json={
                "account": {"address": address, "mosaics": self.accounts[address]},
            })

        if request.method == "PUT" and path == "/transactions":
            self.announced.append(json.loads(request.content))
            return httpx.Response(202, json={
                "message": "packet 9 was pushed to the network via /transactions",
            })

        return httpx.Response(404, json={"code": "ResourceNotFound", "message": "unknown route"})

    @property
    def generation_hash(self) -> bytes:
        """Seed of the configured network unless overridden."""
        if self.generation_hash_override is not None:
            return self.generation_hash_override
        return NETWORKS[self.network_type].generation_hash_seed.bytes

    @property
    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]

    def set_balance(self, address: str, amount: int, mosaic_id: int = REWARD_MOSAIC_ID):
        self.accounts[address] = [
            {"id": "6BED913FA20223F8", "amount": "12000000"},
            {"id": f"{mosaic_id:016X}", "amount": str(amount)},
        ]


@pytest.fixture
def fake_node():
    """Fake gateway on mainnet."""
    return FakeNode()


@pytest.fixture
def node_client(fake_node):
    """NodeClient wired to the fake gateway."""
    return NodeClient(NODE_URL, transport=httpx.MockTransport(fake_node.handler))


@pytest.fixture
def mainnet_address():
    """A valid mainnet address (plain form)."""
    return address_from_public_key(NETWORK_MAINNET, bytes(range(32))).plain


@pytest.fixture
def testnet_address():
    """A valid testnet address (plain form)."""
    return address_from_public_key(NETWORK_TESTNET, bytes(range(32))).plain


@pytest.fixture
def private_key():
    return TEST_PRIVATE_KEY


# Offsets into a serialized transfer transaction
SIGNATURE = slice(8, 72)
SIGNER = slice(72, 104)
SIGNED_PART = 108


def payload_signature_valid(payload, generation_hash: bytes) -> bool:
    """Check a signed payload against its embedded signer key."""
    if isinstance(payload, str):
        payload = bytes.fromhex(payload)
    if len(payload) <= SIGNED_PART:
        return False
    return verify_signature(
        payload[SIGNER],
        generation_hash + payload[SIGNED_PART:],
        payload[SIGNATURE],
    )


def payload_hash(payload, generation_hash: bytes) -> str:
    if isinstance(payload, str):
        payload = bytes.fromhex(payload)
    return hashlib.sha3_256(
        payload[SIGNATURE] + payload[SIGNER] + generation_hash + payload[SIGNED_PART:]
    ).hexdigest().upper()


def decode_transfer(payload) -> dict:
    """Fields of a serialized transfer with one mosaic."""
    if isinstance(payload, str):
        payload = bytes.fromhex(payload)
    size, = struct.unpack_from("<I", payload, 0)
    version, network_type, tx_type = struct.unpack_from("<BBH", payload, 108)
    fee, deadline = struct.unpack_from("<QQ", payload, 112)
    message_size, mosaic_count = struct.unpack_from("<HB", payload, 152)
    mosaics = [
        struct.unpack_from("<QQ", payload, 160 + 16 * i) for i in range(mosaic_count)
    ]
    message_start = 160 + 16 * mosaic_count
    return {
        "size": size,
        "version": version,
        "network_type": network_type,
        "type": tx_type,
        "fee": fee,
        "deadline": deadline,
        "recipient": payload[128:152],
        "mosaics": mosaics,
        "message": payload[message_start:message_start + message_size],
    }


@pytest.fixture
def transfer_checks():
    """Helpers for inspecting signed transfer payloads."""
    class Checks:
        signature_valid = staticmethod(payload_signature_valid)
        hash = staticmethod(payload_hash)
        decode = staticmethod(decode_transfer)

    return Checks
