"""
kinnikureward/tests/test_submitter.py

Tests for the reward submission pipeline.
"""

import pytest

from kinnikureward.config import EPOCH_ADJUSTMENT, REWARD_MOSAIC_ID
from kinnikureward.errors import ConfigurationError, InvalidAddressError, LedgerError
from kinnikureward.ledger.address import NETWORK_TESTNET
from kinnikureward.ledger.submitter import SubmissionStep, TransactionSubmitter, is_client_error
from kinnikureward.ledger.tx_builder import TransactionRequest

NOW = 1700000000.0


@pytest.fixture
def submitter(node_client, private_key):
    return TransactionSubmitter(node_client, private_key, clock=lambda: NOW)


@pytest.fixture
def request_for(mainnet_address):
    def make(address=None, message="Nice fight!", amount=75):
        return TransactionRequest(
            recipient_address=address or mainnet_address,
            message=message,
            token_amount=amount,
        )
    return make


class TestSubmit:
    """Test the happy path."""

    async def test_success(self, submitter, fake_node, request_for):
        result = await submitter.submit(request_for())

        assert result.ok
        assert result.error is None
        assert result.step == SubmissionStep.BROADCAST
        assert fake_node.paths == [("GET", "/node/info"), ("PUT", "/transactions")]
        assert fake_node.announced == [{"payload": result.signed.payload}]

    async def test_announced_payload_is_valid(self, submitter, fake_node, request_for, transfer_checks):
        result = await submitter.submit(request_for(message="限界突破！"))

        payload = fake_node.announced[0]["payload"]
        assert transfer_checks.signature_valid(payload, fake_node.generation_hash)
        assert transfer_checks.hash(payload, fake_node.generation_hash) == result.signed.hash

        fields = transfer_checks.decode(payload)
        assert result.signed.message_text == "限界突破！"
        assert fields["message"] == "\x00限界突破！".encode("utf-8")
        assert fields["mosaics"] == [(REWARD_MOSAIC_ID, 75)]
        assert fields["deadline"] == (1700000000 - EPOCH_ADJUSTMENT) * 1000 + 2 * 3600 * 1000

    async def test_state_filled(self, submitter, request_for, mainnet_address):
        result = await submitter.submit(request_for())

        state = result.state
        assert state.network is not None
        assert state.facade.network.identifier == state.network.network_type
        assert state.recipient.plain == mainnet_address
        assert state.announce.status == 202
        assert result.to_dict()["transaction_hash"] == result.signed.hash


class TestSubmitFailures:
    """Test short-circuiting on each failing step."""

    async def test_network_failure_stops_pipeline(self, submitter, fake_node, request_for):
        fake_node.failures["/node/info"] = 500

        result = await submitter.submit(request_for())

        assert not result.ok
        assert result.step == SubmissionStep.RESOLVE_NETWORK
        assert isinstance(result.exception, LedgerError)
        assert not is_client_error(result)
        assert result.signed is None
        assert fake_node.paths == [("GET", "/node/info")]

    async def test_unknown_generation_hash(self, submitter, fake_node, request_for):
        fake_node.generation_hash_override = bytes(32)

        result = await submitter.submit(request_for())

        assert result.step == SubmissionStep.RESOLVE_NETWORK
        assert "does not match" in result.error
        assert fake_node.paths == [("GET", "/node/info")]

    async def test_missing_private_key(self, node_client, fake_node, request_for):
        submitter = TransactionSubmitter(node_client, None)
        assert not submitter.has_signing_key

        result = await submitter.submit(request_for())

        assert result.step == SubmissionStep.DERIVE_SENDER
        assert isinstance(result.exception, ConfigurationError)
        assert "Private key not set" in result.error
        assert fake_node.announced == []

    async def test_malformed_private_key(self, node_client, fake_node, request_for):
        result = await TransactionSubmitter(node_client, "not-hex").submit(request_for())

        assert result.step == SubmissionStep.DERIVE_SENDER
        assert "Invalid private key" in result.error
        assert fake_node.announced == []

    async def test_wrong_network_recipient(self, submitter, fake_node, request_for, testnet_address):
        result = await submitter.submit(request_for(address=testnet_address))

        assert result.step == SubmissionStep.VALIDATE_RECIPIENT
        assert isinstance(result.exception, InvalidAddressError)
        assert is_client_error(result)
        assert fake_node.announced == []

    async def test_zero_amount_fails_build(self, submitter, fake_node, request_for):
        result = await submitter.submit(request_for(amount=0))

        assert result.step == SubmissionStep.BUILD
        assert fake_node.announced == []

    async def test_broadcast_rejected(self, submitter, fake_node, request_for):
        fake_node.failures["/transactions"] = 409

        result = await submitter.submit(request_for())

        assert not result.ok
        assert result.step == SubmissionStep.BROADCAST
        assert "409" in result.error
        # signed but never accepted
        assert result.signed is not None
        assert result.state.announce is None

    async def test_testnet_node(
        self, node_client, fake_node, private_key, request_for, testnet_address, transfer_checks
    ):
        fake_node.network_type = NETWORK_TESTNET
        submitter = TransactionSubmitter(node_client, private_key, clock=lambda: NOW)

        result = await submitter.submit(request_for(address=testnet_address))

        assert result.ok
        assert result.signed.network_type == NETWORK_TESTNET
        assert transfer_checks.signature_valid(result.signed.payload, fake_node.generation_hash)
