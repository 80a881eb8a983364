"""
kinnikureward/ledger/tx_builder.py

Transfer transaction builder for the Symbol ledger.

Builds and signs version 1 transfer transactions carrying the reward mosaic
and a plain-text message through symbol-sdk's SymbolFacade. This module only
decides the values: amount, message, deadline and a fee of
FEE_MULTIPLIER x serialized size. Layout, signing payload and hashing are
the SDK's.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from symbolchain import sc
from symbolchain.CryptoTypes import Hash256
from symbolchain.facade.SymbolFacade import SymbolFacade

from ..config import DEADLINE_HOURS, EPOCH_ADJUSTMENT, FEE_MULTIPLIER
from .address import Address, get_network
from .signing import SenderAccount

logger = logging.getLogger("kinnikureward.ledger.tx_builder")


# ============================================================================
# CONSTANTS
# ============================================================================

TRANSFER_TRANSACTION_TYPE = "transfer_transaction_v1"

PLAIN_MESSAGE_TYPE = 0x00
MAX_MESSAGE_SIZE = 1024  # including the type byte

MAX_MOSAIC_AMOUNT = 2 ** 64 - 1


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class TransactionRequest:
    """What the reward endpoint wants sent; built once per request."""
    recipient_address: str
    message: str
    token_amount: int


@dataclass(frozen=True)
class SignedTransaction:
    """Signed payload ready for announcement. Announced once, never stored."""
    payload: str
    hash: str
    signer_public_key: str
    network_type: int
    message_text: str
    transaction: Any = field(repr=False, compare=False)

    def to_json(self) -> dict:
        """Body for PUT /transactions."""
        return {"payload": self.payload}

    def to_dict(self) -> dict:
        return {
            "payload": self.payload,
            "hash": self.hash,
            "signer_public_key": self.signer_public_key,
            "network_type": self.network_type,
        }


# ============================================================================
# HELPERS
# ============================================================================

def create_facade(network_type: int, generation_hash: bytes) -> SymbolFacade:
    """
    Facade for a node's network.

    Raises:
        ValueError: Unknown network, or the node reports a generation hash
            seed the SDK does not know for that network
    """
    network = get_network(network_type)
    if network.generation_hash_seed != Hash256(generation_hash):
        raise ValueError(
            f"Node generation hash {generation_hash.hex().upper()} does not match "
            f"{network.name} ({network.generation_hash_seed})"
        )
    return SymbolFacade(network.name)


def create_deadline(
    hours: int = DEADLINE_HOURS,
    epoch_adjustment: int = EPOCH_ADJUSTMENT,
    now: Optional[float] = None,
) -> int:
    """
    Deadline as a network timestamp in milliseconds.

    Args:
        hours: Validity window
        epoch_adjustment: Network epoch, seconds after the Unix epoch
        now: Unix time in seconds (defaults to the current time)
    """
    if now is None:
        now = time.time()
    return int(now * 1000) - epoch_adjustment * 1000 + hours * 3600 * 1000


def encode_plain_message(text: str) -> bytes:
    """
    Encode text as a plain message, cut at a character boundary to fit.
    """
    encoded = text.encode("utf-8")
    limit = MAX_MESSAGE_SIZE - 1
    if len(encoded) > limit:
        logger.warning(f"Message is {len(encoded)} bytes, truncating to {limit}")
        encoded = encoded[:limit].decode("utf-8", errors="ignore").encode("utf-8")
    return bytes([PLAIN_MESSAGE_TYPE]) + encoded


def calculate_fee(size: int, multiplier: int = FEE_MULTIPLIER) -> int:
    return size * multiplier


# ============================================================================
# TRANSACTION BUILDER
# ============================================================================

class TransactionBuilder:
    """
    Builds and signs reward transfers.

    Example:
        facade = create_facade(network_type, generation_hash)
        builder = TransactionBuilder(account, facade, mosaic_id)
        tx = builder.build_transfer(recipient, amount=75, message="Nice!")
        signed = builder.sign(tx)
    """

    def __init__(
        self,
        account: SenderAccount,
        facade: SymbolFacade,
        mosaic_id: int,
        fee_multiplier: int = FEE_MULTIPLIER,
        deadline_hours: int = DEADLINE_HOURS,
        epoch_adjustment: int = EPOCH_ADJUSTMENT,
    ):
        """
        Args:
            account: Signing account
            facade: SymbolFacade of the network the node runs
            mosaic_id: Mosaic transferred by build_transfer()
            fee_multiplier: Fee per serialized byte
            deadline_hours: Validity window of built transactions
            epoch_adjustment: Network epoch in Unix seconds
        """
        if account.network_type != facade.network.identifier:
            raise ValueError("Account and facade are on different networks")
        self.account = account
        self.facade = facade
        self.mosaic_id = mosaic_id
        self.fee_multiplier = fee_multiplier
        self.deadline_hours = deadline_hours
        self.epoch_adjustment = epoch_adjustment

    def build_transfer(
        self,
        recipient: Address,
        amount: int,
        message: str,
        now: Optional[float] = None,
    ):
        """
        Build an unsigned transfer of the reward mosaic.

        Args:
            recipient: Validated recipient address
            amount: Mosaic amount in atomic units
            message: Plain-text message
            now: Unix time for the deadline (defaults to now)

        Returns:
            symbol-sdk TransferTransactionV1 with fee and deadline set
        """
        if not 0 < amount <= MAX_MOSAIC_AMOUNT:
            raise ValueError(f"Transfer amount out of range: {amount}")

        transaction = self.facade.transaction_factory.create({
            "type": TRANSFER_TRANSACTION_TYPE,
            "signer_public_key": self.account.key_pair.public_key,
            "deadline": create_deadline(self.deadline_hours, self.epoch_adjustment, now),
            "recipient_address": recipient.plain,
            "mosaics": [
                {"mosaic_id": self.mosaic_id, "amount": amount},
            ],
            "message": encode_plain_message(message),
        })
        transaction.fee = sc.Amount(calculate_fee(transaction.size, self.fee_multiplier))

        logger.debug(
            f"Built transfer of {amount} to {recipient} "
            f"({transaction.size} bytes, fee {transaction.fee.value})"
        )
        return transaction

    def sign(self, transaction) -> SignedTransaction:
        signature = self.facade.sign_transaction(self.account.key_pair, transaction)
        body = json.loads(self.facade.transaction_factory.attach_signature(transaction, signature))
        tx_hash = str(self.facade.hash_transaction(transaction))

        logger.info(f"Signed TX: {tx_hash} ({transaction.size} bytes)")

        return SignedTransaction(
            payload=body["payload"].upper(),
            hash=tx_hash.upper(),
            signer_public_key=self.account.public_key,
            network_type=self.facade.network.identifier,
            message_text=bytes(transaction.message)[1:].decode("utf-8"),
            transaction=transaction,
        )
