"""
kinnikureward/ledger/signing.py

Ed25519 key handling for the reward sender account.

The key pair itself is a symbol-sdk KeyPair, which is what SymbolFacade
signs transactions with. verify_signature() checks signatures independently
of the SDK with the cryptography package.

Usage:
    from kinnikureward.ledger.signing import SenderAccount, verify_signature

    account = SenderAccount.from_private_key(private_key_hex, network_type)
    signature = account.sign(b"payload")

    assert verify_signature(account.public_key_bytes, b"payload", signature)
"""

from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from symbolchain.CryptoTypes import PrivateKey
from symbolchain.facade.SymbolFacade import SymbolFacade

from .address import Address, address_from_public_key

PRIVATE_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64


class SenderAccount:
    """
    Server-held account that signs reward transfers.

    Use the factory methods from_private_key() or from_seed() instead of
    calling the constructor directly.
    """

    def __init__(self, key_pair: SymbolFacade.KeyPair, network_type: int):
        self.key_pair = key_pair
        self.network_type = network_type

    @classmethod
    def from_seed(cls, seed: bytes, network_type: int) -> "SenderAccount":
        """
        Create an account from 32 raw private key bytes.

        Args:
            seed: 32-byte private key
            network_type: Network identifier the account signs for
        """
        if len(seed) != PRIVATE_KEY_SIZE:
            raise ValueError(f"Private key must be exactly {PRIVATE_KEY_SIZE} bytes")
        return cls(SymbolFacade.KeyPair(PrivateKey(seed)), network_type)

    @classmethod
    def from_private_key(cls, private_key_hex: str, network_type: int) -> "SenderAccount":
        """
        Create an account from a 64-character hex private key.

        Args:
            private_key_hex: Private key as hex
            network_type: Network identifier the account signs for
        """
        try:
            seed = bytes.fromhex(private_key_hex.strip())
        except (ValueError, AttributeError):
            raise ValueError("Private key must be a hex string")
        return cls.from_seed(seed, network_type)

    @property
    def public_key(self) -> str:
        """Public key as uppercase hex, the way the node reports it."""
        return self.public_key_bytes.hex().upper()

    @property
    def public_key_bytes(self) -> bytes:
        return self.key_pair.public_key.bytes

    @property
    def address(self) -> Address:
        return address_from_public_key(self.network_type, self.public_key_bytes)

    def sign(self, data: bytes) -> bytes:
        """Sign raw bytes, returning a 64-byte signature."""
        return self.key_pair.sign(data).bytes

    def verify(self, data: bytes, signature: bytes) -> bool:
        return verify_signature(self.public_key_bytes, data, signature)


def verify_signature(
    public_key: Union[bytes, str],
    data: bytes,
    signature: Union[bytes, str],
) -> bool:
    """
    Verify an Ed25519 signature.

    Args:
        public_key: 32-byte public key (bytes or hex)
        data: Signed bytes
        signature: 64-byte signature (bytes or hex)

    Returns:
        True if the signature is valid
    """
    if isinstance(public_key, str):
        public_key = bytes.fromhex(public_key)
    if isinstance(signature, str):
        signature = bytes.fromhex(signature)

    if len(public_key) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False

    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
        return True
    except InvalidSignature:
        return False
