"""
kinnikureward/ledger/address.py

Symbol address parsing and validation.

Decoding and checksum checks are done by symbol-sdk (symbolchain); this
module normalizes user input (case, dashes, whitespace), decides which
network an address belongs to, and turns every failure into
InvalidAddressError.
"""

from dataclasses import dataclass
from typing import Optional

from symbolchain.CryptoTypes import PublicKey
from symbolchain.symbol.Network import Address as SymbolAddress
from symbolchain.symbol.Network import Network

from ..errors import InvalidAddressError


# ============================================================================
# CONSTANTS
# ============================================================================

NETWORK_MAINNET = Network.MAINNET.identifier  # 104, addresses start with 'N'
NETWORK_TESTNET = Network.TESTNET.identifier  # 152, addresses start with 'T'

NETWORKS = {
    NETWORK_MAINNET: Network.MAINNET,
    NETWORK_TESTNET: Network.TESTNET,
}

ADDRESS_DECODED_SIZE = SymbolAddress.SIZE
ADDRESS_ENCODED_SIZE = SymbolAddress.ENCODED_SIZE


def network_name(network_type: int) -> str:
    network = NETWORKS.get(network_type)
    return network.name if network else f"unknown({network_type})"


def get_network(network_type: int) -> Network:
    """
    Look up a known Symbol network by identifier.

    Raises:
        ValueError: Not mainnet or testnet
    """
    try:
        return NETWORKS[network_type]
    except KeyError:
        raise ValueError(f"Unsupported network type: {network_type}")


@dataclass(frozen=True)
class Address:
    """A validated Symbol address."""
    raw: bytes

    @property
    def network_type(self) -> int:
        return self.raw[0]

    @property
    def plain(self) -> str:
        """39-character base32 form."""
        return str(SymbolAddress(self.raw))

    def pretty(self) -> str:
        """Dash-separated form, six characters per group."""
        plain = self.plain
        return "-".join(plain[i:i + 6] for i in range(0, len(plain), 6))

    def __str__(self) -> str:
        return self.plain


def parse_address(text: object, network_type: Optional[int] = None) -> Address:
    """
    Parse and validate an address string.

    Args:
        text: Address in plain or dashed form
        network_type: If given, the address must belong to this network

    Returns:
        Address

    Raises:
        InvalidAddressError: Malformed, bad checksum, or wrong network
    """
    if not isinstance(text, str):
        raise InvalidAddressError("Address must be a string")

    plain = text.strip().upper().replace("-", "")
    if len(plain) != ADDRESS_ENCODED_SIZE:
        raise InvalidAddressError(
            f"Address {text!r} has to be {ADDRESS_ENCODED_SIZE} characters long"
        )

    owner = None
    for network in NETWORKS.values():
        try:
            if network.is_valid_address_string(plain):
                owner = network
                break
        except ValueError:
            # not decodable as base32 at all
            break

    if owner is None:
        raise InvalidAddressError(f"Address {text!r} is not a valid Symbol address")

    if network_type is not None and owner.identifier != network_type:
        raise InvalidAddressError(
            f"Address {text!r} belongs to {owner.name}, "
            f"not {network_name(network_type)}"
        )

    return Address(raw=SymbolAddress(plain).bytes)


def is_valid_address(text: object, network_type: Optional[int] = None) -> bool:
    try:
        parse_address(text, network_type)
        return True
    except InvalidAddressError:
        return False


def address_from_public_key(network_type: int, public_key: bytes) -> Address:
    """Address of an account on the given network."""
    network = get_network(network_type)
    return Address(raw=network.public_key_to_address(PublicKey(public_key)).bytes)
