"""
kinnikureward/tests/test_address.py

Tests for Symbol address parsing.
"""

import hashlib

import pytest
from symbolchain.symbol.Network import Address as SymbolAddress

from kinnikureward.errors import InvalidAddressError
from kinnikureward.ledger.address import (
    NETWORK_MAINNET,
    NETWORK_TESTNET,
    address_from_public_key,
    is_valid_address,
    network_name,
    parse_address,
)


class TestAddressEncoding:
    """Test address construction and printable forms."""

    def test_prefix_follows_network(self, mainnet_address, testnet_address):
        assert mainnet_address.startswith("N")
        assert testnet_address.startswith("T")
        assert len(mainnet_address) == 39

    def test_pretty_groups(self, mainnet_address):
        pretty = parse_address(mainnet_address).pretty()
        assert pretty.count("-") == 6
        assert pretty.replace("-", "") == mainnet_address

    def test_from_public_key_is_deterministic(self, mainnet_address):
        address = address_from_public_key(NETWORK_MAINNET, bytes(range(32)))
        assert address.plain == mainnet_address
        assert address.network_type == NETWORK_MAINNET
        assert len(address.raw) == 24

    def test_from_public_key_unknown_network(self):
        with pytest.raises(ValueError, match="Unsupported network"):
            address_from_public_key(0x11, bytes(32))

    def test_network_name(self):
        assert network_name(NETWORK_MAINNET) == "mainnet"
        assert network_name(NETWORK_TESTNET) == "testnet"
        assert network_name(7) == "unknown(7)"


class TestParseAddress:
    """Test address validation."""

    def test_round_trip(self, mainnet_address):
        address = parse_address(mainnet_address)
        assert address.plain == mainnet_address
        assert address.network_type == NETWORK_MAINNET
        assert str(address) == mainnet_address

    def test_dashes_whitespace_and_case(self, mainnet_address):
        address = parse_address(mainnet_address)
        messy = "  " + address.pretty().lower() + " "
        assert parse_address(messy) == address

    def test_wrong_length(self, mainnet_address):
        with pytest.raises(InvalidAddressError, match="39 characters"):
            parse_address(mainnet_address[:-1])

    def test_invalid_characters(self, mainnet_address):
        # '1' and '8' are not in the base32 alphabet
        with pytest.raises(InvalidAddressError, match="not a valid Symbol address"):
            parse_address("1" + mainnet_address[1:-1] + "8")

    def test_bad_checksum(self, mainnet_address):
        replacement = "B" if mainnet_address[10] != "B" else "C"
        tampered = mainnet_address[:10] + replacement + mainnet_address[11:]
        with pytest.raises(InvalidAddressError, match="not a valid Symbol address"):
            parse_address(tampered)

    def test_unknown_network_byte(self, mainnet_address):
        # well-formed, checksummed address for network 0x11
        body = bytes([0x11]) + parse_address(mainnet_address).raw[1:21]
        plain = str(SymbolAddress(body + hashlib.sha3_256(body).digest()[:3]))
        with pytest.raises(InvalidAddressError, match="not a valid Symbol address"):
            parse_address(plain)

    def test_network_mismatch(self, testnet_address):
        with pytest.raises(InvalidAddressError, match="testnet"):
            parse_address(testnet_address, NETWORK_MAINNET)

    def test_network_match(self, testnet_address):
        assert parse_address(testnet_address, NETWORK_TESTNET).network_type == NETWORK_TESTNET

    @pytest.mark.parametrize("value", [None, 123, b"NAAAA", ["N"]])
    def test_non_string(self, value):
        with pytest.raises(InvalidAddressError):
            parse_address(value)

    def test_empty(self):
        with pytest.raises(InvalidAddressError):
            parse_address("")

    def test_is_valid_address(self, mainnet_address, testnet_address):
        assert is_valid_address(mainnet_address)
        assert is_valid_address(mainnet_address, NETWORK_MAINNET)
        assert not is_valid_address(testnet_address, NETWORK_MAINNET)
        assert not is_valid_address("not-an-address")
