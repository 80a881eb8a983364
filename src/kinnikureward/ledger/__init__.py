"""
kinnikureward/ledger/

Symbol ledger integration: addresses, signing, transfer transactions,
the node REST client and the reward submission pipeline.
"""

from .address import (
    Address,
    parse_address,
    is_valid_address,
    address_from_public_key,
    NETWORK_MAINNET,
    NETWORK_TESTNET,
)
from .signing import SenderAccount, verify_signature
from .tx_builder import (
    TransactionBuilder,
    TransactionRequest,
    SignedTransaction,
    create_facade,
)
from .client import NodeClient, NetworkProperties, AnnounceResult
from .submitter import (
    TransactionSubmitter,
    SubmissionResult,
    SubmissionStep,
)

__all__ = [
    # Addresses
    "Address",
    "parse_address",
    "is_valid_address",
    "address_from_public_key",
    "NETWORK_MAINNET",
    "NETWORK_TESTNET",
    # Signing
    "SenderAccount",
    "verify_signature",
    # Transactions
    "TransactionBuilder",
    "TransactionRequest",
    "SignedTransaction",
    "create_facade",
    # Node client
    "NodeClient",
    "NetworkProperties",
    "AnnounceResult",
    # Submission
    "TransactionSubmitter",
    "SubmissionResult",
    "SubmissionStep",
]
