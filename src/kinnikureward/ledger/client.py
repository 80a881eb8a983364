"""
kinnikureward/ledger/client.py

HTTP client for a Symbol REST gateway node.

Provides methods for:
- Network properties (network type + generation hash seed)
- Account mosaic balances
- Transaction announcement

Every call is a single attempt; failures surface as LedgerError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import DEFAULT_HTTP_TIMEOUT, DEFAULT_NODE_URL
from ..errors import LedgerError
from .address import Address

logger = logging.getLogger("kinnikureward.ledger.client")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class NetworkProperties:
    """What the signer needs to know about the network."""
    network_type: int
    generation_hash: bytes

    def to_dict(self) -> dict:
        return {
            "network_type": self.network_type,
            "generation_hash": self.generation_hash.hex().upper(),
        }


@dataclass(frozen=True)
class AnnounceResult:
    """Node acknowledgment: payload accepted into its pool, not confirmed."""
    status: int
    message: str


# ============================================================================
# NODE CLIENT
# ============================================================================

class NodeClient:
    """
    Symbol REST gateway client.

    Example:
        async with NodeClient("https://node:3001") as client:
            props = await client.get_network_properties()
            mosaics = await client.get_account_mosaics(address)
            await client.announce(signed_tx.to_json())
    """

    def __init__(
        self,
        node_url: str = DEFAULT_NODE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            node_url: Base URL of the REST gateway
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.node_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "NodeClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise LedgerError(f"Node request {method} {path} failed: {e}")

        if response.status_code >= 400:
            raise LedgerError(
                f"Node returned {response.status_code} for {method} {path}: "
                f"{_error_message(response)}",
                status=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise LedgerError(f"Node returned invalid JSON for {response.request.url.path}")

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def get_network_properties(self) -> NetworkProperties:
        """
        Fetch network type and generation hash seed from /node/info.

        Returns:
            NetworkProperties

        Raises:
            LedgerError: Request failed or the response is malformed
        """
        data = self._json(await self._request("GET", "/node/info"))
        try:
            network_type = int(data["networkIdentifier"])
            generation_hash = bytes.fromhex(data["networkGenerationHashSeed"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerError(f"Malformed /node/info response: {e}")

        if len(generation_hash) != 32:
            raise LedgerError("Generation hash seed must be 32 bytes")

        return NetworkProperties(network_type=network_type, generation_hash=generation_hash)

    async def get_account_mosaics(self, address: Address) -> Dict[str, int]:
        """
        Get mosaic balances of an account.

        An account the node has never seen (404) has no mosaics.

        Args:
            address: Account address

        Returns:
            {mosaic id hex (uppercase): amount}
        """
        try:
            response = await self._request("GET", f"/accounts/{address.plain}")
        except LedgerError as e:
            if e.status == 404:
                return {}
            raise

        data = self._json(response)
        try:
            mosaics = data["account"]["mosaics"]
            return {m["id"].upper(): int(m["amount"]) for m in mosaics}
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise LedgerError(f"Malformed account response: {e}")

    async def get_mosaic_balance(self, address: Address, mosaic_id: int) -> int:
        mosaics = await self.get_account_mosaics(address)
        return mosaics.get(f"{mosaic_id:016X}", 0)

    async def announce(self, body: Dict[str, str]) -> AnnounceResult:
        """
        Announce a signed transaction payload.

        Success means the node took the payload into its unconfirmed pool.
        It does not mean the transaction will be included in a block.

        Args:
            body: {"payload": hex}

        Returns:
            AnnounceResult
        """
        response = await self._request("PUT", "/transactions", json=body)
        message = ""
        try:
            message = response.json().get("message", "")
        except (ValueError, AttributeError):
            pass
        return AnnounceResult(status=response.status_code, message=message)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data.get("code") or data)
    return str(data)
