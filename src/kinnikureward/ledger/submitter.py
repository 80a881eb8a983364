"""
kinnikureward/ledger/submitter.py

Reward transaction submission pipeline.

Runs six steps strictly in order, stopping at the first failure:

1. RESOLVE_NETWORK     fetch network type + generation hash, pick the SDK facade
2. DERIVE_SENDER       key pair from the server-held private key
3. VALIDATE_RECIPIENT  parse the recipient address for that network
4. BUILD               transfer of the reward mosaic with message, deadline, fee
5. SIGN                sign with the generation hash
6. BROADCAST           announce the payload to the node

Steps 1-5 have no effect outside the process, so a failure needs no rollback.
A successful BROADCAST only means the node accepted the payload into its
pool; it is not a confirmation that the transfer made it into a block.
There is no retry.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from symbolchain.facade.SymbolFacade import SymbolFacade

from ..config import DEADLINE_HOURS, EPOCH_ADJUSTMENT, FEE_MULTIPLIER, REWARD_MOSAIC_ID
from ..errors import ClientInputError, ConfigurationError
from .address import Address, network_name, parse_address
from .client import AnnounceResult, NetworkProperties, NodeClient
from .signing import SenderAccount
from .tx_builder import (
    SignedTransaction,
    TransactionBuilder,
    TransactionRequest,
    create_facade,
)

logger = logging.getLogger("kinnikureward.ledger.submitter")


class SubmissionStep(Enum):
    RESOLVE_NETWORK = "resolve_network"
    DERIVE_SENDER = "derive_sender"
    VALIDATE_RECIPIENT = "validate_recipient"
    BUILD = "build"
    SIGN = "sign"
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class SubmissionState:
    """Everything produced so far; each step fills in one more field."""
    request: TransactionRequest
    network: Optional[NetworkProperties] = None
    facade: Optional[SymbolFacade] = None
    account: Optional[SenderAccount] = None
    recipient: Optional[Address] = None
    transaction: Optional[Any] = None
    signed: Optional[SignedTransaction] = None
    announce: Optional[AnnounceResult] = None


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one submission attempt."""
    ok: bool
    step: SubmissionStep
    state: SubmissionState
    error: Optional[str] = None
    exception: Optional[BaseException] = None

    @property
    def signed(self) -> Optional[SignedTransaction]:
        return self.state.signed

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "step": self.step.value,
            "error": self.error,
            "transaction_hash": self.signed.hash if self.signed else None,
        }


StepFunction = Callable[[SubmissionState], Awaitable[SubmissionState]]


class TransactionSubmitter:
    """
    Sends reward transfers from the server account.

    Usage:
        submitter = TransactionSubmitter(node_client, private_key_hex)
        result = await submitter.submit(TransactionRequest(address, message, 75))
        if not result.ok:
            print(result.step, result.error)
    """

    def __init__(
        self,
        node_client: NodeClient,
        private_key: Optional[str],
        mosaic_id: int = REWARD_MOSAIC_ID,
        fee_multiplier: int = FEE_MULTIPLIER,
        deadline_hours: int = DEADLINE_HOURS,
        epoch_adjustment: int = EPOCH_ADJUSTMENT,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            node_client: Client for the ledger node
            private_key: Sender private key as hex (None if not configured)
            mosaic_id: Mosaic to transfer
            fee_multiplier: Fee per serialized byte
            deadline_hours: Validity window
            epoch_adjustment: Network epoch in Unix seconds
            clock: Source of the current Unix time
        """
        self.node_client = node_client
        self._private_key = private_key
        self.mosaic_id = mosaic_id
        self.fee_multiplier = fee_multiplier
        self.deadline_hours = deadline_hours
        self.epoch_adjustment = epoch_adjustment
        self.clock = clock

        self._steps: List[Tuple[SubmissionStep, StepFunction]] = [
            (SubmissionStep.RESOLVE_NETWORK, self._resolve_network),
            (SubmissionStep.DERIVE_SENDER, self._derive_sender),
            (SubmissionStep.VALIDATE_RECIPIENT, self._validate_recipient),
            (SubmissionStep.BUILD, self._build),
            (SubmissionStep.SIGN, self._sign),
            (SubmissionStep.BROADCAST, self._broadcast),
        ]

    @property
    def has_signing_key(self) -> bool:
        return bool(self._private_key)

    async def submit(self, request: TransactionRequest) -> SubmissionResult:
        """
        Run the pipeline for one request.

        Returns:
            SubmissionResult; ok is True only if the node accepted the payload
        """
        state = SubmissionState(request=request)

        for step, run in self._steps:
            try:
                state = await run(state)
            except Exception as e:
                logger.error(f"Transaction step {step.value} failed: {type(e).__name__}: {e}")
                return SubmissionResult(
                    ok=False,
                    step=step,
                    state=state,
                    error=str(e) or type(e).__name__,
                    exception=e,
                )

        return SubmissionResult(ok=True, step=SubmissionStep.BROADCAST, state=state)

    # ========== Steps ==========

    async def _resolve_network(self, state: SubmissionState) -> SubmissionState:
        network = await self.node_client.get_network_properties()
        facade = create_facade(network.network_type, network.generation_hash)
        logger.info(f"Network parameters obtained: {network_name(network.network_type)}")
        return replace(state, network=network, facade=facade)

    async def _derive_sender(self, state: SubmissionState) -> SubmissionState:
        if not self._private_key:
            raise ConfigurationError("Server configuration error: Private key not set.")
        try:
            account = SenderAccount.from_private_key(self._private_key, state.network.network_type)
        except ValueError as e:
            raise ConfigurationError(f"Invalid private key: {e}")
        return replace(state, account=account)

    async def _validate_recipient(self, state: SubmissionState) -> SubmissionState:
        recipient = parse_address(state.request.recipient_address, state.network.network_type)
        return replace(state, recipient=recipient)

    async def _build(self, state: SubmissionState) -> SubmissionState:
        builder = self._builder(state)
        transaction = builder.build_transfer(
            state.recipient,
            state.request.token_amount,
            state.request.message,
            now=self.clock(),
        )
        return replace(state, transaction=transaction)

    async def _sign(self, state: SubmissionState) -> SubmissionState:
        signed = self._builder(state).sign(state.transaction)
        return replace(state, signed=signed)

    async def _broadcast(self, state: SubmissionState) -> SubmissionState:
        announce = await self.node_client.announce(state.signed.to_json())
        logger.info(f"Transaction {state.signed.hash} announced: {announce.message or announce.status}")
        return replace(state, announce=announce)

    def _builder(self, state: SubmissionState) -> TransactionBuilder:
        return TransactionBuilder(
            account=state.account,
            facade=state.facade,
            mosaic_id=self.mosaic_id,
            fee_multiplier=self.fee_multiplier,
            deadline_hours=self.deadline_hours,
            epoch_adjustment=self.epoch_adjustment,
        )


def is_client_error(result: SubmissionResult) -> bool:
    """True when the failure is the caller's fault (e.g. wrong-network address)."""
    return isinstance(result.exception, ClientInputError)
