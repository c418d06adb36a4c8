"""
Transaction confirmation poller.

Polls a node until a broadcast transaction is mined, then reports its
confirmation depth on every following cycle until the caller stops it:

    NOT_STARTED -> POLLING -> STOPPED

Each cycle fetches the transaction, and once it is in a block, the chain
head. Cycles never overlap: the next one is scheduled `interval` seconds
after the previous one settled. Provider errors are reported as events and
do not end the loop.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol, Union
import logging

from eth_utils import to_hex
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound

from ..config import DaisySettings, get_settings
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0


class PollerState(str, Enum):
    """Poller lifecycle."""
    NOT_STARTED = "NOT_STARTED"
    POLLING = "POLLING"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class ConfirmationEvent:
    """Transaction is mined `confirmations` blocks below the head."""
    confirmations: int
    receipt: Any


@dataclass(frozen=True)
class PollErrorEvent:
    """A poll cycle failed; polling continues."""
    error: Exception


PollEvent = Union[ConfirmationEvent, PollErrorEvent]


class ChainReader(Protocol):
    """Minimal node interface used by the poller."""

    async def get_transaction(self, tx_hash: str) -> Optional[Any]:
        """Transaction by hash, or None if the node does not know it."""
        ...

    async def get_block_number(self) -> int:
        ...


class Web3ChainReader:
    """ChainReader backed by an AsyncWeb3 instance."""

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    @classmethod
    def from_url(cls, rpc_url: str) -> "Web3ChainReader":
        return cls(AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url)))

    async def get_transaction(self, tx_hash: str) -> Optional[Any]:
        try:
            return await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None

    async def get_block_number(self) -> int:
        return await self.w3.eth.block_number


def _transaction_hash(transaction: Union[str, bytes, Mapping]) -> str:
    if isinstance(transaction, Mapping):
        transaction = transaction.get("transactionHash") or transaction.get("hash")
    if isinstance(transaction, (bytes, bytearray)):
        transaction = to_hex(transaction)
    if not transaction or not isinstance(transaction, str):
        raise ValidationError("Missing transaction hash")
    return transaction


def _block_number(tx: Any) -> Optional[int]:
    if isinstance(tx, Mapping):
        return tx.get("blockNumber")
    return getattr(tx, "blockNumber", None)


class ConfirmationPoller:
    """
    Cancellable stream of confirmation updates for one transaction.

    Usage:
        >>> poller = ConfirmationPoller(Web3ChainReader(w3), tx_hash)
        >>> async for event in poller:
        ...     if isinstance(event, ConfirmationEvent) and event.confirmations >= 12:
        ...         poller.stop()

    A poller runs once; create a new one to poll again.
    """

    def __init__(
        self,
        reader: ChainReader,
        transaction: Union[str, bytes, Mapping],
        interval: float = DEFAULT_INTERVAL
    ):
        """
        Initialize poller.

        Args:
            reader: Node access
            transaction: Transaction hash or a receipt-like mapping
            interval: Seconds between poll cycles

        Raises:
            ValidationError: If no transaction hash can be extracted
        """
        if interval < 0:
            raise ValidationError(f"Interval must be >= 0, got {interval}")

        self.reader = reader
        self.tx_hash = _transaction_hash(transaction)
        self.interval = interval
        self.state = PollerState.NOT_STARTED

    @classmethod
    def from_settings(
        cls,
        reader: ChainReader,
        transaction: Union[str, bytes, Mapping],
        settings: Optional[DaisySettings] = None
    ) -> "ConfirmationPoller":
        """Poller using the configured `confirmation_interval`."""
        settings = settings or get_settings()
        return cls(reader, transaction, interval=settings.confirmation_interval)

    @property
    def is_polling(self) -> bool:
        return self.state == PollerState.POLLING

    def stop(self) -> None:
        """Stop polling. Results of calls still in flight are discarded."""
        if self.state != PollerState.STOPPED:
            logger.debug(f"Stopping confirmation poller for {self.tx_hash}")
        self.state = PollerState.STOPPED

    async def _poll_once(self) -> Optional[ConfirmationEvent]:
        tx = await self.reader.get_transaction(self.tx_hash)
        block_number = _block_number(tx) if tx is not None else None
        if block_number is None:
            return None

        head = await self.reader.get_block_number()
        return ConfirmationEvent(confirmations=head - block_number, receipt=tx)

    async def events(self) -> AsyncIterator[PollEvent]:
        """
        Poll until stopped.

        Yields:
            ConfirmationEvent once mined (every cycle), PollErrorEvent on
            provider failures. Unmined cycles yield nothing.

        Raises:
            RuntimeError: If this poller was already started
        """
        if self.state != PollerState.NOT_STARTED:
            raise RuntimeError(f"Confirmation poller already {self.state.value.lower()}")

        self.state = PollerState.POLLING
        logger.debug(f"Polling confirmations for {self.tx_hash} every {self.interval}s")

        try:
            while self.is_polling:
                try:
                    event: Optional[PollEvent] = await self._poll_once()
                except Exception as e:
                    logger.warning(f"Confirmation poll failed for {self.tx_hash}: {e}")
                    event = PollErrorEvent(error=e)

                if not self.is_polling:
                    break
                if event is not None:
                    yield event
                    if not self.is_polling:
                        break

                await asyncio.sleep(self.interval)
        finally:
            self.state = PollerState.STOPPED

    def __aiter__(self) -> AsyncIterator[PollEvent]:
        return self.events()

    async def confirmations(self) -> AsyncIterator[int]:
        """Confirmation counts only; errors are skipped."""
        async for event in self.events():
            if isinstance(event, ConfirmationEvent):
                yield event.confirmations

    def start(
        self,
        on_confirmation: Callable[[int, Any], Union[None, Awaitable[None]]],
        on_error: Optional[Callable[[Exception], Union[None, Awaitable[None]]]] = None
    ) -> "asyncio.Task[None]":
        """
        Run the poller in a background task with callbacks.

        Callbacks may be plain functions or coroutines. Must be called from
        a running event loop.

        Args:
            on_confirmation: Called with `(confirmations, receipt)`
            on_error: Called with the provider exception

        Returns:
            Task running the loop; finishes after `stop()`
        """
        async def run() -> None:
            async for event in self.events():
                if isinstance(event, ConfirmationEvent):
                    result = on_confirmation(event.confirmations, event.receipt)
                elif on_error is not None:
                    result = on_error(event.error)
                else:
                    continue
                if asyncio.iscoroutine(result):
                    await result

        return asyncio.get_running_loop().create_task(run())

    def __repr__(self) -> str:
        return f"ConfirmationPoller(tx_hash={self.tx_hash}, state={self.state.value})"
