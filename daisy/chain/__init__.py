"""On-chain helpers."""

from .poller import (
    ChainReader,
    ConfirmationEvent,
    ConfirmationPoller,
    PollErrorEvent,
    PollerState,
    Web3ChainReader,
)
from .token import ERC20_ABI, TokenPayments, balance_of, is_ether, load_token

__all__ = [
    "ChainReader",
    "ConfirmationEvent",
    "ConfirmationPoller",
    "PollErrorEvent",
    "PollerState",
    "Web3ChainReader",
    "ERC20_ABI",
    "TokenPayments",
    "balance_of",
    "is_ether",
    "load_token",
]
