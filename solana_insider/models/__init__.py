"""Data models for Solana Insider."""

from solana_insider.models.wallet import (
    CohortResult,
    ScoreDetails,
    SignatureInfo,
    TransferEvent,
    WalletState,
    to_iso,
)
from solana_insider.models.requests import AddressRequest, CopyTradeRequest, TokenTransfersRequest

__all__ = [
    "AddressRequest",
    "CopyTradeRequest",
    "CohortResult",
    "ScoreDetails",
    "SignatureInfo",
    "TokenTransfersRequest",
    "TransferEvent",
    "WalletState",
    "to_iso",
]
