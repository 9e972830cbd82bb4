"""Data models for wallet-activity aggregation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from solana_insider.constants import BUY, LABEL_STANDARD, MAX_WALLET_SCORE


def to_iso(timestamp_ms: Optional[float]) -> Optional[str]:
    """Render epoch milliseconds as an ISO-8601 UTC string (``...Z``)."""
    if timestamp_ms is None:
        return None
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class SignatureInfo:
    """A transaction signature with its optional block time (seconds)."""

    signature: str
    block_time: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "SignatureInfo":
        """Build from a ``getSignaturesForAddress`` entry."""
        block_time = data.get("blockTime")
        return cls(
            signature=data.get("signature", ""),
            block_time=int(block_time) if block_time is not None else None
        )

    @property
    def timestamp_ms(self) -> Optional[float]:
        if self.block_time is None:
            return None
        return self.block_time * 1000.0


@dataclass(frozen=True)
class TransferEvent:
    """A signed token movement for one wallet, derived from a balance delta.

    ``time_ms`` is the block time in milliseconds, or the analysis clock when
    the block time is unknown; ``timestamp`` is None in that case.
    """

    wallet: str
    amount: float
    type: str
    time_ms: float
    timestamp: Optional[str]
    signature: str
    fetch_index: int
    mint: str = ""

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type == BUY else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "type": self.type,
            "txTime": self.time_ms,
        }


@dataclass
class ScoreDetails:
    """Independently bounded sub-scores of a wallet."""

    early_buy: float = 0.0
    profitability: float = 0.0
    network: float = 0.0
    time: float = 0.0
    amount: float = 0.0
    duration: float = 0.0
    pump_dump: float = 0.0
    large_sell_impact: float = 0.0

    def total(self) -> float:
        return (self.early_buy + self.profitability + self.network + self.time
                + self.amount + self.duration + self.pump_dump + self.large_sell_impact)

    def to_dict(self) -> Dict[str, float]:
        return {
            "earlyBuy": self.early_buy,
            "profitability": self.profitability,
            "network": self.network,
            "time": self.time,
            "amount": self.amount,
            "duration": self.duration,
            "pumpDump": self.pump_dump,
            "largeSellImpact": self.large_sell_impact,
        }


@dataclass
class WalletState:
    """Per-wallet aggregate for one token analysis pass."""

    address: str
    transactions: List[TransferEvent] = field(default_factory=list)
    total_amount: float = 0.0
    buy_count: int = 0
    sell_count: int = 0
    total_volume: float = 0.0
    first_tx_time: Optional[float] = None  # epoch ms
    last_tx_time: Optional[float] = None  # epoch ms
    holding_duration_hours: float = 0.0
    avg_trade_size: float = 0.0
    trade_frequency: float = 0.0
    score_details: ScoreDetails = field(default_factory=ScoreDetails)
    score: float = 0.0
    wallet_label: str = LABEL_STANDARD
    is_early_buyer: bool = False
    is_holder: bool = True
    is_active_trader: bool = False
    is_long_term_holder: bool = False
    is_whale: bool = False
    sell_timestamps: List[float] = field(default_factory=list)
    sol_balance: float = 0.0
    most_profitable_trade: Dict[str, Any] = field(
        default_factory=lambda: {"amount": 0.0, "timestamp": None})

    @property
    def transaction_count(self) -> int:
        return self.buy_count + self.sell_count

    def clamp_score(self) -> float:
        """Recompute ``score`` as the sub-score sum clamped to [0, 100]."""
        self.score = min(max(self.score_details.total(), 0.0), float(MAX_WALLET_SCORE))
        return self.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "totalAmount": self.total_amount,
            "score": self.score,
            "scoreDetails": self.score_details.to_dict(),
            "firstTxTime": to_iso(self.first_tx_time),
            "lastTxTime": to_iso(self.last_tx_time),
            "holdingDuration": self.holding_duration_hours,
            "isEarlyBuyer": self.is_early_buyer,
            "isHolder": self.is_holder,
            "isActiveTrader": self.is_active_trader,
            "buyCount": self.buy_count,
            "sellCount": self.sell_count,
            "totalVolume": self.total_volume,
            "avgTradeSize": self.avg_trade_size,
            "tradeFrequency": self.trade_frequency,
            "solBalance": self.sol_balance,
            "mostProfitableTrade": dict(self.most_profitable_trade),
            "walletLabel": self.wallet_label,
            "isLongTermHolder": self.is_long_term_holder,
            "isWhale": self.is_whale,
        }


@dataclass
class CohortResult:
    """Ranked cohort views over the analysed wallets (not a partition)."""

    early_buyers: List[WalletState] = field(default_factory=list)
    holders: List[WalletState] = field(default_factory=list)
    active_traders: List[WalletState] = field(default_factory=list)
    large_sellers: List[WalletState] = field(default_factory=list)

    def insider_candidates(self) -> List[WalletState]:
        """Union of early buyers and active traders, first occurrence kept."""
        seen = set()
        union = []
        for wallet in self.early_buyers + self.active_traders:
            if wallet.address not in seen:
                seen.add(wallet.address)
                union.append(wallet)
        return union

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "earlyBuyers": [w.to_dict() for w in self.early_buyers],
            "holders": [w.to_dict() for w in self.holders],
            "activeTraders": [w.to_dict() for w in self.active_traders],
            "largeSellers": [w.to_dict() for w in self.large_sellers],
        }
