"""Wallet aggregation: folding transfer events into per-wallet state."""

from typing import Dict, Iterable, Optional

from solana_insider.analysis.cohorts import assign_label
from solana_insider.constants import (
    AMOUNT_SCORE_CAP,
    AMOUNT_SCORE_DIVISOR,
    BUY,
    DURATION_SCORE_CAP,
    EARLY_BUY_SCORE,
    HOURS_PER_DAY,
    LABEL_LARGE_SELLER,
    LABEL_STANDARD,
    LARGE_SELL_IMPACT_CAP,
    LARGE_SELL_IMPACT_MULTIPLIER,
    LONG_TERM_HOLDER_HOURS,
    NETWORK_SCORE_CAP,
    NETWORK_SCORE_PER_TX,
    PROFITABILITY_SCORE,
    PUMP_DUMP_SCORE,
    SELL,
    TIME_SCORE_BASE,
    TIME_SCORE_FLOOR,
)
from solana_insider.models.wallet import TransferEvent, WalletState

MS_PER_HOUR = 3_600_000


def early_buy_window_hours(token_age_hours: float) -> float:
    """Width of the early-buy window for a token of the given age."""
    if token_age_hours < 24:
        return 1.0
    if token_age_hours < LONG_TERM_HOLDER_HOURS:
        return 12.0
    return 48.0


class WalletAggregator:
    """Fold transfer events for one mint into a map of WalletState.

    Every piece of state lives on the instance, so two aggregators fed the
    same events produce equal maps.
    """

    def __init__(
        self,
        total_supply: float,
        first_observed_ms: Optional[float],
        now_ms: float,
        large_sell_ratio: float = 0.01,
        whale_ratio: float = 0.10
    ):
        """
        Initialize the aggregator.

        Args:
            total_supply: Token supply used for percentage thresholds
            first_observed_ms: Earliest fetched block time, or None
            now_ms: Analysis clock in epoch milliseconds
            large_sell_ratio: Fraction of supply that makes a sell large
            whale_ratio: Fraction of supply that makes a holder a whale
        """
        self.total_supply = total_supply
        self.now_ms = now_ms
        self.first_observed_ms = first_observed_ms if first_observed_ms is not None else now_ms
        self.large_sell_threshold = total_supply * large_sell_ratio
        self.whale_threshold = total_supply * whale_ratio
        self.token_age_hours = max(self.now_ms - self.first_observed_ms, 0) / MS_PER_HOUR
        self.early_window_hours = early_buy_window_hours(self.token_age_hours)
        self.wallets: Dict[str, WalletState] = {}

    def add(self, event: TransferEvent) -> WalletState:
        """Fold a single event into its wallet's state."""
        wallet = self.wallets.get(event.wallet)
        if wallet is None:
            wallet = WalletState(address=event.wallet)
            self.wallets[event.wallet] = wallet

        wallet.transactions.append(event)
        wallet.total_amount += event.signed_amount
        wallet.total_volume += event.amount
        if event.type == BUY:
            wallet.buy_count += 1
        else:
            wallet.sell_count += 1
            wallet.sell_timestamps.append(event.time_ms)

        # Events without a block time leave first/last unknown
        if event.timestamp is not None:
            if wallet.first_tx_time is None or event.time_ms < wallet.first_tx_time:
                wallet.first_tx_time = event.time_ms
            if wallet.last_tx_time is None or event.time_ms > wallet.last_tx_time:
                wallet.last_tx_time = event.time_ms

        held_hours = max(self.now_ms - event.time_ms, 0) / MS_PER_HOUR
        wallet.holding_duration_hours = max(wallet.holding_duration_hours, held_hours)

        count = wallet.transaction_count
        wallet.avg_trade_size = wallet.total_volume / count
        wallet.trade_frequency = count / max(wallet.holding_duration_hours / HOURS_PER_DAY, 1)

        details = wallet.score_details
        if event.type == SELL:
            wallet.is_holder = False
            if event.amount > wallet.most_profitable_trade["amount"]:
                wallet.most_profitable_trade = {"amount": event.amount, "timestamp": event.timestamp}
            if self.large_sell_threshold > 0 and event.amount > self.large_sell_threshold:
                impact = min(
                    event.amount / self.large_sell_threshold * LARGE_SELL_IMPACT_MULTIPLIER,
                    LARGE_SELL_IMPACT_CAP
                )
                details.large_sell_impact = min(details.large_sell_impact + impact, LARGE_SELL_IMPACT_CAP)
                if wallet.wallet_label == LABEL_STANDARD:
                    wallet.wallet_label = LABEL_LARGE_SELLER

        if event.type == BUY and event.time_ms - self.first_observed_ms < self.early_window_hours * MS_PER_HOUR:
            wallet.is_early_buyer = True
            details.early_buy = EARLY_BUY_SCORE

        if count >= 2:
            wallet.is_active_trader = True

        # Order-sensitive: depends on where the signature sat in the fetch.
        details.time = max(TIME_SCORE_BASE - event.fetch_index, TIME_SCORE_FLOOR)
        details.amount = min(event.amount / AMOUNT_SCORE_DIVISOR, AMOUNT_SCORE_CAP)
        details.duration = min(wallet.holding_duration_hours / HOURS_PER_DAY, DURATION_SCORE_CAP)

        wallet.clamp_score()
        return wallet

    def fold(self, events: Iterable[TransferEvent]) -> Dict[str, WalletState]:
        """Fold all events and return the wallet map."""
        for event in events:
            self.add(event)
        return self.wallets

    def finalize(self, wallet: WalletState) -> WalletState:
        """Apply the post-fold sub-scores, flags and label to one wallet.

        The SOL balance side enrichment is I/O and is done by the caller.
        """
        details = wallet.score_details
        details.profitability = PROFITABILITY_SCORE if wallet.sell_count > 0 else 0
        details.network = min(wallet.transaction_count * NETWORK_SCORE_PER_TX, NETWORK_SCORE_CAP)
        details.pump_dump = PUMP_DUMP_SCORE if wallet.sell_timestamps else 0

        wallet.is_holder = wallet.total_amount > 0
        wallet.is_long_term_holder = (
            wallet.holding_duration_hours > LONG_TERM_HOLDER_HOURS and not wallet.is_active_trader
        )
        wallet.is_whale = wallet.total_amount > self.whale_threshold

        assign_label(wallet)
        wallet.clamp_score()
        return wallet

    def finalize_all(self) -> Dict[str, WalletState]:
        for wallet in self.wallets.values():
            self.finalize(wallet)
        return self.wallets
