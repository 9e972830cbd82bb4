"""Wallet label assignment and cohort ranking."""

from typing import Iterable, List

from solana_insider.constants import (
    LABEL_ACTIVE_TRADER,
    LABEL_LARGE_SELLER,
    LABEL_LONG_TERM_HOLDER,
    LABEL_STANDARD,
    LABEL_WHALE,
)
from solana_insider.models.wallet import CohortResult, WalletState


def assign_label(wallet: WalletState) -> str:
    """Assign the wallet's single display label.

    Long-Term Holder wins outright. A Large Seller label set during
    aggregation only ever displaced Standard, so it is kept against the
    remaining conditions. Then Active Trader, Whale, Standard.
    """
    if wallet.is_long_term_holder:
        label = LABEL_LONG_TERM_HOLDER
    elif wallet.wallet_label == LABEL_LARGE_SELLER:
        label = LABEL_LARGE_SELLER
    elif wallet.is_active_trader:
        label = LABEL_ACTIVE_TRADER
    elif wallet.is_whale:
        label = LABEL_WHALE
    else:
        label = LABEL_STANDARD
    wallet.wallet_label = label
    return label


def classify(wallets: Iterable[WalletState], size: int = 10) -> CohortResult:
    """Rank wallets into the four cohort views.

    A wallet may appear in several views. Ties keep the input order.

    Args:
        wallets: Finalised wallet states
        size: Maximum entries per view

    Returns:
        CohortResult with the top ``size`` wallets of each view
    """
    wallets = list(wallets)

    early_buyers = [w for w in wallets if w.score_details.early_buy > 0 or w.buy_count > 0]
    holders = [w for w in wallets if w.total_amount > 0]
    active_traders = [w for w in wallets if w.transaction_count >= 1]
    large_sellers = [w for w in wallets if w.score_details.large_sell_impact > 0 or w.sell_count > 0]

    return CohortResult(
        early_buyers=_top(early_buyers, lambda w: w.score, size),
        holders=_top(holders, lambda w: w.total_amount, size),
        active_traders=_top(active_traders, lambda w: w.trade_frequency, size),
        large_sellers=_top(large_sellers, lambda w: w.score_details.large_sell_impact, size),
    )


def _top(wallets: List[WalletState], key, size: int) -> List[WalletState]:
    return sorted(wallets, key=key, reverse=True)[:size]
