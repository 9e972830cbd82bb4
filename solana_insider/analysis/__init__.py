"""Wallet-activity analysis: reconciliation, aggregation, cohorts and scoring."""

from solana_insider.analysis.aggregator import WalletAggregator, early_buy_window_hours
from solana_insider.analysis.cohorts import assign_label, classify
from solana_insider.analysis.ledger import first_observed_time, iter_balance_deltas, reconcile
from solana_insider.analysis.scoring import (
    assess_health,
    assess_rug_risk,
    empty_health_assessment,
    gini_coefficient,
)

__all__ = [
    "WalletAggregator",
    "assess_health",
    "assess_rug_risk",
    "assign_label",
    "classify",
    "early_buy_window_hours",
    "empty_health_assessment",
    "first_observed_time",
    "gini_coefficient",
    "iter_balance_deltas",
    "reconcile",
]
