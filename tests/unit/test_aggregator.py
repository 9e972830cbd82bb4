"""Unit tests for the wallet aggregator."""

import pytest

from solana_insider.analysis.aggregator import WalletAggregator, early_buy_window_hours
from solana_insider.analysis.ledger import reconcile
from solana_insider.constants import (
    LABEL_ACTIVE_TRADER,
    LABEL_LARGE_SELLER,
    LABEL_LONG_TERM_HOLDER,
    LABEL_WHALE,
)
from solana_insider.models.wallet import ScoreDetails, SignatureInfo, TransferEvent, WalletState, to_iso
from tests.fixtures.common import HOUR_MS, MINT, NOW_MS, WALLET_A, WALLET_B, block_time, transfer

SUPPLY = 1_000_000.0


def event(amount, kind="buy", hours_ago=1.0, fetch_index=0, wallet=WALLET_A, timed=True):
    time_ms = NOW_MS - hours_ago * HOUR_MS
    return TransferEvent(
        wallet=wallet,
        amount=amount,
        type=kind,
        time_ms=time_ms,
        timestamp=to_iso(time_ms) if timed else None,
        signature=f"sig-{fetch_index}-{amount}",
        fetch_index=fetch_index,
        mint=MINT,
    )


def aggregator(first_hours_ago=2.0, supply=SUPPLY):
    return WalletAggregator(
        total_supply=supply,
        first_observed_ms=NOW_MS - first_hours_ago * HOUR_MS,
        now_ms=NOW_MS,
    )


@pytest.mark.parametrize("age, window", [(0, 1), (23.9, 1), (24, 12), (167, 12), (168, 48), (5000, 48)])
def test_early_buy_window_scales_with_token_age(age, window):
    assert early_buy_window_hours(age) == window


class TestWalletAggregator:
    """Test suite for WalletAggregator."""

    def test_conservation_of_amounts(self):
        agg = aggregator()
        events = [event(100), event(250, fetch_index=1), event(50, "sell", fetch_index=2),
                  event(75, "sell", fetch_index=3)]

        wallet = agg.fold(events)[WALLET_A]

        buys = sum(e.amount for e in wallet.transactions if e.type == "buy")
        sells = sum(e.amount for e in wallet.transactions if e.type == "sell")
        assert buys - sells == wallet.total_amount == 225
        assert wallet.total_volume == 475
        assert (wallet.buy_count, wallet.sell_count) == (2, 2)
        assert wallet.avg_trade_size == pytest.approx(475 / 4)

    def test_large_seller_scenario(self):
        """Buy 5% of supply, then sell 1.5% of it."""
        agg = aggregator(first_hours_ago=2.0)
        agg.fold([
            event(50_000, "buy", hours_ago=2.0, fetch_index=1),
            event(15_000, "sell", hours_ago=1.0, fetch_index=0),
        ])

        wallet = agg.finalize_all()[WALLET_A]

        assert wallet.total_amount == 35_000
        assert wallet.score_details.large_sell_impact > 0
        assert wallet.wallet_label == LABEL_LARGE_SELLER
        assert wallet.is_holder is True
        assert wallet.is_whale is False
        assert wallet.is_active_trader is True

    def test_large_sell_impact_is_capped(self):
        agg = aggregator()
        agg.fold([event(20_000, "sell"), event(90_000, "sell", fetch_index=1)])

        assert agg.wallets[WALLET_A].score_details.large_sell_impact == 30

    def test_small_sell_has_no_impact(self):
        agg = aggregator()
        agg.fold([event(9_000, "sell")])

        wallet = agg.wallets[WALLET_A]
        assert wallet.score_details.large_sell_impact == 0
        assert wallet.is_holder is False

    def test_early_buy_is_flat_bonus(self):
        agg = aggregator(first_hours_ago=2.0)
        agg.fold([event(10, hours_ago=2.0), event(10, hours_ago=1.5, fetch_index=1)])

        wallet = agg.wallets[WALLET_A]
        assert wallet.is_early_buyer is True
        assert wallet.score_details.early_buy == 25

    def test_buy_outside_window_is_not_early(self):
        # Token age 30h gives a 12h window
        agg = aggregator(first_hours_ago=30.0)
        agg.fold([event(10, hours_ago=10.0)])

        assert agg.wallets[WALLET_A].is_early_buyer is False
        assert agg.wallets[WALLET_A].score_details.early_buy == 0

    def test_holding_duration_is_monotonic(self):
        agg = aggregator(first_hours_ago=100)
        agg.fold([event(10, hours_ago=72), event(10, hours_ago=1, fetch_index=1)])

        wallet = agg.wallets[WALLET_A]
        assert wallet.holding_duration_hours == pytest.approx(72)
        assert wallet.trade_frequency == pytest.approx(2 / 3)
        assert wallet.score_details.duration == pytest.approx(3)

    def test_trade_frequency_floors_at_one_day(self):
        agg = aggregator()
        agg.fold([event(10, hours_ago=1), event(10, hours_ago=0.5, fetch_index=1)])

        assert agg.wallets[WALLET_A].trade_frequency == 2

    def test_time_score_depends_on_fetch_order(self):
        """The time score rewards early fetch positions, so reordering changes it."""
        front = aggregator()
        front.fold([event(10, fetch_index=0)])
        back = aggregator()
        back.fold([event(10, fetch_index=95)])

        assert front.wallets[WALLET_A].score_details.time == 100
        assert back.wallets[WALLET_A].score_details.time == 10

    def test_score_is_clamped(self):
        agg = aggregator(first_hours_ago=200)
        agg.fold([
            event(100_000, "buy", hours_ago=200, fetch_index=0),
            event(60_000, "sell", hours_ago=199, fetch_index=1),
            event(90_000, "buy", hours_ago=198, fetch_index=0),
        ])
        wallet = agg.finalize_all()[WALLET_A]

        assert wallet.score_details.total() > 100
        assert wallet.score == 100

    def test_clamp_floor(self):
        wallet = WalletState(address=WALLET_A, score_details=ScoreDetails(time=-50))

        assert wallet.clamp_score() == 0

    def test_long_term_holder(self):
        agg = aggregator(first_hours_ago=200)
        agg.fold([event(10, hours_ago=200)])

        wallet = agg.finalize_all()[WALLET_A]

        assert wallet.is_long_term_holder is True
        assert wallet.wallet_label == LABEL_LONG_TERM_HOLDER

    def test_whale(self):
        agg = aggregator()
        agg.fold([event(200_000)])

        wallet = agg.finalize_all()[WALLET_A]

        assert wallet.is_whale is True
        assert wallet.wallet_label == LABEL_WHALE

    def test_active_trader_outranks_whale(self):
        agg = aggregator()
        agg.fold([event(200_000), event(10, fetch_index=1)])

        assert agg.finalize_all()[WALLET_A].wallet_label == LABEL_ACTIVE_TRADER

    def test_enrichment_sub_scores(self):
        agg = aggregator()
        agg.fold([event(10), event(5, "sell", fetch_index=1), event(1, fetch_index=2)])

        details = agg.finalize_all()[WALLET_A].score_details

        assert details.profitability == 10
        assert details.pump_dump == 10
        assert details.network == 6

    def test_zero_supply_threshold_never_divides(self):
        agg = aggregator(supply=0.0)
        agg.fold([event(10, "sell")])

        assert agg.wallets[WALLET_A].score_details.large_sell_impact == 0

    def test_idempotent_over_same_input(self):
        signatures = [
            SignatureInfo("s1", block_time(1)),
            SignatureInfo("s2", block_time(5)),
            SignatureInfo("s3", block_time(9)),
        ]
        records = list(zip(signatures, [
            transfer(WALLET_A, 0, 500),
            transfer(WALLET_B, 0, 20_000),
            transfer(WALLET_A, 500, 100),
        ]))

        def run():
            agg = aggregator(first_hours_ago=9)
            agg.fold(reconcile(records, MINT, NOW_MS))
            return agg.finalize_all()

        assert run() == run()

    def test_first_and_last_times_ignore_events_without_block_time(self):
        agg = aggregator()
        agg.fold([
            event(10, hours_ago=1.5, timed=False),
            event(10, hours_ago=1.0, fetch_index=1),
            event(10, hours_ago=0.0, fetch_index=2, timed=False),
            event(10, wallet=WALLET_B, timed=False),
        ])

        timed = agg.finalize_all()[WALLET_A].to_dict()
        untimed = agg.wallets[WALLET_B].to_dict()

        assert timed["firstTxTime"] == timed["lastTxTime"] == to_iso(NOW_MS - HOUR_MS)
        assert agg.wallets[WALLET_A].holding_duration_hours == pytest.approx(1.5)
        assert untimed["firstTxTime"] is None
        assert untimed["lastTxTime"] is None
