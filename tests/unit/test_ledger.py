"""Unit tests for ledger reconciliation."""

from solana_insider.analysis.ledger import first_observed_time, iter_balance_deltas, reconcile, transaction_mints
from solana_insider.models.wallet import SignatureInfo
from tests.fixtures.common import (
    MINT,
    NOW_MS,
    OTHER_MINT,
    WALLET_A,
    WALLET_B,
    block_time,
    parsed_transaction,
    token_balance,
    transfer,
)


def sig(name, hours_ago=1.0):
    return SignatureInfo(signature=name, block_time=block_time(hours_ago) if hours_ago is not None else None)


class TestReconcile:
    """Test suite for reconcile."""

    def test_buy_and_sell_events(self):
        records = [
            (sig("s1"), transfer(WALLET_A, 0, 100)),
            (sig("s2"), transfer(WALLET_A, 100, 40)),
        ]

        events = reconcile(records, MINT, NOW_MS)

        assert [(e.type, e.amount) for e in events] == [("buy", 100), ("sell", 60)]
        assert [e.fetch_index for e in events] == [0, 1]
        assert events[0].wallet == WALLET_A
        assert events[0].signature == "s1"
        assert events[0].timestamp.endswith("Z")

    def test_skips_other_mints_and_unchanged_balances(self):
        tx = parsed_transaction(
            [token_balance(WALLET_A, 5, OTHER_MINT), token_balance(WALLET_B, 10)],
            [token_balance(WALLET_A, 50, OTHER_MINT), token_balance(WALLET_B, 10)],
        )

        assert reconcile([(sig("s1"), tx)], MINT, NOW_MS) == []

    def test_malformed_records_are_dropped(self):
        records = [
            (sig("none"), None),
            (sig("no-meta"), {"transaction": {}}),
            (sig("empty-pre"), parsed_transaction([], [token_balance(WALLET_A, 10)])),
            (sig("empty-post"), parsed_transaction([token_balance(WALLET_A, 10)], [])),
            (sig("ok"), transfer(WALLET_B, 0, 7)),
        ]

        events = reconcile(records, MINT, NOW_MS)

        assert len(events) == 1
        assert events[0].signature == "ok"
        assert events[0].fetch_index == 4

    def test_missing_pre_entry_or_ui_amount_is_skipped(self):
        tx = parsed_transaction(
            [token_balance(WALLET_A, 0)],
            [token_balance(WALLET_A, 10), token_balance(WALLET_B, 20)],
        )
        no_ui = parsed_transaction(
            [{"mint": MINT, "owner": WALLET_A}],
            [token_balance(WALLET_A, 10)],
        )

        events = reconcile([(sig("s1"), tx), (sig("s2"), no_ui)], MINT, NOW_MS)

        assert [(e.wallet, e.amount) for e in events] == [(WALLET_A, 10)]

    def test_null_ui_amount_counts_as_zero(self):
        tx = parsed_transaction([token_balance(WALLET_A, None)], [token_balance(WALLET_A, 3)])
        tx["meta"]["preTokenBalances"][0]["uiTokenAmount"].pop("uiAmountString")

        events = reconcile([(sig("s1"), tx)], MINT, NOW_MS)

        assert events[0].amount == 3

    def test_missing_block_time_uses_analysis_clock(self):
        events = reconcile([(sig("s1", hours_ago=None), transfer(WALLET_A, 0, 5))], MINT, NOW_MS)

        assert events[0].time_ms == NOW_MS
        assert events[0].timestamp is None

    def test_wallet_with_two_entries_in_one_transaction(self):
        tx = parsed_transaction(
            [token_balance(WALLET_A, 0, account_index=1), token_balance(WALLET_A, 10, account_index=2)],
            [token_balance(WALLET_A, 5, account_index=1), token_balance(WALLET_A, 30, account_index=2)],
        )

        events = reconcile([(sig("s1"), tx)], MINT, NOW_MS)

        assert [(e.wallet, e.amount) for e in events] == [(WALLET_A, 5), (WALLET_A, 20)]

    def test_index_alignment_is_assumed_not_verified(self):
        """Entries are paired by index even when the owners differ.

        The event is attributed to the post-balance owner with a delta taken
        against another account's pre balance. This is the known limit of
        index pairing.
        """
        tx = parsed_transaction(
            [token_balance(WALLET_A, 100, account_index=1)],
            [token_balance(WALLET_B, 30, account_index=2)],
        )

        events = reconcile([(sig("s1"), tx)], MINT, NOW_MS)

        assert len(events) == 1
        assert events[0].wallet == WALLET_B
        assert events[0].type == "sell"
        assert events[0].amount == 70


class TestBalanceDeltas:
    """Test suite for the shared balance-delta iterator."""

    def test_exposes_pre_owner_and_amounts(self):
        tx = parsed_transaction([token_balance(WALLET_A, 10)], [token_balance(WALLET_B, 25)])

        deltas = list(iter_balance_deltas(tx, MINT))

        assert len(deltas) == 1
        assert deltas[0].pre_owner == WALLET_A
        assert deltas[0].owner == WALLET_B
        assert deltas[0].delta == 15

    def test_first_observed_time(self):
        signatures = [sig("a", 5), sig("b", None), sig("c", 30)]

        assert first_observed_time(signatures) == block_time(30) * 1000.0
        assert first_observed_time([sig("x", None)]) is None


def test_transaction_mints():
    tx = parsed_transaction(
        [token_balance(WALLET_A, 5), token_balance(WALLET_B, 1, OTHER_MINT, 1), token_balance(WALLET_B, 2, account_index=2)],
        [token_balance(WALLET_A, 0), token_balance(WALLET_B, 3, OTHER_MINT, 1), token_balance(WALLET_B, 7, account_index=2)],
    )

    assert transaction_mints(tx) == [MINT, OTHER_MINT]
    assert transaction_mints({"meta": None}) == []
