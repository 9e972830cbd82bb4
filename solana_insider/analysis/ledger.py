"""Ledger reconciliation: parsed transactions to signed transfer events.

Token movements are recovered from the pre/post token-balance snapshots in a
transaction's metadata. Entries are paired by index; the chain does not
guarantee that ``preTokenBalances[i]`` and ``postTokenBalances[i]`` describe
the same account, so mismatched alignment shows up as noise rather than being
disambiguated through instruction parsing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from solana_insider.constants import BUY, SELL
from solana_insider.models.wallet import SignatureInfo, TransferEvent, to_iso


@dataclass(frozen=True)
class BalanceDelta:
    """One index-aligned pre/post balance pair for the target mint."""

    owner: str
    pre_owner: Optional[str]
    pre_amount: float
    post_amount: float
    ui_token_amount: Dict[str, Any]

    @property
    def delta(self) -> float:
        return self.post_amount - self.pre_amount


def ui_amount(token_amount: Dict[str, Any]) -> float:
    """Read the UI amount of a ``uiTokenAmount`` object (0 when absent)."""
    value = token_amount.get("uiAmount")
    if value is None:
        value = token_amount.get("uiAmountString")
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def token_balances(transaction: Optional[Dict[str, Any]]) -> Optional[Tuple[list, list]]:
    """Return ``(pre, post)`` token balances if the record is usable.

    A record is usable only when it has metadata and both balance lists are
    non-empty; anything else is filtered out, not treated as an error.
    """
    if not transaction or not isinstance(transaction, dict):
        return None
    meta = transaction.get("meta")
    if not meta:
        return None
    pre = meta.get("preTokenBalances") or []
    post = meta.get("postTokenBalances") or []
    if not pre or not post:
        return None
    return pre, post


def transaction_mints(transaction: Optional[Dict[str, Any]]) -> List[str]:
    """Distinct mints of the post token balances, in first-seen order."""
    balances = token_balances(transaction)
    if balances is None:
        return []
    mints: List[str] = []
    for post in balances[1]:
        mint = (post or {}).get("mint")
        if mint and mint not in mints:
            mints.append(mint)
    return mints


def iter_balance_deltas(transaction: Optional[Dict[str, Any]], mint: str) -> Iterator[BalanceDelta]:
    """Yield the index-aligned balance pairs of ``transaction`` for ``mint``.

    Pairs are skipped when the post entry is for another mint, the pre entry
    at the same index is missing, or either side lacks ``uiTokenAmount``.
    """
    balances = token_balances(transaction)
    if balances is None:
        return
    pre_balances, post_balances = balances

    for index, post in enumerate(post_balances):
        if not post or post.get("mint") != mint:
            continue
        if index >= len(pre_balances) or not pre_balances[index]:
            continue
        pre = pre_balances[index]
        post_ui = post.get("uiTokenAmount")
        pre_ui = pre.get("uiTokenAmount")
        if not post_ui or not pre_ui:
            continue
        owner = post.get("owner")
        if not owner:
            continue
        yield BalanceDelta(
            owner=owner,
            pre_owner=pre.get("owner"),
            pre_amount=ui_amount(pre_ui),
            post_amount=ui_amount(post_ui),
            ui_token_amount=post_ui
        )


def first_observed_time(signatures: Sequence[SignatureInfo]) -> Optional[float]:
    """Earliest block time (epoch ms) among the fetched signatures.

    This is only as early as the fetched (possibly paginated) window reaches.
    """
    times = [s.timestamp_ms for s in signatures if s.timestamp_ms is not None]
    return min(times) if times else None


def reconcile(
    records: Sequence[Tuple[SignatureInfo, Optional[Dict[str, Any]]]],
    mint: str,
    now_ms: float
) -> List[TransferEvent]:
    """Extract transfer events for ``mint`` from fetched transactions.

    Args:
        records: ``(signature, transaction-or-None)`` pairs in fetch order
        mint: Target token mint
        now_ms: Analysis clock, used when a block time is missing

    Returns:
        Events in encounter order; ``fetch_index`` is the record's position
    """
    events: List[TransferEvent] = []
    for fetch_index, (signature, transaction) in enumerate(records):
        if transaction is None:
            continue
        time_ms = signature.timestamp_ms
        timestamp = to_iso(time_ms)
        for balance in iter_balance_deltas(transaction, mint):
            delta = balance.delta
            if delta == 0:
                continue
            events.append(TransferEvent(
                wallet=balance.owner,
                amount=abs(delta),
                type=BUY if delta > 0 else SELL,
                time_ms=time_ms if time_ms is not None else now_ms,
                timestamp=timestamp,
                signature=signature.signature,
                fetch_index=fetch_index,
                mint=mint
            ))
    return events
