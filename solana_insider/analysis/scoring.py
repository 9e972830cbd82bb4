"""Token-level scoring: health assessment, insider intensity and rug risk."""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from solana_insider.constants import (
    HEALTH_WEIGHTS,
    HOLDER_COUNT_SATURATION,
    LIQUIDITY_SATURATION_USD,
    RECENT_ACTIVITY_SATURATION,
)
from solana_insider.models.wallet import SignatureInfo, WalletState

MS_PER_DAY = 24 * 3_600_000
SEVEN_DAYS_MS = 7 * MS_PER_DAY

# Accumulation whale cut-off, as a fraction of total observed holdings
ACCUMULATION_WHALE_RATIO = 0.05
# Health whale cut-off, as a fraction of total observed holdings
HEALTH_WHALE_RATIO = 0.10

NO_TRANSACTIONS_REASON = "No transactions found for this address"


def gini_coefficient(balances: Iterable[float]) -> float:
    """Gini coefficient of a balance distribution, in [0, 1].

    Uses the rank-weighted form over ascending balances
    ``1 + 1/n - 2 * sum((n - i) * b_i) / (n * sum(b))``, which is exactly 0
    for equal balances and tends to 1 as one holder takes everything.
    Returns 0 when the total balance is 0.
    """
    values = sorted(balances)
    n = len(values)
    total = sum(values)
    if n == 0 or total == 0:
        return 0.0
    weighted = sum(balance * (n - i) for i, balance in enumerate(values))
    gini = 1 + 1 / n - 2 * weighted / (n * total)
    return min(max(gini, 0.0), 1.0)


def accumulation_details(wallets: Iterable[WalletState], now_ms: float) -> Dict[str, float]:
    """Holder-behaviour ratios (percentages) over wallets with a positive balance."""
    holders = [w for w in wallets if w.total_amount > 0]
    denominator = len(holders) or 1
    total_held = sum(w.total_amount for w in holders)
    week_ago = now_ms - SEVEN_DAYS_MS

    long_term = sum(
        1 for w in holders
        if w.first_tx_time is not None and w.first_tx_time < week_ago and w.sell_count == 0
    )
    traders = sum(1 for w in holders if any(t > week_ago for t in w.sell_timestamps))
    whales = sum(1 for w in holders if w.total_amount > total_held * ACCUMULATION_WHALE_RATIO)

    long_term_ratio = long_term / denominator * 100
    return {
        "longTermHolderRatio": long_term_ratio,
        "traderRatio": traders / denominator * 100,
        "whaleRatio": whales / denominator * 100,
        "accumulationScore": min(long_term_ratio, 100.0),
    }


def recent_signature_count(signatures: Sequence[SignatureInfo], now_ms: float) -> int:
    """Number of signatures with a block time inside the last 24 hours."""
    day_ago = now_ms - MS_PER_DAY
    return sum(1 for s in signatures if s.timestamp_ms is not None and s.timestamp_ms > day_ago)


def liquidity_ratio(liquidity_usd: float) -> float:
    """Scale USD liquidity to [0, 1], saturating at one million."""
    return min(max(liquidity_usd, 0.0) / LIQUIDITY_SATURATION_USD, 1.0)


def compute_metrics(
    wallets: Sequence[WalletState],
    signatures: Sequence[SignatureInfo],
    liquidity: float,
    now_ms: float
) -> Tuple[Dict[str, float], float, Dict[str, float]]:
    """
    Compute the six health metrics for a wallet population.

    Args:
        wallets: Aggregated wallet states
        signatures: Fetched signatures (for recent activity)
        liquidity: Liquidity ratio in [0, 1]
        now_ms: Analysis clock

    Returns:
        Tuple of (metrics, gini coefficient, accumulation details)
    """
    holders = [w for w in wallets if w.total_amount > 0]
    holder_count = len(holders)
    total_held = sum(w.total_amount for w in holders)
    whales = sum(1 for w in holders if w.total_amount > total_held * HEALTH_WHALE_RATIO)

    gini = gini_coefficient(w.total_amount for w in holders)
    accumulation = accumulation_details(wallets, now_ms)
    activity = min(recent_signature_count(signatures, now_ms) / RECENT_ACTIVITY_SATURATION, 1.0)

    metrics = {
        "holderScore": min(holder_count / HOLDER_COUNT_SATURATION, 1.0) * 100,
        "accumulationScore": accumulation["accumulationScore"],
        "whaleScore": min(whales / holder_count, 1.0) * 100 if holder_count else 0.0,
        "activityScore": activity * 100,
        "liquidityScore": min(max(liquidity, 0.0), 1.0) * 100,
        "giniScore": (1 - gini) * 100,
    }
    return metrics, gini, accumulation


def health_score(metrics: Dict[str, float]) -> int:
    """Weighted blend of the metrics, rounded, never negative."""
    score = (
        HEALTH_WEIGHTS["holderScore"] * metrics["holderScore"]
        + HEALTH_WEIGHTS["accumulationScore"] * metrics["accumulationScore"]
        + HEALTH_WEIGHTS["whaleScore"] * (100 - metrics["whaleScore"])
        + HEALTH_WEIGHTS["activityScore"] * metrics["activityScore"]
        + HEALTH_WEIGHTS["liquidityScore"] * metrics["liquidityScore"]
        + HEALTH_WEIGHTS["giniScore"] * metrics["giniScore"]
    )
    return max(int(round(score)), 0)


def health_reasons(metrics: Dict[str, float], gini: float, accumulation: Dict[str, float]) -> List[str]:
    reasons = []
    if metrics["holderScore"] < 30:
        reasons.append("Low number of holders")
    if metrics["whaleScore"] > 70:
        reasons.append("High whale concentration")
    if metrics["activityScore"] < 20:
        reasons.append("Low recent activity")
    if metrics["liquidityScore"] < 30:
        reasons.append("Low liquidity")
    if gini > 0.7:
        reasons.append("Uneven token distribution")
    if accumulation["traderRatio"] > 50:
        reasons.append("High trader activity")
    if accumulation["whaleRatio"] > 30:
        reasons.append("Significant whale presence")
    return reasons


def insider_intensity(candidates: Iterable[WalletState], total_volume: float) -> int:
    """Volume-weighted share of activity driven by insider candidates, 0-100.

    Args:
        candidates: De-duplicated union of early buyers and active traders
        total_volume: Total traded volume over all analysed wallets
    """
    denominator = total_volume or 1
    intensity = 0.0
    for wallet in candidates:
        time_factor = 1.5 if wallet.is_early_buyer else 1.0
        behavior_factor = 1.2 if wallet.score_details.pump_dump > 10 else 1.0
        network_factor = 1.3 if wallet.score_details.network > 10 else 1.0
        intensity += wallet.total_volume / denominator * 100 * time_factor * behavior_factor * network_factor
    return min(int(round(intensity)), 100)


def empty_health_assessment(reason: str = NO_TRANSACTIONS_REASON) -> Dict[str, Any]:
    """Health assessment for a mint with no observable activity."""
    return {
        "healthScore": 0,
        "insiderIntensity": 0,
        "metrics": {
            "holderScore": 0,
            "accumulationScore": 0,
            "whaleScore": 0,
            "activityScore": 0,
            "liquidityScore": 0,
            "giniScore": 0,
        },
        "reasons": [reason],
        "accumulationDetails": {
            "longTermHolderRatio": 0,
            "traderRatio": 0,
            "whaleRatio": 0,
            "accumulationScore": 0,
        },
    }


def assess_health(
    wallets: Sequence[WalletState],
    candidates: Sequence[WalletState],
    signatures: Sequence[SignatureInfo],
    liquidity: float,
    now_ms: float
) -> Dict[str, Any]:
    """Build the full health assessment for one mint."""
    metrics, gini, accumulation = compute_metrics(wallets, signatures, liquidity, now_ms)
    total_volume = sum(w.total_volume for w in wallets)
    return {
        "healthScore": health_score(metrics),
        "insiderIntensity": insider_intensity(candidates, total_volume),
        "metrics": metrics,
        "reasons": health_reasons(metrics, gini, accumulation),
        "accumulationDetails": accumulation,
    }


def assess_rug_risk(
    total_supply: float,
    insider_count: int,
    insider_holdings: float,
    mint_authority: bool,
    freeze_authority: bool,
    burned_percentage: float,
    liquidity_locked: float,
    liquidity_lock_duration: Optional[str] = "None",
    upgradeable: bool = False
) -> Dict[str, Any]:
    """
    Combine rug-pull risk signals into a score and reasons.

    Insider holdings are clamped to ``[0, total_supply]``; a clamp from above
    is reported as a reason so the holdings ratio never exceeds 100%.

    Returns:
        Rug check result keyed as the API returns it
    """
    reasons: List[str] = []
    clamped = False
    holdings = max(insider_holdings, 0.0)
    if total_supply > 0 and holdings > total_supply:
        holdings = total_supply
        clamped = True

    contract_renounced = not mint_authority and not freeze_authority
    high_insiders = insider_count > 10
    large_holdings = total_supply > 0 and holdings / total_supply > 0.5
    low_burn = burned_percentage < 10
    low_lock = liquidity_locked < 50

    if high_insiders:
        reasons.append("High insider activity")
    if large_holdings:
        reasons.append("Large insider holdings")
    if mint_authority:
        reasons.append("Mint authority active")
    if freeze_authority:
        reasons.append("Freeze authority active")
    if low_burn:
        reasons.append("Low burn percentage")
    if low_lock:
        reasons.append("Low liquidity lock")
    if not contract_renounced:
        reasons.append("Contract not renounced")
    if upgradeable:
        reasons.append("Contract is upgradeable")
    if clamped:
        reasons.append("Insider holdings exceed total supply; clamped to total supply")

    risk = (
        (20 if high_insiders else 0)
        + (20 if large_holdings else 0)
        + (15 if mint_authority else 0)
        + (15 if freeze_authority else 0)
        + (10 if low_burn else 0)
        + (10 if low_lock else 0)
        + (10 if not contract_renounced else 0)
        + (10 if upgradeable else 0)
    )

    return {
        "totalSupply": total_supply,
        "insiderCount": insider_count,
        "insiderHoldings": holdings,
        "mintAuthority": mint_authority,
        "freezeAuthority": freeze_authority,
        "burnedPercentage": burned_percentage,
        "liquidityLocked": liquidity_locked,
        "liquidityLockDuration": liquidity_lock_duration or "None",
        "contractRenounced": contract_renounced,
        "upgradeable": upgradeable,
        "riskScore": min(max(risk, 0), 100),
        "reasons": reasons,
    }
