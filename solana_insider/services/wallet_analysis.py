"""Wallet analysis pipeline shared by the search, health and rug-check endpoints."""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from solana_insider.analysis.aggregator import WalletAggregator
from solana_insider.analysis.cohorts import classify
from solana_insider.analysis.ledger import first_observed_time, reconcile
from solana_insider.cache import cache_key
from solana_insider.constants import LAMPORTS_PER_SOL
from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.models.wallet import CohortResult, WalletState
from solana_insider.services.base_service import BaseService
from solana_insider.services.context import AnalysisContext
from solana_insider.services.fetcher import TokenActivity, TokenActivityFetcher

logger = get_logger(__name__)


def epoch_ms() -> float:
    return time.time() * 1000


@dataclass
class WalletAnalysis:
    """Outcome of one analysis pass over a mint's fetched activity."""

    mint: str
    total_supply: float
    wallets: Dict[str, WalletState] = field(default_factory=dict)
    cohorts: CohortResult = field(default_factory=CohortResult)

    @property
    def wallet_list(self) -> List[WalletState]:
        return list(self.wallets.values())


class WalletAnalysisService(BaseService):
    """Reconcile, aggregate, enrich and classify the wallets trading a mint."""

    def __init__(
        self,
        context: AnalysisContext,
        fetcher: Optional[TokenActivityFetcher] = None,
        clock: Callable[[], float] = epoch_ms
    ):
        """
        Initialize the service.

        Args:
            context: Shared clients, cache and configuration
            fetcher: Activity fetcher, built from the context if None
            clock: Returns the analysis time in epoch milliseconds
        """
        super().__init__(logger)
        self.context = context
        self.fetcher = fetcher or TokenActivityFetcher(context)
        self.settings = context.config.analysis
        self.clock = clock

    async def analyze(self, activity: TokenActivity, total_supply: Optional[float] = None) -> WalletAnalysis:
        """
        Run the full wallet pipeline over fetched activity.

        Args:
            activity: Signatures and transactions for the mint
            total_supply: Known supply; fetched from the chain when None

        Returns:
            WalletAnalysis with the finalised wallet map and cohorts
        """
        mint = activity.mint
        if total_supply is None:
            total_supply = await self.fetcher.get_token_supply(mint)

        now_ms = self.clock()
        events = reconcile(activity.records, mint, now_ms)

        aggregator = WalletAggregator(
            total_supply=total_supply,
            first_observed_ms=first_observed_time(activity.signatures),
            now_ms=now_ms,
            large_sell_ratio=self.settings.large_sell_supply_ratio,
            whale_ratio=self.settings.whale_supply_ratio
        )
        aggregator.fold(events)
        wallets = aggregator.finalize_all()

        await self.process_in_chunks(
            self.enrich_sol_balance, list(wallets.values()), self.settings.enrichment_chunk_size)

        cohorts = classify(wallets.values(), size=self.settings.cohort_size)
        log_with_context(
            logger, "info", "Wallet analysis complete",
            mint=mint, events=len(events), wallets=len(wallets)
        )
        return WalletAnalysis(mint=mint, total_supply=total_supply, wallets=wallets, cohorts=cohorts)

    async def enrich_sol_balance(self, wallet: WalletState) -> WalletState:
        """Attach the wallet's SOL balance, cached per wallet; 0 when unavailable."""
        key = cache_key("sol_balance", wallet.address)
        cached = await self.context.cache.get(key)
        if cached is not None:
            wallet.sol_balance = float(cached)
            return wallet

        try:
            lamports = await self.fetcher.get_sol_balance(wallet.address)
        except Exception as e:
            logger.warning(f"SOL balance unavailable for {wallet.address}: {str(e)}")
            wallet.sol_balance = 0.0
            return wallet

        wallet.sol_balance = lamports / LAMPORTS_PER_SOL
        await self.context.cache.set_with_ttl(key, wallet.sol_balance, self.context.config.cache.wallet_ttl)
        return wallet
