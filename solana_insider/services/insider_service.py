"""Insider search, token health scoring and token comparison."""

from typing import Any, Callable, Dict, Optional

from solana_insider.analysis.scoring import assess_health, empty_health_assessment, liquidity_ratio
from solana_insider.cache import cache_key
from solana_insider.constants import DEFAULT_LIQUIDITY_RATIO
from solana_insider.logging_config import get_logger
from solana_insider.models.wallet import CohortResult
from solana_insider.services.activity_service import ActivityService
from solana_insider.services.base_service import BaseService
from solana_insider.services.context import AnalysisContext
from solana_insider.services.fetcher import TokenActivityFetcher
from solana_insider.services.wallet_analysis import WalletAnalysisService, epoch_ms
from solana_insider.utils.validation import validate_solana_address

logger = get_logger(__name__)

# Used when the timeline behind the hype score cannot be built
DEFAULT_HYPE_SCORE = 5


class InsiderService(BaseService):
    """Service composing the wallet pipeline into token-level answers."""

    def __init__(
        self,
        context: AnalysisContext,
        fetcher: Optional[TokenActivityFetcher] = None,
        wallet_analysis: Optional[WalletAnalysisService] = None,
        activity: Optional[ActivityService] = None,
        clock: Callable[[], float] = epoch_ms
    ):
        super().__init__(logger)
        self.context = context
        self.fetcher = fetcher or TokenActivityFetcher(context)
        self.wallet_analysis = wallet_analysis or WalletAnalysisService(context, self.fetcher, clock)
        self.activity = activity or ActivityService(context, self.fetcher, clock)
        self.clock = clock

    async def search(self, address: str) -> Dict[str, Any]:
        """
        Rank the wallets trading a mint into insider cohorts.

        Args:
            address: Token mint address

        Returns:
            ``{"results": {earlyBuyers, holders, activeTraders, largeSellers}}``
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("search", mint),
            self.context.config.cache.transaction_ttl,
            lambda: self._search(mint)
        )

    async def _search(self, mint: str) -> Dict[str, Any]:
        activity = await self.fetcher.fetch_activity(mint, pages=self.context.config.analysis.search_max_pages)
        if activity.is_empty:
            logger.info(f"No transactions found for {mint}")
            return {"results": CohortResult().to_dict()}
        analysis = await self.wallet_analysis.analyze(activity)
        return {"results": analysis.cohorts.to_dict()}

    async def health_score(self, address: str) -> Dict[str, Any]:
        """
        Token health assessment and insider intensity.

        Args:
            address: Token mint address

        Returns:
            ``{healthScore, insiderIntensity, metrics, reasons, accumulationDetails}``
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("health", mint),
            self.context.config.cache.analysis_ttl,
            lambda: self._health_score(mint)
        )

    async def _health_score(self, mint: str) -> Dict[str, Any]:
        async with self.log_timing(f"health_score({mint})"):
            activity = await self.fetcher.fetch_activity(mint)
            if activity.is_empty:
                return empty_health_assessment()

            analysis = await self.wallet_analysis.analyze(activity)
            liquidity = await self.execute_with_fallback(
                self._liquidity(mint),
                DEFAULT_LIQUIDITY_RATIO,
                f"Liquidity unavailable for {mint}"
            )
            return assess_health(
                analysis.wallet_list,
                analysis.cohorts.insider_candidates(),
                activity.signatures,
                liquidity,
                self.clock()
            )

    async def _liquidity(self, mint: str) -> float:
        return liquidity_ratio(await self.context.market_client.get_liquidity_usd(mint))

    async def compare_tokens(self, address: str) -> Dict[str, Any]:
        """
        Health assessment plus market context for side-by-side comparison.

        Args:
            address: Token mint address

        Returns:
            ``{address, healthScore, insiderIntensity, hypeScore, priceChange24h,
            tokenName, tokenSymbol, metrics, reasons, accumulationDetails}``
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("compare", mint),
            self.context.config.cache.price_ttl,
            lambda: self._compare_tokens(mint)
        )

    async def _compare_tokens(self, mint: str) -> Dict[str, Any]:
        assessment = await self.health_score(mint)
        market = self.context.market_client
        price_change = await market.get_price_change_24h(mint)
        hype_score = await self.execute_with_fallback(
            self._hype_score(mint), DEFAULT_HYPE_SCORE, f"Hype score unavailable for {mint}")
        profile = await market.get_token_profile(mint)

        return {
            "address": mint,
            "healthScore": max(assessment["healthScore"], 0),
            "insiderIntensity": min(assessment["insiderIntensity"], 100),
            "hypeScore": hype_score,
            "priceChange24h": price_change,
            "tokenName": profile["name"],
            "tokenSymbol": profile["symbol"],
            "metrics": assessment["metrics"],
            "reasons": assessment["reasons"],
            "accumulationDetails": assessment["accumulationDetails"],
        }

    async def _hype_score(self, mint: str) -> int:
        # Two events in the last day make one point
        recent = await self.activity.recent_event_count(mint)
        return min(int(round(recent / 2)), 100)

    async def token_price(self, address: Optional[str]) -> Dict[str, float]:
        """Latest USD price of a token (default price when unknown)."""
        mint = validate_solana_address(address)
        return {"price": await self.context.market_client.get_token_price(mint)}
