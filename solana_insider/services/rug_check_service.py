"""Rug-pull risk assessment for a token mint."""

from typing import Any, Callable, Dict, Optional, Tuple

from solana_insider.analysis.scoring import assess_rug_risk, liquidity_ratio
from solana_insider.cache import cache_key
from solana_insider.constants import (
    DEFAULT_TOKEN_SUPPLY,
    SYSTEM_PROGRAM_ID,
    TOKEN_ACCOUNT_MINT_OFFSET,
    TOKEN_ACCOUNT_OWNER_OFFSET,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_PROGRAM_ID,
)
from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.services.base_service import BaseService
from solana_insider.services.context import AnalysisContext
from solana_insider.services.fetcher import TokenActivity, TokenActivityFetcher
from solana_insider.services.wallet_analysis import WalletAnalysisService, epoch_ms
from solana_insider.utils.errors import NotFoundError, RateLimitedError
from solana_insider.utils.validation import validate_solana_address

logger = get_logger(__name__)

# Liquidity lock percentage assumed when the feed cannot be reached
DEFAULT_LIQUIDITY_LOCKED = 50.0


def parse_mint_account(account: Dict[str, Any]) -> Tuple[bool, bool, float]:
    """Read ``(mint authority set, freeze authority set, supply)`` from a mint account.

    Anything unreadable is treated as worst case: both authorities active and
    a supply of 1.
    """
    try:
        info = account["data"]["parsed"]["info"]
        supply = int(info["supply"]) / (10 ** int(info["decimals"]))
        return bool(info.get("mintAuthority")), bool(info.get("freezeAuthority")), supply or DEFAULT_TOKEN_SUPPLY
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Could not parse mint account, assuming active authorities: {str(e)}")
        return True, True, DEFAULT_TOKEN_SUPPLY


class RugCheckService(BaseService):
    """Service combining authority, burn, liquidity and insider signals."""

    def __init__(
        self,
        context: AnalysisContext,
        fetcher: Optional[TokenActivityFetcher] = None,
        wallet_analysis: Optional[WalletAnalysisService] = None,
        clock: Callable[[], float] = epoch_ms
    ):
        super().__init__(logger)
        self.context = context
        self.fetcher = fetcher or TokenActivityFetcher(context)
        self.wallet_analysis = wallet_analysis or WalletAnalysisService(context, self.fetcher, clock)

    async def rug_check(self, address: str) -> Dict[str, Any]:
        """
        Heuristic rug-pull risk for a mint.

        Args:
            address: Token mint address

        Returns:
            Rug check result with ``riskScore`` in [0, 100] and ``reasons``

        Raises:
            NotFoundError: If the mint account does not exist
            RateLimitedError: If the mint account lookup stays rate limited
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("rugcheck", mint),
            self.context.config.cache.analysis_ttl,
            lambda: self._rug_check(mint)
        )

    async def _rug_check(self, mint: str) -> Dict[str, Any]:
        try:
            account = await self.fetcher.get_mint_account(mint)
        except RateLimitedError:
            raise
        except Exception as e:
            logger.error(f"Error fetching account info for {mint}, assuming active authorities: {str(e)}")
            mint_authority, freeze_authority, total_supply = True, True, DEFAULT_TOKEN_SUPPLY
        else:
            if not account:
                raise NotFoundError("Token mint account not found", mint)
            mint_authority, freeze_authority, total_supply = parse_mint_account(account)

        insider_count, insider_holdings = await self.execute_with_fallback(
            self._insider_exposure(mint, total_supply),
            (0, 0.0),
            f"Error analyzing insider wallets for {mint}"
        )
        burned = await self.execute_with_fallback(
            self._burned_amount(mint), 0.0, f"Error fetching burn data for {mint}")
        burned_percentage = burned / total_supply * 100 if total_supply > 0 else 0.0

        liquidity_locked, lock_duration = await self.execute_with_fallback(
            self._liquidity_lock(mint),
            (DEFAULT_LIQUIDITY_LOCKED, "None"),
            f"Error fetching liquidity for {mint}"
        )

        result = assess_rug_risk(
            total_supply=total_supply,
            insider_count=insider_count,
            insider_holdings=insider_holdings,
            mint_authority=mint_authority,
            freeze_authority=freeze_authority,
            burned_percentage=burned_percentage,
            liquidity_locked=liquidity_locked,
            liquidity_lock_duration=lock_duration
        )
        log_with_context(logger, "info", "Rug check complete", mint=mint, risk=result["riskScore"])
        return result

    async def _insider_exposure(self, mint: str, total_supply: float) -> Tuple[int, float]:
        try:
            signatures = await self.fetcher.fetch_signatures(mint)
        except Exception as e:
            logger.error(f"RPC error for rug-check on {mint}: {str(e)}")
            signatures = []
        if not signatures:
            return 0, 0.0

        records = await self.fetcher.fetch_transactions(signatures)
        activity = TokenActivity(mint=mint, signatures=signatures, records=records)
        analysis = await self.wallet_analysis.analyze(activity, total_supply=total_supply)
        insiders = analysis.cohorts.insider_candidates()
        return len(insiders), sum(w.total_amount for w in insiders)

    async def _burned_amount(self, mint: str) -> float:
        # Token accounts for this mint whose owner is the system program
        filters = [
            {"dataSize": TOKEN_ACCOUNT_SIZE},
            {"memcmp": {"offset": TOKEN_ACCOUNT_MINT_OFFSET, "bytes": mint}},
            {"memcmp": {"offset": TOKEN_ACCOUNT_OWNER_OFFSET, "bytes": SYSTEM_PROGRAM_ID}},
        ]
        accounts = await self.fetcher.get_program_accounts(TOKEN_PROGRAM_ID, filters)
        burned = 0.0
        for entry in accounts:
            parsed = ((entry.get("account") or {}).get("data") or {}).get("parsed") or {}
            token_amount = (parsed.get("info") or {}).get("tokenAmount") or {}
            burned += float(token_amount.get("uiAmount") or 0)
        return burned

    async def _liquidity_lock(self, mint: str) -> Tuple[float, str]:
        pair = await self.context.market_client.get_pair(mint)
        usd = ((pair or {}).get("liquidity") or {}).get("usd")
        if not pair or not usd:
            return 0.0, "None"
        return liquidity_ratio(float(usd)) * 100, str(pair.get("lockedUntil") or "None")
