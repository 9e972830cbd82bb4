"""Upstream fetching for token activity: signatures, transactions, supply."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from solana_insider.constants import DEFAULT_TOKEN_SUPPLY
from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.models.wallet import SignatureInfo
from solana_insider.services.base_service import BaseService
from solana_insider.services.context import AnalysisContext
from solana_insider.utils.retry import with_retry

T = TypeVar('T')

logger = get_logger(__name__)

TransactionRecord = Tuple[SignatureInfo, Optional[Dict[str, Any]]]


@dataclass
class TokenActivity:
    """Signatures for a mint together with their fetched transactions."""

    mint: str
    signatures: List[SignatureInfo] = field(default_factory=list)
    records: List[TransactionRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.signatures


class TokenActivityFetcher(BaseService):
    """Fetch on-chain activity for a mint with retry and bounded fan-out."""

    def __init__(self, context: AnalysisContext):
        super().__init__(logger)
        self.context = context
        self.client = context.solana_client
        self.settings = context.config.analysis

    async def _rpc(self, operation: Callable[[], Awaitable[T]], name: str) -> T:
        return await with_retry(
            operation,
            max_retries=self.settings.max_retries,
            initial_delay=self.settings.initial_retry_delay,
            operation_name=name
        )

    async def fetch_signatures(
        self,
        mint: str,
        pages: int = 1,
        page_size: Optional[int] = None,
        until: Optional[str] = None
    ) -> List[SignatureInfo]:
        """
        Fetch signatures for a mint, newest first, following ``before`` cursors.

        A failure on the first page propagates. A failure on a later page
        truncates the result to what was already fetched.

        Args:
            mint: Token mint address
            pages: Maximum number of pages
            page_size: Signatures per page
            until: Stop at this signature (exclusive)

        Returns:
            List of SignatureInfo
        """
        page_size = page_size or self.settings.signature_page_size
        signatures: List[SignatureInfo] = []
        before: Optional[str] = None

        for page in range(max(pages, 1)):
            try:
                raw = await self._rpc(
                    lambda: self.client.get_signatures_for_address(
                        mint, limit=page_size, before=before, until=until),
                    "getSignaturesForAddress"
                )
            except Exception as e:
                if page == 0:
                    raise
                log_with_context(
                    logger, "warning", "Signature pagination stopped early",
                    mint=mint, page=page, error=str(e)
                )
                break

            batch = [SignatureInfo.from_rpc(entry) for entry in raw or []]
            signatures.extend(batch)
            if len(batch) < page_size:
                break
            before = batch[-1].signature

        log_with_context(logger, "info", "Fetched signatures", mint=mint, count=len(signatures))
        return signatures

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """Fetch one parsed transaction (retried, may raise); None when unknown to the node."""
        return await self._rpc(lambda: self.client.get_parsed_transaction(signature), "getParsedTransaction")

    async def fetch_transaction(self, signature: SignatureInfo) -> Optional[Dict[str, Any]]:
        """Fetch one parsed transaction; failures yield None."""
        try:
            return await self.get_transaction(signature.signature)
        except Exception as e:
            logger.error(f"Error fetching transaction {signature.signature}: {str(e)}")
            return None

    async def fetch_transactions(self, signatures: List[SignatureInfo]) -> List[TransactionRecord]:
        """Fetch parsed transactions for signatures, preserving their order."""
        transactions = await self.gather_with_concurrency(
            self.fetch_transaction, signatures, self.settings.fetch_concurrency)
        return list(zip(signatures, transactions))

    async def fetch_activity(
        self,
        mint: str,
        pages: int = 1,
        page_size: Optional[int] = None,
        until: Optional[str] = None
    ) -> TokenActivity:
        """Fetch signatures and then their transactions for a mint."""
        async with self.log_timing(f"fetch_activity({mint})"):
            signatures = await self.fetch_signatures(mint, pages=pages, page_size=page_size, until=until)
            if not signatures:
                return TokenActivity(mint=mint)
            records = await self.fetch_transactions(signatures)
            return TokenActivity(mint=mint, signatures=signatures, records=records)

    async def _fetch_token_supply(self, mint: str) -> float:
        value = await self._rpc(lambda: self.client.get_token_supply(mint), "getTokenSupply")
        ui_amount = value.get("uiAmount")
        if ui_amount is None and value.get("amount") is not None:
            ui_amount = int(value["amount"]) / (10 ** int(value.get("decimals") or 0))
        supply = float(ui_amount or 0)
        return supply if supply > 0 else DEFAULT_TOKEN_SUPPLY

    async def get_token_supply(self, mint: str) -> float:
        """Total supply of the mint in UI units, or 1 when unavailable."""
        return await self.execute_with_fallback(
            self._fetch_token_supply(mint),
            DEFAULT_TOKEN_SUPPLY,
            f"Token supply unavailable for {mint}"
        )

    async def get_mint_account(self, mint: str) -> Optional[Dict[str, Any]]:
        """The mint's account (jsonParsed), or None when the account does not exist.

        Upstream failures propagate after retries.
        """
        return await self._rpc(
            lambda: self.client.get_account_info(mint, encoding="jsonParsed"), "getAccountInfo")

    async def get_sol_balance(self, wallet: str) -> int:
        """Lamport balance of a wallet (retried, may raise)."""
        return await self._rpc(lambda: self.client.get_balance(wallet), "getBalance")

    async def get_program_accounts(self, program_id: str, filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await self._rpc(
            lambda: self.client.get_program_accounts(program_id, filters=filters, encoding="jsonParsed"),
            "getProgramAccounts"
        )
