"""Activity views over a mint: price timeline, transfer graph, copy-trade lookup and live monitor."""

import asyncio
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Union

from solana_insider.analysis.ledger import iter_balance_deltas, transaction_mints
from solana_insider.cache import cache_key
from solana_insider.constants import BUY, LAMPORTS_PER_SOL, SELL
from solana_insider.logging_config import get_logger, log_with_context
from solana_insider.models.wallet import to_iso
from solana_insider.services.base_service import BaseService
from solana_insider.services.context import AnalysisContext
from solana_insider.services.fetcher import TokenActivityFetcher, TransactionRecord
from solana_insider.services.wallet_analysis import epoch_ms
from solana_insider.utils.errors import NotFoundError
from solana_insider.utils.validation import validate_solana_address

logger = get_logger(__name__)

NO_TRANSFERS_MESSAGE = "No transactions found for this token"
EMPTY_GRAPH_MESSAGE = "No valid token transfers found. Try a different token or increase the limit."
MONITOR_ERROR = {"error": "Failed to fetch transactions"}

MS_PER_DAY = 24 * 3_600_000


class ActivityService(BaseService):
    """Service for event-level views of a token's recent activity."""

    def __init__(
        self,
        context: AnalysisContext,
        fetcher: Optional[TokenActivityFetcher] = None,
        clock: Callable[[], float] = epoch_ms
    ):
        super().__init__(logger)
        self.context = context
        self.fetcher = fetcher or TokenActivityFetcher(context)
        self.settings = context.config.analysis
        self.clock = clock

    async def timeline(self, address: str) -> Dict[str, Any]:
        """
        Buy/sell events for a mint, priced and sorted ascending by time.

        Args:
            address: Token mint address

        Returns:
            ``{"events": [...]}``; a cached empty timeline is recomputed
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("timeline", mint),
            self.context.config.cache.transaction_ttl,
            lambda: self._build_timeline(mint),
            skip_if=lambda cached: not cached.get("events")
        )

    async def _build_timeline(self, mint: str) -> Dict[str, Any]:
        activity = await self.fetcher.fetch_activity(mint)
        if activity.is_empty:
            return {"events": []}

        price = await self.context.market_client.get_token_price(mint)
        price_source = "default" if price == self.context.config.market.default_token_price else "dexscreener"

        events = []
        for signature, transaction in activity.records:
            if signature.timestamp_ms is None:
                continue
            timestamp = to_iso(signature.timestamp_ms)
            for balance in iter_balance_deltas(transaction, mint):
                delta = balance.delta
                if delta == 0:
                    continue
                event: Dict[str, Any] = {"timestamp": timestamp, "price": price, "priceSource": price_source}
                side = "buy" if delta > 0 else "sell"
                event[side] = {"wallet": balance.owner, "amount": abs(delta)}
                events.append(event)

        events.sort(key=lambda e: e["timestamp"])
        log_with_context(logger, "info", "Timeline built", mint=mint, events=len(events))
        return {"events": events}

    async def recent_event_count(self, address: str, window_ms: float = MS_PER_DAY) -> int:
        """Number of timeline events inside the trailing window."""
        timeline = await self.timeline(address)
        cutoff = self.clock() - window_ms
        count = 0
        for event in timeline.get("events", []):
            moment = datetime.fromisoformat(event["timestamp"].replace("Z", "+00:00"))
            if moment.astimezone(timezone.utc).timestamp() * 1000 > cutoff:
                count += 1
        return count

    async def token_transfers(self, address: str, limit: int = 50) -> Dict[str, Any]:
        """
        Wallet-to-wallet transfer graph for a mint.

        Args:
            address: Token mint address
            limit: Requested signature count (capped at one page)

        Returns:
            ``{"nodes": [{id, balance}], "edges": [{source, target, amount, timestamp}]}``
        """
        mint = validate_solana_address(address)
        return await self.context.cache.get_or_compute(
            cache_key("transfers", mint, limit),
            self.context.config.cache.transaction_ttl,
            lambda: self._build_transfer_graph(mint, limit)
        )

    async def _build_transfer_graph(self, mint: str, limit: int) -> Dict[str, Any]:
        page_size = min(limit, self.settings.signature_page_size)
        activity = await self.fetcher.fetch_activity(mint, page_size=page_size)
        if activity.is_empty:
            return {"nodes": [], "edges": [], "message": NO_TRANSFERS_MESSAGE}

        nodes, edges = build_transfer_graph(activity.records, mint)
        max_nodes = self.settings.transfer_graph_max_nodes
        top_nodes = sorted(nodes.values(), key=lambda n: n["balance"], reverse=True)[:max_nodes]
        kept = {node["id"] for node in top_nodes}
        result: Dict[str, Any] = {
            "nodes": top_nodes,
            "edges": [e for e in edges if e["source"] in kept and e["target"] in kept],
        }
        if not result["nodes"] and not result["edges"]:
            logger.warning(f"No valid token transfer data found for {mint}")
            result["message"] = EMPTY_GRAPH_MESSAGE

        log_with_context(
            logger, "info", "Transfer graph built",
            mint=mint, nodes=len(result["nodes"]), edges=len(result["edges"])
        )
        return result

    async def copy_trade(self, wallet_address: str, transaction_id: str) -> Dict[str, Any]:
        """
        Describe a wallet's token movement in one transaction so it can be mirrored.

        Args:
            wallet_address: Wallet whose trade is copied
            transaction_id: Transaction signature

        Returns:
            ``{walletAddress, transactionId, type, amount, tokenMint, timestamp, originalTransaction}``

        Raises:
            NotFoundError: (404) If the transaction or a transfer by the wallet is missing
        """
        wallet = validate_solana_address(wallet_address)
        signature = transaction_id.strip()
        return await self.context.cache.get_or_compute(
            cache_key("copytrade", wallet, signature),
            self.context.config.cache.transaction_ttl,
            lambda: self._copy_trade(wallet, signature)
        )

    async def _copy_trade(self, wallet: str, signature: str) -> Dict[str, Any]:
        transaction = await self.fetcher.get_transaction(signature)
        if not transaction:
            raise NotFoundError("Transaction not found", signature, status_code=404)

        for mint in transaction_mints(transaction):
            for balance in iter_balance_deltas(transaction, mint):
                if balance.owner != wallet or balance.delta == 0:
                    continue
                block_time = transaction.get("blockTime")
                return {
                    "walletAddress": wallet,
                    "transactionId": signature,
                    "type": BUY if balance.delta > 0 else SELL,
                    "amount": abs(balance.delta),
                    "tokenMint": mint,
                    "timestamp": to_iso(block_time * 1000) if block_time is not None else None,
                    "originalTransaction": transaction,
                }

        log_with_context(logger, "warning", "No token transfer for wallet", wallet=wallet, signature=signature)
        raise NotFoundError("No token transfer found in this transaction", signature, status_code=404)

    async def monitor(
        self,
        address: str,
        wallets: Iterable[str],
        poll_interval: Optional[float] = None,
        max_polls: Optional[int] = None
    ) -> AsyncIterator[Union[List[Dict[str, Any]], Dict[str, str]]]:
        """
        Poll for new transfers by the watched wallets.

        Each poll asks only for signatures newer than the newest one already
        seen. Polls that find matching transfers yield them as a list; a
        failed poll yields ``{"error": ...}`` and polling continues.

        Args:
            address: Token mint address
            wallets: Wallet addresses to watch
            poll_interval: Seconds between polls
            max_polls: Stop after this many polls (None polls forever)
        """
        mint = validate_solana_address(address)
        watched = set(wallets)
        interval = poll_interval if poll_interval is not None else self.settings.monitor_poll_interval
        last_signature: Optional[str] = None
        polls = 0

        while max_polls is None or polls < max_polls:
            polls += 1
            await asyncio.sleep(interval)
            try:
                activity = await self.fetcher.fetch_activity(
                    mint, page_size=self.settings.monitor_page_size, until=last_signature)
            except Exception as e:
                logger.error(f"Monitor poll failed for {mint}: {str(e)}")
                yield dict(MONITOR_ERROR)
                continue

            if activity.is_empty:
                continue
            last_signature = activity.signatures[0].signature
            transfers = self.monitored_transfers(activity.records, mint, watched)
            if transfers:
                yield transfers

    def monitored_transfers(
        self,
        records: Iterable[TransactionRecord],
        mint: str,
        watched: set
    ) -> List[Dict[str, Any]]:
        """Transfers in ``records`` made by watched wallets."""
        transfers = []
        for signature, transaction in records:
            if signature.timestamp_ms is None:
                continue
            timestamp = to_iso(signature.timestamp_ms)
            fee = ((transaction or {}).get("meta") or {}).get("fee") or 0
            for balance in iter_balance_deltas(transaction, mint):
                if balance.owner not in watched:
                    continue
                delta = balance.delta
                if delta == 0:
                    continue
                kind = BUY if delta > 0 else SELL
                total_supply = _as_float(balance.ui_token_amount.get("totalSupply")) or 1.0
                transfers.append({
                    "wallet": balance.owner,
                    "type": kind,
                    "amount": abs(delta),
                    "timestamp": timestamp,
                    "tokenName": mint,
                    "isLargeSell": kind == SELL and abs(delta) > total_supply * self.settings.large_sell_supply_ratio,
                    # Rough SOL estimate scaled by the fee
                    "solAmount": delta * (fee / LAMPORTS_PER_SOL),
                })
        return transfers


def build_transfer_graph(records: Iterable[TransactionRecord], mint: str):
    """Build node balances and transfer edges from balance deltas.

    A node's balance is the latest post balance seen for it. An edge goes from
    the pre-balance owner to the post-balance owner at the same index when
    they differ and the delta is positive; the source's balance is reduced by
    the amount when it can cover it.

    Returns:
        Tuple of (nodes keyed by address, edge list)
    """
    nodes: Dict[str, Dict[str, Any]] = {}
    edges: List[Dict[str, Any]] = []

    for signature, transaction in records:
        if signature.timestamp_ms is None:
            continue
        timestamp = to_iso(signature.timestamp_ms)
        for balance in iter_balance_deltas(transaction, mint):
            node = nodes.setdefault(balance.owner, {"id": balance.owner, "balance": 0.0})
            if balance.post_amount >= 0:
                node["balance"] = balance.post_amount

            delta = balance.delta
            source = balance.pre_owner
            if delta > 0 and source and source != balance.owner:
                edges.append({
                    "source": source,
                    "target": balance.owner,
                    "amount": delta,
                    "timestamp": timestamp,
                })
                source_node = nodes.setdefault(source, {"id": source, "balance": 0.0})
                if source_node["balance"] >= delta:
                    source_node["balance"] -= delta

    return nodes, edges


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
