"""Price and liquidity feed client.

Dexscreener is consumed as an opaque request/response service: given a token
address it returns the token's trading pairs with price, liquidity and
24h change.
"""

from typing import Any, Dict, Optional

import httpx

from solana_insider.cache import AnalysisCache, cache_key
from solana_insider.config import CacheConfig, MarketConfig, get_cache_config, get_market_config
from solana_insider.logging_config import get_logger
from solana_insider.utils.errors import RateLimitedError, UpstreamError, UpstreamTimeoutError

# Get logger
logger = get_logger(__name__)


class MarketClient:
    """Client for token price and liquidity data."""

    def __init__(
        self,
        config: Optional[MarketConfig] = None,
        cache: Optional[AnalysisCache] = None,
        cache_config: Optional[CacheConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the market client.

        Args:
            config: Market feed configuration
            cache: Optional cache for price lookups
            cache_config: TTL configuration
            http_client: Optional pre-built HTTP client (used by tests)
        """
        self.config = config or get_market_config()
        self.cache = cache or AnalysisCache()
        self.cache_config = cache_config or get_cache_config()
        self._http_client = http_client
        self._owns_client = http_client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def get_pair(self, address: str) -> Optional[Dict[str, Any]]:
        """Get the primary trading pair for a token.

        Args:
            address: Token mint address

        Returns:
            The first pair reported by the feed, or None if it lists none

        Raises:
            RateLimitedError: If the feed rate-limits us
            UpstreamTimeoutError: If the feed does not answer in time
            UpstreamError: On any other feed failure
        """
        key = cache_key("dexpair", address)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached.get("pair")

        client = self._ensure_client()
        url = f"{self.config.dexscreener_url.rstrip('/')}/{address}"
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Price feed timed out for {address}: {str(e)}")
        except httpx.HTTPError as e:
            raise UpstreamError(f"Price feed request failed for {address}: {str(e)}")

        if response.status_code == 429:
            raise RateLimitedError(f"429 Too Many Requests from price feed for {address}")
        if response.status_code >= 400:
            raise UpstreamError(f"Price feed returned HTTP {response.status_code} for {address}")

        try:
            pairs = (response.json() or {}).get("pairs") or []
        except ValueError as e:
            raise UpstreamError(f"Price feed returned invalid JSON for {address}: {str(e)}")

        pair = pairs[0] if pairs else None
        await self.cache.set_with_ttl(key, {"pair": pair}, self.cache_config.price_ttl)
        return pair

    async def get_token_price(self, address: str, timestamp: Optional[int] = None) -> float:
        """Get a token's USD price.

        The feed only knows the latest price; ``timestamp`` keys a separate
        cache bucket so historical callers do not share entries with live ones.
        Falls back to the configured default price when no price is available.

        Args:
            address: Token mint address
            timestamp: Optional unix timestamp the price is wanted for

        Returns:
            Price in USD
        """
        key = cache_key("price", address, timestamp or "latest")
        cached = await self.cache.get(key)
        if cached is not None:
            return float(cached)

        try:
            pair = await self.get_pair(address)
        except UpstreamError as e:
            logger.error(f"Price fetch error for {address}: {str(e)}")
            return self.config.default_token_price

        price = _to_float(pair.get("priceUsd")) if pair else 0.0
        if price <= 0:
            logger.warning(f"No price data for {address}, using default")
            price = self.config.default_token_price

        await self.cache.set_with_ttl(key, price, self.cache_config.price_ttl)
        return price

    async def get_liquidity_usd(self, address: str) -> float:
        """Get the USD liquidity of the token's primary pair (0 when unlisted).

        Raises:
            UpstreamError: If the feed cannot be reached
        """
        pair = await self.get_pair(address)
        if not pair:
            return 0.0
        return _to_float((pair.get("liquidity") or {}).get("usd"))

    async def get_price_change_24h(self, address: str) -> str:
        """Get the 24h price change percentage as reported by the feed."""
        try:
            pair = await self.get_pair(address)
        except UpstreamError as e:
            logger.error(f"Price change fetch error for {address}: {str(e)}")
            return "0.00"
        change = ((pair or {}).get("priceChange") or {}).get("h24")
        return str(change) if change is not None else "0.00"

    async def get_token_profile(self, address: str) -> Dict[str, str]:
        """Get the token's display name and symbol."""
        profile = {"name": "Unknown", "symbol": "UNK"}
        try:
            pair = await self.get_pair(address)
        except UpstreamError as e:
            logger.error(f"Token metadata fetch error for {address}: {str(e)}")
            return profile

        pair = pair or {}
        token = pair.get("baseToken") or {}
        quote_token = pair.get("quoteToken") or {}
        if quote_token.get("address") == address:
            token = quote_token
        profile["name"] = token.get("name") or profile["name"]
        profile["symbol"] = token.get("symbol") or profile["symbol"]
        return profile


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
