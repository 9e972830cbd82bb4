"""Request-independent collaborators shared by every analysis pipeline."""

import logging
from dataclasses import dataclass
from typing import Optional

from solana_insider.cache import AnalysisCache, create_cache
from solana_insider.config import AppConfig, get_app_config
from solana_insider.market_client import MarketClient
from solana_insider.solana_client import SolanaClient

logger = logging.getLogger(__name__)


@dataclass
class AnalysisContext:
    """Clients, cache and configuration passed into every pipeline stage."""

    solana_client: SolanaClient
    market_client: MarketClient
    cache: AnalysisCache
    config: AppConfig


def create_context(config: Optional[AppConfig] = None) -> AnalysisContext:
    """Build the context for one process.

    Args:
        config: Application configuration, loaded from the environment if None

    Returns:
        AnalysisContext owning freshly created clients and cache
    """
    config = config or get_app_config()
    cache = create_cache(config.cache.redis_url, config.cache.max_size)
    solana_client = SolanaClient(config.solana)
    market_client = MarketClient(config.market, cache=cache, cache_config=config.cache)
    logger.info(f"Analysis context created (rpc={config.solana.rpc_url})")
    return AnalysisContext(
        solana_client=solana_client,
        market_client=market_client,
        cache=cache,
        config=config
    )


async def close_context(context: AnalysisContext) -> None:
    """Release every resource held by the context."""
    await context.solana_client.close()
    await context.market_client.close()
    await context.cache.close()
    logger.info("Analysis context closed")
