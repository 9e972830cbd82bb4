"""Common test fixtures for Solana Insider tests.

This module provides fixtures and record builders that can be reused across
different test modules.
"""

import pytest
from unittest.mock import AsyncMock

from solana_insider.cache import AnalysisCache, MemoryCacheBackend
from solana_insider.config import (
    AnalysisConfig,
    AppConfig,
    CacheConfig,
    MarketConfig,
    ServerConfig,
    SolanaConfig,
)
from solana_insider.market_client import MarketClient
from solana_insider.services.context import AnalysisContext
from solana_insider.solana_client import SolanaClient

# Wrapped SOL mint; any valid public key works as the analysed mint
MINT = "So11111111111111111111111111111111111111112"
OTHER_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

WALLET_A = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
WALLET_B = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
WALLET_C = "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"

# 2023-11-14T22:13:20Z
NOW_MS = 1_700_000_000_000.0
HOUR_MS = 3_600_000.0


def block_time(hours_ago: float) -> int:
    """Block time in seconds for a moment ``hours_ago`` before NOW_MS."""
    return int((NOW_MS - hours_ago * HOUR_MS) / 1000)


def token_balance(owner, amount, mint=MINT, account_index=0, total_supply=None):
    """Build a ``preTokenBalances``/``postTokenBalances`` entry."""
    ui_token_amount = {
        "uiAmount": amount,
        "decimals": 6,
        "amount": str(int(amount * 10 ** 6)) if amount is not None else "0",
        "uiAmountString": str(amount),
    }
    if total_supply is not None:
        ui_token_amount["totalSupply"] = total_supply
    return {
        "accountIndex": account_index,
        "mint": mint,
        "owner": owner,
        "uiTokenAmount": ui_token_amount,
    }


def parsed_transaction(pre, post, fee=5000):
    """Build a jsonParsed transaction carrying only what reconciliation reads."""
    return {
        "meta": {
            "err": None,
            "fee": fee,
            "preTokenBalances": pre,
            "postTokenBalances": post,
        },
        "transaction": {"message": {"accountKeys": []}},
    }


def transfer(owner, before, after, mint=MINT):
    """A transaction moving ``owner``'s balance of ``mint`` from ``before`` to ``after``."""
    return parsed_transaction([token_balance(owner, before, mint)], [token_balance(owner, after, mint)])


def signature_entry(signature, hours_ago=None):
    """Build a ``getSignaturesForAddress`` entry."""
    return {
        "signature": signature,
        "slot": 250_000_000,
        "err": None,
        "blockTime": block_time(hours_ago) if hours_ago is not None else None,
    }


def mint_account(supply="1000000000000", decimals=6, mint_authority=None, freeze_authority=None):
    """Build a jsonParsed mint account ``value``."""
    return {
        "lamports": 1_461_600,
        "owner": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
        "executable": False,
        "data": {
            "program": "spl-token",
            "parsed": {
                "type": "mint",
                "info": {
                    "decimals": decimals,
                    "freezeAuthority": freeze_authority,
                    "isInitialized": True,
                    "mintAuthority": mint_authority,
                    "supply": supply,
                },
            },
        },
    }


def clock():
    return NOW_MS


@pytest.fixture
def mock_solana_client():
    """Create a mock Solana client."""
    client = AsyncMock(spec=SolanaClient)

    # Common mock responses
    client.get_signatures_for_address.return_value = []
    client.get_parsed_transaction.return_value = None
    client.get_balance.return_value = 2_000_000_000  # 2 SOL in lamports
    client.get_token_supply.return_value = {
        "amount": "1000000000000",
        "decimals": 6,
        "uiAmount": 1_000_000.0,
    }
    client.get_account_info.return_value = mint_account()
    client.get_program_accounts.return_value = []

    return client


@pytest.fixture
def mock_market_client():
    """Create a mock market client."""
    client = AsyncMock(spec=MarketClient)

    client.get_token_price.return_value = 0.5
    client.get_liquidity_usd.return_value = 250_000.0
    client.get_price_change_24h.return_value = "12.5"
    client.get_token_profile.return_value = {"name": "Test Token", "symbol": "TEST"}
    client.get_pair.return_value = {
        "priceUsd": "0.5",
        "liquidity": {"usd": 250_000.0},
        "priceChange": {"h24": 12.5},
        "baseToken": {"address": MINT, "name": "Test Token", "symbol": "TEST"},
    }

    return client


@pytest.fixture
def app_config():
    """Application config with no retry delay and no environment lookups."""
    return AppConfig(
        solana=SolanaConfig(),
        server=ServerConfig(),
        cache=CacheConfig(),
        market=MarketConfig(),
        analysis=AnalysisConfig(max_retries=2, initial_retry_delay=0.0),
    )


@pytest.fixture
def memory_cache():
    """Create an in-memory analysis cache."""
    return AnalysisCache(MemoryCacheBackend(max_size=256))


@pytest.fixture
def analysis_context(mock_solana_client, mock_market_client, memory_cache, app_config):
    """Create an AnalysisContext with mock upstream clients."""
    return AnalysisContext(
        solana_client=mock_solana_client,
        market_client=mock_market_client,
        cache=memory_cache,
        config=app_config,
    )
