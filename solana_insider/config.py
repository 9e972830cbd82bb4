"""Configuration module for the Solana Insider server."""

# Standard library imports
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, List, Optional

# Third-party library imports
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env_var(key: str, default: Any = None, required: bool = False,
                validator: Optional[Callable[[str], Any]] = None) -> Any:
    """Get and validate environment variable.

    Args:
        key: Environment variable name
        default: Default value if not present
        required: If True, raises ValueError when not found
        validator: Optional validation function

    Returns:
        The environment variable value or default

    Raises:
        ValueError: If required and not found, or fails validation
    """
    value = os.environ.get(key)

    if value is None:
        if required:
            raise ValueError(f"Required environment variable '{key}' not found")
        return default

    if validator is not None:
        try:
            return validator(value)
        except Exception as e:
            raise ValueError(f"Invalid value for environment variable '{key}': {str(e)}")

    return value


def bool_validator(value: str) -> bool:
    """Validate and convert string to boolean."""
    return value.lower() in ("true", "1", "yes", "y", "on")


def int_validator(value: str) -> int:
    """Validate and convert string to integer.

    Raises:
        ValueError: If not a valid integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")


def float_validator(value: str) -> float:
    """Validate and convert string to float.

    Raises:
        ValueError: If not a valid number
    """
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")


def url_validator(value: str) -> str:
    """Validate URL format.

    Args:
        value: URL to validate

    Returns:
        The validated URL

    Raises:
        ValueError: If not a valid URL format
    """
    url_pattern = re.compile(
        r'^(https?):\/\/'  # http:// or https://
        r'(?:[^@\s/]+@)?'  # optional credentials
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
        r'localhost|'  # localhost
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)

    if not url_pattern.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def commitment_validator(value: str) -> str:
    """Validate Solana commitment level."""
    valid_commitments = ("processed", "confirmed", "finalized")
    if value.lower() not in valid_commitments:
        raise ValueError(f"Commitment must be one of: {', '.join(valid_commitments)}")
    return value.lower()


def log_level_validator(value: str) -> str:
    """Validate log level."""
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    upper_value = value.upper()
    if upper_value not in valid_levels:
        raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
    return upper_value


def environment_validator(value: str) -> str:
    """Validate environment name."""
    valid_environments = ("development", "testing", "staging", "production")
    if value.lower() not in valid_environments:
        raise ValueError(f"Environment must be one of: {', '.join(valid_environments)}")
    return value.lower()


def csv_validator(value: str) -> List[str]:
    """Split a comma-separated value into a list of trimmed items."""
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class SolanaConfig:
    """Configuration for Solana RPC connection."""

    rpc_url: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"
    timeout: float = 10.0  # seconds


@lru_cache()
def get_solana_config() -> SolanaConfig:
    """Get Solana configuration from environment variables.

    Returns:
        SolanaConfig instance

    Raises:
        ValueError: If environment variables fail validation
    """
    return SolanaConfig(
        rpc_url=get_env_var("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com",
                            validator=url_validator),
        commitment=get_env_var("SOLANA_COMMITMENT", "confirmed",
                               validator=commitment_validator),
        timeout=get_env_var("SOLANA_TIMEOUT", 10.0, validator=float_validator)
    )


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3001
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3002"])

    @property
    def bind_address(self) -> str:
        """Get the bind address for the server."""
        return f"{self.host}:{self.port}"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.environment not in ("development", "testing", "staging", "production"):
            raise ValueError(f"Invalid environment: {self.environment}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")


@lru_cache()
def get_server_config() -> ServerConfig:
    """Get server configuration from environment variables."""
    return ServerConfig(
        host=get_env_var("HOST", "0.0.0.0"),
        port=get_env_var("PORT", 3001, validator=int_validator),
        debug=get_env_var("DEBUG", False, validator=bool_validator),
        environment=get_env_var("ENVIRONMENT", "development", validator=environment_validator),
        log_level=get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator),
        cors_origins=get_env_var("CORS_ORIGINS", ["http://localhost:3000", "http://localhost:3002"],
                                 validator=csv_validator)
    )


@dataclass
class CacheConfig:
    """Configuration for caching.

    TTLs are tiered: volatile prices expire fastest, transaction-derived
    aggregates next, and full analyses (health score, rug check) last longest.
    """

    redis_url: Optional[str] = None
    max_size: int = 2048
    price_ttl: int = 300  # seconds
    transaction_ttl: int = 600  # seconds
    analysis_ttl: int = 3600  # seconds
    wallet_ttl: int = 3600  # seconds


@lru_cache()
def get_cache_config() -> CacheConfig:
    """Get cache configuration from environment variables."""
    return CacheConfig(
        redis_url=get_env_var("REDIS_URL", None),
        max_size=get_env_var("CACHE_MAX_SIZE", 2048, validator=int_validator),
        price_ttl=get_env_var("PRICE_CACHE_TTL", 300, validator=int_validator),
        transaction_ttl=get_env_var("TRANSACTION_CACHE_TTL", 600, validator=int_validator),
        analysis_ttl=get_env_var("ANALYSIS_CACHE_TTL", 3600, validator=int_validator),
        wallet_ttl=get_env_var("WALLET_CACHE_TTL", 3600, validator=int_validator)
    )


@dataclass
class MarketConfig:
    """Configuration for the price and liquidity feed."""

    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    timeout: float = 5.0  # seconds
    default_token_price: float = 0.01


@lru_cache()
def get_market_config() -> MarketConfig:
    """Get market feed configuration from environment variables."""
    return MarketConfig(
        dexscreener_url=get_env_var("DEXSCREENER_URL", "https://api.dexscreener.com/latest/dex/tokens",
                                    validator=url_validator),
        timeout=get_env_var("MARKET_TIMEOUT", 5.0, validator=float_validator),
        default_token_price=get_env_var("DEFAULT_TOKEN_PRICE", 0.01, validator=float_validator)
    )


@dataclass
class AnalysisConfig:
    """Configuration for wallet aggregation, scoring and upstream fan-out."""

    signature_page_size: int = 25
    search_max_pages: int = 2
    monitor_page_size: int = 10
    monitor_poll_interval: float = 10.0  # seconds
    fetch_concurrency: int = 10
    enrichment_chunk_size: int = 50
    max_retries: int = 5
    initial_retry_delay: float = 1.0  # seconds
    large_sell_supply_ratio: float = 0.01
    whale_supply_ratio: float = 0.10
    cohort_size: int = 10
    transfer_graph_max_nodes: int = 150


@lru_cache()
def get_analysis_config() -> AnalysisConfig:
    """Get analysis configuration from environment variables."""
    return AnalysisConfig(
        signature_page_size=get_env_var("SIGNATURE_PAGE_SIZE", 25, validator=int_validator),
        search_max_pages=get_env_var("SEARCH_MAX_PAGES", 2, validator=int_validator),
        monitor_page_size=get_env_var("MONITOR_PAGE_SIZE", 10, validator=int_validator),
        monitor_poll_interval=get_env_var("MONITOR_POLL_INTERVAL", 10.0, validator=float_validator),
        fetch_concurrency=get_env_var("FETCH_CONCURRENCY", 10, validator=int_validator),
        enrichment_chunk_size=get_env_var("ENRICHMENT_CHUNK_SIZE", 50, validator=int_validator),
        max_retries=get_env_var("RPC_MAX_RETRIES", 5, validator=int_validator),
        initial_retry_delay=get_env_var("RPC_INITIAL_RETRY_DELAY", 1.0, validator=float_validator),
        large_sell_supply_ratio=get_env_var("LARGE_SELL_SUPPLY_RATIO", 0.01, validator=float_validator),
        whale_supply_ratio=get_env_var("WHALE_SUPPLY_RATIO", 0.10, validator=float_validator),
        cohort_size=get_env_var("COHORT_SIZE", 10, validator=int_validator),
        transfer_graph_max_nodes=get_env_var("TRANSFER_GRAPH_MAX_NODES", 150, validator=int_validator)
    )


@dataclass
class AppConfig:
    """Comprehensive application configuration."""

    solana: SolanaConfig = field(default_factory=get_solana_config)
    server: ServerConfig = field(default_factory=get_server_config)
    cache: CacheConfig = field(default_factory=get_cache_config)
    market: MarketConfig = field(default_factory=get_market_config)
    analysis: AnalysisConfig = field(default_factory=get_analysis_config)


def get_app_config() -> AppConfig:
    """Get the comprehensive application configuration."""
    return AppConfig()
