"""Services composing the analysis pipeline for the HTTP API."""

from solana_insider.services.activity_service import ActivityService
from solana_insider.services.context import AnalysisContext, close_context, create_context
from solana_insider.services.fetcher import TokenActivity, TokenActivityFetcher
from solana_insider.services.insider_service import InsiderService
from solana_insider.services.rug_check_service import RugCheckService
from solana_insider.services.wallet_analysis import WalletAnalysis, WalletAnalysisService

__all__ = [
    "ActivityService",
    "AnalysisContext",
    "InsiderService",
    "RugCheckService",
    "TokenActivity",
    "TokenActivityFetcher",
    "WalletAnalysis",
    "WalletAnalysisService",
    "close_context",
    "create_context",
]
