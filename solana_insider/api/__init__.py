"""HTTP API for Solana Insider."""

from solana_insider.api.routes import router

__all__ = ["router"]
