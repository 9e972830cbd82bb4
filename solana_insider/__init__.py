"""Solana Insider Package.

This package provides wallet-activity aggregation and scoring for SPL tokens,
including insider detection, token health scoring and rug-pull risk checks.
"""

__version__ = "0.1.0"
__author__ = "Solana Insider Contributors"
__email__ = "dev@solana-insider.local"
