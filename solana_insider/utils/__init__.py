"""Shared utilities for Solana Insider."""
