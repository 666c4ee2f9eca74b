"""Liquidity Book contract adapters (read-only)."""
