"""
Liquidity Book position engine.

Bin math, position aggregation, distribution planning, position metrics
and swap quote planning for Liquidity Book (bin-based) AMM pairs.
"""

__version__ = "0.1.0"
