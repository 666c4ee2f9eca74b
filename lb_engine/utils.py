"""
Utility helpers: raw <-> human token amounts and transaction deadlines.
"""

import time
from decimal import Decimal, getcontext

# High precision for amount conversion
getcontext().prec = 50


def to_raw_amount(amount: float, decimals: int) -> int:
    """
    Exact conversion of a human amount to the token's smallest unit.

    Uses Decimal(str(...)) to avoid float artifacts, truncates toward zero.

    Example:
        >>> to_raw_amount(1.5, 6)
        1500000
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


def from_raw_amount(raw_amount: int, decimals: int) -> Decimal:
    """
    Raw integer amount -> human Decimal.

    Example:
        >>> from_raw_amount(1500000, 6)
        Decimal('1.5')
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    return Decimal(raw_amount) / (Decimal(10) ** decimals)


def get_deadline(seconds: int = 1200, now: float = None) -> int:
    """Unix timestamp `seconds` from now (default 20 minutes)."""
    if now is None:
        now = time.time()
    return int(now) + seconds
