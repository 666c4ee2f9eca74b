"""
Swap quote planning.

LBQuoter возвращает (route, pairs, binSteps, amounts, virtualAmountsWithoutSlippage, fees).
Используются только последние элементы amounts и virtualAmountsWithoutSlippage -
реальный и идеальный (без проскальзывания) выход всего маршрута.

- priceImpact = (virtual - actual) / virtual * 100
- minimumAmountOut = amountOut * (10000 - floor(slippage * 100)) // 10000
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from ..errors import InvalidParameterError
from ..utils import from_raw_amount, get_deadline

logger = logging.getLogger(__name__)

MIN_SLIPPAGE = 0.01   # %
MAX_SLIPPAGE = 50.0   # %
DEFAULT_SLIPPAGE = 0.5
DEFAULT_DEADLINE_SECONDS = 20 * 60

# (нижняя граница impact %, severity, сообщение) - от большего к меньшему
PRICE_IMPACT_BANDS = (
    (5.0, "high", "High price impact! Your trade will significantly move the market price."),
    (3.0, "medium", "Moderate price impact. Consider splitting into smaller trades."),
    (1.0, "low", "Low price impact."),
)


@dataclass(frozen=True)
class Quote:
    """Котировка маршрута (read-only)."""
    amounts: Tuple[int, ...]
    virtual_amounts_without_slippage: Tuple[int, ...]
    route: Tuple[str, ...] = ()
    pairs: Tuple[str, ...] = ()
    bin_steps: Tuple[int, ...] = ()
    fees: Tuple[int, ...] = ()

    @property
    def amount_out(self) -> int:
        return self.amounts[-1] if self.amounts else 0

    @property
    def virtual_amount_out(self) -> int:
        if not self.virtual_amounts_without_slippage:
            return 0
        return self.virtual_amounts_without_slippage[-1]


@dataclass(frozen=True)
class PriceImpact:
    percent: Optional[float]
    severity: str
    message: Optional[str]


@dataclass
class QuotePlan:
    """Результат планирования свапа."""
    amount_out: int
    amount_out_human: Decimal
    virtual_amount_out: int
    price_impact: PriceImpact
    minimum_amount_out: int
    minimum_amount_out_human: Decimal
    slippage_bips: int
    deadline: int


def validate_slippage(slippage_percent: float) -> float:
    """
    Проверка slippage: [0.01, 50] %.

    Значение вне диапазона - ошибка, не обрезается.
    """
    try:
        value = float(slippage_percent)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"Invalid slippage: {slippage_percent!r}")

    if math.isnan(value):
        raise InvalidParameterError("Invalid slippage: NaN")
    if value < MIN_SLIPPAGE:
        raise InvalidParameterError(f"Slippage too low (min {MIN_SLIPPAGE}%): {value}")
    if value > MAX_SLIPPAGE:
        raise InvalidParameterError(f"Slippage too high (max {MAX_SLIPPAGE:g}%): {value}")
    return value


def slippage_to_bips(slippage_percent: float) -> int:
    """0.5% -> 50 bips (floor). Через Decimal(str(...)): 0.57 * 100 в float = 56.99999999999999."""
    return int(Decimal(str(validate_slippage(slippage_percent))) * 100)


def price_impact_percent(amount_out: int, virtual_amount_out: int) -> Optional[float]:
    """
    Price impact в процентах.

    Returns:
        None если virtual_amount_out <= 0
    """
    if virtual_amount_out <= 0:
        return None
    return (virtual_amount_out - amount_out) / virtual_amount_out * 100


def classify_price_impact(impact: Optional[float]) -> PriceImpact:
    """
    Классификация impact: <1 negligible, [1,3) low, [3,5) medium, >=5 high.
    """
    if impact is None:
        return PriceImpact(percent=None, severity="unknown", message=None)
    for lower, severity, message in PRICE_IMPACT_BANDS:
        if impact >= lower:
            return PriceImpact(percent=impact, severity=severity, message=message)
    return PriceImpact(percent=impact, severity="negligible", message=None)


def minimum_amount_out(amount_out: int, slippage_percent: float) -> int:
    """
    Минимальный выход с учётом slippage. Только целочисленная арифметика.

    Example:
        >>> minimum_amount_out(1000, 0.5)
        995
    """
    bips = slippage_to_bips(slippage_percent)
    return amount_out * (10000 - bips) // 10000


def plan_quote(
    quote: Quote,
    output_decimals: int,
    slippage_percent: float = DEFAULT_SLIPPAGE,
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    now: float = None
) -> QuotePlan:
    """
    Полный план свапа из котировки.

    Args:
        quote: Котировка от LBQuoter
        output_decimals: Decimals выходного токена
        slippage_percent: Допустимое проскальзывание в % ([0.01, 50])
        deadline_seconds: Срок действия транзакции
        now: Текущее время (для тестов)

    Returns:
        QuotePlan
    """
    bips = slippage_to_bips(slippage_percent)

    amount_out = quote.amount_out
    virtual_out = quote.virtual_amount_out
    impact = classify_price_impact(price_impact_percent(amount_out, virtual_out))
    min_out = amount_out * (10000 - bips) // 10000

    if impact.severity in ("medium", "high"):
        logger.warning(f"Price impact {impact.percent:.2f}% ({impact.severity})")

    return QuotePlan(
        amount_out=amount_out,
        amount_out_human=from_raw_amount(amount_out, output_decimals),
        virtual_amount_out=virtual_out,
        price_impact=impact,
        minimum_amount_out=min_out,
        minimum_amount_out_human=from_raw_amount(min_out, output_decimals),
        slippage_bips=bips,
        deadline=get_deadline(deadline_seconds, now=now),
    )
