"""
Liquidity Distribution Strategies

Диапазон цен делится на num_bins равных интервалов, каждому назначается вес:
- Spot (uniform): одинаковый вес 1/num_bins
- Curve: гауссиана вокруг середины диапазона, sigma = 0.3
  Максимум ликвидности около текущей цены
- Bid-Ask: x^2 + 0.1
  Максимум ликвидности на краях диапазона, минимум в середине

Правило сторон (односторонние депозиты):
- Бин ВЫШЕ текущей цены -> вес идёт в tokenX
- Бин НИЖЕ (или на) текущей цене -> вес идёт в tokenY
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..errors import InvalidParameterError
from .bins import price_to_bin_id

logger = logging.getLogger(__name__)

DEFAULT_NUM_BINS = 50
CURVE_SIGMA = 0.3
BID_ASK_FLOOR = 0.1

# Высота самого большого бина при отображении (% от высоты графика)
DISPLAY_SCALE = 70.0

# LB router: distributionX/Y в 1e18
PRECISION = 10 ** 18


class DistributionStrategy(Enum):
    """Стратегия распределения ликвидности."""
    UNIFORM = "spot"
    CURVE = "curve"
    BID_ASK = "bidask"

    @classmethod
    def parse(cls, value) -> "DistributionStrategy":
        """Из строки: значение ("spot") или имя ("UNIFORM"), без учёта регистра."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "").replace("_", "")
        for strategy in cls:
            if text in (strategy.value, strategy.name.lower().replace("_", "")):
                return strategy
        raise InvalidParameterError(f"Unknown distribution strategy: {value}")


# Рекомендуемые диапазоны (% от текущей цены) для каждой стратегии
SUGGESTED_RANGE_PERCENT = {
    DistributionStrategy.UNIFORM: 50.0,
    DistributionStrategy.CURVE: 10.0,
    DistributionStrategy.BID_ASK: 30.0,
}


@dataclass(frozen=True)
class LiquidityRange:
    """Диапазон цен для депозита."""
    min_price: float
    max_price: float

    @property
    def is_valid(self) -> bool:
        return 0 < self.min_price < self.max_price

    @property
    def width(self) -> float:
        return self.max_price - self.min_price


@dataclass
class PlannedBin:
    """Один интервал в плане депозита."""
    index: int
    price_lower: float
    price_upper: float
    mid_price: float
    weight: float         # Доля депозита (сумма всех = 1)
    weight_x: float       # Вес в tokenX (бин выше текущей цены)
    weight_y: float       # Вес в tokenY (бин ниже текущей цены)
    display_x: float      # Высота столбца tokenX, 0..DISPLAY_SCALE
    display_y: float      # Высота столбца tokenY, 0..DISPLAY_SCALE
    is_active: bool
    bin_id: Optional[int] = None


@dataclass
class DepositDistribution:
    """Массивы для addLiquidity роутера."""
    bin_ids: List[int]
    delta_ids: List[int]
    distribution_x: List[int]
    distribution_y: List[int]


def _normalized_position(i: int, n: int) -> float:
    """Позиция бина в [-1, 1): (i - n/2) / (n/2)."""
    center = n / 2
    return (i - center) / center


def _uniform_weight(x: float) -> float:
    return 1.0


def _curve_weight(x: float) -> float:
    return math.exp(-(x * x) / (2 * CURVE_SIGMA * CURVE_SIGMA))


def _bid_ask_weight(x: float) -> float:
    return x * x + BID_ASK_FLOOR


_WEIGHT_FUNCTIONS = {
    DistributionStrategy.UNIFORM: _uniform_weight,
    DistributionStrategy.CURVE: _curve_weight,
    DistributionStrategy.BID_ASK: _bid_ask_weight,
}


def get_raw_weights(num_bins: int, strategy: DistributionStrategy) -> List[float]:
    """
    Сырые (не нормализованные) веса стратегии.

    Args:
        num_bins: Количество бинов
        strategy: Стратегия распределения

    Returns:
        Список весов длины num_bins
    """
    if num_bins < 1:
        raise InvalidParameterError(f"num_bins must be >= 1, got {num_bins}")
    weight_fn = _WEIGHT_FUNCTIONS[DistributionStrategy.parse(strategy)]
    return [weight_fn(_normalized_position(i, num_bins)) for i in range(num_bins)]


def get_strategy_weights(num_bins: int, strategy: DistributionStrategy) -> List[float]:
    """
    Нормализованные веса: сумма = 1.

    Для UNIFORM каждый вес равен ровно 1/num_bins.
    """
    raw = get_raw_weights(num_bins, strategy)
    total = math.fsum(raw)
    return [w / total for w in raw]


def plan_distribution(
    liquidity_range: LiquidityRange,
    current_price: float,
    strategy: DistributionStrategy,
    num_bins: int = DEFAULT_NUM_BINS,
    bin_step: int = None
) -> List[PlannedBin]:
    """
    План распределения депозита по диапазону цен.

    Диапазон делится на num_bins интервалов РАВНОЙ ширины.

    Args:
        liquidity_range: Диапазон цен (min < max)
        current_price: Текущая цена (tokenY/tokenX)
        strategy: Стратегия распределения
        num_bins: Количество интервалов
        bin_step: Bin step пула. Если задан, каждому интервалу
                  назначается bin_id по средней цене.

    Returns:
        Список PlannedBin снизу вверх. Пустой список для некорректного
        диапазона (min >= max) - это не ошибка.

    Example:
        >>> bins = plan_distribution(LiquidityRange(0.9, 1.1), 1.0, DistributionStrategy.CURVE, 10)
        >>> # Максимум веса в середине, бины выше 1.0 - в tokenX
    """
    if num_bins < 1:
        raise InvalidParameterError(f"num_bins must be >= 1, got {num_bins}")

    if not liquidity_range.is_valid:
        logger.debug(
            f"Invalid range {liquidity_range.min_price}-{liquidity_range.max_price}, "
            f"no bins planned"
        )
        return []

    strategy = DistributionStrategy.parse(strategy)
    raw_weights = get_raw_weights(num_bins, strategy)
    weights = get_strategy_weights(num_bins, strategy)
    max_raw = max(raw_weights)

    bin_width = liquidity_range.width / num_bins
    active_index = math.floor((current_price - liquidity_range.min_price) / bin_width)

    planned = []
    for i in range(num_bins):
        price_lower = liquidity_range.min_price + i * bin_width
        price_upper = liquidity_range.min_price + (i + 1) * bin_width
        mid_price = (price_lower + price_upper) / 2

        weight = weights[i]
        display = raw_weights[i] / max_raw * DISPLAY_SCALE

        # Выше текущей цены - односторонний депозит в X, ниже - в Y
        above = mid_price > current_price

        planned.append(PlannedBin(
            index=i,
            price_lower=price_lower,
            price_upper=price_upper,
            mid_price=mid_price,
            weight=weight,
            weight_x=weight if above else 0.0,
            weight_y=0.0 if above else weight,
            display_x=display if above else 0.0,
            display_y=0.0 if above else display,
            is_active=i == active_index,
            bin_id=price_to_bin_id(mid_price, bin_step) if bin_step is not None else None,
        ))

    return planned


def _scale_to_precision(weights: List[float]) -> List[int]:
    """Масштабирование весов до суммы PRECISION. Остаток - в самый большой вес."""
    total = math.fsum(weights)
    if total <= 0:
        return [0] * len(weights)

    scaled = [int(w / total * PRECISION) for w in weights]
    remainder = PRECISION - sum(scaled)
    if remainder:
        largest = max(range(len(weights)), key=lambda i: weights[i])
        scaled[largest] += remainder
    return scaled


def build_deposit_distribution(
    planned_bins: List[PlannedBin],
    active_id: int
) -> DepositDistribution:
    """
    Построение deltaIds / distributionX / distributionY для addLiquidity.

    Интервалы с одинаковым bin_id объединяются. Веса X и Y нормализуются
    отдельно до 1e18 каждый (если есть хотя бы один ненулевой вес).

    Args:
        planned_bins: Результат plan_distribution(..., bin_step=...)
        active_id: Активный бин пула

    Returns:
        DepositDistribution, бины по возрастанию bin_id
    """
    if not planned_bins:
        return DepositDistribution(bin_ids=[], delta_ids=[], distribution_x=[], distribution_y=[])

    if any(b.bin_id is None for b in planned_bins):
        raise InvalidParameterError("Planned bins have no bin ids, pass bin_step to plan_distribution")

    merged = {}
    for planned in planned_bins:
        x, y = merged.get(planned.bin_id, (0.0, 0.0))
        merged[planned.bin_id] = (x + planned.weight_x, y + planned.weight_y)

    bin_ids = sorted(merged)
    distribution_x = _scale_to_precision([merged[b][0] for b in bin_ids])
    distribution_y = _scale_to_precision([merged[b][1] for b in bin_ids])

    return DepositDistribution(
        bin_ids=bin_ids,
        delta_ids=[b - active_id for b in bin_ids],
        distribution_x=distribution_x,
        distribution_y=distribution_y,
    )


# ============================================================
# RANGE HELPERS
# ============================================================

def suggest_range(
    current_price: float,
    strategy: DistributionStrategy,
    volatility_percent: float = 100
) -> LiquidityRange:
    """
    Рекомендуемый диапазон для стратегии.

    Базовые диапазоны: spot ±50%, curve ±10%, bid-ask ±30%,
    масштабируются на volatility_percent / 100.
    """
    if current_price <= 0:
        raise InvalidParameterError("current_price must be > 0")

    percent = SUGGESTED_RANGE_PERCENT[DistributionStrategy.parse(strategy)]
    percent *= volatility_percent / 100

    return LiquidityRange(
        min_price=current_price * (1 - percent / 100),
        max_price=current_price * (1 + percent / 100),
    )


def full_range(current_price: float) -> LiquidityRange:
    """Полный диапазон: от -99% до +900%."""
    if current_price <= 0:
        raise InvalidParameterError("current_price must be > 0")
    return LiquidityRange(min_price=current_price * 0.01, max_price=current_price * 10)


def range_percentages(
    liquidity_range: LiquidityRange,
    current_price: float
) -> Tuple[float, float, float]:
    """
    Границы диапазона в % от текущей цены.

    Returns:
        (min_percent, max_percent, width_percent)
    """
    if current_price <= 0:
        return -50.0, 50.0, 0.0
    min_percent = (liquidity_range.min_price - current_price) / current_price * 100
    max_percent = (liquidity_range.max_price - current_price) / current_price * 100
    width_percent = liquidity_range.width / current_price * 100
    return min_percent, max_percent, width_percent


def print_distribution(planned_bins: List[PlannedBin], current_price: float = None) -> None:
    """
    Вывод распределения в лог.

    Args:
        planned_bins: Результат plan_distribution
        current_price: Текущая цена (для отметки)
    """
    logger.info("\n" + "=" * 75)
    logger.info("LIQUIDITY DISTRIBUTION")
    logger.info("=" * 75)

    if current_price:
        logger.info(f"\nCurrent price: {current_price:,.6f}")

    logger.info(f"\n{'#':<4} {'Price Range':<28} {'Bin ID':<10} {'Side':<5} {'Share':<8}")
    logger.info("-" * 75)

    for planned in planned_bins:
        side = "X" if planned.weight_x > 0 else "Y"
        bar = "█" * int((planned.display_x + planned.display_y) / 5)
        marker = " <- active" if planned.is_active else ""
        bin_id = str(planned.bin_id) if planned.bin_id is not None else "-"
        logger.info(
            f"{planned.index + 1:<4} {planned.price_lower:>12.6f} - {planned.price_upper:<12.6f} "
            f"{bin_id:<10} {side:<5} {planned.weight * 100:>6.2f}% {bar}{marker}"
        )

    logger.info("-" * 75)
    if planned_bins:
        total_x = sum(b.weight_x for b in planned_bins) * 100
        total_y = sum(b.weight_y for b in planned_bins) * 100
        logger.info(f"TOTAL: {len(planned_bins)} bins, X {total_x:.1f}% / Y {total_y:.1f}%")
    logger.info("=" * 75)
