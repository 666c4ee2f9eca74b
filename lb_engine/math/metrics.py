"""
Position Metrics

Оценки для позиции (упрощённые, без скрытого состояния):
- positionValue = amountX * priceX + amountY * priceY
- poolShare = positionValue / (poolLiquidity + positionValue)
- dailyFee = poolShare * volume24h * binStep / 10000
- APR = dailyFee * 365 / positionValue * 100

Impermanent loss - грубые диапазоны по ширине диапазона, НЕ формула IL.
Проекции комиссий - простое умножение, без сложного процента.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..errors import InvalidParameterError
from ..utils import from_raw_amount
from .bins import BASIS_POINT_MAX
from .distribution import LiquidityRange, range_percentages
from .positions import PositionSummary

logger = logging.getLogger(__name__)

PRICE_TTL_SECONDS = 60

# (верхняя граница rangeWidth, IL %, уровень риска)
IL_RISK_BANDS = (
    (0.10, 25.0, "high"),
    (0.30, 10.0, "medium"),
    (0.50, 5.0, "low"),
)
IL_RISK_MINIMAL = (2.0, "minimal")


@dataclass(frozen=True)
class PriceSnapshot:
    """USD цена с моментом получения."""
    value: Optional[float]
    fetched_at: float
    degraded: bool = False  # True - fallback цена, API недоступен

    def is_fresh(self, now: float = None, ttl: float = PRICE_TTL_SECONDS) -> bool:
        if now is None:
            now = time.time()
        return now - self.fetched_at < ttl


PriceInput = Union[float, int, PriceSnapshot, None]


@dataclass(frozen=True)
class ImpermanentLossRisk:
    percent: float
    level: str


@dataclass(frozen=True)
class FeeProjection:
    daily: float
    monthly: float
    yearly: float


@dataclass
class PositionMetrics:
    """Все метрики позиции."""
    value_usd: float
    value_x_usd: float
    value_y_usd: float
    pool_share: float            # Доля в [0, 1)
    fee_rate: float
    estimated_apr: float         # В процентах
    impermanent_loss: ImpermanentLossRisk
    fees: FeeProjection
    capital_efficiency: int
    concentration_warning: str
    missing_prices: List[str] = field(default_factory=list)

    @property
    def pool_share_percent(self) -> float:
        return self.pool_share * 100


def position_value_usd(
    amount_x: float,
    amount_y: float,
    usd_price_x: float,
    usd_price_y: float
) -> float:
    """Стоимость позиции в USD."""
    return amount_x * usd_price_x + amount_y * usd_price_y


def pool_share(position_value: float, total_liquidity_usd: Optional[float]) -> float:
    """
    Доля позиции в пуле.

    Позиция добавляется в знаменатель, чтобы не завышать долю до депозита.
    0 если позиция пустая или ликвидность пула неизвестна / нулевая.
    """
    if position_value <= 0:
        return 0.0
    if total_liquidity_usd is None or total_liquidity_usd <= 0:
        return 0.0
    return position_value / (total_liquidity_usd + position_value)


def fee_rate(bin_step: int) -> float:
    """Комиссия пула: binStep / 10000."""
    if bin_step <= 0:
        raise InvalidParameterError(f"Bin step must be positive, got {bin_step}")
    return bin_step / BASIS_POINT_MAX


def daily_fee_usd(share: float, volume_24h_usd: Optional[float], bin_step: int) -> float:
    """Дневная комиссия позиции в USD."""
    if not volume_24h_usd or volume_24h_usd < 0:
        return 0.0
    return share * volume_24h_usd * fee_rate(bin_step)


def estimated_apr(daily_fee: float, position_value: float) -> float:
    """APR в процентах. 0 для пустой позиции."""
    if position_value <= 0:
        return 0.0
    return daily_fee * 365 / position_value * 100


def range_width(min_price: float, max_price: float, current_price: float) -> float:
    """Относительная ширина диапазона: (max - min) / current."""
    if current_price <= 0:
        raise InvalidParameterError("current_price must be > 0")
    return (max_price - min_price) / current_price


def impermanent_loss_risk(
    min_price: float,
    max_price: float,
    current_price: float
) -> ImpermanentLossRisk:
    """
    Оценка риска IL по ширине диапазона.

    <0.10 -> 25% high, <0.30 -> 10% medium, <0.50 -> 5% low, иначе 2% minimal.
    Чем уже диапазон - тем выше риск.
    """
    return impermanent_loss_for_width(range_width(min_price, max_price, current_price))


def impermanent_loss_for_width(width: float) -> ImpermanentLossRisk:
    for upper, percent, level in IL_RISK_BANDS:
        if width < upper:
            return ImpermanentLossRisk(percent=percent, level=level)
    percent, level = IL_RISK_MINIMAL
    return ImpermanentLossRisk(percent=percent, level=level)


def fee_projections(daily: float) -> FeeProjection:
    """Проекции комиссий: месяц = 30 дней, год = 365 дней."""
    return FeeProjection(daily=daily, monthly=daily * 30, yearly=daily * 365)


def capital_efficiency(range_width_percent: float) -> int:
    """
    Оценка эффективности капитала (x) по ширине диапазона в %.

    Чем уже диапазон - тем выше эффективность, максимум 500x.
    """
    if range_width_percent <= 0:
        return 0
    base = min(100 / range_width_percent, 50) * 10
    return min(round(base), 500)


def range_concentration_warning(range_width_percent: float) -> str:
    """Предупреждение об узком диапазоне: high / medium / low."""
    if range_width_percent < 5:
        return "high"
    if range_width_percent < 20:
        return "medium"
    return "low"


def _resolve_price(price: PriceInput) -> Optional[float]:
    if isinstance(price, PriceSnapshot):
        return price.value
    return price


def calculate_position_metrics(
    amount_x: float,
    amount_y: float,
    price_x: PriceInput,
    price_y: PriceInput,
    pool_liquidity_usd: Optional[float],
    pool_volume_24h_usd: Optional[float],
    bin_step: int,
    liquidity_range: LiquidityRange,
    current_price: float
) -> PositionMetrics:
    """
    Расчёт всех метрик позиции.

    Args:
        amount_x, amount_y: Количество токенов (человекочитаемое)
        price_x, price_y: USD цены (float или PriceSnapshot). None - цена
            недоступна, стоимость токена считается 0
        pool_liquidity_usd: Ликвидность пула в USD
        pool_volume_24h_usd: Объём за 24ч в USD
        bin_step: Bin step пула
        liquidity_range: Выбранный диапазон цен
        current_price: Текущая цена (tokenY/tokenX)

    Returns:
        PositionMetrics
    """
    missing = []
    usd_x = _resolve_price(price_x)
    usd_y = _resolve_price(price_y)
    if usd_x is None:
        missing.append("x")
        usd_x = 0.0
    if usd_y is None:
        missing.append("y")
        usd_y = 0.0
    if missing:
        logger.warning(f"USD price unavailable for token(s) {missing}, valued at 0")

    value_x = amount_x * usd_x
    value_y = amount_y * usd_y
    value = value_x + value_y

    share = pool_share(value, pool_liquidity_usd)
    daily = daily_fee_usd(share, pool_volume_24h_usd, bin_step)
    _, _, width_percent = range_percentages(liquidity_range, current_price)

    return PositionMetrics(
        value_usd=value,
        value_x_usd=value_x,
        value_y_usd=value_y,
        pool_share=share,
        fee_rate=fee_rate(bin_step),
        estimated_apr=estimated_apr(daily, value),
        impermanent_loss=impermanent_loss_risk(
            liquidity_range.min_price, liquidity_range.max_price, current_price
        ),
        fees=fee_projections(daily),
        capital_efficiency=capital_efficiency(width_percent),
        concentration_warning=range_concentration_warning(width_percent),
        missing_prices=missing,
    )


def summarize_position_metrics(
    summary: PositionSummary,
    decimals_x: int,
    decimals_y: int,
    price_x: PriceInput,
    price_y: PriceInput,
    pool_liquidity_usd: Optional[float],
    pool_volume_24h_usd: Optional[float],
    bin_step: int,
    liquidity_range: LiquidityRange,
    current_price: float
) -> PositionMetrics:
    """Метрики для агрегированной позиции (сырые amounts -> человекочитаемые)."""
    return calculate_position_metrics(
        amount_x=float(from_raw_amount(summary.total_x, decimals_x)),
        amount_y=float(from_raw_amount(summary.total_y, decimals_y)),
        price_x=price_x,
        price_y=price_y,
        pool_liquidity_usd=pool_liquidity_usd,
        pool_volume_24h_usd=pool_volume_24h_usd,
        bin_step=bin_step,
        liquidity_range=liquidity_range,
        current_price=current_price,
    )
