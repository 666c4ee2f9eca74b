"""
Position aggregation for Liquidity Book pairs.

Пользователь владеет долями (shares) в каждом бине. Количество токенов:
- amountX = shareBalance * binReserveX / binTotalSupply
- amountY = shareBalance * binReserveY / binTotalSupply

Целочисленное деление (truncation). При totalSupply == 0 оба количества = 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..errors import InvalidParameterError
from .bins import MAX_BIN_ID, bin_id_to_price

logger = logging.getLogger(__name__)

DEFAULT_SCAN_RADIUS = 50


@dataclass(frozen=True)
class BinReading:
    """Сырые данные одного бина. None - чтение не удалось."""
    bin_id: int
    share_balance: Optional[int]
    reserve_x: Optional[int] = None
    reserve_y: Optional[int] = None
    total_supply: Optional[int] = None


@dataclass(frozen=True)
class BinPosition:
    """Доля пользователя в одном бине."""
    bin_id: int
    share_balance: int
    reserve_x: int
    reserve_y: int
    total_supply: int

    @property
    def amount_x(self) -> int:
        return calculate_bin_amounts(
            self.share_balance, self.reserve_x, self.reserve_y, self.total_supply
        )[0]

    @property
    def amount_y(self) -> int:
        return calculate_bin_amounts(
            self.share_balance, self.reserve_x, self.reserve_y, self.total_supply
        )[1]

    def price(self, bin_step: int) -> float:
        """Цена бина (tokenY/tokenX)."""
        return bin_id_to_price(self.bin_id, bin_step)


@dataclass
class PositionSummary:
    """Результат агрегации позиций по бинам."""
    positions: List[BinPosition] = field(default_factory=list)
    total_x: int = 0
    total_y: int = 0
    skipped_bins: int = 0

    @property
    def bin_count(self) -> int:
        return len(self.positions)

    @property
    def bin_ids(self) -> List[int]:
        return [p.bin_id for p in self.positions]

    @property
    def is_empty(self) -> bool:
        return not self.positions

    def split_by_active(self, active_id: int) -> Tuple[List[BinPosition], List[BinPosition]]:
        """
        Разделение позиций относительно активного бина.

        Returns:
            (below, at_or_above) - бины строго ниже active_id и остальные
        """
        below = [p for p in self.positions if p.bin_id < active_id]
        above = [p for p in self.positions if p.bin_id >= active_id]
        return below, above


def scan_bin_ids(active_id: int, radius: int = DEFAULT_SCAN_RADIUS) -> List[int]:
    """
    Bin id для сканирования: [active_id - radius, active_id + radius].

    Границы обрезаются до допустимого диапазона [0, 2^24).
    """
    if radius < 0:
        raise InvalidParameterError(f"Scan radius must be >= 0, got {radius}")
    low = max(0, active_id - radius)
    high = min(MAX_BIN_ID, active_id + radius)
    return list(range(low, high + 1))


def calculate_bin_amounts(
    share_balance: int,
    reserve_x: int,
    reserve_y: int,
    total_supply: int
) -> Tuple[int, int]:
    """
    Расчёт доли пользователя в резервах бина.

    Example:
        >>> calculate_bin_amounts(50, 1000, 0, 200)
        (250, 0)
        >>> calculate_bin_amounts(50, 1000, 500, 0)
        (0, 0)
    """
    if total_supply <= 0:
        return 0, 0
    amount_x = share_balance * reserve_x // total_supply
    amount_y = share_balance * reserve_y // total_supply
    return amount_x, amount_y


def aggregate_positions(readings: Iterable[BinReading]) -> PositionSummary:
    """
    Агрегация сырых чтений в позиции пользователя.

    - Бин без баланса (0 или ошибка чтения) исключается
    - Ошибка чтения резервов/supply считается как 0 (бин остаётся, amounts = 0)
    - Результат отсортирован по bin_id

    Args:
        readings: Чтения бинов в любом порядке

    Returns:
        PositionSummary
    """
    positions = []
    skipped = 0

    for reading in readings:
        if reading.share_balance is None:
            skipped += 1
            logger.debug(f"Bin {reading.bin_id}: balance unavailable, skipped")
            continue
        if reading.share_balance <= 0:
            continue

        if reading.reserve_x is None or reading.reserve_y is None or reading.total_supply is None:
            logger.debug(f"Bin {reading.bin_id}: reserves or supply unavailable, treated as 0")

        positions.append(BinPosition(
            bin_id=reading.bin_id,
            share_balance=reading.share_balance,
            reserve_x=reading.reserve_x or 0,
            reserve_y=reading.reserve_y or 0,
            total_supply=reading.total_supply or 0,
        ))

    positions.sort(key=lambda p: p.bin_id)

    summary = PositionSummary(
        positions=positions,
        total_x=sum(p.amount_x for p in positions),
        total_y=sum(p.amount_y for p in positions),
        skipped_bins=skipped,
    )

    if skipped:
        logger.warning(f"{skipped} bins skipped due to failed balance reads")

    return summary


def build_withdrawal(
    positions: Iterable[BinPosition],
    percent: float = 100
) -> Tuple[List[int], List[int]]:
    """
    Параметры вывода ликвидности: (bin_ids, amounts).

    amount = share_balance * percent / 100 (целочисленно).

    Args:
        positions: Позиции для вывода
        percent: Процент вывода в (0, 100]
    """
    if not 0 < percent <= 100:
        raise InvalidParameterError(f"Withdrawal percent must be in (0, 100], got {percent}")

    # Проценты в базисных пунктах, чтобы остаться в целых числах
    percent_bips = int(round(percent * 100))
    if percent_bips == 0:
        raise InvalidParameterError(f"Withdrawal percent too small (min 0.01%), got {percent}")

    bin_ids = []
    amounts = []
    for position in sorted(positions, key=lambda p: p.bin_id):
        amount = position.share_balance * percent_bips // 10000
        if amount <= 0:
            continue
        bin_ids.append(position.bin_id)
        amounts.append(amount)
    return bin_ids, amounts
