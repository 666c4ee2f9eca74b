"""
Liquidity Book Bin Mathematics

Основные формулы:
- ratio = 1 + binStep / 10000
- price(id) = ratio^(id - 2^23)
- id = round(log(price) / log(ratio) + 2^23)

Bin step по fee tier:
- 1   -> 0.01%
- 25  -> 0.25%
- 100 -> 1.00%

Цена всегда в формате tokenY/tokenX для канонического порядка токенов
(tokenX = меньший адрес).
"""

import logging
import math
from typing import Tuple

from ..errors import InvalidParameterError

logger = logging.getLogger(__name__)

# Константы
ACTIVE_CENTER = 2 ** 23  # 8388608, price = 1.0
MAX_BIN_ID = 2 ** 24 - 1
BASIS_POINT_MAX = 10000

# Bin step -> fee tier label
BIN_STEPS = (1, 2, 5, 10, 15, 20, 25, 50, 100)


def validate_bin_step(bin_step: int, allow_custom: bool = True) -> int:
    """
    Проверка bin step.

    Args:
        bin_step: Bin step пула (1 = 0.01%)
        allow_custom: Разрешить bin step вне стандартного набора BIN_STEPS

    Returns:
        bin_step (int)

    Raises:
        InvalidParameterError: bin_step <= 0, не целое, или нестандартный при allow_custom=False
    """
    if isinstance(bin_step, bool) or not isinstance(bin_step, int):
        raise InvalidParameterError(f"Bin step must be an integer, got {bin_step!r}")
    if bin_step <= 0:
        raise InvalidParameterError(f"Bin step must be positive, got {bin_step}")
    if not allow_custom and bin_step not in BIN_STEPS:
        raise InvalidParameterError(
            f"Unknown bin step: {bin_step}. Valid bin steps are: {list(BIN_STEPS)}"
        )
    return bin_step


def get_bin_step_ratio(bin_step: int) -> float:
    """Геометрический шаг между соседними бинами: 1 + binStep/10000."""
    validate_bin_step(bin_step)
    return 1 + bin_step / BASIS_POINT_MAX


def price_to_bin_id(price: float, bin_step: int, invert: bool = False) -> int:
    """
    Конвертация цены в bin id.

    id = round(log(price) / log(1 + binStep/10000) + 2^23)

    Округление - встроенный round() Python, т.е. round-half-to-even:
    точное .5 уходит к чётному id.

    Args:
        price: Цена tokenY/tokenX (канонический порядок)
               ИЛИ цена в пользовательском порядке если invert=True
        bin_step: Bin step пула
        invert: Если True, инвертирует цену (1/price) перед расчётом.
            Используется когда пользовательский tokenX имеет БОЛЬШИЙ адрес
            (после сортировки он станет tokenY пула).

    Returns:
        Bin id (целое число в [0, 2^24))

    Note:
        price <= 0 не вызывает ошибку: возвращается ACTIVE_CENTER (цена 1.0).
        Поведение сохранено для совместимости, но логируется как warning.

    Example:
        >>> price_to_bin_id(1.0, 25)
        8388608
        >>> price_to_bin_id(1.0025, 25)
        8388609
    """
    validate_bin_step(bin_step)

    if price <= 0:
        logger.warning(
            f"Non-positive price {price} for bin step {bin_step}, "
            f"falling back to ACTIVE_CENTER ({ACTIVE_CENTER})"
        )
        return ACTIVE_CENTER

    if invert:
        price = 1.0 / price

    bin_id = round(math.log(price) / math.log(get_bin_step_ratio(bin_step)) + ACTIVE_CENTER)
    return max(0, min(MAX_BIN_ID, bin_id))


def bin_id_to_price(bin_id: int, bin_step: int, invert: bool = False) -> float:
    """
    Конвертация bin id в цену.

    Args:
        bin_id: Bin id
        bin_step: Bin step пула
        invert: Если True, возвращает цену tokenX/tokenY

    Returns:
        Цена tokenY/tokenX (или tokenX/tokenY если invert=True)

    Example:
        >>> bin_id_to_price(8388608, 25)
        1.0
    """
    try:
        price = get_bin_step_ratio(bin_step) ** (bin_id - ACTIVE_CENTER)
    except OverflowError:
        # Верхний край диапазона id при больших bin step
        price = math.inf
    if invert:
        # Нижний край уходит в 0.0 (underflow)
        return 1.0 / price if price else math.inf
    return price


def price_range_to_bin_range(
    min_price: float,
    max_price: float,
    bin_step: int
) -> Tuple[int, int]:
    """
    Диапазон цен -> диапазон bin id (включительно).

    Raises:
        InvalidParameterError: если min_price >= max_price или цены не положительные
    """
    if min_price <= 0 or max_price <= 0:
        raise InvalidParameterError("Prices must be positive")
    if min_price >= max_price:
        raise InvalidParameterError(
            f"min_price ({min_price}) must be less than max_price ({max_price})"
        )
    return price_to_bin_id(min_price, bin_step), price_to_bin_id(max_price, bin_step)


def get_bin_range_prices(low_id: int, high_id: int, bin_step: int) -> Tuple[float, float]:
    """Цены для диапазона bin id."""
    return bin_id_to_price(low_id, bin_step), bin_id_to_price(high_id, bin_step)


# ============================================================
# TOKEN ORDERING
# ============================================================

def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    """
    Канонический порядок токенов: tokenX - меньший адрес.

    Returns:
        (token_x, token_y)
    """
    if token_a.lower() == token_b.lower():
        raise InvalidParameterError("Tokens must be different")
    if token_a.lower() < token_b.lower():
        return token_a, token_b
    return token_b, token_a


def needs_inversion(ui_token_x: str, ui_token_y: str) -> bool:
    """True если пользовательский tokenX после сортировки станет tokenY пула."""
    return ui_token_x.lower() > ui_token_y.lower()


def to_canonical_price(price: float, ui_token_x: str, ui_token_y: str) -> float:
    """
    Перевод цены из пользовательского порядка в канонический.

    UI цена: "1 UI_tokenX = price UI_tokenY".
    Если UI_tokenX имеет больший адрес, в пуле он станет tokenY,
    поэтому каноническая цена = 1/price.

    Example:
        >>> to_canonical_price(2000, "0x9999...", "0x1111...")
        0.0005
    """
    if needs_inversion(ui_token_x, ui_token_y):
        return 1.0 / price
    return price


def ui_price_to_bin_id(
    price: float,
    bin_step: int,
    ui_token_x: str,
    ui_token_y: str
) -> int:
    """Bin id для цены, введённой в пользовательском порядке токенов."""
    if price <= 0:
        return price_to_bin_id(price, bin_step)
    return price_to_bin_id(to_canonical_price(price, ui_token_x, ui_token_y), bin_step)
