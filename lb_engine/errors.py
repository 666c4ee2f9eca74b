"""
Liquidity Book engine exceptions.

InvalidParameterError  - bad caller input, raised before any external call
DataUnavailableError   - a required external read failed
PriceSourceError       - USD price API failed (absorbed by fallback prices)
"""


class LiquidityBookError(Exception):
    """Базовая ошибка движка."""
    pass


class InvalidParameterError(LiquidityBookError, ValueError):
    """Некорректный параметр (bin step, диапазон, slippage...)."""
    pass


class DataUnavailableError(LiquidityBookError):
    """Внешнее чтение не удалось или вернуло пустой результат."""
    pass


class PriceSourceError(DataUnavailableError):
    """Ошибка API цен."""
    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)
