"""
Liquidity Book Quoter

Котировка маршрута через LBQuoter.findBestPathFromAmountIn (view, без газа).
"""

import logging
from typing import Sequence

from web3 import Web3

from ..errors import DataUnavailableError, InvalidParameterError
from ..math.quote import Quote
from .abis import LB_QUOTER_ABI

logger = logging.getLogger(__name__)


class LBQuoter:
    """
    Использование:
    ```python
    quoter = LBQuoter(w3, config.lb_quoter)
    quote = quoter.find_best_path_from_amount_in([weth, usdc], 10**18)
    plan = plan_quote(quote, output_decimals=6, slippage_percent=0.5)
    ```
    """

    def __init__(self, w3: Web3, quoter_address: str):
        self.w3 = w3
        self.quoter_address = Web3.to_checksum_address(quoter_address)
        self.quoter = w3.eth.contract(address=self.quoter_address, abi=LB_QUOTER_ABI)

    def find_best_path_from_amount_in(self, route: Sequence[str], amount_in: int) -> Quote:
        """
        Лучший путь для точного входа.

        Args:
            route: Адреса токенов маршрута [tokenIn, ..., tokenOut]
            amount_in: Количество входного токена (raw)

        Returns:
            Quote

        Raises:
            InvalidParameterError: маршрут короче 2 токенов или amount_in <= 0
            DataUnavailableError: вызов квотера не удался
        """
        if len(route) < 2:
            raise InvalidParameterError(f"Route must contain at least 2 tokens, got {len(route)}")
        if amount_in <= 0:
            raise InvalidParameterError(f"amount_in must be positive, got {amount_in}")

        path = [Web3.to_checksum_address(token) for token in route]

        try:
            result = self.quoter.functions.findBestPathFromAmountIn(path, amount_in).call()
        except Exception as e:
            raise DataUnavailableError(f"Quote failed for route {path}: {e}") from e

        route_out, pairs, bin_steps, _versions, amounts, virtual_amounts, fees = result

        quote = Quote(
            amounts=tuple(amounts),
            virtual_amounts_without_slippage=tuple(virtual_amounts),
            route=tuple(route_out),
            pairs=tuple(pairs),
            bin_steps=tuple(bin_steps),
            fees=tuple(fees),
        )
        logger.debug(f"Quote {amount_in} -> {quote.amount_out} (virtual {quote.virtual_amount_out})")
        return quote
