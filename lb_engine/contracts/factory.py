"""
Liquidity Book Factory Integration

Поиск адреса LB пары по (tokenX, tokenY, binStep).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from ..math.bins import sort_tokens, validate_bin_step
from .abis import LB_FACTORY_ABI

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass
class PairInfo:
    """Информация о паре из фабрики."""
    address: str
    token_x: str
    token_y: str
    bin_step: int
    created_by_owner: bool
    ignored_for_routing: bool


class LBFactory:
    """Чтение пар из LBFactory."""

    def __init__(self, w3: Web3, factory_address: str):
        self.w3 = w3
        self.factory_address = Web3.to_checksum_address(factory_address)
        self.factory = w3.eth.contract(address=self.factory_address, abi=LB_FACTORY_ABI)

    def get_pair_info(self, token_a: str, token_b: str, bin_step: int) -> Optional[PairInfo]:
        """
        Получение информации о паре.

        Токены сортируются (меньший адрес = tokenX).

        Args:
            token_a: Адрес первого токена
            token_b: Адрес второго токена
            bin_step: Шаг бина (basis points)

        Returns:
            PairInfo или None если пара не существует / чтение не удалось
        """
        validate_bin_step(bin_step)
        token_x, token_y = sort_tokens(token_a, token_b)
        token_x = Web3.to_checksum_address(token_x)
        token_y = Web3.to_checksum_address(token_y)

        try:
            info = self.factory.functions.getLBPairInformation(token_x, token_y, bin_step).call()
        except Exception as e:
            logger.warning(f"getLBPairInformation({token_x[:10]}..., {token_y[:10]}..., {bin_step}) failed: {e}")
            return None

        pair_bin_step, pair_address, created_by_owner, ignored_for_routing = info
        if pair_address == ZERO_ADDRESS:
            return None

        return PairInfo(
            address=pair_address,
            token_x=token_x,
            token_y=token_y,
            bin_step=pair_bin_step,
            created_by_owner=created_by_owner,
            ignored_for_routing=ignored_for_routing,
        )

    def get_pair(self, token_a: str, token_b: str, bin_step: int) -> Optional[str]:
        """Адрес пары или None если пара не существует."""
        info = self.get_pair_info(token_a, token_b, bin_step)
        return info.address if info else None
