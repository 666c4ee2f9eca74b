"""
Liquidity Book Pair Reader

Чтение состояния LBPair: активный бин, резервы бинов, доли пользователя.
Все чтения бинов идут ОДНОЙ волной через Multicall3 (allowFailure=True),
упавшие чтения превращаются в None и не прерывают агрегацию.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from web3 import Web3

from ..errors import DataUnavailableError
from ..math.positions import (
    DEFAULT_SCAN_RADIUS,
    BinReading,
    PositionSummary,
    aggregate_positions,
    scan_bin_ids,
)
from ..multicall.batcher import MULTICALL3_ADDRESS, MulticallBatcher
from .abis import LB_PAIR_ABI

logger = logging.getLogger(__name__)

# Function selectors
BALANCE_OF_SELECTOR = Web3.keccak(text="balanceOf(address,uint256)")[:4]
GET_BIN_SELECTOR = Web3.keccak(text="getBin(uint24)")[:4]
TOTAL_SUPPLY_SELECTOR = Web3.keccak(text="totalSupply(uint256)")[:4]


def decode_uint256(data: bytes) -> int:
    return decode(['uint256'], data)[0]


def decode_bin_reserves(data: bytes) -> Tuple[int, int]:
    reserve_x, reserve_y = decode(['uint128', 'uint128'], data)
    return reserve_x, reserve_y


def encode_balance_of(owner: str, bin_id: int) -> bytes:
    return BALANCE_OF_SELECTOR + encode(['address', 'uint256'], [owner, bin_id])


def encode_get_bin(bin_id: int) -> bytes:
    return GET_BIN_SELECTOR + encode(['uint24'], [bin_id])


def encode_total_supply(bin_id: int) -> bytes:
    return TOTAL_SUPPLY_SELECTOR + encode(['uint256'], [bin_id])


class PairReader:
    """
    Чтение данных одной LB пары.

    Использование:
    ```python
    reader = PairReader(w3, pair_address)
    summary = reader.get_user_positions(owner, radius=50)
    for position in summary.positions:
        print(position.bin_id, position.amount_x, position.amount_y)
    ```
    """

    def __init__(
        self,
        w3: Web3,
        pair_address: str,
        multicall_address: str = MULTICALL3_ADDRESS
    ):
        self.w3 = w3
        self.pair_address = Web3.to_checksum_address(pair_address)
        self.multicall_address = multicall_address
        self.pair = w3.eth.contract(address=self.pair_address, abi=LB_PAIR_ABI)

    def get_active_id(self) -> int:
        """
        Активный бин пары.

        Raises:
            DataUnavailableError: если чтение не удалось
        """
        try:
            return self.pair.functions.getActiveId().call()
        except Exception as e:
            raise DataUnavailableError(f"Failed to read active id of {self.pair_address}: {e}") from e

    def get_bin_step(self) -> int:
        try:
            return self.pair.functions.getBinStep().call()
        except Exception as e:
            raise DataUnavailableError(f"Failed to read bin step of {self.pair_address}: {e}") from e

    def get_tokens(self) -> Tuple[str, str]:
        """(tokenX, tokenY) пары."""
        try:
            token_x = self.pair.functions.getTokenX().call()
            token_y = self.pair.functions.getTokenY().call()
        except Exception as e:
            raise DataUnavailableError(f"Failed to read tokens of {self.pair_address}: {e}") from e
        return token_x, token_y

    def balance_of(self, owner: str, bin_id: int) -> Optional[int]:
        """Доли owner в бине. None если чтение не удалось."""
        try:
            return self.pair.functions.balanceOf(Web3.to_checksum_address(owner), bin_id).call()
        except Exception as e:
            logger.debug(f"balanceOf({bin_id}) failed: {e}")
            return None

    def get_bin(self, bin_id: int) -> Optional[Tuple[int, int]]:
        """(reserveX, reserveY) бина. None если чтение не удалось."""
        try:
            reserve_x, reserve_y = self.pair.functions.getBin(bin_id).call()
        except Exception as e:
            logger.debug(f"getBin({bin_id}) failed: {e}")
            return None
        return reserve_x, reserve_y

    def total_supply(self, bin_id: int) -> Optional[int]:
        """Общее количество долей бина. None если чтение не удалось."""
        try:
            return self.pair.functions.totalSupply(bin_id).call()
        except Exception as e:
            logger.debug(f"totalSupply({bin_id}) failed: {e}")
            return None

    def read_bins(self, owner: str, bin_ids: Sequence[int]) -> List[BinReading]:
        """
        Батч-чтение balanceOf / getBin / totalSupply для списка бинов.

        Один aggregate3 на все бины: 3 вызова на бин.

        Args:
            owner: Адрес владельца долей
            bin_ids: Бины для чтения

        Returns:
            Список BinReading (None в полях упавших чтений)
        """
        if not bin_ids:
            return []

        owner = Web3.to_checksum_address(owner)
        batcher = MulticallBatcher(self.w3, self.multicall_address)

        for bin_id in bin_ids:
            batcher.add_call(self.pair_address, encode_balance_of(owner, bin_id), decode_uint256)
            batcher.add_call(self.pair_address, encode_get_bin(bin_id), decode_bin_reserves)
            batcher.add_call(self.pair_address, encode_total_supply(bin_id), decode_uint256)

        results = batcher.execute()

        readings = []
        for i, bin_id in enumerate(bin_ids):
            balance, reserves, supply = results[i * 3:i * 3 + 3]
            reserve_x, reserve_y = reserves if reserves is not None else (None, None)
            readings.append(BinReading(
                bin_id=bin_id,
                share_balance=balance,
                reserve_x=reserve_x,
                reserve_y=reserve_y,
                total_supply=supply,
            ))

        logger.debug(f"Read {len(readings)} bins of {self.pair_address}")
        return readings

    def get_user_positions(
        self,
        owner: str,
        radius: int = DEFAULT_SCAN_RADIUS,
        active_id: int = None
    ) -> PositionSummary:
        """
        Позиции пользователя в пределах ±radius бинов от активного.

        Args:
            owner: Адрес владельца
            radius: Радиус сканирования (больше радиус - больше вызовов)
            active_id: Активный бин (если None - читается из пары)

        Returns:
            PositionSummary, позиции по возрастанию bin_id
        """
        if active_id is None:
            active_id = self.get_active_id()
        bin_ids = scan_bin_ids(active_id, radius)

        summary = aggregate_positions(self.read_bins(owner, bin_ids))
        logger.info(
            f"Positions of {owner[:10]}... in {self.pair_address[:10]}...: "
            f"{summary.bin_count} bins, X={summary.total_x}, Y={summary.total_y}"
        )
        return summary
