"""
Multicall3 Read Batcher

Батчинг нескольких view-вызовов в один eth_call через Multicall3.aggregate3.
Позволяет прочитать балансы/резервы 100+ бинов одним запросом.

Адрес Multicall3 (одинаковый на всех EVM сетях):
0xcA11bde05977b3631167028862bE2a173976CA11
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from web3 import Web3

from ..contracts.abis import MULTICALL3_ABI

logger = logging.getLogger(__name__)

# Multicall3 deployed at same address on all chains
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"


@dataclass
class Call3:
    """Структура вызова для Multicall3."""
    target: str          # Адрес контракта
    allow_failure: bool  # Разрешить ли провал этого вызова
    call_data: bytes     # Закодированные данные вызова

    def to_tuple(self) -> tuple:
        return (
            Web3.to_checksum_address(self.target),
            self.allow_failure,
            self.call_data
        )


class MulticallBatcher:
    """
    Батчер view-вызовов через Multicall3.

    Использование:
    ```python
    batcher = MulticallBatcher(w3)
    batcher.add_call(pair, call_data, decoder=decode_uint256)
    results = batcher.execute()  # None для упавших вызовов
    ```
    """

    def __init__(self, w3: Web3, multicall_address: str = MULTICALL3_ADDRESS):
        self.w3 = w3
        self.multicall = w3.eth.contract(
            address=Web3.to_checksum_address(multicall_address),
            abi=MULTICALL3_ABI
        )
        self.calls: List[Call3] = []
        self._decoders: List[Optional[Callable[[bytes], Any]]] = []

    def clear(self):
        """Очистка списка вызовов."""
        self.calls = []
        self._decoders = []

    def add_call(
        self,
        target: str,
        call_data: bytes,
        decoder: Callable[[bytes], Any] = None,
        allow_failure: bool = True
    ):
        """
        Добавление вызова в батч.

        Args:
            target: Адрес контракта
            call_data: Закодированные данные вызова
            decoder: Функция декодирования результата (bytes -> значение)
            allow_failure: Если True, батч продолжается при провале вызова
        """
        self.calls.append(Call3(
            target=target,
            allow_failure=allow_failure,
            call_data=call_data
        ))
        self._decoders.append(decoder)

    def execute(self) -> List[Any]:
        """
        Выполнение всех вызовов одним aggregate3.

        Returns:
            Список декодированных результатов (None если вызов упал
            или результат не удалось декодировать)

        Raises:
            RuntimeError: если упал вызов с allow_failure=False
        """
        if not self.calls:
            return []

        calls_data = [call.to_tuple() for call in self.calls]

        try:
            raw_results = self.multicall.functions.aggregate3(calls_data).call()
        except Exception as e:
            logger.error(f"Multicall failed ({len(self.calls)} calls): {e}")
            return self._fallback_execute()

        results = []
        for i, (success, return_data) in enumerate(raw_results):
            if not success:
                if not self.calls[i].allow_failure:
                    raise RuntimeError(f"Required call {i} to {self.calls[i].target} failed")
                results.append(None)
                continue
            results.append(self._decode(i, return_data))

        failed = sum(1 for r in results if r is None)
        logger.debug(f"Multicall executed: {len(results)} calls, {failed} failed")
        return results

    def _decode(self, index: int, return_data: bytes) -> Any:
        decoder = self._decoders[index]
        if decoder is None:
            return return_data
        try:
            return decoder(return_data)
        except Exception as e:
            logger.warning(f"Failed to decode result {index}: {e}")
            return None

    def _fallback_execute(self) -> List[Any]:
        """Fallback: выполнение вызовов по одному."""
        results = []
        for i, call in enumerate(self.calls):
            try:
                raw = self.w3.eth.call({
                    'to': Web3.to_checksum_address(call.target),
                    'data': call.call_data
                })
            except Exception as e:
                if not call.allow_failure:
                    raise
                logger.warning(f"Individual call {i} failed: {e}")
                results.append(None)
                continue
            results.append(self._decode(i, bytes(raw)))
        return results

    def __len__(self) -> int:
        return len(self.calls)
