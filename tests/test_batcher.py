"""
Tests for MulticallBatcher.

Батчинг view-вызовов через Multicall3.aggregate3: декодирование,
allowFailure, fallback на поштучные eth_call.
Все тесты работают без реального блокчейна.
"""

import pytest
from unittest.mock import Mock
from eth_abi import encode
from web3 import Web3

from lb_engine.multicall.batcher import MulticallBatcher, Call3, MULTICALL3_ADDRESS


# ---------------------------------------------------------------------------
# Тестовые константы
# ---------------------------------------------------------------------------

PAIR = "0x2222222222222222222222222222222222222222"


def decode_uint(data: bytes) -> int:
    return int.from_bytes(data[:32], 'big')


def _set_aggregate3(contract, return_value=None, side_effect=None):
    call = Mock(return_value=return_value, side_effect=side_effect)
    contract.functions.aggregate3 = Mock(return_value=Mock(call=call))
    return contract.functions.aggregate3


# ---------------------------------------------------------------------------
# Call3 dataclass
# ---------------------------------------------------------------------------

class TestCall3:
    """Тесты для структуры Call3."""

    def test_to_tuple(self):
        call = Call3(target=PAIR, allow_failure=True, call_data=b'\x01\x02')
        assert call.to_tuple() == (Web3.to_checksum_address(PAIR), True, b'\x01\x02')

    def test_to_tuple_checksum_address(self):
        addr = "0xca11bde05977b3631167028862be2a173976ca11"
        call = Call3(target=addr, allow_failure=False, call_data=b'\x00')
        assert call.to_tuple()[0] == MULTICALL3_ADDRESS


# ---------------------------------------------------------------------------
# MulticallBatcher
# ---------------------------------------------------------------------------

class TestMulticallBatcher:

    @pytest.fixture
    def batcher(self, mock_w3, mock_contract):
        return MulticallBatcher(mock_w3)

    def test_initial_empty(self, batcher):
        assert len(batcher) == 0
        assert batcher.execute() == []

    def test_add_and_clear(self, batcher):
        batcher.add_call(PAIR, b'\x01')
        batcher.add_call(PAIR, b'\x02', allow_failure=False)
        assert len(batcher) == 2
        assert batcher.calls[1].allow_failure is False
        batcher.clear()
        assert len(batcher) == 0

    def test_uses_multicall_address(self, mock_w3, mock_contract):
        MulticallBatcher(mock_w3)
        assert mock_w3.eth.contract.call_args.kwargs['address'] == MULTICALL3_ADDRESS

    def test_execute_decodes_results(self, batcher, mock_contract):
        aggregate3 = _set_aggregate3(mock_contract, return_value=[
            (True, encode(['uint256'], [42])),
            (True, encode(['uint256'], [7])),
        ])
        batcher.add_call(PAIR, b'\x01', decoder=decode_uint)
        batcher.add_call(PAIR, b'\x02', decoder=decode_uint)

        assert batcher.execute() == [42, 7]
        aggregate3.assert_called_once()
        calls_data = aggregate3.call_args.args[0]
        assert calls_data == [
            (Web3.to_checksum_address(PAIR), True, b'\x01'),
            (Web3.to_checksum_address(PAIR), True, b'\x02'),
        ]

    def test_raw_bytes_without_decoder(self, batcher, mock_contract):
        _set_aggregate3(mock_contract, return_value=[(True, b'\xab')])
        batcher.add_call(PAIR, b'\x01')
        assert batcher.execute() == [b'\xab']

    def test_failed_call_gives_none(self, batcher, mock_contract):
        _set_aggregate3(mock_contract, return_value=[
            (False, b''),
            (True, encode(['uint256'], [5])),
        ])
        batcher.add_call(PAIR, b'\x01', decoder=decode_uint)
        batcher.add_call(PAIR, b'\x02', decoder=decode_uint)
        assert batcher.execute() == [None, 5]

    def test_failed_required_call_raises(self, batcher, mock_contract):
        _set_aggregate3(mock_contract, return_value=[(False, b'')])
        batcher.add_call(PAIR, b'\x01', allow_failure=False)
        with pytest.raises(RuntimeError, match="Required call 0"):
            batcher.execute()

    def test_decoder_error_gives_none(self, batcher, mock_contract):
        _set_aggregate3(mock_contract, return_value=[(True, b'\x00')])

        def bad_decoder(data):
            raise ValueError("short data")

        batcher.add_call(PAIR, b'\x01', decoder=bad_decoder)
        assert batcher.execute() == [None]

    def test_fallback_to_individual_calls(self, batcher, mock_w3, mock_contract):
        """aggregate3 упал -> каждый вызов выполняется отдельно через eth_call."""
        _set_aggregate3(mock_contract, side_effect=Exception("multicall not deployed"))
        mock_w3.eth.call.side_effect = [
            encode(['uint256'], [11]),
            Exception("execution reverted"),
        ]
        batcher.add_call(PAIR, b'\x01', decoder=decode_uint)
        batcher.add_call(PAIR, b'\x02', decoder=decode_uint)

        assert batcher.execute() == [11, None]
        assert mock_w3.eth.call.call_count == 2
        first_tx = mock_w3.eth.call.call_args_list[0].args[0]
        assert first_tx == {'to': Web3.to_checksum_address(PAIR), 'data': b'\x01'}

    def test_fallback_required_call_propagates(self, batcher, mock_w3, mock_contract):
        _set_aggregate3(mock_contract, side_effect=Exception("rpc down"))
        mock_w3.eth.call.side_effect = Exception("rpc down")
        batcher.add_call(PAIR, b'\x01', allow_failure=False)
        with pytest.raises(Exception, match="rpc down"):
            batcher.execute()
