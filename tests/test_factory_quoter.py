"""
Tests for LBFactory and LBQuoter adapters.
"""

import pytest
from unittest.mock import Mock

from lb_engine.errors import DataUnavailableError, InvalidParameterError
from lb_engine.contracts.factory import LBFactory, ZERO_ADDRESS
from lb_engine.contracts.quoter import LBQuoter


FACTORY = "0x1111111111111111111111111111111111111110"
QUOTER = "0x3333333333333333333333333333333333333333"
PAIR = "0x2222222222222222222222222222222222222222"
TOKEN_LOW = "0x1111111111111111111111111111111111111111"
TOKEN_HIGH = "0x9999999999999999999999999999999999999999"


def _set_call(contract, name, return_value=None, side_effect=None):
    fn = Mock(return_value=Mock(call=Mock(return_value=return_value, side_effect=side_effect)))
    setattr(contract.functions, name, fn)
    return fn


# ---------------------------------------------------------------------------
# LBFactory
# ---------------------------------------------------------------------------

class TestLBFactory:

    @pytest.fixture
    def factory(self, mock_w3, mock_contract):
        return LBFactory(mock_w3, FACTORY)

    def test_get_pair(self, factory, mock_contract):
        fn = _set_call(mock_contract, "getLBPairInformation", (25, PAIR, True, False))
        assert factory.get_pair(TOKEN_LOW, TOKEN_HIGH, 25) == PAIR
        fn.assert_called_once_with(TOKEN_LOW, TOKEN_HIGH, 25)

    def test_tokens_sorted(self, factory, mock_contract):
        fn = _set_call(mock_contract, "getLBPairInformation", (25, PAIR, True, False))
        factory.get_pair(TOKEN_HIGH, TOKEN_LOW, 25)
        fn.assert_called_once_with(TOKEN_LOW, TOKEN_HIGH, 25)

    def test_pair_info(self, factory, mock_contract):
        _set_call(mock_contract, "getLBPairInformation", (25, PAIR, False, True))
        info = factory.get_pair_info(TOKEN_HIGH, TOKEN_LOW, 25)
        assert info.address == PAIR
        assert info.token_x == TOKEN_LOW
        assert info.token_y == TOKEN_HIGH
        assert info.bin_step == 25
        assert info.created_by_owner is False
        assert info.ignored_for_routing is True

    def test_missing_pair_gives_none(self, factory, mock_contract):
        _set_call(mock_contract, "getLBPairInformation", (0, ZERO_ADDRESS, False, False))
        assert factory.get_pair(TOKEN_LOW, TOKEN_HIGH, 25) is None

    def test_failed_read_gives_none(self, factory, mock_contract):
        _set_call(mock_contract, "getLBPairInformation", side_effect=Exception("rpc error"))
        assert factory.get_pair(TOKEN_LOW, TOKEN_HIGH, 25) is None

    def test_invalid_bin_step_raises(self, factory):
        with pytest.raises(InvalidParameterError):
            factory.get_pair(TOKEN_LOW, TOKEN_HIGH, 0)

    def test_same_tokens_raise(self, factory):
        with pytest.raises(InvalidParameterError):
            factory.get_pair(TOKEN_LOW, TOKEN_LOW, 25)


# ---------------------------------------------------------------------------
# LBQuoter
# ---------------------------------------------------------------------------

class TestLBQuoter:

    @pytest.fixture
    def quoter(self, mock_w3, mock_contract):
        return LBQuoter(mock_w3, QUOTER)

    def _result(self):
        return (
            [TOKEN_LOW, TOKEN_HIGH],      # route
            [PAIR],                       # pairs
            [25],                         # binSteps
            [2],                          # versions
            [10**18, 3490 * 10**6],       # amounts
            [10**18, 3500 * 10**6],       # virtualAmountsWithoutSlippage
            [25 * 10**14],                # fees
        )

    def test_quote(self, quoter, mock_contract):
        fn = _set_call(mock_contract, "findBestPathFromAmountIn", self._result())
        quote = quoter.find_best_path_from_amount_in([TOKEN_LOW, TOKEN_HIGH], 10**18)

        fn.assert_called_once_with([TOKEN_LOW, TOKEN_HIGH], 10**18)
        assert quote.amount_out == 3490 * 10**6
        assert quote.virtual_amount_out == 3500 * 10**6
        assert quote.route == (TOKEN_LOW, TOKEN_HIGH)
        assert quote.pairs == (PAIR,)
        assert quote.bin_steps == (25,)
        assert quote.fees == (25 * 10**14,)

    def test_quote_failure_raises(self, quoter, mock_contract):
        _set_call(mock_contract, "findBestPathFromAmountIn", side_effect=Exception("revert"))
        with pytest.raises(DataUnavailableError, match="Quote failed"):
            quoter.find_best_path_from_amount_in([TOKEN_LOW, TOKEN_HIGH], 10**18)

    def test_short_route_raises(self, quoter):
        with pytest.raises(InvalidParameterError):
            quoter.find_best_path_from_amount_in([TOKEN_LOW], 10**18)

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_raises(self, quoter, amount):
        with pytest.raises(InvalidParameterError):
            quoter.find_best_path_from_amount_in([TOKEN_LOW, TOKEN_HIGH], amount)
