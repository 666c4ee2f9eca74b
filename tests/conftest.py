"""
Shared fixtures for all tests.
"""

import pytest
from unittest.mock import MagicMock, Mock


class MockWeb3:
    """Переиспользуемый мок Web3 для read-only тестов."""

    def __init__(self, chain_id: int = 84532):
        self.eth = MagicMock()
        self.eth.chain_id = chain_id
        self.eth.block_number = 20_000_000
        self.eth.call = MagicMock(return_value=b'\x00' * 32)
        self.eth.contract = MagicMock()


@pytest.fixture
def mock_w3():
    """Мок Web3 instance."""
    return MockWeb3()


@pytest.fixture
def mock_contract(mock_w3):
    """Мок контракта, который возвращает w3.eth.contract(...)."""
    contract = Mock()
    contract.functions = Mock()
    mock_w3.eth.contract.return_value = contract
    return contract


@pytest.fixture
def mock_session():
    """Мок requests.Session."""
    session = Mock()
    session.headers = {}
    return session
