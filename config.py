"""
Configuration for Liquidity Book Position Engine

Конфигурация для работы с Liquidity Book (Trader Joe V2 style) на Base Sepolia.
"""

import os
from dataclasses import dataclass
from typing import Dict

from lb_engine.math.metrics import PRICE_TTL_SECONDS
from lb_engine.math.positions import DEFAULT_SCAN_RADIUS
from lb_engine.math.quote import DEFAULT_SLIPPAGE
from lb_engine.prices import COINGECKO_IDS, FALLBACK_USD_PRICES


@dataclass
class ChainConfig:
    """Конфигурация сети."""
    chain_id: int
    name: str
    rpc_url: str
    explorer_url: str
    native_token: str
    lb_factory: str
    lb_router: str
    lb_quoter: str
    multicall3: str


@dataclass
class TokenConfig:
    """Конфигурация токена."""
    address: str
    symbol: str
    decimals: int
    name: str = ""


# ============================================================
# CHAIN CONFIGURATIONS
# ============================================================

# Base Sepolia (testnet) - Liquidity Book deployment
BASE_SEPOLIA = ChainConfig(
    chain_id=84532,
    name="Base Sepolia",
    rpc_url="https://sepolia.base.org",
    explorer_url="https://sepolia.basescan.org",
    native_token="ETH",
    lb_factory="0x1aF4454bdcE78b2D130b4CD8fcd867195b7a2D1B",
    lb_router="0xFF9a6f598CaD576E45c44d2238CFF785CE089433",
    lb_quoter="0xDE43cABB9F8a2e4B79059f72748EcacF8Eef0df5",
    multicall3="0xcA11bde05977b3631167028862bE2a173976CA11",
)

# ============================================================
# TOKEN CONFIGURATIONS
# ============================================================

TOKENS_BASE_SEPOLIA: Dict[str, TokenConfig] = {
    "WETH": TokenConfig(
        address="0x4200000000000000000000000000000000000006",
        symbol="WETH",
        decimals=18,
        name="Wrapped Ether",
    ),
    "USDC": TokenConfig(
        address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        symbol="USDC",
        decimals=6,
        name="USD Coin",
    ),
    "EURC": TokenConfig(
        address="0x808456652fdb597867f38412077A9182bf77359F",
        symbol="EURC",
        decimals=6,
        name="Euro Coin",
    ),
}

# ============================================================
# BIN STEPS
# ============================================================

# binStep (basis points) -> базовая комиссия
BIN_STEPS = {
    1: "0.01%",     # стейблкоины
    2: "0.02%",
    5: "0.05%",
    10: "0.10%",
    15: "0.15%",
    20: "0.20%",
    25: "0.25%",    # большинство пар
    50: "0.50%",
    100: "1.00%",   # экзотические пары
}

DEFAULT_BIN_STEP = 25

# ============================================================
# DEFAULT SETTINGS
# ============================================================

DEFAULT_DEADLINE_MINUTES = 20
PRICE_CACHE_TTL = PRICE_TTL_SECONDS

__all__ = [
    "ChainConfig",
    "TokenConfig",
    "BASE_SEPOLIA",
    "TOKENS_BASE_SEPOLIA",
    "BIN_STEPS",
    "DEFAULT_BIN_STEP",
    "DEFAULT_SLIPPAGE",
    "DEFAULT_DEADLINE_MINUTES",
    "DEFAULT_SCAN_RADIUS",
    "PRICE_CACHE_TTL",
    "COINGECKO_IDS",
    "FALLBACK_USD_PRICES",
    "get_chain_config",
    "get_tokens_for_chain",
    "get_token",
    "get_rpc_url",
]


def get_chain_config(chain_id: int) -> ChainConfig:
    """Получение конфигурации по chain_id."""
    configs = {
        84532: BASE_SEPOLIA,
    }
    if chain_id not in configs:
        raise ValueError(f"Unknown chain_id: {chain_id}")
    return configs[chain_id]


def get_tokens_for_chain(chain_id: int) -> Dict[str, TokenConfig]:
    """Получение словаря токенов для сети."""
    tokens_map = {
        84532: TOKENS_BASE_SEPOLIA,
    }
    if chain_id not in tokens_map:
        raise ValueError(f"Tokens not configured for chain_id: {chain_id}")
    return tokens_map[chain_id]


def get_token(symbol: str, chain_id: int = 84532) -> TokenConfig:
    """Получение токена по символу (регистр не важен)."""
    tokens = get_tokens_for_chain(chain_id)
    key = symbol.upper()
    if key not in tokens:
        raise ValueError(f"Unknown token: {symbol}")
    return tokens[key]


def get_rpc_url(chain_id: int = 84532) -> str:
    """RPC URL: переменная окружения RPC_URL или URL из конфигурации сети."""
    return os.getenv("RPC_URL") or get_chain_config(chain_id).rpc_url
