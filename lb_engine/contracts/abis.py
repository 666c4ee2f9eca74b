"""
Liquidity Book Contract ABIs

Минимальные ABI для чтения:
- LBPair: активный бин, резервы, балансы долей
- LBFactory: поиск пары по (tokenX, tokenY, binStep)
- LBQuoter: котировка маршрута
- Multicall3: батчинг чтений
"""

# LBPair (только view функции)
LB_PAIR_ABI = [
    {
        "inputs": [],
        "name": "getActiveId",
        "outputs": [{"name": "activeId", "type": "uint24"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getBinStep",
        "outputs": [{"name": "", "type": "uint16"}],
        "stateMutability": "pure",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getTokenX",
        "outputs": [{"name": "tokenX", "type": "address"}],
        "stateMutability": "pure",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getTokenY",
        "outputs": [{"name": "tokenY", "type": "address"}],
        "stateMutability": "pure",
        "type": "function"
    },
    {
        "inputs": [{"name": "id", "type": "uint24"}],
        "name": "getBin",
        "outputs": [
            {"name": "binReserveX", "type": "uint128"},
            {"name": "binReserveY", "type": "uint128"}
        ],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "id", "type": "uint256"}
        ],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "id", "type": "uint256"}],
        "name": "totalSupply",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
]

# LBFactory
LB_FACTORY_ABI = [
    {
        "inputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
            {"name": "binStep", "type": "uint256"}
        ],
        "name": "getLBPairInformation",
        "outputs": [
            {
                "components": [
                    {"name": "binStep", "type": "uint16"},
                    {"name": "LBPair", "type": "address"},
                    {"name": "createdByOwner", "type": "bool"},
                    {"name": "ignoredForRouting", "type": "bool"}
                ],
                "name": "lbPairInformation",
                "type": "tuple"
            }
        ],
        "stateMutability": "view",
        "type": "function"
    },
]

# LBQuoter
LB_QUOTER_ABI = [
    {
        "inputs": [
            {"name": "route", "type": "address[]"},
            {"name": "amountIn", "type": "uint128"}
        ],
        "name": "findBestPathFromAmountIn",
        "outputs": [
            {
                "components": [
                    {"name": "route", "type": "address[]"},
                    {"name": "pairs", "type": "address[]"},
                    {"name": "binSteps", "type": "uint256[]"},
                    {"name": "versions", "type": "uint8[]"},
                    {"name": "amounts", "type": "uint128[]"},
                    {"name": "virtualAmountsWithoutSlippage", "type": "uint128[]"},
                    {"name": "fees", "type": "uint128[]"}
                ],
                "name": "quote",
                "type": "tuple"
            }
        ],
        "stateMutability": "view",
        "type": "function"
    },
]

# Multicall3 (aggregate3)
MULTICALL3_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"}
                ],
                "name": "calls",
                "type": "tuple[]"
            }
        ],
        "name": "aggregate3",
        "outputs": [
            {
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"}
                ],
                "name": "returnData",
                "type": "tuple[]"
            }
        ],
        "stateMutability": "payable",
        "type": "function"
    }
]
