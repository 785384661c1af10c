"""Static chain, token and price-feed metadata for the supported networks."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

# 1inch uses this placeholder for the native currency of every EVM network.
NATIVE_PLACEHOLDER = '0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE'

ETHEREUM = 1
OPTIMISM = 10
BSC = 56
POLYGON = 137
BASE = 8453
ARBITRUM = 42161
AVALANCHE = 43114

CHAIN_METADATA: Dict[int, Dict[str, Any]] = {
    ETHEREUM: {
        'name': 'Ethereum',
        'aliases': ['ethereum', 'eth', 'mainnet', 'main net', 'ethereum mainnet', 'l1'],
        'native_symbol': 'ETH',
    },
    BASE: {
        'name': 'Base',
        'aliases': ['base', 'base mainnet'],
        'native_symbol': 'ETH',
    },
    POLYGON: {
        'name': 'Polygon',
        'aliases': ['polygon', 'matic', 'pos'],
        'native_symbol': 'MATIC',
    },
    ARBITRUM: {
        'name': 'Arbitrum',
        'aliases': ['arbitrum', 'arb', 'arbitrum one'],
        'native_symbol': 'ETH',
    },
    OPTIMISM: {
        'name': 'Optimism',
        'aliases': ['optimism', 'op'],
        'native_symbol': 'ETH',
    },
    BSC: {
        'name': 'BNB Chain',
        'aliases': ['bsc', 'binance', 'bnb chain', 'binance smart chain'],
        'native_symbol': 'BNB',
    },
    AVALANCHE: {
        'name': 'Avalanche',
        'aliases': ['avalanche', 'avax', 'c-chain'],
        'native_symbol': 'AVAX',
    },
}

CHAIN_ALIAS_TO_ID: Dict[str, int] = {}
for _chain_id, _meta in CHAIN_METADATA.items():
    CHAIN_ALIAS_TO_ID[str(_meta['name']).lower()] = _chain_id
    for _alias in _meta['aliases']:
        CHAIN_ALIAS_TO_ID[_alias] = _chain_id


def _native(symbol: str) -> Dict[str, Any]:
    return {'address': NATIVE_PLACEHOLDER, 'decimals': 18, 'is_native': True, 'symbol': symbol}


def _erc20(symbol: str, address: str, decimals: int) -> Dict[str, Any]:
    return {'address': address, 'decimals': decimals, 'is_native': False, 'symbol': symbol}


# chain ID -> canonical symbol -> metadata
TOKEN_REGISTRY: Dict[int, Dict[str, Dict[str, Any]]] = {
    ETHEREUM: {
        'ETH': _native('ETH'),
        'WETH': _erc20('WETH', '0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2', 18),
        'USDC': _erc20('USDC', '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48', 6),
        'USDT': _erc20('USDT', '0xdAC17F958D2ee523a2206206994597C13D831ec7', 6),
        'DAI': _erc20('DAI', '0x6B175474E89094C44Da98b954EedeAC495271d0F', 18),
        'WBTC': _erc20('WBTC', '0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599', 8),
        'UNI': _erc20('UNI', '0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984', 18),
        'LINK': _erc20('LINK', '0x514910771AF9Ca656af840dff83E8264EcF986CA', 18),
    },
    BASE: {
        'ETH': _native('ETH'),
        'WETH': _erc20('WETH', '0x4200000000000000000000000000000000000006', 18),
        'USDC': _erc20('USDC', '0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913', 6),
        'USDT': _erc20('USDT', '0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2', 6),
        'DAI': _erc20('DAI', '0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb', 18),
        'CBETH': _erc20('CBETH', '0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22', 18),
        'DEGEN': _erc20('DEGEN', '0x4ed4E862860beD51a9570b96d89aF5E1B0Efefed', 18),
        'BRETT': _erc20('BRETT', '0x532f27101965dd16442E59d40670FaF5eBB142E4', 18),
    },
    POLYGON: {
        'MATIC': _native('MATIC'),
        'WMATIC': _erc20('WMATIC', '0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270', 18),
        'USDC': _erc20('USDC', '0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174', 6),
        'USDT': _erc20('USDT', '0xc2132D05D31c914a87C6611C10748AEb04B58e8F', 6),
    },
    ARBITRUM: {
        'ETH': _native('ETH'),
        'WETH': _erc20('WETH', '0x82aF49447D8a07e3bd95BD0d56f35241523fBab1', 18),
        'USDC': _erc20('USDC', '0xaf88d065e77c8cC2239327C5EDb3A432268e5831', 6),
        'USDT': _erc20('USDT', '0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9', 6),
    },
    OPTIMISM: {
        'ETH': _native('ETH'),
        'WETH': _erc20('WETH', '0x4200000000000000000000000000000000000006', 18),
        'USDC': _erc20('USDC', '0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85', 6),
        'USDT': _erc20('USDT', '0x94b008aA00579c1307B0EF2c499aD98a8ce58e58', 6),
    },
    BSC: {
        'BNB': _native('BNB'),
        'WBNB': _erc20('WBNB', '0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c', 18),
        'USDC': _erc20('USDC', '0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d', 18),
        'USDT': _erc20('USDT', '0x55d398326f99059fF775485246999027B3197955', 18),
    },
    AVALANCHE: {
        'AVAX': _native('AVAX'),
        'WAVAX': _erc20('WAVAX', '0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7', 18),
        'USDC': _erc20('USDC', '0xA7D7079b0FEaD91F3e65f86E8915Cb59c1a4C664', 6),
        'USDT': _erc20('USDT', '0xc7198437980c041c805A1EDcbA50c1Ce5db95118', 6),
    },
}

# Human aliases -> canonical symbol. Canonical symbols map to themselves
# through the normalizer's uppercase fallback.
TOKEN_ALIASES: Dict[str, str] = {
    'ethereum': 'ETH',
    'ether': 'ETH',
    'eth': 'ETH',
    'wrapped eth': 'WETH',
    'wrapped ether': 'WETH',
    'bitcoin': 'BTC',
    'wrapped btc': 'WBTC',
    'wrapped bitcoin': 'WBTC',
    'usd-coin': 'USDC',
    'usd coin': 'USDC',
    'usdc.e': 'USDC',
    'tether': 'USDT',
    'uniswap': 'UNI',
    'chainlink': 'LINK',
    'polygon': 'MATIC',
    'matic-network': 'MATIC',
    'pol': 'MATIC',
    'binance coin': 'BNB',
    'avalanche': 'AVAX',
    'coinbase eth': 'CBETH',
}

# Chainlink-style USD price feeds, 8 decimals, keyed by (feed symbol, chain).
PRICE_FEEDS: Dict[Tuple[str, int], Dict[str, Any]] = {
    ('ETH', ETHEREUM): {
        'address': '0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419',
        'description': 'ETH / USD',
        'decimals': 8,
        'heartbeat': 3600,
    },
    ('BTC', ETHEREUM): {
        'address': '0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c',
        'description': 'BTC / USD',
        'decimals': 8,
        'heartbeat': 3600,
    },
    ('UNI', ETHEREUM): {
        'address': '0x553303d460EE0afB37EdFf9bE42922D8FF63220e',
        'description': 'UNI / USD',
        'decimals': 8,
        'heartbeat': 3600,
    },
    ('LINK', ETHEREUM): {
        'address': '0x2c1d072e956AFFC0D435Cb7AC38EF18d24d9127c',
        'description': 'LINK / USD',
        'decimals': 8,
        'heartbeat': 3600,
    },
    ('ETH', BASE): {
        'address': '0x71041dddad3595F9CEd3DcCFBe3D1F4b0a16Bb70',
        'description': 'ETH / USD',
        'decimals': 8,
        'heartbeat': 1200,
    },
}

# Wrapped assets share the feed of their underlying.
FEED_SYMBOL_ALIASES: Dict[str, str] = {
    'WETH': 'ETH',
    'CBETH': 'ETH',
    'WBTC': 'BTC',
}


def get_token(chain_id: int, symbol: str) -> Optional[Dict[str, Any]]:
    """Look up token metadata by canonical symbol on a network."""
    return TOKEN_REGISTRY.get(chain_id, {}).get(symbol.upper())


def supported_symbols(chain_id: int) -> str:
    tokens = TOKEN_REGISTRY.get(chain_id, {})
    return ', '.join(sorted(tokens.keys())) if tokens else 'none'


__all__ = [
    'NATIVE_PLACEHOLDER',
    'CHAIN_METADATA',
    'CHAIN_ALIAS_TO_ID',
    'TOKEN_REGISTRY',
    'TOKEN_ALIASES',
    'PRICE_FEEDS',
    'FEED_SYMBOL_ALIASES',
    'get_token',
    'supported_symbols',
]
