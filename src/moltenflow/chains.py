"""Chain parameter table.

One source of truth for per-chain bridge ids, native bridge fees and
token registries, plus the fixed contract addresses the orchestrator
talks to. Supported networks:
- Ethereum (1), Optimism (10), Sonic (146), Base (8453), Arbitrum One (42161)
"""

from dataclasses import dataclass, field
from typing import Optional

from moltenflow.amounts import Amount
from moltenflow.exceptions import NotSupported

NATIVE_DECIMALS = 18


@dataclass(frozen=True)
class TokenInfo:
    """ERC-20 token registered on a chain."""

    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class ChainParameters:
    """Static parameters for one EVM chain."""

    chain_id: int
    name: str
    native_symbol: str
    bridge_id: Optional[int] = None  # LayerZero endpoint id; None = not bridgeable
    native_fee: str = "0"  # bridge messaging fee in native currency
    tokens: dict[str, TokenInfo] = field(default_factory=dict)


# ======================
# Contract Addresses
# ======================

# MOLTEN OFT, same address on every bridged chain
MOLTEN_OFT_ADDRESS = "0x66E535e8D2ebf13F49F3D49e5c50395a97C137b1"

# Trading contract (margin deposits) and USDM staking vault on Arbitrum
TRADING_CONTRACT_ADDRESS = "0x5f19704F393F983d5932b4453C6C87E85D22095E"
USDM_VAULT_ADDRESS = TRADING_CONTRACT_ADDRESS

# Cross-chain route service router (approval spender for cross-chain stakes)
SQUID_ROUTER_ADDRESS = "0xce16F69375520ab01377ce7B88f5BA8C48F8D666"

# Balances lens on Arbitrum
BALANCES_LENS_ADDRESS = "0xeae57c7bce5caf160343a83440e98bc976ab7274"

# Aave aUSDC held by the USDM vault
AAVE_AUSDC_ADDRESS = "0x724dc807b04555b71ed48a6896b6f41593b8c637"

ETHEREUM = 1
OPTIMISM = 10
SONIC = 146
BASE = 8453
ARBITRUM = 42161

# Settlement chain for margin, USDM and lending vaults
HOME_CHAIN_ID = ARBITRUM


def _molten() -> TokenInfo:
    return TokenInfo(symbol="MOLTEN", address=MOLTEN_OFT_ADDRESS, decimals=18)


def _usdc(address: str) -> TokenInfo:
    return TokenInfo(symbol="USDC", address=address, decimals=6)


# ======================
# Chain Configurations
# ======================

CHAIN_PARAMETERS: dict[int, ChainParameters] = {
    ETHEREUM: ChainParameters(
        chain_id=ETHEREUM,
        name="Ethereum",
        native_symbol="ETH",
        bridge_id=101,
        native_fee="0.0018",
        tokens={
            "MOLTEN": _molten(),
            "USDC": _usdc("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"),
        },
    ),
    OPTIMISM: ChainParameters(
        chain_id=OPTIMISM,
        name="Optimism",
        native_symbol="ETH",
        bridge_id=111,
        native_fee="0.00022",
        tokens={
            "MOLTEN": _molten(),
            "USDC": _usdc("0x0b2c639c533813f4aa9d7837caf62653d097ff85"),
        },
    ),
    SONIC: ChainParameters(
        chain_id=SONIC,
        name="Sonic",
        native_symbol="S",
        bridge_id=332,
        native_fee="3",
        tokens={
            "MOLTEN": _molten(),
        },
    ),
    BASE: ChainParameters(
        chain_id=BASE,
        name="Base",
        native_symbol="ETH",
        bridge_id=184,
        native_fee="0.00022",
        tokens={
            "MOLTEN": _molten(),
            "USDC": _usdc("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"),
        },
    ),
    ARBITRUM: ChainParameters(
        chain_id=ARBITRUM,
        name="Arbitrum One",
        native_symbol="ETH",
        bridge_id=110,
        native_fee="0.0006",
        tokens={
            "MOLTEN": _molten(),
            "USDC": _usdc("0xaf88d065e77c8cc2239327c5edb3a432268e5831"),
            "USDM": TokenInfo(
                symbol="USDM",
                address="0x1e0aa9b3345727979665fcc838d76324cba22253",
                decimals=18,
            ),
            # Lending vault share tokens
            "AAVE": TokenInfo(symbol="AAVE", address=AAVE_AUSDC_ADDRESS, decimals=6),
            "COMPOUND": TokenInfo(
                symbol="COMPOUND",
                address="0x9c4ec768c28520B50860ea7a15bd7213a9fF58bf",
                decimals=6,
            ),
            "FLUID": TokenInfo(
                symbol="FLUID",
                address="0x1A996cb54bb95462040408C06122D45D6Cdb6096",
                decimals=6,
            ),
        },
    ),
}


# ======================
# Helper Functions
# ======================


def get_chain(chain_id: int) -> Optional[ChainParameters]:
    """Get chain parameters by chain id."""
    return CHAIN_PARAMETERS.get(chain_id)


def require_chain(chain_id: int) -> ChainParameters:
    """Get chain parameters or raise NotSupported."""
    chain = CHAIN_PARAMETERS.get(chain_id)
    if chain is None:
        raise NotSupported(f"Chain {chain_id} is not supported", chain_id=chain_id)
    return chain


def bridge_id_for(chain_id: int) -> int:
    """Get the bridge endpoint id for a chain.

    Raises:
        NotSupported: If the chain is unknown or not bridgeable
    """
    chain = CHAIN_PARAMETERS.get(chain_id)
    if chain is None or chain.bridge_id is None:
        raise NotSupported(f"No bridge id for chain {chain_id}", chain_id=chain_id)
    return chain.bridge_id


def native_fee_for(chain_id: int) -> Amount:
    """Get the native bridge fee for a source chain.

    Unlisted chains get a zero fee so unrelated logic is not blocked;
    bridging callers must reject unsupported chains via bridge_id_for().
    """
    chain = CHAIN_PARAMETERS.get(chain_id)
    if chain is None:
        return Amount.zero(NATIVE_DECIMALS)
    return Amount(value=chain.native_fee, decimals=NATIVE_DECIMALS)


def token_for(chain_id: int, symbol_or_address: str) -> TokenInfo:
    """Resolve a token on a chain by symbol or contract address.

    Symbols match case-insensitively, addresses match case-insensitively
    against the registered checksum or lowercase form.

    Raises:
        NotSupported: If the chain or token is unknown
    """
    chain = require_chain(chain_id)
    key = symbol_or_address.strip()

    token = chain.tokens.get(key.upper())
    if token is not None:
        return token

    if key.lower().startswith("0x"):
        for candidate in chain.tokens.values():
            if candidate.address.lower() == key.lower():
                return candidate

    raise NotSupported(
        f"Token {symbol_or_address} is not supported on {chain.name}",
        chain_id=chain_id,
        token=symbol_or_address,
    )


def get_bridgeable_chains() -> list[ChainParameters]:
    """Get chains that have a bridge id."""
    return [c for c in CHAIN_PARAMETERS.values() if c.bridge_id is not None]
