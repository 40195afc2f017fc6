"""Chains supported by THORChain and how they map to wallet plugin ids.

THORChain names chains by short codes (BTC, ETH, GAIA, ...) that do not
always match the wallet's mainnet currency code.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ChainConfig:
    """THORChain view of a wallet chain."""

    plugin_id: str
    chain: str  # THORChain chain code
    gas_asset: str  # Coin the outbound fee is denominated in
    is_evm: bool = False
    gas_limit: Optional[str] = None  # Override for router deposits (EVM only)


EVM_SEND_GAS = "80000"
EVM_TOKEN_SEND_GAS = "80000"


# ======================
# Chain Configurations
# ======================

CHAINS: dict[str, ChainConfig] = {
    "avalanche": ChainConfig("avalanche", "AVAX", "AVAX", is_evm=True, gas_limit=EVM_SEND_GAS),
    "base": ChainConfig("base", "BASE", "ETH", is_evm=True, gas_limit=EVM_SEND_GAS),
    "binancesmartchain": ChainConfig("binancesmartchain", "BSC", "BNB", is_evm=True, gas_limit=EVM_SEND_GAS),
    "bitcoin": ChainConfig("bitcoin", "BTC", "BTC"),
    "bitcoincash": ChainConfig("bitcoincash", "BCH", "BCH"),
    "cosmoshub": ChainConfig("cosmoshub", "GAIA", "ATOM"),
    "dogecoin": ChainConfig("dogecoin", "DOGE", "DOGE"),
    "ethereum": ChainConfig("ethereum", "ETH", "ETH", is_evm=True, gas_limit=EVM_SEND_GAS),
    "litecoin": ChainConfig("litecoin", "LTC", "LTC"),
    "thorchainrune": ChainConfig("thorchainrune", "THOR", "RUNE"),
}

# Plugin ids THORChain does not route, kept explicit so the table documents them
UNSUPPORTED_PLUGIN_IDS = ("zcash", "monero", "ripple", "solana", "tron")


# ======================
# Helper Functions
# ======================

def get_chain(plugin_id: str) -> Optional[ChainConfig]:
    """Get chain configuration by wallet plugin id."""
    return CHAINS.get(plugin_id)


def get_mainnet_transcription() -> dict[str, Optional[str]]:
    """Wallet plugin id -> THORChain chain code (None when unsupported)."""
    table: dict[str, Optional[str]] = {pid: cfg.chain for pid, cfg in CHAINS.items()}
    for plugin_id in UNSUPPORTED_PLUGIN_IDS:
        table[plugin_id] = None
    return table


def get_gas_limit(plugin_id: str, token_id: Optional[str] = None) -> Optional[str]:
    """Gas limit override for a router deposit, if the chain needs one."""
    chain = get_chain(plugin_id)
    if chain is None or not chain.is_evm:
        return None
    return EVM_SEND_GAS if token_id is None else EVM_TOKEN_SEND_GAS
