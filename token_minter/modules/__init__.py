"""
Token service modules
"""

from .accounts import AddressResolver, TokenAccountLocator, AccountProvisioner, validate_address
from .minting import MintExecutor
from .balance import BalanceReader
from .diagnostics import DiagnosticProbe, get_network_name
from .players import LinkedIdentity, WalletDirectory, InMemoryWalletDirectory, PlayerRewards

__all__ = [
    "AddressResolver",
    "TokenAccountLocator",
    "AccountProvisioner",
    "validate_address",
    "MintExecutor",
    "BalanceReader",
    "DiagnosticProbe",
    "get_network_name",
    "LinkedIdentity",
    "WalletDirectory",
    "InMemoryWalletDirectory",
    "PlayerRewards",
]
