"""
Token Minter - Solana token rewards for linked game identities

Provides:
- Minting the configured token to a wallet (SPL Token or Token-2022 mints)
- Token account lookup, derivation and provisioning
- Balance queries
- Read-only mint diagnostics
- Player reward flows keyed by game UUID
"""

from .client import TokenService, create_token_service
from .config import Config, config, get_config, reload_config, setup_logging
from .types import (
    TokenDescriptor,
    ResolvedAccount,
    TokenMintInfo,
    TxResult,
    TxStatus,
    MintResult,
    PlayerBalance,
    DiagnosticReport,
    DiagnosticStage,
)
from .errors import (
    ErrorCode,
    TokenServiceError,
    ConnectivityError,
    TransactionError,
    ValidationError,
    NotFoundError,
    OwnershipMismatchError,
    DerivationError,
    ConfigurationError,
)
from .programs import TokenProgram, ProgramRegistry
from .modules.players import InMemoryWalletDirectory, LinkedIdentity, PlayerRewards, WalletDirectory

__version__ = "0.1.0"

__all__ = [
    # Client
    "TokenService",
    "create_token_service",
    # Config
    "Config",
    "config",
    "get_config",
    "reload_config",
    "setup_logging",
    # Types
    "TokenDescriptor",
    "ResolvedAccount",
    "TokenMintInfo",
    "TxResult",
    "TxStatus",
    "MintResult",
    "PlayerBalance",
    "DiagnosticReport",
    "DiagnosticStage",
    # Errors
    "ErrorCode",
    "TokenServiceError",
    "ConnectivityError",
    "TransactionError",
    "ValidationError",
    "NotFoundError",
    "OwnershipMismatchError",
    "DerivationError",
    "ConfigurationError",
    # Programs
    "TokenProgram",
    "ProgramRegistry",
    # Players
    "InMemoryWalletDirectory",
    "LinkedIdentity",
    "PlayerRewards",
    "WalletDirectory",
]
