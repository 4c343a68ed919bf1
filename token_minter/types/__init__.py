"""
Type definitions for the token service
"""

from .common import (
    Number,
    U64_MAX,
    TokenDescriptor,
    ResolvedAccount,
    TokenMintInfo,
    parse_amount,
    to_smallest_units,
    from_smallest_units,
)
from .result import (
    TxResult,
    TxStatus,
    MintResult,
    PlayerBalance,
    DiagnosticReport,
    DiagnosticStage,
)

__all__ = [
    # Common types
    "Number",
    "U64_MAX",
    "TokenDescriptor",
    "ResolvedAccount",
    "TokenMintInfo",
    "parse_amount",
    "to_smallest_units",
    "from_smallest_units",
    # Results
    "TxResult",
    "TxStatus",
    "MintResult",
    "PlayerBalance",
    "DiagnosticReport",
    "DiagnosticStage",
]
