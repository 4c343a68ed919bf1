"""
Error definitions for the token service
"""

from .exceptions import (
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

__all__ = [
    "ErrorCode",
    "TokenServiceError",
    "ConnectivityError",
    "TransactionError",
    "ValidationError",
    "NotFoundError",
    "OwnershipMismatchError",
    "DerivationError",
    "ConfigurationError",
]
