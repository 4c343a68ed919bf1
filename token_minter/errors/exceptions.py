"""
Exception definitions for the token service
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """
    Unified error codes for token operations

    1xxx - RPC / connectivity errors
    2xxx - Transaction errors
    3xxx - Validation errors
    4xxx - Lookup errors (missing or foreign-owned accounts)
    5xxx - Address derivation errors
    9xxx - Configuration errors
    """
    # RPC errors
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_ERROR_RESPONSE = "1004"

    # Transaction errors
    TX_SIMULATION_FAILED = "2001"
    TX_SEND_FAILED = "2002"
    TX_CONFIRMATION_FAILED = "2003"
    TX_FAILED_ON_CHAIN = "2004"

    # Validation errors
    INVALID_AMOUNT = "3001"
    INVALID_ADDRESS = "3002"

    # Lookup errors
    MINT_NOT_FOUND = "4001"
    TOKEN_ACCOUNT_NOT_FOUND = "4002"
    OWNERSHIP_MISMATCH = "4003"

    # Derivation errors
    DERIVATION_FAILED = "5001"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class TokenServiceError(Exception):
    """
    Base exception for all token service errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context (wallet, mint, stage, ...)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable

    def with_context(self, **context: Any) -> "TokenServiceError":
        """
        Attach operation context without overwriting values already set
        closer to the failure.
        """
        for key, value in context.items():
            if value is not None and self.details.get(key) is None:
                self.details[key] = value
        return self


class ConnectivityError(TokenServiceError):
    """
    RPC-related errors

    Raised when:
    - Connection to the RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The endpoint answers with a JSON-RPC error object
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
        recoverable: bool = True,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "ConnectivityError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "ConnectivityError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "ConnectivityError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def error_response(
        cls,
        endpoint: str,
        message: str,
        rpc_code: Optional[int] = None,
        data: Any = None,
    ) -> "ConnectivityError":
        # The node answered; retrying the same request will not help
        error = cls(
            f"RPC error: {message}",
            ErrorCode.RPC_ERROR_RESPONSE,
            endpoint=endpoint,
            recoverable=False,
        )
        error.details["rpc_error_code"] = rpc_code
        error.details["rpc_error_data"] = data
        return error


class TransactionError(TokenServiceError):
    """
    Transaction execution errors

    Raised when:
    - Transaction simulation fails
    - Transaction send fails (including preflight rejection)
    - Transaction fails on chain or is never confirmed
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SEND_FAILED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def simulation_failed(cls, error: str, logs: list = None) -> "TransactionError":
        return cls(
            f"Transaction simulation failed: {error}",
            ErrorCode.TX_SIMULATION_FAILED,
            logs=logs,
        )

    @classmethod
    def send_failed(
        cls,
        error: str,
        logs: list = None,
        recoverable: bool = False,
        original_error: Exception = None,
    ) -> "TransactionError":
        return cls(
            f"Failed to send transaction: {error}",
            ErrorCode.TX_SEND_FAILED,
            logs=logs,
            recoverable=recoverable,
            original_error=original_error,
        )

    @classmethod
    def failed_on_chain(cls, signature: str, error: Any) -> "TransactionError":
        return cls(
            f"Transaction failed on-chain: {error}",
            ErrorCode.TX_FAILED_ON_CHAIN,
            signature=signature,
        )

    @classmethod
    def confirmation_failed(cls, signature: str, error: str) -> "TransactionError":
        return cls(
            f"Transaction confirmation failed: {error}",
            ErrorCode.TX_CONFIRMATION_FAILED,
            signature=signature,
            recoverable=True,
        )


class ValidationError(TokenServiceError):
    """
    Caller-supplied input rejected before any network call

    Raised when:
    - Mint amount is zero, negative, not a number or overflows u64
    - A wallet or mint address is not a valid base58 public key
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_AMOUNT,
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"field": field, "value": None if value is None else str(value)},
        )
        self.field = field
        self.value = value

    @classmethod
    def invalid_amount(cls, amount: Any, reason: str = "Amount must be greater than zero") -> "ValidationError":
        return cls(reason, ErrorCode.INVALID_AMOUNT, field="amount", value=amount)

    @classmethod
    def invalid_address(cls, field: str, value: Any, error: Exception = None) -> "ValidationError":
        reason = f": {error}" if error else ""
        return cls(
            f"Invalid {field} address '{value}'{reason}",
            ErrorCode.INVALID_ADDRESS,
            field=field,
            value=value,
        )


class NotFoundError(TokenServiceError):
    """
    Account confirmed absent on chain

    Distinct from ConnectivityError: the query succeeded and returned nothing.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.MINT_NOT_FOUND,
        address: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def mint_not_found(cls, mint: str) -> "NotFoundError":
        return cls(f"Mint account not found: {mint}", ErrorCode.MINT_NOT_FOUND, address=mint)

    @classmethod
    def token_account_not_found(cls, wallet: str, mint: str) -> "NotFoundError":
        error = cls(
            f"No token account for wallet {wallet} and mint {mint}",
            ErrorCode.TOKEN_ACCOUNT_NOT_FOUND,
        )
        error.details.update(wallet=wallet, mint=mint)
        return error


class OwnershipMismatchError(TokenServiceError):
    """
    Account exists but is owned by neither recognised token program

    Only reported by diagnostics; minting falls back to the standard program.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        owner: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.OWNERSHIP_MISMATCH,
            recoverable=False,
            details={"address": address, "owner": owner},
        )
        self.address = address
        self.owner = owner

    @classmethod
    def unexpected_owner(cls, address: str, owner: str) -> "OwnershipMismatchError":
        return cls(
            "Account exists but is not owned by a recognised token program",
            address=address,
            owner=owner,
        )


class DerivationError(TokenServiceError):
    """
    Associated account address could not be derived under any program
    """

    def __init__(
        self,
        message: str,
        mint: Optional[str] = None,
        owner: Optional[str] = None,
        attempts: Optional[dict] = None,
    ):
        super().__init__(
            message,
            ErrorCode.DERIVATION_FAILED,
            recoverable=False,
            details={"mint": mint, "owner": owner, "attempts": attempts or {}},
        )

    @classmethod
    def exhausted(cls, mint: str, owner: str, attempts: dict) -> "DerivationError":
        summary = "; ".join(f"{name}: {reason}" for name, reason in attempts.items())
        return cls(
            f"Failed to derive associated account for owner {owner}: {summary}",
            mint=mint,
            owner=owner,
            attempts=attempts,
        )


class ConfigurationError(TokenServiceError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid (e.g. undecodable payer key)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, code, recoverable=False, original_error=original_error)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str, error: Exception = None) -> "ConfigurationError":
        return cls(
            f"Invalid configuration '{param}': {reason}",
            ErrorCode.CONFIG_INVALID,
            original_error=error,
        )
