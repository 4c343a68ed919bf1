"""
Result type definitions for transactions, mints and diagnostics
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class TxResult:
    """
    Transaction execution result

    Attributes:
        status: Transaction status
        signature: Transaction signature (base58)
        error: Error message if failed
        recoverable: Whether the error is recoverable (can retry)
        error_code: Error code for programmatic handling
        chain_error: Raw error object reported by the cluster
        logs: Transaction logs
    """
    status: TxStatus
    signature: Optional[str] = None
    error: Optional[str] = None
    recoverable: bool = False
    error_code: Optional[str] = None
    chain_error: Any = None
    logs: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == TxStatus.FAILED

    @property
    def is_timeout(self) -> bool:
        return self.status == TxStatus.TIMEOUT

    @classmethod
    def success(cls, signature: str, **kwargs) -> "TxResult":
        """Create successful result"""
        return cls(status=TxStatus.SUCCESS, signature=signature, **kwargs)

    @classmethod
    def failed(cls, error: str, signature: str = None, **kwargs) -> "TxResult":
        """Create failed result"""
        return cls(status=TxStatus.FAILED, signature=signature, error=error, **kwargs)

    @classmethod
    def timeout(cls, signature: str = None, **kwargs) -> "TxResult":
        """Create timeout result (recoverable - can check on-chain status)"""
        return cls(
            status=TxStatus.TIMEOUT,
            signature=signature,
            error="Transaction confirmation timeout",
            recoverable=True,
            error_code="2003",
            **kwargs
        )

    def __str__(self) -> str:
        if self.is_success:
            sig_display = f"{self.signature[:16]}..." if self.signature else "no signature"
            return f"TxResult(SUCCESS, {sig_display})"
        return f"TxResult({self.status.value}, error={self.error})"


@dataclass
class MintResult:
    """
    Outcome of a mint request, returned instead of raising

    Attributes:
        success: Whether tokens were minted and confirmed
        amount: Requested amount in UI units, as supplied by the caller
        recipient: Wallet address (or player id when no wallet was resolved)
        signature: Transaction signature on success
        raw_amount: Minted amount in smallest units on success
        error: Error message on failure
        error_code: ErrorCode value on failure
        details: Error context (wallet, mint, stage, program, ...)
    """
    success: bool
    amount: Any
    recipient: Optional[str]
    signature: Optional[str] = None
    raw_amount: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def succeeded(cls, signature: str, amount: Any, recipient: str, raw_amount: Optional[int] = None) -> "MintResult":
        return cls(
            success=True,
            amount=amount,
            recipient=recipient,
            signature=signature,
            raw_amount=raw_amount,
        )

    @classmethod
    def failed(
        cls,
        error: str,
        amount: Any,
        recipient: Optional[str],
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> "MintResult":
        return cls(
            success=False,
            amount=amount,
            recipient=recipient,
            error=error,
            error_code=error_code,
            details=details or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Response shape consumed by resolvers"""
        payload: Dict[str, Any] = {
            "success": self.success,
            "amount": str(self.amount) if isinstance(self.amount, Decimal) else self.amount,
            "recipient": self.recipient,
        }
        if self.success:
            payload["signature"] = self.signature
        else:
            payload["error"] = self.error
            payload["errorCode"] = self.error_code
        return payload


@dataclass
class PlayerBalance:
    """Token balance lookup for a game identity"""
    uuid: str
    wallet_address: Optional[str]
    balance: Decimal = Decimal(0)
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid,
            "walletAddress": self.wallet_address,
            "balance": float(self.balance),
            "success": self.success,
            "error": self.error,
        }


class DiagnosticStage(Enum):
    """Diagnostic checks, in execution order"""
    CONFIGURATION = "configuration"
    PAYER_KEY = "payer_key"
    MINT_ADDRESS = "mint_address"
    RPC_CONNECTION = "rpc_connection"
    MINT_ACCOUNT = "mint_account"
    MINT_OWNER = "mint_owner"
    MINT_METADATA = "mint_metadata"
    COMPLETE = "complete"


@dataclass
class DiagnosticReport:
    """
    Result of a read-only diagnostic run

    On failure, `stage` names the check that failed and `details` holds every
    value computed before it.
    """
    success: bool
    stage: DiagnosticStage
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "stage": self.stage.value,
            "error": self.error,
            "errorCode": self.error_code,
            "details": self.details,
        }
