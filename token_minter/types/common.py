"""
Common type definitions
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union, TYPE_CHECKING

from ..errors import ValidationError

if TYPE_CHECKING:
    from ..programs.registry import TokenProgram


Number = Union[Decimal, int, float, str]

# Largest value a u64 amount field can hold
U64_MAX = 2 ** 64 - 1


def parse_amount(value: Number) -> Decimal:
    """
    Parse a caller-supplied token amount

    Floats go through str() first so 0.1 stays 0.1 instead of its binary
    expansion.

    Raises:
        ValidationError: If the value is not a finite number greater than zero,
            or exceeds the u64 supply limit
    """
    if isinstance(value, bool):
        raise ValidationError.invalid_amount(value, "Amount must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError.invalid_amount(value, f"Amount is not a number: {e}")

    if not amount.is_finite():
        raise ValidationError.invalid_amount(value, "Amount must be finite")
    if amount <= 0:
        raise ValidationError.invalid_amount(value)
    # No mint decimals can bring a larger amount back under the u64 limit
    if amount > U64_MAX:
        raise ValidationError.invalid_amount(value, f"Amount {value} exceeds the u64 supply limit")
    return amount


def to_smallest_units(amount: Decimal, decimals: int) -> int:
    """
    floor(amount * 10^decimals) using integer arithmetic only

    Args:
        amount: Non-negative token amount in UI units
        decimals: Mint decimals

    Returns:
        Amount in smallest units
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    sign, digits, exponent = amount.as_tuple()
    if sign:
        raise ValueError(f"amount must be non-negative, got {amount}")

    coefficient = int("".join(str(d) for d in digits) or "0")
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10 ** shift
    # coefficient < 10^len(digits), so a larger shift floors to zero
    if -shift > len(digits):
        return 0
    return coefficient // 10 ** (-shift)


def from_smallest_units(raw_amount: int, decimals: int) -> Decimal:
    """Convert a raw amount to UI units without float rounding"""
    return Decimal(raw_amount).scaleb(-decimals)


@dataclass(frozen=True)
class TokenDescriptor:
    """
    Configured token

    Attributes:
        mint_address: Token mint address (base58)
        symbol: Token symbol (e.g., "MCFT")
        name: Full token name
        decimals: Decimals hint; None when unknown until fetched
    """
    mint_address: str
    symbol: str
    name: str = ""
    decimals: Optional[int] = None

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"TokenDescriptor({self.symbol}, {self.mint_address[:8]}...)"


@dataclass(frozen=True)
class ResolvedAccount:
    """
    Token account located on chain or derived for a (wallet, mint) pair

    Recomputed per call, never cached.
    """
    address: str
    owning_program: "TokenProgram"

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class TokenMintInfo:
    """
    Configured token details merged with live mint data

    Attributes:
        mint_address: Token mint address
        name: Configured token name
        symbol: Configured token symbol
        decimals: Live decimals, or the configured hint if the mint could not be read
        supply: Live supply in smallest units, None if the mint could not be read
        owning_program: Program owning the mint, None if unknown
    """
    mint_address: str
    name: str
    symbol: str
    decimals: int
    supply: Optional[int] = None
    owning_program: Optional["TokenProgram"] = None

    @property
    def ui_supply(self) -> Optional[Decimal]:
        """Supply in UI units"""
        if self.supply is None:
            return None
        return from_smallest_units(self.supply, self.decimals)
