"""
Mint account parser

Parses the base mint layout shared by SPL Token and Token-2022.
"""

import base64
import struct
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from solders.pubkey import Pubkey

from .constants import MINT_ACCOUNT_SIZE, TOKEN_ACCOUNT_SIZE, ACCOUNT_TYPE_MINT
from .registry import TokenProgram
from ..types import from_smallest_units

# u32 option + pubkey, u64 supply, u8 decimals, bool initialized, u32 option + pubkey
_MINT_LAYOUT = struct.Struct("<I32sQBBI32s")


@dataclass(frozen=True)
class MintMetadata:
    """
    Parsed mint account

    Attributes:
        decimals: Number of decimal places
        mint_authority: Mint authority (base58) or None if minting is disabled
        freeze_authority: Freeze authority (base58) or None
        supply: Total supply in smallest units
        is_initialized: Initialized flag from the layout
        owning_program: Token program that owns the mint
    """
    decimals: int
    mint_authority: Optional[str]
    freeze_authority: Optional[str]
    supply: int
    is_initialized: bool
    owning_program: TokenProgram

    @property
    def ui_supply(self) -> Decimal:
        return from_smallest_units(self.supply, self.decimals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decimals": self.decimals,
            "isInitialized": self.is_initialized,
            "mintAuthority": self.mint_authority,
            "freezeAuthority": self.freeze_authority,
            "supply": str(self.supply),
        }


def decode_account_data(account_info: Dict[str, Any]) -> bytes:
    """
    Extract raw bytes from a getAccountInfo value with base64 encoding

    Args:
        account_info: RPC account value ({"data": [b64, "base64"], "owner": ...})

    Returns:
        Account data bytes

    Raises:
        ValueError: If the payload is missing, not a string or not valid base64
    """
    data = account_info.get("data")
    if isinstance(data, list) and data:
        if len(data) > 1 and data[1] != "base64":
            raise ValueError(f"Unsupported account data encoding: {data[1]}")
        data = data[0]
    if not isinstance(data, str):
        raise ValueError("Account data missing or not base64 encoded")
    return base64.b64decode(data)


def _check_size(data: bytes, program: TokenProgram):
    """Reject layouts the owning program would not accept as a mint"""
    if len(data) < MINT_ACCOUNT_SIZE:
        raise ValueError(f"Mint data too short: {len(data)} bytes")

    if program is TokenProgram.STANDARD:
        if len(data) != MINT_ACCOUNT_SIZE:
            raise ValueError(f"Invalid SPL Token mint size: {len(data)} bytes")
    elif program is TokenProgram.CUSTOM:
        # Token-2022 mints with extensions carry an account type byte after
        # the token-account-sized padding
        if len(data) == MINT_ACCOUNT_SIZE:
            return
        if len(data) <= TOKEN_ACCOUNT_SIZE:
            raise ValueError(f"Invalid Token-2022 mint size: {len(data)} bytes")
        if data[TOKEN_ACCOUNT_SIZE] != ACCOUNT_TYPE_MINT:
            raise ValueError(f"Account type {data[TOKEN_ACCOUNT_SIZE]} is not a mint")


def parse_mint_account(data: bytes, program: TokenProgram) -> MintMetadata:
    """
    Parse mint account data under the rules of its owning program

    Args:
        data: Raw account data
        program: Program that owns the account

    Returns:
        MintMetadata

    Raises:
        ValueError: If the data is not a valid mint for that program
    """
    _check_size(data, program)

    (
        authority_option,
        authority,
        supply,
        decimals,
        is_initialized,
        freeze_option,
        freeze_authority,
    ) = _MINT_LAYOUT.unpack_from(data, 0)

    return MintMetadata(
        decimals=decimals,
        mint_authority=str(Pubkey.from_bytes(authority)) if authority_option else None,
        freeze_authority=str(Pubkey.from_bytes(freeze_authority)) if freeze_option else None,
        supply=supply,
        is_initialized=bool(is_initialized),
        owning_program=program,
    )


def encode_mint_account(
    decimals: int,
    mint_authority: Optional[str] = None,
    supply: int = 0,
    freeze_authority: Optional[str] = None,
    is_initialized: bool = True,
) -> bytes:
    """Serialize a base mint layout (test fixtures, local validators)"""
    return _MINT_LAYOUT.pack(
        1 if mint_authority else 0,
        bytes(Pubkey.from_string(mint_authority)) if mint_authority else bytes(32),
        supply,
        decimals,
        1 if is_initialized else 0,
        1 if freeze_authority else 0,
        bytes(Pubkey.from_string(freeze_authority)) if freeze_authority else bytes(32),
    )
