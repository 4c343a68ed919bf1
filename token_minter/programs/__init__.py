"""
Token program knowledge: registry, instruction builders and mint layout
"""

from .constants import (
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    FALLBACK_DECIMALS,
)
from .registry import (
    TokenProgram,
    ProgramOperation,
    ProgramSpec,
    ProgramRegistry,
)
from .instructions import (
    get_associated_token_address,
    build_create_associated_account_instruction,
    build_mint_to_instruction,
    token_program_pubkey,
)
from .mint_layout import (
    MintMetadata,
    decode_account_data,
    parse_mint_account,
    encode_mint_account,
)

__all__ = [
    "TOKEN_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "SYSTEM_PROGRAM_ID",
    "FALLBACK_DECIMALS",
    "TokenProgram",
    "ProgramOperation",
    "ProgramSpec",
    "ProgramRegistry",
    "get_associated_token_address",
    "build_create_associated_account_instruction",
    "build_mint_to_instruction",
    "token_program_pubkey",
    "MintMetadata",
    "decode_account_data",
    "parse_mint_account",
    "encode_mint_account",
]
