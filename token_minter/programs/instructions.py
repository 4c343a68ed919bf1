"""
Token instruction builders

Associated account derivation, account creation and mint-to, routed by the
owning token program.
"""

import struct
from typing import Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    MINT_TO_INSTRUCTION,
    CREATE_ATA_INSTRUCTION,
    CREATE_ATA_IDEMPOTENT_INSTRUCTION,
)
from .registry import TokenProgram
from ..types import U64_MAX

PubkeyLike = Union[Pubkey, str]


def _pubkey(value: PubkeyLike) -> Pubkey:
    if isinstance(value, Pubkey):
        return value
    return Pubkey.from_string(value)


def token_program_pubkey(program: TokenProgram) -> Pubkey:
    """Program address the instruction for `program` is addressed to"""
    if program is TokenProgram.CUSTOM:
        return TokenProgram.CUSTOM.pubkey
    elif program is TokenProgram.STANDARD:
        return TokenProgram.STANDARD.pubkey
    raise ValueError(f"Unknown token program: {program!r}")


def get_associated_token_address(
    owner: PubkeyLike,
    mint: PubkeyLike,
    program: TokenProgram,
    allow_owner_off_curve: bool = False,
) -> Pubkey:
    """
    Derive the associated token account address.

    Seeds are [owner, token_program, mint] under the associated token
    account program.

    Args:
        owner: Wallet owner
        mint: Token mint
        program: Token program that will own the account
        allow_owner_off_curve: Accept PDA owners

    Returns:
        Associated account address

    Raises:
        ValueError: If the owner is off curve and that is not allowed
    """
    owner_pubkey = _pubkey(owner)
    mint_pubkey = _pubkey(mint)

    if not allow_owner_off_curve and not owner_pubkey.is_on_curve():
        raise ValueError(f"Owner {owner_pubkey} is off curve")

    seeds = [
        bytes(owner_pubkey),
        bytes(token_program_pubkey(program)),
        bytes(mint_pubkey),
    ]

    address, _ = Pubkey.find_program_address(seeds, Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID))
    return address


def build_create_associated_account_instruction(
    payer: PubkeyLike,
    associated_account: PubkeyLike,
    owner: PubkeyLike,
    mint: PubkeyLike,
    program: TokenProgram,
    idempotent: bool = False,
) -> Instruction:
    """
    Build create_associated_token_account instruction.

    The non-idempotent variant fails on chain if the account already exists,
    so a duplicate creation surfaces as a transaction error.

    Args:
        payer: Fee payer, funds the rent
        associated_account: Derived account address
        owner: Wallet that will own the account
        mint: Token mint
        program: Token program that owns the mint
        idempotent: Use CreateIdempotent instead of Create

    Returns:
        Instruction to create the account
    """
    accounts = [
        AccountMeta(_pubkey(payer), is_signer=True, is_writable=True),
        AccountMeta(_pubkey(associated_account), is_signer=False, is_writable=True),
        AccountMeta(_pubkey(owner), is_signer=False, is_writable=False),
        AccountMeta(_pubkey(mint), is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
        AccountMeta(token_program_pubkey(program), is_signer=False, is_writable=False),
    ]

    tag = CREATE_ATA_IDEMPOTENT_INSTRUCTION if idempotent else CREATE_ATA_INSTRUCTION
    return Instruction(Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID), bytes([tag]), accounts)


def build_mint_to_instruction(
    mint: PubkeyLike,
    destination: PubkeyLike,
    authority: PubkeyLike,
    amount: int,
    program: TokenProgram,
) -> Instruction:
    """
    Build MintTo instruction for the program that owns the mint.

    Layout: u8 tag (7) + u64 amount, little endian.

    Args:
        mint: Token mint
        destination: Token account receiving the tokens
        authority: Mint authority (signer)
        amount: Amount in smallest units
        program: Token program that owns the mint

    Returns:
        MintTo instruction
    """
    if amount <= 0 or amount > U64_MAX:
        raise ValueError(f"MintTo amount out of range: {amount}")

    accounts = [
        AccountMeta(_pubkey(mint), is_signer=False, is_writable=True),
        AccountMeta(_pubkey(destination), is_signer=False, is_writable=True),
        AccountMeta(_pubkey(authority), is_signer=True, is_writable=False),
    ]

    data = struct.pack("<BQ", MINT_TO_INSTRUCTION, amount)
    return Instruction(token_program_pubkey(program), data, accounts)
