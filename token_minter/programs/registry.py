"""
Token program registry

Static knowledge of the two token programs a mint may belong to, and which
operations this service performs through each of them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from solders.pubkey import Pubkey

from .constants import TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID

logger = logging.getLogger(__name__)


class TokenProgram(Enum):
    """Owning program of a mint or token account"""
    CUSTOM = "custom"
    STANDARD = "standard"

    @property
    def program_id(self) -> str:
        """Program address (base58)"""
        if self is TokenProgram.CUSTOM:
            return TOKEN_2022_PROGRAM_ID
        return TOKEN_PROGRAM_ID

    @property
    def pubkey(self) -> Pubkey:
        return Pubkey.from_string(self.program_id)

    @property
    def label(self) -> str:
        """Human-readable program name"""
        if self is TokenProgram.CUSTOM:
            return "Token-2022"
        return "SPL Token"


class ProgramOperation(Enum):
    """Operations routed through a token program"""
    DERIVE_ADDRESS = "derive_address"
    CREATE_ACCOUNT = "create_account"
    MINT_TO = "mint_to"
    READ_MINT = "read_mint"


ALL_OPERATIONS: FrozenSet[ProgramOperation] = frozenset(ProgramOperation)


@dataclass(frozen=True)
class ProgramSpec:
    """Registry entry for one token program"""
    program: TokenProgram
    operations: FrozenSet[ProgramOperation]

    def supports(self, operation: ProgramOperation) -> bool:
        return operation in self.operations


class ProgramRegistry:
    """
    Registry of the two recognised token programs

    The set of programs is fixed. Capabilities can only be narrowed, which
    models a custom program whose address derivation is incompatible with
    the associated-account scheme.

    Usage:
        registry = ProgramRegistry()

        registry.from_owner("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")  # TokenProgram.CUSTOM
        registry.lookup_order()  # (CUSTOM, STANDARD)

        # Custom program without associated-account derivation
        registry = ProgramRegistry(custom_operations={ProgramOperation.MINT_TO})
    """

    def __init__(
        self,
        custom_operations: Optional[Iterable[ProgramOperation]] = None,
        standard_operations: Optional[Iterable[ProgramOperation]] = None,
    ):
        self._specs: Dict[TokenProgram, ProgramSpec] = {
            TokenProgram.CUSTOM: ProgramSpec(
                TokenProgram.CUSTOM,
                ALL_OPERATIONS if custom_operations is None else frozenset(custom_operations),
            ),
            TokenProgram.STANDARD: ProgramSpec(
                TokenProgram.STANDARD,
                ALL_OPERATIONS if standard_operations is None else frozenset(standard_operations),
            ),
        }

    def spec(self, program: TokenProgram) -> ProgramSpec:
        return self._specs[program]

    def program_id(self, program: TokenProgram) -> str:
        return program.program_id

    def supports(self, program: TokenProgram, operation: ProgramOperation) -> bool:
        return self._specs[program].supports(operation)

    def from_owner(self, owner: Optional[str]) -> Optional[TokenProgram]:
        """
        Map an account owner address to a recognised program

        Returns:
            TokenProgram, or None if the owner is neither token program
        """
        if owner is None:
            return None
        for program in TokenProgram:
            if program.program_id == str(owner):
                return program
        return None

    def is_token_program(self, owner: Optional[str]) -> bool:
        return self.from_owner(owner) is not None

    def lookup_order(self) -> Tuple[TokenProgram, ...]:
        """Programs in the order token accounts are searched (custom first)"""
        return (TokenProgram.CUSTOM, TokenProgram.STANDARD)

    def derivation_order(self, preferred: Optional[TokenProgram] = None) -> Tuple[TokenProgram, ...]:
        """
        Programs to try when deriving an associated account address

        Without a preference: custom, then standard. With a preference: the
        preferred program, then standard as the fallback.
        """
        if preferred is None:
            return self.lookup_order()
        if preferred is TokenProgram.STANDARD:
            return (TokenProgram.STANDARD,)
        return (preferred, TokenProgram.STANDARD)

    def expected_program_ids(self) -> Tuple[str, ...]:
        return tuple(program.program_id for program in self.lookup_order())
