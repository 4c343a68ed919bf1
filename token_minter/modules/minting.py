"""
Mint Module

Mints the configured token to a wallet, provisioning the wallet's token
account in the same transaction when it does not exist yet.
"""

import logging
import struct
from typing import List, Optional, Tuple

from solders.instruction import Instruction

from ..errors import NotFoundError, TokenServiceError, ValidationError
from ..infra.rpc import RpcClient
from ..infra.tracing import log_with_correlation
from ..infra.tx_builder import TxBuilder, raise_for_result
from ..programs import (
    FALLBACK_DECIMALS,
    ProgramOperation,
    ProgramRegistry,
    TokenProgram,
    build_create_associated_account_instruction,
    build_mint_to_instruction,
    decode_account_data,
    parse_mint_account,
)
from ..types import Number, U64_MAX, ResolvedAccount, parse_amount, to_smallest_units
from .accounts import AddressResolver, TokenAccountLocator, validate_address

logger = logging.getLogger(__name__)


class MintExecutor:
    """
    Mint operations

    Flow per call:
    1. Validate amount and wallet (no network)
    2. Locate an existing token account
    3. Read the mint: owning program and decimals
    4. Convert the amount to smallest units (floor)
    5. Derive and, if absent, create the destination account
    6. MintTo under the mint's owning program, one transaction

    Usage:
        executor = MintExecutor(rpc, tx_builder, locator, resolver, registry, mint)
        signature = await executor.mint(wallet, 10)
    """

    def __init__(
        self,
        rpc: RpcClient,
        tx_builder: TxBuilder,
        locator: TokenAccountLocator,
        resolver: AddressResolver,
        registry: ProgramRegistry,
        mint_address: str,
    ):
        self._rpc = rpc
        self._tx_builder = tx_builder
        self._locator = locator
        self._resolver = resolver
        self._registry = registry
        self._mint = mint_address

    @property
    def mint_address(self) -> str:
        return self._mint

    async def mint(self, wallet: str, amount: Number) -> str:
        """Mint `amount` tokens to `wallet`, returning the signature"""
        signature, _ = await self.execute(wallet, amount)
        return signature

    async def execute(self, wallet: str, amount: Number) -> Tuple[str, int]:
        """
        Mint `amount` tokens (UI units) to `wallet`

        Args:
            wallet: Recipient wallet address
            amount: Token amount; fractional digits beyond the mint's
                decimals are floored away

        Returns:
            (confirmed transaction signature, minted amount in smallest units)

        Raises:
            ValidationError: Bad amount or address, or amount rounds to zero
            NotFoundError: Mint account does not exist
            ConnectivityError: RPC query failed
            DerivationError: No program could derive the destination
            TransactionError: Send, on-chain or confirmation failure
        """
        stage = "validate"
        program: Optional[TokenProgram] = None
        try:
            ui_amount = parse_amount(amount)
            validate_address("wallet", wallet)

            stage = "locate"
            existing = await self._locator.locate(wallet, self._mint)

            stage = "read_mint"
            program, decimals = await self._read_mint()

            raw_amount = to_smallest_units(ui_amount, decimals)
            if raw_amount < 1:
                raise ValidationError.invalid_amount(
                    amount, f"Amount {amount} is below the smallest unit for {decimals} decimals"
                )
            if raw_amount > U64_MAX:
                raise ValidationError.invalid_amount(amount, f"Amount {amount} exceeds the u64 supply limit")

            instructions: List[Instruction] = []

            if existing is not None:
                destination = existing
            else:
                stage = "derive"
                destination = self._resolver.derive(self._mint, wallet, preferred=program)
                stage = "check_destination"
                instructions.extend(await self._provision_instructions(wallet, destination))

            stage = "build"
            instructions.append(
                build_mint_to_instruction(
                    mint=self._mint,
                    destination=destination.address,
                    authority=self._tx_builder.pubkey,
                    amount=raw_amount,
                    program=program,
                )
            )

            stage = "send"
            log_with_correlation(
                logger, logging.INFO,
                f"Minting {raw_amount} raw units ({ui_amount}) to {destination.address} "
                f"via {program.label}, {len(instructions)} instruction(s)",
                "mint",
                wallet=wallet,
                raw_amount=raw_amount,
            )
            result = await self._tx_builder.build_and_send(instructions)
            signature = raise_for_result(result)

            log_with_correlation(
                logger, logging.INFO,
                f"Minted {ui_amount} to {wallet}: {signature}",
                "mint",
                signature=signature,
            )
            return signature, raw_amount

        except TokenServiceError as e:
            raise e.with_context(
                wallet=wallet,
                mint=self._mint,
                stage=stage,
                program=program.value if program else None,
            )

    async def _read_mint(self):
        """
        Fetch the mint account

        Returns:
            (owning program, decimals)
        """
        account_info = await self._rpc.get_account_info(self._mint, encoding="base64")
        if account_info is None:
            raise NotFoundError.mint_not_found(self._mint)

        owner = account_info.get("owner")
        program = self._registry.from_owner(owner)
        if program is None:
            log_with_correlation(
                logger, logging.WARNING,
                f"Mint {self._mint} owned by unrecognised program {owner}, using {TokenProgram.STANDARD.label}",
                "mint",
            )
            program = TokenProgram.STANDARD

        return program, self._decimals_from(account_info, program)

    def _decimals_from(self, account_info: dict, program: TokenProgram) -> int:
        if not self._registry.supports(program, ProgramOperation.READ_MINT):
            logger.warning(f"{program.label} mint layout not readable, using {FALLBACK_DECIMALS} decimals")
            return FALLBACK_DECIMALS
        try:
            data = decode_account_data(account_info)
            return parse_mint_account(data, program).decimals
        except (ValueError, TypeError, struct.error) as e:
            log_with_correlation(
                logger, logging.WARNING,
                f"Could not read decimals from mint {self._mint} ({e}), using {FALLBACK_DECIMALS}",
                "mint",
            )
            return FALLBACK_DECIMALS

    async def _provision_instructions(self, wallet: str, destination: ResolvedAccount) -> List[Instruction]:
        """Create-account instruction if nothing exists at the derived address"""
        if await self._rpc.get_account_info(destination.address, encoding="base64") is not None:
            logger.debug(f"Derived account {destination.address} already exists")
            return []

        program = destination.owning_program
        if not self._registry.supports(program, ProgramOperation.CREATE_ACCOUNT):
            logger.warning(f"{program.label} cannot create {destination.address}, sending MintTo only")
            return []

        logger.info(f"Token account {destination.address} missing, creating under {program.label}")
        return [
            build_create_associated_account_instruction(
                payer=self._tx_builder.pubkey,
                associated_account=destination.address,
                owner=wallet,
                mint=self._mint,
                program=program,
            )
        ]
