"""
Token account resolution

Locating, deriving and provisioning a wallet's token account for a mint that
may belong to either token program.
"""

import logging
from typing import Dict, Optional

from solders.pubkey import Pubkey

from ..errors import DerivationError, TokenServiceError, ValidationError
from ..infra.rpc import RpcClient
from ..infra.tracing import CorrelationContext, log_with_correlation
from ..infra.tx_builder import TxBuilder, raise_for_result
from ..programs import (
    ProgramOperation,
    ProgramRegistry,
    TokenProgram,
    build_create_associated_account_instruction,
    get_associated_token_address,
)
from ..types import ResolvedAccount

logger = logging.getLogger(__name__)


def validate_address(field: str, value: str) -> Pubkey:
    """
    Parse a base58 public key supplied by a caller

    Raises:
        ValidationError: If the value is empty or not a valid public key
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError.invalid_address(field, value)
    try:
        return Pubkey.from_string(value.strip())
    except Exception as e:
        raise ValidationError.invalid_address(field, value, e)


class AddressResolver:
    """
    Deterministic associated-account derivation

    Tries each candidate program in the registry's derivation order. A
    candidate that does not support derivation, or whose derivation raises,
    is logged and skipped. No network I/O.

    Usage:
        resolver = AddressResolver(ProgramRegistry())
        account = resolver.derive(mint, wallet)
        print(account.address, account.owning_program)
    """

    def __init__(self, registry: ProgramRegistry):
        self._registry = registry

    def _derive_with(self, program: TokenProgram, mint: str, owner: str) -> str:
        if program is TokenProgram.CUSTOM:
            address = get_associated_token_address(owner, mint, TokenProgram.CUSTOM)
        elif program is TokenProgram.STANDARD:
            address = get_associated_token_address(owner, mint, TokenProgram.STANDARD)
        else:
            raise ValueError(f"Unknown token program: {program!r}")
        return str(address)

    def derive(
        self,
        mint: str,
        owner: str,
        preferred: Optional[TokenProgram] = None,
    ) -> ResolvedAccount:
        """
        Derive the expected token account address

        Args:
            mint: Token mint address
            owner: Wallet address
            preferred: Program known to own the mint, tried first

        Returns:
            ResolvedAccount for the first program whose derivation succeeds

        Raises:
            DerivationError: If every candidate program fails
        """
        attempts: Dict[str, str] = {}

        for program in self._registry.derivation_order(preferred):
            if not self._registry.supports(program, ProgramOperation.DERIVE_ADDRESS):
                logger.debug(f"{program.label} does not support address derivation, skipping")
                attempts[program.value] = "derivation not supported"
                continue

            try:
                address = self._derive_with(program, mint, owner)
            except ValueError as e:
                logger.warning(f"{program.label} derivation failed for {owner}: {e}")
                attempts[program.value] = str(e)
                continue

            return ResolvedAccount(address=address, owning_program=program)

        raise DerivationError.exhausted(mint, owner, attempts)


class TokenAccountLocator:
    """
    Finds an existing token account for (wallet, mint) on chain

    The custom program is queried first; the standard program only when the
    custom query finds nothing. Each query filters by program id and the
    results are matched against the mint locally.
    """

    def __init__(self, rpc: RpcClient, registry: ProgramRegistry):
        self._rpc = rpc
        self._registry = registry

    async def locate(self, wallet: str, mint: str) -> Optional[ResolvedAccount]:
        """
        Locate the wallet's token account for a mint

        Returns:
            ResolvedAccount, or None if neither program holds one

        Raises:
            ValidationError: If wallet or mint is malformed (before any RPC call)
            ConnectivityError: If a query fails
        """
        validate_address("wallet", wallet)
        validate_address("mint", mint)

        for program in self._registry.lookup_order():
            accounts = await self._rpc.get_token_accounts_by_owner(
                wallet,
                program_id=program.program_id,
                encoding="jsonParsed",
            )
            for entry in accounts:
                info = entry.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
                if info.get("mint") == mint:
                    logger.debug(f"Found {program.label} token account {entry.get('pubkey')} for {wallet}")
                    return ResolvedAccount(address=entry["pubkey"], owning_program=program)

        return None


class AccountProvisioner:
    """
    Ensures a wallet has a token account for a mint

    Usage:
        address = await provisioner.ensure(wallet, mint)
    """

    def __init__(
        self,
        rpc: RpcClient,
        tx_builder: TxBuilder,
        locator: TokenAccountLocator,
        resolver: AddressResolver,
        registry: ProgramRegistry,
    ):
        self._rpc = rpc
        self._tx_builder = tx_builder
        self._locator = locator
        self._resolver = resolver
        self._registry = registry

    async def ensure(self, wallet: str, mint: str) -> str:
        """
        Return the wallet's token account, creating it if absent

        An existing account returns immediately without a transaction. A
        concurrent creation of the same account makes one of the two
        transactions fail; that failure is raised, not retried.

        Returns:
            Token account address

        Raises:
            ValidationError, ConnectivityError, DerivationError, TransactionError
        """
        with CorrelationContext("ensure"):
            stage = "locate"
            program: Optional[TokenProgram] = None
            try:
                existing = await self._locator.locate(wallet, mint)
                if existing is not None:
                    log_with_correlation(
                        logger, logging.DEBUG,
                        f"Token account already exists: {existing.address}",
                        "ensure",
                    )
                    return existing.address

                stage = "derive"
                account = self._resolver.derive(mint, wallet)
                program = account.owning_program

                if not self._registry.supports(program, ProgramOperation.CREATE_ACCOUNT):
                    raise DerivationError(
                        f"{program.label} cannot create associated accounts",
                        mint=mint,
                        owner=wallet,
                    )

                stage = "send"
                instruction = build_create_associated_account_instruction(
                    payer=self._tx_builder.pubkey,
                    associated_account=account.address,
                    owner=wallet,
                    mint=mint,
                    program=program,
                )
                result = await self._tx_builder.build_and_send([instruction])
                signature = raise_for_result(result)

                log_with_correlation(
                    logger, logging.INFO,
                    f"Created {program.label} token account {account.address} for {wallet} ({signature})",
                    "ensure",
                    signature=signature,
                )
                return account.address

            except TokenServiceError as e:
                raise e.with_context(
                    wallet=wallet,
                    mint=mint,
                    stage=stage,
                    program=program.value if program else None,
                )
