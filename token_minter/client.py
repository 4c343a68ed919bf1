"""
TokenService - Unified entry point for token operations

Mints the configured token to wallets, reads balances, provisions token
accounts and diagnoses the mint configuration.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from .config import Config, get_config
from .errors import ConfigurationError, TokenServiceError, ValidationError
from .infra import (
    RpcClient,
    RpcClientConfig,
    Signer,
    TxBuilder,
    TxBuilderConfig,
    CorrelationContext,
    create_signer,
    log_with_correlation,
)
from .modules.accounts import validate_address
from .programs import FALLBACK_DECIMALS, ProgramRegistry, decode_account_data, parse_mint_account
from .types import (
    DiagnosticReport,
    MintResult,
    Number,
    ResolvedAccount,
    TokenDescriptor,
    TokenMintInfo,
)

if TYPE_CHECKING:
    from .modules import (
        AccountProvisioner,
        AddressResolver,
        BalanceReader,
        MintExecutor,
        TokenAccountLocator,
    )

logger = logging.getLogger(__name__)


class TokenService:
    """
    Token service client

    All collaborators are injected or built here once; the payer key is
    decoded at construction so a bad key fails fast. The HTTP connection is
    opened on first use.

    Usage:
        async with TokenService() as service:
            result = await service.mint(wallet, 10)
            if result.success:
                print(result.signature)

            balance = await service.balance(wallet)

        # Explicit collaborators (tests, embedding)
        service = TokenService(config, rpc=rpc, signer=signer)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        rpc: Optional[RpcClient] = None,
        signer: Optional[Signer] = None,
        registry: Optional[ProgramRegistry] = None,
        tx_config: Optional[TxBuilderConfig] = None,
    ):
        """
        Initialize TokenService

        Args:
            config: Configuration (defaults to the global config)
            rpc: Optional RPC client (built from config.rpc if omitted)
            signer: Optional payer signer (decoded from config.signer if omitted)
            registry: Optional program registry
            tx_config: Optional transaction configuration

        Raises:
            ConfigurationError: If the mint address or payer key is missing or invalid
        """
        self._config = config or get_config()

        token = self._config.token
        mint_address = (token.mint_address or "").strip()
        if not mint_address:
            raise ConfigurationError.missing("TOKEN_MINT_ADDRESS")
        try:
            validate_address("mint", mint_address)
        except ValidationError as e:
            raise ConfigurationError.invalid("TOKEN_MINT_ADDRESS", e.message, e)

        self._token = TokenDescriptor(
            mint_address=mint_address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
        )

        self._signer = signer or create_signer(self._config.signer)
        self._rpc = rpc or RpcClient(
            self._config.rpc.url,
            config=RpcClientConfig.from_config(self._config.rpc),
        )
        self._tx_builder = TxBuilder(
            self._rpc,
            self._signer,
            config=tx_config or TxBuilderConfig.from_config(self._config.tx),
        )
        self._registry = registry or ProgramRegistry()

        # Lazy-loaded modules
        self._resolver: Optional["AddressResolver"] = None
        self._locator: Optional["TokenAccountLocator"] = None
        self._provisioner: Optional["AccountProvisioner"] = None
        self._executor: Optional["MintExecutor"] = None
        self._balance_reader: Optional["BalanceReader"] = None

    @property
    def token(self) -> TokenDescriptor:
        """Configured token"""
        return self._token

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Signer:
        """Access to payer signer"""
        return self._signer

    @property
    def tx_builder(self) -> TxBuilder:
        """Access to transaction builder"""
        return self._tx_builder

    @property
    def registry(self) -> ProgramRegistry:
        return self._registry

    @property
    def payer(self) -> str:
        """Payer (mint authority) public key"""
        return self._signer.pubkey

    @property
    def resolver(self) -> "AddressResolver":
        if self._resolver is None:
            from .modules.accounts import AddressResolver
            self._resolver = AddressResolver(self._registry)
        return self._resolver

    @property
    def locator(self) -> "TokenAccountLocator":
        if self._locator is None:
            from .modules.accounts import TokenAccountLocator
            self._locator = TokenAccountLocator(self._rpc, self._registry)
        return self._locator

    @property
    def provisioner(self) -> "AccountProvisioner":
        if self._provisioner is None:
            from .modules.accounts import AccountProvisioner
            self._provisioner = AccountProvisioner(
                self._rpc, self._tx_builder, self.locator, self.resolver, self._registry
            )
        return self._provisioner

    @property
    def executor(self) -> "MintExecutor":
        if self._executor is None:
            from .modules.minting import MintExecutor
            self._executor = MintExecutor(
                self._rpc,
                self._tx_builder,
                self.locator,
                self.resolver,
                self._registry,
                self._token.mint_address,
            )
        return self._executor

    @property
    def balance_reader(self) -> "BalanceReader":
        if self._balance_reader is None:
            from .modules.balance import BalanceReader
            self._balance_reader = BalanceReader(self._rpc, self.locator, self._token.mint_address)
        return self._balance_reader

    async def mint(self, wallet: str, amount: Number) -> MintResult:
        """
        Mint tokens to a wallet

        Service errors are reported in the result, never raised.

        Args:
            wallet: Recipient wallet address
            amount: Amount in UI units

        Returns:
            MintResult with signature on success, error and error code otherwise
        """
        with CorrelationContext("mint"):
            log_with_correlation(
                logger, logging.INFO,
                f"Mint request: {amount} {self._token.symbol} to {wallet}",
                "mint",
            )
            try:
                signature, raw_amount = await self.executor.execute(wallet, amount)
            except TokenServiceError as e:
                log_with_correlation(
                    logger, logging.ERROR,
                    f"Mint failed: {e} (details: {e.details})",
                    "mint",
                    error_code=e.code.value,
                )
                return MintResult.failed(
                    e.message,
                    amount,
                    wallet,
                    error_code=e.code.value,
                    details=dict(e.details),
                )
            except Exception as e:
                log_with_correlation(
                    logger, logging.ERROR,
                    f"Mint failed with unexpected error: {e!r}",
                    "mint",
                )
                return MintResult.failed(f"Unexpected error: {e}", amount, wallet)

            return MintResult.succeeded(signature, amount, wallet, raw_amount=raw_amount)

    async def balance(self, wallet: str) -> Decimal:
        """
        Token balance of a wallet in UI units

        Returns:
            Balance, 0 if the wallet has no token account

        Raises:
            ValidationError, ConnectivityError
        """
        return await self.balance_reader.balance(wallet)

    async def ensure(self, wallet: str, mint: Optional[str] = None) -> str:
        """
        Token account address for `wallet`, created if absent

        Args:
            wallet: Wallet address
            mint: Token mint (defaults to the configured mint)
        """
        return await self.provisioner.ensure(wallet, mint or self._token.mint_address)

    async def locate(self, wallet: str, mint: Optional[str] = None) -> Optional[ResolvedAccount]:
        """Existing token account for `wallet`, or None"""
        return await self.locator.locate(wallet, mint or self._token.mint_address)

    async def diagnose(self) -> DiagnosticReport:
        """Run read-only diagnostics on the mint configuration"""
        from .modules.diagnostics import DiagnosticProbe
        probe = DiagnosticProbe(self._config, rpc=self._rpc, registry=self._registry)
        return await probe.diagnose()

    async def token_info(self) -> TokenMintInfo:
        """
        Configured token details with live decimals and supply

        Falls back to the configured decimals when the mint cannot be read.
        """
        mint = self._token.mint_address
        fallback = TokenMintInfo(
            mint_address=mint,
            name=self._token.name,
            symbol=self._token.symbol,
            decimals=self._token.decimals if self._token.decimals is not None else FALLBACK_DECIMALS,
        )

        try:
            account_info = await self._rpc.get_account_info(mint, encoding="base64")
        except TokenServiceError as e:
            logger.warning(f"Could not fetch mint {mint}: {e}")
            return fallback

        if account_info is None:
            logger.warning(f"Mint account not found: {mint}")
            return fallback

        program = self._registry.from_owner(account_info.get("owner"))
        if program is None:
            logger.warning(f"Mint {mint} is not owned by a token program")
            return fallback

        try:
            metadata = parse_mint_account(decode_account_data(account_info), program)
        except ValueError as e:
            logger.warning(f"Could not parse mint {mint}: {e}")
            return fallback

        return TokenMintInfo(
            mint_address=mint,
            name=self._token.name,
            symbol=self._token.symbol,
            decimals=metadata.decimals,
            supply=metadata.supply,
            owning_program=program,
        )

    async def aclose(self):
        """Close client connections and release resources"""
        await self._rpc.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def __repr__(self) -> str:
        return f"TokenService(token={self._token!r}, payer={self.payer}, rpc={self._rpc.endpoint})"


def create_token_service(config: Optional[Config] = None) -> TokenService:
    """
    Build a TokenService from environment configuration

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    service = TokenService(config)
    logger.info(f"Token service ready for {service.token.symbol} ({service.token.mint_address})")
    return service
