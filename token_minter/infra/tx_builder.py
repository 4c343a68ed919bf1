"""
Transaction builder and sender

Provides utilities for:
- Building versioned transactions
- Adding compute budget instructions
- Sending and confirming transactions
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from .solana_signer import Signer
from ..types import TxResult, TxStatus
from ..errors import TransactionError, ConnectivityError, ErrorCode
from ..config import config as global_config, TxConfig

logger = logging.getLogger(__name__)


@dataclass
class TxBuilderConfig:
    """
    Transaction builder runtime configuration

    Per-builder overrides; unset values come from the global config
    (token_minter.config.TxConfig).

    Usage:
        # Use all defaults from environment
        builder = TxBuilder(rpc, signer)

        # Override specific settings
        config = TxBuilderConfig(compute_units=200_000, skip_preflight=True)
        builder = TxBuilder(rpc, signer, config=config)
    """
    compute_units: int = None
    compute_unit_price: int = None
    skip_preflight: bool = None
    preflight_commitment: str = None
    max_retries: int = None
    confirmation_timeout: float = None
    retry_delay: float = None
    poll_interval: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.compute_units is None:
            self.compute_units = global_config.tx.compute_units
        if self.compute_unit_price is None:
            self.compute_unit_price = global_config.tx.compute_unit_price
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.max_retries is None:
            self.max_retries = global_config.tx.max_retries
        if self.confirmation_timeout is None:
            self.confirmation_timeout = global_config.tx.confirmation_timeout
        if self.retry_delay is None:
            self.retry_delay = global_config.tx.retry_delay
        if self.poll_interval is None:
            self.poll_interval = global_config.tx.poll_interval

    @classmethod
    def from_config(cls, tx_config: TxConfig) -> "TxBuilderConfig":
        """Runtime settings from an explicit TxConfig"""
        return cls(
            compute_units=tx_config.compute_units,
            compute_unit_price=tx_config.compute_unit_price,
            skip_preflight=tx_config.skip_preflight,
            preflight_commitment=tx_config.preflight_commitment,
            max_retries=tx_config.max_retries,
            confirmation_timeout=tx_config.confirmation_timeout,
            retry_delay=tx_config.retry_delay,
            poll_interval=tx_config.poll_interval,
        )


class TxBuilder:
    """
    Transaction builder and sender

    Handles:
    - Building v0 transactions with optional compute budget
    - Signing with the payer
    - Sending with retry on recoverable transport errors
    - Confirmation polling

    Usage:
        builder = TxBuilder(rpc, signer)

        # Build and send
        result = await builder.build_and_send(instructions)

        # Or step by step
        tx_bytes = await builder.build(instructions)
        signed_bytes, sig = builder.sign(tx_bytes)
        result = await builder.send(signed_bytes)
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Signer,
        config: Optional[TxBuilderConfig] = None,
    ):
        """
        Initialize transaction builder

        Args:
            rpc: RPC client
            signer: Transaction signer (fee payer)
            config: Transaction configuration
        """
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxBuilderConfig()

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        return self._signer.pubkey

    async def build(
        self,
        instructions: List[Instruction],
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        recent_blockhash: Optional[str] = None,
    ) -> bytes:
        """
        Build unsigned versioned transaction

        Args:
            instructions: List of instructions
            compute_units: Compute unit limit (0 omits the instruction)
            compute_unit_price: Priority fee in microlamports per CU
            recent_blockhash: Optional blockhash (fetched if not provided)

        Returns:
            Unsigned transaction bytes
        """
        if not instructions:
            raise TransactionError.send_failed("No instructions to send")

        all_instructions = []

        cu_limit = compute_units or self._config.compute_units
        cu_price = compute_unit_price or self._config.compute_unit_price

        if cu_limit > 0:
            all_instructions.append(set_compute_unit_limit(cu_limit))

        if cu_price > 0:
            all_instructions.append(set_compute_unit_price(cu_price))

        all_instructions.extend(instructions)

        if recent_blockhash is None:
            blockhash_info = await self._rpc.get_latest_blockhash()
            recent_blockhash = blockhash_info.get("blockhash")

        if not recent_blockhash:
            raise TransactionError.send_failed("Failed to get recent blockhash")

        message = MessageV0.try_compile(
            Pubkey.from_string(self.pubkey),
            all_instructions,
            [],  # Address lookup tables
            Hash.from_string(recent_blockhash),
        )

        # Signature slots must match num_required_signatures
        num_signers = message.header.num_required_signatures
        tx = VersionedTransaction.populate(message, [Signature.default()] * num_signers)

        return bytes(tx)

    def sign(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign transaction with the payer

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        return self._signer.sign_transaction(unsigned_tx)

    async def send(
        self,
        signed_tx: bytes,
        skip_preflight: Optional[bool] = None,
    ) -> TxResult:
        """
        Send signed transaction and wait for confirmation

        Confirmation waits for the RPC client's commitment level.

        Args:
            signed_tx: Signed transaction bytes
            skip_preflight: Skip simulation (default from config)

        Returns:
            TxResult with status and signature

        Raises:
            TransactionError: If the transaction cannot be submitted
        """
        skip = skip_preflight if skip_preflight is not None else self._config.skip_preflight

        for attempt in range(self._config.max_retries):
            try:
                signature = await self._rpc.send_transaction(
                    signed_tx,
                    skip_preflight=skip,
                    preflight_commitment=self._config.preflight_commitment,
                )
            except ConnectivityError as e:
                if e.recoverable and attempt < self._config.max_retries - 1:
                    logger.warning(f"Send failed (attempt {attempt + 1}), retrying: {e}")
                    await asyncio.sleep(self._config.retry_delay)
                    continue
                raise TransactionError.send_failed(
                    e.message,
                    logs=_preflight_logs(e),
                    recoverable=e.recoverable,
                    original_error=e,
                )

            logger.info(f"Transaction sent: {signature}")

            confirmed, chain_error = await self._rpc.confirm_transaction(
                signature,
                commitment=self._rpc.commitment,
                timeout_seconds=self._config.confirmation_timeout,
                poll_interval=self._config.poll_interval,
            )

            if confirmed is True:
                return TxResult.success(signature)
            elif confirmed is False:
                return TxResult.failed(
                    f"Transaction failed on-chain: {chain_error}",
                    signature=signature,
                    error_code=ErrorCode.TX_FAILED_ON_CHAIN.value,
                    chain_error=chain_error,
                )
            else:
                return TxResult.timeout(signature)

        # Only reached if max_retries is 0 (misconfiguration)
        raise TransactionError.send_failed("No send attempts made (max_retries=0)")

    async def build_and_send(
        self,
        instructions: List[Instruction],
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        skip_preflight: Optional[bool] = None,
    ) -> TxResult:
        """
        Build, sign, and send transaction in one call

        Args:
            instructions: List of instructions
            compute_units: Compute unit limit
            compute_unit_price: Priority fee
            skip_preflight: Skip simulation

        Returns:
            TxResult
        """
        unsigned_tx = await self.build(
            instructions,
            compute_units=compute_units,
            compute_unit_price=compute_unit_price,
        )

        signed_tx, signature = self.sign(unsigned_tx)
        logger.debug(f"Signed transaction {signature[:16]}... ({len(instructions)} instructions)")

        return await self.send(signed_tx, skip_preflight=skip_preflight)


def raise_for_result(result: TxResult) -> str:
    """
    Convert a non-successful TxResult into TransactionError

    Returns:
        Signature of the confirmed transaction
    """
    if result.is_success:
        return result.signature
    if result.is_timeout:
        raise TransactionError.confirmation_failed(result.signature, result.error)
    raise TransactionError.failed_on_chain(result.signature, result.chain_error or result.error)


def _preflight_logs(error: ConnectivityError) -> List[str]:
    """Program logs from a preflight simulation failure, if the node sent any"""
    data = error.details.get("rpc_error_data")
    if isinstance(data, dict):
        return list(data.get("logs") or [])
    return []
