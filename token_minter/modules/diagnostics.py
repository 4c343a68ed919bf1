"""
Diagnostics Module

Read-only health check of the minting configuration: configuration present,
payer key decodable, mint address valid, RPC reachable, mint account present,
owned by a token program and parseable. Stops at the first failing check.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..config import Config, get_config
from ..errors import ConfigurationError, NotFoundError, OwnershipMismatchError, TokenServiceError
from ..infra.rpc import RpcClient, RpcClientConfig
from ..infra.solana_signer import create_signer
from ..programs import ProgramRegistry, decode_account_data, parse_mint_account
from ..types import DiagnosticReport, DiagnosticStage
from .accounts import validate_address

logger = logging.getLogger(__name__)

# Hex characters of mint data kept in the report
DATA_PREVIEW_CHARS = 100


def get_network_name(rpc_url: str) -> str:
    """Best-effort cluster name for an RPC URL"""
    url = (rpc_url or "").lower()
    if "devnet" in url:
        return "devnet"
    if "testnet" in url:
        return "testnet"
    host = urlparse(url).hostname or ""
    if host in ("localhost", "127.0.0.1") or "localhost" in url or "127.0.0.1" in url:
        return "localnet"
    return "mainnet"


class _StageFailed(Exception):
    """Internal: ends the run at the current stage"""

    def __init__(self, error: str, error_code: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.error_code = error_code


class DiagnosticProbe:
    """
    Staged mint configuration check

    Every value computed before a failure stays in the report details.

    Usage:
        probe = DiagnosticProbe(config)
        report = await probe.diagnose()
        if not report.success:
            print(report.stage, report.error)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        rpc: Optional[RpcClient] = None,
        registry: Optional[ProgramRegistry] = None,
    ):
        self._config = config or get_config()
        self._rpc = rpc
        self._owns_rpc = rpc is None
        self._registry = registry or ProgramRegistry()

    async def diagnose(self) -> DiagnosticReport:
        """
        Run all checks

        Returns:
            DiagnosticReport; never raises for expected failures
        """
        details: Dict[str, Any] = {}
        stage = DiagnosticStage.CONFIGURATION
        rpc_url = self._config.rpc.url
        details["rpc_url"] = rpc_url
        details["network"] = get_network_name(rpc_url)
        mint_str = (self._config.token.mint_address or "").strip()

        logger.info(f"Running diagnostics against {rpc_url} ({details['network']})")

        try:
            # Configuration present
            if not mint_str:
                err = ConfigurationError.missing("TOKEN_MINT_ADDRESS")
                raise _StageFailed(f"{err.message} (token mint address is not set)", err.code.value)
            details["mint_address"] = mint_str
            if not (self._config.signer.payer_private_key or "").strip():
                err = ConfigurationError.missing("PAYER_PRIVATE_KEY")
                raise _StageFailed(err.message, err.code.value)

            # Payer key decodes
            stage = DiagnosticStage.PAYER_KEY
            try:
                payer = create_signer(self._config.signer).pubkey
            except ConfigurationError as e:
                raise _StageFailed(f"Invalid payer private key: {e.message}", e.code.value)
            details["payer"] = {"public_key": payer}

            # Mint address well-formed
            stage = DiagnosticStage.MINT_ADDRESS
            try:
                validate_address("mint", mint_str)
            except TokenServiceError as e:
                raise _StageFailed(f"Invalid mint address format: {e.message}", e.code.value)

            # RPC reachable
            stage = DiagnosticStage.RPC_CONNECTION
            rpc = self._get_rpc()
            try:
                details["rpc_version"] = await rpc.get_version()
            except TokenServiceError as e:
                raise _StageFailed(f"Failed to connect to Solana RPC: {e.message}", e.code.value)

            # Mint account exists
            stage = DiagnosticStage.MINT_ACCOUNT
            try:
                account_info = await rpc.get_account_info(mint_str, encoding="base64")
            except TokenServiceError as e:
                raise _StageFailed(f"Failed to fetch mint account: {e.message}", e.code.value)
            if account_info is None:
                err = NotFoundError.mint_not_found(mint_str)
                raise _StageFailed(f"{err.message} (does not exist on {details['network']})", err.code.value)

            try:
                data = decode_account_data(account_info)
            except ValueError as e:
                raise _StageFailed(f"Mint account data unreadable: {e}")
            details["data_preview"] = {
                "hex": data.hex()[:DATA_PREVIEW_CHARS],
                "length": len(data),
            }

            # Owner is a recognised token program
            stage = DiagnosticStage.MINT_OWNER
            owner = account_info.get("owner")
            program = self._registry.from_owner(owner)
            details["owner"] = {
                "address": owner,
                "is_token_program": program is not None,
                "program": program.value if program else None,
                "expected_token_programs": list(self._registry.expected_program_ids()),
            }
            if program is None:
                err = OwnershipMismatchError.unexpected_owner(mint_str, owner)
                raise _StageFailed(err.message, err.code.value)

            # Mint layout parses
            stage = DiagnosticStage.MINT_METADATA
            try:
                metadata = parse_mint_account(data, program)
            except ValueError as e:
                raise _StageFailed(
                    f"Account is owned by {program.label} but failed to parse as mint: {e}"
                )
            details["mint_info"] = metadata.to_dict()
            details["payer"]["is_mint_authority"] = metadata.mint_authority == payer

        except _StageFailed as failure:
            logger.warning(f"Diagnostics failed at {stage.value}: {failure.error}")
            return DiagnosticReport(
                success=False,
                stage=stage,
                error=failure.error,
                error_code=failure.error_code,
                details=details,
            )
        except Exception as e:
            logger.exception(f"Unexpected error during diagnostics at {stage.value}")
            return DiagnosticReport(
                success=False,
                stage=stage,
                error=f"Unexpected error: {e}",
                details=details,
            )
        finally:
            await self._close_rpc()

        if not details["payer"]["is_mint_authority"]:
            logger.warning(f"Payer {payer} is not the mint authority of {mint_str}")
        logger.info(f"Diagnostics passed for mint {mint_str}")
        return DiagnosticReport(success=True, stage=DiagnosticStage.COMPLETE, details=details)

    def _get_rpc(self) -> RpcClient:
        if self._rpc is None:
            self._rpc = RpcClient(
                self._config.rpc.url,
                config=RpcClientConfig.from_config(self._config.rpc),
            )
        return self._rpc

    async def _close_rpc(self):
        if self._owns_rpc and self._rpc is not None:
            await self._rpc.aclose()
            self._rpc = None
