"""
Async RPC Client for Solana

Provides unified JSON-RPC interface with:
- Retry logic for transport failures
- Rate limit handling
- Request timeout management
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..errors import ConnectivityError, ConfigurationError
from ..config import config as global_config, RpcConfig

logger = logging.getLogger(__name__)


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Per-client overrides; unset values come from the global config
    (token_minter.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment

    @classmethod
    def from_config(cls, rpc_config: RpcConfig) -> "RpcClientConfig":
        """Runtime settings from an explicit RpcConfig"""
        return cls(
            timeout_seconds=rpc_config.timeout_seconds,
            max_retries=rpc_config.max_retries,
            retry_delay_seconds=rpc_config.retry_delay_seconds,
            commitment=rpc_config.commitment,
        )


class RpcClient:
    """
    Async Solana RPC client

    Supports:
    - Retry logic for transient transport failures
    - Rate limit handling with backoff
    - Configurable timeouts

    The underlying httpx.AsyncClient is created on first request and shared
    by every call made through this instance.

    Usage:
        rpc = RpcClient("https://api.devnet.solana.com")

        info = await rpc.get_account_info("AccountAddress...")
        result = await rpc.call("getSlot", [])

        await rpc.aclose()
    """

    def __init__(
        self,
        endpoint: str,
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL
            config: RPC configuration options
        """
        if not endpoint or not endpoint.strip():
            raise ConfigurationError.missing("RPC endpoint")

        self._endpoint = endpoint.strip()
        self._config = config or RpcClientConfig()
        self._client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    @property
    def endpoint(self) -> str:
        """RPC endpoint URL"""
        return self._endpoint

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            ConnectivityError: On transport failure or JSON-RPC error response
        """
        client = self._get_client()
        self._request_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        last_error: Optional[Exception] = None
        timeout_val = timeout or self._config.timeout_seconds

        for attempt in range(self._config.max_retries):
            try:
                response = await client.post(
                    self.endpoint,
                    json=body,
                    timeout=timeout_val,
                )

                if response.status_code == 429:
                    logger.warning(f"Rate limited by {self.endpoint}")
                    last_error = ConnectivityError.rate_limited(self.endpoint)
                    await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))
                    continue

                response.raise_for_status()
                result = response.json()

                if "error" in result:
                    error = result["error"]
                    raise ConnectivityError.error_response(
                        self.endpoint,
                        error.get("message", str(error)),
                        rpc_code=error.get("code"),
                        data=error.get("data"),
                    )

                return result.get("result")

            except httpx.TimeoutException:
                last_error = ConnectivityError.timeout(self.endpoint, timeout_val)
                logger.warning(f"RPC timeout (attempt {attempt + 1}): {method} @ {self.endpoint}")

            except httpx.HTTPStatusError as e:
                last_error = ConnectivityError(
                    f"HTTP error {e.response.status_code}",
                    endpoint=self.endpoint,
                    original_error=e,
                )
                logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

            except httpx.RequestError as e:
                last_error = ConnectivityError.connection_failed(self.endpoint, e)
                logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

            except ConnectivityError:
                raise

            except ValueError as e:
                # Body was not JSON
                last_error = ConnectivityError(
                    f"Malformed RPC response: {e}",
                    endpoint=self.endpoint,
                    original_error=e,
                )
                logger.warning(f"RPC malformed response (attempt {attempt + 1}): {e}")

            if attempt < self._config.max_retries - 1:
                await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))

        raise last_error or ConnectivityError(f"RPC call {method} made no attempts", endpoint=self.endpoint)

    async def get_version(self) -> Dict[str, Any]:
        """Get node software version (cheap reachability probe)"""
        return await self.call("getVersion", [])

    async def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get account information

        Args:
            address: Account address (base58)
            encoding: Data encoding ("base64", "jsonParsed", etc.)
            commitment: Commitment level

        Returns:
            Account info or None if not found
        """
        params = [
            address,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getAccountInfo", params)
        return result.get("value") if result else None

    async def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get latest blockhash

        Returns:
            Dict with blockhash and lastValidBlockHeight
        """
        params = [{"commitment": commitment or self.commitment}]
        result = await self.call("getLatestBlockhash", params)
        return result.get("value", {}) if result else {}

    async def get_token_account_balance(
        self,
        token_account: str,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get SPL token account balance

        Args:
            token_account: Token account address

        Returns:
            Balance info with amount, decimals, uiAmount
        """
        params = [token_account, {"commitment": commitment or self.commitment}]
        result = await self.call("getTokenAccountBalance", params)
        return result.get("value", {}) if result else {}

    async def get_token_accounts_by_owner(
        self,
        owner: str,
        program_id: str,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get token accounts owned by address under one token program

        Args:
            owner: Owner address
            program_id: Token program filter
            encoding: Data encoding

        Returns:
            List of token account info
        """
        params = [
            owner,
            {"programId": program_id},
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    async def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Send signed transaction

        Args:
            transaction: Signed transaction bytes
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level
            max_retries: Max node-side send retries

        Returns:
            Transaction signature (base58)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "skipPreflight": skip_preflight,
                "preflightCommitment": preflight_commitment or self.commitment,
                "encoding": "base64",
            },
        ]
        if max_retries is not None:
            params[1]["maxRetries"] = max_retries

        return await self.call("sendTransaction", params)

    async def confirm_transaction(
        self,
        signature: str,
        commitment: Optional[str] = None,
        timeout_seconds: float = 60.0,
        poll_interval: float = 1.0,
    ) -> Tuple[Optional[bool], Any]:
        """
        Wait for transaction confirmation

        Args:
            signature: Transaction signature
            commitment: Target commitment ("confirmed" or "finalized")
            timeout_seconds: Max wait time
            poll_interval: Delay between status polls

        Returns:
            (True, None) if confirmed successfully
            (False, err) if the transaction failed on-chain
            (None, None) on timeout (never landed or status unknown)
        """
        target = commitment or self.commitment
        accepted = ("finalized",) if target == "finalized" else ("confirmed", "finalized")
        start_time = time.monotonic()
        last_status = None

        while time.monotonic() - start_time < timeout_seconds:
            try:
                result = await self.call("getSignatureStatuses", [[signature]])
                if result and result.get("value"):
                    status = result["value"][0]
                    if status:
                        last_status = status
                        if status.get("err"):
                            logger.warning(
                                f"Transaction {signature} failed on-chain: {status.get('err')}"
                            )
                            return False, status.get("err")
                        if status.get("confirmationStatus") in accepted:
                            return True, None
            except ConnectivityError as e:
                logger.debug(f"Error checking transaction status: {e}")

            await asyncio.sleep(poll_interval)

        if last_status is None:
            logger.warning(
                f"Transaction {signature} was never seen on chain (dropped/expired)"
            )
        else:
            logger.warning(
                f"Transaction {signature} timeout. Last status: {last_status.get('confirmationStatus', 'unknown')}"
            )

        return None, None

    async def aclose(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
