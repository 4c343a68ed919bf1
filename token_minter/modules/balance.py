"""
Balance Module

Token balance queries for the configured mint.
"""

import logging
from decimal import Decimal

from ..infra.rpc import RpcClient
from .accounts import TokenAccountLocator

logger = logging.getLogger(__name__)


class BalanceReader:
    """
    Reads a wallet's balance of the configured token

    A wallet with no token account holds zero. Query failures propagate so a
    caller can tell "empty" from "unknown".

    Usage:
        reader = BalanceReader(rpc, locator, mint)
        balance = await reader.balance(wallet)  # Decimal("10.5")
    """

    def __init__(self, rpc: RpcClient, locator: TokenAccountLocator, mint_address: str):
        self._rpc = rpc
        self._locator = locator
        self._mint = mint_address

    async def balance(self, wallet: str) -> Decimal:
        """
        Get token balance in UI units

        Args:
            wallet: Wallet address

        Returns:
            Balance as Decimal, 0 if the wallet has no token account
        """
        account = await self._locator.locate(wallet, self._mint)
        if account is None:
            logger.debug(f"No token account for {wallet}, balance is 0")
            return Decimal(0)

        value = await self._rpc.get_token_account_balance(account.address)

        # Use amount + decimals for precision (uiAmount is a float)
        if value.get("uiAmount") is None:
            return Decimal(0)
        amount_str = value.get("amount")
        if not amount_str:
            return Decimal(0)
        decimals = int(value.get("decimals", 0))
        return Decimal(amount_str) / Decimal(10 ** decimals)
