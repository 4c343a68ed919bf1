"""
Player Module

Game identity layer: resolves a player UUID to its linked wallet, then mints
or reads balances through the token service.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional, Protocol, TYPE_CHECKING, runtime_checkable

from ..errors import ErrorCode, TokenServiceError, ValidationError
from ..types import MintResult, Number, PlayerBalance, parse_amount
from .accounts import validate_address

if TYPE_CHECKING:
    from ..client import TokenService

logger = logging.getLogger(__name__)


@dataclass
class LinkedIdentity:
    """
    Game identity and its wallet

    Created on first link; unlinking clears the wallet but keeps the record.
    """
    uuid: str
    wallet_address: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class WalletDirectory(Protocol):
    """Lookup of a player's linked wallet"""

    async def get_wallet(self, uuid: str) -> Optional[str]:
        """
        Returns:
            Wallet address, "" if the player exists without a wallet,
            None if the player is unknown
        """
        ...


class InMemoryWalletDirectory:
    """
    WalletDirectory backed by a dict

    A wallet can be linked to at most one player.

    Usage:
        directory = InMemoryWalletDirectory()
        directory.link("069a79f4-44e9-4726-a5be-fca90e38aaf5", wallet)
        await directory.get_wallet("069a79f4-44e9-4726-a5be-fca90e38aaf5")
    """

    def __init__(self):
        self._identities: Dict[str, LinkedIdentity] = {}

    def link(self, uuid: str, wallet_address: str) -> LinkedIdentity:
        """Link (or relink) a wallet, creating the identity if needed"""
        validate_address("wallet", wallet_address)

        holder = self.find_by_wallet(wallet_address)
        if holder is not None and holder.uuid != uuid:
            raise ValidationError(
                f"Wallet {wallet_address} is already linked to another player",
                ErrorCode.INVALID_ADDRESS,
                field="wallet",
                value=wallet_address,
            )

        identity = self._identities.get(uuid)
        if identity is None:
            identity = LinkedIdentity(uuid=uuid, wallet_address=wallet_address)
            self._identities[uuid] = identity
            logger.info(f"Created new player {uuid} with wallet {wallet_address}")
        else:
            identity.wallet_address = wallet_address
            identity.updated_at = datetime.now(timezone.utc)
            logger.info(f"Updated player {uuid} with new wallet {wallet_address}")
        return identity

    def unlink(self, uuid: str) -> Optional[LinkedIdentity]:
        """Clear the player's wallet; the identity itself is kept"""
        identity = self._identities.get(uuid)
        if identity is None:
            return None
        identity.wallet_address = None
        identity.updated_at = datetime.now(timezone.utc)
        logger.info(f"Unlinked wallet from player {uuid}")
        return identity

    def get(self, uuid: str) -> Optional[LinkedIdentity]:
        return self._identities.get(uuid)

    def find_by_wallet(self, wallet_address: str) -> Optional[LinkedIdentity]:
        for identity in self._identities.values():
            if identity.wallet_address == wallet_address:
                return identity
        return None

    async def get_wallet(self, uuid: str) -> Optional[str]:
        identity = self._identities.get(uuid)
        if identity is None:
            return None
        return identity.wallet_address or ""


class PlayerRewards:
    """
    Player-facing token operations

    Results are returned, never raised, in the shape the game plugin expects.
    """

    def __init__(self, service: "TokenService", directory: WalletDirectory):
        self._service = service
        self._directory = directory

    async def mint_to_player(self, uuid: str, amount: Number) -> MintResult:
        """Mint tokens to the wallet linked to `uuid`"""
        logger.info(f"Attempting to mint {amount} tokens to player with UUID: {uuid}")

        try:
            parse_amount(amount)
        except ValidationError as e:
            return MintResult.failed(e.message, amount, uuid, error_code=e.code.value)

        wallet = await self._directory.get_wallet(uuid)
        if wallet is None:
            logger.warning(f"Player with UUID {uuid} not found")
            return MintResult.failed("Player not found", amount, uuid)
        if not wallet:
            logger.warning(f"Player with UUID {uuid} does not have a linked wallet")
            return MintResult.failed("No wallet linked to this player", amount, uuid)

        result = await self._service.mint(wallet, amount)
        if not result.success:
            result.error = f"Failed to mint tokens: {result.error}"
        return result

    async def player_balance(self, uuid: str) -> PlayerBalance:
        """Token balance of the wallet linked to `uuid`"""
        logger.info(f"Fetching token balance for player with UUID: {uuid}")

        wallet = await self._directory.get_wallet(uuid)
        if wallet is None:
            logger.warning(f"User with UUID {uuid} not found")
            return PlayerBalance(uuid=uuid, wallet_address=None, success=False, error="User not found")
        if not wallet:
            logger.warning(f"User with UUID {uuid} does not have a linked wallet")
            return PlayerBalance(
                uuid=uuid,
                wallet_address=None,
                success=False,
                error="No wallet linked to this account",
            )

        try:
            balance = await self._service.balance(wallet)
        except TokenServiceError as e:
            logger.error(f"Error fetching token balance for UUID {uuid}: {e}")
            return PlayerBalance(
                uuid=uuid,
                wallet_address=None,
                balance=Decimal(0),
                success=False,
                error=f"Error fetching token balance: {e.message}",
            )

        return PlayerBalance(uuid=uuid, wallet_address=wallet, balance=balance)
