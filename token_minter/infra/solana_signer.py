"""
Transaction signing abstractions

The payer keypair signs every transaction this service sends: it funds
account creation and is the mint authority for MintTo.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Tuple, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import ConfigurationError, TransactionError
from ..config import config as global_config, SignerConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - pubkey: The signer's public key (base58)
    - sign(): Sign a message
    - sign_transaction(): Fill in the signer's slot of a transaction
    """

    @property
    def pubkey(self) -> str:
        """Signer's public key (base58)"""
        ...

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes, returning a 64-byte signature"""
        ...

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            unsigned_tx: Unsigned transaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        ...


class LocalSigner:
    """
    Local signer using Solana keypair

    Usage:
        signer = LocalSigner.from_base58(os.environ["PAYER_PRIVATE_KEY"])
        signed_tx, sig = signer.sign_transaction(unsigned_tx_bytes)
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    def __repr__(self) -> str:
        return f"LocalSigner(pubkey={self.pubkey})"

    @property
    def pubkey(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign versioned transaction

        Args:
            unsigned_tx: Unsigned VersionedTransaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        tx = VersionedTransaction.from_bytes(unsigned_tx)
        message = tx.message

        # v0 messages are signed together with their 0x80 version prefix
        message_bytes = bytes(message)
        if isinstance(message, MessageV0):
            message_bytes = bytes([0x80]) + message_bytes

        signature = self._keypair.sign_message(message_bytes)

        num_required_signatures = message.header.num_required_signatures
        account_keys = message.account_keys
        our_pubkey = self._keypair.pubkey()

        signer_index = None
        for i in range(num_required_signatures):
            if i < len(account_keys) and account_keys[i] == our_pubkey:
                signer_index = i
                break

        if signer_index is None:
            expected = [str(account_keys[i]) for i in range(min(num_required_signatures, len(account_keys)))]
            raise TransactionError(
                f"Wallet {our_pubkey} is not in the required signers list. "
                f"Expected signers: {expected}"
            )

        signatures = [Signature.default()] * num_required_signatures
        signatures[signer_index] = signature

        signed_tx = VersionedTransaction.populate(message, signatures)
        return bytes(signed_tx), str(signature)

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        return cls(Keypair.from_bytes(secret_key))

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Create signer from base58 secret key"""
        return cls.from_bytes(base58.b58decode(secret_key))


def create_signer(signer_config: Optional[SignerConfig] = None) -> LocalSigner:
    """
    Create the payer signer from configuration

    Args:
        signer_config: Signer settings (defaults to global config)

    Returns:
        LocalSigner

    Raises:
        ConfigurationError: If the payer key is missing or cannot be decoded
    """
    signer_config = signer_config or global_config.signer
    secret = (signer_config.payer_private_key or "").strip()
    if not secret:
        raise ConfigurationError.missing("PAYER_PRIVATE_KEY")

    try:
        signer = LocalSigner.from_base58(secret)
    except Exception as e:
        raise ConfigurationError.invalid(
            "PAYER_PRIVATE_KEY", "expected a base58 encoded 64-byte secret key", e
        )

    logger.debug(f"Payer signer loaded: {signer.pubkey}")
    return signer
