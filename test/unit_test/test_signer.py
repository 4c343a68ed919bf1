"""
Test Signer Module

Tests for local signer functionality.
"""

import sys
from pathlib import Path

import base58
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from token_minter.config import SignerConfig
from token_minter.errors import ConfigurationError, ErrorCode, TransactionError
from token_minter.infra.solana_signer import LocalSigner, Signer, create_signer
from token_minter.programs import TokenProgram, build_mint_to_instruction


def _keypair(seed: int) -> Keypair:
    return Keypair.from_seed(bytes([seed] * 32))


def _unsigned_mint_tx(fee_payer: Keypair, authority: Keypair) -> bytes:
    mint = _keypair(3).pubkey()
    destination = _keypair(5).pubkey()
    ix = build_mint_to_instruction(mint, destination, authority.pubkey(), 1, TokenProgram.STANDARD)
    message = MessageV0.try_compile(fee_payer.pubkey(), [ix], [], Hash.default())
    num_signers = message.header.num_required_signatures
    return bytes(VersionedTransaction.populate(message, [Signature.default()] * num_signers))


def test_local_signer_from_base58():
    """Test LocalSigner creation from base58 private key"""
    print("Testing LocalSigner from base58...")

    keypair = _keypair(1)
    secret = base58.b58encode(bytes(keypair)).decode("ascii")

    signer = LocalSigner.from_base58(secret)
    assert signer.pubkey == str(keypair.pubkey())
    assert isinstance(signer, Signer)

    print("  LocalSigner from base58: PASSED")


def test_local_signer_repr_hides_secret():
    """repr shows the public key only"""
    print("Testing LocalSigner repr...")

    keypair = _keypair(1)
    secret = base58.b58encode(bytes(keypair)).decode("ascii")
    signer = LocalSigner(keypair)

    assert signer.pubkey in repr(signer)
    assert secret not in repr(signer)

    print("  LocalSigner repr: PASSED")


def test_local_signer_sign():
    """Test LocalSigner sign method"""
    print("Testing LocalSigner sign...")

    keypair = _keypair(1)
    signer = LocalSigner(keypair)

    message = b"test message to sign"
    signature = signer.sign(message)

    assert len(signature) == 64  # Ed25519 signature is 64 bytes
    assert Signature.from_bytes(signature).verify(keypair.pubkey(), message)

    print("  LocalSigner sign: PASSED")


def test_sign_transaction_fills_payer_slot():
    """The payer signature lands in slot 0 and covers the versioned message"""
    print("Testing sign_transaction...")

    payer = _keypair(1)
    signer = LocalSigner(payer)
    unsigned = _unsigned_mint_tx(payer, payer)

    signed_bytes, signature = signer.sign_transaction(unsigned)
    tx = VersionedTransaction.from_bytes(signed_bytes)

    assert str(tx.signatures[0]) == signature
    message_bytes = bytes([0x80]) + bytes(tx.message)
    assert tx.signatures[0].verify(payer.pubkey(), message_bytes)

    print("  sign_transaction: PASSED")


def test_sign_transaction_rejects_non_signer():
    """A key outside the required signers raises TransactionError"""
    print("Testing sign_transaction with foreign payer...")

    payer = _keypair(1)
    stranger = _keypair(6)
    unsigned = _unsigned_mint_tx(payer, payer)

    try:
        LocalSigner(stranger).sign_transaction(unsigned)
        assert False, "Should raise TransactionError"
    except TransactionError as e:
        assert str(stranger.pubkey()) in e.message

    print("  sign_transaction with foreign payer: PASSED")


def test_create_signer_missing_key():
    """Empty payer key is a missing configuration"""
    print("Testing create_signer with missing key...")

    for value in ("", "   "):
        try:
            create_signer(SignerConfig(payer_private_key=value))
            assert False, "Should raise ConfigurationError"
        except ConfigurationError as e:
            assert e.code == ErrorCode.CONFIG_MISSING
            assert "PAYER_PRIVATE_KEY" in e.message

    print("  create_signer missing key: PASSED")


def test_create_signer_invalid_key():
    """Undecodable payer key is an invalid configuration"""
    print("Testing create_signer with invalid key...")

    for value in ("not-base58-0OIl", base58.b58encode(b"short").decode("ascii")):
        try:
            create_signer(SignerConfig(payer_private_key=value))
            assert False, "Should raise ConfigurationError"
        except ConfigurationError as e:
            assert e.code == ErrorCode.CONFIG_INVALID
            assert value not in e.message
            assert e.original_error is not None

    print("  create_signer invalid key: PASSED")


def test_create_signer_valid_key():
    """Test create_signer with a configured key"""
    print("Testing create_signer with valid key...")

    keypair = _keypair(1)
    secret = base58.b58encode(bytes(keypair)).decode("ascii")

    signer = create_signer(SignerConfig(payer_private_key=f"  {secret}\n"))
    assert signer.pubkey == str(keypair.pubkey())
    assert Pubkey.from_string(signer.pubkey) == keypair.pubkey()

    print("  create_signer valid key: PASSED")


def main():
    """Run all signer tests"""
    print("=" * 60)
    print("Signer Tests")
    print("=" * 60)

    tests = [
        test_local_signer_from_base58,
        test_local_signer_repr_hides_secret,
        test_local_signer_sign,
        test_sign_transaction_fills_payer_slot,
        test_sign_transaction_rejects_non_signer,
        test_create_signer_missing_key,
        test_create_signer_invalid_key,
        test_create_signer_valid_key,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
