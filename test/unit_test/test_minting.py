"""
Test minting end to end against the in-memory chain
"""

import sys
import asyncio
import struct
from decimal import Decimal
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from token_minter.errors import (
    ConnectivityError,
    ErrorCode,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from token_minter.programs import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    TokenProgram,
    get_associated_token_address,
)
from token_minter.types import U64_MAX

from fake_chain import ENDPOINT


def _ata(wallet, mint, program):
    return str(get_associated_token_address(wallet, mint, program))


def _mint_to_data(amount):
    return bytes([7]) + struct.pack("<Q", amount)


class TestValidation:

    @pytest.mark.parametrize("amount", [0, -1, "0", "-2.5", "abc", None])
    def test_bad_amount_makes_no_network_call(self, service, chain, standard_mint, wallet, amount):
        result = asyncio.run(service.mint(wallet, amount))

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_AMOUNT.value
        assert result.details["stage"] == "validate"
        assert chain.calls == []

    def test_bad_wallet_makes_no_network_call(self, service, chain, standard_mint):
        result = asyncio.run(service.mint("not-a-wallet", 10))

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_ADDRESS.value
        assert chain.calls == []

    def test_below_smallest_unit(self, service, chain, standard_mint, wallet):
        result = asyncio.run(service.mint(wallet, "0.0000001"))

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_AMOUNT.value
        assert chain.count("sendTransaction") == 0

    def test_amount_above_u64_makes_no_network_call(self, service, chain, standard_mint, wallet):
        result = asyncio.run(service.mint(wallet, "1e20000000"))

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_AMOUNT.value
        assert result.details["stage"] == "validate"
        assert chain.calls == []

    def test_u64_overflow_after_scaling(self, service, chain, mint_address, payer, wallet):
        chain.add_mint(mint_address, 1, str(payer.pubkey()))

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.executor.execute(wallet, U64_MAX))

        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT
        assert "u64" in exc_info.value.message
        assert chain.count("sendTransaction") == 0


class TestMintFlow:

    def test_new_account_created_and_minted_in_one_transaction(self, service, chain, standard_mint, wallet, mint_address):
        result = asyncio.run(service.mint(wallet, 10))

        assert result.success, result.error
        assert result.raw_amount == 10_000_000
        assert result.recipient == wallet
        assert len(chain.sent) == 1

        (create_program, create_accounts, create_data), (mint_program, mint_accounts, mint_data) = \
            chain.sent[0].instructions
        ata = _ata(wallet, mint_address, TokenProgram.STANDARD)

        assert create_program == ASSOCIATED_TOKEN_PROGRAM_ID
        assert create_data == bytes([0])
        assert create_accounts[1] == ata
        assert create_accounts[5] == TOKEN_PROGRAM_ID

        assert mint_program == TOKEN_PROGRAM_ID
        assert mint_data == _mint_to_data(10_000_000)
        assert mint_accounts == [mint_address, ata, service.payer]

        assert result.signature == chain.sent[0].signature
        assert asyncio.run(service.balance(wallet)) == Decimal(10)

    def test_existing_account_mint_only(self, service, chain, standard_mint, wallet, mint_address):
        ata = _ata(wallet, mint_address, TokenProgram.STANDARD)
        chain.add_token_account(ata, wallet, mint_address, TokenProgram.STANDARD, amount=1_000_000)

        result = asyncio.run(service.mint(wallet, "2.5"))

        assert result.success, result.error
        assert [ix[0] for ix in chain.sent[0].instructions] == [TOKEN_PROGRAM_ID]
        assert chain.token_accounts[ata].amount == 3_500_000
        assert asyncio.run(service.balance(wallet)) == Decimal("3.5")

    def test_second_mint_reuses_account(self, service, chain, standard_mint, wallet):
        asyncio.run(service.mint(wallet, 1))
        asyncio.run(service.mint(wallet, 1))

        assert len(chain.sent) == 2
        assert len(chain.sent[1].instructions) == 1
        assert asyncio.run(service.balance(wallet)) == Decimal(2)

    def test_amount_is_floored(self, service, chain, standard_mint, wallet):
        result = asyncio.run(service.mint(wallet, "1.2345678"))

        assert result.success
        assert result.raw_amount == 1_234_567
        assert chain.sent[0].instructions[-1][2] == _mint_to_data(1_234_567)

    def test_float_amount_keeps_decimal_value(self, service, chain, standard_mint, wallet):
        result = asyncio.run(service.mint(wallet, 0.1))
        assert result.raw_amount == 100_000

    def test_custom_mint_uses_token_2022(self, service, chain, custom_mint, wallet, mint_address):
        result = asyncio.run(service.mint(wallet, 10))

        assert result.success, result.error
        ata = _ata(wallet, mint_address, TokenProgram.CUSTOM)
        (create_program, create_accounts, _), (mint_program, mint_accounts, mint_data) = \
            chain.sent[0].instructions

        assert create_program == ASSOCIATED_TOKEN_PROGRAM_ID
        assert create_accounts[5] == TOKEN_2022_PROGRAM_ID
        assert mint_program == TOKEN_2022_PROGRAM_ID
        assert mint_accounts[1] == ata
        assert mint_data == _mint_to_data(10_000_000)
        assert asyncio.run(service.balance(wallet)) == Decimal(10)

    def test_decimals_fall_back_to_nine(self, service, chain, mint_address, payer, wallet):
        chain.add_mint(mint_address, 6, str(payer.pubkey()), raw_data=bytes(10))

        result = asyncio.run(service.mint(wallet, 2))

        assert result.success, result.error
        assert result.raw_amount == 2 * 10 ** 9

    def test_eighteen_decimals_floor_exactly(self, service, chain, mint_address, payer, wallet):
        chain.add_mint(mint_address, 18, str(payer.pubkey()), program=TokenProgram.CUSTOM)

        result = asyncio.run(service.mint(wallet, "1.123456789012345678999"))

        assert result.success, result.error
        assert result.raw_amount == 1_123_456_789_012_345_678
        assert chain.sent[0].instructions[-1][2] == _mint_to_data(1_123_456_789_012_345_678)
        assert asyncio.run(service.balance(wallet)) == Decimal("1.123456789012345678")

    def test_undecodable_mint_payload_falls_back_to_nine(self, service, chain, standard_mint, mint_address, wallet):
        read_account = chain.get_account_info

        async def get_account_info(address, encoding="base64", commitment=None):
            value = await read_account(address, encoding, commitment)
            if address == mint_address:
                value = dict(value, data=[None, "base64"])
            return value

        chain.get_account_info = get_account_info

        result = asyncio.run(service.mint(wallet, 2))

        assert result.success, result.error
        assert result.raw_amount == 2 * 10 ** 9

    def test_executor_mint_returns_signature(self, service, chain, standard_mint, wallet):
        signature = asyncio.run(service.executor.mint(wallet, 1))
        assert signature == chain.sent[0].signature


class TestMintFailures:

    def test_mint_not_found(self, service, chain, wallet, mint_address):
        result = asyncio.run(service.mint(wallet, 10))

        assert not result.success
        assert result.error_code == ErrorCode.MINT_NOT_FOUND.value
        assert result.error == f"Mint account not found: {mint_address}"
        assert result.details["stage"] == "read_mint"
        assert result.details["wallet"] == wallet
        assert chain.count("sendTransaction") == 0

    def test_mint_not_found_raises_from_executor(self, service, chain, wallet):
        with pytest.raises(NotFoundError):
            asyncio.run(service.executor.execute(wallet, 10))

    def test_unknown_owner_falls_back_to_standard(self, service, chain, mint_address, payer, wallet):
        chain.add_mint(mint_address, 6, str(payer.pubkey()), owner_program=SYSTEM_PROGRAM_ID)

        result = asyncio.run(service.mint(wallet, 10))

        # The standard program rejects a mint it does not own
        assert not result.success
        assert result.error_code == ErrorCode.TX_SEND_FAILED.value
        assert result.details["program"] == "standard"
        assert result.details["stage"] == "send"

    def test_locate_connectivity_error_surfaces(self, service, chain, standard_mint, wallet):
        chain.failures["getTokenAccountsByOwner"] = ConnectivityError.connection_failed(ENDPOINT)

        with pytest.raises(ConnectivityError) as exc_info:
            asyncio.run(service.executor.execute(wallet, 10))
        assert exc_info.value.details["stage"] == "locate"

        result = asyncio.run(service.mint(wallet, 10))
        assert not result.success
        assert result.error_code == ErrorCode.RPC_CONNECTION_FAILED.value
        assert chain.count("sendTransaction") == 0

    def test_payer_not_mint_authority(self, service, chain, mint_address, other_wallet, wallet):
        chain.add_mint(mint_address, 6, other_wallet)

        with pytest.raises(TransactionError) as exc_info:
            asyncio.run(service.executor.execute(wallet, 10))

        error = exc_info.value
        assert error.code == ErrorCode.TX_SEND_FAILED
        assert "0x4" in error.message
        assert error.logs
        assert error.details["mint"] == mint_address
        assert _ata(wallet, mint_address, TokenProgram.STANDARD) not in chain.token_accounts

    def test_failed_on_chain(self, service, chain, standard_mint, wallet):
        chain.confirmation = (False, {"InstructionError": [1, {"Custom": 4}]})

        result = asyncio.run(service.mint(wallet, 10))

        assert not result.success
        assert result.error_code == ErrorCode.TX_FAILED_ON_CHAIN.value
        assert result.details["signature"] == chain.sent[0].signature

    def test_confirmation_timeout(self, service, chain, standard_mint, wallet):
        chain.confirmation = (None, None)

        result = asyncio.run(service.mint(wallet, 10))

        assert not result.success
        assert result.error_code == ErrorCode.TX_CONFIRMATION_FAILED.value
        assert result.to_dict()["errorCode"] == "2003"
