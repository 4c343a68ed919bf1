"""
Test TokenService facade
"""

import sys
import asyncio
import dataclasses
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from token_minter import TokenService, create_token_service
from token_minter.errors import ConfigurationError, ConnectivityError, ErrorCode
from token_minter.infra.rpc import RpcClient
from token_minter.infra.solana_signer import LocalSigner
from token_minter.programs import SYSTEM_PROGRAM_ID, TokenProgram, get_associated_token_address
from token_minter.types import DiagnosticStage

from fake_chain import ENDPOINT


def _with_token(config, **changes):
    return dataclasses.replace(config, token=dataclasses.replace(config.token, **changes))


class TestConstruction:

    def test_missing_mint(self, config, chain, payer):
        with pytest.raises(ConfigurationError) as exc_info:
            TokenService(_with_token(config, mint_address=" "), rpc=chain, signer=LocalSigner(payer))
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING
        assert "TOKEN_MINT_ADDRESS" in exc_info.value.message

    def test_invalid_mint(self, config, chain, payer):
        with pytest.raises(ConfigurationError) as exc_info:
            TokenService(_with_token(config, mint_address="bogus"), rpc=chain, signer=LocalSigner(payer))
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID

    def test_missing_payer_fails_fast(self, config, chain):
        config = dataclasses.replace(config, signer=dataclasses.replace(config.signer, payer_private_key=""))
        with pytest.raises(ConfigurationError) as exc_info:
            TokenService(config, rpc=chain)
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING

    def test_payer_decoded_from_config(self, config, chain, payer):
        service = TokenService(config, rpc=chain)
        assert service.payer == str(payer.pubkey())
        assert chain.calls == []

    def test_descriptor_from_config(self, service, mint_address):
        assert service.token.mint_address == mint_address
        assert service.token.symbol == "MCFT"
        assert service.token.name == "Minecraft Token"
        assert service.token.decimals == 9

    def test_repr_hides_secret(self, service, payer_secret, payer):
        text = repr(service)
        assert payer_secret not in text
        assert str(payer.pubkey()) in text

    def test_create_token_service_builds_rpc_client(self, config):
        service = create_token_service(config)
        assert isinstance(service.rpc, RpcClient)
        assert service.rpc.endpoint == config.rpc.url
        asyncio.run(service.aclose())


class TestOperations:

    def test_mint_result_carries_context(self, service, wallet, mint_address):
        result = asyncio.run(service.mint(wallet, 10))

        assert not result.success
        assert result.amount == 10
        assert result.recipient == wallet
        assert result.details["mint"] == mint_address
        assert result.details["stage"] == "read_mint"

    def test_unexpected_error_becomes_failed_result(self, service, chain, standard_mint, wallet):
        chain.get_latest_blockhash = AsyncMock(side_effect=RuntimeError("boom"))

        result = asyncio.run(service.mint(wallet, 1))

        assert not result.success
        assert result.error == "Unexpected error: boom"
        assert result.recipient == wallet
        assert result.amount == 1
        assert chain.count("sendTransaction") == 0

    def test_concurrent_mints_to_different_wallets(self, service, chain, standard_mint, wallet, other_wallet):
        async def run():
            return await asyncio.gather(service.mint(wallet, 1), service.mint(other_wallet, 2))

        first, second = asyncio.run(run())

        assert first.success and second.success
        assert first.signature != second.signature
        assert asyncio.run(service.balance(wallet)) == Decimal(1)
        assert asyncio.run(service.balance(other_wallet)) == Decimal(2)

    def test_ensure_and_locate(self, service, chain, custom_mint, wallet, mint_address):
        assert asyncio.run(service.locate(wallet)) is None

        address = asyncio.run(service.ensure(wallet))

        expected = str(get_associated_token_address(wallet, mint_address, TokenProgram.CUSTOM))
        assert address == expected
        located = asyncio.run(service.locate(wallet))
        assert located.address == expected
        assert located.owning_program is TokenProgram.CUSTOM

    def test_diagnose_shares_rpc(self, service, chain, standard_mint):
        report = asyncio.run(service.diagnose())

        assert report.success
        assert report.stage is DiagnosticStage.COMPLETE
        assert chain.count("close") == 0

    def test_context_manager_closes_rpc(self, service, chain):
        async def run():
            async with service as entered:
                assert entered is service

        asyncio.run(run())
        assert chain.count("close") == 1


class TestTokenInfo:

    def test_live_values(self, service, chain, mint_address, payer):
        chain.add_mint(mint_address, 6, str(payer.pubkey()), TokenProgram.CUSTOM, supply=2_500_000)

        info = asyncio.run(service.token_info())

        assert info.decimals == 6
        assert info.supply == 2_500_000
        assert info.ui_supply == Decimal("2.5")
        assert info.owning_program is TokenProgram.CUSTOM
        assert info.symbol == "MCFT"

    def test_missing_mint_uses_hint(self, service):
        info = asyncio.run(service.token_info())
        assert info.decimals == 9
        assert info.supply is None
        assert info.owning_program is None

    def test_rpc_failure_uses_hint(self, service, chain):
        chain.failures["getAccountInfo"] = ConnectivityError.timeout(ENDPOINT, 1.0)
        info = asyncio.run(service.token_info())
        assert info.decimals == 9

    def test_hint_without_decimals_uses_fallback(self, config, chain, payer):
        service = TokenService(_with_token(config, decimals=None), rpc=chain, signer=LocalSigner(payer))
        info = asyncio.run(service.token_info())
        assert info.decimals == 9

    def test_foreign_owner_uses_hint(self, service, chain, mint_address, payer):
        chain.add_mint(mint_address, 6, str(payer.pubkey()), owner_program=SYSTEM_PROGRAM_ID)
        info = asyncio.run(service.token_info())
        assert info.decimals == 9
        assert info.owning_program is None
