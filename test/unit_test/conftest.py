"""
Shared fixtures for unit tests

Keys are derived from fixed seeds so addresses are stable across runs.
"""

import sys
from pathlib import Path

import base58
import pytest
from solders.keypair import Keypair

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from token_minter.config import Config, RpcConfig, SignerConfig, TokenConfig, TxConfig
from token_minter.client import TokenService
from token_minter.infra.solana_signer import LocalSigner
from token_minter.infra.tx_builder import TxBuilderConfig
from token_minter.programs import TokenProgram

from fake_chain import FakeChain


def keypair_from_seed(seed: int) -> Keypair:
    return Keypair.from_seed(bytes([seed] * 32))


@pytest.fixture
def payer() -> Keypair:
    return keypair_from_seed(1)


@pytest.fixture
def wallet() -> str:
    return str(keypair_from_seed(2).pubkey())


@pytest.fixture
def other_wallet() -> str:
    return str(keypair_from_seed(4).pubkey())


@pytest.fixture
def mint_address() -> str:
    return str(keypair_from_seed(3).pubkey())


@pytest.fixture
def payer_secret(payer) -> str:
    return base58.b58encode(bytes(payer)).decode("ascii")


@pytest.fixture
def config(mint_address, payer_secret) -> Config:
    return Config(
        rpc=RpcConfig(url="http://localhost:8899", timeout_seconds=1.0, max_retries=1, retry_delay_seconds=0.0),
        token=TokenConfig(mint_address=mint_address, name="Minecraft Token", symbol="MCFT", decimals=9),
        signer=SignerConfig(payer_private_key=payer_secret),
        tx=TxConfig(
            compute_units=0,
            compute_unit_price=0,
            skip_preflight=False,
            preflight_commitment="confirmed",
            max_retries=1,
            retry_delay=0.0,
            confirmation_timeout=1.0,
            poll_interval=0.0,
        ),
    )


@pytest.fixture
def tx_config() -> TxBuilderConfig:
    return TxBuilderConfig(
        compute_units=0,
        compute_unit_price=0,
        skip_preflight=False,
        preflight_commitment="confirmed",
        max_retries=1,
        confirmation_timeout=1.0,
        retry_delay=0.0,
        poll_interval=0.0,
    )


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def standard_mint(chain, mint_address, payer):
    """SPL Token mint with 6 decimals, payer as mint authority"""
    return chain.add_mint(mint_address, 6, str(payer.pubkey()), TokenProgram.STANDARD)


@pytest.fixture
def custom_mint(chain, mint_address, payer):
    """Token-2022 mint with 6 decimals, payer as mint authority"""
    return chain.add_mint(mint_address, 6, str(payer.pubkey()), TokenProgram.CUSTOM)


@pytest.fixture
def service(config, chain, payer, tx_config) -> TokenService:
    return TokenService(config, rpc=chain, signer=LocalSigner(payer), tx_config=tx_config)
