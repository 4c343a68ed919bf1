"""
Shared configuration and fixtures for live devnet tests.

WARNING: These tests send real transactions and spend real SOL for fees!

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required, must be devnet or localnet)
    TOKEN_MINT_ADDRESS: Mint whose authority is the payer (required)
    PAYER_PRIVATE_KEY: Base58 encoded payer secret key (required)
    TEST_RECIPIENT_WALLET: Wallet to mint to (defaults to the payer)
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from token_minter import Config, TokenService
from token_minter.modules.diagnostics import get_network_name

REQUIRED_ENV = ("SOLANA_RPC_URL", "TOKEN_MINT_ADDRESS", "PAYER_PRIVATE_KEY")


def skip_if_no_config():
    """Return a skip message if live settings are missing or point at mainnet"""
    missing = [key for key in REQUIRED_ENV if not os.getenv(key)]
    if missing:
        return f"Missing required environment variables: {', '.join(missing)}"
    if get_network_name(os.getenv("SOLANA_RPC_URL")) == "mainnet":
        return "Refusing to run live tests against mainnet"
    return None


@pytest.fixture(scope="module")
def live_config():
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)
    return Config()


@pytest.fixture
def live_service(live_config):
    return TokenService(live_config)


@pytest.fixture
def recipient(live_service):
    return os.getenv("TEST_RECIPIENT_WALLET") or live_service.payer
