"""Pytest configuration and fixtures."""

import json
import os
from typing import Callable

import httpx
import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"
os.environ["SQUID_INTEGRATOR_ID"] = "test-integrator"
os.environ["ENSO_API_KEY"] = "test-key"

from moltenflow.chain.reader import ChainReader
from moltenflow.config import Settings, get_settings
from moltenflow.signing.factory import reset_signer
from moltenflow.utils.locks import clear_account_locks

USER = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
WALLET_API_TARGET = "0x5f19704F393F983d5932b4453C6C87E85D22095E"


def word(value: int) -> str:
    """ABI-encode one uint256 return value."""
    return "0x" + hex(value)[2:].rjust(64, "0")


def json_transport(handler: Callable[[httpx.Request], tuple]) -> httpx.MockTransport:
    """MockTransport whose handler returns (status, body)."""

    def _handle(request: httpx.Request) -> httpx.Response:
        status, body = handler(request)
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    return httpx.MockTransport(_handle)


def request_body(request: httpx.Request) -> dict:
    return json.loads(request.content.decode())


class StaticReader(ChainReader):
    """Returns one fixed tuple and records calls."""

    def __init__(self, result: tuple):
        self.result = result
        self.calls = []

    async def read_contract(self, address, function_signature, args, chain_id, output_types):
        self.calls.append((address, function_signature, list(args), chain_id))
        return self.result


@pytest.fixture
def settings() -> Settings:
    """Fresh settings instance (not the cached one)."""
    return Settings()


@pytest.fixture(autouse=True)
def isolate_globals():
    """Reset process-wide registries between tests."""
    get_settings.cache_clear()
    clear_account_locks()
    reset_signer()
    yield
    get_settings.cache_clear()
    reset_signer()
