"""Tests for the chain parameter table."""

import pytest

from moltenflow.chains import (
    ARBITRUM,
    ETHEREUM,
    MOLTEN_OFT_ADDRESS,
    SONIC,
    bridge_id_for,
    get_bridgeable_chains,
    get_chain,
    native_fee_for,
    require_chain,
    token_for,
)
from moltenflow.exceptions import NotSupported


class TestChainParameters:
    """Tests for chain lookups."""

    def test_bridge_ids(self):
        assert bridge_id_for(ETHEREUM) == 101
        assert bridge_id_for(ARBITRUM) == 110
        assert bridge_id_for(SONIC) == 332

    def test_unknown_chain(self):
        assert get_chain(137) is None
        with pytest.raises(NotSupported):
            require_chain(137)
        with pytest.raises(NotSupported):
            bridge_id_for(137)

    def test_native_fee(self):
        assert native_fee_for(ARBITRUM).base_units == 600_000_000_000_000
        assert native_fee_for(SONIC).value == "3"

    def test_native_fee_unlisted_chain_is_zero(self):
        """Unlisted chains get a zero fee instead of an error."""
        assert native_fee_for(137).is_zero

    def test_all_chains_bridgeable(self):
        ids = {c.chain_id for c in get_bridgeable_chains()}
        assert ids == {1, 10, 146, 8453, 42161}


class TestTokenLookup:
    """Tests for token resolution."""

    def test_symbol_case_insensitive(self):
        usdc = token_for(ARBITRUM, "usdc")
        assert usdc.symbol == "USDC"
        assert usdc.decimals == 6

    def test_address_case_insensitive(self):
        usdc = token_for(ARBITRUM, "0xAF88D065E77C8CC2239327C5EDB3A432268E5831")
        assert usdc.symbol == "USDC"

    def test_molten_same_address_everywhere(self):
        for chain_id in (1, 10, 146, 8453, 42161):
            assert token_for(chain_id, "MOLTEN").address == MOLTEN_OFT_ADDRESS

    def test_missing_token(self):
        with pytest.raises(NotSupported) as exc_info:
            token_for(SONIC, "USDC")
        assert exc_info.value.token == "USDC"

    def test_vault_tokens(self):
        assert token_for(ARBITRUM, "fluid").decimals == 6
        assert token_for(ARBITRUM, "USDM").decimals == 18
