"""Unit tests for chain configuration and route selection"""
import re

import pytest

from app.services.routing import (
    CCTP_FEE,
    calculate_optimal_route,
    generate_transfer_id,
    get_cctp_config,
    get_chain_config,
    short_chain_name,
    supported_chains,
    to_usdc_units,
    validate_chain_configuration,
)


class TestChainConfiguration:
    """Tests for the CCTP chain table"""

    def test_domains(self):
        config = get_cctp_config()
        assert {chain: c.domain for chain, c in config.items()} == {
            "ethereum": 0,
            "base": 6,
            "arbitrum": 3,
        }

    def test_ethereum_rpc_uses_infura_project(self):
        assert get_chain_config("ethereum").rpc.startswith("https://sepolia.infura.io/v3/")

    def test_unknown_chain(self):
        assert get_chain_config("solana") is None

    def test_supported_chains_listing(self):
        chains = supported_chains()
        assert [c["id"] for c in chains] == ["ethereum", "base", "arbitrum"]
        assert chains[0]["name"] == "Ethereum"
        assert chains[1]["usdc"] == "0x036CbD53842c5426634e7929541eC2318f3dCF7c"

    @pytest.mark.parametrize("source,destination", [
        ("ethereum", "base"),
        ("base", "arbitrum"),
        ("ethereum-sepolia", "arbitrum-sepolia"),
        ("arbitrum", "base-sepolia"),
    ])
    def test_valid_pairs(self, source, destination):
        assert validate_chain_configuration(source, destination) is True

    @pytest.mark.parametrize("source,destination", [
        ("polygon", "base"),
        ("ethereum", "solana"),
        ("", "base"),
        ("Ethereum", "base"),
    ])
    def test_invalid_pairs(self, source, destination):
        assert validate_chain_configuration(source, destination) is False

    def test_short_chain_name(self):
        assert short_chain_name("base-sepolia") == "base"
        assert short_chain_name("ethereum") == "ethereum"
        assert short_chain_name("polygon") == "polygon"


class TestCalculateOptimalRoute:
    """Tests for intent-based route selection"""

    def test_standard_keeps_destination(self):
        route = calculate_optimal_route(100, "ethereum", "arbitrum", "standard")
        assert route.optimal_chain == "arbitrum"
        assert route.estimated_fees == CCTP_FEE
        assert route.suggested_actions == []

    def test_maximize_yield_steers_to_base(self):
        route = calculate_optimal_route(100, "ethereum", "arbitrum", "maximize_yield")
        assert route.optimal_chain == "base"
        assert route.suggested_actions == ["Auto-deposit to base for 5.2% APY via CCTP V2"]

    def test_maximize_yield_from_base_keeps_destination(self):
        route = calculate_optimal_route(100, "base", "arbitrum", "maximize_yield")
        assert route.optimal_chain == "arbitrum"
        assert route.suggested_actions == []

    def test_minimize_fees_always_base(self):
        route = calculate_optimal_route(100, "base", "ethereum", "minimize_fees")
        assert route.optimal_chain == "base"
        assert route.suggested_actions == ["Route via base for lowest fees using Circle CCTP V2"]

    def test_amount_does_not_change_result(self):
        small = calculate_optimal_route(1, "ethereum", "base", "maximize_yield")
        large = calculate_optimal_route(1_000_000, "ethereum", "base", "maximize_yield")
        assert small == large

    def test_market_snapshots(self):
        route = calculate_optimal_route(100, "ethereum", "base")
        assert route.gas_data == {"ethereum": 25, "base": 0.005, "arbitrum": 0.008}
        assert route.yield_data == {"ethereum": 0.045, "base": 0.052, "arbitrum": 0.038}
        assert route.liquidity_data == {"ethereum": {"usdc": 1000000, "volume24h": 500000}}

    def test_routes_do_not_share_lists(self):
        first = calculate_optimal_route(100, "ethereum", "base", "minimize_fees")
        second = calculate_optimal_route(100, "ethereum", "base", "standard")
        assert second.suggested_actions == []
        assert len(first.suggested_actions) == 1


class TestIdentifiers:
    """Tests for transfer ids and unit conversion"""

    def test_transfer_id_format(self):
        assert re.fullmatch(r"BH_\d+_[0-9a-z]{9}", generate_transfer_id())

    def test_demo_prefix(self):
        assert generate_transfer_id("demo").startswith("demo_")

    def test_ids_differ(self):
        assert generate_transfer_id() != generate_transfer_id()

    def test_usdc_units(self):
        assert to_usdc_units(250) == "250000000"
        assert to_usdc_units(0.5) == "500000"
