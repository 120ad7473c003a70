"""Tests for network profiles and the readiness policy."""

from __future__ import annotations

import pytest

from node_health.readiness import (
    MIN_CONSENSUS_PEERS,
    PROFILES,
    Check,
    Network,
    ReadinessPolicy,
    Verdict,
    profile_for,
)


class TestNetwork:
    """Tests for network name parsing."""

    @pytest.mark.parametrize(
        ("name", "network"),
        [
            ("mainnet", Network.MAINNET),
            ("Goerli", Network.GOERLI),
            ("HOLESKY", Network.HOLESKY),
            (" hoodi ", Network.HOODI),
        ],
    )
    def test_parse_is_case_insensitive(self, name: str, network: Network) -> None:
        assert Network.parse(name) is network

    def test_unknown_network_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown network 'sepolia'"):
            Network.parse("sepolia")

    def test_str_is_name(self) -> None:
        assert str(Network.HOLESKY) == "holesky"


class TestProfiles:
    """Tests for per-network thresholds."""

    def test_every_network_has_a_profile(self) -> None:
        assert set(PROFILES) == set(Network)
        for network in Network:
            assert profile_for(network).network is network

    def test_mainnet_requires_five_execution_peers(self) -> None:
        profile = profile_for(Network.MAINNET)

        assert profile.peer_checks_enabled
        assert profile.min_execution_peers == 5

    @pytest.mark.parametrize("network", [Network.HOLESKY, Network.HOODI])
    def test_testnets_require_two_execution_peers(self, network: Network) -> None:
        profile = profile_for(network)

        assert profile.peer_checks_enabled
        assert profile.min_execution_peers == 2

    def test_goerli_skips_peer_checks(self) -> None:
        assert not profile_for(Network.GOERLI).peer_checks_enabled


class TestReadinessPolicy:
    """Tests for policy defaults."""

    def test_defaults(self) -> None:
        policy = ReadinessPolicy(profile_for(Network.MAINNET))

        assert policy.min_consensus_peers == MIN_CONSENSUS_PEERS == 10
        assert policy.sync_distance_tolerance == 1
        assert not policy.check_eth1_cache


class TestVerdict:
    """Tests for verdict construction and rendering."""

    def test_passed(self) -> None:
        verdict = Verdict.passed()

        assert verdict.ready
        assert verdict.check is None
        assert str(verdict) == "ready (all checks passed)"

    def test_failed_carries_context(self) -> None:
        verdict = Verdict.failed(Check.SYNC_DISTANCE, "sync distance exceeds tolerance", 3)

        assert not verdict.ready
        assert verdict.check is Check.SYNC_DISTANCE
        assert str(verdict) == "not ready: sync distance exceeds tolerance (value=3)"

    def test_every_check_is_described(self) -> None:
        for check in Check:
            assert check.description.endswith("check")
