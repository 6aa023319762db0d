"""Unit tests for IsgConfig."""

from __future__ import annotations

import pytest

from pyisgweb.config import IsgConfig
from pyisgweb.exceptions import IsgConfigError


class TestValidate:
    """Test configuration validation."""

    @pytest.mark.parametrize(
        "host",
        ["192.168.1.50", "servicewelt.fritz.box", "http://192.168.1.50", "https://isg.local/"],
    )
    def test_valid_hosts(self, host: str) -> None:
        """IPv4 addresses and FQDNs are accepted, with or without scheme."""
        IsgConfig(host=host).validate()

    @pytest.mark.parametrize("host", ["", "   ", "999.1.1.1", "servicewelt", "isg.local:8080"])
    def test_invalid_hosts(self, host: str) -> None:
        """Missing or malformed addresses are fatal."""
        with pytest.raises(IsgConfigError):
            IsgConfig(host=host).validate()

    def test_out_of_range_numbers_normalised(self) -> None:
        """Nonsense limits fall back to defaults."""
        config = IsgConfig(
            host="192.168.1.50",
            max_concurrent_fetches=0,
            poll_interval=0,
            command_interval=-5,
            request_timeout=-1,
        )
        config.validate()

        assert config.max_concurrent_fetches == 3
        assert config.poll_interval == 60
        assert config.command_interval == 60
        assert config.request_timeout == 0.0


class TestProperties:
    """Test derived properties."""

    def test_base_url_adds_scheme(self) -> None:
        """A bare address gets http://."""
        assert IsgConfig(host="192.168.1.50").base_url == "http://192.168.1.50"
        assert IsgConfig(host="https://isg.local/").base_url == "https://isg.local"

    def test_expert_paths(self) -> None:
        """Expert pages are only polled in expert mode."""
        config = IsgConfig(host="isg.local", command_paths=["4,0,0"], expert_paths=["5,0"])
        assert config.command_paths_all == ["4,0,0"]

        config.expert = True
        assert config.command_paths_all == ["4,0,0", "5,0"]


class TestSerialization:
    """Test dict and environment round-trips."""

    def test_round_trip(self) -> None:
        """to_dict/from_dict preserve all fields."""
        config = IsgConfig(
            host="isg.local",
            username="admin",
            password="secret",
            value_paths=["1,0", "1,1"],
            avoid_umlauts=True,
            language="de",
        )
        assert IsgConfig.from_dict(config.to_dict()) == config

    def test_legacy_keys(self) -> None:
        """Legacy ioBroker adapter settings are understood."""
        config = IsgConfig.from_dict(
            {
                "isgAddress": "192.168.1.50",
                "isgUser": "admin",
                "isgPassword": "secret",
                "isgIntervall": "30",
                "isgCommandIntervall": 120,
                "maxConcurrentFetches": "2",
                "requestTimeout": 30000,
                "isgUmlauts": "no",
                "isgValuePaths": "1,0;1,1;",
                "isgStatusPaths": "2,0",
                "isgCommandPaths": "4,0,0;0",
                "isgExpert": True,
                "isgExpertPaths": "5,0",
            }
        )

        assert config.host == "192.168.1.50"
        assert config.username == "admin"
        assert config.poll_interval == 30
        assert config.command_interval == 120
        assert config.max_concurrent_fetches == 2
        assert config.request_timeout == 30.0
        assert config.avoid_umlauts is True
        assert config.value_paths == ["1,0", "1,1"]
        assert config.status_paths == ["2,0"]
        assert config.command_paths_all == ["4,0,0", "0", "5,0"]

    def test_umlauts_yes(self) -> None:
        """Any value other than "no" keeps umlauts."""
        config = IsgConfig.from_dict({"isgAddress": "isg.local", "isgUmlauts": "yes"})
        assert config.avoid_umlauts is False

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """ISG_* variables are read."""
        monkeypatch.setenv("ISG_HOST", "isg.local")
        monkeypatch.setenv("ISG_PASSWORD", "secret")
        monkeypatch.setenv("ISG_VALUE_PATHS", "1,0;1,1")
        monkeypatch.setenv("ISG_AVOID_UMLAUTS", "true")
        monkeypatch.setenv("ISG_MAX_CONCURRENT_FETCHES", "5")

        config = IsgConfig.from_env()

        assert config.host == "isg.local"
        assert config.password == "secret"
        assert config.value_paths == ["1,0", "1,1"]
        assert config.avoid_umlauts is True
        assert config.max_concurrent_fetches == 5
