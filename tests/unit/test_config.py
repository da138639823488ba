"""Tests for configuration loading and validation."""

import json
from pathlib import Path

import pytest

from redisstats.core.config import RetentionLimits, StatsConfig, load_config
from redisstats.core.errors import ConfigurationError
from redisstats.core.models import MonitoredServer, Resolution

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]

MINIMAL = {
    "servers": [{"host": "127.0.0.1", "port": 6379}],
    "stats": ["used_memory"],
}


class TestStatsConfigFromMapping:
    """Tests for StatsConfig.from_mapping()."""

    def test_defaults(self) -> None:
        """Optional settings fall back to their defaults."""
        config = StatsConfig.from_mapping(MINIMAL)

        assert config.servers == (MonitoredServer("127.0.0.1", 6379),)
        assert config.metrics == ("used_memory",)
        assert config.prefix == "status:"
        assert config.interval == 60.0
        assert config.retention_interval == 300.0
        assert config.limits == RetentionLimits(raw=1440, hourly=720, daily=365)
        assert config.store is None

    @pytest.mark.tra("Config.RequiredServers")
    @pytest.mark.parametrize("servers", [None, []])
    def test_missing_servers_is_fatal(self, servers: list[object] | None) -> None:
        """An absent or empty server list raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="servers"):
            StatsConfig.from_mapping({**MINIMAL, "servers": servers})

    @pytest.mark.tra("Config.RequiredStats")
    def test_missing_stats_is_fatal(self) -> None:
        """An absent metric list raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="stats"):
            StatsConfig.from_mapping({"servers": MINIMAL["servers"]})

    def test_metrics_alias_and_deduplication(self) -> None:
        """'metrics' is accepted and duplicates are dropped in order."""
        config = StatsConfig.from_mapping(
            {"servers": ["redis-a:6380"], "metrics": ["b", "a", "b", "db0:keys"]}
        )

        assert config.metrics == ("b", "a", "db0:keys")
        assert config.servers == (MonitoredServer("redis-a", 6380),)

    def test_server_string_without_port_uses_default(self) -> None:
        """'host' alone means port 6379."""
        config = StatsConfig.from_mapping({**MINIMAL, "servers": ["redis-a"]})

        assert config.servers == (MonitoredServer("redis-a", 6379),)

    @pytest.mark.parametrize(
        ("entry", "expected"),
        [
            ("::1", MonitoredServer("::1", 6379)),
            ("fe80::2:7", MonitoredServer("fe80::2:7", 6379)),
            ("[::1]", MonitoredServer("::1", 6379)),
            ("[::1]:6380", MonitoredServer("::1", 6380)),
        ],
    )
    def test_ipv6_server_strings(self, entry: str, expected: MonitoredServer) -> None:
        """A port follows an IPv6 address only when it is bracketed."""
        config = StatsConfig.from_mapping({**MINIMAL, "servers": [entry]})

        assert config.servers == (expected,)

    @pytest.mark.parametrize("entry", ["[::1", "[::1]6380", "[::1]:x"])
    def test_malformed_bracketed_hosts(self, entry: str) -> None:
        """Unbalanced brackets or junk after them are rejected."""
        with pytest.raises(ConfigurationError):
            StatsConfig.from_mapping({**MINIMAL, "servers": [entry]})

    @pytest.mark.parametrize(
        "entry", [{"port": 6379}, {"host": "h", "port": "x"}, {"host": "h", "port": 0}]
    )
    def test_invalid_server_entries(self, entry: dict[str, object]) -> None:
        """Malformed server entries are configuration errors."""
        with pytest.raises(ConfigurationError):
            StatsConfig.from_mapping({**MINIMAL, "servers": [entry]})

    def test_max_items_as_int_applies_to_raw(self) -> None:
        """A bare max_items sets the raw limit only."""
        config = StatsConfig.from_mapping({**MINIMAL, "max_items": 10})

        assert config.limits.for_resolution(Resolution.RAW) == 10
        assert config.limits.for_resolution(Resolution.HOURLY) == 720

    def test_max_items_per_resolution(self) -> None:
        """A max_items table sets each resolution independently."""
        config = StatsConfig.from_mapping(
            {**MINIMAL, "max_items": {"raw": 3, "hourly": 2, "daily": 1}}
        )

        assert config.limits == RetentionLimits(raw=3, hourly=2, daily=1)

    @pytest.mark.parametrize(
        "override",
        [
            {"interval": 0},
            {"retention_interval": -1},
            {"max_items": {"daily": 0}},
            {"interval": "soon"},
        ],
    )
    def test_invalid_values(self, override: dict[str, object]) -> None:
        """Non-positive or non-numeric settings are rejected."""
        with pytest.raises(ConfigurationError):
            StatsConfig.from_mapping({**MINIMAL, **override})

    def test_reserved_metric_group_is_rejected(self) -> None:
        """A tracked name like 'hourly:x' would collide with a rollup key."""
        with pytest.raises(ConfigurationError, match="reserved"):
            StatsConfig.from_mapping({**MINIMAL, "stats": ["hourly:x"]})

    def test_shared_store(self) -> None:
        """A store entry routes every series to one server."""
        config = StatsConfig.from_mapping(
            {**MINIMAL, "store": {"host": "central", "port": 7000}}
        )

        assert config.store == MonitoredServer("central", 7000)

    def test_configuration_error_is_value_error(self) -> None:
        """Callers catching ValueError also see configuration errors."""
        assert issubclass(ConfigurationError, ValueError)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_loads_toml(self, tmp_path: Path) -> None:
        """TOML files are parsed with tomllib."""
        path = tmp_path / "redisstats.toml"
        path.write_text(
            'stats = ["used_memory", "db0:keys"]\n'
            'prefix = "stats:"\n'
            "interval = 15\n"
            "\n"
            "[[servers]]\n"
            'host = "127.0.0.1"\n'
            "port = 6379\n"
            "\n"
            "[max_items]\n"
            "raw = 100\n"
        )

        config = load_config(path)

        assert config.metrics == ("used_memory", "db0:keys")
        assert config.prefix == "stats:"
        assert config.interval == 15.0
        assert config.limits.raw == 100

    def test_loads_json(self, tmp_path: Path) -> None:
        """JSON files are selected by suffix."""
        path = tmp_path / "redisstats.json"
        path.write_text(json.dumps(MINIMAL))

        assert load_config(path).metrics == ("used_memory",)

    def test_missing_file(self, tmp_path: Path) -> None:
        """An unreadable file is a configuration error."""
        with pytest.raises(ConfigurationError, match="cannot read"):
            load_config(tmp_path / "absent.toml")

    def test_malformed_file(self, tmp_path: Path) -> None:
        """A file that does not parse is a configuration error."""
        path = tmp_path / "broken.toml"
        path.write_text("servers = [\n")

        with pytest.raises(ConfigurationError, match="cannot parse"):
            load_config(path)
