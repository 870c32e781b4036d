"""
Tests for protocol configuration.
"""

import pytest
from pydantic import ValidationError

from blindbid.core.config import (
    DEFAULT_CONFIG,
    V_RAW_MAX,
    V_RAW_MIN,
    BlindBidConfig,
    load_config,
)


class TestBlindBidConfig:
    def test_defaults(self):
        assert DEFAULT_CONFIG.v_min == V_RAW_MIN == 50_000
        assert DEFAULT_CONFIG.v_max == V_RAW_MAX == 250_000
        assert DEFAULT_CONFIG.tree_depth == 17
        assert DEFAULT_CONFIG.trim_size == 1 << 15

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.v_min = 1

    def test_min_above_max(self):
        with pytest.raises(ValidationError):
            BlindBidConfig(v_min=10, v_max=5)

    def test_trim_size_power_of_two(self):
        with pytest.raises(ValidationError):
            BlindBidConfig(trim_size=3000)

    def test_trim_size_within_parameters(self):
        with pytest.raises(ValidationError):
            BlindBidConfig(trim_size=1 << 18, public_parameters_size=1 << 17)

    def test_trim_size_leaves_room_for_blinding(self):
        with pytest.raises(ValidationError):
            BlindBidConfig(trim_size=1 << 16, public_parameters_size=1 << 16)
        assert BlindBidConfig(trim_size=1 << 15, public_parameters_size=1 << 16).trim_size == 1 << 15

    def test_tree_depth_bounds(self):
        with pytest.raises(ValidationError):
            BlindBidConfig(tree_depth=0)
        with pytest.raises(ValidationError):
            BlindBidConfig(tree_depth=33)


class TestLoadConfig:
    def test_no_sources(self, monkeypatch):
        for key in ("BLINDBID_V_MIN", "BLINDBID_V_MAX", "BLINDBID_TREE_DEPTH"):
            monkeypatch.delenv(key, raising=False)
        assert load_config() == DEFAULT_CONFIG

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BLINDBID_V_MIN", raising=False)
        monkeypatch.delenv("BLINDBID_TREE_DEPTH", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("BLINDBID_V_MIN=1000\nBLINDBID_TREE_DEPTH=4\n")

        config = load_config(env_file)

        assert config.v_min == 1000
        assert config.tree_depth == 4
        assert config.v_max == V_RAW_MAX

    def test_environment_wins(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("BLINDBID_V_MIN=1000\n")
        monkeypatch.setenv("BLINDBID_V_MIN", "2000")

        assert load_config(env_file).v_min == 2000

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("BLINDBID_TREE_DEPTH", "deep")
        with pytest.raises(ValidationError):
            load_config()
