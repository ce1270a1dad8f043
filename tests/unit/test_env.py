"""Tests for environment variable parsing and Config class."""

from pathlib import Path

import pytest

from sagcomp.env import Config, get_bool, get_config, get_float, get_int, get_path, get_str


class TestGetters:
    """Typed env var getters."""

    def test_get_str_default(self):
        assert get_str("SAGCOMP_MISSING", "x") == "x"

    def test_get_int_invalid_falls_back(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_TEST_INT", "abc")
        assert get_int("SAGCOMP_TEST_INT", 7) == 7

    def test_get_int_whitespace(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_TEST_INT", " 42 ")
        assert get_int("SAGCOMP_TEST_INT", 0) == 42

    def test_get_float(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_TEST_FLOAT", "0.25")
        assert get_float("SAGCOMP_TEST_FLOAT", 1.0) == 0.25

    def test_get_float_invalid_falls_back(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_TEST_FLOAT", "fast")
        assert get_float("SAGCOMP_TEST_FLOAT", 1.0) == 1.0

    @pytest.mark.parametrize("value,expected", [("1", True), ("TrUe", True), ("on", True),
                                                ("0", False), ("nope", False)])
    def test_get_bool(self, monkeypatch, value, expected):
        monkeypatch.setenv("SAGCOMP_TEST_BOOL", value)
        assert get_bool("SAGCOMP_TEST_BOOL") is expected

    def test_get_bool_default_when_empty(self):
        assert get_bool("SAGCOMP_TEST_BOOL", True) is True

    def test_get_path_resolves(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SAGCOMP_TEST_PATH", str(tmp_path / "a" / ".." / "b"))
        assert get_path("SAGCOMP_TEST_PATH", ".") == (tmp_path / "b").resolve()


class TestConfigDefaults:
    """Defaults match the tuned values."""

    def test_sensor_names(self, cfg):
        assert cfg.battery_sensor == "RxBt"
        assert cfg.throttle_source == "ch3"
        assert cfg.throttle_range == "auto"
        assert cfg.percent_channel == "BatP"
        assert cfg.sag_cell_channel == "Sag"
        assert cfg.raw_cell_channel == "Cell"
        assert cfg.ratio_channel == "Ratio"

    def test_thresholds(self, cfg):
        assert cfg.thr_rest == 0.10
        assert cfg.thr_no_comp == 0.10
        assert cfg.thr_ramp_end == 0.30
        assert cfg.thr_capture == 0.18

    def test_timing(self, cfg):
        assert cfg.warmup_delay_cs == 200
        assert cfg.recover_delay_default_cs == 200
        assert (cfg.recover_min_cs, cfg.recover_max_cs) == (120, 450)
        assert cfg.save_interval_cs == 6000

    def test_chemistry_default_auto(self, cfg):
        assert cfg.chemistry_mode == "auto"

    def test_paths_absolute(self, cfg):
        assert isinstance(cfg.state_dir, Path)
        assert cfg.state_dir.is_absolute()


class TestConfigOverrides:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_THR_CAPTURE", "0.25")
        monkeypatch.setenv("SAGCOMP_CHEMISTRY", "high_voltage")
        monkeypatch.setenv("SAGCOMP_THROTTLE_RANGE", "pwm")
        monkeypatch.setenv("SAGCOMP_PERSIST", "0")
        cfg = Config()
        assert cfg.throttle_range == "pwm"
        assert cfg.thr_capture == 0.25
        assert cfg.chemistry_mode == "high_voltage"
        assert cfg.persist_enabled is False

    def test_ramp_end_repaired_when_not_above_no_comp(self, monkeypatch):
        monkeypatch.setenv("SAGCOMP_THR_NO_COMP", "0.20")
        monkeypatch.setenv("SAGCOMP_THR_RAMP_END", "0.15")
        cfg = Config()
        assert cfg.thr_ramp_end == pytest.approx(0.35)


class TestGetConfig:
    def test_returns_same_instance(self):
        assert get_config() is get_config()

    def test_reset_picks_up_env(self, monkeypatch):
        import sagcomp.env

        monkeypatch.setenv("SAGCOMP_MODEL_NAME", "Wing")
        sagcomp.env._config = None
        assert get_config().model_name == "Wing"
