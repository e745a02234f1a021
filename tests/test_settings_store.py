"""Tests for the persisted monitor settings."""

from __future__ import annotations

import json
from pathlib import Path

from drowsiguard.core.settings_store import MonitorSettings, SettingsStore


class TestSettingsStore:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        s = SettingsStore(tmp_path / "settings.json").load()
        assert s == MonitorSettings()
        assert s.drowsiness_threshold == 70
        assert s.normal_blink_rate == 15

    def test_roundtrip(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "settings.json")
        store.save(MonitorSettings(drowsiness_threshold=55, normal_blink_rate=18, sim_tick_ms=1000))
        assert store.load() == MonitorSettings(drowsiness_threshold=55, normal_blink_rate=18, sim_tick_ms=1000)

    def test_corrupt_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{{{", encoding="utf-8")
        assert SettingsStore(path).load() == MonitorSettings()

    def test_unknown_keys_ignored_and_values_clamped(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"drowsiness_threshold": 250, "colour": "red", "sim_tick_ms": "oops"}), encoding="utf-8")
        s = SettingsStore(path).load()
        assert s.drowsiness_threshold == 100
        assert s.sim_tick_ms == 2000
        assert not hasattr(s, "colour")
