from __future__ import annotations

from slab_shear_app.core.settings import AppSettings, get_app_settings, save_app_settings
from slab_shear_app.core.paths import settings_path


def test_settings_defaults_and_round_trip(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    s = get_app_settings()
    assert s.export_filename == "shear-strength-calculations.txt"
    assert s.export_path().parent == tmp_path / "SlabShearCalculator" / "exports"

    save_app_settings(AppSettings(export_dir=str(tmp_path / "out"), warn_betah_le_one=False))
    s = get_app_settings()
    assert s.warn_betah_le_one is False
    assert s.export_path() == tmp_path / "out" / "shear-strength-calculations.txt"


def test_unreadable_settings_fall_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    settings_path().write_text("{not json", encoding="utf-8")
    assert get_app_settings() == AppSettings()
