import os
from pathlib import Path

import pytest

from mv_timeliness.env import ENV_OVERLAY_VARIABLE, load_env


def _unset(monkeypatch, *names):
    # setenv first so monkeypatch restores the original absence afterwards
    for name in names:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_overlay_overrides_base_env(tmp_path, monkeypatch):
    _unset(monkeypatch, ENV_OVERLAY_VARIABLE, "MVT_TEST_MODE", "MVT_TEST_DB")
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("MVT_TEST_MODE=checked\nMVT_TEST_DB=base.db\n")
    (tmp_path / ".env.test").write_text("MVT_TEST_DB=test.db\n")

    loaded = load_env(".env.test")

    assert loaded == [Path(".env"), Path(".env.test")]
    assert os.environ["MVT_TEST_MODE"] == "checked"
    assert os.environ["MVT_TEST_DB"] == "test.db"


def test_exported_values_win_over_base_env(tmp_path, monkeypatch):
    _unset(monkeypatch, ENV_OVERLAY_VARIABLE)
    monkeypatch.setenv("MVT_TEST_MODE", "loose")
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("MVT_TEST_MODE=checked\n")

    load_env()

    assert os.environ["MVT_TEST_MODE"] == "loose"


def test_overlay_path_read_from_environment(tmp_path, monkeypatch):
    _unset(monkeypatch, "MVT_TEST_DB")
    monkeypatch.chdir(tmp_path)
    overlay = tmp_path / "ci.env"
    overlay.write_text("MVT_TEST_DB=ci.db\n")
    monkeypatch.setenv(ENV_OVERLAY_VARIABLE, str(overlay))

    assert load_env() == [overlay]
    assert os.environ["MVT_TEST_DB"] == "ci.db"


def test_missing_overlay_raises(tmp_path, monkeypatch):
    _unset(monkeypatch, ENV_OVERLAY_VARIABLE)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(FileNotFoundError, match="missing.env"):
        load_env("missing.env")
