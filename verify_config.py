from pathlib import Path
import pytest
import config
from config import AppConfig, ConfigError, load_config


def _write(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    return path


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "config.toml") == AppConfig(
        timezone_offset_hours=3, can_override=True, exact_match_threshold=0.85, strict_comparison=False,
    )


def test_full_config(tmp_path):
    path = _write(tmp_path, """
[app]
timezone_offset_hours = -5
can_override = false
exact_match_threshold = 0.9
strict_comparison = true
""")
    assert load_config(path) == AppConfig(-5, False, 0.9, True)


def test_optional_fields_fall_back(tmp_path):
    path = _write(tmp_path, "[app]\ntimezone_offset_hours = 0\ncan_override = true\n")
    cfg = load_config(path)
    assert cfg.exact_match_threshold == 0.85
    assert cfg.strict_comparison is False


def test_integer_threshold_is_accepted(tmp_path):
    path = _write(tmp_path, "[app]\ntimezone_offset_hours = 0\ncan_override = true\nexact_match_threshold = 1\n")
    assert load_config(path).exact_match_threshold == 1.0


@pytest.mark.parametrize("text, message", [
    ("[app]\ncan_override = true\n", "timezone_offset_hours"),
    ("[app]\ntimezone_offset_hours = 3\n", "can_override"),
    ("timezone_offset_hours = 3\ncan_override = true\n", r"\[app\]"),
    ("[app]\ntimezone_offset_hours = true\ncan_override = true\n", "timezone_offset_hours"),
    ("[app]\ntimezone_offset_hours = 3\ncan_override = \"yes\"\n", "can_override"),
    ("[app]\ntimezone_offset_hours = 3\ncan_override = true\nexact_match_threshold = 1.5\n", "exact_match_threshold"),
    ("[app]\ntimezone_offset_hours = 3\ncan_override = true\nstrict_comparison = 1\n", "strict_comparison"),
    ("[app\n", "config.toml"),
])
def test_broken_config_is_fatal(tmp_path, text, message):
    path = _write(tmp_path, text)
    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_config_dir_resolution(monkeypatch, tmp_path):
    monkeypatch.delenv("TTD_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert config.config_dir() == tmp_path / "xdg" / "ttd"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))
    assert config.config_dir() == tmp_path / "home" / ".config" / "ttd"

    monkeypatch.setenv("TTD_CONFIG_DIR", str(tmp_path / "custom"))
    assert config.data_path() == tmp_path / "custom" / "tasks.json"
    assert config.config_path() == tmp_path / "custom" / "config.toml"
    assert config.log_dir() == tmp_path / "custom"


def test_undecodable_config_is_fatal(tmp_path):
    path = tmp_path / "config.toml"
    path.write_bytes(b"[app]\ntimezone_offset_hours = 3\n# \xff\n")
    with pytest.raises(ConfigError, match="config.toml"):
        load_config(path)
