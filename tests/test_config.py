"""
Layered distribution settings (config.py).
"""

import pytest

from distforge.config import DistributionSettings, SettingsLoader, parse_value, setting_type
from distforge.faults import SettingsError


# ============================================================================
# DistributionSettings
# ============================================================================

class TestDistributionSettings:

    def test_defaults(self):
        settings = DistributionSettings()
        assert settings.build_dir == "build"
        assert settings.conf_excludes == ["routes"]
        assert settings.bin_file_mode == 0o755
        assert settings.script_platforms == ["unix", "windows"]
        assert settings.tar_compression == "none"
        assert settings.validate() is settings

    def test_invalid_compression(self):
        with pytest.raises(SettingsError, match="tar_compression"):
            DistributionSettings(tar_compression="xz").validate()

    def test_invalid_platform(self):
        with pytest.raises(SettingsError, match="platform"):
            DistributionSettings(script_platforms=["amiga"]).validate()

    def test_invalid_mode(self):
        with pytest.raises(SettingsError):
            DistributionSettings(bin_file_mode=0o17777).validate()

    def test_empty_build_dir(self):
        with pytest.raises(SettingsError):
            DistributionSettings(build_dir="").validate()


# ============================================================================
# SettingsLoader
# ============================================================================

class TestSettingsLoader:

    def test_defaults_only(self):
        settings = SettingsLoader.load(environ={}).settings()
        assert settings == DistributionSettings()

    def test_descriptor_values(self):
        loader = SettingsLoader.load({"tar_compression": "gzip", "build_dir": "out"}, environ={})
        settings = loader.settings()
        assert settings.tar_compression == "gzip"
        assert settings.build_dir == "out"

    def test_env_overrides_descriptor(self):
        loader = SettingsLoader.load(
            {"tar_compression": "gzip"},
            environ={"DISTFORGE_TAR_COMPRESSION": "bzip2", "OTHER": "x"},
        )
        assert loader.settings().tar_compression == "bzip2"

    def test_overrides_win(self):
        loader = SettingsLoader.load(
            {"tar_compression": "gzip"},
            overrides={"tar_compression": "none"},
            environ={"DISTFORGE_TAR_COMPRESSION": "bzip2"},
        )
        assert loader.settings().tar_compression == "none"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DISTFORGE_README=README.md\nUNRELATED=1\n")
        loader = SettingsLoader.load(env_file=str(env_file), environ={})
        assert loader.settings().readme == "README.md"
        assert loader.get("unrelated") is None

    def test_environment_beats_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DISTFORGE_README=from-file\n")
        loader = SettingsLoader.load(env_file=str(env_file), environ={"DISTFORGE_README": "from-env"})
        assert loader.settings().readme == "from-env"

    def test_missing_env_file_is_ignored(self, tmp_path):
        loader = SettingsLoader.load(env_file=str(tmp_path / "nope.env"), environ={})
        assert loader.to_dict() == {}

    def test_list_and_mode_from_env(self):
        loader = SettingsLoader.load(environ={
            "DISTFORGE_CONF_EXCLUDES": "routes,*.dev.conf",
            "DISTFORGE_BIN_FILE_MODE": "0o750",
            "DISTFORGE_SCRIPT_PLATFORMS": "unix",
        })
        settings = loader.settings()
        assert settings.conf_excludes == ["routes", "*.dev.conf"]
        assert settings.bin_file_mode == 0o750
        assert settings.script_platforms == ["unix"]

    def test_octal_string_in_descriptor(self):
        settings = SettingsLoader.load({"bin_file_mode": "0o700"}, environ={}).settings()
        assert settings.bin_file_mode == 0o700

    def test_unknown_key_is_ignored(self, caplog):
        with caplog.at_level("WARNING", logger="distforge.config"):
            settings = SettingsLoader.load({"colour": "blue"}, environ={}).settings()
        assert settings == DistributionSettings()
        assert "colour" in caplog.text

    def test_type_mismatch(self):
        with pytest.raises(SettingsError, match="expected int"):
            SettingsLoader.load({"bin_file_mode": "rwx"}, environ={}).settings()
        with pytest.raises(SettingsError, match="expected a list"):
            SettingsLoader.load({"conf_excludes": {"a": 1}}, environ={}).settings()

    @pytest.mark.parametrize("raw, value", [
        ("true", True),
        ("no", False),
        ("12", 12),
        ("1.5", 1.5),
        ("0o755", 0o755),
        ('["a", "b"]', ["a", "b"]),
        ("a, b", ["a", "b"]),
        ("plain", "plain"),
    ])
    def test_parse_value(self, raw, value):
        assert parse_value(raw) == value

    @pytest.mark.parametrize("key, raw, value", [
        ("build_dir", "1.10", "1.10"),
        ("main_class", "true", "true"),
        ("conf_excludes", "1.10", ["1.10"]),
        ("conf_excludes", "routes, *.dev", ["routes", "*.dev"]),
        ("bin_file_mode", "0o700", 0o700),
    ])
    def test_parse_value_keeps_text_for_str_settings(self, key, raw, value):
        assert parse_value(raw, setting_type(key)) == value

    def test_str_setting_from_env_is_not_reformatted(self):
        settings = SettingsLoader.load(environ={"DISTFORGE_BUILD_DIR": "1.10"}).settings()
        assert settings.build_dir == "1.10"

    def test_setting_type_unknown_key(self):
        assert setting_type("colour") is None

    def test_get_dotted_path(self):
        loader = SettingsLoader.load({"nested": {"key": 1}}, environ={})
        assert loader.get("nested.key") == 1
        assert loader.get("nested.missing", "d") == "d"
