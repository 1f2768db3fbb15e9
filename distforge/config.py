"""
Config system - layered distribution settings with validation.

Merge precedence (later overrides earlier)::

    defaults < descriptor ``distribution:`` section < .env file
             < DISTFORGE_* environment variables < explicit overrides
"""

from typing import Any, Dict, List, Optional, get_type_hints, get_origin, get_args
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
import json
import logging
import os

from dotenv import dotenv_values

from .distribution.model import DEFAULT_SERVER_MAIN_CLASS
from .faults import SettingsError

logger = logging.getLogger("distforge.config")

DEFAULT_ENV_PREFIX = "DISTFORGE_"
SCRIPT_PLATFORMS = ("unix", "windows")


@dataclass
class DistributionSettings:
    """Settings shared by every distribution of a build."""

    build_dir: str = "build"
    conf_dir: str = "conf"
    conf_excludes: List[str] = field(default_factory=lambda: ["routes"])
    readme: str = "README"
    main_class: str = DEFAULT_SERVER_MAIN_CLASS
    bin_file_mode: int = 0o755
    script_platforms: List[str] = field(default_factory=lambda: list(SCRIPT_PLATFORMS))
    tar_compression: str = "none"
    rename_extensions: List[str] = field(default_factory=lambda: [".jar"])

    def validate(self) -> "DistributionSettings":
        from .tasks.steps import TAR_COMPRESSION_EXTENSIONS

        if self.tar_compression not in TAR_COMPRESSION_EXTENSIONS:
            raise SettingsError(
                f"Unsupported tar_compression '{self.tar_compression}'",
                details={"allowed": ", ".join(sorted(TAR_COMPRESSION_EXTENSIONS))},
            )
        unknown = [p for p in self.script_platforms if p not in SCRIPT_PLATFORMS]
        if unknown:
            raise SettingsError(
                f"Unknown script platform(s): {', '.join(unknown)}",
                details={"allowed": ", ".join(SCRIPT_PLATFORMS)},
            )
        if not 0 <= self.bin_file_mode <= 0o7777:
            raise SettingsError(f"bin_file_mode {self.bin_file_mode!r} is not a valid file mode")
        if not self.build_dir:
            raise SettingsError("build_dir must not be empty")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def setting_type(key: str) -> Any:
    """Declared type of a :class:`DistributionSettings` field, or None."""
    return get_type_hints(DistributionSettings).get(key)


def parse_value(value: str, expected_type: Any = None) -> Any:
    """
    Parse a string from the environment or the command line.

    With an *expected_type* of ``str`` (or a list of ``str``) the text is
    kept as written, so ``1.10`` stays ``"1.10"``. Otherwise the type is
    guessed: booleans, ``0o`` octal modes, numbers, JSON, comma lists.
    """
    if expected_type is str:
        return value
    if get_origin(expected_type) in (list, List) and get_args(expected_type) == (str,):
        if value.startswith("["):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value.split(",") if item.strip()]

    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Octal file modes such as 0o755
    if value.lower().startswith("0o"):
        try:
            return int(value, 8)
        except ValueError:
            return value

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    # Comma-separated lists
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]

    return value


class SettingsLoader:
    """
    Loads and merges settings from multiple sources with precedence:
    overrides > environment variables > .env file > descriptor > defaults
    """

    def __init__(self, env_prefix: str = DEFAULT_ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        descriptor_data: Optional[Dict[str, Any]] = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "SettingsLoader":
        """
        Load settings from every source.

        Args:
            descriptor_data: The descriptor's ``distribution`` mapping
            env_prefix: Prefix for environment variables
            env_file: Path to a .env file
            overrides: Manual overrides (highest precedence)
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            Configured SettingsLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if descriptor_data:
            loader._merge_dict(loader.config_data, descriptor_data)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_env_file(self, path: str):
        """Load DISTFORGE_* keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            logger.debug("No .env file at %s", env_path)
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self, environ):
        for key, value in environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert DISTFORGE_TAR_COMPRESSION to a settings key."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nested keys
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        expected = setting_type(parts[-1]) if len(parts) == 1 else None
        current[parts[-1]] = parse_value(value, expected)

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def settings(self) -> DistributionSettings:
        """Instantiate and validate :class:`DistributionSettings`."""
        hints = get_type_hints(DistributionSettings)
        known = {f.name for f in fields(DistributionSettings)}
        kwargs = {}

        for key, value in self.config_data.items():
            if key not in known:
                logger.warning("Ignoring unknown distribution setting '%s'", key)
                continue
            value = self._coerce(key, value, hints[key])
            kwargs[key] = value

        return DistributionSettings(**kwargs).validate()

    def _coerce(self, key: str, value: Any, expected_type: Any) -> Any:
        origin = get_origin(expected_type)
        if origin in (list, List):
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list):
                raise SettingsError(
                    f"Setting '{key}' expected a list, got {type(value).__name__}"
                )
            (item_type,) = get_args(expected_type) or (str,)
            return [self._coerce(key, item, item_type) for item in value]

        if expected_type is int:
            if isinstance(value, str) and value.lower().startswith("0o"):
                value = int(value, 8)
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsError(
                    f"Setting '{key}' expected int, got {type(value).__name__}"
                )
            return value

        if expected_type is str:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
            if not isinstance(value, str):
                raise SettingsError(
                    f"Setting '{key}' expected str, got {type(value).__name__}"
                )
        return value

    def to_dict(self) -> dict:
        return self.config_data.copy()
