"""
Project descriptor (``distforge.yaml``) loading.

The descriptor stands in for the build tool that normally supplies the
binaries and the resolved runtime classpath::

    project:
      name: my-app
    distribution:
      tar_compression: gzip
    binaries:
      - name: playBinary
        jar: build/playBinary/lib/my-app.jar
        assets_jar: build/playBinary/lib/my-app-assets.jar
    runtime:
      - file: libs/core.jar
        module: com.example:core:1.0
      - file: ../sub/build/libs/core.jar
        project: ":sub"
      - file: libs/flat.jar

Relative paths resolve against the project directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .artifacts import (
    ModuleComponentId,
    OpaqueComponentId,
    ProjectComponentId,
    ResolvedArtifact,
    ResolvedConfiguration,
)
from .config import DistributionSettings, SettingsLoader
from .distribution.model import BinarySpec, DistributionRegistry
from .faults import SettingsError
from .tasks.synthesizer import DistributionPipeline, SynthesisResult

logger = logging.getLogger("distforge.config")

DEFAULT_DESCRIPTOR = "distforge.yaml"
RUNTIME_CONFIGURATION_NAME = "runtimeClasspath"


@dataclass
class BuildProject:
    """A loaded project: binaries, runtime classpath and settings."""

    name: str
    project_dir: Path
    settings: DistributionSettings
    runtime: ResolvedConfiguration
    binaries: List[BinarySpec] = field(default_factory=list)
    descriptor_path: Optional[Path] = None

    @classmethod
    def load(
        cls,
        project_dir: Path,
        descriptor: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        env_file: Optional[str] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "BuildProject":
        """
        Load ``distforge.yaml`` from *project_dir*.

        Args:
            project_dir: Project root; relative descriptor paths resolve here
            descriptor: Descriptor path (defaults to ``<project_dir>/distforge.yaml``)
            overrides: Setting overrides, highest precedence
            env_file: ``.env`` file (defaults to ``<project_dir>/.env``)
            environ: Environment mapping (defaults to ``os.environ``)

        Raises:
            SettingsError: If the descriptor is missing or malformed
        """
        project_dir = Path(project_dir).resolve()
        path = Path(descriptor) if descriptor else project_dir / DEFAULT_DESCRIPTOR
        if not path.is_absolute():
            path = project_dir / path
        if not path.is_file():
            raise SettingsError(
                f"Project descriptor not found: {path}",
                suggestion=f"Create {DEFAULT_DESCRIPTOR} or pass --descriptor.",
            )

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise SettingsError(f"Descriptor {path} must contain a mapping")

        project = _section(data, "project", dict)
        loader = SettingsLoader.load(
            descriptor_data=_section(data, "distribution", dict),
            env_file=env_file or str(project_dir / ".env"),
            overrides=overrides,
            environ=environ,
        )
        settings = loader.settings()

        runtime = ResolvedConfiguration.of(
            RUNTIME_CONFIGURATION_NAME,
            [_parse_artifact(entry, project_dir) for entry in _section(data, "runtime", list)],
        )
        binaries = [
            _parse_binary(entry, project_dir, settings)
            for entry in _section(data, "binaries", list)
        ]

        logger.debug(
            "Loaded %s: %d binaries, runtime %s",
            path, len(binaries), runtime.name,
        )
        return cls(
            name=project.get("name") or project_dir.name,
            project_dir=project_dir,
            settings=settings,
            runtime=runtime,
            binaries=binaries,
            descriptor_path=path,
        )

    def create_pipeline(self) -> DistributionPipeline:
        return DistributionPipeline(self.project_dir, self.runtime, self.settings)

    def create_registry(self) -> DistributionRegistry:
        """A registry holding one distribution per binary."""
        registry = DistributionRegistry()
        registry.register_binaries(self.binaries)
        return registry

    def synthesize(self, registry: Optional[DistributionRegistry] = None) -> SynthesisResult:
        """Register the binaries (unless *registry* is given) and synthesize the graph."""
        if registry is None:
            registry = self.create_registry()
        return self.create_pipeline().synthesize(registry)


# ── Descriptor parsing ──────────────────────────────────────────────────


def _section(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise SettingsError(
            f"Descriptor section '{key}' must be a {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _resolve(project_dir: Path, value: Any, what: str) -> Path:
    if not value:
        raise SettingsError(f"Missing path for {what}")
    path = Path(str(value))
    return path if path.is_absolute() else (project_dir / path).resolve()


def _parse_binary(entry: Any, project_dir: Path, settings: DistributionSettings) -> BinarySpec:
    if not isinstance(entry, dict) or not entry.get("name"):
        raise SettingsError(
            f"Invalid binary entry {entry!r}",
            suggestion="Each binary needs a name, jar and assets_jar.",
        )
    name = entry["name"]
    return BinarySpec(
        name=name,
        jar_file=_resolve(project_dir, entry.get("jar"), f"binary '{name}' jar"),
        assets_jar_file=_resolve(project_dir, entry.get("assets_jar"), f"binary '{name}' assets_jar"),
        main_class=entry.get("main_class") or settings.main_class,
    )


def _parse_artifact(entry: Any, project_dir: Path) -> ResolvedArtifact:
    if isinstance(entry, str):
        entry = {"file": entry}
    if not isinstance(entry, dict):
        raise SettingsError(f"Invalid runtime entry {entry!r}")

    file = _resolve(project_dir, entry.get("file"), "runtime artifact")
    if "module" in entry and "project" in entry:
        raise SettingsError(
            f"Runtime entry {file} declares both a module and a project",
        )

    if entry.get("module"):
        try:
            component = ModuleComponentId.parse(str(entry["module"]))
        except ValueError as exc:
            raise SettingsError(str(exc), details={"file": str(file)}) from exc
    elif entry.get("project"):
        component = ProjectComponentId(str(entry["project"]))
    else:
        component = OpaqueComponentId(file.name)
    return ResolvedArtifact(file, component)
