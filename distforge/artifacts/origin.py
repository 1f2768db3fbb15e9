"""
Artifact origins - where a resolved artifact came from.

The dependency resolver hands us a list of :class:`ResolvedArtifact`
values, each carrying the file on disk and a component identifier:

- :class:`ProjectComponentId` - built by a sibling project (``:sub:child``)
- :class:`ModuleComponentId`  - published module (``group:module:version``)
- :class:`OpaqueComponentId`  - anything else, e.g. a flat file dependency

:func:`classify_origin` reduces those to an :class:`OriginKind`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union


# ── Enums ───────────────────────────────────────────────────────────────


class OriginKind(str, Enum):
    """Classification of a resolved artifact's origin."""

    PROJECT = "project"
    MODULE = "module"
    OTHER = "other"


# ── Component identifiers ───────────────────────────────────────────────


@dataclass(frozen=True)
class ProjectComponentId:
    """Artifact produced by a sibling build unit."""

    project_path: str

    @property
    def display_name(self) -> str:
        return f"project {self.project_path}"


@dataclass(frozen=True)
class ModuleComponentId:
    """Artifact published under a ``group:module:version`` coordinate."""

    group: str
    module: str
    version: str = ""

    @property
    def display_name(self) -> str:
        parts = [self.group, self.module]
        if self.version:
            parts.append(self.version)
        return ":".join(parts)

    @classmethod
    def parse(cls, notation: str) -> "ModuleComponentId":
        """
        Parse ``group:module[:version]`` notation.

        Raises:
            ValueError: If group or module is missing.
        """
        parts = notation.split(":")
        if len(parts) < 2 or len(parts) > 3 or not parts[0] or not parts[1]:
            raise ValueError(
                f"Invalid module notation '{notation}', expected group:module[:version]"
            )
        version = parts[2] if len(parts) == 3 else ""
        return cls(group=parts[0], module=parts[1], version=version)


@dataclass(frozen=True)
class OpaqueComponentId:
    """Artifact of unknown provenance (file collections, local libs, …)."""

    display_name: str = ""


ComponentId = Union[ProjectComponentId, ModuleComponentId, OpaqueComponentId]


# ── Resolved artifacts ──────────────────────────────────────────────────


@dataclass(frozen=True)
class ResolvedArtifact:
    """One file of a resolved configuration plus the component it belongs to."""

    file: Path
    component: Optional[ComponentId] = None

    def __post_init__(self) -> None:
        if not isinstance(self.file, Path):
            object.__setattr__(self, "file", Path(self.file))

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def origin(self) -> OriginKind:
        return classify_origin(self)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"file": str(self.file), "origin": self.origin.value}
        if isinstance(self.component, ProjectComponentId):
            data["project"] = self.component.project_path
        elif isinstance(self.component, ModuleComponentId):
            data["module"] = self.component.display_name
        return data


def classify_origin(artifact: ResolvedArtifact) -> OriginKind:
    """Classify *artifact* as project, module or other."""
    component = artifact.component
    if isinstance(component, ProjectComponentId):
        return OriginKind.PROJECT
    if isinstance(component, ModuleComponentId):
        return OriginKind.MODULE
    return OriginKind.OTHER


# ── Resolved configuration ──────────────────────────────────────────────


class ResolvedConfiguration:
    """
    A resolved dependency configuration (the runtime classpath).

    Resolution itself is owned by an external collaborator and may be
    expensive, so it is wrapped in a *resolver* callable that is invoked
    on every :meth:`get_resolved_artifacts` call. Consumers that need
    the result more than once are expected to cache it.
    """

    def __init__(
        self,
        name: str,
        resolver: Callable[[], Iterable[ResolvedArtifact]],
    ) -> None:
        self.name = name
        self._resolver = resolver

    @classmethod
    def of(cls, name: str, artifacts: Iterable[ResolvedArtifact]) -> "ResolvedConfiguration":
        """Configuration over an already-resolved, fixed artifact list."""
        fixed = tuple(artifacts)
        return cls(name, lambda: fixed)

    def get_resolved_artifacts(self) -> List[ResolvedArtifact]:
        """Run resolution and return the artifacts, de-duplicated by file, in order."""
        seen = set()
        result: List[ResolvedArtifact] = []
        for artifact in self._resolver():
            if artifact.file in seen:
                continue
            seen.add(artifact.file)
            result.append(artifact)
        return result

    def all_artifact_files(self) -> List[Path]:
        """Files of every resolved artifact, in resolution order."""
        return [artifact.file for artifact in self.get_resolved_artifacts()]

    def __repr__(self) -> str:
        return f"ResolvedConfiguration({self.name!r})"
