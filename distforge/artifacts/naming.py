"""
Artifact rename resolver.

Many runtime jars end up side by side in a distribution's flat ``lib/``
directory, and jars from different origins can share a file name
(``core.jar`` from a sibling project and ``core.jar`` from a published
module). Each jar is prefixed with a token derived from its origin:

======================  =======================  ==========================
origin                  token                    example
======================  =======================  ==========================
project ``:sub:child``  ``sub.child``            ``sub.child-core.jar``
project ``:``           (none)                   ``core.jar``
module ``com.example``  ``com.example``          ``com.example-core.jar``
other                   (none)                   ``core.jar``
======================  =======================  ==========================

Only jar files are renamed. The token depends on the artifact alone, so
names are stable across builds no matter what else is on the classpath.
Prefixing does not make names globally unique: two modules of one group
shipping the same file name still collide.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

from ..utils import OnceCell
from .origin import (
    ModuleComponentId,
    ProjectComponentId,
    ResolvedArtifact,
    ResolvedConfiguration,
)

logger = logging.getLogger("distforge.naming")

DEFAULT_RENAME_EXTENSIONS = (".jar",)

PathLike = Union[str, Path]


# ── Naming rules ────────────────────────────────────────────────────────


def should_be_renamed(file: PathLike, extensions: Sequence[str] = DEFAULT_RENAME_EXTENSIONS) -> bool:
    """True when *file* has one of the renameable extensions."""
    name = Path(file).name
    return any(name.endswith(ext) for ext in extensions)


def project_path_to_safe_file_name(project_path: str) -> Optional[str]:
    """
    Turn a project path into a file name token.

    ``":sub:child"`` -> ``"sub.child"``; the root path ``":"`` has no
    token and yields ``None``.
    """
    if project_path == ":":
        return None
    token = project_path.replace(":", ".")
    if project_path.startswith(":"):
        token = token[1:]
    return token


def maybe_prefix(prefix: Optional[str], file: PathLike) -> str:
    """``"<prefix>-<name>"`` when *prefix* is non-empty, else the bare name."""
    name = Path(file).name
    if not prefix:
        return name
    return f"{prefix}-{name}"


def rename_for_project(
    component: ProjectComponentId,
    file: PathLike,
    extensions: Sequence[str] = DEFAULT_RENAME_EXTENSIONS,
) -> str:
    if should_be_renamed(file, extensions):
        return maybe_prefix(project_path_to_safe_file_name(component.project_path), file)
    return Path(file).name


def rename_for_module(
    component: ModuleComponentId,
    file: PathLike,
    extensions: Sequence[str] = DEFAULT_RENAME_EXTENSIONS,
) -> str:
    if should_be_renamed(file, extensions):
        return maybe_prefix(component.group, file)
    return Path(file).name


def rename_artifact(
    artifact: ResolvedArtifact,
    extensions: Sequence[str] = DEFAULT_RENAME_EXTENSIONS,
) -> str:
    """Display name for a single resolved artifact."""
    component = artifact.component
    if isinstance(component, ProjectComponentId):
        return rename_for_project(component, artifact.file, extensions)
    if isinstance(component, ModuleComponentId):
        return rename_for_module(component, artifact.file, extensions)
    # Artifacts of unknown origin keep their name
    return artifact.name


# ── Resolver ────────────────────────────────────────────────────────────


class ArtifactRenamer:
    """
    Maps artifact files of one configuration to their ``lib/`` names.

    The whole map is computed on first use and cached for the lifetime
    of the renamer; the configuration is resolved at most once. Files
    that are not part of the configuration map to their own name.

    A renamer is shared by every consumer of one library set, e.g. the
    ``lib/`` copy action and the bundle jar's ``Class-Path`` attribute,
    which keeps the two in agreement.

    With a *base_dir*, relative artifact files are keyed (and looked up)
    under that directory, matching the paths the ``lib/`` copy sees.
    """

    def __init__(
        self,
        configuration: ResolvedConfiguration,
        extensions: Iterable[str] = DEFAULT_RENAME_EXTENSIONS,
        base_dir: Optional[PathLike] = None,
    ) -> None:
        self.configuration = configuration
        self.extensions = tuple(extensions)
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self._renames: OnceCell[Mapping[Path, str]] = OnceCell(self._calculate)

    @property
    def renames(self) -> Mapping[Path, str]:
        """Read-only file -> name map (computes it if needed)."""
        return self._renames.get()

    @property
    def is_resolved(self) -> bool:
        return self._renames.is_set

    def rename(self, file: PathLike) -> str:
        """Display name for *file*; never raises."""
        path = self._key(file)
        name = self.renames.get(path)
        if name is not None:
            return name
        return path.name

    __call__ = rename

    def apply(self, details) -> None:
        """Copy action: rename a file being copied into ``lib/``."""
        details.name = self.rename(details.file)

    def _calculate(self) -> Mapping[Path, str]:
        files: Dict[Path, str] = {}
        for artifact in self.configuration.get_resolved_artifacts():
            name = rename_artifact(artifact, self.extensions)
            files[self._key(artifact.file)] = name
            if name != artifact.name:
                logger.debug("Renamed %s -> %s (%s)", artifact.file, name, artifact.origin.value)
        logger.debug(
            "Computed %d artifact name(s) for configuration '%s'",
            len(files),
            self.configuration.name,
        )
        return MappingProxyType(files)

    def _key(self, file: PathLike) -> Path:
        path = Path(file)
        if self.base_dir is not None and not path.is_absolute():
            return self.base_dir / path
        return path

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "pending"
        return f"ArtifactRenamer({self.configuration.name!r}, {state})"
