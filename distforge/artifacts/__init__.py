"""
distforge artifacts - resolved runtime artifacts and their ``lib/`` names.

- **Origins** - ``ResolvedArtifact`` with project / module / other component ids
- **Rename resolver** - ``ArtifactRenamer`` computes collision-avoiding names once
- **Manifest classpath** - ``ManifestClasspath`` renders ``Class-Path`` from the same names

Quick start::

    from distforge.artifacts import (
        ArtifactRenamer, ModuleComponentId, ResolvedArtifact, ResolvedConfiguration,
    )

    runtime = ResolvedConfiguration.of("runtime", [
        ResolvedArtifact(Path("libs/core.jar"), ModuleComponentId("com.example", "core")),
    ])
    renamer = ArtifactRenamer(runtime)
    renamer.rename(Path("libs/core.jar"))   # 'com.example-core.jar'
"""

from .origin import (
    ComponentId,
    ModuleComponentId,
    OpaqueComponentId,
    OriginKind,
    ProjectComponentId,
    ResolvedArtifact,
    ResolvedConfiguration,
    classify_origin,
)
from .naming import (
    DEFAULT_RENAME_EXTENSIONS,
    ArtifactRenamer,
    maybe_prefix,
    project_path_to_safe_file_name,
    rename_artifact,
    rename_for_module,
    rename_for_project,
    should_be_renamed,
)
from .classpath import CLASSPATH_SEPARATOR, ManifestClasspath

__all__ = [
    # Origins
    "ComponentId",
    "ModuleComponentId",
    "OpaqueComponentId",
    "OriginKind",
    "ProjectComponentId",
    "ResolvedArtifact",
    "ResolvedConfiguration",
    "classify_origin",
    # Naming
    "DEFAULT_RENAME_EXTENSIONS",
    "ArtifactRenamer",
    "maybe_prefix",
    "project_path_to_safe_file_name",
    "rename_artifact",
    "rename_for_module",
    "rename_for_project",
    "should_be_renamed",
    # Classpath
    "CLASSPATH_SEPARATOR",
    "ManifestClasspath",
]
