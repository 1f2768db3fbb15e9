"""
distforge - distribution assembly for Play application binaries.

For every application binary, distforge registers a distribution and
synthesizes the steps that turn it into a deployable layout::

    <baseName>/
    ├── lib/     bundle jar, assets jar, runtime jars (origin-prefixed)
    ├── bin/     start scripts
    ├── conf/    configuration (minus routes)
    └── README

plus ``<baseName>.zip`` / ``<baseName>.tar`` archives and the ``stage``
and ``dist`` aggregates.

Quick start::

    from distforge import BuildProject, LocalExecutor

    project = BuildProject.load(Path("."))
    result = project.synthesize()
    LocalExecutor(result.graph).run(["dist"])
"""

__version__ = "1.0.0"

from .faults import (
    ConfigurationError,
    DistforgeError,
    ExecutionError,
    MissingBinaryError,
    SettingsError,
)
from .artifacts import (
    ArtifactRenamer,
    ManifestClasspath,
    ModuleComponentId,
    OpaqueComponentId,
    ProjectComponentId,
    ResolvedArtifact,
    ResolvedConfiguration,
)
from .distribution import BinarySpec, ContentSpec, Distribution, DistributionRegistry
from .config import DistributionSettings, SettingsLoader
from .tasks import DistributionPipeline, SynthesisResult, TaskGraph
from .execution import LocalExecutor
from .project import BuildProject

__all__ = [
    "__version__",
    # Errors
    "ConfigurationError",
    "DistforgeError",
    "ExecutionError",
    "MissingBinaryError",
    "SettingsError",
    # Artifacts
    "ArtifactRenamer",
    "ManifestClasspath",
    "ModuleComponentId",
    "OpaqueComponentId",
    "ProjectComponentId",
    "ResolvedArtifact",
    "ResolvedConfiguration",
    # Distributions
    "BinarySpec",
    "ContentSpec",
    "Distribution",
    "DistributionRegistry",
    # Settings
    "DistributionSettings",
    "SettingsLoader",
    # Tasks
    "DistributionPipeline",
    "SynthesisResult",
    "TaskGraph",
    "LocalExecutor",
    "BuildProject",
]
