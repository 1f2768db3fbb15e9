"""
distforge tasks - step types, the task graph and the distribution pipeline.
"""

from .steps import (
    ARCHIVE_KINDS,
    TAR_COMPRESSION_EXTENSIONS,
    ArchiveStep,
    JarStep,
    LifecycleStep,
    PackagingStep,
    StartScriptsStep,
    Step,
    StepKind,
    SyncStep,
    TarStep,
    ZipStep,
)
from .graph import TaskGraph
from .finalize import finalize_archive_names
from .synthesizer import (
    CLASSPATH_ATTRIBUTE,
    DIST_LIFECYCLE_TASK_NAME,
    DISTRIBUTION_GROUP,
    STAGE_LIFECYCLE_TASK_NAME,
    DistributionPipeline,
    DistributionState,
    DistributionSteps,
    SynthesisResult,
    build_content_tree,
)

__all__ = [
    # Steps
    "ARCHIVE_KINDS",
    "TAR_COMPRESSION_EXTENSIONS",
    "ArchiveStep",
    "JarStep",
    "LifecycleStep",
    "PackagingStep",
    "StartScriptsStep",
    "Step",
    "StepKind",
    "SyncStep",
    "TarStep",
    "ZipStep",
    # Graph
    "TaskGraph",
    "finalize_archive_names",
    # Pipeline
    "CLASSPATH_ATTRIBUTE",
    "DIST_LIFECYCLE_TASK_NAME",
    "DISTRIBUTION_GROUP",
    "STAGE_LIFECYCLE_TASK_NAME",
    "DistributionPipeline",
    "DistributionState",
    "DistributionSteps",
    "SynthesisResult",
    "build_content_tree",
]
