"""
Distribution pipeline - synthesizes the task graph for every distribution.

For each distribution named ``<name>`` (capitalized as ``<Name>``)::

    create<Name>DistributionJar   bundle jar with Class-Path manifest
    create<Name>StartScripts      launch scripts for the bundle jar
    stage<Name>Dist               content tree mirrored to stage/<baseName>
    create<Name>ZipDist           distributions/<baseName>.zip
    create<Name>TarDist           distributions/<baseName>.tar

plus the ``stage`` and ``dist`` lifecycle aggregates. Steps are wired
through the handles returned by :meth:`TaskGraph.add`.

Synthesis only describes work; nothing here touches the file system.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..artifacts import ArtifactRenamer, ManifestClasspath, ResolvedConfiguration
from ..config import DistributionSettings
from ..distribution.content import LazyFiles
from ..distribution.model import BinarySpec, Distribution, DistributionRegistry
from ..faults import ConfigurationError
from ..utils import capitalize
from .finalize import finalize_archive_names
from .graph import TaskGraph
from .steps import (
    JarStep,
    LifecycleStep,
    StartScriptsStep,
    Step,
    SyncStep,
    TarStep,
    ZipStep,
)

logger = logging.getLogger("distforge.pipeline")

DISTRIBUTION_GROUP = "distribution"
DIST_LIFECYCLE_TASK_NAME = "dist"
STAGE_LIFECYCLE_TASK_NAME = "stage"
CLASSPATH_ATTRIBUTE = "Class-Path"
RESERVED_SUBTREES = ("lib", "bin", "conf")


class DistributionState(str, Enum):
    """How far step creation has progressed for one distribution."""

    REGISTERED = "registered"
    CONTENT_PLANNED = "content_planned"
    STAGED = "staged"
    ARCHIVED = "archived"


@dataclass
class DistributionSteps:
    """Handles of the steps created for one distribution."""

    distribution: Distribution
    state: DistributionState = DistributionState.REGISTERED
    renamer: Optional[ArtifactRenamer] = None
    jar: Optional[JarStep] = None
    start_scripts: Optional[StartScriptsStep] = None
    stage: Optional[SyncStep] = None
    zip: Optional[ZipStep] = None
    tar: Optional[TarStep] = None

    def created(self) -> List[Step]:
        return [s for s in (self.jar, self.start_scripts, self.stage, self.zip, self.tar) if s is not None]


@dataclass
class SynthesisResult:
    """Outcome of one synthesis pass."""

    graph: TaskGraph
    stage: LifecycleStep
    dist: LifecycleStep
    distributions: Dict[str, DistributionSteps] = field(default_factory=dict)
    failures: Dict[str, ConfigurationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """Re-raise the first failure, if any."""
        for error in self.failures.values():
            raise error


class DistributionPipeline:
    """
    Builds the per-distribution task graph.

    Args:
        project_dir: Directory that relative sources (conf, README) resolve against
        runtime: Default runtime configuration for binaries without their own
        settings: Distribution settings
    """

    def __init__(
        self,
        project_dir: Path,
        runtime: ResolvedConfiguration,
        settings: Optional[DistributionSettings] = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.runtime = runtime
        self.settings = settings or DistributionSettings()
        self._renamers: Dict[int, ArtifactRenamer] = {}

    @property
    def build_dir(self) -> Path:
        build_dir = Path(self.settings.build_dir)
        return build_dir if build_dir.is_absolute() else self.project_dir / build_dir

    # ── Entry points ─────────────────────────────────────────────────

    def create_distributions(self, registry: DistributionRegistry, binaries) -> List[Distribution]:
        """Register one distribution per binary."""
        return registry.register_binaries(binaries)

    def synthesize(self, registry: DistributionRegistry, graph: Optional[TaskGraph] = None) -> SynthesisResult:
        """
        Create every distribution's steps, then finalize archive names.

        A :class:`ConfigurationError` for one distribution drops that
        distribution's partial steps and is recorded in the result; the
        other distributions are synthesized regardless.
        """
        graph = graph if graph is not None else TaskGraph()
        stage, dist = self.create_lifecycle_tasks(graph)
        result = SynthesisResult(graph=graph, stage=stage, dist=dist)

        for distribution in registry.begin_synthesis():
            steps = DistributionSteps(distribution)
            try:
                self.synthesize_distribution(graph, steps, stage, dist)
            except ConfigurationError as exc:
                graph.remove(*steps.created())
                result.failures[distribution.name] = exc
                logger.error("Skipping distribution '%s': %s", distribution.name, exc)
                continue
            result.distributions[distribution.name] = steps
            logger.info(
                "Synthesized distribution '%s' (%d steps)",
                distribution.name,
                len(steps.created()),
            )

        finalize_archive_names(graph)
        registry.seal()
        return result

    def synthesize_distribution(
        self,
        graph: TaskGraph,
        steps: DistributionSteps,
        stage: LifecycleStep,
        dist: LifecycleStep,
    ) -> DistributionSteps:
        """Walk one distribution from REGISTERED to ARCHIVED."""
        self.plan_content(graph, steps)
        self.plan_stage(graph, steps, stage)
        self.plan_archives(graph, steps, dist)
        return steps

    # ── Lifecycle ────────────────────────────────────────────────────

    def create_lifecycle_tasks(self, graph: TaskGraph) -> Tuple[LifecycleStep, LifecycleStep]:
        stage = graph.add(LifecycleStep(
            STAGE_LIFECYCLE_TASK_NAME,
            description="Stages all distributions.",
            group=DISTRIBUTION_GROUP,
        ))
        dist = graph.add(LifecycleStep(
            DIST_LIFECYCLE_TASK_NAME,
            description="Assembles all distributions.",
            group=DISTRIBUTION_GROUP,
        ))
        return stage, dist

    # ── REGISTERED -> CONTENT_PLANNED ────────────────────────────────

    def plan_content(self, graph: TaskGraph, steps: DistributionSteps) -> None:
        distribution = steps.distribution
        binary = distribution.require_binary()
        runtime = binary.runtime or self.runtime
        renamer = self.renamer_for(runtime)
        steps.renamer = renamer
        name = capitalize(distribution.name)

        steps.jar = graph.add(JarStep(
            f"create{name}DistributionJar",
            description=f"Assembles an application jar suitable for deployment for the {binary}.",
            group=DISTRIBUTION_GROUP,
            base_name=binary.jar_file.stem,
            destination_dir=self.build_dir / "distributionJars" / distribution.name,
            sources=[binary.jar_file],
            manifest_attributes={
                CLASSPATH_ATTRIBUTE: ManifestClasspath(runtime, binary.assets_jar_file, renamer),
            },
        ))
        steps.jar.archive_name = binary.jar_file.name
        steps.jar.depend_on(*binary.build_steps)

        steps.start_scripts = graph.add(StartScriptsStep(
            f"create{name}StartScripts",
            description=f"Creates OS specific scripts to run the {binary}.",
            group=DISTRIBUTION_GROUP,
            output_dir=self.build_dir / "scripts" / distribution.name,
            application_name=distribution.name,
            main_class=binary.main_class or self.settings.main_class,
            classpath=[steps.jar],
            platforms=self.settings.script_platforms,
        ))
        steps.start_scripts.depend_on(steps.jar)

        build_content_tree(distribution, binary, steps.jar, steps.start_scripts, renamer, self.settings)
        steps.state = DistributionState.CONTENT_PLANNED
        logger.debug("Planned content for '%s'", distribution.name)

    # ── CONTENT_PLANNED -> STAGED ────────────────────────────────────

    def plan_stage(self, graph: TaskGraph, steps: DistributionSteps, stage: LifecycleStep) -> None:
        distribution = steps.distribution
        stage_step = SyncStep(
            f"stage{capitalize(distribution.name)}Dist",
            description=f"Copies the '{distribution.name}' distribution to a staging directory.",
            group=DISTRIBUTION_GROUP,
            destination_dir=self.build_dir / "stage" / distribution.base_name,
            base_dir=self.project_dir,
        )
        stage_step.root_spec.with_spec(distribution.contents)
        # Content producers run before the mirror
        stage_step.depend_on(steps.jar, steps.start_scripts)
        steps.stage = graph.add(stage_step)
        stage.depend_on(steps.stage)
        steps.state = DistributionState.STAGED

    # ── STAGED -> ARCHIVED ───────────────────────────────────────────

    def plan_archives(self, graph: TaskGraph, steps: DistributionSteps, dist: LifecycleStep) -> None:
        distribution = steps.distribution
        name = capitalize(distribution.name)
        destination = self.build_dir / "distributions"

        steps.zip = graph.add(ZipStep(
            f"create{name}ZipDist",
            description=f"Packages the '{distribution.name}' distribution as a zip file.",
            group=DISTRIBUTION_GROUP,
            base_name=distribution.base_name,
            destination_dir=destination,
            sources=[steps.stage],
        ))
        steps.zip.depend_on(steps.stage)

        steps.tar = graph.add(TarStep(
            f"create{name}TarDist",
            description=f"Packages the '{distribution.name}' distribution as a tar file.",
            group=DISTRIBUTION_GROUP,
            base_name=distribution.base_name,
            destination_dir=destination,
            sources=[steps.stage],
            compression=self.settings.tar_compression,
        ))
        steps.tar.depend_on(steps.stage)

        dist.depend_on(steps.zip, steps.tar)
        steps.state = DistributionState.ARCHIVED

    # ── Helpers ──────────────────────────────────────────────────────

    def renamer_for(self, configuration: ResolvedConfiguration) -> ArtifactRenamer:
        """One shared renamer per library set."""
        key = id(configuration)
        renamer = self._renamers.get(key)
        if renamer is None or renamer.configuration is not configuration:
            renamer = ArtifactRenamer(configuration, self.settings.rename_extensions, self.project_dir)
            self._renamers[key] = renamer
        return renamer


def build_content_tree(
    distribution: Distribution,
    binary: BinarySpec,
    jar: JarStep,
    start_scripts: StartScriptsStep,
    renamer: ArtifactRenamer,
    settings: DistributionSettings,
) -> None:
    """Attach the ``lib``, ``bin`` and ``conf`` subtrees and the README."""
    contents = distribution.contents
    for reserved in RESERVED_SUBTREES:
        if contents.children_into(reserved):
            raise ConfigurationError(
                f"Distribution '{distribution.name}' already defines a '{reserved}' subtree.",
                suggestion="Add extra files to the distribution root or a different directory.",
                details={"distribution": distribution.name, "subtree": reserved},
            )

    lib = contents.add_child().into("lib")
    lib.from_sources(
        jar,
        binary.assets_jar_file,
        LazyFiles(lambda: list(renamer.renames), f"runtime artifacts of '{renamer.configuration.name}'"),
    )
    lib.each_file(renamer.apply).require_sources()

    bin_spec = contents.add_child().into("bin")
    bin_spec.from_sources(start_scripts)
    bin_spec.set_file_mode(settings.bin_file_mode)

    conf = contents.add_child().into("conf")
    conf.from_sources(settings.conf_dir).exclude(*settings.conf_excludes)

    contents.from_sources(settings.readme)
