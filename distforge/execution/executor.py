"""
Local executor - runs a synthesized task graph in-process.

No up-to-date checks and no parallelism.
Targets and their dependencies run in topological order; the first
failing step stops the run.
"""

from __future__ import annotations

import logging
import tarfile
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..faults import DistforgeError, ExecutionError
from ..tasks.graph import TaskGraph
from ..tasks.steps import (
    JarStep,
    StartScriptsStep,
    Step,
    StepKind,
    SyncStep,
    TarStep,
    ZipStep,
)
from .actions import sync_directory, write_jar, write_tar, write_zip
from .scripts import write_start_scripts

logger = logging.getLogger("distforge.execution")


@dataclass
class StepOutcome:
    name: str
    kind: str
    duration: float
    outputs: List[Path] = field(default_factory=list)


@dataclass
class ExecutionReport:
    """Steps executed by one :meth:`LocalExecutor.run` call, in order."""

    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def executed(self) -> List[str]:
        return [o.name for o in self.outcomes]

    @property
    def duration(self) -> float:
        return sum(o.duration for o in self.outcomes)


class LocalExecutor:
    """Execute steps of a :class:`TaskGraph` on the local file system."""

    def __init__(self, graph: TaskGraph) -> None:
        self.graph = graph
        self._actions: Dict[StepKind, Callable[[Step], List[Path]]] = {
            StepKind.LIFECYCLE: self._run_lifecycle,
            StepKind.JAR: self._run_jar,
            StepKind.START_SCRIPTS: self._run_start_scripts,
            StepKind.SYNC: self._run_sync,
            StepKind.ZIP: self._run_zip,
            StepKind.TAR: self._run_tar,
        }

    def run(self, targets: Optional[Iterable[Union[Step, str]]] = None) -> ExecutionReport:
        """
        Execute *targets* (names or handles) and their dependencies.

        Raises:
            ExecutionError: When a step fails
            StepNotFoundError: For an unknown target name
        """
        report = ExecutionReport()
        for step in self.graph.execution_order(targets):
            started = time.perf_counter()
            logger.info("> %s", step.name)
            try:
                outputs = self._actions[step.kind](step)
            except DistforgeError:
                raise
            except (OSError, KeyError, ValueError, zipfile.BadZipFile, tarfile.TarError) as exc:
                raise ExecutionError(step.name, str(exc)) from exc
            report.outcomes.append(StepOutcome(
                name=step.name,
                kind=step.kind.value,
                duration=time.perf_counter() - started,
                outputs=outputs,
            ))
        return report

    # ── Actions ──────────────────────────────────────────────────────

    def _run_lifecycle(self, step: Step) -> List[Path]:
        return []

    def _run_jar(self, step: JarStep) -> List[Path]:
        sources = step.source_dirs()
        return [write_jar(step.archive_path, sources, step.manifest_attributes)]

    def _run_start_scripts(self, step: StartScriptsStep) -> List[Path]:
        return write_start_scripts(
            step.output_dir,
            application_name=step.application_name,
            main_class=step.main_class,
            classpath=step.classpath_files(),
            platforms=step.platforms,
        )

    def _run_sync(self, step: SyncStep) -> List[Path]:
        sync_directory(step.root_spec, step.base_dir, step.destination_dir)
        return [step.destination_dir]

    def _run_zip(self, step: ZipStep) -> List[Path]:
        return [write_zip(step.archive_path, step.source_dirs())]

    def _run_tar(self, step: TarStep) -> List[Path]:
        return [write_tar(step.archive_path, step.source_dirs(), step.compression)]
