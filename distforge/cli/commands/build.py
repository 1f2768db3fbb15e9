"""Shared plumbing for the build commands: load, synthesize, execute."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import click

from ...config import parse_value, setting_type
from ...execution import ExecutionReport, LocalExecutor
from ...project import BuildProject
from ...tasks import SynthesisResult

logger = logging.getLogger("distforge.cli")


@dataclass
class BuildSession:
    """A loaded project and the graph synthesized from it."""

    project: BuildProject
    result: SynthesisResult

    @property
    def graph(self):
        return self.result.graph


def parse_overrides(items: Iterable[str]) -> Dict[str, Any]:
    """``["tar_compression=gzip"]`` -> ``{"tar_compression": "gzip"}``."""
    overrides: Dict[str, Any] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--set")
        key = key.strip()
        overrides[key] = parse_value(value.strip(), setting_type(key))
    return overrides


def load_session(
    project_dir: str,
    descriptor: Optional[str] = None,
    overrides: Sequence[str] = (),
) -> BuildSession:
    """Load the project descriptor and synthesize its task graph."""
    project = BuildProject.load(
        Path(project_dir),
        descriptor=Path(descriptor) if descriptor else None,
        overrides=parse_overrides(overrides),
    )
    result = project.synthesize()
    return BuildSession(project=project, result=result)


def group_steps(result: SynthesisResult) -> List[Tuple[str, List[Tuple[str, str]]]]:
    """Steps grouped by their group, groups and steps in creation order."""
    groups: Dict[str, List[Tuple[str, str]]] = {}
    for step in result.graph:
        groups.setdefault(step.group or "other", []).append((step.name, step.description))
    return list(groups.items())


def execute(session: BuildSession, targets: Sequence[str]) -> ExecutionReport:
    logger.debug("Executing %s", ", ".join(targets))
    return LocalExecutor(session.graph).run(targets)
