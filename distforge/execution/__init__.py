"""
distforge execution - a small in-process engine for synthesized graphs.
"""

from .actions import (
    MANIFEST_PATH,
    plan_copy,
    render_manifest,
    sync_directory,
    write_jar,
    write_tar,
    write_zip,
)
from .executor import ExecutionReport, LocalExecutor, StepOutcome
from .scripts import render_start_script, write_start_scripts

__all__ = [
    "MANIFEST_PATH",
    "plan_copy",
    "render_manifest",
    "sync_directory",
    "write_jar",
    "write_tar",
    "write_zip",
    "ExecutionReport",
    "LocalExecutor",
    "StepOutcome",
    "render_start_script",
    "write_start_scripts",
]
