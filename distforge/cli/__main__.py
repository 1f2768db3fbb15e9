"""distforge CLI - Main Entry Point.

Commands:
    tasks      - List synthesized steps by group
    graph      - Show step dependencies (text or DOT)
    classpath  - Print the manifest classpath of a distribution
    stage      - Stage every distribution locally
    dist       - Assemble every distribution archive locally
    run        - Execute named steps
"""

import logging
import sys
from typing import Tuple

import click

from . import __version__, __cli_name__
from ..faults import DistforgeError, DistributionNotFoundError, Severity
from ..tasks import CLASSPATH_ATTRIBUTE, DIST_LIFECYCLE_TASK_NAME, STAGE_LIFECYCLE_TASK_NAME
from .utils.colors import (
    success, error, warning, info, dim, bold,
    section, kv, bullet, table, badge,
    _CHECK, _CROSS, _ARROW,
)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# ═══════════════════════════════════════════════════════════════════════════
# Custom Click group
# ═══════════════════════════════════════════════════════════════════════════


class DistforgeGroup(click.Group):
    """Click group subclass with aligned command listing."""

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=48)))

        if commands:
            with formatter.section(click.style("Commands", fg="cyan", bold=True)):
                max_len = max(len(c[0]) for c in commands) + 2
                for name, help_text in commands:
                    styled_name = click.style(name.ljust(max_len), fg="green")
                    formatter.write(f"  {styled_name} {help_text}\n")


@click.group(cls=DistforgeGroup)
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--project-dir', '-p', type=click.Path(file_okay=False), default='.', help='Project directory')
@click.option('--descriptor', '-d', type=click.Path(dir_okay=False), help='Project descriptor (default: distforge.yaml)')
@click.option('--set', 'overrides', multiple=True, metavar='KEY=VALUE', help='Override a distribution setting')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.pass_context
def cli(ctx, project_dir: str, descriptor: str, overrides: Tuple[str, ...], verbose: bool, quiet: bool):
    """Assemble deployable distributions of Play application binaries.

    \b
    Quick start:
      distforge tasks
      distforge stage
      distforge dist
    """
    ctx.ensure_object(dict)
    ctx.obj['project_dir'] = project_dir
    ctx.obj['descriptor'] = descriptor
    ctx.obj['overrides'] = overrides
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


# ============================================================================
# Helpers
# ============================================================================

def _print_error(e: DistforgeError, indent: str = "  ") -> None:
    """Print a formatted error, styled by its severity."""
    if e.severity is Severity.WARN:
        warning(f"{indent}! {e.format_error()}")
    else:
        error(f"{indent}{_CROSS} {e.format_error()}")


def _session(ctx):
    from .commands.build import load_session

    try:
        return load_session(
            ctx.obj['project_dir'],
            descriptor=ctx.obj['descriptor'],
            overrides=ctx.obj['overrides'],
        )
    except DistforgeError as e:
        _print_error(e)
        sys.exit(1)


def _report_failures(session) -> bool:
    """Print per-distribution synthesis failures; True when there were any."""
    failures = session.result.failures
    for name, exc in failures.items():
        warning(f"  Distribution '{name}' skipped, remaining distributions continue")
        _print_error(exc, indent="    ")
    return bool(failures)


def _execute(ctx, targets):
    from .commands.build import execute

    session = _session(ctx)
    failed = _report_failures(session)

    try:
        report = execute(session, targets)
    except DistforgeError as e:
        _print_error(e)
        sys.exit(1)

    if not ctx.obj['quiet']:
        click.echo()
        for outcome in report.outcomes:
            click.echo(f"  {badge(outcome.kind)} {outcome.name}")
            if ctx.obj['verbose']:
                for output in outcome.outputs:
                    dim(f"      {_ARROW} {output}")
        click.echo()
        success(f"  {_CHECK} Executed {len(report.executed)} step(s) in {report.duration:.2f}s")

    if failed:
        sys.exit(1)


# ============================================================================
# Commands
# ============================================================================

@cli.command('tasks')
@click.pass_context
def tasks(ctx):
    """
    List synthesized steps by group.

    Examples:
      distforge tasks
      distforge --set tar_compression=gzip tasks
    """
    from .commands.build import group_steps

    session = _session(ctx)

    for group, steps in group_steps(session.result):
        section(group)
        table(["Step", "Description"], steps)
        click.echo()

    if not ctx.obj['quiet']:
        kv("Project", session.project.name)
        kv("Distributions", str(len(session.result.distributions)))
        kv("Steps", str(len(session.graph)))

    if _report_failures(session):
        sys.exit(1)


@cli.command('graph')
@click.option('--dot', is_flag=True, help='Emit Graphviz DOT')
@click.pass_context
def graph(ctx, dot: bool):
    """
    Show step dependencies.

    Examples:
      distforge graph
      distforge graph --dot | dot -Tsvg > steps.svg
    """
    session = _session(ctx)

    if dot:
        click.echo(session.graph.to_dot())
    else:
        for name, deps in session.graph.to_dict().items():
            click.echo(bold(name))
            for dep in deps:
                bullet(dep)

    if _report_failures(session):
        sys.exit(1)


@cli.command('classpath')
@click.argument('name')
@click.option('--lines', is_flag=True, help='One entry per line')
@click.pass_context
def classpath(ctx, name: str, lines: bool):
    """
    Print the manifest Class-Path of a distribution's bundle jar.

    Examples:
      distforge classpath playBinary
    """
    session = _session(ctx)
    result = session.result

    if name in result.failures:
        _print_error(result.failures[name])
        sys.exit(1)
    if name not in result.distributions:
        _print_error(DistributionNotFoundError(name, available=list(result.distributions)))
        sys.exit(1)

    manifest_classpath = result.distributions[name].jar.manifest_attributes[CLASSPATH_ATTRIBUTE]
    if lines:
        for entry in manifest_classpath.entries():
            click.echo(entry)
    else:
        click.echo(manifest_classpath.render())


@cli.command('stage')
@click.pass_context
def stage(ctx):
    """Stage every distribution into build/stage."""
    _execute(ctx, [STAGE_LIFECYCLE_TASK_NAME])


@cli.command('dist')
@click.pass_context
def dist(ctx):
    """Assemble every distribution's zip and tar archives."""
    _execute(ctx, [DIST_LIFECYCLE_TASK_NAME])


@cli.command('run')
@click.argument('steps', nargs=-1, required=True)
@click.pass_context
def run(ctx, steps: Tuple[str, ...]):
    """
    Execute named steps and their dependencies.

    Examples:
      distforge run createPlayBinaryDistributionJar
      distforge run stagePlayBinaryDist createPlayBinaryZipDist
    """
    if ctx.obj['verbose']:
        info(f"  Running {', '.join(steps)}")
    _execute(ctx, list(steps))


def main():
    """Entry point for `distforge` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
