"""
distforge command-line interface.

Usage:
    distforge tasks
    distforge graph [--dot]
    distforge classpath <distribution>
    distforge stage
    distforge dist
    distforge run <step>...
"""

from .. import __version__

__cli_name__ = "distforge"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
