"""
distforge CLI - styled output primitives built on Click.

    Output helpers:
        success(), error(), warning(), info(), dim(), bold()

    Structural elements:
        section()       - section divider with title
        kv()            - key-value pair, aligned
        badge()         - inline status badge  [OK]  [FAIL]
        bullet()        - bulleted list item
        table()         - minimal aligned table

click.style handles NO_COLOR / TERM=dumb, so output degrades gracefully.
"""

from __future__ import annotations

import shutil
from typing import Optional, Sequence

import click

# ═══════════════════════════════════════════════════════════════════════════
# Terminal helpers
# ═══════════════════════════════════════════════════════════════════════════

_TERM_WIDTH: Optional[int] = None


def _tw() -> int:
    """Terminal width, cached and clamped to a sane range."""
    global _TERM_WIDTH
    if _TERM_WIDTH is None:
        _TERM_WIDTH = max(40, min(shutil.get_terminal_size((80, 24)).columns, 120))
    return _TERM_WIDTH


_L_H    = "\u2500"   # ─
_BULLET = "\u2022"   # •
_ARROW  = "\u2192"   # →
_CHECK  = "\u2713"   # ✓
_CROSS  = "\u2717"   # ✗
_DOT    = "\u00b7"   # ·


# ═══════════════════════════════════════════════════════════════════════════
# Basic styled output
# ═══════════════════════════════════════════════════════════════════════════


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red (to stderr)."""
    click.echo(click.style(message, fg="red"), err=True)


def warning(message: str) -> None:
    """Print warning message in yellow."""
    click.echo(click.style(message, fg="yellow"))


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def dim(message: str) -> None:
    """Print dimmed message."""
    click.echo(click.style(message, dim=True))


def bold(message: str) -> str:
    """Return bold-styled text (does not echo)."""
    return click.style(message, bold=True)


# ═══════════════════════════════════════════════════════════════════════════
# Structure
# ═══════════════════════════════════════════════════════════════════════════


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Print a section header with a ruled line.

        ── distribution ───────────────────────────
    """
    w = width or _tw()
    dashes = max(4, w - len(title) - 6)
    line = f"{_L_H}{_L_H} {title} {_L_H * dashes}"
    click.echo(click.style(line, fg=fg, bold=True))


def kv(
    key: str,
    value: str,
    *,
    key_width: int = 20,
    indent: int = 2,
    key_fg: str = "white",
    val_fg: str = "cyan",
) -> None:
    """
    Print an aligned key-value pair.

        Distributions:    2
        Steps:            12
    """
    prefix = " " * indent
    k = click.style(f"{key}:", fg=key_fg)
    v = click.style(str(value), fg=val_fg)
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{prefix}{k}{padding}{v}")


def badge(label: str, *, style: str = "ok") -> str:
    """Return an inline badge string (not echoed)."""
    colours = {
        "ok":   ("green",  f" {_CHECK} "),
        "fail": ("red",    f" {_CROSS} "),
        "info": ("cyan",   f" {_DOT} "),
    }
    fg, icon = colours.get(style, ("white", f" {_DOT} "))
    return click.style(f"[{icon}{label}]", fg=fg)


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    """Print a bulleted list item."""
    prefix = " " * indent
    click.echo(f"{prefix}{click.style(_BULLET, fg='cyan')} {click.style(text, fg=fg)}")


def table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    header_fg: str = "cyan",
    row_fg: str = "white",
    indent: int = 2,
) -> None:
    """
    Print a minimal aligned table.

        Step                          Description
        ───────────────────────────── ──────────────────
        createPlayBinaryZipDist       Packages the ...
    """
    prefix = " " * indent
    ncols = len(headers)

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[:ncols]):
            widths[i] = max(widths[i], len(str(cell)))
    widths = [w + 2 for w in widths]

    hdr = "".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    click.echo(f"{prefix}{click.style(hdr.rstrip(), fg=header_fg, bold=True)}")
    click.echo(f"{prefix}{click.style(''.join(_L_H * w for w in widths), dim=True)}")

    for row in rows:
        line = "".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row[:ncols]))
        click.echo(f"{prefix}{click.style(line.rstrip(), fg=row_fg)}")
