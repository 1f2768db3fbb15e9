"""
File-system actions behind each step kind.

These are the only functions in distforge that write files. Archive
entries are written in sorted order with their on-disk permission bits
so repeated runs over the same tree produce the same listing.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import time
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ..distribution.content import ContentSpec, CopyDetails

logger = logging.getLogger("distforge.execution")

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST_LINE_LIMIT = 72

TAR_MODES = {
    "none": "w",
    "gzip": "w:gz",
    "bzip2": "w:bz2",
}


# ── Jar ─────────────────────────────────────────────────────────────────


def render_manifest(attributes: Mapping[str, Any]) -> str:
    """
    Render a jar manifest.

    ``Manifest-Version`` comes first. Lines are limited to 72 bytes;
    longer values continue on following lines that start with a space.
    """
    attrs = {str(k): str(v) for k, v in attributes.items()}
    version = attrs.pop("Manifest-Version", "1.0")
    lines = [f"Manifest-Version: {version}"]
    for key, value in attrs.items():
        lines.extend(_wrap_manifest_line(f"{key}: {value}"))
    return "\r\n".join(lines) + "\r\n\r\n"


def _wrap_manifest_line(line: str) -> List[str]:
    data = line.encode("utf-8")
    if len(data) <= MANIFEST_LINE_LIMIT:
        return [line]

    chunks: List[str] = []
    limit = MANIFEST_LINE_LIMIT
    while data:
        cut = min(limit, len(data))
        # Never split a multi-byte character
        while cut < len(data) and (data[cut] & 0xC0) == 0x80:
            cut -= 1
        chunk = data[:cut].decode("utf-8")
        chunks.append(chunk if not chunks else " " + chunk)
        data = data[cut:]
        limit = MANIFEST_LINE_LIMIT - 1
    return chunks


def write_jar(destination: Path, sources: Iterable[Path], manifest_attributes: Mapping[str, Any]) -> Path:
    """
    Write a jar merging the entries of *sources*.

    Source manifests are dropped; the first occurrence of any other
    entry wins.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    seen = {MANIFEST_PATH}
    manifest = render_manifest(manifest_attributes)

    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as out:
        out.writestr(_zip_info(MANIFEST_PATH), manifest)
        for source in sources:
            if not source.is_file():
                raise FileNotFoundError(f"Jar source not found: {source}")
            with zipfile.ZipFile(source, "r") as src:
                for info in src.infolist():
                    if info.filename in seen:
                        if info.filename != MANIFEST_PATH and not info.is_dir():
                            logger.debug("Duplicate jar entry %s from %s", info.filename, source)
                        continue
                    seen.add(info.filename)
                    out.writestr(info, src.read(info.filename))

    logger.info("Wrote jar %s", destination)
    return destination


def _zip_info(name: str, mode: int = 0o644) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, time.localtime()[:6])
    info.external_attr = mode << 16
    info.compress_type = zipfile.ZIP_DEFLATED
    return info


# ── Sync ────────────────────────────────────────────────────────────────


def plan_copy(spec: ContentSpec, base_dir: Path) -> Dict[PurePosixPath, CopyDetails]:
    """Destination path -> copy details; the first file for a path wins."""
    planned: Dict[PurePosixPath, CopyDetails] = {}
    for details in spec.walk(base_dir):
        target = details.relative_path
        if target in planned:
            logger.warning(
                "Duplicate entry %s: keeping %s, skipping %s",
                target, planned[target].file, details.file,
            )
            continue
        planned[target] = details
    return planned


def sync_directory(spec: ContentSpec, base_dir: Path, destination: Path) -> List[Path]:
    """
    Mirror *spec* into *destination*.

    Files not produced by the spec are deleted, as are directories left
    empty afterwards. Returns the written files.
    """
    planned = plan_copy(spec, base_dir)
    destination.mkdir(parents=True, exist_ok=True)

    wanted = {destination.joinpath(*rel.parts) for rel in planned}
    for existing in sorted(destination.rglob("*"), reverse=True):
        if existing.is_file() or existing.is_symlink():
            if existing not in wanted:
                existing.unlink()
                logger.debug("Removed stale file %s", existing)
        elif existing.is_dir() and not any(existing.iterdir()):
            existing.rmdir()

    written = []
    for rel, details in planned.items():
        target = destination.joinpath(*rel.parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(details.file, target)
        if details.mode is not None:
            os.chmod(target, details.mode)
        written.append(target)

    logger.info("Synced %d file(s) into %s", len(written), destination)
    return written


# ── Distribution archives ───────────────────────────────────────────────


def _archive_entries(source_dirs: Iterable[Path]) -> List[Tuple[Path, str]]:
    """(file, arcname) pairs; arcnames keep the source directory's own name."""
    entries: List[Tuple[Path, str]] = []
    for root in source_dirs:
        if not root.is_dir():
            raise FileNotFoundError(f"Archive source directory not found: {root}")
        for file in sorted(root.rglob("*")):
            if file.is_file():
                arcname = PurePosixPath(root.name, *file.relative_to(root).parts)
                entries.append((file, str(arcname)))
    return entries


def write_zip(destination: Path, source_dirs: Iterable[Path]) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as out:
        for file, arcname in _archive_entries(source_dirs):
            info = zipfile.ZipInfo(arcname, time.localtime(file.stat().st_mtime)[:6])
            info.external_attr = stat.S_IMODE(file.stat().st_mode) << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            out.writestr(info, file.read_bytes())
    logger.info("Wrote zip %s", destination)
    return destination


def write_tar(destination: Path, source_dirs: Iterable[Path], compression: str = "none") -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(destination, TAR_MODES[compression]) as out:
        for file, arcname in _archive_entries(source_dirs):
            out.add(str(file), arcname=arcname, recursive=False)
    logger.info("Wrote tar %s", destination)
    return destination
