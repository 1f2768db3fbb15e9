"""
Content specs - the file layout of a distribution.

A :class:`ContentSpec` is a tree of copy instructions. Each node has a
destination directory, a list of sources, exclude patterns, per-file
actions and an optional file mode; children inherit their parent's
destination, excludes, actions and mode. A distribution's content tree
looks like::

    <root>                 README
    ├── lib/               bundle jar, assets jar, runtime jars (renamed)
    ├── bin/               start scripts (0755)
    └── conf/              conf directory minus ``routes``

Building a spec performs no I/O. Sources are only expanded into files by
:meth:`ContentSpec.walk`, which the executor calls when a step runs.
Composition is additive: nothing added to a spec is ever removed.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..faults import RegistryFrozenError

logger = logging.getLogger("distforge.content")

# A source is a path (relative paths resolve against the project dir), a
# step handle (anything with an ``outputs`` list) or a zero-arg callable
# returning paths.
Source = Any
CopyAction = Callable[["CopyDetails"], None]


class LazyFiles:
    """A source whose file list is only computed when the spec is walked."""

    def __init__(self, factory: Callable[[], Iterable[Union[str, Path]]], description: str = "") -> None:
        self._factory = factory
        self.description = description or "lazy files"

    def __call__(self) -> List[Path]:
        return [Path(p) for p in self._factory()]

    def __repr__(self) -> str:
        return f"LazyFiles({self.description!r})"


@dataclass
class CopyDetails:
    """One file about to be copied; actions may rename or exclude it."""

    file: Path
    source_path: PurePosixPath
    destination_dir: PurePosixPath
    name: str
    mode: Optional[int] = None
    excluded: bool = False

    @property
    def relative_path(self) -> PurePosixPath:
        """Destination path relative to the copy root."""
        return self.destination_dir / self.source_path.parent / self.name

    def exclude(self) -> None:
        self.excluded = True


@dataclass(frozen=True)
class _Inherited:
    destination: PurePosixPath = PurePosixPath(".")
    excludes: Tuple[str, ...] = ()
    actions: Tuple[CopyAction, ...] = ()
    file_mode: Optional[int] = None


class ContentSpec:
    """
    Fluent, additive copy specification.

    Every mutator returns ``self`` (``add_child`` returns the child) so
    specs can be built in one expression::

        lib = root.add_child().into("lib").from_sources(jar_step, assets_jar)
        lib.each_file(renamer.apply)
    """

    def __init__(self, destination: str = "") -> None:
        self._destination = PurePosixPath(destination) if destination else PurePosixPath(".")
        self._sources: List[Source] = []
        self._excludes: List[str] = []
        self._actions: List[CopyAction] = []
        self._file_mode: Optional[int] = None
        self._children: List["ContentSpec"] = []
        self._required = False
        self._sealed = False

    # ── Mutators ─────────────────────────────────────────────────────

    def into(self, destination: str) -> "ContentSpec":
        self._check_mutable()
        self._destination = PurePosixPath(destination)
        return self

    def from_sources(self, *sources: Source) -> "ContentSpec":
        self._check_mutable()
        self._sources.extend(sources)
        return self

    def exclude(self, *patterns: str) -> "ContentSpec":
        self._check_mutable()
        self._excludes.extend(patterns)
        return self

    def each_file(self, action: CopyAction) -> "ContentSpec":
        self._check_mutable()
        self._actions.append(action)
        return self

    def set_file_mode(self, mode: int) -> "ContentSpec":
        self._check_mutable()
        self._file_mode = mode
        return self

    def require_sources(self) -> "ContentSpec":
        """Fail the walk when one of this spec's own sources is missing."""
        self._check_mutable()
        self._required = True
        return self

    def add_child(self) -> "ContentSpec":
        """Create and attach a new child spec."""
        self._check_mutable()
        child = ContentSpec()
        self._children.append(child)
        return child

    def with_spec(self, spec: "ContentSpec") -> "ContentSpec":
        """Attach an existing spec as a child (shared, not copied)."""
        self._check_mutable()
        self._children.append(spec)
        return self

    def seal(self) -> None:
        """Forbid further changes to this spec and all its children."""
        self._sealed = True
        for child in self._children:
            child.seal()

    # ── Accessors ────────────────────────────────────────────────────

    @property
    def destination(self) -> PurePosixPath:
        return self._destination

    @property
    def sources(self) -> List[Source]:
        return list(self._sources)

    @property
    def excludes(self) -> List[str]:
        return list(self._excludes)

    @property
    def actions(self) -> List[CopyAction]:
        return list(self._actions)

    @property
    def file_mode(self) -> Optional[int]:
        return self._file_mode

    @property
    def children(self) -> List["ContentSpec"]:
        return list(self._children)

    @property
    def is_required(self) -> bool:
        return self._required

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def children_into(self, destination: str) -> List["ContentSpec"]:
        """Direct children whose destination is *destination*."""
        target = PurePosixPath(destination)
        return [c for c in self._children if c.destination == target]

    # ── Expansion (I/O) ──────────────────────────────────────────────

    def walk(self, base_dir: Path, _inherited: Optional[_Inherited] = None) -> Iterator[CopyDetails]:
        """
        Expand the spec into :class:`CopyDetails`, applying excludes and actions.

        Relative paths, whether given directly or produced by a step or a
        callable, resolve against *base_dir*. Missing sources are skipped,
        unless the spec requires its sources, in which case
        :class:`FileNotFoundError` is raised.
        """
        parent = _inherited or _Inherited()
        ctx = _Inherited(
            destination=_join(parent.destination, self._destination),
            excludes=parent.excludes + tuple(self._excludes),
            actions=parent.actions + tuple(self._actions),
            file_mode=self._file_mode if self._file_mode is not None else parent.file_mode,
        )

        for source in self._sources:
            for file, rel in _expand_source(source, base_dir, self._required):
                if _is_excluded(rel, ctx.excludes):
                    continue
                details = CopyDetails(
                    file=file,
                    source_path=rel,
                    destination_dir=ctx.destination,
                    name=rel.name,
                    mode=ctx.file_mode,
                )
                for action in ctx.actions:
                    action(details)
                if not details.excluded:
                    yield details

        for child in self._children:
            yield from child.walk(base_dir, ctx)

    # ── Introspection ────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "into": str(self._destination),
            "sources": [_describe_source(s) for s in self._sources],
        }
        if self._excludes:
            data["exclude"] = list(self._excludes)
        if self._required:
            data["required"] = True
        if self._file_mode is not None:
            data["file_mode"] = oct(self._file_mode)
        if self._actions:
            data["actions"] = len(self._actions)
        if self._children:
            data["children"] = [c.to_dict() for c in self._children]
        return data

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RegistryFrozenError(f"content spec '{self._destination}'", "sealed")

    def __repr__(self) -> str:
        return (
            f"ContentSpec(into={str(self._destination)!r}, "
            f"sources={len(self._sources)}, children={len(self._children)})"
        )


# ── Helpers ─────────────────────────────────────────────────────────────


def _join(base: PurePosixPath, child: PurePosixPath) -> PurePosixPath:
    if str(child) == ".":
        return base
    if str(base) == ".":
        return child
    return base / child


def _is_excluded(rel: PurePosixPath, patterns: Iterable[str]) -> bool:
    candidates = [str(rel)] + [str(p) for p in rel.parents if str(p) != "."]
    for pattern in patterns:
        for candidate in candidates:
            if fnmatch.fnmatchcase(candidate, pattern):
                return True
    return False


def _resolve(path: Union[str, Path], base_dir: Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else base_dir / path


def _source_paths(source: Source, base_dir: Path) -> List[Path]:
    if isinstance(source, (str, Path)):
        return [_resolve(source, base_dir)]
    if hasattr(source, "outputs"):
        return [_resolve(p, base_dir) for p in source.outputs]
    if callable(source):
        return [_resolve(p, base_dir) for p in source()]
    raise TypeError(f"Unsupported content source: {source!r}")


def _expand_source(
    source: Source, base_dir: Path, required: bool = False,
) -> Iterator[Tuple[Path, PurePosixPath]]:
    for path in _source_paths(source, base_dir):
        if path.is_dir():
            for file in sorted(path.rglob("*")):
                if file.is_file():
                    yield file, PurePosixPath(file.relative_to(path).as_posix())
        elif path.is_file():
            yield path, PurePosixPath(path.name)
        elif required:
            raise FileNotFoundError(
                f"Missing content source {path} (from {_describe_source(source)})"
            )
        else:
            logger.debug("Skipping missing content source %s", path)


def _describe_source(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    name = getattr(source, "name", None)
    if name is not None and hasattr(source, "outputs"):
        return f"step:{name}"
    return getattr(source, "description", None) or repr(source)
