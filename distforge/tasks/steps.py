"""
Step definitions.

A step is a unit of work for the execution engine: it has a unique name,
a kind, declared dependencies on other steps (by handle) and, per kind,
the inputs and outputs the engine needs. Creating a step does no work.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..distribution.content import ContentSpec


class StepKind(str, Enum):
    LIFECYCLE = "lifecycle"
    JAR = "jar"
    START_SCRIPTS = "start_scripts"
    SYNC = "sync"
    ZIP = "zip"
    TAR = "tar"


ARCHIVE_KINDS = frozenset({StepKind.ZIP, StepKind.TAR})


class Step:
    """Base step: identity, description, group and dependency edges."""

    kind: StepKind = StepKind.LIFECYCLE

    def __init__(self, name: str, *, description: str = "", group: str = "") -> None:
        if not name:
            raise ValueError("Step must have a name")
        self.name = name
        self.description = description
        self.group = group
        self._depends_on: List["Step"] = []

    @property
    def depends_on(self) -> List["Step"]:
        return list(self._depends_on)

    def depend_on(self, *steps: "Step") -> "Step":
        for step in steps:
            if step is not self and step not in self._depends_on:
                self._depends_on.append(step)
        return self

    @property
    def outputs(self) -> List[Path]:
        return []

    @property
    def is_archive(self) -> bool:
        return self.kind in ARCHIVE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "group": self.group,
            "description": self.description,
            "depends_on": [s.name for s in self._depends_on],
            "outputs": [str(p) for p in self.outputs],
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class LifecycleStep(Step):
    """No-op aggregate that only carries dependency edges."""

    kind = StepKind.LIFECYCLE


class StartScriptsStep(Step):
    """Generates platform launch scripts for an application."""

    kind = StepKind.START_SCRIPTS

    def __init__(
        self,
        name: str,
        *,
        output_dir: Path,
        application_name: str,
        main_class: str,
        classpath: Sequence[Any] = (),
        platforms: Sequence[str] = ("unix", "windows"),
        description: str = "",
        group: str = "",
    ) -> None:
        super().__init__(name, description=description, group=group)
        self.output_dir = Path(output_dir)
        self.application_name = application_name
        self.main_class = main_class
        # Paths or steps; steps contribute their outputs
        self.classpath = list(classpath)
        self.platforms = tuple(platforms)

    def classpath_files(self) -> List[Path]:
        files: List[Path] = []
        for entry in self.classpath:
            if isinstance(entry, Step):
                files.extend(entry.outputs)
            else:
                files.append(Path(entry))
        return files

    @property
    def script_files(self) -> List[Path]:
        files = []
        if "unix" in self.platforms:
            files.append(self.output_dir / self.application_name)
        if "windows" in self.platforms:
            files.append(self.output_dir / f"{self.application_name}.bat")
        return files

    @property
    def outputs(self) -> List[Path]:
        return [self.output_dir]


class SyncStep(Step):
    """
    Mirrors a content spec into ``destination_dir``.

    Files under the destination that the spec does not produce are
    deleted, so the directory ends up an exact copy of the spec.
    """

    kind = StepKind.SYNC

    def __init__(
        self,
        name: str,
        *,
        destination_dir: Path,
        root_spec: Optional[ContentSpec] = None,
        base_dir: Optional[Path] = None,
        description: str = "",
        group: str = "",
    ) -> None:
        super().__init__(name, description=description, group=group)
        self.destination_dir = Path(destination_dir)
        self.root_spec = root_spec if root_spec is not None else ContentSpec()
        self.base_dir = Path(base_dir) if base_dir is not None else Path(".")

    @property
    def outputs(self) -> List[Path]:
        return [self.destination_dir]


class PackagingStep(Step):
    """
    Common base of steps that write a single archive file (jar, zip, tar).

    The archive name defaults to the non-empty parts of
    ``base_name-appendix-version-classifier`` plus the extension;
    assigning :attr:`archive_name` overrides it.
    """

    default_extension = ""

    def __init__(
        self,
        name: str,
        *,
        base_name: str,
        destination_dir: Path,
        sources: Sequence[Any] = (),
        appendix: str = "",
        version: str = "",
        classifier: str = "",
        extension: Optional[str] = None,
        description: str = "",
        group: str = "",
    ) -> None:
        super().__init__(name, description=description, group=group)
        self.base_name = base_name
        self.destination_dir = Path(destination_dir)
        self.sources = list(sources)
        self.appendix = appendix
        self.version = version
        self.classifier = classifier
        self.extension = extension if extension is not None else self.default_extension
        self._archive_name: Optional[str] = None

    @property
    def archive_name(self) -> str:
        if self._archive_name:
            return self._archive_name
        parts = [p for p in (self.base_name, self.appendix, self.version, self.classifier) if p]
        stem = "-".join(parts)
        return f"{stem}.{self.extension}" if self.extension else stem

    @archive_name.setter
    def archive_name(self, value: Optional[str]) -> None:
        self._archive_name = value

    @property
    def archive_path(self) -> Path:
        return self.destination_dir / self.archive_name

    @property
    def outputs(self) -> List[Path]:
        return [self.archive_path]

    def source_dirs(self) -> List[Path]:
        dirs: List[Path] = []
        for source in self.sources:
            if isinstance(source, Step):
                dirs.extend(source.outputs)
            else:
                dirs.append(Path(source))
        return dirs

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["archive_name"] = self.archive_name
        return data


class JarStep(PackagingStep):
    """
    Writes a jar merging the entries of its source jars.

    ``manifest_attributes`` values are rendered with ``str()`` when the
    jar is written, so lazy values such as a manifest classpath are
    only evaluated at execution time.
    """

    kind = StepKind.JAR
    default_extension = "jar"

    def __init__(self, name: str, *, manifest_attributes: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.manifest_attributes: Dict[str, Any] = dict(manifest_attributes or {})


class ArchiveStep(PackagingStep):
    """
    Distribution archive built from staged directories.

    Every archive step is picked up by the naming finalizer, which
    forces ``archive_name`` to ``<base_name>.<extension>``.
    """


class ZipStep(ArchiveStep):
    kind = StepKind.ZIP
    default_extension = "zip"


TAR_COMPRESSION_EXTENSIONS = {
    "none": "tar",
    "gzip": "tgz",
    "bzip2": "tbz2",
}


class TarStep(ArchiveStep):
    """Tar archive; the extension follows the compression."""

    kind = StepKind.TAR

    def __init__(self, name: str, *, compression: str = "none", **kwargs: Any) -> None:
        if compression not in TAR_COMPRESSION_EXTENSIONS:
            raise ValueError(
                f"Unsupported tar compression '{compression}', "
                f"expected one of {sorted(TAR_COMPRESSION_EXTENSIONS)}"
            )
        kwargs.setdefault("extension", TAR_COMPRESSION_EXTENSIONS[compression])
        super().__init__(name, **kwargs)
        self.compression = compression
