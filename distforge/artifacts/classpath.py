"""
Manifest ``Class-Path`` attribute.

The bundle jar of a distribution lists its runtime dependencies by the
names they are staged under in ``lib/``, so the value is produced by
the same :class:`ArtifactRenamer` that renames the copied files.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .naming import ArtifactRenamer
from .origin import ResolvedConfiguration

CLASSPATH_SEPARATOR = " "


class ManifestClasspath:
    """
    Lazily rendered classpath for a jar manifest.

    Entries are the configuration's artifact files in resolution order,
    followed by the assets jar, each mapped through the renamer.
    Rendering happens on ``str()`` so the value can be attached to a
    manifest long before resolution runs.
    """

    def __init__(
        self,
        configuration: ResolvedConfiguration,
        assets_jar_file: Path,
        renamer: Optional[ArtifactRenamer] = None,
    ) -> None:
        self.configuration = configuration
        self.assets_jar_file = Path(assets_jar_file)
        self.renamer = renamer or ArtifactRenamer(configuration)

    def files(self) -> List[Path]:
        # Resolved through the renamer so the configuration is queried once
        runtime = list(self.renamer.renames.keys())
        return runtime + [self.assets_jar_file]

    def entries(self) -> List[str]:
        return [self.renamer.rename(f) for f in self.files()]

    def render(self) -> str:
        return CLASSPATH_SEPARATOR.join(self.entries())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"ManifestClasspath({self.configuration.name!r}, assets={self.assets_jar_file.name!r})"
