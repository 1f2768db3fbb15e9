"""
Shared test fixtures and helpers for the distforge test suite.
"""

import textwrap
import zipfile
from pathlib import Path
from typing import Dict, Union

import pytest

from distforge.artifacts import (
    ModuleComponentId,
    OpaqueComponentId,
    ProjectComponentId,
    ResolvedArtifact,
    ResolvedConfiguration,
)
from distforge.distribution.model import BinarySpec


# ============================================================================
# Helpers
# ============================================================================

def make_jar(path: Path, entries: Dict[str, Union[str, bytes]]) -> Path:
    """Write a small jar (zip) with the given entries."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        for name, data in entries.items():
            jar.writestr(name, data)
    return path


class CountingResolver:
    """Resolver callable that records how often resolution ran."""

    def __init__(self, artifacts):
        self.artifacts = list(artifacts)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return list(self.artifacts)


# ============================================================================
# Artifact fixtures
# ============================================================================

@pytest.fixture
def module_core():
    return ResolvedArtifact(Path("/repo/libs/core.jar"), ModuleComponentId("com.example", "core", "1.0"))


@pytest.fixture
def project_core():
    return ResolvedArtifact(Path("/repo/sub/build/libs/core.jar"), ProjectComponentId(":sub"))


@pytest.fixture
def flat_jar():
    return ResolvedArtifact(Path("/repo/libs/flat.jar"), OpaqueComponentId("flat.jar"))


@pytest.fixture
def runtime_artifacts(module_core, project_core, flat_jar):
    return [module_core, project_core, flat_jar]


@pytest.fixture
def counting_resolver(runtime_artifacts):
    return CountingResolver(runtime_artifacts)


@pytest.fixture
def runtime(counting_resolver):
    return ResolvedConfiguration("runtimeClasspath", counting_resolver)


@pytest.fixture
def binary(tmp_path):
    return BinarySpec(
        name="playBinary",
        jar_file=tmp_path / "build/playBinary/lib/my-app.jar",
        assets_jar_file=tmp_path / "build/playBinary/lib/my-app-assets.jar",
    )


# ============================================================================
# On-disk project
# ============================================================================

DESCRIPTOR = textwrap.dedent("""\
    project:
      name: my-app
    binaries:
      - name: playBinary
        jar: build/playBinary/lib/my-app.jar
        assets_jar: build/playBinary/lib/my-app-assets.jar
    runtime:
      - file: libs/core.jar
        module: com.example:core:1.0
      - file: sub/build/libs/core.jar
        project: ":sub"
      - file: libs/flat.jar
""")


@pytest.fixture
def play_project(tmp_path) -> Path:
    """
    A project directory with a compiled binary, runtime jars, conf and README.

    Layout::

        build/playBinary/lib/my-app.jar          application classes
        build/playBinary/lib/my-app-assets.jar   public assets
        libs/core.jar                            com.example:core:1.0
        sub/build/libs/core.jar                  project :sub
        libs/flat.jar                            flat file dependency
        conf/application.conf, conf/routes, conf/logback.xml
        README
        distforge.yaml
    """
    root = tmp_path / "project"
    make_jar(root / "build/playBinary/lib/my-app.jar", {
        "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\r\nCreated-By: javac\r\n\r\n",
        "controllers/HomeController.class": b"\xca\xfe\xba\xbe",
    })
    make_jar(root / "build/playBinary/lib/my-app-assets.jar", {
        "public/main.css": "body {}",
    })
    make_jar(root / "libs/core.jar", {"com/example/Core.class": b"\xca\xfe"})
    make_jar(root / "sub/build/libs/core.jar", {"sub/Core.class": b"\xca\xfe"})
    make_jar(root / "libs/flat.jar", {"flat/Flat.class": b"\xca\xfe"})

    conf = root / "conf"
    conf.mkdir(parents=True)
    (conf / "application.conf").write_text("play.http.secret.key = changeme\n")
    (conf / "routes").write_text("GET / controllers.HomeController.index\n")
    (conf / "logback.xml").write_text("<configuration/>\n")

    (root / "README").write_text("my-app\n")
    (root / "distforge.yaml").write_text(DESCRIPTOR)
    return root


@pytest.fixture
def jar_maker():
    """The :func:`make_jar` helper, for tests that build their own jars."""
    return make_jar
