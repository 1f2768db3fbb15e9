"""
Distribution pipeline (tasks/synthesizer.py).

Tests step naming and wiring, lifecycle aggregates, per-distribution
failure isolation and archive naming.
"""

from pathlib import Path

import pytest

from distforge.artifacts import ManifestClasspath, ResolvedConfiguration
from distforge.config import DistributionSettings
from distforge.distribution import BinarySpec, DistributionRegistry
from distforge.faults import ConfigurationError, MissingBinaryError
from distforge.tasks import (
    CLASSPATH_ATTRIBUTE,
    DISTRIBUTION_GROUP,
    DistributionPipeline,
    DistributionState,
    LifecycleStep,
    TaskGraph,
)


@pytest.fixture
def pipeline(tmp_path, runtime):
    return DistributionPipeline(tmp_path, runtime)


@pytest.fixture
def registry(binary):
    registry = DistributionRegistry()
    registry.register_binaries([binary])
    return registry


PLAY_STEPS = [
    "createPlayBinaryDistributionJar",
    "createPlayBinaryStartScripts",
    "stagePlayBinaryDist",
    "createPlayBinaryZipDist",
    "createPlayBinaryTarDist",
]


# ============================================================================
# Step creation
# ============================================================================

class TestSynthesis:

    def test_step_names(self, pipeline, registry):
        result = pipeline.synthesize(registry)
        assert result.ok
        assert result.graph.names() == ["stage", "dist"] + PLAY_STEPS

    def test_all_steps_grouped(self, pipeline, registry):
        graph = pipeline.synthesize(registry).graph
        assert {s.group for s in graph} == {DISTRIBUTION_GROUP}
        assert all(s.description for s in graph)

    def test_wiring(self, pipeline, registry):
        result = pipeline.synthesize(registry)
        steps = result.distributions["playBinary"]

        assert steps.state is DistributionState.ARCHIVED
        assert steps.start_scripts.depends_on == [steps.jar]
        assert steps.stage.depends_on == [steps.jar, steps.start_scripts]
        assert steps.zip.depends_on == [steps.stage]
        assert steps.tar.depends_on == [steps.stage]
        assert result.stage.depends_on == [steps.stage]
        assert result.dist.depends_on == [steps.zip, steps.tar]

    def test_execution_order_for_dist(self, pipeline, registry):
        graph = pipeline.synthesize(registry).graph
        order = [s.name for s in graph.execution_order(["dist"])]
        assert order[-1] == "dist"
        assert order.index("createPlayBinaryDistributionJar") < order.index("stagePlayBinaryDist")
        assert order.index("stagePlayBinaryDist") < order.index("createPlayBinaryZipDist")
        assert "stage" not in order

    def test_bundle_jar(self, pipeline, registry, binary):
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        jar = steps.jar
        assert jar.archive_name == "my-app.jar"
        assert jar.sources == [binary.jar_file]
        assert isinstance(jar.manifest_attributes[CLASSPATH_ATTRIBUTE], ManifestClasspath)

    def test_manifest_classpath_uses_shared_renamer(self, pipeline, registry, counting_resolver):
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        classpath = steps.jar.manifest_attributes[CLASSPATH_ATTRIBUTE]
        assert classpath.renamer is steps.renamer
        assert str(classpath) == "com.example-core.jar sub-core.jar flat.jar my-app-assets.jar"
        assert counting_resolver.calls == 1

    def test_synthesis_does_not_resolve(self, pipeline, registry, counting_resolver):
        pipeline.synthesize(registry)
        assert counting_resolver.calls == 0

    def test_start_scripts(self, pipeline, registry, tmp_path):
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        scripts = steps.start_scripts
        assert scripts.application_name == "playBinary"
        assert scripts.main_class == "play.core.server.NettyServer"
        assert scripts.classpath == [steps.jar]
        assert scripts.output_dir == tmp_path / "build/scripts/playBinary"

    def test_build_steps_precede_jar(self, pipeline, tmp_path):
        compile_step = LifecycleStep("compilePlayBinary")
        binary = BinarySpec("playBinary", tmp_path / "a.jar", tmp_path / "b.jar", build_steps=(compile_step,))
        registry = DistributionRegistry()
        registry.register_binaries([binary])
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        assert steps.jar.depends_on == [compile_step]

    def test_content_tree(self, pipeline, registry):
        pipeline.synthesize(registry)
        contents = registry.get("playBinary").contents
        assert [str(c.destination) for c in contents.children] == ["lib", "bin", "conf"]
        assert contents.children_into("bin")[0].file_mode == 0o755
        assert contents.children_into("conf")[0].excludes == ["routes"]
        assert contents.sources == ["README"]
        assert contents.is_sealed

    def test_stage_and_archive_locations(self, pipeline, tmp_path, binary):
        registry = DistributionRegistry()
        registry.register("playBinary", binary, base_name="my-app-1.0")
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        assert steps.stage.destination_dir == tmp_path / "build/stage/my-app-1.0"
        assert steps.zip.archive_path == tmp_path / "build/distributions/my-app-1.0.zip"
        assert steps.tar.archive_path == tmp_path / "build/distributions/my-app-1.0.tar"

    def test_tar_compression_setting(self, tmp_path, runtime, registry):
        pipeline = DistributionPipeline(tmp_path, runtime, DistributionSettings(tar_compression="gzip"))
        steps = pipeline.synthesize(registry).distributions["playBinary"]
        assert steps.tar.archive_name == "playBinary.tgz"

    def test_custom_main_class(self, pipeline, tmp_path):
        binary = BinarySpec("api", tmp_path / "a.jar", tmp_path / "b.jar", main_class="com.example.Main")
        registry = DistributionRegistry()
        registry.register_binaries([binary])
        steps = pipeline.synthesize(registry).distributions["api"]
        assert steps.start_scripts.main_class == "com.example.Main"

    def test_per_binary_runtime(self, pipeline, tmp_path, module_core):
        own = ResolvedConfiguration.of("apiRuntime", [module_core])
        binary = BinarySpec("api", tmp_path / "a.jar", tmp_path / "b.jar", runtime=own)
        registry = DistributionRegistry()
        registry.register_binaries([binary])
        steps = pipeline.synthesize(registry).distributions["api"]
        assert steps.renamer.configuration is own

    def test_renamer_shared_across_distributions(self, pipeline, tmp_path):
        registry = DistributionRegistry()
        registry.register_binaries([
            BinarySpec("a", tmp_path / "a.jar", tmp_path / "a-assets.jar"),
            BinarySpec("b", tmp_path / "b.jar", tmp_path / "b-assets.jar"),
        ])
        result = pipeline.synthesize(registry)
        assert result.distributions["a"].renamer is result.distributions["b"].renamer

    def test_existing_graph_is_extended(self, pipeline, registry):
        graph = TaskGraph()
        graph.add(LifecycleStep("compile"))
        result = pipeline.synthesize(registry, graph)
        assert result.graph is graph
        assert graph.names()[0] == "compile"


# ============================================================================
# Failure isolation
# ============================================================================

class TestSynthesisFailures:

    def test_missing_binary_is_isolated(self, pipeline, binary):
        registry = DistributionRegistry()
        registry.register("orphan", None)
        registry.register_binaries([binary])

        result = pipeline.synthesize(registry)

        assert not result.ok
        assert isinstance(result.failures["orphan"], MissingBinaryError)
        assert "playBinary" in result.distributions
        assert not any("Orphan" in name for name in result.graph.names())
        assert result.dist.depends_on == [
            result.distributions["playBinary"].zip,
            result.distributions["playBinary"].tar,
        ]

    def test_raise_for_failures(self, pipeline):
        registry = DistributionRegistry()
        registry.register("orphan", None)
        result = pipeline.synthesize(registry)
        with pytest.raises(MissingBinaryError, match="orphan"):
            result.raise_for_failures()

    def test_reserved_subtree_rolls_back_partial_steps(self, pipeline, registry):
        registry.get("playBinary").contents.add_child().into("lib")

        result = pipeline.synthesize(registry)

        error = result.failures["playBinary"]
        assert isinstance(error, ConfigurationError)
        assert error.details["subtree"] == "lib"
        assert result.graph.names() == ["stage", "dist"]

    def test_registration_closed_after_synthesis(self, pipeline, registry, binary):
        pipeline.synthesize(registry)
        with pytest.raises(ConfigurationError):
            registry.register("late", binary)


# ============================================================================
# Archive naming
# ============================================================================

class TestArchiveNaming:

    def test_customized_archive_names_are_reset(self, pipeline, registry):
        result = pipeline.synthesize(registry)
        steps = result.distributions["playBinary"]
        assert steps.zip.archive_name == "playBinary.zip"
        assert steps.tar.archive_name == "playBinary.tar"

    def test_finalizer_runs_after_version_is_set(self, tmp_path, runtime, binary):
        class VersionedPipeline(DistributionPipeline):
            def plan_archives(self, graph, steps, dist):
                super().plan_archives(graph, steps, dist)
                steps.zip.version = "1.0"
                steps.tar.classifier = "bin"

        registry = DistributionRegistry()
        registry.register_binaries([binary])
        steps = VersionedPipeline(tmp_path, runtime).synthesize(registry).distributions["playBinary"]
        assert steps.zip.archive_name == "playBinary.zip"
        assert steps.tar.archive_name == "playBinary.tar"
