"""
distforge CLI (cli/__main__.py), driven through click's CliRunner.
"""

import pytest
from click.testing import CliRunner

from distforge.cli.__main__ import _print_error, cli
from distforge.cli.commands.build import parse_overrides
from distforge.faults import DistforgeError, MissingBinaryError, Severity


@pytest.fixture
def invoke(play_project, monkeypatch):
    for key in ("DISTFORGE_TAR_COMPRESSION", "DISTFORGE_BUILD_DIR"):
        monkeypatch.delenv(key, raising=False)
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, ["--project-dir", str(play_project), *args], obj={})

    return _invoke


# ============================================================================
# Inspection commands
# ============================================================================

class TestInspection:

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "distforge" in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("tasks", "graph", "classpath", "stage", "dist", "run"):
            assert command in result.output

    def test_tasks(self, invoke):
        result = invoke("tasks")
        assert result.exit_code == 0, result.output
        assert "distribution" in result.output
        assert "createPlayBinaryDistributionJar" in result.output
        assert "stagePlayBinaryDist" in result.output
        assert "my-app" in result.output

    def test_graph(self, invoke):
        result = invoke("graph")
        assert result.exit_code == 0, result.output
        assert "createPlayBinaryZipDist" in result.output

    def test_graph_dot(self, invoke):
        result = invoke("graph", "--dot")
        assert result.exit_code == 0
        assert '"dist" -> "createPlayBinaryZipDist";' in result.output

    def test_classpath(self, invoke):
        result = invoke("classpath", "playBinary")
        assert result.exit_code == 0, result.output
        assert "com.example-core.jar sub-core.jar flat.jar my-app-assets.jar" in result.output

    def test_classpath_lines(self, invoke):
        result = invoke("classpath", "playBinary", "--lines")
        assert result.output.split() == [
            "com.example-core.jar", "sub-core.jar", "flat.jar", "my-app-assets.jar",
        ]

    def test_classpath_unknown_distribution(self, invoke):
        result = invoke("classpath", "nope")
        assert result.exit_code == 1
        assert "No distribution named 'nope'" in result.output


# ============================================================================
# Execution commands
# ============================================================================

class TestExecution:

    def test_stage(self, invoke, play_project):
        result = invoke("stage")
        assert result.exit_code == 0, result.output
        assert (play_project / "build/stage/playBinary/lib/com.example-core.jar").is_file()
        assert not (play_project / "build/distributions").exists()

    def test_dist(self, invoke, play_project):
        result = invoke("dist")
        assert result.exit_code == 0, result.output
        assert (play_project / "build/distributions/playBinary.zip").is_file()
        assert (play_project / "build/distributions/playBinary.tar").is_file()
        assert "Executed 6 step(s)" in result.output

    def test_set_override(self, invoke, play_project):
        result = invoke("--set", "tar_compression=gzip", "dist")
        assert result.exit_code == 0, result.output
        assert (play_project / "build/distributions/playBinary.tgz").is_file()

    def test_run_named_step(self, invoke, play_project):
        result = invoke("run", "createPlayBinaryStartScripts")
        assert result.exit_code == 0, result.output
        assert (play_project / "build/scripts/playBinary/playBinary").is_file()
        assert not (play_project / "build/stage").exists()

    def test_run_verbose_announces_steps(self, invoke):
        result = invoke("--verbose", "run", "createPlayBinaryStartScripts")
        assert result.exit_code == 0, result.output
        assert "Running createPlayBinaryStartScripts" in result.output

    def test_run_unknown_step(self, invoke):
        result = invoke("run", "deploy")
        assert result.exit_code == 1
        assert "No step named 'deploy'" in result.output

    def test_execution_failure(self, invoke, play_project):
        (play_project / "build/playBinary/lib/my-app.jar").unlink()
        result = invoke("dist")
        assert result.exit_code == 1
        assert "createPlayBinaryDistributionJar" in result.output


# ============================================================================
# Errors
# ============================================================================

class TestErrors:

    def test_missing_descriptor(self, tmp_path):
        result = CliRunner().invoke(cli, ["--project-dir", str(tmp_path), "tasks"], obj={})
        assert result.exit_code == 1
        assert "Project descriptor not found" in result.output

    def test_invalid_setting(self, invoke):
        result = invoke("--set", "tar_compression=xz", "tasks")
        assert result.exit_code == 1
        assert "Unsupported tar_compression" in result.output

    def test_bad_override_syntax(self, invoke):
        result = invoke("--set", "nonsense", "tasks")
        assert result.exit_code == 2

    def test_duplicate_binary(self, play_project, invoke):
        descriptor = play_project / "distforge.yaml"
        descriptor.write_text(descriptor.read_text().replace(
            "runtime:",
            "  - name: playBinary\n    jar: a.jar\n    assets_jar: b.jar\nruntime:",
        ))
        result = invoke("tasks")
        assert result.exit_code == 1
        assert "already registered" in result.output


class TestParseOverrides:

    def test_values_are_parsed(self):
        assert parse_overrides(["bin_file_mode=0o750", "conf_excludes=routes,*.dev"]) == {
            "bin_file_mode": 0o750,
            "conf_excludes": ["routes", "*.dev"],
        }

    def test_str_settings_keep_their_text(self):
        assert parse_overrides(["build_dir=1.10", "readme=2"]) == {"build_dir": "1.10", "readme": "2"}


class TestErrorStyling:

    def test_warn_severity_prints_to_stdout(self, capsys):
        class Notice(DistforgeError):
            severity = Severity.WARN

        _print_error(Notice("heads up"))
        out, err = capsys.readouterr()
        assert "! Notice: heads up" in out
        assert err == ""

    def test_fatal_severity_prints_to_stderr(self, capsys):
        _print_error(MissingBinaryError("playBinary"), indent="    ")
        out, err = capsys.readouterr()
        assert out == ""
        assert err.startswith("    ✗ MissingBinaryError")
