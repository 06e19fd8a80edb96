from __future__ import annotations

import json
import textwrap

import pytest
from click.testing import CliRunner

from betterbuild.cli import cli

BUILD = """
from pathlib import Path

from betterbuild import DependencyBehavior, target
from betterbuild.ci.github import GitHubActionsWorkflow

DEFAULT = "Compile"

WORKFLOWS = [GitHubActionsWorkflow(name="continuous", invoked_targets=["Test"], fetch_depth=0)]


def mark(name):
    def action(ctx):
        with open(Path(ctx.root) / "ran.txt", "a") as f:
            f.write(name + "\\n")
    return action


def echo(ctx):
    mark(ctx.parameters.get("who", "nobody"))(ctx)


def explode(ctx):
    raise RuntimeError("tests failed")


def targets(ctx):
    return [
        target("Print", mark("Print"), before=["Clean"], description="Show facts"),
        target("Clean", mark("Clean")),
        target("Compile", mark("Compile"), depends_on=["Clean", "Print"]),
        target("Test", explode, depends_on=["Compile"]),
        target("Echo", echo),
        target("Publish", mark("Publish"), depends_on=["Compile"],
               requires=[lambda c: False], when_skipped=DependencyBehavior.SKIP),
    ]
"""

CYCLIC = """
from betterbuild import target

TARGETS = [target("A", depends_on=["B"]), target("B", depends_on=["A"])]
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "betterbuild_build.py").write_text(textwrap.dedent(BUILD))
    return tmp_path


def ran(project):
    p = project / "ran.txt"
    return p.read_text().split() if p.exists() else []


def test_run_default_target(project):
    result = CliRunner().invoke(cli, ["run"])
    assert result.exit_code == 0, result.output
    assert ran(project) == ["Print", "Clean", "Compile"]
    assert "BUILD SUCCEEDED" in result.output


def test_run_skipped_target_still_succeeds(project):
    result = CliRunner().invoke(cli, ["run", "Publish"])
    assert result.exit_code == 0, result.output
    assert "Publish" not in ran(project)
    assert "Publish: SKIPPED" in result.output


def test_failed_action_sets_exit_code(project):
    result = CliRunner().invoke(cli, ["run", "Test"])
    assert result.exit_code == 1
    assert "TARGET FAILED: Test" in result.output
    assert "BUILD FAILED" in result.output


def test_json_report(project):
    report = project / "report.json"
    result = CliRunner().invoke(cli, ["run", "Compile", "--json-report", str(report)])
    assert result.exit_code == 0, result.output
    data = json.loads(report.read_text())
    assert data["order"] == ["Print", "Clean", "Compile"]
    assert data["success"] is True


def test_configuration_option(project):
    result = CliRunner().invoke(cli, ["run", "Compile", "--configuration", "release"])
    assert result.exit_code == 0, result.output
    assert "Configuration: Release" in result.output


def test_param_reaches_targets(project):
    result = CliRunner().invoke(cli, ["run", "Echo", "--param", "who=alice"])
    assert result.exit_code == 0, result.output
    assert ran(project) == ["alice"]


def test_malformed_param(project):
    result = CliRunner().invoke(cli, ["run", "Echo", "--param", "oops"])
    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output


def test_cycle_runs_nothing(project):
    (project / "cyclic_build.py").write_text(textwrap.dedent(CYCLIC))
    result = CliRunner().invoke(cli, ["run", "A", "--build", "cyclic_build.py"])
    assert result.exit_code == 1
    assert "Invalid target graph" in result.output
    assert "TARGET STARTED" not in result.output


def test_unknown_goal(project):
    result = CliRunner().invoke(cli, ["run", "Deploy"])
    assert result.exit_code == 1
    assert "Cannot schedule targets" in result.output
    assert ran(project) == []


def test_plan(project):
    result = CliRunner().invoke(cli, ["plan", "Test"])
    assert result.exit_code == 0, result.output
    assert "1. Print" in result.output
    assert "4. Test" in result.output
    assert ran(project) == []


def test_list(project):
    result = CliRunner().invoke(cli, ["list"])
    assert result.exit_code == 0, result.output
    assert "Compile (default)" in result.output
    assert "Show facts" in result.output
    assert "depends on: Clean, Print" in result.output


def test_generate_ci(project):
    result = CliRunner().invoke(cli, ["generate-ci"])
    assert result.exit_code == 0, result.output
    assert (project / ".github" / "workflows" / "continuous.yml").exists()


def test_missing_build_script(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["run"])
    assert result.exit_code == 1
    assert "No build script found" in result.output


def test_default_build_script_wins_over_others(project):
    (project / "other_build.py").write_text(textwrap.dedent(CYCLIC))
    result = CliRunner().invoke(cli, ["run"])
    assert result.exit_code == 0, result.output
    assert ran(project) == ["Print", "Clean", "Compile"]


def test_single_named_build_script_is_found(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ci_build.py").write_text(textwrap.dedent(CYCLIC))
    result = CliRunner().invoke(cli, ["list"])
    assert result.exit_code == 0, result.output


def test_multiple_build_scripts(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ci_build.py").write_text(textwrap.dedent(CYCLIC))
    (tmp_path / "other_build.py").write_text(textwrap.dedent(CYCLIC))
    result = CliRunner().invoke(cli, ["run"])
    assert result.exit_code == 1
    assert "Multiple build scripts found" in result.output
    assert "ci_build.py" in result.output


def test_build_option_accepts_name_without_suffix(project):
    (project / "cyclic_build.py").write_text(textwrap.dedent(CYCLIC))
    result = CliRunner().invoke(cli, ["plan", "A", "--build", "cyclic_build"])
    assert result.exit_code == 1
    assert "Invalid target graph" in result.output
