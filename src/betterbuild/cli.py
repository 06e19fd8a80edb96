# cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from betterbuild.ci.github import write_workflows
from betterbuild.context import BuildContext, Configuration
from betterbuild.dag import GraphError, SchedulingError
from betterbuild.runner import BuildScript, execute, load_build, plan
from betterbuild.ui.console import Console, get_console, set_console

DEFAULT_BUILD_SCRIPT = "betterbuild_build.py"


def discover_build(build_arg: str | None, directory: Path = Path(".")) -> Path:
    """
    Resolve the build script: an explicit --build path (".py" optional),
    else betterbuild_build.py, else the single *_build.py in `directory`.

    Exits with status 1 when nothing or more than one candidate is found.
    """
    console = get_console()

    if build_arg:
        candidates = [Path(build_arg), Path(f"{build_arg}.py")]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        console.print_error(
            "Build script not found",
            f"No file at {build_arg}",
            suggestion="Pass the path of a python build script:\n  betterbuild run --build ci_build.py",
        )
        sys.exit(1)

    found = sorted(directory.glob("*_build.py"))
    default = directory / DEFAULT_BUILD_SCRIPT
    if default in found:
        return default
    if len(found) == 1:
        return found[0]

    if not found:
        console.print_error(
            "No build script found",
            f"{directory.resolve()} has no {DEFAULT_BUILD_SCRIPT} or *_build.py file.",
            suggestion=f"Add {DEFAULT_BUILD_SCRIPT} defining targets(ctx) or TARGETS.",
        )
    else:
        console.print_error(
            "Multiple build scripts found",
            "Pick one with --build:",
            details=[f"  {p.name}" for p in found],
        )
    sys.exit(1)


def _parse_params(params) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--param")
        parsed[key.strip()] = value
    return parsed


def _build_context(root, configuration, api_key=None, feed_url=None, params=()) -> BuildContext:
    return BuildContext.from_env(
        root=root,
        configuration=Configuration.parse(configuration) if configuration else None,
        api_key=api_key,
        feed_url=feed_url,
        parameters=_parse_params(params) or None,
    )


def _load(ctx, build, build_ctx: BuildContext) -> BuildScript:
    console = get_console()
    build_path = discover_build(build)
    try:
        return load_build(build_path, build_ctx)
    except Exception as e:
        console.print_error(
            "Failed to load build script",
            f"Could not load targets from {build_path}",
            details=[str(e)],
        )
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
        sys.exit(1)


def _goals(goals: tuple[str, ...], script: BuildScript) -> list[str]:
    if goals:
        return list(goals)
    if script.default:
        return [script.default]
    get_console().print_error(
        "No target requested",
        f"{script.path.name} does not define DEFAULT and no target was given.",
        suggestion="Name the targets to run:\n  betterbuild run Compile",
    )
    sys.exit(1)


def _plan_or_exit(script: BuildScript, goals: list[str]):
    console = get_console()
    try:
        return plan(script.targets, goals)
    except GraphError as e:
        console.print_error("Invalid target graph", str(e), suggestion="Nothing was executed.")
    except SchedulingError as e:
        console.print_error("Cannot schedule targets", str(e), suggestion="Nothing was executed.")
    sys.exit(1)


build_option = click.option(
    "--build",
    default=None,
    help=f"Build script path (defaults to {DEFAULT_BUILD_SCRIPT} if present)",
)
root_option = click.option(
    "--root",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Repository root directory",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """BetterBuild: declarative build targets with dependency-ordered execution."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("targets", nargs=-1)
@build_option
@root_option
@click.option(
    "--configuration",
    default=None,
    type=click.Choice([c.value for c in Configuration], case_sensitive=False),
    envvar="BETTERBUILD_CONFIGURATION",
    help="Configuration to build - Default is 'Debug' (local) or 'Release' (server)",
)
@click.option("--api-key", default=None, envvar="BETTERBUILD_API_KEY", help="Package feed API key (secret)")
@click.option("--feed-url", default=None, envvar="BETTERBUILD_FEED_URL", help="Package feed URL")
@click.option("--param", "params", multiple=True, metavar="KEY=VALUE", help="Extra parameter passed to targets (repeatable)")
@click.option("--json-report", default=None, type=click.Path(dir_okay=False), help="Write the run result as JSON")
@click.pass_context
def run(ctx, targets, build, root, configuration, api_key, feed_url, params, json_report):
    """Run TARGETS (or the build script's default target)."""
    console = get_console()
    build_ctx = _build_context(root, configuration, api_key, feed_url, params)
    script = _load(ctx, build, build_ctx)
    goals = _goals(targets, script)
    graph, order = _plan_or_exit(script, goals)

    try:
        console.print_run_started(
            build=script.path.name,
            goals=goals,
            order=order,
            configuration=str(build_ctx.configuration),
        )
        result = execute(graph, order, build_ctx, goals=goals, console=console)
        console.print_results(result)

        if json_report:
            Path(json_report).write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")

        sys.exit(result.exit_code)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command(name="plan")
@click.argument("targets", nargs=-1)
@build_option
@root_option
@click.pass_context
def plan_cmd(ctx, targets, build, root):
    """Print the execution order for TARGETS without running anything."""
    console = get_console()
    build_ctx = _build_context(root, None)
    script = _load(ctx, build, build_ctx)
    goals = _goals(targets, script)
    _graph, order = _plan_or_exit(script, goals)
    console.print_header(f"Plan for {', '.join(goals)}")
    console.print_plan(order)


@cli.command(name="list")
@build_option
@root_option
@click.pass_context
def list_cmd(ctx, build, root):
    """List the targets declared by the build script."""
    console = get_console()
    script = _load(ctx, build, _build_context(root, None))
    rows = []
    for t in script.targets:
        relations = []
        for label, names in (("depends on", t.depends_on), ("before", t.before), ("after", t.after)):
            if names:
                relations.append(f"{label}: {', '.join(names)}")
        name = f"{t.name} (default)" if t.name == script.default else t.name
        rows.append((name, t.description or "", "; ".join(relations)))
    console.print_header(f"Targets in {script.path.name}")
    console.print_targets(rows)


@cli.command(name="generate-ci")
@build_option
@root_option
@click.pass_context
def generate_ci(ctx, build, root):
    """Write GitHub Actions workflows declared in the build script's WORKFLOWS."""
    console = get_console()
    build_ctx = _build_context(root, None)
    script = _load(ctx, build, build_ctx)
    if not script.workflows:
        console.print_error(
            "No workflows declared",
            f"{script.path.name} does not define WORKFLOWS.",
            suggestion="Declare WORKFLOWS = [GitHubActionsWorkflow(...)] in the build script.",
        )
        sys.exit(1)
    for path in write_workflows(build_ctx.root, script.workflows):
        console.print_info(f"Wrote {path}")


if __name__ == "__main__":
    cli()
