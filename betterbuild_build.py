# betterbuild_build.py
# Build for a .NET CLI tool: clean, restore, compile, test, pack, publish, push.
from __future__ import annotations

from betterbuild import DependencyBehavior, declare, requirement, target
from betterbuild.artifacts import create_or_clean_directory, zip_to
from betterbuild.ci.github import GitHubActionsWorkflow
from betterbuild.toolchain.dotnet import DotNet, report_generator
from betterbuild.toolchain.project import find_projects, project_has_capability
from betterbuild.ui.console import get_console

DEFAULT = "Compile"
PACKAGE_ID = "commitizen.NET"

WORKFLOWS = [
    GitHubActionsWorkflow(
        name="continuous",
        on_push_branches_ignore=["main", "master"],
        invoked_targets=["Test"],
        fetch_depth=0,
    ),
    GitHubActionsWorkflow(
        name="merge",
        on_pull_request_branches=["main"],
        invoked_targets=["Publish", "Pack"],
        fetch_depth=0,
    ),
]


def is_release_branch(ctx) -> bool:
    repo = ctx.repository
    return repo.is_on_main_or_master_branch() or repo.is_on_release_branch()


def is_server_release_build(ctx) -> bool:
    return not ctx.is_local_build and is_release_branch(ctx)


def packable_projects(ctx):
    return [p for p in find_projects(ctx.root) if project_has_capability(p, "PackAsTool")]


def solution_contains_packable_project(ctx) -> bool:
    return bool(packable_projects(ctx))


def targets(ctx):
    log = get_console()
    dotnet = DotNet(root=ctx.root)

    def print_info(ctx):
        repo = ctx.repository
        log.print_info(f"Version = {ctx.version}")
        log.print_info(f"Commit = {repo.commit}")
        log.print_info(f"Branch = {repo.branch}")
        log.print_info(f"Tags = {repo.tags}")
        log.print_info(f"main branch = {repo.is_on_main_branch()}")
        log.print_info(f"main/master branch = {repo.is_on_main_or_master_branch()}")
        log.print_info(f"release/* branch = {repo.is_on_release_branch()}")
        log.print_info(f"hotfix/* branch = {repo.is_on_hotfix_branch()}")
        log.print_info(f"feature/* branch = {repo.is_on_feature_branch()}")
        log.print_info(f"Https URL = {repo.https_url}")
        log.print_info(f"SSH URL = {repo.ssh_url}")

    def clean(ctx):
        create_or_clean_directory(ctx.artifacts_dir)

    def restore(ctx):
        dotnet.restore(ctx.root)

    def compile_(ctx):
        log.print_info(f"Building version {ctx.version}")
        dotnet.build(ctx.root, ctx.configuration)

    def test(ctx):
        log.print_info(f"RootDir: {ctx.root}")
        log.print_info(f"TestDir: {ctx.test_dir}")
        create_or_clean_directory(ctx.results_dir)
        coverage = dotnet.test(
            ctx.root,
            ctx.configuration,
            ctx.results_dir,
            run_settings={
                "DataCollectionRunSettings.DataCollectors.DataCollector.Configuration.ExcludeByAttribute":
                    "Obsolete,GeneratedCodeAttribute,CompilerGeneratedAttribute",
            },
        )
        if coverage is None:
            return None
        return [coverage, report_generator([coverage], ctx.results_dir / "coveragereport")]

    def pack(ctx):
        out = ctx.pack_dir / ctx.version
        packages = []
        for project in packable_projects(ctx):
            packages.extend(dotnet.pack(project, ctx.configuration, out))
        return packages

    def push(ctx):
        package = ctx.pack_dir / ctx.version / f"{PACKAGE_ID}.{ctx.version}.nupkg"
        dotnet.push(package, ctx.api_key, ctx.feed_url)
        return package

    def publish(ctx):
        create_or_clean_directory(ctx.publish_dir)
        dotnet.publish(ctx.source_dir / "Cli", ctx.configuration, ctx.publish_dir)
        return zip_to(ctx.publish_dir, ctx.pack_dir / ctx.version / f"{ctx.root.name}.zip")

    server_release = requirement(is_server_release_build, "server build on main/master or release/*")

    return declare(
        target("Print", print_info, before=["Clean"], description="Print repository and version facts"),
        target("Clean", clean, description="Recreate the artifacts directory"),
        target("Restore", restore, after=["Clean"], description="Restore packages"),
        target(
            "Compile",
            compile_,
            depends_on=["Clean", "Restore", "Print"],
            after=["Print"],
            description="Build the solution",
        ),
        target(
            "Test",
            test,
            depends_on=["Compile"],
            before=["Publish", "Pack"],
            description="Run tests with coverage",
        ),
        target(
            "Pack",
            pack,
            depends_on=["Compile"],
            after=["Test"],
            only_when=solution_contains_packable_project,
            requires=[server_release],
            when_skipped=DependencyBehavior.SKIP,
            description="Pack projects marked PackAsTool",
        ),
        target("Push", push, description="Push the package to the feed"),
        target(
            "Publish",
            publish,
            depends_on=["Compile"],
            requires=[server_release],
            when_skipped=DependencyBehavior.SKIP,
            produces=[ctx.pack_dir],
            description="Publish the CLI and zip it",
        ),
    )
