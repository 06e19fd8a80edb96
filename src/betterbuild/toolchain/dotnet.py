# toolchain/dotnet.py
from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..artifacts import find_files
from ..ui.console import get_console


TOOL_HINTS = {
    "dotnet": "Install the .NET SDK or fix PATH (dotnet).",
    "reportgenerator": "Install ReportGenerator (dotnet tool install -g dotnet-reportgenerator-globaltool).",
    "git": "Install Git or fix PATH.",
}

COVERAGE_REPORT = "coverage.cobertura.xml"


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class ToolFailure(Exception):
    tool: str
    arguments: List[str]
    exit_code: int
    output: str = ""
    hint: str | None = None

    def __str__(self) -> str:
        line = f"{self.tool} {' '.join(self.arguments)} failed (exit={self.exit_code})"
        if self.hint:
            line += f"\nHint: {self.hint}"
        if self.output:
            line += f"\n{self.output}"
        return line


# ----------------------------------------------------------------------
# Execution primitive
# ----------------------------------------------------------------------

def run_tool(
    tool: str,
    args: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
    secrets: Sequence[str] = (),
) -> str:
    """
    Run a command-line tool synchronously and return its stdout.

    `secrets` are masked in anything printed or raised.
    """
    def mask(values: Sequence[str]) -> List[str]:
        return ["***" if v in secrets else v for v in values]

    get_console().print_debug(f"$ {tool} {' '.join(mask(args))}")

    full_env = os.environ.copy()
    full_env.update(env or {})
    try:
        proc = subprocess.run(
            [tool, *args],
            cwd=str(cwd) if cwd else None,
            env=full_env,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError:
        raise ToolFailure(
            tool=tool,
            arguments=mask(args),
            exit_code=127,
            hint=TOOL_HINTS.get(tool, f"Install {tool} or fix PATH."),
        )

    if proc.returncode != 0:
        raise ToolFailure(
            tool=tool,
            arguments=mask(args),
            exit_code=proc.returncode,
            output=(proc.stdout[-4000:] + proc.stderr[-4000:]).strip(),
        )
    return proc.stdout


# ----------------------------------------------------------------------
# dotnet CLI
# ----------------------------------------------------------------------

@dataclass
class DotNet:
    """Thin wrapper over the dotnet CLI. Every call blocks until the tool exits."""
    root: Path
    executable: str = "dotnet"
    env: Dict[str, str] = field(default_factory=dict)

    def _run(self, *args: str, secrets: Sequence[str] = ()) -> str:
        return run_tool(self.executable, list(args), cwd=self.root, env=self.env, secrets=secrets)

    def restore(self, project: str | Path, *, force: bool = True) -> None:
        args = ["restore", str(project)]
        if force:
            args.append("--force")
        self._run(*args)

    def build(self, project: str | Path, configuration: str, *, no_restore: bool = True) -> None:
        args = ["build", str(project), "--nologo", "--configuration", str(configuration)]
        if no_restore:
            args.append("--no-restore")
        self._run(*args)

    def test(
        self,
        project: str | Path,
        configuration: str,
        results_dir: str | Path,
        *,
        data_collector: str | None = "XPlat Code Coverage",
        run_settings: Optional[Dict[str, str]] = None,
    ) -> Optional[Path]:
        """Run tests; returns the coverage report if one was produced."""
        args = [
            "test", str(project), "--nologo", "--no-build", "--no-restore",
            "--configuration", str(configuration),
            "--results-directory", str(results_dir),
        ]
        if data_collector:
            args += ["--collect", data_collector]
        if run_settings:
            args.append("--")
            args += [f"{k}={v}" for k, v in run_settings.items()]
        self._run(*args)

        reports = find_files(results_dir, COVERAGE_REPORT, depth=2)
        return reports[0] if reports else None

    def pack(self, project: str | Path, configuration: str, output_dir: str | Path) -> List[Path]:
        self._run(
            "pack", str(project), "--nologo", "--no-build", "--no-restore",
            "--configuration", str(configuration), "--output", str(output_dir),
        )
        return find_files(output_dir, "*.nupkg", depth=1)

    def publish(self, project: str | Path, configuration: str, output_dir: str | Path) -> Path:
        self._run(
            "publish", str(project), "--nologo", "--no-build", "--no-restore",
            "--configuration", str(configuration), "--output", str(output_dir),
        )
        return Path(output_dir)

    def push(self, package: str | Path, api_key: str, source: str) -> None:
        if not api_key:
            raise ValueError("An API key is required to push packages")
        self._run(
            "nuget", "push", str(package), "--api-key", api_key, "--source", source,
            secrets=[api_key],
        )


def report_generator(reports: Sequence[str | Path], target_dir: str | Path, *, tool: str = "reportgenerator") -> Path:
    """Render an HTML coverage report from cobertura files."""
    run_tool(tool, [
        "-reports:" + ";".join(str(r) for r in reports),
        f"-targetdir:{target_dir}",
    ])
    return Path(target_dir)
