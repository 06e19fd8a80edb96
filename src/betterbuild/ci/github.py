# ci/github.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

UBUNTU_LATEST = "ubuntu-latest"
GENERATED_HEADER = (
    "# Generated by betterbuild generate-ci. Edit the WORKFLOWS of the build script instead.\n"
)


@dataclass(frozen=True)
class GitHubActionsWorkflow:
    """CI trigger definition that invokes build targets on GitHub Actions."""
    name: str
    invoked_targets: Sequence[str]
    image: str = UBUNTU_LATEST
    on_push_branches: Sequence[str] = ()
    on_push_branches_ignore: Sequence[str] = ()
    on_pull_request_branches: Sequence[str] = ()
    fetch_depth: int | None = None
    import_secrets: Sequence[str] = ()
    python_version: str = "3.12"
    build_script: str = "betterbuild_build.py"

    def triggers(self) -> Dict[str, Any]:
        on: Dict[str, Any] = {}
        push: Dict[str, List[str]] = {}
        if self.on_push_branches:
            push["branches"] = list(self.on_push_branches)
        if self.on_push_branches_ignore:
            push["branches-ignore"] = list(self.on_push_branches_ignore)
        if push:
            on["push"] = push
        if self.on_pull_request_branches:
            on["pull_request"] = {"branches": list(self.on_pull_request_branches)}
        return on

    def to_dict(self) -> Dict[str, Any]:
        checkout: Dict[str, Any] = {"uses": "actions/checkout@v4"}
        if self.fetch_depth is not None:
            checkout["with"] = {"fetch-depth": self.fetch_depth}

        run_step: Dict[str, Any] = {
            "name": f"Run '{' '.join(self.invoked_targets)}'",
            "run": f"betterbuild run {' '.join(self.invoked_targets)} --build {self.build_script}",
        }
        if self.import_secrets:
            run_step["env"] = {
                f"BETTERBUILD_{_env_name(s)}": f"${{{{ secrets.{_env_name(s)} }}}}"
                for s in self.import_secrets
            }

        return {
            "name": self.name,
            "on": self.triggers(),
            "jobs": {
                _job_id(self.image): {
                    "name": self.image,
                    "runs-on": self.image,
                    "steps": [
                        checkout,
                        {"uses": "actions/setup-python@v5", "with": {"python-version": self.python_version}},
                        {"name": "Install betterbuild", "run": "pip install betterbuild"},
                        run_step,
                    ],
                }
            },
        }

    def render(self) -> str:
        return GENERATED_HEADER + yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)


def _env_name(name: str) -> str:
    return name.strip().upper().replace("-", "_").replace(".", "_")


def _job_id(image: str) -> str:
    return image.replace(".", "_").replace("-", "_")


def write_workflows(root: str | Path, workflows: Sequence[GitHubActionsWorkflow]) -> List[Path]:
    """Write .github/workflows/<name>.yml for each workflow, overwriting."""
    out_dir = Path(root) / ".github" / "workflows"
    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for wf in workflows:
        path = out_dir / f"{wf.name}.yml"
        path.write_text(wf.render(), encoding="utf-8")
        written.append(path)
    return written
