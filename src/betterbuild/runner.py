# runner.py
from __future__ import annotations

import runpy
from collections.abc import Iterable as IterableABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .conditions import Verdict, check
from .dag import Graph, build_graph, resolve_order
from .model import Decision, DependencyBehavior, RunResult, Target, TargetResult, TargetStatus
from .ui.console import Console, get_console

Evaluator = Callable[[Target, Any], Union[Verdict, Decision]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ----------------------------------------------------------------------
# Build script loading (local file)
# ----------------------------------------------------------------------

@dataclass
class BuildScript:
    path: Path
    targets: List[Target]
    default: Optional[str] = None
    workflows: list = field(default_factory=list)


def load_build(path: str | Path, ctx: Any = None) -> BuildScript:
    """
    Load targets from a python build script.

    The file must define either:
      - targets(ctx) -> List[Target]
      - TARGETS = [Target, ...]

    Optional:
      - DEFAULT = "<target name>"   goal used when none is requested
      - WORKFLOWS = [GitHubActionsWorkflow, ...]
    """
    script = Path(path).expanduser().resolve()
    if not script.exists():
        raise FileNotFoundError(f"Build script not found: {script}")
    if script.suffix != ".py":
        raise ValueError(f"Build script must be a .py file, got: {script.name}")

    module_name = f"betterbuild_script_{script.stem}"
    globals_dict = runpy.run_path(str(script), run_name=module_name)

    targets = None
    if "targets" in globals_dict and callable(globals_dict["targets"]):
        targets = globals_dict["targets"](ctx)
    elif "TARGETS" in globals_dict:
        targets = globals_dict["TARGETS"]

    if not isinstance(targets, list) or not all(isinstance(t, Target) for t in targets):
        raise TypeError(
            "Build script must return/define a List[Target]. "
            "Define targets(ctx) -> List[Target] or TARGETS = [Target, ...]."
        )

    default = globals_dict.get("DEFAULT")
    if default is not None and not isinstance(default, str):
        raise TypeError(f"DEFAULT must be a target name, got: {default!r}")

    return BuildScript(
        path=script,
        targets=targets,
        default=default,
        workflows=list(globals_dict.get("WORKFLOWS", []) or []),
    )


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

def _collect_artifacts(returned: Any, target: Target) -> List[Path]:
    found: List[Path] = []
    if isinstance(returned, (str, Path)):
        found.append(Path(returned))
    elif isinstance(returned, IterableABC) and not isinstance(returned, (bytes, dict)):
        found.extend(Path(p) for p in returned if isinstance(p, (str, Path)))
    for p in target.produces:
        p = Path(p)
        if p.exists() and p not in found:
            found.append(p)
    return found


def execute(
    graph: Graph,
    order: Sequence[str],
    ctx: Any = None,
    *,
    evaluator: Evaluator = check,
    goals: Sequence[str] = (),
    console: Optional[Console] = None,
) -> RunResult:
    """
    Run targets one at a time in the resolved order.

    - SKIP: the target is skipped; with when_skipped=SKIP every target that
      depends on it (transitively) is skipped too, without evaluating it.
    - ABORT: nothing else runs; the rest is NOT_REACHED.
    - action raises: FAILED; the run halts unless proceed_after_failure.
    - a guard raises: FAILED; the run halts.
    """
    console = console or get_console()
    results: Dict[str, TargetResult] = {name: TargetResult(name) for name in order}
    forced: Dict[str, str] = {}
    started = _now()
    halted_by: Optional[str] = None

    for name in order:
        target = graph[name]
        result = results[name]

        if name in forced:
            result.status = TargetStatus.SKIPPED
            result.reason = forced[name]
            console.print_target_skipped(name, result.reason)
            continue

        try:
            verdict = evaluator(target, ctx)
        except Exception as e:
            result.status = TargetStatus.FAILED
            result.error = f"{type(e).__name__}: {e}"
            result.reason = "condition raised"
            console.print_target_failure(name, result.error, proceeding=False)
            halted_by = name
            break
        if isinstance(verdict, Decision):
            verdict = Verdict(verdict)

        if verdict.decision is Decision.SKIP:
            result.status = TargetStatus.SKIPPED
            result.reason = verdict.reason or "skipped"
            console.print_target_skipped(name, result.reason)
            if target.when_skipped is DependencyBehavior.SKIP:
                for dependent in graph.transitive_dependents(name):
                    if dependent in results:
                        forced.setdefault(dependent, f"dependency '{name}' was skipped")
            continue

        if verdict.decision is Decision.ABORT:
            result.reason = verdict.reason or "aborted"
            console.print_run_aborted(name, result.reason)
            halted_by = name
            break

        console.print_target_start(name)
        result.started_at = _now()
        try:
            returned = target.action(ctx) if target.action is not None else None
        except Exception as e:
            result.finished_at = _now()
            result.status = TargetStatus.FAILED
            result.error = f"{type(e).__name__}: {e}"
            result.reason = "action failed"
            console.print_target_failure(name, result.error, proceeding=target.proceed_after_failure)
            if not target.proceed_after_failure:
                halted_by = name
                break
            continue

        result.finished_at = _now()
        result.status = TargetStatus.SUCCEEDED
        result.artifacts = _collect_artifacts(returned, target)
        console.print_target_success(name, result.duration)

    if halted_by is not None:
        for r in results.values():
            if r.status is TargetStatus.NOT_REACHED and r.name != halted_by:
                r.reason = f"run halted by '{halted_by}'"

    return RunResult(
        goals=tuple(goals),
        order=tuple(order),
        targets=MappingProxyType(results),
        started_at=started,
        finished_at=_now(),
    )


def plan(targets: Sequence[Target], goals: Sequence[str]) -> tuple[Graph, List[str]]:
    """Validate the graph and resolve goals without running anything."""
    graph = build_graph(targets)
    return graph, resolve_order(graph, goals)


def run(
    targets: Sequence[Target],
    goals: Sequence[str],
    ctx: Any = None,
    *,
    console: Optional[Console] = None,
) -> RunResult:
    """
    Public API: register, schedule, execute.

    Graph and scheduling errors are raised before any action runs.
    """
    if not goals:
        raise ValueError("At least one goal target is required")
    graph, order = plan(targets, goals)
    return execute(graph, order, ctx, goals=goals, console=console)
