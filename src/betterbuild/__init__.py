from .dsl import target, requirement, declare, TargetBuilder, build
from .model import Target, DependencyBehavior, TargetStatus, RunResult
from .context import BuildContext, Configuration
from .runner import run, execute, load_build

__all__ = [
    "target", "requirement", "declare", "TargetBuilder", "build",
    "Target", "DependencyBehavior", "TargetStatus", "RunResult",
    "BuildContext", "Configuration",
    "run", "execute", "load_build",
]
