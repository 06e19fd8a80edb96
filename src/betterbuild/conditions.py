# conditions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .model import Decision, DependencyBehavior, Target


@dataclass(frozen=True)
class Verdict:
    """Decision plus the reason shown to the user when it is not RUN."""
    decision: Decision
    reason: Optional[str] = None


def check(target: Target, ctx: Any) -> Verdict:
    """
    Evaluate the guards of a single target.

    Order:
      1. only_when: false -> SKIP
      2. requires, in declaration order: first false -> ABORT,
         or SKIP when the target is declared with when_skipped=SKIP
      3. otherwise RUN

    Predicates receive the build context and may read anything from it
    (branch, configuration, environment). Nothing here mutates state.
    """
    if target.only_when is not None and not target.only_when(ctx):
        return Verdict(Decision.SKIP, "condition not met")

    for requirement in target.requires:
        if not requirement.predicate(ctx):
            reason = f"requirement not met: {requirement.describe()}"
            if target.when_skipped is DependencyBehavior.SKIP:
                return Verdict(Decision.SKIP, reason)
            return Verdict(Decision.ABORT, reason)

    return Verdict(Decision.RUN)


def evaluate(target: Target, ctx: Any) -> Decision:
    return check(target, ctx).decision
