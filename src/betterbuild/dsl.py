# src/betterbuild/dsl.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .model import Action, DependencyBehavior, Predicate, Requirement, Target

PathLike = Union[str, Path]


def _requirement(r: Union[Requirement, Predicate]) -> Requirement:
    if isinstance(r, Requirement):
        return r
    if not callable(r):
        raise TypeError(f"requirement must be callable, got: {r!r}")
    return Requirement(predicate=r)


# ---------------------------------------------------------------------
# Functional Target helper
# ---------------------------------------------------------------------

def requirement(predicate: Predicate, message: str | None = None) -> Requirement:
    """Attach a readable message to a requires() predicate."""
    return Requirement(predicate=predicate, message=message)


def target(
    name: str,
    action: Optional[Action] = None,
    *,
    depends_on: Sequence[str] = (),
    before: Sequence[str] = (),
    after: Sequence[str] = (),
    requires: Sequence[Union[Requirement, Predicate]] = (),
    only_when: Optional[Predicate] = None,
    when_skipped: DependencyBehavior = DependencyBehavior.FAIL,
    proceed_after_failure: bool = False,
    produces: Sequence[PathLike] = (),
    description: str | None = None,
) -> Target:
    if not name or not name.strip():
        raise ValueError("target name must be a non-empty string")
    return Target(
        name=name,
        action=action,
        depends_on=tuple(depends_on),
        before=tuple(before),
        after=tuple(after),
        requires=tuple(_requirement(r) for r in requires),
        only_when=only_when,
        when_skipped=DependencyBehavior(when_skipped),
        proceed_after_failure=proceed_after_failure,
        produces=tuple(Path(p) for p in produces),
        description=description,
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class TargetBuilder:
    def __init__(self, name: str):
        self.name = name
        self._action: Optional[Action] = None
        self._depends_on: list[str] = []
        self._before: list[str] = []
        self._after: list[str] = []
        self._requires: list[Requirement] = []
        self._only_when: Optional[Predicate] = None
        self._when_skipped = DependencyBehavior.FAIL
        self._proceed_after_failure = False
        self._produces: list[Path] = []
        self._description: str | None = None

    def depends_on(self, *names: str):
        self._depends_on.extend(names)
        return self

    def before(self, *names: str):
        self._before.extend(names)
        return self

    def after(self, *names: str):
        self._after.extend(names)
        return self

    def requires(self, predicate: Predicate, message: str | None = None):
        self._requires.append(Requirement(predicate=predicate, message=message))
        return self

    def only_when(self, predicate: Predicate):
        self._only_when = predicate
        return self

    def when_skipped(self, behavior: DependencyBehavior):
        self._when_skipped = DependencyBehavior(behavior)
        return self

    def proceed_after_failure(self, enabled: bool = True):
        self._proceed_after_failure = enabled
        return self

    def produces(self, *paths: PathLike):
        self._produces.extend(Path(p) for p in paths)
        return self

    def describe(self, text: str):
        self._description = text
        return self

    def executes(self, action: Action):
        self._action = action
        return self

    def build(self) -> Target:
        return target(
            self.name,
            self._action,
            depends_on=self._depends_on,
            before=self._before,
            after=self._after,
            requires=self._requires,
            only_when=self._only_when,
            when_skipped=self._when_skipped,
            proceed_after_failure=self._proceed_after_failure,
            produces=self._produces,
            description=self._description,
        )


def build(name: str) -> TargetBuilder:
    """Convenience: build('Compile').depends_on('Restore').executes(fn).build()"""
    return TargetBuilder(name)


# ---------------------------------------------------------------------
# Registration helper (single-file story)
# ---------------------------------------------------------------------

def declare(*items: Union[Target, TargetBuilder, Iterable[Target]]) -> List[Target]:
    """
    Collect targets in registration order.

        from betterbuild import declare, target

        def targets(ctx):
            return declare(
                target("Clean", clean),
                build("Compile").depends_on("Clean").executes(compile_).build(),
            )

    Builders are finished automatically.
    """
    out: List[Target] = []
    for item in items:
        if isinstance(item, Target):
            out.append(item)
        elif isinstance(item, TargetBuilder):
            out.append(item.build())
        else:
            out.extend(item)
    return out
