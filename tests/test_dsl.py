from __future__ import annotations

from pathlib import Path

import pytest

from betterbuild.dsl import build, declare, requirement, target
from betterbuild.model import DependencyBehavior, Requirement, Target


def test_target_normalizes_sequences():
    t = target("Pack", depends_on=["Compile"], before=["Push"], produces=["out"], requires=[lambda c: True])
    assert t.depends_on == ("Compile",)
    assert t.before == ("Push",)
    assert t.produces == (Path("out"),)
    assert isinstance(t.requires[0], Requirement)


def test_target_is_immutable():
    t = target("A")
    with pytest.raises(AttributeError):
        t.name = "B"  # type: ignore[misc]


def test_empty_name_is_rejected():
    with pytest.raises(ValueError):
        target("  ")


def test_non_callable_requirement_is_rejected():
    with pytest.raises(TypeError):
        target("A", requires=[True])  # type: ignore[list-item]


def test_builder_matches_functional_form():
    def action(_ctx):
        return None

    def packable(_ctx):
        return True

    built = (
        build("Pack")
        .depends_on("Compile")
        .after("Test")
        .only_when(packable)
        .requires(packable, "release only")
        .when_skipped(DependencyBehavior.SKIP)
        .proceed_after_failure()
        .produces("packages")
        .describe("Pack tools")
        .executes(action)
        .build()
    )
    assert built == target(
        "Pack",
        action,
        depends_on=["Compile"],
        after=["Test"],
        only_when=packable,
        requires=[requirement(packable, "release only")],
        when_skipped="skip",
        proceed_after_failure=True,
        produces=["packages"],
        description="Pack tools",
    )


def test_declare_keeps_registration_order():
    ts = declare(target("B"), build("A"), [target("C"), target("D")])
    assert [t.name for t in ts] == ["B", "A", "C", "D"]
    assert all(isinstance(t, Target) for t in ts)


def test_requirement_description():
    def is_release_branch(_ctx):
        return True

    assert Requirement(is_release_branch).describe() == "is_release_branch"
    assert Requirement(lambda c: True).describe() == "requirement"
    assert Requirement(is_release_branch, "custom").describe() == "custom"
