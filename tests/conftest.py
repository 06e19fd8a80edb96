from __future__ import annotations

from pathlib import Path

import pytest

from betterbuild.context import BuildContext, Configuration
from betterbuild.git_facts.git import GitRepository
from betterbuild.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def fresh_console():
    """Every test starts with a non-debug console."""
    set_console(Console(debug=False))
    yield


@pytest.fixture
def ctx(tmp_path: Path) -> BuildContext:
    return BuildContext(
        root=tmp_path,
        configuration=Configuration.DEBUG,
        is_local_build=True,
        git_repository=GitRepository(branch="feature/x", commit="abc123", tags=[]),
        version_text="1.2.3",
    )


@pytest.fixture
def calls() -> list:
    """Records the order in which actions ran."""
    return []


@pytest.fixture
def record(calls):
    def make(name):
        def action(_ctx):
            calls.append(name)
        return action
    return make
