# context.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Dict, Mapping, Optional

from .git_facts.git import GitRepository
from .version import version_from_git

ENV_PREFIX = "BETTERBUILD_"
DEFAULT_FEED_URL = "https://api.nuget.org/v3/index.json"

# Any of these set means we are on a build server
CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "TF_BUILD", "JENKINS_URL", "GITLAB_CI", "TEAMCITY_VERSION")


class Configuration(str, Enum):
    DEBUG = "Debug"
    RELEASE = "Release"

    @classmethod
    def parse(cls, value: str) -> "Configuration":
        for c in cls:
            if c.value.lower() == value.strip().lower():
                return c
        raise ValueError(f"Unknown configuration {value!r}, expected one of {[c.value for c in cls]}")

    def __str__(self) -> str:
        return self.value


def detect_local_build(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return not any(env.get(var) for var in CI_ENV_VARS)


@dataclass(frozen=True)
class BuildContext:
    """
    Values shared by every target of a build, passed explicitly to
    predicates and actions.

    Repository facts and the version are only computed when something
    asks for them.
    """
    root: Path = field(default_factory=Path.cwd)
    configuration: Configuration = Configuration.DEBUG
    is_local_build: bool = True
    api_key: Optional[str] = field(default=None, repr=False)
    feed_url: str = DEFAULT_FEED_URL
    parameters: Dict[str, str] = field(default_factory=dict)

    git_repository: Optional[GitRepository] = None
    version_text: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        root: str | Path = ".",
        env: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "BuildContext":
        """
        Defaults: Debug locally, Release on a server.
        BETTERBUILD_CONFIGURATION / BETTERBUILD_API_KEY / BETTERBUILD_FEED_URL override.
        """
        env = os.environ if env is None else env
        is_local = detect_local_build(env)

        configuration = Configuration.DEBUG if is_local else Configuration.RELEASE
        if env.get(f"{ENV_PREFIX}CONFIGURATION"):
            configuration = Configuration.parse(env[f"{ENV_PREFIX}CONFIGURATION"])

        values = dict(
            root=Path(root).resolve(),
            configuration=configuration,
            is_local_build=is_local,
            api_key=env.get(f"{ENV_PREFIX}API_KEY") or None,
            feed_url=env.get(f"{ENV_PREFIX}FEED_URL") or DEFAULT_FEED_URL,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    # ---- collaborators ----
    @cached_property
    def repository(self) -> GitRepository:
        if self.git_repository is not None:
            return self.git_repository
        return GitRepository.from_directory(self.root)

    @cached_property
    def version(self) -> str:
        if self.version_text is not None:
            return self.version_text
        return str(version_from_git(self.root))

    # ---- layout ----
    @property
    def source_dir(self) -> Path:
        return self.root / "src"

    @property
    def artifacts_dir(self) -> Path:
        return self.root / ".artifacts"

    @property
    def publish_dir(self) -> Path:
        return self.root / "publish"

    @property
    def pack_dir(self) -> Path:
        return self.root / "packages"

    @property
    def test_dir(self) -> Path:
        return self.root / "tests"

    @property
    def results_dir(self) -> Path:
        return self.root / "TestResults"
