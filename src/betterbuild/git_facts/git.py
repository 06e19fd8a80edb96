# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Every other function builds on top of this one. A non-zero exit
    raises CalledProcessError, which callers decide how to handle.
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def repo_root(cwd: Optional[str | Path] = None) -> Path:
    """Absolute path to the root of the enclosing Git repository."""
    return Path(_git(["rev-parse", "--show-toplevel"], cwd=cwd))


def head_sha(cwd: Optional[str | Path] = None) -> str:
    """Full SHA of the HEAD commit."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def current_branch(cwd: Optional[str | Path] = None) -> Optional[str]:
    """
    Name of the checked out branch.

    CI checkouts are often detached; fall back to the branch name the
    CI server exposes. Returns None when nothing is known.
    """
    name = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    if name and name != "HEAD":
        return name
    for var in ("GITHUB_HEAD_REF", "GITHUB_REF_NAME", "BUILD_SOURCEBRANCHNAME", "BRANCH_NAME"):
        value = os.environ.get(var)
        if value:
            return value
    return None


def tags(cwd: Optional[str | Path] = None) -> List[str]:
    """Tags pointing at HEAD."""
    out = _git(["tag", "--points-at", "HEAD"], cwd=cwd)
    return out.splitlines() if out else []


def remote_url(name: str = "origin", cwd: Optional[str | Path] = None) -> str:
    return _git(["remote", "get-url", name], cwd=cwd)


def is_dirty(cwd: Optional[str | Path] = None) -> bool:
    """True if there are modified, staged or untracked files."""
    return _git(["status", "--porcelain"], cwd=cwd) != ""


def describe(cwd: Optional[str | Path] = None) -> str:
    """
    `git describe --tags --long` output, e.g. "v1.2.3-4-gabc1234".

    Raises CalledProcessError when the repository has no tags.
    """
    return _git(["describe", "--tags", "--long", "--always"], cwd=cwd)


def commit_count(cwd: Optional[str | Path] = None) -> int:
    return int(_git(["rev-list", "--count", "HEAD"], cwd=cwd) or 0)


# ----------------------------------------------------------------------
# Repository snapshot
# ----------------------------------------------------------------------

_SCP_URL = re.compile(r"^(?:[^@]+@)?(?P<host>[^:/]+):(?P<path>.+?)(?:\.git)?$")
_HTTPS_URL = re.compile(r"^(?:https?|ssh|git)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?$")


def _host_and_path(url: str) -> Optional[tuple[str, str]]:
    for pattern in (_HTTPS_URL, _SCP_URL):
        m = pattern.match(url.strip())
        if m:
            return m.group("host"), m.group("path")
    return None


@dataclass(frozen=True)
class GitRepository:
    """Source-control facts captured once per build."""
    branch: Optional[str] = None
    commit: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    remote: Optional[str] = None

    @classmethod
    def from_directory(cls, root: str | Path = ".") -> "GitRepository":
        try:
            remote = remote_url(cwd=root)
        except subprocess.CalledProcessError:
            remote = None
        return cls(
            branch=current_branch(cwd=root),
            commit=head_sha(cwd=root),
            tags=tags(cwd=root),
            remote=remote,
        )

    @property
    def https_url(self) -> Optional[str]:
        parts = _host_and_path(self.remote) if self.remote else None
        return f"https://{parts[0]}/{parts[1]}" if parts else None

    @property
    def ssh_url(self) -> Optional[str]:
        parts = _host_and_path(self.remote) if self.remote else None
        return f"git@{parts[0]}:{parts[1]}.git" if parts else None

    def _is(self, *names: str) -> bool:
        return (self.branch or "").lower() in names

    def _starts(self, prefix: str) -> bool:
        return (self.branch or "").lower().startswith(prefix)

    def is_on_main_branch(self) -> bool:
        return self._is("main")

    def is_on_main_or_master_branch(self) -> bool:
        return self._is("main", "master")

    def is_on_develop_branch(self) -> bool:
        return self._is("dev", "develop", "development")

    def is_on_release_branch(self) -> bool:
        return self._starts("release/")

    def is_on_hotfix_branch(self) -> bool:
        return self._starts("hotfix/")

    def is_on_feature_branch(self) -> bool:
        return self._starts("feature/")
