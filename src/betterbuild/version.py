# version.py
from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .git_facts import git

# ---------------------------------------------------------------------
# Tag based versioning
# ---------------------------------------------------------------------
# Same rules as MinVer:
#   HEAD is tagged 1.2.3            -> 1.2.3
#   3 commits after 1.2.3           -> 1.2.4-alpha.0.3
#   3 commits after 1.2.3-rc.1      -> 1.2.3-rc.1.3
#   no version tag, 5 commits       -> 0.0.0-alpha.0.5
# ---------------------------------------------------------------------

DEFAULT_PRERELEASE = "alpha.0"
TAG_PREFIX = "v"

_SEMVER = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)
_DESCRIBE = re.compile(r"^(?P<tag>.+)-(?P<height>\d+)-g(?P<sha>[0-9a-f]+)$")


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    height: int = 0

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core


def parse_tag(tag: str, prefix: str = TAG_PREFIX) -> Optional[Version]:
    """Parse a version tag; None when the tag is not a version."""
    if prefix and tag.startswith(prefix):
        tag = tag[len(prefix):]
    m = _SEMVER.match(tag)
    if not m:
        return None
    return Version(int(m["major"]), int(m["minor"]), int(m["patch"]), m["pre"])


def derive_version(describe_output: str | None, height_without_tag: int = 0, prefix: str = TAG_PREFIX) -> Version:
    """
    Compute the version from `git describe --tags --long` output.

    `height_without_tag` is the commit count used when no version tag
    is reachable.
    """
    m = _DESCRIBE.match(describe_output or "")
    tagged = parse_tag(m["tag"], prefix) if m else None
    if tagged is None:
        return Version(0, 0, 0, f"{DEFAULT_PRERELEASE}.{height_without_tag}", height_without_tag)

    height = int(m["height"])
    if height == 0:
        return tagged
    if tagged.prerelease:
        return Version(tagged.major, tagged.minor, tagged.patch, f"{tagged.prerelease}.{height}", height)
    return Version(tagged.major, tagged.minor, tagged.patch + 1, f"{DEFAULT_PRERELEASE}.{height}", height)


def version_from_git(root: str | Path = ".") -> Version:
    try:
        out = git.describe(cwd=root)
    except subprocess.CalledProcessError:
        # empty repository
        return derive_version(None, 0)
    m = _DESCRIBE.match(out)
    height = 0 if m and parse_tag(m["tag"]) else git.commit_count(cwd=root)
    return derive_version(out, height)
