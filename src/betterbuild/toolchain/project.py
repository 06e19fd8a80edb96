# toolchain/project.py
from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

PROJECT_PATTERNS = ("*.csproj", "*.fsproj", "*.vbproj")
IGNORED_DIRS = {"bin", "obj", ".git", "node_modules"}


def find_projects(root: str | Path) -> List[Path]:
    """MSBuild project files below `root`, skipping build output folders."""
    base = Path(root)
    found: List[Path] = []
    for pattern in PROJECT_PATTERNS:
        for p in base.rglob(pattern):
            if IGNORED_DIRS.intersection(p.relative_to(base).parts[:-1]):
                continue
            found.append(p)
    return sorted(found)


def project_property(project_file: str | Path, name: str) -> Optional[str]:
    """
    Value of a static <PropertyGroup> property, last definition wins
    (same as MSBuild evaluation order). Conditions are not evaluated.
    """
    tree = ET.parse(project_file)
    value: Optional[str] = None
    for group in tree.getroot().iter():
        if _local(group.tag) != "PropertyGroup":
            continue
        for prop in group:
            if _local(prop.tag) == name:
                value = (prop.text or "").strip()
    return value


def project_has_capability(project_file: str | Path, capability: str) -> bool:
    """True when the project sets a boolean property (PackAsTool, IsPackable...) to true."""
    return (project_property(project_file, capability) or "").lower() == "true"


def _local(tag: str) -> str:
    # strip the msbuild xml namespace of old-style projects
    return tag.rsplit("}", 1)[-1]
