# artifacts.py
from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import List, Optional


def create_or_clean_directory(path: str | Path) -> Path:
    """Create `path` if missing, otherwise delete everything inside it."""
    p = Path(path)
    if p.exists() and not p.is_dir():
        raise NotADirectoryError(f"Not a directory: {p}")
    p.mkdir(parents=True, exist_ok=True)
    for child in p.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    return p


def zip_to(directory: str | Path, archive: str | Path, *, overwrite: bool = True) -> Path:
    """
    Zip the contents of `directory` into `archive`.

    Entries are relative to `directory`. Parent folders of the archive
    are created as needed.
    """
    src = Path(directory)
    dest = Path(archive)
    if not src.is_dir():
        raise NotADirectoryError(f"Not a directory: {src}")
    if dest.exists() and not overwrite:
        raise FileExistsError(f"Archive already exists: {dest}")

    dest.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(dest, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for f in sorted(src.rglob("*")):
            if f.is_file() and f.resolve() != dest.resolve():
                zf.write(f, f.relative_to(src).as_posix())
    return dest


def find_files(root: str | Path, pattern: str, depth: Optional[int] = None) -> List[Path]:
    """
    Files named like `pattern` under `root`, at most `depth` levels down
    (depth=1 means directly inside root). Sorted for stable results.
    """
    base = Path(root)
    if not base.is_dir():
        return []
    found: List[Path] = []
    for f in base.rglob(pattern):
        if not f.is_file():
            continue
        if depth is not None and len(f.relative_to(base).parts) > depth:
            continue
        found.append(f)
    return sorted(found)
