"""Filesystem helpers used for path canonicalization and tree listing."""

import os
from pathlib import Path
from typing import Callable, List, Optional, Union

from .exceptions import PathResolutionError

PathLike = Union[str, os.PathLike]


def canonical_path(path: PathLike, strict: bool = True) -> Path:
    """
    Resolve ``path`` to its canonical absolute form.

    Symlinks, ``..`` components and trailing separators are resolved so that
    two spellings of one filesystem entry yield the same key.

    Args:
        path: Path to resolve
        strict: If True, the path must exist

    Returns:
        The canonical path

    Raises:
        PathResolutionError: If strict and the path does not exist
    """
    try:
        return Path(path).expanduser().resolve(strict=strict)
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(f'"{path}" does not exist') from e


def is_dir(path: PathLike) -> bool:
    return os.path.isdir(path)


def exists(path: PathLike) -> bool:
    return os.path.exists(path)


def parent_dir(path: PathLike) -> Path:
    return Path(path).parent


def scan_dir(
    path: PathLike,
    follow_symlinks: bool = False,
    ignore: Optional[Callable[[Path], bool]] = None,
) -> List[Path]:
    """
    List every file and directory beneath ``path`` recursively.

    Args:
        path: Directory to scan
        follow_symlinks: Whether to descend into symlinked directories
        ignore: Predicate for entries (and whole subtrees) to skip

    Returns:
        Sorted list of descendant paths, excluding ``path`` itself
    """
    found: List[Path] = []

    for dirpath, dirnames, filenames in os.walk(path, followlinks=follow_symlinks):
        base = Path(dirpath)
        if ignore is not None:
            dirnames[:] = [d for d in dirnames if not ignore(base / d)]
        for name in dirnames + filenames:
            entry = base / name
            if ignore is not None and ignore(entry):
                continue
            found.append(entry)

    return sorted(found)
