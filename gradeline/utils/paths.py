# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Path helpers for build directories and report locations."""

from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """mkdir -p, returning `path`."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_path_within(target: Path, root: Path) -> Path:
    """
    Resolve `target` and check that it stays under `root`.

    Owner and task names come from submission headers, so anything derived
    from them is resolved first; `..` segments and symlinks pointing
    elsewhere are rejected.

    Raises:
        ValueError: If the resolved path is outside `root`.
    """
    resolved = target.resolve()
    boundary = root.resolve()
    if resolved != boundary and boundary not in resolved.parents:
        raise ValueError(f"{target} resolves to {resolved}, outside {boundary}")
    return resolved
