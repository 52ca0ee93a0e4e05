# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
File helpers shared by the execution cell and the report writer.

Reports are written through a sibling temp file and an os.replace, so a
reader polling the reports directory sees either the previous report or the
complete new one.
"""

import os
import tempfile
from pathlib import Path


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Replace `target_path` with `content` in one step.

    Line endings are written exactly as given. The temp file is removed if
    anything fails before the replace.

    Raises:
        OSError: If the directory cannot be created or the replace fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        dir=target_path.parent, prefix=".gradeline_tmp_", suffix=target_path.suffix
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
        os.replace(temp_name, target_path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def safe_delete(file_path: Path) -> bool:
    """Remove `file_path` if present; True when something was removed."""
    try:
        file_path.unlink()
    except FileNotFoundError:
        return False
    return True
