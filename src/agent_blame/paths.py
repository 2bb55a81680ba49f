"""
File path normalization for stored records and detected hunks.

The detector compares file paths by exact equality, so both sides must use
the same form:

- Files inside the project root: relative POSIX path (``src/app.py``)
- Files outside the project root: absolute path
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union

PathLike = Union[str, Path]


def resolve_file_path(file_path: PathLike, project_root: PathLike) -> str:
    """Absolute path for a stored path; relative paths resolve against the root."""
    if os.path.isabs(file_path):
        return str(file_path)
    return os.path.join(str(project_root), str(file_path))


def normalize_file_path(file_path: PathLike, project_root: PathLike) -> str:
    """
    Storage form of a file path.

    Args:
        file_path: Absolute, or relative to ``project_root``
        project_root: Project root directory

    Returns:
        Relative POSIX path when the file is inside the root, else the
        normalized absolute path. The root itself counts as outside.
    """
    absolute = Path(os.path.abspath(resolve_file_path(file_path, project_root)))
    root = Path(os.path.abspath(str(project_root)))

    try:
        relative = absolute.relative_to(root)
    except ValueError:
        return str(absolute)

    if not relative.parts:
        return str(absolute)
    return str(PurePosixPath(*relative.parts))


def is_inside_project(file_path: PathLike, project_root: PathLike) -> bool:
    return not os.path.isabs(normalize_file_path(file_path, project_root))
