"""Select on-disk files as a FileSet."""

from __future__ import annotations

from pathlib import Path

from fnbuild.models import FileFsRef


def glob(pattern: str, root: str | Path) -> dict[str, FileFsRef]:
    """Return regular files under *root* matching *pattern*.

    Keys are POSIX paths relative to *root*. A trailing ``**`` selects every
    file in the subtree.
    """
    base = Path(root)
    if not base.is_dir():
        return {}
    if pattern.endswith("**"):
        pattern = f"{pattern}/*"

    matches: dict[str, FileFsRef] = {}
    for path in sorted(base.glob(pattern)):
        if not path.is_file():
            continue
        matches[path.relative_to(base).as_posix()] = FileFsRef.from_fs_path(path)
    return matches
