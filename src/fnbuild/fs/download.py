"""Materialize a FileSet onto local disk."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from fnbuild.errors import ValidationError
from fnbuild.models import FileSet


def download(files: FileSet, dest: str | Path) -> dict[str, Path]:
    """Write every entry of *files* under *dest* and return their disk paths.

    All paths are validated before anything is written, so a rejected
    FileSet leaves *dest* untouched.
    """
    root = Path(dest).resolve()
    targets = {name: _target_path(root, name) for name in files}

    root.mkdir(parents=True, exist_ok=True)
    on_disk: dict[str, Path] = {}
    for name, target in targets.items():
        ref = files[name]
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(f".{target.name}.tmp")
        temp_path.write_bytes(ref.read_bytes())
        os.chmod(temp_path, ref.mode & 0o7777)
        os.replace(temp_path, target)
        on_disk[name] = target
    return on_disk


def _target_path(root: Path, name: str) -> Path:
    relative = PurePosixPath(name)
    if not name or relative.is_absolute() or ".." in relative.parts:
        raise ValidationError(
            "File path must be relative and stay inside the target directory.",
            hint="Use POSIX relative paths without '..' segments.",
            context={"operation": "download", "path": name, "dest": str(root)},
        )
    return root.joinpath(*relative.parts)
