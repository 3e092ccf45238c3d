"""Shared test fixtures and installer/bundler doubles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from fnbuild.errors import InstallationFailed
from fnbuild.models import FileBlob, FileSet


@dataclass(slots=True)
class FakeInstaller:
    """Records install calls and fakes a node_modules tree plus lockfile."""

    fail_in: str | None = None
    calls: list[tuple[Path, tuple[str, ...]]] = field(default_factory=list)

    def install(self, directory: Path, extra_args: Sequence[str]) -> bool:
        directory = Path(directory)
        self.calls.append((directory, tuple(extra_args)))
        if self.fail_in is not None and directory.name == self.fail_in:
            raise InstallationFailed("npm install failed.", returncode=1)
        module_dir = directory / "node_modules" / "dep"
        module_dir.mkdir(parents=True, exist_ok=True)
        (module_dir / "index.js").write_text("module.exports = 1;\n", encoding="utf-8")
        (directory / "package-lock.json").write_text("{}\n", encoding="utf-8")
        return True


@dataclass(slots=True)
class FakeBundler:
    output: bytes = b"module.exports=(req,res)=>res.end('ok');/* bundled */"
    inputs: list[Path] = field(default_factory=list)

    def bundle(self, entrypoint: Path) -> bytes:
        self.inputs.append(Path(entrypoint))
        return self.output


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture
def bundler() -> FakeBundler:
    return FakeBundler()


@pytest.fixture
def user_files() -> FileSet:
    return {
        "index.js": FileBlob(data=b"module.exports=(req,res)=>res.end('ok')"),
        "package.json": FileBlob(data=b"{}"),
    }
