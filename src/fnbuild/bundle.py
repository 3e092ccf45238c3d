"""Bundler contract and the ncc-backed implementation."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fnbuild.errors import BundleFailed

# Loads ncc from an explicit module directory and writes the bundle to stdout.
_NCC_DRIVER = """\
const ncc = require(process.argv[1]);
Promise.resolve(ncc(process.argv[2]))
  .then((out) => {
    const code = typeof out === 'string' ? out : out && out.code;
    process.stdout.write(code || '');
  })
  .catch((err) => {
    console.error((err && err.stack) || String(err));
    process.exit(1);
  });
"""

_STDERR_LIMIT = 2000


class Bundler(Protocol):
    def bundle(self, entrypoint: Path) -> bytes:
        """Return compiled code for *entrypoint* with its imports inlined."""


@dataclass(frozen=True, slots=True)
class NccBundler:
    module_dir: Path
    node: str = "node"
    timeout: float | None = None

    @classmethod
    def from_install(
        cls,
        ncc_path: Path,
        *,
        package: str = "@zeit/ncc",
        node: str = "node",
        timeout: float | None = None,
    ) -> NccBundler:
        """Resolve the ncc module installed under *ncc_path*."""
        module_dir = Path(ncc_path) / "node_modules" / package
        if not (module_dir / "package.json").is_file():
            raise BundleFailed(
                f"{package} is not installed.",
                hint="Staging must install the bundler before compilation.",
                context={"operation": "resolve_bundler", "path": str(module_dir)},
            )
        return cls(module_dir=module_dir, node=node, timeout=timeout)

    def bundle(self, entrypoint: Path) -> bytes:
        command = [
            shutil.which(self.node) or self.node,
            "-e",
            _NCC_DRIVER,
            str(self.module_dir),
            str(entrypoint),
        ]
        try:
            result = subprocess.run(
                command,
                cwd=str(Path(entrypoint).parent),
                capture_output=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise BundleFailed(
                f"`{self.node}` is not available in PATH.",
                hint="Install Node.js on the build host.",
                context={"operation": "bundle", "entrypoint": str(entrypoint)},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise BundleFailed(
                "ncc timed out.",
                context={"operation": "bundle", "entrypoint": str(entrypoint)},
            ) from exc

        stderr = result.stderr.decode("utf-8", errors="replace")[:_STDERR_LIMIT]
        if result.returncode != 0:
            raise BundleFailed(
                "ncc failed to compile the entrypoint.",
                hint="Check that every imported module is installed.",
                context={
                    "operation": "bundle",
                    "entrypoint": str(entrypoint),
                    "returncode": str(result.returncode),
                    "stderr": stderr,
                },
            )
        if not result.stdout:
            raise BundleFailed(
                "ncc produced no output.",
                context={"operation": "bundle", "entrypoint": str(entrypoint), "stderr": stderr},
            )
        return result.stdout
