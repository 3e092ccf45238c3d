"""Dependency installation and package.json script execution."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from fnbuild.errors import InstallationFailed, UserScriptError, ValidationError
from fnbuild.observability import StructuredLogger

_OUTPUT_LIMIT = 2000


class Installer(Protocol):
    def install(self, directory: Path, extra_args: Sequence[str]) -> bool:
        """Resolve dependencies declared in *directory*; False if there was nothing to do."""


@dataclass(slots=True)
class NpmInstaller:
    """Runs ``npm install`` (or ``yarn`` when a yarn.lock is present)."""

    npm: str = "npm"
    yarn: str = "yarn"
    timeout: float | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def install(self, directory: Path, extra_args: Sequence[str]) -> bool:
        directory = Path(directory)
        if not (directory / "package.json").is_file():
            return False

        if (directory / "yarn.lock").is_file():
            command = [self.yarn, "install", *extra_args]
        else:
            command = [self.npm, "install", *extra_args]
        self.logger.log(
            operation="install",
            phase=None,
            entrypoint=None,
            message=f"installing to {directory}",
            extra={"command": command},
        )
        result = _run(command, cwd=directory, timeout=self.timeout, error=InstallationFailed)
        if result.returncode != 0:
            raise InstallationFailed(
                f"{command[0]} install failed.",
                returncode=result.returncode,
                hint="Check the dependency declarations in package.json.",
                context={
                    "operation": "install",
                    "directory": str(directory),
                    "command": " ".join(command),
                    "returncode": str(result.returncode),
                    "stdout": _truncate(result.stdout),
                    "stderr": _truncate(result.stderr),
                },
            )
        return True


def read_package_json(directory: Path) -> dict[str, object] | None:
    path = Path(directory) / "package.json"
    if not path.is_file():
        return None
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "package.json is not valid JSON.",
            hint="Fix the syntax of the user's package.json.",
            context={"operation": "read_package_json", "path": str(path)},
        ) from exc
    if not isinstance(parsed, dict):
        raise ValidationError(
            "package.json has invalid structure.",
            context={"operation": "read_package_json", "path": str(path)},
        )
    return parsed


def run_package_json_script(
    directory: Path,
    script_name: str,
    *,
    npm: str = "npm",
    timeout: float | None = None,
) -> bool:
    """Run *script_name* from package.json if declared; return whether it ran."""
    manifest = read_package_json(directory)
    if manifest is None:
        return False
    scripts = manifest.get("scripts")
    if not isinstance(scripts, dict) or script_name not in scripts:
        return False

    command = [npm, "run", script_name]
    result = _run(command, cwd=Path(directory), timeout=timeout, error=UserScriptError)
    if result.returncode != 0:
        raise UserScriptError(
            f"package.json script `{script_name}` failed.",
            hint="Run the script locally to reproduce the failure.",
            context={
                "operation": "run_script",
                "directory": str(directory),
                "script": script_name,
                "returncode": str(result.returncode),
                "stdout": _truncate(result.stdout),
                "stderr": _truncate(result.stderr),
            },
        )
    return True


def _run(
    command: list[str],
    *,
    cwd: Path,
    timeout: float | None,
    error: type[InstallationFailed] | type[UserScriptError],
) -> subprocess.CompletedProcess[str]:
    # Installs must see devDependencies, which npm skips under NODE_ENV=production.
    env = {k: v for k, v in os.environ.items() if k != "NODE_ENV"}
    executable = shutil.which(command[0]) or command[0]
    try:
        return subprocess.run(
            [executable, *command[1:]],
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise error(
            f"`{command[0]}` is not available in PATH.",
            hint="Install Node.js and npm on the build host.",
            context={"operation": "run", "command": " ".join(command)},
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise error(
            f"`{' '.join(command)}` timed out.",
            context={"operation": "run", "cwd": str(cwd), "timeout": str(timeout)},
        ) from exc


def _truncate(output: str | None) -> str:
    return output[:_OUTPUT_LIMIT] if output else ""
