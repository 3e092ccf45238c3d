"""Launcher template loading and placeholder substitution."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from fnbuild.errors import TemplateError


@dataclass(frozen=True, slots=True)
class LauncherTemplate:
    text: str
    placeholder: str = "// PLACEHOLDER"

    @classmethod
    def from_resource(cls, name: str, *, placeholder: str = "// PLACEHOLDER") -> LauncherTemplate:
        return cls(text=load_resource(name), placeholder=placeholder)

    def render(self, replacement: str) -> str:
        """Replace the single placeholder occurrence with *replacement*."""
        count = self.text.count(self.placeholder)
        if count != 1:
            raise TemplateError(
                "Launcher template must contain the placeholder exactly once.",
                hint="Restore the placeholder line in the launcher resource.",
                context={
                    "operation": "render_launcher",
                    "placeholder": self.placeholder,
                    "occurrences": str(count),
                },
            )
        return self.text.replace(self.placeholder, replacement, 1)


def load_resource(name: str) -> str:
    return resources.files("fnbuild.resources").joinpath(name).read_text(encoding="utf-8")


def resource_path(name: str) -> Path:
    """Return the on-disk path of a shipped resource file."""
    return Path(str(resources.files("fnbuild.resources").joinpath(name)))
