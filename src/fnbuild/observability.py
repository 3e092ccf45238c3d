"""Structured logging and progress markers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING}


@dataclass(slots=True)
class StructuredLogger:
    """Collects build records and mirrors them to the ``fnbuild`` logger.

    Every record is also emitted as a plain log line so the caller's log
    stream shows which phase was running when a build failed.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fnbuild"))

    def log(
        self,
        *,
        operation: str,
        phase: str | None,
        entrypoint: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "phase": phase,
            "entrypoint": entrypoint,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        self.logger.log(_LEVELS.get(level, logging.INFO), message)

    def records_for_phase(self, phase: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("phase") == phase]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
