"""
Append-only JSON-lines recorder sink.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from hbm_status.core.events.event_sink import StatusEvent


def json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FileRecorderSink:
    """Writes each event as ``{"event": <type>, ...fields}`` on its own line."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self._path.open("a", encoding="utf-8")
        self._closed = False

    def on_event(self, event: StatusEvent) -> None:
        record = {"event": type(event).__name__, **asdict(event)}
        self._fh.write(json.dumps(record, default=json_default) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._fh.flush()
        self._fh.close()
        self._closed = True
