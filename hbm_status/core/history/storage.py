"""Backing stores for the status history ledger.

A store only needs to append a record and replay everything it holds. Records
are immutable and self-contained, so each append is a single write; no
multi-step transaction is required.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol, TextIO

from hbm_status.core.events.sinks.file_recorder import json_default
from hbm_status.core.history.records import StatusChangeRecord

LOGGER = logging.getLogger(__name__)


class LedgerStorageError(RuntimeError):
    """Raised when a durable ledger store cannot be read or written."""


class LedgerStorage(Protocol):
    def append(self, record: StatusChangeRecord) -> None:
        """Persist one record."""

    def load(self) -> Iterable[StatusChangeRecord]:
        """Return every persisted record in append order."""


class InMemoryLedgerStorage:
    """Process-local store; history is lost on restart."""

    def __init__(self) -> None:
        self._records: list[StatusChangeRecord] = []

    def append(self, record: StatusChangeRecord) -> None:
        self._records.append(record)

    def load(self) -> list[StatusChangeRecord]:
        return list(self._records)


class JsonlLedgerStorage:
    """Append-only JSON-lines file; one line per record, flushed per write.

    The append handle is opened on the first write, so a store whose replay
    fails holds no open file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: TextIO | None = None
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: StatusChangeRecord) -> None:
        if self._closed:
            raise LedgerStorageError(f"Ledger file {self._path} is closed")
        try:
            # Metadata datetimes are stored as ISO strings.
            line = json.dumps(record.to_json_obj(), default=json_default) + "\n"
        except (TypeError, ValueError) as exc:
            raise LedgerStorageError(
                f"Record {record.id} cannot be serialised to {self._path}"
            ) from exc
        try:
            if self._fh is None:
                self._fh = self._path.open("a", encoding="utf-8")
            self._fh.write(line)
            self._fh.flush()
        except OSError as exc:
            raise LedgerStorageError(f"Failed to append to ledger file {self._path}") from exc

    def load(self) -> list[StatusChangeRecord]:
        records: list[StatusChangeRecord] = []
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                for line_no, line in enumerate(fh, start=1):
                    if not line.strip():
                        continue
                    try:
                        records.append(StatusChangeRecord.from_json_obj(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, ValueError) as exc:
                        raise LedgerStorageError(
                            f"Corrupt ledger line {line_no} in {self._path}"
                        ) from exc
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise LedgerStorageError(f"Failed to read ledger file {self._path}") from exc

        LOGGER.info(
            "Ledger replayed",
            extra={"path": str(self._path), "record_count": len(records)},
        )
        return records

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def close(self) -> None:
        if self._closed:
            return
        if self._fh is not None:
            self._fh.flush()
            self._fh.close()
            self._fh = None
        self._closed = True
