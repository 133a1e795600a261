"""Status subsystem configuration model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, model_validator

_ENV_PREFIX = "HBM_STATUS_"


class StatusConfig(BaseModel):
    """Thresholds and wiring options for the status subsystem.

    JSON example:
        {
          "stale_new_days": 7,
          "stale_in_progress_days": 30,
          "ledger_path": "/var/lib/hbm/status-ledger.jsonl"
        }
    """

    # Inquiries older than this (in days) while still NEW are flagged stale.
    stale_new_days: float = 7
    # Inquiries older than this (in days) while IN_PROGRESS are flagged stale.
    stale_in_progress_days: float = 30

    # When set, the ledger persists to an append-only JSON-lines file.
    ledger_path: Path | None = None

    emit_events: bool = True

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> StatusConfig:
        """Create a StatusConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StatusConfig:
        """Build a config from ``HBM_STATUS_*`` environment variables.

        Unset variables fall back to the model defaults.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        for key in ("stale_new_days", "stale_in_progress_days", "ledger_path"):
            raw = env.get(_ENV_PREFIX + key.upper())
            if raw:
                data[key] = raw

        raw_emit = env.get(_ENV_PREFIX + "EMIT_EVENTS")
        if raw_emit:
            data["emit_events"] = raw_emit

        return cls.model_validate(data)

    @model_validator(mode="after")
    def validate_thresholds(self) -> StatusConfig:
        """Stale thresholds must be strictly positive."""
        if self.stale_new_days <= 0:
            raise ValueError("stale_new_days must be > 0")
        if self.stale_in_progress_days <= 0:
            raise ValueError("stale_in_progress_days must be > 0")
        return self
