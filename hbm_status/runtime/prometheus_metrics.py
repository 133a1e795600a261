from __future__ import annotations

import json
import logging
import os
from typing import Mapping

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

from hbm_status.core.domain.results import StatusStatistics, ValidationResult

LOGGER = logging.getLogger(__name__)


class PrometheusMetricsClient:
    """Pushgateway client for batch-style status audits.

    Expected environment:
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway.

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object of string pairs
      used as grouping key, e.g. {"instance": "nightly-audit"}.

    Delivery is best-effort: callers treat pushing as a side-effect and never
    fail the audit because of it.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self._pushgateway_url = env.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key(
            env.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        )
        self._registry = CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @property
    def grouping_key(self) -> dict[str, str]:
        return dict(self._grouping_key)

    @staticmethod
    def _load_grouping_key(raw: str | None) -> dict[str, str]:
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        return {
            key: value
            for key, value in data.items()
            if isinstance(key, str) and isinstance(value, str)
        }

    def _gauge(self, name: str, documentation: str, labelnames: tuple[str, ...]) -> Gauge:
        # A registry rejects duplicate metric names; reuse per name.
        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = Gauge(
                name,
                documentation=documentation,
                labelnames=labelnames,
                registry=self._registry,
            )
            self._gauges[name] = gauge
        return gauge

    def record_audit(self, result: ValidationResult) -> None:
        self._gauge(
            "hbm_status_audit_errors", "Errors raised by the last consistency audit", ()
        ).set(len(result.errors))
        self._gauge(
            "hbm_status_audit_warnings", "Warnings raised by the last consistency audit", ()
        ).set(len(result.warnings))

    def record_statistics(self, statistics: StatusStatistics) -> None:
        gauge = self._gauge(
            f"hbm_status_{statistics.entity_type}s_by_status",
            f"Number of {statistics.entity_type}s per computed status",
            ("status",),
        )
        for status, count in statistics.status_counts.items():
            gauge.labels(status=status).set(count)

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=job,
            registry=self._registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )
