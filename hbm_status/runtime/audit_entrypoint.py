"""Command-line consistency audit over exported order / inquiry snapshots."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from pydantic import TypeAdapter

from hbm_status.core.audit.reporting import inquiry_statistics, order_statistics
from hbm_status.core.config.status_config import StatusConfig
from hbm_status.core.domain.results import ValidationResult
from hbm_status.core.domain.types import InquirySnapshot, OrderSnapshot
from hbm_status.core.services import build_status_services
from hbm_status.runtime.prometheus_metrics import PrometheusMetricsClient

LOGGER = logging.getLogger(__name__)

_ORDERS = TypeAdapter(list[OrderSnapshot])
_INQUIRIES = TypeAdapter(list[InquirySnapshot])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def _load_config(path: Path | None) -> StatusConfig:
    if path is None:
        return StatusConfig.from_env()
    return StatusConfig.from_json_obj(_load_json(path))


def _print_report(result: ValidationResult, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    status = "OK" if result.is_valid else "FAILED"
    print(f"Consistency audit: {status}")
    print(f"  errors:   {len(result.errors)}")
    print(f"  warnings: {len(result.warnings)}")
    for message in result.errors:
        print(f"  ERROR   {message}")
    for message in result.warnings:
        print(f"  WARNING {message}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("hbm-status-audit")
    parser.add_argument("--orders", type=Path, help="JSON array of order snapshots")
    parser.add_argument("--inquiries", type=Path, help="JSON array of inquiry snapshots")
    parser.add_argument("--config", type=Path, help="JSON StatusConfig (default: env)")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = _build_parser().parse_args(argv)

    orders = _ORDERS.validate_python(_load_json(args.orders)) if args.orders else []
    inquiries = _INQUIRIES.validate_python(_load_json(args.inquiries)) if args.inquiries else []

    services = build_status_services(_load_config(args.config))
    try:
        result = services.checker.check(orders, inquiries)
        _print_report(result, as_json=args.json)

        metrics = PrometheusMetricsClient()
        if metrics.is_enabled():
            try:
                metrics.record_audit(result)
                metrics.record_statistics(order_statistics(orders, services.orders))
                metrics.record_statistics(inquiry_statistics(inquiries, services.inquiries))
                metrics.push_all(job="hbm_status_audit")
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Prometheus push failed")
    finally:
        services.close()

    return 0 if result.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
