"""
Structured JSON event logger.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert events (data_fallback,
validation_failed, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("botsim.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        asset: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._asset = asset
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "data_fallback",
            "validation_failed",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "asset": self._asset,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def run_start(self, run_id: str, timeframe: str, bars: int, source: str) -> dict:
        return self._emit(
            "run_start",
            run_id=run_id,
            timeframe=timeframe,
            bars=bars,
            source=source,
        )

    def trade_closed(
        self,
        run_id: str,
        trade_type: str,
        pnl: float,
        exit_reason: str,
    ) -> dict:
        return self._emit(
            "trade_closed",
            run_id=run_id,
            type=trade_type,
            pnl=round(pnl, 2),
            exit_reason=exit_reason,
        )

    def run_complete(self, run_id: str, trades: int, total_gain: float, elapsed_ms: float) -> dict:
        return self._emit(
            "run_complete",
            run_id=run_id,
            trades=trades,
            total_gain=round(total_gain, 2),
            elapsed_ms=round(elapsed_ms, 1),
        )

    def data_fallback(self, timeframe: str, reason: str) -> dict:
        return self._emit("data_fallback", timeframe=timeframe, reason=reason)

    def validation_failed(self, message: str) -> dict:
        return self._emit("validation_failed", message=message)

    def optimization_complete(self, metric: str, iterations: int, best_score: float) -> dict:
        return self._emit(
            "optimization_complete",
            metric=metric,
            iterations=iterations,
            best_score=round(best_score, 4),
        )

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
