"""Tests for structured JSON event logger."""

import io
import json
from unittest.mock import patch

import pytest

from cli.structured_log import StructuredEventLogger


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(buf: io.StringIO) -> StructuredEventLogger:
    return StructuredEventLogger("silver", enabled=True, stream=buf)


class TestEmit:
    """Basic event emission and format."""

    def test_run_start_json(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.run_start(run_id="abc", timeframe="1h", bars=100, source="synthetic")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "run_start"
        assert record["asset"] == "silver"
        assert record["bars"] == 100
        assert record["source"] == "synthetic"
        assert "ts" in record

    def test_trade_closed_rounds_pnl(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.trade_closed(run_id="abc", trade_type="short", pnl=12.3456, exit_reason="target")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "trade_closed"
        assert record["type"] == "short"
        assert record["pnl"] == 12.35
        assert record["exit_reason"] == "target"

    def test_run_complete(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.run_complete(run_id="abc", trades=3, total_gain=-20.004, elapsed_ms=1.234)
        record = json.loads(buf.getvalue().strip())
        assert record["trades"] == 3
        assert record["total_gain"] == -20.0
        assert record["elapsed_ms"] == 1.2

    def test_one_line_per_event(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.data_fallback(timeframe="1h", reason="fetch failed: boom")
        logger.validation_failed("no bars supplied")
        logger.optimization_complete(metric="sharpe", iterations=20, best_score=1.23456)
        lines = buf.getvalue().strip().splitlines()
        assert [json.loads(x)["event"] for x in lines] == [
            "data_fallback",
            "validation_failed",
            "optimization_complete",
        ]
        assert json.loads(lines[2])["best_score"] == 1.2346

    def test_disabled_writes_nothing(self, buf: io.StringIO) -> None:
        quiet = StructuredEventLogger("silver", enabled=False, stream=buf)
        record = quiet.error("boom")
        assert buf.getvalue() == ""
        assert record["event"] == "error"


class TestWebhook:
    def test_alert_events_posted(self, buf: io.StringIO) -> None:
        ev = StructuredEventLogger("silver", stream=buf, webhook_url="https://hooks.example.com/x")
        with patch("cli.structured_log.urllib.request.urlopen") as urlopen:
            ev.data_fallback(timeframe="1h", reason="no bars")
            ev.run_start(run_id="abc", timeframe="1h", bars=10, source="cache")
        assert urlopen.call_count == 1
        req = urlopen.call_args[0][0]
        assert json.loads(req.data)["event"] == "data_fallback"

    def test_webhook_failure_is_logged_not_raised(self, buf: io.StringIO) -> None:
        ev = StructuredEventLogger("silver", stream=buf, webhook_url="https://hooks.example.com/x")
        with patch("cli.structured_log.urllib.request.urlopen", side_effect=OSError("down")):
            ev.error("boom")
        assert json.loads(buf.getvalue().strip())["event"] == "error"
