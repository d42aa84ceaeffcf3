from __future__ import annotations

import json
import logging

from settlement.core.logging_config import JsonFormatter


def test_json_formatter_includes_event_extras():
    record = logging.LogRecord("settlement.test", logging.INFO, __file__, 1, "invoice.created", None, None)
    record.event = "invoice.created"
    record.invoice_id = 7

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "invoice.created"
    assert payload["event"] == "invoice.created"
    assert payload["invoice_id"] == 7
    assert payload["level"] == "INFO"
