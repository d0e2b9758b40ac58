import json
import logging

import pytest
from config.logging import JsonFormatter, SamplingFilter
from rest_framework.test import APIClient


def make_record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord("kso.orders", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_fields():
    record = make_record("order.created", event="order.created", order_id=7, total_amount="55.00")

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "order.created"
    assert payload["level"] == "INFO"
    assert payload["name"] == "kso.orders"
    assert payload["order_id"] == 7
    assert payload["time"].endswith("Z")


def test_json_formatter_stringifies_unserializable_extra():
    record = make_record("webhook.processed", reason=object())

    payload = json.loads(JsonFormatter().format(record))

    assert payload["reason"].startswith("<object")


def test_sampling_filter_never_drops_allowed_events():
    f = SamplingFilter(rate=0.0, allow_events=["fulfillment.failed"])

    assert f.filter(make_record("fulfillment.failed", event="fulfillment.failed")) is True
    assert f.filter(make_record("order.created", event="order.created")) is False


def test_sampling_filter_only_samples_configured_levels():
    f = SamplingFilter(rate=0.0, levels=["INFO"])

    assert f.filter(make_record("boom", level=logging.ERROR)) is True


def test_sampling_filter_bad_rate_keeps_everything():
    assert SamplingFilter(rate="lots").filter(make_record("order.created")) is True


@pytest.mark.django_db
def test_health_reports_database():
    r = APIClient().get("/health/")

    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok"}
