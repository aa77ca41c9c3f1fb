"""Tests for push notification payloads, classification and fan-out."""
from __future__ import annotations

import json
import threading

import pytest
import requests
from pywebpush import WebPushException
from sqlalchemy import select

from chatrelay.db.models import PushSubscription
from chatrelay.services import push as push_module
from chatrelay.services.push import (
    ATTACHMENT_FALLBACK_BODY,
    DeliveryStatus,
    WebPushTransport,
    build_notification,
    classify_status_code,
)
from chatrelay.utils.exceptions import PushConfigurationError
from tests.stubs import RecordingTransport


def _endpoints(db_session) -> set[str]:
    db_session.expire_all()
    return set(db_session.scalars(select(PushSubscription.endpoint)))


def test_notification_truncates_long_text_to_exactly_100_characters():
    text = "x" * 99 + "yz" + "tail"

    payload = build_notification(
        session_id="abc",
        sender="u1",
        text=text,
        file_type="",
        file_url="",
        client_url="http://client.test/",
    )

    assert payload.body == text[:100]
    assert len(payload.body) == 100
    assert payload.title == "New message from u1"
    assert payload.url == "http://client.test/chat/abc"


def test_notification_falls_back_when_text_is_empty():
    payload = build_notification(
        session_id="abc",
        sender="u1",
        text="",
        file_type="audio/webm",
        file_url="http://files.test/a.webm",
        client_url="http://client.test",
    )

    assert payload.body == ATTACHMENT_FALLBACK_BODY
    assert payload.icon is None
    assert "icon" not in json.loads(payload.to_json())


def test_notification_uses_image_as_icon():
    payload = build_notification(
        session_id="abc",
        sender="u1",
        text="look",
        file_type="image/png",
        file_url="http://files.test/p.png",
        client_url="http://client.test",
    )

    assert json.loads(payload.to_json()) == {
        "title": "New message from u1",
        "body": "look",
        "icon": "http://files.test/p.png",
        "url": "http://client.test/chat/abc",
    }


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (201, DeliveryStatus.DELIVERED),
        (404, DeliveryStatus.GONE),
        (410, DeliveryStatus.GONE),
        (429, DeliveryStatus.TRANSIENT),
        (503, DeliveryStatus.TRANSIENT),
        (None, DeliveryStatus.TRANSIENT),
        (400, DeliveryStatus.FAILED),
        (413, DeliveryStatus.FAILED),
    ],
)
def test_classify_status_code(status_code, expected):
    assert classify_status_code(status_code) is expected


def test_webpush_transport_requires_private_key():
    with pytest.raises(PushConfigurationError):
        WebPushTransport(None, "mailto:ops@example.com")


def test_webpush_transport_classifies_gone_response(monkeypatch):
    response = requests.Response()
    response.status_code = 410

    def fake_webpush(**kwargs):
        raise WebPushException("Push failed: 410 Gone", response=response)

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    transport = WebPushTransport("private-key", "mailto:ops@example.com")

    outcome = transport.send({"endpoint": "E1", "keys": {}}, "{}")

    assert outcome.status is DeliveryStatus.GONE
    assert outcome.status_code == 410


def test_webpush_transport_treats_network_errors_as_transient(monkeypatch):
    def fake_webpush(**kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    transport = WebPushTransport("private-key", "mailto:ops@example.com")

    outcome = transport.send({"endpoint": "E1", "keys": {}}, "{}")

    assert outcome.status is DeliveryStatus.TRANSIENT


def test_webpush_transport_passes_vapid_claims(monkeypatch):
    recorded = {}
    response = requests.Response()
    response.status_code = 201

    def fake_webpush(**kwargs):
        recorded.update(kwargs)
        return response

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    transport = WebPushTransport("private-key", "mailto:ops@example.com", ttl=60, timeout=3.0)

    outcome = transport.send({"endpoint": "E1", "keys": {"p256dh": "p", "auth": "a"}}, '{"title": "t"}')

    assert outcome.status is DeliveryStatus.DELIVERED
    assert recorded["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert recorded["vapid_private_key"] == "private-key"
    assert recorded["ttl"] == 60
    assert recorded["timeout"] == 3.0
    assert recorded["data"] == '{"title": "t"}'


@pytest.mark.asyncio
async def test_dispatch_attempts_each_subscription_once_with_shared_payload(
    make_push_service, add_subscription
):
    for endpoint in ("E1", "E2", "E3"):
        add_subscription(endpoint)
    add_subscription("OTHER", session_id="xyz")
    transport = RecordingTransport(barrier=threading.Barrier(3))
    service = make_push_service(transport, max_concurrency=3)

    report = await service.dispatch(session_id="abc", sender="u1", text="hello")

    assert sorted(transport.endpoints) == ["E1", "E2", "E3"]
    payloads = {payload for _, payload in transport.calls}
    assert len(payloads) == 1
    assert json.loads(payloads.pop())["body"] == "hello"
    assert report.attempted == 3
    assert report.delivered == 3
    # The barrier only opens if all three attempts were in flight together.
    assert transport.barrier.broken is False


@pytest.mark.asyncio
async def test_gone_subscription_is_pruned_and_not_targeted_again(
    make_push_service, add_subscription, db_session
):
    add_subscription("E1")
    add_subscription("E2")
    transport = RecordingTransport({"E1": DeliveryStatus.GONE})
    service = make_push_service(transport)

    report = await service.dispatch(session_id="abc", sender="u1", text="first")

    assert report.pruned == 1
    assert _endpoints(db_session) == {"E2"}

    await service.dispatch(session_id="abc", sender="u1", text="second")

    assert transport.endpoints.count("E1") == 1
    assert transport.endpoints.count("E2") == 2


@pytest.mark.asyncio
async def test_transient_and_failed_subscriptions_are_retained(
    make_push_service, add_subscription, db_session
):
    add_subscription("E1")
    add_subscription("E2")
    transport = RecordingTransport(
        {"E1": DeliveryStatus.TRANSIENT, "E2": DeliveryStatus.FAILED}
    )
    service = make_push_service(transport)

    report = await service.dispatch(session_id="abc", sender="u1", text="first")
    await service.dispatch(session_id="abc", sender="u1", text="second")

    assert report.failed == 2
    assert report.pruned == 0
    assert _endpoints(db_session) == {"E1", "E2"}
    assert sorted(transport.endpoints) == ["E1", "E1", "E2", "E2"]


@pytest.mark.asyncio
async def test_transport_exception_is_isolated(make_push_service, add_subscription, db_session):
    add_subscription("E1")
    add_subscription("E2")
    transport = RecordingTransport({"E1": RuntimeError("boom")})
    service = make_push_service(transport)

    report = await service.dispatch(session_id="abc", sender="u1", text="hello")

    assert report.delivered == 1
    assert report.failed == 1
    assert _endpoints(db_session) == {"E1", "E2"}


@pytest.mark.asyncio
async def test_slow_attempt_times_out_as_transient(make_push_service, add_subscription, db_session):
    add_subscription("E1")
    transport = RecordingTransport(delay=0.5)
    service = make_push_service(transport, timeout_seconds=0.05)

    report = await service.dispatch(session_id="abc", sender="u1", text="hello")

    assert report.failed == 1
    assert report.delivered == 0
    assert _endpoints(db_session) == {"E1"}


@pytest.mark.asyncio
async def test_dispatch_is_skipped_without_transport(make_push_service, add_subscription):
    add_subscription("E1")
    service = make_push_service(None)

    report = await service.dispatch(session_id="abc", sender="u1", text="hello")

    assert service.enabled is False
    assert report.attempted == 0


@pytest.mark.asyncio
async def test_dispatch_without_subscriptions(make_push_service):
    transport = RecordingTransport()
    service = make_push_service(transport)

    report = await service.dispatch(session_id="abc", sender="u1", text="hello")

    assert report.attempted == 0
    assert transport.calls == []
