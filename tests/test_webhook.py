from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from family_ledger.dispatcher import CommandDispatcher
from family_ledger.ledger import LedgerStore
from family_ledger.line_client import LineReplyClient
from family_ledger.webhook import LIVENESS_TEXT, create_app
from tests.helpers.doubles import MemoryDocumentStore, RecordingReplyClient


@pytest.fixture
def client(
    memory_ledger: LedgerStore, replies: RecordingReplyClient, clock: list[datetime]
) -> TestClient:
    dispatcher = CommandDispatcher(memory_ledger, replies, clock=lambda: clock[0])
    return TestClient(create_app(dispatcher), raise_server_exceptions=False)


def _text_event(text: str, token: str) -> dict:
    return {
        "type": "message",
        "replyToken": token,
        "message": {"type": "text", "text": text},
    }


@pytest.mark.parametrize("path", ["/", "/webhook"])
def test_get_is_liveness(client: TestClient, path: str) -> None:
    resp = client.get(path)
    assert resp.status_code == 200
    assert resp.text == LIVENESS_TEXT


def test_post_dispatches_text_events_in_order(
    client: TestClient, replies: RecordingReplyClient
) -> None:
    body = {
        "events": [
            _text_event("鮮奶 255", "t1"),
            {"type": "follow", "replyToken": "t2"},
            {"type": "message", "replyToken": "t3", "message": {"type": "sticker"}},
            _text_event("哈囉大家好", "t4"),
            _text_event("查看", "t5"),
        ]
    }

    resp = client.post("/webhook", json=body)

    assert resp.status_code == 200
    assert resp.text == "OK"
    assert replies.sent == [
        ("t1", "✅ 已記錄 1 項消費，總計：255"),
        ("t5", "8/25\n鮮奶 255"),
    ]


def test_post_without_events_is_ok(client: TestClient, replies: RecordingReplyClient) -> None:
    resp = client.post("/", json={})
    assert resp.status_code == 200
    assert resp.text == "OK"
    assert replies.sent == []


@pytest.mark.parametrize("method", ["put", "delete", "patch"])
def test_other_methods_are_405(client: TestClient, method: str) -> None:
    resp = getattr(client, method)("/webhook")
    assert resp.status_code == 405
    assert resp.text == "Method Not Allowed"


def test_malformed_body_is_500(client: TestClient) -> None:
    resp = client.post(
        "/webhook", content=b"not json", headers={"content-type": "application/json"}
    )
    assert resp.status_code == 500
    assert resp.text == "Internal Server Error"


def test_dispatcher_crash_is_500(
    memory_store: MemoryDocumentStore, clock: list[datetime]
) -> None:
    class _BrokenReplies:
        def send(self, reply_token: str, text: str) -> None:
            raise RuntimeError("boom")

    dispatcher = CommandDispatcher(
        LedgerStore(memory_store), _BrokenReplies(), clock=lambda: clock[0]
    )
    client = TestClient(create_app(dispatcher), raise_server_exceptions=False)

    resp = client.post("/webhook", json={"events": [_text_event("查看", "t")]})

    assert resp.status_code == 500
    assert resp.text == "Internal Server Error"


def test_shutdown_closes_reply_client(memory_ledger: LedgerStore, clock: list[datetime]) -> None:
    replier = LineReplyClient(
        "tok", transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    )
    dispatcher = CommandDispatcher(memory_ledger, replier, clock=lambda: clock[0])

    with TestClient(create_app(dispatcher)) as client:
        assert client.post("/webhook", json={"events": [_text_event("鮮奶 255", "t")]}).text == "OK"
        assert not replier.is_closed

    assert replier.is_closed
