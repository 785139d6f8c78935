"""Outbound chat replies via the LINE Messaging API reply endpoint."""

from __future__ import annotations

from typing import Protocol

import httpx

from .logging_setup import get_logger

LINE_REPLY_URL = "https://api.line.me/v2/bot/message/reply"

_logger = get_logger("family_ledger.line_client")


class ReplyClient(Protocol):
    def send(self, reply_token: str, text: str) -> None: ...


class LineReplyClient:
    """Posts a single text message for ``reply_token``.

    Failures (HTTP errors and transport errors alike) are logged and
    swallowed: a lost reply never aborts the command that produced it, and
    nothing is retried.
    """

    def __init__(
        self,
        access_token: str,
        *,
        timeout: httpx.Timeout | float = 10.0,
        url: str = LINE_REPLY_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {access_token}"},
        )

    def send(self, reply_token: str, text: str) -> None:
        payload = {"replyToken": reply_token, "messages": [{"type": "text", "text": text}]}
        try:
            resp = self._client.post(self._url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            _logger.error(
                "line:reply_failed status=%d body=%s",
                exc.response.status_code,
                exc.response.text[:200],
            )
            return
        except httpx.RequestError as exc:
            _logger.error("line:reply_failed error=%s detail=%s", exc.__class__.__name__, exc)
            return
        _logger.debug("line:reply_sent chars=%d", len(text))

    def close(self) -> None:
        self._client.close()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed


class LoggingReplyClient:
    """Reply client for local runs without a LINE token: logs instead of sending."""

    def send(self, reply_token: str, text: str) -> None:
        _logger.info("line:reply_suppressed token=%s text=%r", reply_token, text)


__all__ = ["LINE_REPLY_URL", "LineReplyClient", "LoggingReplyClient", "ReplyClient"]
