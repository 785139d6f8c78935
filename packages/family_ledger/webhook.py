"""FastAPI app receiving LINE webhook events.

Both ``/`` and ``/webhook`` accept every method:

- ``GET`` answers a liveness string.
- ``POST`` dispatches each text-message event in order and always answers
  ``OK`` once every event is handled.
- Anything else gets ``405``.

Any exception while handling a request becomes ``500 Internal Server Error``.
On shutdown the dispatcher's reply client is closed when it has a ``close``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from .dispatcher import CommandDispatcher
from .logging_setup import get_logger

LIVENESS_TEXT = "Family Expense Bot is running!"

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_logger = get_logger("family_ledger.webhook")


def _text_events(body: Any) -> list[tuple[str, str]]:
    """Return ``(text, reply_token)`` for every text-message event in ``body``."""

    if not isinstance(body, Mapping):
        raise ValueError("webhook body must be a JSON object")
    out: list[tuple[str, str]] = []
    for event in body.get("events") or []:
        if not isinstance(event, Mapping) or event.get("type") != "message":
            continue
        message = event.get("message") or {}
        if message.get("type") != "text":
            continue
        out.append((str(message.get("text") or ""), str(event.get("replyToken") or "")))
    return out


def create_app(dispatcher: CommandDispatcher) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        # The app owns the reply channel for its lifetime.
        close = getattr(app.state.dispatcher.replier, "close", None)
        if callable(close):
            close()
            _logger.info("webhook:shutdown reply_client_closed=true")

    app = FastAPI(
        title="Family Ledger Webhook", docs_url=None, redoc_url=None, lifespan=lifespan
    )
    app.state.dispatcher = dispatcher

    async def handle(request: Request) -> PlainTextResponse:
        try:
            if request.method == "GET":
                return PlainTextResponse(LIVENESS_TEXT)
            if request.method != "POST":
                return PlainTextResponse("Method Not Allowed", status_code=405)

            events = _text_events(await request.json())
            for text, reply_token in events:
                outcome = await run_in_threadpool(
                    request.app.state.dispatcher.handle_text, text, reply_token
                )
                _logger.debug("webhook:event status=%s command=%s", outcome.status, outcome.command)
            return PlainTextResponse("OK")
        except Exception as e:  # noqa: BLE001 - every failure maps to a fixed 500 body
            _logger.exception("webhook:error method=%s error=%s", request.method, e)
            return PlainTextResponse("Internal Server Error", status_code=500)

    for path in ("/", "/webhook"):
        app.add_api_route(path, handle, methods=_ALL_METHODS, include_in_schema=False)
    return app


__all__ = ["LIVENESS_TEXT", "create_app"]
