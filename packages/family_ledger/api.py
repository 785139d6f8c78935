"""Wiring for the ``family_ledger`` runtime.

Builds the ledger, classifier, reply channel and dispatcher from
:class:`~family_ledger.config.Settings`. The CLI and the ASGI entrypoint both
go through here so a process always assembles the same object graph.
"""

from __future__ import annotations

from fastapi import FastAPI

from .categorize import Classifier, OpenAIClassifier
from .config import Settings, load_settings
from .dispatcher import CommandDispatcher
from .ledger import LedgerStore
from .line_client import LineReplyClient, LoggingReplyClient, ReplyClient
from .logging_setup import get_logger
from .store import DocumentStore, SqlDocumentStore
from .webhook import create_app

_logger = get_logger("family_ledger.api")


def build_ledger(settings: Settings, *, store: DocumentStore | None = None) -> LedgerStore:
    return LedgerStore(store or SqlDocumentStore(database_url=settings.database_url))


def build_classifier(settings: Settings) -> Classifier | None:
    """Return the OpenAI classifier, or ``None`` when no API key is configured."""

    if not settings.classifier_configured:
        return None
    return OpenAIClassifier(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout_seconds,
    )


def build_replier(settings: Settings) -> ReplyClient:
    if not settings.line_channel_access_token:
        _logger.warning("api:line_token_missing replies will only be logged")
        return LoggingReplyClient()
    return LineReplyClient(
        settings.line_channel_access_token, timeout=settings.line_timeout_seconds
    )


def build_dispatcher(
    settings: Settings,
    *,
    store: DocumentStore | None = None,
    replier: ReplyClient | None = None,
) -> CommandDispatcher:
    return CommandDispatcher(
        build_ledger(settings, store=store),
        replier or build_replier(settings),
        classifier=build_classifier(settings),
        timezone=settings.timezone,
    )


def build_app(settings: Settings | None = None) -> FastAPI:
    """ASGI app factory (``uvicorn --factory family_ledger.api:build_app``)."""

    return create_app(build_dispatcher(settings or load_settings()))


__all__ = [
    "build_app",
    "build_classifier",
    "build_dispatcher",
    "build_ledger",
    "build_replier",
]
