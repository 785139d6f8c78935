"""Monthly organize flow: filter, number, classify, reconcile, render.

Public API:
    - :class:`OpenAIClassifier`
    - :func:`organize_expenses`

No side effects occur at import time (no client creation, no environment
reads). The OpenAI client is created lazily on the first ``classify`` call.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Protocol

from openai import OpenAI, OpenAIError
from openai.types.responses import ResponseTextConfigParam

from . import prompting
from .categorization import filter_entries_by_month, number_items, reconcile_categories
from .logging_setup import get_logger
from .models import CategorizedItem, Ledger
from .periods import MonthSelector, resolve_month
from .report import render_report

# ---- Tunables ----------------------------------------------------------------

DEFAULT_MODEL: str = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS: float = 60.0
_TEMPERATURE: float = 0.1

EMPTY_LEDGER_REPLY = "目前沒有記帳資料可以整理"

_logger = get_logger("family_ledger.categorize")


class CategorizationError(RuntimeError):
    """The classifier could not be reached or returned an unusable reply."""


class Classifier(Protocol):
    def classify(self, items: Sequence[CategorizedItem]) -> Mapping[str, Any] | list[Any]: ...


OrganizeKind = Literal["report", "empty_ledger", "empty_period", "classifier_unavailable"]


@dataclass(frozen=True, slots=True)
class OrganizeOutcome:
    kind: OrganizeKind
    text: str


# ---- OpenAI classifier -------------------------------------------------------


def _extract_response_json(resp: Any) -> Mapping[str, Any] | list[Any]:
    """Decode the JSON payload from an OpenAI Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``.
    Raises ``ValueError`` when no text is found or it is not valid JSON.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Classifier output was not valid JSON") from e
    if not isinstance(decoded, (Mapping, list)):
        raise ValueError(f"Classifier output must be a JSON object or array, got {text[:80]!r}")
    return decoded


class OpenAIClassifier:
    """Classifier backed by the OpenAI Responses API.

    Parameters
    ----------
    api_key:
        Passed to the SDK; ``None`` lets the SDK read ``OPENAI_API_KEY``.
    model:
        Responses API model name.
    timeout:
        Per-request timeout in seconds. Requests are not retried.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._client: OpenAI | None = None

    def _create_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, timeout=self.timeout)
        return self._client

    def classify(self, items: Sequence[CategorizedItem]) -> Mapping[str, Any] | list[Any]:
        text_cfg: ResponseTextConfigParam = {"format": prompting.build_text_format()}  # type: ignore[typeddict-item]
        t0 = time.perf_counter()
        try:
            resp = self._create_client().responses.create(
                model=self.model,
                instructions=prompting.build_system_instructions(),
                input=prompting.build_user_content(items),
                text=text_cfg,
                temperature=_TEMPERATURE,
            )
            decoded = _extract_response_json(resp)
        except (OpenAIError, ValueError) as e:
            dt_ms = (time.perf_counter() - t0) * 1000.0
            _logger.error(
                "categorize:classify_failed items=%d latency_ms=%.2f error=%s",
                len(items),
                dt_ms,
                e.__class__.__name__,
            )
            raise CategorizationError(f"classifier request failed: {e}") from e

        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.info(
            "categorize:classify_done items=%d model=%s vocabulary=%s latency_ms=%.2f",
            len(items),
            self.model,
            prompting.CATEGORY_VOCABULARY_VERSION,
            dt_ms,
        )
        return decoded


# ---- Organize flow -----------------------------------------------------------


def _empty_period_reply(selector: MonthSelector) -> str:
    return f"{selector.reply_label}沒有記帳資料可以整理"


def _classifier_unavailable_reply(selector: MonthSelector, days: int, items: int) -> str:
    return (
        f"🤖 準備整理{selector.reply_label}的記帳資料...\n"
        f"找到 {days} 天，共 {items} 筆消費\n\n"
        "⚠️ OpenAI API 尚未設定，請聯絡管理員"
    )


def organize_expenses(
    ledger: Ledger,
    year_month: str | None,
    *,
    classifier: Classifier | None,
    moment: datetime,
) -> OrganizeOutcome:
    """Build the categorized report for one month of ``ledger``.

    ``year_month`` is a ``YYYYMM`` literal or ``None`` for the month that
    contains ``moment`` (already in the configured timezone). With no
    ``classifier`` the outcome is a notice rather than a report.

    Raises :class:`CategorizationError` when the classifier fails or its reply
    has no recognizable item list; ``ValueError`` for a malformed
    ``year_month``.
    """

    if not ledger.entries:
        return OrganizeOutcome(kind="empty_ledger", text=EMPTY_LEDGER_REPLY)

    selector = resolve_month(year_month, moment=moment)
    entries = filter_entries_by_month(ledger.entries, selector)
    if not entries:
        return OrganizeOutcome(kind="empty_period", text=_empty_period_reply(selector))

    if classifier is None:
        item_count = sum(len(e.items) for e in entries)
        _logger.warning(
            "categorize:classifier_unavailable month=%s days=%d items=%d",
            selector.prefix,
            len(entries),
            item_count,
        )
        return OrganizeOutcome(
            kind="classifier_unavailable",
            text=_classifier_unavailable_reply(selector, len(entries), item_count),
        )

    items = number_items(entries)
    _logger.info(
        "categorize:organize_start month=%s days=%d items=%d",
        selector.prefix,
        len(entries),
        len(items),
    )
    body = classifier.classify(items)
    try:
        result = reconcile_categories(body, items)
    except ValueError as e:
        raise CategorizationError(str(e)) from e

    for warning in result.warnings:
        _logger.warning("categorize:reconcile %s", warning)

    text = render_report(items, result.groups, month_label=selector.label)
    _logger.info(
        "categorize:organize_done month=%s categories=%d categorized=%d/%d",
        selector.prefix,
        len(result.groups),
        len(result.assigned),
        len(items),
    )
    return OrganizeOutcome(kind="report", text=text)


__all__ = [
    "CategorizationError",
    "Classifier",
    "DEFAULT_MODEL",
    "OpenAIClassifier",
    "OrganizeOutcome",
    "organize_expenses",
]
