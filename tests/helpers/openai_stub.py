"""Test helpers to stub the OpenAI Responses client used by categorize.py.

The stub parses the user-content payload to extract the embedded items JSON
array and returns a deterministic ``{"items": [...]}`` reply. Tests provide a
``decide`` callable mapping each item to a category so the test surface stays
small and focused on inputs/outputs. ``raw_text`` bypasses the mapping and
returns that exact text instead (for malformed-reply tests).
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

BEGIN = "BEGIN_ITEMS_JSON\n"
END = "\nEND_ITEMS_JSON"


def extract_items_from_user_content(user_content: str) -> list[dict[str, Any]]:
    b = user_content.find(BEGIN)
    e = user_content.rfind(END)
    if b == -1 or e == -1 or e <= b:
        raise AssertionError("categorize: user content missing embedded items JSON block")
    return json.loads(user_content[b + len(BEGIN) : e])


class _Resp:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape for ``categorize.py``.

    Parameters
    ----------
    decide:
        Receives an item mapping (``id, date, name, price``) and returns its
        category.
    calls_out:
        Appended with each call's kwargs for lightweight assertions.
    raw_text:
        When set, returned verbatim as ``output_text``.
    """

    def __init__(
        self,
        decide: Callable[[dict[str, Any]], str] | None = None,
        calls_out: list[dict[str, Any]] | None = None,
        *,
        raw_text: str | None = None,
        **client_kwargs: Any,
    ) -> None:
        self._decide = decide or (lambda _item: "家裡煮")
        self._calls = calls_out if calls_out is not None else []
        self._raw_text = raw_text
        self.client_kwargs = client_kwargs

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)
                if self._outer._raw_text is not None:
                    return _Resp(self._outer._raw_text)
                items = extract_items_from_user_content(kwargs["input"])
                out = [{"id": it["id"], "category": self._outer._decide(it)} for it in items]
                return _Resp(json.dumps({"items": out}, ensure_ascii=False))

        self.responses = _Responses(self)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls


def stub_factory(
    decide: Callable[[dict[str, Any]], str] | None = None,
    calls_out: list[dict[str, Any]] | None = None,
    *,
    raw_text: str | None = None,
) -> Callable[..., OpenAIStub]:
    """Return a drop-in for the ``OpenAI`` constructor that ignores client kwargs."""

    def _make(**client_kwargs: Any) -> OpenAIStub:
        return OpenAIStub(decide, calls_out, raw_text=raw_text, **client_kwargs)

    return _make
