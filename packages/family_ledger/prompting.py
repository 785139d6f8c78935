"""Prompt construction and item serialization for expense categorization.

This module builds:
- A deterministic JSON serialization of numbered items with a fixed field
  order (``id, date, name, price``).
- The system instructions and user content for the classifier, including the
  household category vocabulary.
- The ``text.format`` JSON Schema object for the OpenAI Responses API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from .models import CategorizedItem

ITEM_FIELD_ORDER: tuple[str, ...] = ("id", "date", "name", "price")

BEGIN_MARKER = "BEGIN_ITEMS_JSON"
END_MARKER = "END_ITEMS_JSON"

# Bump the version whenever labels or their guidance change so reports from
# different vocabularies can be told apart in the logs.
CATEGORY_VOCABULARY_VERSION = "2024-08.v1"

CATEGORY_VOCABULARY: tuple[tuple[str, str], ...] = (
    ("鮮奶", "所有鮮奶相關產品"),
    ("水果", "各種水果（但不包括蔬菜）"),
    ("麵包", "麵包、饅頭"),
    ("零嘴", "餅乾、飲料、冰棒、點心、可樂"),
    ("保健品", "營養品、起司片、南瓜籽油"),
    ("機車", "加油、維修"),
    ("生活用品", "清潔用品、衛生紙、電費、瓦斯費、祭品、小配菜（如香菜）"),
    ("家裡煮", "所有食材（肉類、蔬菜、海鮮、雞蛋、調料、湯品等）"),
)

CATEGORY_LABELS: tuple[str, ...] = tuple(label for label, _ in CATEGORY_VOCABULARY)

# Worked input/output pair shown to the classifier after the output contract.
EXAMPLE_BLOCK = (
    "【範例】\n"
    "如果輸入是：\n"
    "#1: 7/1 鳳梨 79\n"
    "#2: 7/2 里肌肉 75\n"
    "#3: 7/3 鮮奶 100\n\n"
    "則返回：\n"
    '{"items": [{"id": 1, "category": "水果"}, '
    '{"id": 2, "category": "家裡煮"}, '
    '{"id": 3, "category": "鮮奶"}]}'
)


def serialize_items_to_json(items: Sequence[CategorizedItem]) -> str:
    """Serialize numbered items to a JSON array with a fixed field order."""

    arr: list[dict[str, Any]] = []
    for item in items:
        arr.append({key: getattr(item, key) for key in ITEM_FIELD_ORDER})
    return json.dumps(arr, ensure_ascii=False)


def format_numbered_list(items: Sequence[CategorizedItem]) -> str:
    """Human-readable ``#id: date name price`` lines, one per item."""

    return "\n".join(f"#{i.id}: {i.date} {i.name} {i.price}" for i in items)


def build_system_instructions() -> str:
    return (
        "你是一個記帳分類專家。請仔細為每個項目分配正確的類別。"
        "每個項目只能分到一個類別。以JSON格式返回結果。"
    )


def build_vocabulary_text(
    vocabulary: Sequence[tuple[str, str]] = CATEGORY_VOCABULARY,
) -> str:
    lines = [f"{n}. {label}：{hint}" for n, (label, hint) in enumerate(vocabulary, start=1)]
    return "\n".join(lines)


def build_user_content(
    items: Sequence[CategorizedItem],
    *,
    vocabulary: Sequence[tuple[str, str]] = CATEGORY_VOCABULARY,
) -> str:
    """Build the user prompt: numbered items, category rules and output contract.

    The items appear twice: as a readable numbered list and as a JSON array
    delimited by ``BEGIN_ITEMS_JSON``/``END_ITEMS_JSON`` so the ``id`` of every
    item is unambiguous.
    """

    count = len(items)
    return (
        "請為每個項目分配一個類別，並以JSON格式返回。\n\n"
        "【輸入資料】\n"
        f"共 {count} 個項目：\n"
        f"{format_numbered_list(items)}\n\n"
        f"{BEGIN_MARKER}\n{serialize_items_to_json(items)}\n{END_MARKER}\n\n"
        "【分類規則】（每個項目只能分到一個類別）\n"
        f"{build_vocabulary_text(vocabulary)}\n"
        "如果以上類別都不適合，可以使用新的類別名稱。\n\n"
        "【輸出格式】\n"
        '請返回JSON object，包含一個items array：{"items": [{"id": 項目編號, "category": "類別名稱"}]}\n\n'
        f"{EXAMPLE_BLOCK}\n\n"
        "【重要】\n"
        f"- 必須為全部 {count} 個項目分類\n"
        "- 每個項目只能分到一個類別\n"
        "- 確保JSON格式正確\n"
    )


def build_text_format() -> dict[str, Any]:
    """Return the strict JSON Schema ``text.format`` object for the Responses API.

    ``category`` is a free string: labels outside the vocabulary are allowed.
    """

    return {
        "type": "json_schema",
        "name": "expense_item_categories",
        "schema": {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "integer"},
                            "category": {"type": "string"},
                        },
                        "required": ["id", "category"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["items"],
            "additionalProperties": False,
        },
        "strict": True,
    }
