"""Plain-text monthly report rendering.

Layout::

    總共 79+120+255=454

    鮮奶 255=255
    8/25   鮮奶   255

    水果 79+120=199
    8/1   鳳梨   79
    8/3   芭樂   120

    -----

    2024年8月家裡開銷：454

    由高至低：
    鮮奶 255
    水果 199

Every line, including the last, ends with a newline.
"""

from __future__ import annotations

from collections.abc import Sequence

from .categorization import sort_groups_by_total
from .models import CategorizedItem, CategoryGroup, sum_prices


def _price_sum_line(items: Sequence[CategorizedItem]) -> str:
    return "+".join(str(item.price) for item in items)


def render_report(
    items: Sequence[CategorizedItem],
    groups: Sequence[CategoryGroup],
    *,
    month_label: str,
) -> str:
    """Render the organize report.

    ``items`` is every numbered item of the month; the headline total covers
    all of them even when the classifier left some uncategorized. ``groups``
    are re-sorted by subtotal, highest first.
    """

    total = sum_prices(items)
    ordered = sort_groups_by_total(groups)

    parts: list[str] = [f"總共 {_price_sum_line(items)}={total}\n\n"]
    for group in ordered:
        parts.append(f"{group.category} {_price_sum_line(group.items)}={group.total}\n")
        for item in group.items:
            parts.append(f"{item.date}   {item.name}   {item.price}\n")
        parts.append("\n")

    parts.append("-----\n\n")
    parts.append(f"{month_label}家裡開銷：{total}\n\n")
    parts.append("由高至低：\n")
    for group in ordered:
        parts.append(f"{group.category} {group.total}\n")
    return "".join(parts)


__all__ = ["render_report"]
