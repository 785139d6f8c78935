from datetime import UTC, datetime

import pytest

from family_ledger.ledger import format_aggregated_text
from family_ledger.models import DateEntry, Item, Ledger
from family_ledger.parser import (
    is_date_header,
    parse_expense_line,
    parse_expense_message,
    parse_historical_block,
)

# ---- Expense lines -----------------------------------------------------------


@pytest.mark.parametrize(
    ("line", "name", "price"),
    [
        ("鮮奶 255", "鮮奶", 255),
        ("  地瓜   130  ", "地瓜", 130),
        ("紅蘿蔔29", "紅蘿蔔", 29),
        ("Costco 衛生紙 2 包 399", "Costco 衛生紙 2 包", 399),
        ("7-11 咖啡 45", "7-11 咖啡", 45),
    ],
)
def test_parse_expense_line_recovers_name_and_price(line: str, name: str, price: int) -> None:
    assert parse_expense_line(line) == Item(name=name, price=price)


@pytest.mark.parametrize(
    "line",
    [
        "哈囉大家好",
        "",
        "   ",
        "255",  # empty name
        "鮮奶 0",  # zero price
        "鮮奶 ２５５",  # full-width digits are not prices
        "鮮奶 255元",
    ],
)
def test_parse_expense_line_rejects_non_items(line: str) -> None:
    assert parse_expense_line(line) is None


def test_parse_expense_line_takes_only_trailing_digit_run() -> None:
    item = parse_expense_line("鮮奶 12.5")
    assert item == Item(name="鮮奶 12.", price=5)


def test_parse_expense_message_multiple_lines_and_total() -> None:
    result = parse_expense_message("地瓜 130\n紅蘿蔔 29")
    assert [(i.name, i.price) for i in result.items] == [("地瓜", 130), ("紅蘿蔔", 29)]
    assert result.total == 159
    assert result.is_expense


def test_parse_expense_message_skips_blank_and_chatter_lines() -> None:
    result = parse_expense_message("\n鮮奶 255\n\n今天好熱\n 麵包 60 \n")
    assert [(i.name, i.price) for i in result.items] == [("鮮奶", 255), ("麵包", 60)]
    assert result.total == 315


@pytest.mark.parametrize("message", [None, "", "哈囉大家好", 123])
def test_parse_expense_message_not_an_expense(message) -> None:
    result = parse_expense_message(message)
    assert result.items == ()
    assert result.total == 0
    assert not result.is_expense


# ---- Historical blocks -------------------------------------------------------

STAMP = datetime(2024, 8, 30, 12, 0, tzinfo=UTC)


def test_is_date_header() -> None:
    assert is_date_header("8/4")
    assert is_date_header(" 12/31 ")
    assert not is_date_header("2024/8/4")
    assert not is_date_header("8/4 鮮奶")
    assert not is_date_header("123/4")


def test_parse_historical_block_groups_items_under_headers() -> None:
    text = "8/4\n鮮奶 255\n8/6\n紅蘿蔔 29\n地瓜 130\n"
    entries = parse_historical_block(text, now=STAMP)

    assert [e.date for e in entries] == ["8/4", "8/6"]
    assert [(i.name, i.price) for i in entries[0].items] == [("鮮奶", 255)]
    assert [(i.name, i.price) for i in entries[1].items] == [("紅蘿蔔", 29), ("地瓜", 130)]
    assert all(e.timestamp == STAMP for e in entries)


def test_parse_historical_block_skips_empty_sections_and_orphan_items() -> None:
    text = "孤兒 10\n8/1\n8/2\n沒價格\n8/3\n麵包 45\n"
    entries = parse_historical_block(text, now=STAMP)

    assert [e.date for e in entries] == ["8/3"]
    assert entries[0].items == [Item(name="麵包", price=45)]


def test_parse_historical_block_keeps_repeated_headers_as_separate_entries() -> None:
    entries = parse_historical_block("8/4\n鮮奶 255\n8/4\n麵包 45", now=STAMP)
    assert [e.date for e in entries] == ["8/4", "8/4"]


def test_rendered_ledger_round_trips_through_historical_parser() -> None:
    ledger = Ledger(
        entries=[
            DateEntry(date="8/4", items=[Item(name="鮮奶", price=255)]),
            DateEntry(
                date="8/6",
                items=[Item(name="紅蘿蔔", price=29), Item(name="有機 地瓜", price=130)],
            ),
        ]
    )

    entries = parse_historical_block(format_aggregated_text(ledger), now=STAMP)

    def triples(es):
        return sorted((e.date, i.name, i.price) for e in es for i in e.items)

    assert triples(entries) == triples(ledger.entries)
