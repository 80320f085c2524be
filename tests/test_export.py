from __future__ import annotations

import csv
import io
from decimal import Decimal

import pytest

from conftest import make_trx
from fintrack.services import export


def _parse(text: str):
    return list(csv.reader(io.StringIO(text)))


def test_header_comes_first() -> None:
    rows = _parse(export.to_csv([]))
    assert rows == [["Date", "Type", "Category", "Description", "Amount"]]


def test_round_trip_keeps_tricky_descriptions() -> None:
    transactions = [
        make_trx("expense", 12.5, "Food", "2025-02-03", 'Lunch, "quick" bite'),
        make_trx("income", 5000, "Salary", "2025-02-01", "Monthly salary"),
        make_trx("expense", 1200, "Rent", "2025-02-02", "line one\nline two"),
    ]
    rows = _parse(export.to_csv(transactions))[1:]
    assert [tuple(r) for r in rows] == [
        ("2025-02-03", "expense", "Food", 'Lunch, "quick" bite', "12.5"),
        ("2025-02-01", "income", "Salary", "Monthly salary", "5000"),
        ("2025-02-02", "expense", "Rent", "line one\nline two", "1200"),
    ]


def test_every_field_is_quoted_and_quotes_doubled() -> None:
    text = export.to_csv([make_trx("expense", 3, "Food", "2025-02-03", 'say "hi"')])
    assert text.splitlines()[1] == '"2025-02-03","expense","Food","say ""hi""","3"'


def test_amount_is_plain_decimal() -> None:
    trx = make_trx("expense", 1, "Rent", "2025-02-02")
    trx.amount = Decimal("1.2E+4")
    rows = _parse(export.to_csv([trx]))
    assert rows[1][-1] == "12000"

    trx.amount = Decimal("1234567.80")
    assert _parse(export.to_csv([trx]))[1][-1] == "1234567.80"


def test_report_columns_include_source() -> None:
    transactions = [
        make_trx("income", 800, "Freelance", "2025-02-05", "Web design", source="Upwork"),
        make_trx("expense", 150, "Travel", "2025-02-06", "Uber rides"),
    ]
    rows = _parse(export.to_csv(transactions, export.REPORT_COLUMNS))
    assert rows[0][-1] == "Source"
    assert rows[1][-1] == "Upwork"
    assert rows[2][-1] == ""


def test_unknown_column_is_rejected() -> None:
    with pytest.raises(ValueError):
        export.to_csv([], ["date", "merchant"])


def test_export_filenames() -> None:
    assert export.export_filename("2025-01-01", "2025-02-28") == "transactions_2025-01-01_2025-02-28.csv"
    assert (
        export.export_filename("2025-01-01", "2025-02-28", style="report")
        == "finance-report-2025-01-01-to-2025-02-28.csv"
    )
    with pytest.raises(ValueError):
        export.export_filename("2025-01-01", "2025-02-28", style="xlsx")


def test_save_csv_writes_utf8(tmp_path) -> None:
    text = export.to_csv([make_trx("expense", 40, "Food", "2025-02-03", "Café crème")])
    target = export.save_csv(text, tmp_path / "out" / "report.csv")
    assert target.read_text(encoding="utf-8") == text
