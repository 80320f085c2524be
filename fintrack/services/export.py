import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("date", "type", "category", "description", "amount")
REPORT_COLUMNS = DEFAULT_COLUMNS + ("source",)

COLUMN_LABELS = {
    "date": "Date",
    "type": "Type",
    "category": "Category",
    "description": "Description",
    "amount": "Amount",
    "source": "Source",
}


def _format_amount(value) -> str:
    # fixed-point: no currency sign, no grouping, no exponent
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return format(value, "f")


def _cell(trx, column: str) -> str:
    value = getattr(trx, column, None)
    if value is None:
        return ""
    if column == "amount":
        return _format_amount(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_csv(transactions: Iterable, columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
    """Serialize transactions to CSV text.

    Every field is quoted and embedded quotes are doubled, so free-text
    descriptions with commas or quotes survive a parse. Rows keep the input
    order; sort or filter before exporting.
    """
    unknown = [c for c in columns if c not in COLUMN_LABELS]
    if unknown:
        raise ValueError(f"Unknown export columns: {', '.join(unknown)}")

    rows = [[_cell(t, c) for c in columns] for t in transactions]
    df = pd.DataFrame(rows, columns=[COLUMN_LABELS[c] for c in columns], dtype=object)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, doublequote=True, lineterminator="\n")
    return text.rstrip("\n")


def export_filename(start: Union[date, str], end: Union[date, str], style: str = "transactions") -> str:
    start_s = start.isoformat() if isinstance(start, date) else str(start)
    end_s = end.isoformat() if isinstance(end, date) else str(end)
    if style == "report":
        return f"finance-report-{start_s}-to-{end_s}.csv"
    if style == "transactions":
        return f"transactions_{start_s}_{end_s}.csv"
    raise ValueError(f"Unknown export style: {style}")


def save_csv(text: str, path: Union[str, Path]) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)
    logger.info("Exported %d bytes of CSV to %s", len(text.encode("utf-8")), target)
    return target
