"""Write parsed records as JSONL, CSV, or Arrow IPC."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Any

import orjson
import pyarrow as pa

from fixedrec.runtime.dispatcher import ParseOutcome, record_to_dict

SUPPORTED_FORMATS = {"json", "jsonl", "csv", "arrow"}
META_COLUMNS = ("line_number", "record_type", "tag", "error")


def _default(obj: object) -> object:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def outcome_to_row(outcome: ParseOutcome) -> dict[str, Any]:
    """Flatten a parse outcome into a JSON-friendly row."""
    row: dict[str, Any] = {
        "line_number": outcome.line_number,
        "record_type": type(outcome.record).__name__ if outcome.ok else None,
        "tag": outcome.tag,
        "error": str(outcome.error) if outcome.error else None,
        "fields": record_to_dict(outcome.record) if outcome.ok else {},
    }
    return row


def dumps(payload: object, indent: bool = False) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(payload, default=_default, option=option)


def records_to_jsonl(outcomes: Iterable[ParseOutcome], path: Path) -> int:
    """Write one JSON object per line; return the number of rows written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("wb") as f:
        for outcome in outcomes:
            f.write(dumps(outcome_to_row(outcome)) + b"\n")
            count += 1
    return count


def records_to_csv(outcomes: Iterable[ParseOutcome], path: Path) -> int:
    """Write rows with one column per field name seen across all variants."""
    rows = [outcome_to_row(o) for o in outcomes]
    field_columns: list[str] = []
    for row in rows:
        for name in row["fields"]:
            column = _csv_column(name)
            if column not in field_columns:
                field_columns.append(column)
    header = [*META_COLUMNS, *field_columns]

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        for row in rows:
            fields = row.pop("fields")
            writer.writerow({**row, **{_csv_column(k): v for k, v in fields.items()}})
    return len(rows)


def _csv_column(name: str) -> str:
    # field names that collide with a metadata column get a prefix
    return f"field.{name}" if name in META_COLUMNS else name


def records_to_arrow(outcomes: Iterable[ParseOutcome], path: Path) -> int:
    """Write rows to Arrow IPC; field values are stored as a JSON column."""
    rows = [outcome_to_row(o) for o in outcomes]
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.table(
        {
            "line_number": pa.array([r["line_number"] for r in rows], type=pa.int64()),
            "record_type": pa.array([r["record_type"] for r in rows], type=pa.string()),
            "tag": pa.array([r["tag"] for r in rows], type=pa.string()),
            "error": pa.array([r["error"] for r in rows], type=pa.string()),
            # variants differ in shape; keep the schema flat
            "fields": pa.array([dumps(r["fields"]).decode() for r in rows], type=pa.string()),
        }
    )
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            writer.write_table(table)
    return len(rows)
