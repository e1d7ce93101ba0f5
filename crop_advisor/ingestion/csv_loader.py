"""
Positional CSV parser for the historical datasets.

Format — comma delimited with a header row. The header is used only to
learn the expected field count; columns are mapped to record fields by
position, in the order each record model declares:

  AgriculturalRecord  → ``AgriculturalRecord.COLUMNS`` (24 columns)
  CropTrialRecord     → ``CropTrialRecord.COLUMNS``    (8 columns)
  FertilizerRecord    → ``FertilizerRecord.COLUMNS``   (9 columns)
  RainfallRecord      → ``RainfallRecord.COLUMN_INDEX`` (22-column rows,
                        seasonal aggregates skipped)

Unlike the all-or-nothing event importer, a bad row never aborts a load:
rows whose field count differs from the header, or whose values fail
validation (non-numeric, NaN, out of range), are logged and dropped. A
row the csv module itself rejects (an oversized field, a stray quote) is
dropped the same way.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from crop_advisor.engine.errors import RowParseError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

# Per-load cap on individually logged row failures.
_MAX_LOGGED_ERRORS = 10


@dataclass
class ParseResult(Generic[R]):
    """Outcome of parsing one dataset.

    Attributes:
        records: Successfully parsed records, in file order.
        dropped: Number of rows discarded.
        errors: ``RowParseError`` for every discarded row.
    """

    records: list[R] = field(default_factory=list)
    dropped: int = 0
    errors: list[RowParseError] = field(default_factory=list)


def parse_records(path: Path, record_cls: type[R]) -> ParseResult[R]:
    """Parse a dataset file into ``record_cls`` instances.

    Args:
        path: CSV file to read.
        record_cls: Record model to build for each row.

    Returns:
        ``ParseResult`` with the kept records and the dropped-row errors.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8 text.
    """
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    text = path.read_text(encoding="utf-8-sig")
    return parse_records_text(text, record_cls, source=path.name)


def parse_records_text(
    text: str,
    record_cls: type[R],
    source: str = "<text>",
) -> ParseResult[R]:
    """Parse CSV ``text`` into ``record_cls`` instances.

    Blank lines are ignored. An empty text or header-only text yields an
    empty result.
    """
    result: ParseResult[R] = ParseResult()
    reader = csv.reader(io.StringIO(text.strip()))

    try:
        header = next(reader, None)
    except csv.Error as exc:
        logger.warning("Dataset %s has an unreadable header: %s", source, exc)
        return result
    if not header:
        logger.warning("Dataset %s is empty", source)
        return result

    width = len(header)
    needed = _required_width(record_cls)
    if width < needed:
        logger.warning(
            "Dataset %s has %d columns, %s needs at least %d — every row will be dropped",
            source, width, record_cls.__name__, needed,
        )

    last_error_line = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            line_no = reader.line_num
            _drop(result, RowParseError(line_no, f"malformed CSV: {exc}"), source)
            if line_no == last_error_line:
                break
            last_error_line = line_no
            continue

        line_no = reader.line_num
        if not row or all(not cell.strip() for cell in row):
            continue
        try:
            if len(row) != width:
                raise RowParseError(
                    line_no, f"expected {width} fields, found {len(row)}"
                )
            result.records.append(_row_to_record(row, record_cls, line_no))
        except RowParseError as exc:
            _drop(result, exc, source)

    if result.dropped > _MAX_LOGGED_ERRORS:
        logger.warning(
            "… and %d more rows dropped from %s",
            result.dropped - _MAX_LOGGED_ERRORS, source,
        )
    logger.info(
        "Parsed %d %s rows from %s (%d dropped)",
        len(result.records), record_cls.__name__, source, result.dropped,
    )
    return result


# ── Private helpers ────────────────────────────────────────────────────────────

def _drop(result: ParseResult, exc: RowParseError, source: str) -> None:
    result.dropped += 1
    result.errors.append(exc)
    if result.dropped <= _MAX_LOGGED_ERRORS:
        logger.warning("Dropping row in %s: %s", source, exc)


def _required_width(record_cls: type[BaseModel]) -> int:
    column_count = getattr(record_cls, "COLUMN_COUNT", None)
    if column_count is not None:
        return column_count
    return len(getattr(record_cls, "COLUMNS"))


def _row_to_record(row: list[str], record_cls: type[R], line_no: int) -> R:
    """Map a positional row onto ``record_cls`` and validate it.

    Raises:
        RowParseError: If the row is too short or fails model validation.
    """
    index: dict[str, int] | None = getattr(record_cls, "COLUMN_INDEX", None)
    if index is None:
        index = {name: pos for pos, name in enumerate(getattr(record_cls, "COLUMNS"))}

    try:
        values = {name: row[pos] for name, pos in index.items()}
    except IndexError:
        raise RowParseError(line_no, f"row too short for {record_cls.__name__}")

    try:
        return record_cls.model_validate(values)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise RowParseError(line_no, f"{loc}: {first.get('msg', 'invalid value')}")
