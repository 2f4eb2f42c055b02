from __future__ import annotations

import csv
import logging
import re
from io import StringIO
from typing import List

logger = logging.getLogger(__name__)

Row = List[str]

# A carriage return only ends a row as part of "\r\n"; a lone one is field text.
_LONE_CR_RE = re.compile(r"\r(?!\n)")
_LONE_CR_PLACEHOLDER = "\ue000"


def decode_csv_bytes(payload: bytes) -> str:
    """Decode a published-sheet export, dropping a UTF-8 BOM when present."""

    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


def tokenize_csv(text: str) -> List[Row]:
    """
    Split raw CSV text into rows of trimmed fields.

    Quoted fields may contain commas, doubled quotes and line breaks, and may
    be preceded by spaces after the delimiter. Rows end at "\\n" or "\\r\\n".
    A final row without a trailing newline is still returned, and an
    unterminated quote yields whatever was read up to the end of input. Blank
    lines are kept as a single empty field so row positions match the
    spreadsheet.
    """

    rows: List[Row] = []
    if not text:
        return rows

    protected = _LONE_CR_RE.sub(_LONE_CR_PLACEHOLDER, text)
    reader = csv.reader(StringIO(protected, newline=""), strict=False, skipinitialspace=True)
    try:
        for raw_row in reader:
            rows.append([_clean_field(field) for field in raw_row] or [""])
    except csv.Error as exc:
        logger.warning(
            {
                "event": "csv_tokenize_truncated",
                "rows_read": len(rows),
                "line_num": reader.line_num,
                "error": str(exc),
            }
        )
    return rows


def _clean_field(field: str) -> str:
    return field.replace(_LONE_CR_PLACEHOLDER, "\r").strip()
