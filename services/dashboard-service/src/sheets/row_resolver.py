from __future__ import annotations

from typing import Optional, Sequence

LABEL_COLUMN = 1  # Column B holds the row labels in the budget sheet.


def cell(rows: Sequence[Sequence[str]], row_index: int, column: int) -> str:
    """Return a trimmed cell value, or "" when the row or column does not exist."""

    if row_index < 0 or row_index >= len(rows):
        return ""
    row = rows[row_index]
    if column >= len(row):
        return ""
    return (row[column] or "").strip()


class LabelIndex:
    """
    Locates rows by the text in their label column instead of a fixed position.

    Labels are normalised once when the index is built; lookups are a
    case-insensitive "starts with" match where the first matching row wins.
    This keeps extraction working when rows are inserted or removed upstream,
    as long as the label wording stays the same.
    """

    def __init__(self, rows: Sequence[Sequence[str]], label_column: int = LABEL_COLUMN) -> None:
        self._labels = [cell(rows, index, label_column).lower() for index in range(len(rows))]

    def find(self, label: str, start: int = 0) -> Optional[int]:
        """Return the first row index at or after `start` whose label starts with `label`."""
        needle = label.lower()
        for index in range(max(0, start), len(self._labels)):
            text = self._labels[index]
            if text and text.startswith(needle):
                return index
        return None
