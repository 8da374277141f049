"""Observed data read from a CSV file whose first column is time."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from typing import Iterable

__all__ = ["CSVData"]


@dataclass
class CSVData:
    """Time points and one series of observed values per labelled column."""

    labels: list[str] = field(default_factory=list)
    lines: list[list[float]] = field(default_factory=list)
    time: list[float] = field(default_factory=list)

    @classmethod
    def load_data(cls, reader: Iterable[str]) -> "CSVData":
        """Read a CSV with a header row; the first column is taken as time.

        Raises ValueError when the file has no columns, when a row's length
        differs from the header's, or when a value is not a number.
        """
        rows = (row for row in csv.reader(reader) if row)
        header = next(rows, None)
        labels = list(header) if header is not None else []
        if not labels:
            raise ValueError("CSV data has no columns")

        columns: list[list[float]] = [[] for _ in labels]
        for line_no, row in enumerate(rows, start=2):
            if len(row) != len(labels):
                raise ValueError(
                    f"record {line_no} has {len(row)} fields, "
                    f"header has {len(labels)}"
                )
            for column, value in zip(columns, row):
                try:
                    column.append(float(value.strip()))
                except ValueError as exc:
                    raise ValueError(
                        f"invalid number {value!r} in record {line_no}"
                    ) from exc

        return cls(labels=labels[1:], lines=columns[1:], time=columns[0])