"""CSV file source."""

import csv
from pathlib import Path
from typing import Any

from kpiflow.sources.base import SpreadsheetSource, drop_trailing_blank_rows


class CSVFileSource(SpreadsheetSource):
    """Read rows from a CSV file, sniffing the delimiter."""

    def __init__(self, path: str):
        """Initialize CSV source.

        Args:
            path: Path to CSV file
        """
        self.path = Path(path)

    def read_rows(self) -> list[dict[str, Any]]:
        """Read all rows as dicts keyed by header.

        Raises:
            FileNotFoundError: If the CSV file doesn't exist
            ValueError: If the file has no header row
        """
        if not self.path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.path}")

        with open(self.path, "r", encoding="utf-8-sig", newline="") as f:
            sample = f.read(1024)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
            except csv.Error:
                delimiter = ","

            # Empty lines stay in as blank rows so positions match the file
            reader = csv.reader(f, delimiter=delimiter)
            header = next(reader, None)
            if header is None:
                raise ValueError("CSV file has no columns")
            headers = [name.strip() for name in header]

            rows = []
            for values in reader:
                # Surplus cells are dropped, missing ones read as None
                rows.append(
                    {
                        name: values[idx] if idx < len(values) else None
                        for idx, name in enumerate(headers)
                        if name
                    }
                )
            return drop_trailing_blank_rows(rows)
