"""CSV source plugin.

Loads rows from CSV files using pandas for robust parsing.
"""

from collections.abc import Iterator
from typing import Any

import pandas as pd

from sluice.plugins.base import BaseSource
from sluice.plugins.config_base import PathConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema


class CSVSourceConfig(PathConfig):
    """Configuration for CSV source plugin."""

    delimiter: str = ","
    encoding: str = "utf-8"
    skip_rows: int = 0


class CSVSource(BaseSource):
    """Load rows from a CSV file.

    Every value is read as a string; empty cells stay empty strings.

    Config options:
        path: Path to CSV file (required)
        delimiter: Field delimiter (default: ",")
        encoding: File encoding (default: "utf-8")
        skip_rows: Number of leading lines to skip (default: 0)
    """

    name = "csv"
    output_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = CSVSourceConfig.from_dict(config)
        self._path = cfg.resolved_path()
        self._delimiter = cfg.delimiter
        self._encoding = cfg.encoding
        self._skip_rows = cfg.skip_rows
        self._dataframe: pd.DataFrame | None = None

    def load(self, ctx: PluginContext) -> Iterator[dict[str, Any]]:
        """Load rows from CSV file.

        Yields:
            Dict for each row with column names as keys.

        Raises:
            FileNotFoundError: If CSV file does not exist.
        """
        if not self._path.exists():
            raise FileNotFoundError(f"CSV file not found: {self._path}")

        # An empty sink leaves a zero-byte file, which pandas refuses to parse
        if self._path.stat().st_size == 0:
            return

        self._dataframe = pd.read_csv(
            self._path,
            delimiter=self._delimiter,
            encoding=self._encoding,
            skiprows=self._skip_rows,
            dtype=str,
            keep_default_na=False,  # Don't convert empty strings to NaN
        )

        for record in self._dataframe.to_dict(orient="records"):
            yield {str(k): v for k, v in record.items()}

    def close(self) -> None:
        """Release resources."""
        self._dataframe = None
