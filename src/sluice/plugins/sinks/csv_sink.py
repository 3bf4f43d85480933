"""CSV sink plugin.

Writes rows to CSV files and reports a SHA-256 content hash per write.
"""

import csv
import hashlib
from typing import IO, Any

from sluice.contracts import ArtifactDescriptor
from sluice.plugins.base import BaseSink
from sluice.plugins.config_base import PathConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema


class CSVSinkConfig(PathConfig):
    """Configuration for CSV sink plugin."""

    delimiter: str = ","
    encoding: str = "utf-8"


class CSVSink(BaseSink):
    """Write rows to a CSV file.

    The header is the ordered union of keys in the first non-empty batch;
    rows missing a column get an empty cell. Writing no rows at all still
    leaves an empty file behind so the output can be read back. Rows without
    any keys cannot be represented and produce no lines.

    Config options:
        path: Path to output CSV file (required)
        delimiter: Field delimiter (default: ",")
        encoding: File encoding (default: "utf-8")
    """

    name = "csv"
    input_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = CSVSinkConfig.from_dict(config)

        self._path = cfg.resolved_path()
        self._delimiter = cfg.delimiter
        self._encoding = cfg.encoding

        self._file: IO[str] | None = None
        self._writer: csv.DictWriter[str] | None = None

    def write(
        self, rows: list[dict[str, Any]], ctx: PluginContext
    ) -> ArtifactDescriptor:
        """Write a batch of rows to the CSV file.

        Returns:
            ArtifactDescriptor with content_hash (SHA-256) and size_bytes
        """
        if self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(  # noqa: SIM115 - lifecycle managed by class
                self._path, "w", encoding=self._encoding, newline=""
            )

        fieldnames = list(dict.fromkeys(key for row in rows for key in row))
        if fieldnames and self._writer is None:
            self._writer = csv.DictWriter(
                self._file,
                fieldnames=fieldnames,
                delimiter=self._delimiter,
                restval="",
            )
            self._writer.writeheader()

        # Rows with no columns have no CSV form; the file stays zero-byte until one does
        if self._writer is not None:
            self._writer.writerows(rows)

        # Flush so the hash covers everything written so far
        self._file.flush()

        with open(self._path, "rb") as f:
            content_hash = hashlib.file_digest(f, "sha256").hexdigest()

        return ArtifactDescriptor.for_file(
            path=str(self._path),
            content_hash=content_hash,
            size_bytes=self._path.stat().st_size,
        )

    def flush(self) -> None:
        """Flush buffered data to disk."""
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        """Close the file handle."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None
