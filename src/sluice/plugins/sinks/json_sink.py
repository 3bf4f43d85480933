"""JSON sink plugin.

Writes rows to JSON files. Supports JSON array and JSONL formats.
"""

import hashlib
import json
from typing import IO, Any, Literal

from sluice.contracts import ArtifactDescriptor
from sluice.plugins.base import BaseSink
from sluice.plugins.config_base import PathConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema

# Exact types only: subclasses such as enums decode as their base type
_JSON_SCALARS = (str, int, float, bool, type(None))


def _require_round_trip(value: Any, where: str) -> None:
    """Raise TypeError unless json.loads(json.dumps(value)) == value."""
    if isinstance(value, dict):
        for key, item in value.items():
            if type(key) is not str:
                raise TypeError(f"{where}: key {key!r} is not a string")
            _require_round_trip(item, f"{where}.{key}")
    elif isinstance(value, list):
        for i, item in enumerate(value):
            _require_round_trip(item, f"{where}[{i}]")
    elif type(value) not in _JSON_SCALARS:
        raise TypeError(
            f"{where}: {type(value).__name__} value {value!r} does not round-trip through JSON"
        )


class JSONSinkConfig(PathConfig):
    """Configuration for JSON sink plugin."""

    format: Literal["json", "jsonl"] | None = None
    indent: int | None = None
    encoding: str = "utf-8"
    strict: bool = False


class JSONSink(BaseSink):
    """Write rows to a JSON file.

    Config options:
        path: Path to output JSON file (required)
        format: "json" (array) or "jsonl" (lines). Auto-detected from extension.
        indent: Indentation for pretty-printing (default: None for compact)
        encoding: File encoding (default: "utf-8")
        strict: Reject values that would not read back unchanged, such as
            tuples, dates or non-string keys (default: False)

    Values JSON cannot encode always fail the write; they are never
    stringified. An empty write produces ``[]`` (json) or an empty file (jsonl).
    """

    name = "json"
    input_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = JSONSinkConfig.from_dict(config)
        self._path = cfg.resolved_path()
        self._encoding = cfg.encoding
        self._indent = cfg.indent
        self._strict = cfg.strict

        fmt = cfg.format
        if fmt is None:
            fmt = "jsonl" if self._path.suffix == ".jsonl" else "json"
        self._format = fmt

        self._file: IO[str] | None = None
        self._rows: list[dict[str, Any]] = []  # Buffer for json array format

    def write(
        self, rows: list[dict[str, Any]], ctx: PluginContext
    ) -> ArtifactDescriptor:
        """Write a batch of rows to the JSON file.

        Returns:
            ArtifactDescriptor with content_hash (SHA-256) and size_bytes

        Raises:
            TypeError: If a value cannot be encoded, or in strict mode would
                not decode to an equal value. Nothing from the batch is written.
        """
        if self._strict:
            for i, row in enumerate(rows):
                _require_round_trip(row, f"row {i}")

        if self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self._path, "w", encoding=self._encoding)  # noqa: SIM115 - lifecycle managed by class

        if self._format == "jsonl":
            lines = [json.dumps(row) for row in rows]
            self._file.writelines(f"{line}\n" for line in lines)
        else:
            # The array is rewritten in full on every batch
            payload = json.dumps(self._rows + rows, indent=self._indent)
            self._rows.extend(rows)
            self._file.seek(0)
            self._file.truncate()
            self._file.write(payload)

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
            self._rows = []
