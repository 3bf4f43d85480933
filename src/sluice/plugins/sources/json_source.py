"""JSON source plugin.

Loads rows from JSON files. Supports JSON array and JSONL formats.
"""

import json
from collections.abc import Iterator
from typing import Any, Literal

from sluice.plugins.base import BaseSource
from sluice.plugins.config_base import PathConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema


class JSONSourceConfig(PathConfig):
    """Configuration for JSON source plugin."""

    format: Literal["json", "jsonl"] | None = None
    data_key: str | None = None
    encoding: str = "utf-8"


class JSONSource(BaseSource):
    """Load rows from a JSON file.

    Config options:
        path: Path to JSON file (required)
        format: "json" (array) or "jsonl" (lines). Auto-detected from extension if not set.
        data_key: Key to extract array from JSON object (e.g., "results")
        encoding: File encoding (default: "utf-8")
    """

    name = "json"
    output_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = JSONSourceConfig.from_dict(config)

        self._path = cfg.resolved_path()
        self._encoding = cfg.encoding
        self._data_key = cfg.data_key

        fmt = cfg.format
        if fmt is None:
            fmt = "jsonl" if self._path.suffix == ".jsonl" else "json"
        self._format = fmt

    def load(self, ctx: PluginContext) -> Iterator[dict[str, Any]]:
        """Load rows from JSON file.

        Yields:
            Dict for each row.

        Raises:
            FileNotFoundError: If file does not exist.
            ValueError: If JSON is not an array of objects.
        """
        if not self._path.exists():
            raise FileNotFoundError(f"JSON file not found: {self._path}")

        if self._format == "jsonl":
            yield from self._load_jsonl()
        else:
            yield from self._load_json_array()

    def _load_jsonl(self) -> Iterator[dict[str, Any]]:
        """Load from JSONL format (one JSON object per line)."""
        with open(self._path, encoding=self._encoding) as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                row = json.loads(line)
                if not isinstance(row, dict):
                    raise ValueError(
                        f"{self._path}:{line_no}: expected JSON object, got {type(row).__name__}"
                    )
                yield row

    def _load_json_array(self) -> Iterator[dict[str, Any]]:
        """Load from JSON array format."""
        with open(self._path, encoding=self._encoding) as f:
            data = json.load(f)

        if self._data_key:
            data = data[self._data_key]

        if not isinstance(data, list):
            raise ValueError(f"Expected JSON array, got {type(data).__name__}")

        for row in data:
            if not isinstance(row, dict):
                raise ValueError(f"Expected JSON object rows, got {type(row).__name__}")
            yield row

    def close(self) -> None:
        """Release resources (no-op for JSON source)."""
        pass
