"""FieldMapper transform plugin.

Renames, selects, and reorganizes row fields.
"""

import copy
from typing import Any

from pydantic import Field

from sluice.contracts import TransformResult
from sluice.plugins.base import BaseTransform
from sluice.plugins.config_base import PluginConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema
from sluice.plugins.sentinels import MISSING, get_nested


class FieldMapperConfig(PluginConfig):
    """Configuration for field mapper transform."""

    mapping: dict[str, str] = Field(default_factory=dict)
    select_only: bool = False
    strict: bool = False


class FieldMapper(BaseTransform):
    """Map, rename, and select row fields.

    Config options:
        mapping: Dict of source_field -> target_field
            - Simple: {"old": "new"} renames old to new
            - Nested: {"meta.source": "origin"} extracts nested field
        select_only: If True, only include mapped fields (default: False)
        strict: If True, error on missing source fields (default: False)
    """

    name = "field_mapper"
    input_schema = DynamicRowSchema
    output_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = FieldMapperConfig.from_dict(config)
        self._mapping = cfg.mapping
        self._select_only = cfg.select_only
        self._strict = cfg.strict

    def process(self, row: dict[str, Any], ctx: PluginContext) -> TransformResult:
        """Apply field mapping to row.

        Returns:
            TransformResult with mapped row, or an error result when a
            mapped field is missing in strict mode
        """
        output: dict[str, Any] = {} if self._select_only else copy.deepcopy(row)

        for source, target in self._mapping.items():
            value = get_nested(row, source)

            if value is MISSING:
                if self._strict:
                    return TransformResult.error(
                        {"message": f"Required field '{source}' not found in row"}
                    )
                continue

            # Rename within the same dict: drop the old top-level key
            if not self._select_only and "." not in source and source in output:
                del output[source]

            output[target] = copy.deepcopy(value)

        return TransformResult.success(output)
