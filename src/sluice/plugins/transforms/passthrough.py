"""PassThrough transform plugin.

Passes rows through unchanged. Useful for testing flow wiring.
"""

import copy
from typing import Any

from sluice.contracts import TransformResult
from sluice.plugins.base import BaseTransform
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema


class PassThrough(BaseTransform):
    """Pass rows through unchanged.

    Config options:
        None (accepts empty config)
    """

    name = "passthrough"
    input_schema = DynamicRowSchema
    output_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def process(self, row: dict[str, Any], ctx: PluginContext) -> TransformResult:
        """Return row unchanged (deep copy to prevent mutation)."""
        return TransformResult.success(copy.deepcopy(row))
