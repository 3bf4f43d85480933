"""Plugin execution context.

The PluginContext carries everything a plugin might need during execution:
the run it belongs to, the node it is evaluating and run-level config.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PluginContext:
    """Context passed to every plugin operation.

    Provides access to:
    - Run metadata (run_id, config)
    - The node being evaluated (node_id, plugin_name)
    - Utility methods (get config values)

    Example:
        def process(self, row: dict, ctx: PluginContext) -> TransformResult:
            threshold = ctx.get("threshold", default=0.5)
            return TransformResult.success({**row, "high": row["score"] > threshold})
    """

    run_id: str
    config: dict[str, Any] = field(default_factory=dict)
    node_id: str | None = field(default=None)
    plugin_name: str | None = field(default=None)

    def get(self, key: str, *, default: Any = None) -> Any:
        """Get a config value by dotted path.

        Args:
            key: Dotted path like "nested.key"
            default: Value if key not found

        Returns:
            Config value or default
        """
        parts = key.split(".")
        value: Any = self.config
        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value
