"""Plugin system: Sources, Transforms, Sinks via pluggy.

- Protocols: Type contracts for plugin implementations
- Base classes: Convenient base classes with lifecycle hooks
- Schemas: Pydantic-based row schemas
- Manager: Plugin discovery and registration
- Hookspecs: pluggy hook definitions
"""

from sluice.contracts import Determinism, NodeType, TransformResult
from sluice.plugins.base import BaseSink, BaseSource, BaseTransform
from sluice.plugins.config_base import PathConfig, PluginConfig, PluginConfigError
from sluice.plugins.context import PluginContext
from sluice.plugins.hookspecs import hookimpl, hookspec
from sluice.plugins.manager import PluginManager, PluginSpec
from sluice.plugins.protocols import SinkProtocol, SourceProtocol, TransformProtocol
from sluice.plugins.schemas import DynamicRowSchema, PluginSchema

__all__ = [  # Grouped by category for readability
    # Results
    "TransformResult",
    # Context
    "PluginContext",
    # Schemas
    "DynamicRowSchema",
    "PluginSchema",
    # Protocols
    "SinkProtocol",
    "SourceProtocol",
    "TransformProtocol",
    # Base classes
    "BaseSink",
    "BaseSource",
    "BaseTransform",
    # Config base classes
    "PathConfig",
    "PluginConfig",
    "PluginConfigError",
    # Manager
    "PluginManager",
    "PluginSpec",
    # Hookspecs
    "hookimpl",
    "hookspec",
    # Enums
    "Determinism",
    "NodeType",
]
