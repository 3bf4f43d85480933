"""Plugin manager for discovery, registration, and lookup.

Uses pluggy for hook-based plugin registration.
"""

from dataclasses import dataclass
from typing import Any

import pluggy

from sluice.contracts import Determinism, NodeType
from sluice.plugins.hookspecs import (
    PROJECT_NAME,
    SluiceSinkSpec,
    SluiceSourceSpec,
    SluiceTransformSpec,
)
from sluice.plugins.protocols import (
    SinkProtocol,
    SourceProtocol,
    TransformProtocol,
)


@dataclass(frozen=True)
class PluginSpec:
    """Registration record for a plugin, as listed by ``sluice plugins list``."""

    name: str
    node_type: NodeType
    version: str
    determinism: Determinism

    @classmethod
    def from_plugin(cls, plugin_cls: type, node_type: NodeType) -> "PluginSpec":
        """Create spec from plugin class.

        Raises:
            ValueError: If plugin is missing required 'name' or 'plugin_version' attributes
        """
        try:
            name = plugin_cls.name  # type: ignore[attr-defined]
        except AttributeError:
            raise ValueError(
                f"Plugin {plugin_cls.__name__} must define 'name' attribute. "
                f"Add: name = 'your_plugin_name' to the class."
            ) from None

        try:
            version = plugin_cls.plugin_version  # type: ignore[attr-defined]
        except AttributeError:
            raise ValueError(
                f"Plugin {plugin_cls.__name__} must define 'plugin_version' attribute. "
                f"Add: plugin_version = '1.0.0' to the class."
            ) from None

        return cls(
            name=name,
            node_type=node_type,
            version=version,
            determinism=plugin_cls.determinism,  # type: ignore[attr-defined]
        )


def _collect(batches: list[list[type[Any]]], kind: str) -> dict[str, type[Any]]:
    collected: dict[str, type[Any]] = {}
    for batch in batches:
        for cls in batch:
            name = cls.name
            if name in collected:
                raise ValueError(
                    f"Duplicate {kind} plugin name: '{name}'. "
                    f"Already registered by {collected[name].__name__}"
                )
            collected[name] = cls
    return collected


class PluginManager:
    """Manages plugin discovery, registration, and lookup.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()

        sinks = manager.get_sinks()
        json_sink = manager.get_sink_by_name("json")
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)

        self._pm.add_hookspecs(SluiceSourceSpec)
        self._pm.add_hookspecs(SluiceTransformSpec)
        self._pm.add_hookspecs(SluiceSinkSpec)

        # Caches - map name to plugin class for duplicate detection
        self._sources: dict[str, type[SourceProtocol]] = {}
        self._transforms: dict[str, type[TransformProtocol]] = {}
        self._sinks: dict[str, type[SinkProtocol]] = {}

    def register_builtin_plugins(self) -> None:
        """Register all built-in plugin hook implementers.

        Call this once at startup to make built-in plugins discoverable.
        """
        from sluice.plugins.sinks.hookimpl import builtin_sinks
        from sluice.plugins.sources.hookimpl import builtin_sources
        from sluice.plugins.transforms.hookimpl import builtin_transforms

        self.register(builtin_sources)
        self.register(builtin_transforms)
        self.register(builtin_sinks)

    def register(self, plugin: Any) -> None:
        """Register a hook implementer.

        Args:
            plugin: Object implementing one or more ``sluice_get_*`` hooks

        Raises:
            ValueError: If two plugins of the same type share a name. The
                offending implementer is unregistered again.
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_caches(self) -> None:
        # Collect everything first so a duplicate leaves the caches untouched
        new_sources = _collect(self._pm.hook.sluice_get_sources(), "source")
        new_transforms = _collect(self._pm.hook.sluice_get_transforms(), "transform")
        new_sinks = _collect(self._pm.hook.sluice_get_sinks(), "sink")

        self._sources = new_sources
        self._transforms = new_transforms
        self._sinks = new_sinks

    # === Getters ===

    def get_sources(self) -> list[type[SourceProtocol]]:
        """Get all registered source plugins."""
        return list(self._sources.values())

    def get_transforms(self) -> list[type[TransformProtocol]]:
        """Get all registered transform plugins."""
        return list(self._transforms.values())

    def get_sinks(self) -> list[type[SinkProtocol]]:
        """Get all registered sink plugins."""
        return list(self._sinks.values())

    def list_specs(self) -> list[PluginSpec]:
        """Registration records for every plugin, grouped by type."""
        specs = [PluginSpec.from_plugin(cls, NodeType.SOURCE) for cls in self.get_sources()]
        specs += [PluginSpec.from_plugin(cls, NodeType.TRANSFORM) for cls in self.get_transforms()]
        specs += [PluginSpec.from_plugin(cls, NodeType.SINK) for cls in self.get_sinks()]
        return specs

    # === Lookup by name ===

    def get_source_by_name(self, name: str) -> type[SourceProtocol] | None:
        """Get source plugin by name."""
        return self._sources.get(name)

    def get_transform_by_name(self, name: str) -> type[TransformProtocol] | None:
        """Get transform plugin by name."""
        return self._transforms.get(name)

    def get_sink_by_name(self, name: str) -> type[SinkProtocol] | None:
        """Get sink plugin by name."""
        return self._sinks.get(name)
