"""pluggy hook specifications for Sluice plugins.

Plugins implement these hooks to register themselves with the framework.
The plugin manager calls these hooks during discovery.

Usage (implementing a plugin):
    from sluice.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def sluice_get_transforms(self):
            return [MyTransform]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from sluice.plugins.protocols import (
        SinkProtocol,
        SourceProtocol,
        TransformProtocol,
    )

# Project name for pluggy
PROJECT_NAME = "sluice"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class SluiceSourceSpec:
    """Hook specifications for source plugins."""

    @hookspec
    def sluice_get_sources(self) -> list[type["SourceProtocol"]]:  # type: ignore[empty-body]
        """Return source plugin classes.

        Returns:
            List of Source plugin classes (not instances)
        """


class SluiceTransformSpec:
    """Hook specifications for transform plugins."""

    @hookspec
    def sluice_get_transforms(self) -> list[type["TransformProtocol"]]:  # type: ignore[empty-body]
        """Return transform plugin classes."""


class SluiceSinkSpec:
    """Hook specifications for sink plugins."""

    @hookspec
    def sluice_get_sinks(self) -> list[type["SinkProtocol"]]:  # type: ignore[empty-body]
        """Return sink plugin classes."""
