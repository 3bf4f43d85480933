"""Hook implementation for built-in source plugins."""

from typing import Any

from sluice.plugins.hookspecs import hookimpl


class SluiceBuiltinSources:
    """Hook implementer for built-in source plugins."""

    @hookimpl
    def sluice_get_sources(self) -> list[type[Any]]:
        """Return built-in source plugin classes."""
        from sluice.plugins.sources.csv_source import CSVSource
        from sluice.plugins.sources.json_source import JSONSource

        return [CSVSource, JSONSource]


# Singleton instance for registration
builtin_sources = SluiceBuiltinSources()
