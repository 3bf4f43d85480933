"""Hook implementation for built-in sink plugins."""

from typing import Any

from sluice.plugins.hookspecs import hookimpl


class SluiceBuiltinSinks:
    """Hook implementer for built-in sink plugins."""

    @hookimpl
    def sluice_get_sinks(self) -> list[type[Any]]:
        """Return built-in sink plugin classes."""
        from sluice.plugins.sinks.csv_sink import CSVSink
        from sluice.plugins.sinks.json_sink import JSONSink

        return [CSVSink, JSONSink]


# Singleton instance for registration
builtin_sinks = SluiceBuiltinSinks()
