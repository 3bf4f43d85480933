"""Built-in source plugins.

Sources load rows into a flow. A flow may bind any number of them.
"""

from sluice.plugins.sources.csv_source import CSVSource
from sluice.plugins.sources.json_source import JSONSource

__all__ = ["CSVSource", "JSONSource"]
