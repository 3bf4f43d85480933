"""Built-in sink plugins.

Sinks write rows out of a flow. Every terminal of a run ends in one.
"""

from sluice.plugins.sinks.csv_sink import CSVSink
from sluice.plugins.sinks.json_sink import JSONSink

__all__ = ["CSVSink", "JSONSink"]
