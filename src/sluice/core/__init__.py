"""Core infrastructure: Configuration, Flow definitions, DAG, Lineage, Logging."""

from sluice.core.config import (
    LoggingSettings,
    NodeSettings,
    SinkSettings,
    SluiceSettings,
    SnapshotSettings,
    SourceSettings,
    load_settings,
)
from sluice.core.dag import (
    ExecutionGraph,
    GraphValidationError,
    NodeInfo,
)
from sluice.core.flow import (
    FlowDef,
    Pipe,
    SinkBinding,
    SourceBinding,
)
from sluice.core.lineage import (
    Lineage,
    reachable_pipes,
    resolve_sources,
)
from sluice.core.logging import (
    configure_logging,
    get_logger,
)
from sluice.core.subflow import (
    SubFlow,
    TempSink,
    build_sub_flow,
)

__all__ = [
    "ExecutionGraph",
    "FlowDef",
    "GraphValidationError",
    "Lineage",
    "LoggingSettings",
    "NodeInfo",
    "NodeSettings",
    "Pipe",
    "SinkBinding",
    "SinkSettings",
    "SluiceSettings",
    "SnapshotSettings",
    "SourceBinding",
    "SourceSettings",
    "SubFlow",
    "TempSink",
    "build_sub_flow",
    "configure_logging",
    "get_logger",
    "load_settings",
    "reachable_pipes",
    "resolve_sources",
]
